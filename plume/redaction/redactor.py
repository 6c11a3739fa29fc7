"""
Plume: Redaction - Redactor

Moteur de masquage: produit des copies masquées sans jamais modifier la
valeur ou l'entrée source.

Ordre de décision pour chaque propriété d'un record:
    1. field_config désactivé -> copie inchangée
    2. custom_redactor du field_config
    3. custom_redactor global (retenu s'il change la valeur)
    4. remplacement du field_config, clé ou valeur correspondante (hors
       liste blanche)
    5. sinon récursion
"""

import dataclasses
import re
from typing import Any, Dict, List, Optional

from ..core.diagnostics import log_internal_debug, log_internal_warning
from ..core.interfaces import LogArgs, LogEntry
from ..core.traversal import TreeWalker, WalkContext, join_path
from ..core.type_guards import is_primitive, is_record
from .interfaces import (
    DEFAULT_REPLACEMENT,
    FieldRedactionConfig,
    RedactionAuditEvent,
    RedactionConfig,
    RedactionContext,
)
from .patterns import (
    is_whitelisted,
    redact_string,
    should_redact_key,
    should_redact_value,
    string_needs_redaction,
)


def trigger_audit(
    event_type: str,
    context: RedactionContext,
    before: Any,
    after: Any,
    config: RedactionConfig,
    rule: str = "",
) -> None:
    """
    Émet un événement d'audit si la politique le demande.

    Args:
        event_type: "key", "value", "string" ou "custom"
        context: Position de la valeur masquée
        before: Valeur originale
        after: Valeur masquée
        config: Politique de masquage
        rule: Règle ayant déclenché le masquage
    """
    if not config.audit_redaction and not config.audit_hook:
        return

    event = RedactionAuditEvent(
        type=event_type,
        context=context,
        before=before,
        after=after,
        rule=rule,
    )

    if config.audit_redaction:
        log_internal_debug(
            f"[REDACTION AUDIT] {event_type.upper()}: {context.path}", event
        )

    if config.audit_hook:
        try:
            config.audit_hook(event)
        except Exception as e:
            log_internal_warning("[REDACTION AUDIT] Error in audit hook:", e)


def get_field_config(
    path: str, config: RedactionConfig
) -> Optional[FieldRedactionConfig]:
    """
    Retourne la surcharge applicable à un chemin.

    Correspondance exacte d'abord, puis globs où `*` couvre tout.
    """
    if not config.field_configs:
        return None

    exact = config.field_configs.get(path)
    if exact is not None:
        return exact

    flags = re.IGNORECASE if config.case_insensitive else 0
    for pattern, field_config in config.field_configs.items():
        if "*" not in pattern:
            continue
        body = ".*".join(re.escape(chunk) for chunk in pattern.split("*"))
        if re.match(f"^{body}$", path, flags):
            return field_config

    return None


def apply_replacement(
    value: Any,
    context: RedactionContext,
    config: RedactionConfig,
    field_config: Optional[FieldRedactionConfig] = None,
) -> Any:
    """
    Calcule la valeur de remplacement.

    Le remplacement du field_config prime sur celui de la politique.
    Une fonction de remplacement reçoit (value, key, path).
    """
    replacement = config.replacement
    if field_config is not None and field_config.replacement is not None:
        replacement = field_config.replacement

    if callable(replacement):
        return replacement(value, context.key, context.path)
    return replacement if replacement is not None else DEFAULT_REPLACEMENT


class _RedactionVisitor:
    """Transformation de noeud du TreeWalker pour redact_object."""

    def __init__(
        self, config: RedactionConfig, field: str, target: Optional[str]
    ) -> None:
        self._config = config
        self._field = field
        self._target = target

    def _context(self, value: Any, node: WalkContext) -> RedactionContext:
        return RedactionContext(
            key=node.key,
            path=node.path,
            field=self._field,
            original_value=value,
            target=self._target,
        )

    def __call__(self, value: Any, node: WalkContext, walker: TreeWalker) -> Any:
        config = self._config
        context = self._context(value, node)

        field_config = get_field_config(node.path, config) if node.path else None
        if field_config is not None and field_config.disabled:
            return value

        if field_config is not None and field_config.custom_redactor:
            try:
                result = field_config.custom_redactor(value, context)
                trigger_audit(
                    "custom", context, value, result, config,
                    "field-specific custom redactor",
                )
                return result
            except Exception as e:
                log_internal_warning(
                    "[REDACTION] Error in field-specific custom redactor:", e
                )

        if is_primitive(value):
            return self._redact_primitive(value, context, field_config)

        if isinstance(value, (list, tuple)):
            items: List[Any] = []
            for index, item in enumerate(value):
                try:
                    items.append(walker.walk_child(item, node, None, index=index))
                except Exception:
                    items.append(item)
            return items

        if is_record(value):
            return self._redact_record(value, node, walker)

        return value

    def _redact_primitive(
        self,
        value: Any,
        context: RedactionContext,
        field_config: Optional[FieldRedactionConfig],
    ) -> Any:
        config = self._config
        if config.custom_redactor:
            try:
                result = config.custom_redactor(value, context)
                if result != value:
                    trigger_audit(
                        "custom", context, value, result, config,
                        "global custom redactor on primitive",
                    )
                    return result
            except Exception as e:
                log_internal_warning("[REDACTION] Error in global custom redactor:", e)

        if should_redact_value(value, config) and not is_whitelisted(
            context.path, context.key, config
        ):
            result = apply_replacement(value, context, config, field_config)
            trigger_audit("value", context, value, result, config, "value pattern match")
            return result

        return value

    def _redact_record(
        self, value: Dict[Any, Any], node: WalkContext, walker: TreeWalker
    ) -> Dict[str, Any]:
        result: Dict[str, Any] = {}

        for raw_key, prop in value.items():
            key = str(raw_key)
            path = join_path(node.path, key)
            try:
                result[key] = self._redact_property(prop, key, path, node, walker)
            except Exception as e:
                log_internal_warning(
                    f"[REDACTION] Error processing property '{key}' at path '{path}':", e
                )
                result[key] = prop

        return result

    def _redact_property(
        self,
        prop: Any,
        key: str,
        path: str,
        node: WalkContext,
        walker: TreeWalker,
    ) -> Any:
        config = self._config
        context = RedactionContext(
            key=key,
            path=path,
            field=self._field,
            original_value=prop,
            target=self._target,
        )
        field_config = get_field_config(path, config)

        if field_config is not None and field_config.disabled:
            return prop

        if field_config is not None and field_config.custom_redactor:
            try:
                result = field_config.custom_redactor(prop, context)
                trigger_audit(
                    "custom", context, prop, result, config,
                    "property field-specific custom redactor",
                )
                return result
            except Exception as e:
                log_internal_warning(
                    "[REDACTION] Error in property field-specific custom redactor "
                    f"for path '{path}':",
                    e,
                )

        if config.custom_redactor:
            try:
                result = config.custom_redactor(prop, context)
                if result is not prop and result != prop:
                    trigger_audit(
                        "custom", context, prop, result, config, "global custom redactor"
                    )
                    return result
            except Exception as e:
                log_internal_warning(
                    f"[REDACTION] Error in global custom redactor for path '{path}':", e
                )

        by_field = field_config is not None and field_config.replacement is not None
        # La liste blanche prime aussi sur les value_patterns
        whitelisted = is_whitelisted(path, key, config)
        by_key = not whitelisted and should_redact_key(path, key, config)
        by_value = not whitelisted and should_redact_value(prop, config)

        if by_field or by_key or by_value:
            result = apply_replacement(prop, context, config, field_config)
            if by_field:
                rule = "field-specific replacement"
            elif by_key:
                rule = "global key pattern match"
            else:
                rule = "global value pattern match"
            trigger_audit("key", context, prop, result, config, rule)
            return result

        if is_primitive(prop):
            return prop

        return walker.walk_child(prop, node, key)


def redact_object(
    value: Any,
    config: RedactionConfig,
    path: str = "",
    key: str = "",
    field: str = "",
    target: Optional[str] = None,
) -> Any:
    """
    Copie structurelle de value avec les valeurs sensibles remplacées.

    Parcourt listes et records; tout autre type est laissé intact. Une
    référence circulaire devient "[Circular Reference]", une profondeur
    atteignant config.max_depth devient "[Max Depth Exceeded]".

    Args:
        value: Valeur à masquer (non modifiée)
        config: Politique de masquage
        path: Chemin de départ
        key: Clé de départ
        field: Partie de l'entrée traitée ("args", "data"...)
        target: Cible du masquage ("console", "file")

    Returns:
        Copie masquée
    """
    walker = TreeWalker(
        _RedactionVisitor(config, field, target),
        max_depth=config.max_depth - 1,
    )
    return walker.walk(value, key=key, path=path)


def needs_redaction(value: Any, config: RedactionConfig, path: str = "") -> bool:
    """
    Pré-vérification sans copie: une règle clé/valeur peut-elle s'appliquer?

    Même parcours que redact_object, interrompu à la première
    correspondance. Toujours False sans keys, key_patterns ni
    value_patterns.

    Args:
        value: Valeur à inspecter
        config: Politique de masquage
        path: Chemin de départ

    Returns:
        True si redact_object remplacerait au moins une valeur
    """
    if not config.has_matching_rules():
        return False

    def visit(node_value: Any, node: WalkContext, walker: TreeWalker) -> bool:
        if is_primitive(node_value):
            return should_redact_value(node_value, config) and not is_whitelisted(
                node.path, node.key, config
            )

        if isinstance(node_value, (list, tuple)):
            return any(
                walker.walk_child(item, node, None, index=index)
                for index, item in enumerate(node_value)
            )

        if is_record(node_value):
            for raw_key, prop in node_value.items():
                key = str(raw_key)
                path = join_path(node.path, key)
                if not is_whitelisted(path, key, config):
                    if should_redact_key(path, key, config):
                        return True
                    if should_redact_value(prop, config):
                        return True
                if walker.walk_child(prop, node, key):
                    return True

        return False

    walker = TreeWalker(
        visit,
        max_depth=config.max_depth - 1,
        on_cycle=False,
        on_max_depth=False,
    )
    return walker.walk(value, path=path)


def _entry_needs_redaction(entry: LogEntry, config: RedactionConfig) -> bool:
    if config.custom_redactor or config.field_configs:
        return True

    fields = config.fields
    if "message" in fields and string_needs_redaction(entry.message, config):
        return True

    if "args" in fields:
        for arg in entry.args.processed_args:
            if isinstance(arg, str) and config.redact_strings:
                if string_needs_redaction(arg, config):
                    return True
            elif needs_redaction(arg, config):
                return True

    if "data" in fields and entry.data is not None:
        if needs_redaction(entry.data, config):
            return True

    return False


def redact_log_entry(
    entry: LogEntry,
    config: RedactionConfig,
    target: Optional[str] = None,
) -> LogEntry:
    """
    Produit une copie masquée de l'entrée.

    message, args et data sont traités indépendamment; une partie en
    échec est conservée telle quelle et rapportée.

    Args:
        entry: Entrée source (non modifiée)
        config: Politique de masquage
        target: Cible du masquage

    Returns:
        Nouvelle LogEntry
    """
    fields = config.fields
    message = entry.message
    args = entry.args
    data = entry.data

    if "message" in fields:
        try:
            context = RedactionContext(
                path="message", field="message", original_value=message, target=target
            )
            redacted = redact_string(message, config, context)
            if redacted != message:
                trigger_audit(
                    "string", context, message, redacted, config, "string pattern match"
                )
                message = redacted
        except Exception as e:
            log_internal_warning("[REDACTION] Error processing field 'message':", e)

    if "args" in fields:
        try:
            processed: List[Any] = []
            for index, arg in enumerate(entry.args.processed_args):
                arg_key = f"processed_args[{index}]"
                if isinstance(arg, str) and config.redact_strings:
                    context = RedactionContext(
                        key=arg_key,
                        path=f"args.{arg_key}",
                        field="args",
                        original_value=arg,
                        target=target,
                    )
                    processed.append(redact_string(arg, config, context))
                else:
                    processed.append(
                        redact_object(arg, config, key=arg_key, field="args", target=target)
                    )
            args = LogArgs(
                processed_args=tuple(processed),
                has_complex_args=entry.args.has_complex_args,
            )
        except Exception as e:
            log_internal_warning("[REDACTION] Error processing field 'args':", e)

    if "data" in fields and entry.data is not None:
        try:
            data = redact_object(entry.data, config, key="data", field="data", target=target)
        except Exception as e:
            log_internal_warning("[REDACTION] Error processing field 'data':", e)

    return dataclasses.replace(entry, message=message, args=args, data=data)


def get_redacted_entry(
    entry: LogEntry,
    config: Optional[RedactionConfig] = None,
    target: Optional[str] = None,
) -> LogEntry:
    """
    Entrée à livrer pour une cible donnée.

    Retourne l'entrée originale elle-même (aucune copie) si aucune
    politique n'est fournie, si la politique ne vise pas cette cible ou
    si rien n'est à masquer.

    Args:
        entry: Entrée normalisée
        config: Politique de masquage (optionnelle)
        target: "console" ou "file"

    Returns:
        entry ou une copie masquée
    """
    if config is None or not config.applies_to(target):
        return entry

    if not _entry_needs_redaction(entry, config):
        return entry

    return redact_log_entry(entry, config, target)
