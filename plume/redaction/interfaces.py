"""
Plume: Redaction - Interfaces

Politique de masquage des données sensibles et types associés.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Pattern, Tuple, Union

DEFAULT_REPLACEMENT = "[REDACTED]"
DEFAULT_REDACTION_FIELDS: Tuple[str, ...] = ("args", "data", "message")
REDACTION_TARGETS = ("console", "file", "both")

PatternLike = Union[str, Pattern[str]]
ReplacementFunction = Callable[[Any, str, str], Any]
Replacement = Union[str, ReplacementFunction]


@dataclass(frozen=True)
class RedactionContext:
    """Position de la valeur en cours de masquage."""

    key: str = ""
    path: str = ""
    field: str = ""
    original_value: Any = None
    target: Optional[str] = None


@dataclass(frozen=True)
class RedactionAuditEvent:
    """Trace d'un masquage appliqué."""

    type: str  # "key" | "value" | "string" | "custom"
    context: RedactionContext
    before: Any
    after: Any
    rule: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


CustomRedactor = Callable[[Any, RedactionContext], Any]
AuditHook = Callable[[RedactionAuditEvent], None]


@dataclass
class FieldRedactionConfig:
    """
    Surcharge de masquage pour un chemin (exact ou glob avec `*`).

    Attributes:
        replacement: Remplacement propre au chemin (force le masquage)
        custom_redactor: Fonction appliquée à la valeur du chemin
        disabled: Désactive tout masquage pour ce chemin
    """

    replacement: Optional[Replacement] = None
    custom_redactor: Optional[CustomRedactor] = None
    disabled: bool = False


def compile_patterns(
    patterns: Optional[List[PatternLike]], case_insensitive: bool
) -> List[Pattern[str]]:
    """Compile les motifs fournis sous forme de chaînes."""
    flags = re.IGNORECASE if case_insensitive else 0
    compiled: List[Pattern[str]] = []
    for pattern in patterns or []:
        if isinstance(pattern, str):
            compiled.append(re.compile(pattern, flags))
        else:
            compiled.append(pattern)
    return compiled


@dataclass
class RedactionConfig:
    """
    Politique de masquage.

    Attributes:
        keys: Clés ou chemins littéraux, globs acceptés (`*`, `**`)
        key_patterns: Regex testées sur la clé et sur le chemin
        value_patterns: Regex testées sur les valeurs str
        redact_strings: Active le masquage dans message et arguments str
        string_patterns: Regex appliquées par redact_string
        whitelist: Clés ou chemins jamais masqués (prioritaires)
        whitelist_patterns: Regex de liste blanche
        field_configs: Surcharges par chemin
        custom_redactor: Fonction globale (appliquée si elle change la valeur)
        replacement: Texte ou fonction(value, key, path)
        case_insensitive: Comparaisons insensibles à la casse
        redact_in: Cible concernée: "console", "file" ou "both"
        audit_redaction: Trace chaque masquage via le hook de debug interne
        audit_hook: Reçoit un RedactionAuditEvent par masquage
        max_depth: Profondeur maximale parcourue
        fields: Parties de l'entrée traitées

    Example:
        config = RedactionConfig(keys=["password", "*.token"])
        redacted = redact_object({"password": "x"}, config)
    """

    keys: List[str] = field(default_factory=list)
    key_patterns: List[PatternLike] = field(default_factory=list)
    value_patterns: List[PatternLike] = field(default_factory=list)
    redact_strings: bool = False
    string_patterns: List[PatternLike] = field(default_factory=list)
    whitelist: List[str] = field(default_factory=list)
    whitelist_patterns: List[PatternLike] = field(default_factory=list)
    field_configs: Dict[str, FieldRedactionConfig] = field(default_factory=dict)
    custom_redactor: Optional[CustomRedactor] = None
    replacement: Replacement = DEFAULT_REPLACEMENT
    case_insensitive: bool = True
    redact_in: str = "both"
    audit_redaction: bool = False
    audit_hook: Optional[AuditHook] = None
    max_depth: int = 10
    fields: Tuple[str, ...] = DEFAULT_REDACTION_FIELDS

    def __post_init__(self) -> None:
        if self.redact_in not in REDACTION_TARGETS:
            raise ValueError(
                f"redact_in must be one of {REDACTION_TARGETS}, got {self.redact_in!r}"
            )
        self.key_patterns = compile_patterns(self.key_patterns, self.case_insensitive)
        self.value_patterns = compile_patterns(self.value_patterns, self.case_insensitive)
        self.string_patterns = compile_patterns(self.string_patterns, self.case_insensitive)
        self.whitelist_patterns = compile_patterns(
            self.whitelist_patterns, self.case_insensitive
        )
        self.field_configs = {
            path: (
                value
                if isinstance(value, FieldRedactionConfig)
                else FieldRedactionConfig(**value)
            )
            for path, value in (self.field_configs or {}).items()
        }
        self.fields = tuple(self.fields)

    def has_matching_rules(self) -> bool:
        """True si au moins une règle clé/valeur est configurée."""
        return bool(self.keys or self.key_patterns or self.value_patterns)

    def applies_to(self, target: Optional[str]) -> bool:
        """Vérifie si la politique s'applique à la cible donnée."""
        if target is None or self.redact_in == "both":
            return True
        return self.redact_in == target

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "RedactionConfig":
        """Construit une politique depuis un mapping (YAML, options)."""
        return cls(**dict(values))
