"""
Plume: Redaction - Patterns

Correspondance des clés, chemins et valeurs avec la politique de masquage.

Globs:
    - `*` correspond à tout caractère sauf `.` (un segment de chemin)
    - `**` correspond à toute suite de caractères (plusieurs segments)
"""

import re
from functools import lru_cache
from typing import Any, Optional, Pattern

from .interfaces import RedactionConfig, RedactionContext


@lru_cache(maxsize=512)
def glob_to_regex(pattern: str, case_insensitive: bool = True) -> Pattern[str]:
    """
    Convertit un glob de chemin en regex ancrée.

    Args:
        pattern: Glob ("user.*", "**.token", "api_*")
        case_insensitive: Ignore la casse

    Returns:
        Regex compilée

    Example:
        glob_to_regex("user.*").match("user.password")  # correspond
        glob_to_regex("user.*").match("user.a.b")       # ne correspond pas
    """

    def segment(part: str) -> str:
        return "[^.]*".join(re.escape(chunk) for chunk in part.split("*"))

    body = ".*".join(segment(part) for part in pattern.split("**"))
    flags = re.IGNORECASE if case_insensitive else 0
    return re.compile(f"^{body}$", flags)


def _fold(text: str, case_insensitive: bool) -> str:
    return text.lower() if case_insensitive else text


def is_whitelisted(path: str, key: str, config: RedactionConfig) -> bool:
    """
    Vérifie si la clé ou le chemin est en liste blanche.

    Args:
        path: Chemin pointé complet
        key: Clé courante
        config: Politique de masquage

    Returns:
        True si aucune règle ne doit s'appliquer
    """
    insensitive = config.case_insensitive

    for entry in config.whitelist:
        folded = _fold(entry, insensitive)
        if _fold(key, insensitive) == folded or _fold(path, insensitive) == folded:
            return True
        regex = glob_to_regex(entry, insensitive)
        if regex.match(key) or regex.match(path):
            return True

    for pattern in config.whitelist_patterns:
        if pattern.search(key) or pattern.search(path):
            return True

    return False


def _matches_glob_key(entry: str, path: str, key: str, insensitive: bool) -> bool:
    regex = glob_to_regex(entry, insensitive)
    if regex.match(path) or regex.match(key):
        return True

    folded_entry = _fold(entry, insensitive)
    folded_path = _fold(path, insensitive)
    folded_key = _fold(key, insensitive)

    # Raccourcis usuels: "**.x" / "*.x" en suffixe, "x*" en préfixe
    if entry.startswith("**"):
        suffix = folded_entry[2:]
        return bool(suffix) and (suffix in folded_path or folded_key.endswith(suffix))
    if entry.startswith("*."):
        suffix = folded_entry[2:]
        return folded_key.endswith(suffix) or folded_path.endswith(suffix)
    if entry.endswith("*"):
        prefix = folded_entry[:-1]
        return folded_key.startswith(prefix) or folded_path.startswith(prefix)
    return False


def should_redact_key(path: str, key: str, config: RedactionConfig) -> bool:
    """
    Décide si la valeur associée à key doit être masquée.

    La liste blanche est vérifiée en premier et l'emporte sur toute règle.

    Args:
        path: Chemin pointé complet ("user.credentials.password")
        key: Clé courante ("password")
        config: Politique de masquage

    Returns:
        True si une clé littérale, un glob ou une regex correspond
    """
    if is_whitelisted(path, key, config):
        return False

    insensitive = config.case_insensitive

    for entry in config.keys:
        if "*" in entry:
            if _matches_glob_key(entry, path, key, insensitive):
                return True
        else:
            folded = _fold(entry, insensitive)
            if _fold(key, insensitive) == folded or _fold(path, insensitive) == folded:
                return True

    for pattern in config.key_patterns:
        if pattern.search(key) or pattern.search(path):
            return True

    return False


def should_redact_value(value: Any, config: RedactionConfig) -> bool:
    """True uniquement pour une str correspondant à un value_pattern."""
    if not config.value_patterns or not isinstance(value, str):
        return False
    return any(pattern.search(value) for pattern in config.value_patterns)


def string_needs_redaction(text: str, config: RedactionConfig) -> bool:
    """True si redact_string modifierait text."""
    if not config.redact_strings or not isinstance(text, str):
        return False
    return any(pattern.search(text) for pattern in config.string_patterns)


def redact_string(
    text: str,
    config: RedactionConfig,
    context: Optional[RedactionContext] = None,
) -> str:
    """
    Masque les fragments d'une chaîne correspondant aux string_patterns.

    Sans effet si redact_strings est désactivé.

    Args:
        text: Chaîne à traiter
        config: Politique de masquage
        context: Position de la chaîne (transmise aux fonctions de remplacement)

    Returns:
        Chaîne masquée
    """
    if not config.redact_strings or not config.string_patterns:
        return text

    replacement = config.replacement
    key = context.key if context else ""
    path = context.path if context else ""
    result = text

    for pattern in config.string_patterns:
        if callable(replacement):
            result = pattern.sub(
                lambda match: str(replacement(match.group(0), key, path)), result
            )
        else:
            result = pattern.sub(lambda match: replacement, result)

    return result
