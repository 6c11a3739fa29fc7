"""
Plume: Redaction

Masquage des données sensibles avant affichage ou livraison:
- Clés littérales, globs de chemin (`*`, `**`) et regex de clé
- Regex de valeur et masquage dans les chaînes libres
- Liste blanche prioritaire, surcharges par chemin, audit
- Copies masquées, l'entrée source n'est jamais modifiée
"""

from .interfaces import (
    # Constantes
    DEFAULT_REPLACEMENT,
    DEFAULT_REDACTION_FIELDS,
    # Dataclasses
    RedactionConfig,
    FieldRedactionConfig,
    RedactionContext,
    RedactionAuditEvent,
)
from .patterns import (
    glob_to_regex,
    is_whitelisted,
    should_redact_key,
    should_redact_value,
    redact_string,
)
from .redactor import (
    needs_redaction,
    redact_object,
    redact_log_entry,
    get_redacted_entry,
)

__all__ = [
    # Constantes
    "DEFAULT_REPLACEMENT",
    "DEFAULT_REDACTION_FIELDS",
    # Dataclasses
    "RedactionConfig",
    "FieldRedactionConfig",
    "RedactionContext",
    "RedactionAuditEvent",
    # Patterns
    "glob_to_regex",
    "is_whitelisted",
    "should_redact_key",
    "should_redact_value",
    "redact_string",
    # Implementations
    "needs_redaction",
    "redact_object",
    "redact_log_entry",
    "get_redacted_entry",
]
