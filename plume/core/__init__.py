"""
Plume: Core

Socle du pipeline de logging:
- Niveaux et entrées canoniques (LogLevel, LogEntry, LogArgs)
- Classification des valeurs et parcours protégé contre les cycles
- Sérialisation défensive et normalisation des appels
- Horodatage et hooks de diagnostic interne
"""

from .interfaces import (
    # Enums
    LogLevel,
    # Dataclasses
    LogArgs,
    LogEntry,
    LoggerOptions,
    # Interfaces
    ILogFormatter,
    ITransport,
    # Exceptions
    InvalidLogLevelError,
)
from .type_guards import (
    is_primitive,
    is_record,
    is_error_like,
    is_data_argument,
    might_have_circular_refs,
)
from .traversal import (
    CIRCULAR_REFERENCE_MARKER,
    MAX_DEPTH_MARKER,
    TreeWalker,
    WalkContext,
)
from .serialization import (
    serialize_error,
    serialize_value,
    process_log_args,
    safe_stringify,
    safe_json_stringify,
    create_safe_object,
)
from .normalizer import (
    extract_data,
    normalize_entry,
)
from .clock import get_timestamp
from .diagnostics import (
    set_internal_error_handler,
    set_internal_warning_handler,
    set_internal_debug_handler,
    reset_internal_handlers,
    log_internal_error,
    log_internal_warning,
    log_internal_debug,
)

__all__ = [
    # Enums
    "LogLevel",
    # Dataclasses
    "LogArgs",
    "LogEntry",
    "LoggerOptions",
    # Interfaces
    "ILogFormatter",
    "ITransport",
    # Type guards
    "is_primitive",
    "is_record",
    "is_error_like",
    "is_data_argument",
    "might_have_circular_refs",
    # Traversal
    "CIRCULAR_REFERENCE_MARKER",
    "MAX_DEPTH_MARKER",
    "TreeWalker",
    "WalkContext",
    # Serialization
    "serialize_error",
    "serialize_value",
    "process_log_args",
    "safe_stringify",
    "safe_json_stringify",
    "create_safe_object",
    "extract_data",
    "normalize_entry",
    "get_timestamp",
    # Diagnostics
    "set_internal_error_handler",
    "set_internal_warning_handler",
    "set_internal_debug_handler",
    "reset_internal_handlers",
    "log_internal_error",
    "log_internal_warning",
    "log_internal_debug",
    # Exceptions
    "InvalidLogLevelError",
]
