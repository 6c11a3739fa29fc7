"""
Plume

Logging structuré multi-transports:
- Normalisation sûre des appels (cycles, profondeur, exceptions)
- Masquage des données sensibles par clé, chemin, regex et cible
- Formatters texte, multi-lignes, JSON, NDJSON, logfmt
- Transports console, fichier avec rotation, webhook Discord par lots,
  WebSocket avec reconnexion

Example:
    from plume import logger, use_console_and_file

    use_console_and_file("logs/app.log")
    logger.info("Service started", {"port": 8080})
    await logger.flush_all()
"""

from .core import (
    # Enums
    LogLevel,
    # Dataclasses
    LogArgs,
    LogEntry,
    LoggerOptions,
    # Interfaces
    ILogFormatter,
    ITransport,
    # Diagnostics
    set_internal_error_handler,
    set_internal_warning_handler,
    set_internal_debug_handler,
    reset_internal_handlers,
    # Exceptions
    InvalidLogLevelError,
)
from .redaction import (
    RedactionConfig,
    FieldRedactionConfig,
    RedactionContext,
    RedactionAuditEvent,
    needs_redaction,
    redact_object,
    redact_string,
    get_redacted_entry,
)
from .formatters import (
    DefaultFormatter,
    PrettyConsoleFormatter,
    JsonFormatter,
    NdjsonFormatter,
    PrettyJsonFormatter,
    LogfmtFormatter,
    create_formatter,
    UnknownFormatterError,
)
from .transports import (
    BackoffPolicy,
    ConsoleTransport,
    FileTransport,
    LogRotationConfig,
    DiscordWebhookTransport,
    DiscordWebhookOptions,
    WebSocketTransport,
    WebSocketTransportOptions,
    ConnectionState,
    WebhookDeliveryError,
    WebhookRateLimitedError,
)
from .dispatcher import (
    StructuredLogger,
    ChildLogger,
    logger,
    get_discord_transport,
    reset_discord_transport,
    use_console_and_file,
    use_console_file_and_discord,
    use_console_and_websocket,
    use_all_transports,
    add_file_logging,
    add_discord_logging,
    add_websocket_logging,
)
from .config import (
    ConfigLoader,
    LoggingSettings,
    ConfigIntegrityError,
)
from .middleware import (
    RequestLoggerOptions,
    request_logger,
    request_logging_middleware,
)

__version__ = "0.1.0"

__all__ = [
    # Enums
    "LogLevel",
    "ConnectionState",
    # Dataclasses
    "LogArgs",
    "LogEntry",
    "LoggerOptions",
    "RedactionConfig",
    "FieldRedactionConfig",
    "RedactionContext",
    "RedactionAuditEvent",
    "LogRotationConfig",
    "DiscordWebhookOptions",
    "WebSocketTransportOptions",
    "BackoffPolicy",
    "RequestLoggerOptions",
    "LoggingSettings",
    # Interfaces
    "ILogFormatter",
    "ITransport",
    # Implementations
    "StructuredLogger",
    "ChildLogger",
    "logger",
    "ConsoleTransport",
    "FileTransport",
    "DiscordWebhookTransport",
    "WebSocketTransport",
    "DefaultFormatter",
    "PrettyConsoleFormatter",
    "JsonFormatter",
    "NdjsonFormatter",
    "PrettyJsonFormatter",
    "LogfmtFormatter",
    "create_formatter",
    "needs_redaction",
    "redact_object",
    "redact_string",
    "get_redacted_entry",
    "get_discord_transport",
    "reset_discord_transport",
    "ConfigLoader",
    "request_logger",
    "request_logging_middleware",
    # Presets
    "use_console_and_file",
    "use_console_file_and_discord",
    "use_console_and_websocket",
    "use_all_transports",
    "add_file_logging",
    "add_discord_logging",
    "add_websocket_logging",
    # Diagnostics
    "set_internal_error_handler",
    "set_internal_warning_handler",
    "set_internal_debug_handler",
    "reset_internal_handlers",
    # Exceptions
    "InvalidLogLevelError",
    "UnknownFormatterError",
    "WebhookDeliveryError",
    "WebhookRateLimitedError",
    "ConfigIntegrityError",
]
