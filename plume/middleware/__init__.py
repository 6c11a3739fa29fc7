"""
Plume: Middleware

Journalisation des requêtes HTTP entrantes (aiohttp.web).
"""

from .request_logger import (
    REQUEST_FIELDS,
    RequestLoggerOptions,
    apply_header_redaction,
    drain_request_logs,
    extract_request_info,
    log_request,
    request_logger,
    request_logging_middleware,
    truncate_body,
)

__all__ = [
    # Dataclasses
    "RequestLoggerOptions",
    # Implementations
    "REQUEST_FIELDS",
    "apply_header_redaction",
    "drain_request_logs",
    "extract_request_info",
    "log_request",
    "request_logger",
    "request_logging_middleware",
    "truncate_body",
]
