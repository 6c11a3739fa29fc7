"""
Plume: Transports

Destinations de livraison des entrées:
- ConsoleTransport: flux stdout/stderr selon le niveau
- FileTransport: fichier avec rotation (taille, jour) et compression
- DiscordWebhookTransport: lots, rate limit, retries bornés
- WebSocketTransport: file d'attente, reconnexion avec backoff
"""

from ..core.interfaces import ITransport
from .backoff import BackoffPolicy
from .console import ConsoleTransport, stream_for_level
from .file import FileTransport, LogRotationConfig
from .discord_webhook import (
    AiohttpWebhookPoster,
    DiscordWebhookOptions,
    DiscordWebhookTransport,
    RetryItem,
    WebhookResponse,
    parse_retry_after,
    truncate_message,
    # Exceptions
    WebhookDeliveryError,
    WebhookRateLimitedError,
)
from .websocket import (
    AiohttpStreamConnector,
    ConnectionState,
    WebSocketTransport,
    WebSocketTransportOptions,
)

__all__ = [
    # Enums
    "ConnectionState",
    # Dataclasses
    "BackoffPolicy",
    "LogRotationConfig",
    "DiscordWebhookOptions",
    "WebhookResponse",
    "RetryItem",
    "WebSocketTransportOptions",
    # Interfaces
    "ITransport",
    # Implementations
    "ConsoleTransport",
    "FileTransport",
    "DiscordWebhookTransport",
    "WebSocketTransport",
    "AiohttpWebhookPoster",
    "AiohttpStreamConnector",
    "stream_for_level",
    "parse_retry_after",
    "truncate_message",
    # Exceptions
    "WebhookDeliveryError",
    "WebhookRateLimitedError",
]
