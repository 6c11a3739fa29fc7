"""
Plume: Dispatcher - Presets

Configurations de transports prêtes à l'emploi.

Les fonctions use_* remplacent la liste des transports; les fonctions
add_* ajoutent un transport et le retournent. Sans logger explicite,
elles s'appliquent au logger global.
"""

from typing import Optional, Union
from pathlib import Path

from ..transports.console import ConsoleTransport
from ..transports.discord_webhook import DiscordWebhookOptions, DiscordWebhookTransport
from ..transports.file import FileTransport, LogRotationConfig
from ..transports.websocket import WebSocketTransport, WebSocketTransportOptions
from .structured_logger import StructuredLogger
from .structured_logger import logger as default_logger

PathLike = Union[str, Path]


def _target(logger: Optional[StructuredLogger]) -> StructuredLogger:
    return logger if logger is not None else default_logger


def use_console_and_file(
    file_path: PathLike,
    rotation: Optional[LogRotationConfig] = None,
    logger: Optional[StructuredLogger] = None,
) -> StructuredLogger:
    """Console + fichier."""
    target = _target(logger)
    target.set_transports([ConsoleTransport(), FileTransport(file_path, rotation)])
    return target


def use_console_file_and_discord(
    file_path: PathLike,
    webhook_url: str,
    rotation: Optional[LogRotationConfig] = None,
    discord_options: Optional[DiscordWebhookOptions] = None,
    logger: Optional[StructuredLogger] = None,
) -> StructuredLogger:
    """Console + fichier + webhook Discord."""
    target = _target(logger)
    target.set_transports(
        [
            ConsoleTransport(),
            FileTransport(file_path, rotation),
            DiscordWebhookTransport(webhook_url, discord_options),
        ]
    )
    return target


def use_console_and_websocket(
    websocket_url: str,
    websocket_options: Optional[WebSocketTransportOptions] = None,
    logger: Optional[StructuredLogger] = None,
) -> StructuredLogger:
    """Console + WebSocket."""
    target = _target(logger)
    target.set_transports(
        [ConsoleTransport(), WebSocketTransport(websocket_url, websocket_options)]
    )
    return target


def use_all_transports(
    file_path: PathLike,
    webhook_url: str,
    websocket_url: str,
    rotation: Optional[LogRotationConfig] = None,
    logger: Optional[StructuredLogger] = None,
) -> StructuredLogger:
    """Console + fichier + webhook Discord + WebSocket."""
    target = _target(logger)
    target.set_transports(
        [
            ConsoleTransport(),
            FileTransport(file_path, rotation),
            DiscordWebhookTransport(webhook_url),
            WebSocketTransport(websocket_url),
        ]
    )
    return target


def add_file_logging(
    file_path: PathLike,
    rotation: Optional[LogRotationConfig] = None,
    logger: Optional[StructuredLogger] = None,
) -> FileTransport:
    transport = FileTransport(file_path, rotation)
    _target(logger).add_transport(transport)
    return transport


def add_discord_logging(
    webhook_url: str,
    options: Optional[DiscordWebhookOptions] = None,
    logger: Optional[StructuredLogger] = None,
) -> DiscordWebhookTransport:
    transport = DiscordWebhookTransport(webhook_url, options)
    _target(logger).add_transport(transport)
    return transport


def add_websocket_logging(
    websocket_url: str,
    options: Optional[WebSocketTransportOptions] = None,
    logger: Optional[StructuredLogger] = None,
) -> WebSocketTransport:
    transport = WebSocketTransport(websocket_url, options)
    _target(logger).add_transport(transport)
    return transport
