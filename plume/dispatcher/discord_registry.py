"""
Plume: Dispatcher - Discord Registry

Instance unique de DiscordWebhookTransport, partagée par tout le process
et indexée par URL. Utilisée par les entrées marquées `discord=True`.

Cycle de vie:
    - get_discord_transport(url): création paresseuse, remplacement si l'URL change
    - reset_discord_transport(): flush, fermeture et oubli de l'instance
"""

import asyncio
from typing import Optional, Set

from ..core.diagnostics import log_internal_error, log_internal_warning
from ..transports.discord_webhook import (
    DiscordWebhookOptions,
    DiscordWebhookTransport,
    WebhookPoster,
)

_transport: Optional[DiscordWebhookTransport] = None
_retiring: Set["asyncio.Task[None]"] = set()


async def _retire(transport: DiscordWebhookTransport) -> None:
    try:
        await transport.flush()
    finally:
        await transport.close()


def _schedule_retirement(transport: DiscordWebhookTransport) -> None:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        if transport.queue_size:
            log_internal_warning(
                f"Discord webhook URL changed outside an event loop, "
                f"{transport.queue_size} queued entries dropped"
            )
        return

    task = loop.create_task(_retire(transport))
    _retiring.add(task)
    task.add_done_callback(_retiring.discard)


def get_discord_transport(
    webhook_url: str,
    options: Optional[DiscordWebhookOptions] = None,
    poster: Optional[WebhookPoster] = None,
) -> DiscordWebhookTransport:
    """
    Retourne l'instance partagée pour webhook_url.

    Args:
        webhook_url: URL du webhook
        options: Options utilisées seulement à la création
        poster: Envoi HTTP utilisé seulement à la création

    Returns:
        Instance existante si l'URL est inchangée, sinon une nouvelle
    """
    global _transport
    if _transport is not None and _transport.webhook_url == webhook_url:
        return _transport

    previous = _transport
    _transport = DiscordWebhookTransport(webhook_url, options, poster)
    if previous is not None:
        _schedule_retirement(previous)
    return _transport


def peek_discord_transport() -> Optional[DiscordWebhookTransport]:
    """Instance courante, sans en créer."""
    return _transport


async def reset_discord_transport() -> None:
    """Livre puis ferme l'instance courante et les instances remplacées."""
    global _transport
    transport = _transport
    _transport = None

    if _retiring:
        await asyncio.gather(*list(_retiring), return_exceptions=True)

    if transport is None:
        return
    try:
        await _retire(transport)
    except Exception as e:
        log_internal_error("Failed to close Discord webhook transport:", e)
