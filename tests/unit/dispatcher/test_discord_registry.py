"""
Tests unitaires pour Plume: Dispatcher - Webhook Discord partagé
"""

import asyncio
from typing import Any, Dict, List

import pytest

from plume.core import LoggerOptions
from plume.dispatcher import (
    get_discord_transport,
    peek_discord_transport,
    reset_discord_transport,
)
from plume.transports import DiscordWebhookOptions, WebhookResponse

FIRST_URL = "https://discord.com/api/webhooks/1/a"
SECOND_URL = "https://discord.com/api/webhooks/2/b"


class FakePoster:
    def __init__(self) -> None:
        self.urls: List[str] = []
        self.closed = False

    async def __call__(self, url: str, payload: Dict[str, Any]) -> WebhookResponse:
        self.urls.append(url)
        return WebhookResponse(status=204)

    async def close(self) -> None:
        self.closed = True


class TestDiscordRegistry:
    """Tests de l'instance partagée."""

    def test_same_url_same_instance(self) -> None:
        """Même URL: même instance, options de création conservées."""
        first = get_discord_transport(FIRST_URL, DiscordWebhookOptions(max_batch_size=3))
        second = get_discord_transport(FIRST_URL, DiscordWebhookOptions(max_batch_size=7))

        assert first is second
        assert second.options.max_batch_size == 3
        assert peek_discord_transport() is first

    def test_peek_does_not_create(self) -> None:
        """peek ne crée pas d'instance."""
        assert peek_discord_transport() is None

    @pytest.mark.asyncio
    async def test_url_change_retires_previous(self, make_entry) -> None:
        """Changement d'URL: nouvelle instance, l'ancienne est livrée puis fermée."""
        old_poster = FakePoster()
        old = get_discord_transport(FIRST_URL, poster=old_poster)
        await old.log(make_entry("queued"), LoggerOptions())

        new = get_discord_transport(SECOND_URL, poster=FakePoster())
        await asyncio.sleep(0.01)

        assert new is not old
        assert new.webhook_url == SECOND_URL
        assert old_poster.urls == [FIRST_URL]
        assert old_poster.closed is True

    @pytest.mark.asyncio
    async def test_reset_flushes_and_closes(self, make_entry) -> None:
        """reset livre la file, ferme et oublie l'instance."""
        poster = FakePoster()
        transport = get_discord_transport(FIRST_URL, poster=poster)
        await transport.log(make_entry("last words"), LoggerOptions())

        await reset_discord_transport()

        assert poster.urls == [FIRST_URL]
        assert poster.closed is True
        assert peek_discord_transport() is None

    @pytest.mark.asyncio
    async def test_reset_without_instance(self) -> None:
        """reset sans instance: sans effet."""
        await reset_discord_transport()
        assert peek_discord_transport() is None
