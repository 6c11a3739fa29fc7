"""
Tests d'intégration pour Plume: logger -> transports

Parcours complet d'une entrée: normalisation, masquage par cible,
formatage, livraison (fichier, webhook, WebSocket) et flush_all.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List

import pytest
from aiohttp import web
from aiohttp.test_utils import make_mocked_request

from plume.config import ConfigLoader
from plume.core import LoggerOptions, LogLevel
from plume.dispatcher import StructuredLogger, get_discord_transport
from plume.middleware import RequestLoggerOptions, drain_request_logs, request_logger
from plume.redaction import RedactionConfig
from plume.transports import (
    DiscordWebhookOptions,
    DiscordWebhookTransport,
    FileTransport,
    WebhookResponse,
    WebSocketTransport,
    WebSocketTransportOptions,
)

WEBHOOK_URL = "https://discord.com/api/webhooks/1/token"
WS_URL = "ws://localhost:9000/logs"


class FakePoster:
    def __init__(self) -> None:
        self.payloads: List[Dict[str, Any]] = []

    async def __call__(self, url: str, payload: Dict[str, Any]) -> WebhookResponse:
        self.payloads.append(payload)
        return WebhookResponse(status=204)

    async def close(self) -> None:
        pass


class FakeSocket:
    def __init__(self) -> None:
        self.sent: List[str] = []
        self._done = asyncio.Event()

    async def send_str(self, message: str) -> None:
        self.sent.append(message)

    async def close(self) -> None:
        self._done.set()

    def __aiter__(self) -> "FakeSocket":
        return self

    async def __anext__(self) -> Any:
        await self._done.wait()
        raise StopAsyncIteration


class FakeConnector:
    def __init__(self, socket: FakeSocket) -> None:
        self.socket = socket

    async def __call__(self, url: str) -> FakeSocket:
        return self.socket

    async def close(self) -> None:
        pass


@pytest.fixture
def pipeline(tmp_path: Path):
    """Logger relié à un fichier, un webhook et un WebSocket simulés."""
    poster, socket = FakePoster(), FakeSocket()
    file_transport = FileTransport(tmp_path / "app.log")
    webhook = DiscordWebhookTransport(
        WEBHOOK_URL, DiscordWebhookOptions(batch_interval=60.0), poster=poster
    )
    websocket = WebSocketTransport(
        WS_URL, WebSocketTransportOptions(), connector=FakeConnector(socket)
    )
    log = StructuredLogger(
        level="debug",
        transports=[file_transport, webhook, websocket],
        context={"service": "billing"},
        redaction=RedactionConfig(keys=["password", "*.token"]),
    )
    return log, file_transport, poster, socket


class TestPipeline:
    """Tests de bout en bout."""

    @pytest.mark.asyncio
    async def test_entry_reaches_every_transport_redacted(self, pipeline) -> None:
        """Chaque transport reçoit l'entrée masquée avec le contexte."""
        log, file_transport, poster, socket = pipeline
        api = log.child(message_prefix="[API]", default_data={"route": "/login"})

        api.error("login failed", {"user": "ana", "password": "hunter2"})
        await log.shutdown()

        content = file_transport.path.read_text(encoding="utf-8")
        assert "[API] login failed" in content
        assert "hunter2" not in content
        assert "[REDACTED]" in content

        assert len(poster.payloads) == 1
        assert "[API] login failed" in poster.payloads[0]["content"]
        assert "hunter2" not in poster.payloads[0]["content"]

        frame = json.loads(socket.sent[0])
        assert frame["message"] == "[API] login failed"
        assert frame["level_name"] == "ERROR"
        assert frame["data"] == {
            "service": "billing",
            "route": "/login",
            "user": "ana",
            "password": "[REDACTED]",
        }

    @pytest.mark.asyncio
    async def test_order_preserved_across_transports(self, pipeline) -> None:
        """L'ordre d'émission est conservé par chaque transport."""
        log, file_transport, poster, socket = pipeline

        for index in range(5):
            log.info(f"event {index}")
        await log.shutdown()

        lines = file_transport.path.read_text(encoding="utf-8").splitlines()
        assert [f"event {index}" in line for index, line in enumerate(lines)] == [True] * 5
        assert [json.loads(frame)["message"] for frame in socket.sent] == [
            f"event {index}" for index in range(5)
        ]
        content = poster.payloads[0]["content"]
        assert content.index("event 0") < content.index("event 4")

    @pytest.mark.asyncio
    async def test_level_filter_applies_to_all(self, pipeline) -> None:
        """Une entrée filtrée n'atteint aucun transport."""
        log, file_transport, poster, socket = pipeline
        log.set_options(level="error")

        log.debug("noise")
        log.fatal("boom")
        await log.shutdown()

        assert "noise" not in file_transport.path.read_text(encoding="utf-8")
        assert [json.loads(frame)["level"] for frame in socket.sent] == [int(LogLevel.FATAL)]

    @pytest.mark.asyncio
    async def test_discord_flag_routes_to_shared_webhook(self, tmp_path: Path) -> None:
        """discord=True: livraison au webhook partagé en plus des transports."""
        poster = FakePoster()
        get_discord_transport(WEBHOOK_URL, poster=poster)
        file_transport = FileTransport(tmp_path / "app.log")
        log = StructuredLogger(transports=[file_transport], discord_webhook_url=WEBHOOK_URL)

        log.warn("disk almost full", {"usage": 0.93, "discord": True})
        await log.shutdown()

        assert "disk almost full" in poster.payloads[0]["content"]
        assert "discord" not in file_transport.path.read_text(encoding="utf-8")


class TestConfiguredPipeline:
    """Tests d'une configuration YAML appliquée au logger."""

    @pytest.mark.asyncio
    async def test_yaml_configuration_drives_file_output(self, tmp_path: Path) -> None:
        """Niveau, format JSON, contexte et masquage issus du YAML."""
        log_path = tmp_path / "logs" / "app.log"
        config_path = tmp_path / "logging.yaml"
        config_path.write_text(
            "logging:\n"
            "  level: warn\n"
            "  format: json\n"
            "  context:\n"
            "    env: test\n"
            "  redaction:\n"
            "    keys: [api_key]\n"
            "  transports:\n"
            "    - type: file\n"
            f"      path: {log_path}\n",
            encoding="utf-8",
        )
        log = StructuredLogger()

        settings = await ConfigLoader(config_path).load()
        settings.apply(log)
        log.info("ignored")
        log.warn("quota", {"api_key": "sk-123", "used": 99})
        await log.shutdown()

        records = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
        assert len(records) == 1
        assert records[0]["message"] == "quota"
        assert records[0]["data"] == {"env": "test", "api_key": "[REDACTED]", "used": 99}


class TestRequestPipeline:
    """Tests du middleware relié à un transport fichier."""

    @pytest.mark.asyncio
    async def test_request_written_to_file(self, tmp_path: Path) -> None:
        """La requête est journalisée, en-tête sensible masqué."""
        file_transport = FileTransport(tmp_path / "access.log")
        log = StructuredLogger(transports=[file_transport], format="json")

        async def handler(request: web.Request) -> web.Response:
            return web.Response(status=201)

        wrapped = request_logger(handler, RequestLoggerOptions(logger=log))
        request = make_mocked_request(
            "POST",
            "/orders",
            headers={"Host": "shop.test", "Authorization": "Bearer secret"},
        )

        response = await wrapped(request)
        await drain_request_logs()
        await log.flush_all()

        record = json.loads(file_transport.path.read_text(encoding="utf-8"))
        assert response.status == 201
        assert record["message"] == "HTTP Request POST http://shop.test/orders"
        assert record["data"]["headers"]["Authorization"] == "[REDACTED]"
        assert record["data"]["headers"]["Host"] == "shop.test"

    @pytest.mark.asyncio
    async def test_options_snapshot_used_by_transports(self, tmp_path: Path) -> None:
        """Les transports reçoivent les options du logger au moment de l'appel."""
        seen: List[LoggerOptions] = []

        class Spy(FileTransport):
            async def log(self, entry, options):
                seen.append(options)
                await super().log(entry, options)

        log = StructuredLogger(transports=[Spy(tmp_path / "spy.log")], format="json")

        log.info("first")
        log.set_options(format="string")
        log.info("second")
        await log.flush_all()

        assert [options.format for options in seen] == ["json", "string"]
