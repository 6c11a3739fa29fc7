"""
Plume: Transports - WebSocket

Envoi des entrées sur une connexion WebSocket sortante persistante.

Machine d'états:
    CONNECTING -> OPEN -> CLOSED -> CONNECTING (reconnexion si auto_reconnect)

Chaque entrée est sérialisée puis placée dans une file, quel que soit
l'état de la connexion. À l'ouverture, la file est vidée dans l'ordre
d'arrivée; un envoi en échec remet le message en tête et interrompt le
vidage. Les reconnexions suivent un backoff exponentiel remis à zéro à
chaque ouverture réussie.
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, List, Optional

import aiohttp

from ..core.diagnostics import log_internal_debug, log_internal_error, log_internal_warning
from ..core.interfaces import ITransport, LogEntry, LoggerOptions
from ..core.serialization import safe_json_stringify
from ..redaction.redactor import get_redacted_entry
from .backoff import BackoffPolicy


class ConnectionState(Enum):
    """États de la connexion."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


def default_serializer(entry: LogEntry) -> str:
    """Une entrée par trame, JSON sans retour à la ligne."""
    return safe_json_stringify(entry.to_dict())


@dataclass(frozen=True)
class WebSocketTransportOptions:
    """
    Options du transport WebSocket.

    Attributes:
        reconnect_interval: Délai initial de reconnexion (secondes)
        max_reconnect_interval: Délai maximal de reconnexion (secondes)
        redact: Applique le masquage (cible "file")
        serializer: Conversion entrée -> trame texte
        auto_reconnect: Reconnexion automatique après fermeture
        open_timeout: Attente max d'ouverture dans flush() (secondes)
    """

    reconnect_interval: float = 1.0
    max_reconnect_interval: float = 30.0
    redact: bool = True
    serializer: Callable[[LogEntry], str] = default_serializer
    auto_reconnect: bool = True
    open_timeout: float = 5.0


StreamConnector = Callable[[str], Awaitable[Any]]


class AiohttpStreamConnector:
    """Ouvre des connexions via aiohttp.ClientSession.ws_connect."""

    def __init__(self, open_timeout: float = 5.0) -> None:
        self._open_timeout = open_timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def __call__(self, url: str) -> aiohttp.ClientWebSocketResponse:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return await asyncio.wait_for(self._session.ws_connect(url), self._open_timeout)

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


async def _settle(task: Optional["asyncio.Task[Any]"]) -> None:
    """Attend la fin d'une tâche sans propager son résultat."""
    if task is not None and not task.done() and task is not asyncio.current_task():
        await asyncio.wait({task})


class WebSocketTransport(ITransport):
    """
    Transport WebSocket avec file d'attente et reconnexion.

    Une boucle asyncio doit être active: la connexion est ouverte au
    premier log() ou par connect().

    Example:
        transport = WebSocketTransport("ws://localhost:9000/logs")
        await transport.connect()
        logger.add_transport(transport)
        ...
        await transport.flush()
        await transport.close()
    """

    def __init__(
        self,
        url: str,
        options: Optional[WebSocketTransportOptions] = None,
        connector: Optional[StreamConnector] = None,
    ) -> None:
        """
        Args:
            url: URL ws:// ou wss://
            options: Options du transport
            connector: Ouverture de connexion injectable (défaut: aiohttp)
        """
        self._url = url
        self._options = options or WebSocketTransportOptions()
        self._connector: StreamConnector = connector or AiohttpStreamConnector(
            self._options.open_timeout
        )
        self._backoff = BackoffPolicy(
            initial_delay=self._options.reconnect_interval,
            max_delay=self._options.max_reconnect_interval,
        )
        self._queue: Deque[str] = deque()
        self._ws: Any = None
        self._state = ConnectionState.CLOSED
        self._opened = asyncio.Event()
        self._reconnect_attempts = 0
        self._closed = False
        self._connect_task: Optional["asyncio.Task[None]"] = None
        self._reconnect_task: Optional["asyncio.Task[None]"] = None
        self._reader_task: Optional["asyncio.Task[None]"] = None
        self._flush_task: Optional["asyncio.Task[None]"] = None
        self._last_options: Optional[LoggerOptions] = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def queue_size(self) -> int:
        return len(self._queue)

    @property
    def queued_messages(self) -> List[str]:
        return list(self._queue)

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    @property
    def has_pending_reconnect(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def log(self, entry: LogEntry, options: LoggerOptions) -> None:
        self._last_options = options
        try:
            if self._options.redact:
                entry = get_redacted_entry(entry, options.redaction, "file")
            message = self._options.serializer(entry)
        except Exception as e:
            log_internal_error("WebSocketTransport failed to serialize entry:", e, options)
            return

        self._queue.append(message)

        if self._state is ConnectionState.OPEN:
            await self._drain()
        elif self._state is ConnectionState.CLOSED:
            self._start_connect()

    async def connect(self) -> None:
        """Ouvre la connexion (ou rejoint la tentative en cours)."""
        await _settle(self._start_connect())

    def _start_connect(self) -> Optional["asyncio.Task[None]"]:
        if self._closed or self._state is ConnectionState.OPEN:
            return None
        if self._connect_task is not None and not self._connect_task.done():
            return self._connect_task
        if self.has_pending_reconnect:
            return None
        self._state = ConnectionState.CONNECTING
        self._connect_task = asyncio.get_running_loop().create_task(self._connect())
        return self._connect_task

    async def _connect(self) -> None:
        options = self._last_options
        try:
            ws = await self._connector(self._url)
        except asyncio.CancelledError:
            # Boucle arrêtée pendant la tentative: la suivante doit repartir
            if self._state is ConnectionState.CONNECTING:
                self._state = ConnectionState.CLOSED
            raise
        except Exception as e:
            self._state = ConnectionState.CLOSED
            log_internal_error(f"WebSocketTransport connection to {self._url} failed:", e, options)
            self._schedule_reconnect()
            return

        self._ws = ws
        self._state = ConnectionState.OPEN
        self._reconnect_attempts = 0
        self._opened.set()
        self._reader_task = asyncio.get_running_loop().create_task(self._watch(ws))
        log_internal_debug(f"WebSocketTransport connected to {self._url}", None, options)

        await self._drain()

    async def _watch(self, ws: Any) -> None:
        try:
            async for _ in ws:
                pass
        except Exception as e:
            log_internal_warning("WebSocketTransport connection error:", e, self._last_options)

        if self._ws is ws:
            self._ws = None
            self._state = ConnectionState.CLOSED
            self._opened.clear()
            log_internal_debug(f"WebSocketTransport disconnected from {self._url}", None, self._last_options)
        if not self._closed:
            self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if not self._options.auto_reconnect or self._closed or self.has_pending_reconnect:
            return
        delay = self._backoff.calculate_delay(self._reconnect_attempts)
        self._reconnect_attempts += 1
        self._reconnect_task = asyncio.get_running_loop().create_task(
            self._reconnect_after(delay)
        )

    async def _reconnect_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self._reconnect_task = None
        self._start_connect()

    async def _drain(self) -> None:
        if self._flush_task is None or self._flush_task.done():
            self._flush_task = asyncio.get_running_loop().create_task(self._send_queued())
        await _settle(self._flush_task)

    async def _send_queued(self) -> None:
        while self._queue and self._state is ConnectionState.OPEN and self._ws is not None:
            message = self._queue.popleft()
            try:
                await self._ws.send_str(message)
            except Exception as e:
                self._queue.appendleft(message)
                log_internal_error(
                    "WebSocketTransport send failed, message requeued:", e, self._last_options
                )
                break

    async def flush(self, options: Optional[LoggerOptions] = None) -> None:
        """
        Vide la file, en attendant au plus open_timeout l'ouverture.

        Ne lève jamais: les messages non envoyés restent en file.
        """
        options = options or self._last_options
        try:
            await _settle(self._connect_task)
            await _settle(self._flush_task)
            if not self._queue or self._closed:
                return

            if self._state is not ConnectionState.OPEN:
                self._start_connect()
                try:
                    await asyncio.wait_for(self._opened.wait(), self._options.open_timeout)
                except asyncio.TimeoutError:
                    log_internal_warning(
                        f"WebSocketTransport flush: connection not open after "
                        f"{self._options.open_timeout}s, {len(self._queue)} messages still queued",
                        None,
                        options,
                    )
                    return

            await self._drain()
        except Exception as e:
            log_internal_error("WebSocketTransport flush error:", e, options)

    async def close(self) -> None:
        """Annule connexion, reconnexion et lecture, puis ferme la socket."""
        self._closed = True

        tasks = [
            task
            for task in (
                self._connect_task,
                self._reconnect_task,
                self._reader_task,
                self._flush_task,
            )
            if task is not None and not task.done() and task is not asyncio.current_task()
        ]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self._connect_task = None
        self._reconnect_task = None
        self._reader_task = None
        self._flush_task = None

        ws = self._ws
        self._ws = None
        self._state = ConnectionState.CLOSED
        self._opened.clear()

        if ws is not None and not getattr(ws, "closed", False):
            try:
                await ws.close()
            except Exception as e:
                log_internal_warning("WebSocketTransport failed to close connection:", e)

        if self._queue:
            log_internal_warning(
                f"WebSocketTransport closed with {len(self._queue)} undelivered messages"
            )

        close_connector = getattr(self._connector, "close", None)
        if close_connector is not None:
            await close_connector()
