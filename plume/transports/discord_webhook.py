"""
Plume: Transports - Discord Webhook

Envoi des entrées vers un webhook Discord, par lots.

Machine d'états:
    Idle -> Queuing (premier log: timer de flush armé)
    Queuing -> Flushing (timer échu ou file >= max_batch_size)
    Flushing -> Idle | Queuing (reste des entrées ou des retries en attente)

Livraison au moins une fois:
    - 429: attente du délai serveur (min 1s) puis nouvel essai du même lot
    - autre échec: lot placé en file de retry avec échéance 2^n secondes;
      les lots suivants attendent sa livraison (ordre FIFO)
    - flush() attend les échéances: au retour rien n'est en attente
    - au-delà de max_retries: lot abandonné et rapporté
    - erreur réseau / URL invalide: rapportée et absorbée
"""

import asyncio
import math
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

import aiohttp

from ..core.diagnostics import log_internal_debug, log_internal_error
from ..core.interfaces import ITransport, LogEntry, LoggerOptions
from ..core.serialization import safe_json_stringify, safe_stringify
from ..formatters.render import format_with_custom
from ..redaction.redactor import get_redacted_entry
from .backoff import BackoffPolicy

MAX_MESSAGE_LENGTH = 2000
TRUNCATION_MARKER = "…"
DEFAULT_RETRY_AFTER = 1.0


class WebhookRateLimitedError(Exception):
    """Le webhook a répondu 429."""

    def __init__(self, retry_after: float, status: int = 429) -> None:
        self.retry_after = retry_after
        self.status = status
        super().__init__(f"Discord rate limited, retry after {retry_after}s. Status: {status}")


class WebhookDeliveryError(Exception):
    """Le webhook a répondu avec un statut d'erreur."""

    def __init__(self, status: int, reason: str = "") -> None:
        self.status = status
        self.reason = reason
        super().__init__(f"Discord webhook request failed: {status} {reason}".rstrip())


@dataclass
class WebhookResponse:
    """Réponse HTTP minimale (en-têtes en minuscules)."""

    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


WebhookPoster = Callable[[str, Dict[str, Any]], Awaitable[WebhookResponse]]


class AiohttpWebhookPoster:
    """POST JSON via une aiohttp.ClientSession créée à la demande."""

    DEFAULT_TIMEOUT: float = 10.0

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def __call__(self, url: str, payload: Dict[str, Any]) -> WebhookResponse:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()

        async with self._session.post(
            url,
            json=payload,
            timeout=aiohttp.ClientTimeout(total=self._timeout),
        ) as response:
            body: Any = None
            if "application/json" in response.headers.get("Content-Type", ""):
                try:
                    body = await response.json()
                except (aiohttp.ContentTypeError, ValueError):
                    body = None
            return WebhookResponse(
                status=response.status,
                headers={key.lower(): value for key, value in response.headers.items()},
                body=body,
                reason=response.reason or "",
            )

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


@dataclass(frozen=True)
class DiscordWebhookOptions:
    """
    Options de batching.

    Attributes:
        batch_interval: Délai avant envoi d'un lot (secondes)
        max_batch_size: Nombre max d'entrées par lot
        username: Nom affiché par Discord
        max_retries: Nombre max de retries par lot
        suppress_errors: Rapporte les erreurs réseau en debug plutôt qu'en erreur
    """

    batch_interval: float = 2.0
    max_batch_size: int = 10
    username: str = "Plume"
    max_retries: int = 3
    suppress_errors: bool = False


@dataclass
class RetryItem:
    """Lot en attente de son échéance de retry."""

    batch: List[LogEntry]
    retries: int
    next_attempt: float


def truncate_message(content: str, limit: int = MAX_MESSAGE_LENGTH) -> str:
    """Tronque content à limit caractères, marqueur d'ellipse inclus."""
    if len(content) <= limit:
        return content
    return content[: limit - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER


def parse_retry_after(response: WebhookResponse) -> float:
    """
    Délai demandé par une réponse 429 (secondes, min 1).

    L'en-tête Retry-After prime sur le champ JSON retry_after.
    """
    raw: Any = response.headers.get("retry-after")
    if raw is None and isinstance(response.body, Mapping):
        raw = response.body.get("retry_after")

    try:
        retry_after = float(raw) if raw is not None else DEFAULT_RETRY_AFTER
    except (TypeError, ValueError):
        retry_after = DEFAULT_RETRY_AFTER

    if not math.isfinite(retry_after) or retry_after <= 0:
        retry_after = DEFAULT_RETRY_AFTER
    return max(DEFAULT_RETRY_AFTER, retry_after)


class DiscordWebhookTransport(ITransport):
    """
    Transport webhook Discord par lots.

    Example:
        transport = DiscordWebhookTransport(url, DiscordWebhookOptions(max_batch_size=5))
        logger.add_transport(transport)
        await logger.flush_all()
        await transport.close()
    """

    def __init__(
        self,
        webhook_url: str,
        options: Optional[DiscordWebhookOptions] = None,
        poster: Optional[WebhookPoster] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            webhook_url: URL du webhook
            options: Options de batching
            poster: Envoi HTTP injectable (défaut: aiohttp)
            clock: Horloge monotone injectable (échéances de retry)
        """
        self._webhook_url = webhook_url
        self._options = options or DiscordWebhookOptions()
        self._poster: WebhookPoster = poster or AiohttpWebhookPoster()
        self._clock = clock
        self._backoff = BackoffPolicy(initial_delay=1.0, max_delay=math.inf)
        self._queue: List[LogEntry] = []
        self._retry_queue: List[RetryItem] = []
        self._timer: Optional["asyncio.Task[None]"] = None
        self._flush_task: Optional["asyncio.Task[None]"] = None
        self._flush_drains = False
        self._last_options: Optional[LoggerOptions] = None

    @property
    def webhook_url(self) -> str:
        return self._webhook_url

    @property
    def options(self) -> DiscordWebhookOptions:
        return self._options

    @property
    def queue_size(self) -> int:
        return len(self._queue)

    @property
    def retry_queue(self) -> List[RetryItem]:
        return list(self._retry_queue)

    @property
    def has_pending_timer(self) -> bool:
        return self._timer is not None and not self._timer.done()

    async def log(self, entry: LogEntry, options: LoggerOptions) -> None:
        redacted = get_redacted_entry(entry, options.redaction, "console")
        self._queue.append(redacted)
        self._last_options = options

        if not self.has_pending_timer:
            self._timer = self._schedule_flush(options, self._options.batch_interval)

        if len(self._queue) >= self._options.max_batch_size:
            await asyncio.shield(self._start_flush(options, drain=False))

    def _schedule_flush(self, options: LoggerOptions, delay: float) -> "asyncio.Task[None]":
        return asyncio.get_running_loop().create_task(self._flush_after(options, delay))

    async def _flush_after(self, options: LoggerOptions, delay: float) -> None:
        await asyncio.sleep(delay)
        self._timer = None
        await asyncio.shield(self._start_flush(options, drain=False))

    def _cancel_timer(self) -> None:
        timer = self._timer
        self._timer = None
        if timer is not None and timer is not asyncio.current_task() and not timer.done():
            timer.cancel()

    def _start_flush(self, options: LoggerOptions, drain: bool) -> "asyncio.Task[None]":
        task = self._flush_task
        if task is None or task.done():
            task = asyncio.get_running_loop().create_task(self._do_flush(options, drain))
            self._flush_task = task
            self._flush_drains = drain
        return task

    async def flush(self, options: Optional[LoggerOptions] = None) -> None:
        """
        Livre la file et les lots en attente de retry, dans l'ordre.

        Attend les échéances de backoff: au retour, chaque lot est livré
        ou abandonné après max_retries. Les appels concurrents partagent
        le même flush en cours.
        """
        options = options or self._last_options or LoggerOptions()
        while True:
            task = self._start_flush(options, drain=True)
            drains = self._flush_drains
            await asyncio.shield(task)
            if drains:
                return

    async def _do_flush(self, options: LoggerOptions, drain: bool) -> None:
        # Un lot en retry bloque les lots suivants (ordre FIFO). Hors
        # drain, un retry non échu est laissé au prochain tick du timer.
        try:
            while True:
                if self._retry_queue:
                    item = self._retry_queue[0]
                    delay = item.next_attempt - self._clock()
                    if delay > 0:
                        if not drain:
                            break
                        await asyncio.sleep(delay)
                    self._retry_queue.pop(0)
                    await self._send_batch_with_retry(item.batch, options, item.retries)
                    continue

                if not self._queue:
                    break
                batch = self._queue[: self._options.max_batch_size]
                del self._queue[: self._options.max_batch_size]
                await self._send_batch_with_retry(batch, options, 0)

            self._cancel_timer()
            if self._retry_queue:
                delay = max(0.0, self._retry_queue[0].next_attempt - self._clock())
                self._timer = self._schedule_flush(options, delay)
            elif self._queue:
                self._timer = self._schedule_flush(options, self._options.batch_interval)
        except Exception as e:
            log_internal_error("DiscordWebhookTransport flush error:", e, options)

    async def _send_batch_with_retry(
        self, batch: List[LogEntry], options: LoggerOptions, retries: int
    ) -> None:
        while True:
            try:
                await self._send_batch(batch, options)
                return
            except WebhookRateLimitedError as e:
                if retries >= self._options.max_retries:
                    self._report_dropped(batch, e, options)
                    return
                await asyncio.sleep(e.retry_after)
                retries += 1
            except Exception as e:
                if retries >= self._options.max_retries:
                    self._report_dropped(batch, e, options)
                    return
                delay = self._backoff.calculate_delay(retries)
                self._retry_queue.insert(
                    0,
                    RetryItem(batch=batch, retries=retries + 1, next_attempt=self._clock() + delay),
                )
                return

    def _report_dropped(
        self, batch: List[LogEntry], error: Exception, options: LoggerOptions
    ) -> None:
        log_internal_error(
            f"Failed to send log batch of {len(batch)} entries to Discord webhook "
            f"after {self._options.max_retries} retries:",
            error,
            options,
        )

    def format_entry(self, entry: LogEntry, options: LoggerOptions) -> str:
        """
        Texte Discord d'une entrée (Markdown), tronqué à 2000 caractères.

        Args:
            entry: Entrée masquée
            options: Options du logger

        Returns:
            Texte du message
        """
        formatted = format_with_custom(
            entry, options, use_colors=False, source="DiscordWebhookTransport"
        )
        if formatted is None:
            if options.format == "json":
                formatted = f"```json\n{safe_json_stringify(entry.to_dict())}\n```"
            else:
                formatted = self._default_format(entry)
        return truncate_message(formatted)

    def _default_format(self, entry: LogEntry) -> str:
        blocks: List[str] = []
        if entry.data:
            blocks.append(f"```json\n{safe_json_stringify(entry.data)}\n```")
        for arg in entry.args.processed_args:
            if isinstance(arg, (dict, list)):
                blocks.append(f"```json\n{safe_stringify(arg)}\n```")
            else:
                blocks.append(safe_stringify(arg))

        details = "\n" + "\n".join(blocks) if blocks else ""
        return f"**[{entry.timestamp}] {entry.level_name}:** {entry.message}{details}"

    def build_messages(self, batch: List[LogEntry], options: LoggerOptions) -> List[str]:
        """
        Regroupe les entrées d'un lot en messages de 2000 caractères max.

        Un nouveau message commence quand l'entrée suivante ferait
        dépasser la limite.
        """
        messages: List[str] = []
        current = ""

        for entry in batch:
            formatted = self.format_entry(entry, options)
            separator = "\n\n" if current else ""
            if len(current) + len(separator) + len(formatted) > MAX_MESSAGE_LENGTH:
                if current:
                    messages.append(truncate_message(current))
                current = formatted
            else:
                current = current + separator + formatted

        if current:
            messages.append(truncate_message(current))

        return messages

    async def _send_batch(self, batch: List[LogEntry], options: LoggerOptions) -> None:
        for content in self.build_messages(batch, options):
            await self._send_message(content, options)

    async def _send_message(self, content: str, options: LoggerOptions) -> None:
        payload = {
            "content": truncate_message(content),
            "username": self._options.username,
            "allowed_mentions": {"parse": []},
        }

        try:
            response = await self._poster(self._webhook_url, payload)
        except (aiohttp.ClientConnectionError, aiohttp.InvalidURL) as e:
            message = f"Failed to send Discord message: Network error or invalid URL - {e}"
            if self._options.suppress_errors:
                log_internal_debug(message, e, options)
            else:
                log_internal_error(message, e, options)
            return

        if response.ok:
            return

        if response.status == 429:
            raise WebhookRateLimitedError(parse_retry_after(response), response.status)

        raise WebhookDeliveryError(response.status, response.reason)

    async def close(self) -> None:
        """
        Annule le timer et le flush en cours, abandonne les retries en attente.

        Appeler flush() avant close() pour livrer la file.
        """
        self._cancel_timer()

        task = self._flush_task
        self._flush_task = None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        if self._retry_queue or self._queue:
            log_internal_error(
                f"DiscordWebhookTransport closed with {len(self._queue)} queued entries "
                f"and {len(self._retry_queue)} pending retry batches"
            )
        self._queue.clear()
        self._retry_queue.clear()

        close_poster = getattr(self._poster, "close", None)
        if close_poster is not None:
            await close_poster()
