"""
Plume: Middleware - Request Logger

Journalisation des requêtes entrantes aiohttp.web.

Une entrée par requête, émise en tâche de fond: la réponse du handler
n'attend jamais le logging. Les en-têtes sensibles sont masqués avant
émission. Un corps journalisé est lu une fois, avant le handler.

Example:
    app = web.Application(middlewares=[request_logging_middleware()])

    # ou autour d'un handler
    app.router.add_get("/", request_logger(handler, RequestLoggerOptions(include_body=True)))
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Union

from aiohttp import web

from ..core.diagnostics import log_internal_error, log_internal_warning
from ..core.interfaces import LogLevel
from ..dispatcher.child_logger import ChildLogger
from ..dispatcher.structured_logger import StructuredLogger
from ..dispatcher.structured_logger import logger as default_logger
from ..redaction.interfaces import RedactionConfig
from ..redaction.redactor import redact_object

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

BASE_FIELDS = ("method", "url")
META_FIELDS = (
    "http_version",
    "scheme",
    "host",
    "content_type",
    "content_length",
    "keep_alive",
)
REQUEST_FIELDS = BASE_FIELDS + ("headers", "body", "remote_address") + META_FIELDS

_background: Set["asyncio.Task[None]"] = set()


@dataclass
class RequestLoggerOptions:
    """
    Options du logging de requêtes.

    Attributes:
        include_headers: Inclut les en-têtes
        include_body: Inclut le corps (texte, tronqué à max_body_size)
        include_meta: Inclut version HTTP, schéma, hôte, type et taille de contenu
        include_remote_address: Inclut l'adresse du client
        redact_headers: En-têtes masqués (insensible à la casse)
        redaction: Politique complète (remplace redact_headers)
        log_level: Niveau des entrées
        message_prefix: Début du message
        max_body_size: Taille max du corps journalisé (caractères)
        fields: Liste explicite de champs (remplace les include_*)
        logger: Logger cible (défaut: logger global)
    """

    include_headers: bool = True
    include_body: bool = False
    include_meta: bool = False
    include_remote_address: bool = True
    redact_headers: List[str] = field(default_factory=lambda: ["authorization", "cookie"])
    redaction: Optional[RedactionConfig] = None
    log_level: str = "info"
    message_prefix: str = "HTTP Request"
    max_body_size: int = 10000
    fields: Optional[List[str]] = None
    logger: Optional[Union[StructuredLogger, ChildLogger]] = None

    def selected_fields(self) -> List[str]:
        """Champs extraits, dans l'ordre de REQUEST_FIELDS."""
        if self.fields:
            unknown = set(self.fields) - set(REQUEST_FIELDS)
            if unknown:
                raise ValueError(f"Unknown request fields: {sorted(unknown)}")
            return [name for name in REQUEST_FIELDS if name in self.fields]

        selected = list(BASE_FIELDS)
        if self.include_headers:
            selected.append("headers")
        if self.include_body:
            selected.append("body")
        if self.include_remote_address:
            selected.append("remote_address")
        if self.include_meta:
            selected.extend(META_FIELDS)
        return selected


def truncate_body(text: str, max_size: int) -> str:
    """Tronque le corps et indique la taille omise."""
    if len(text) <= max_size:
        return text
    return f"{text[:max_size]}... [truncated, {len(text) - max_size} bytes omitted]"


async def extract_request_info(
    request: web.Request, options: RequestLoggerOptions
) -> Dict[str, Any]:
    """
    Extrait les champs sélectionnés de la requête.

    Le corps est lu via request.text(): aiohttp le met en cache, le
    handler peut le relire.
    """
    info: Dict[str, Any] = {}
    selected = options.selected_fields()

    if "method" in selected:
        info["method"] = request.method
    if "url" in selected:
        info["url"] = str(request.url)
    if "headers" in selected:
        info["headers"] = {key: value for key, value in request.headers.items()}
    if "body" in selected and request.body_exists:
        try:
            info["body"] = truncate_body(await request.text(), options.max_body_size)
        except Exception as e:
            info["body"] = f"[Error reading body: {e}]"
    if "remote_address" in selected and request.remote:
        info["remote_address"] = request.remote
    if "http_version" in selected:
        info["http_version"] = f"{request.version.major}.{request.version.minor}"
    if "scheme" in selected:
        info["scheme"] = request.scheme
    if "host" in selected:
        info["host"] = request.host
    if "content_type" in selected:
        info["content_type"] = request.content_type
    if "content_length" in selected:
        info["content_length"] = request.content_length
    if "keep_alive" in selected:
        info["keep_alive"] = request.keep_alive

    return info


def apply_header_redaction(
    info: Dict[str, Any], options: RequestLoggerOptions
) -> Dict[str, Any]:
    """Masque les en-têtes configurés (ou applique options.redaction)."""
    config = options.redaction
    if config is None:
        if not options.redact_headers or "headers" not in info:
            return info
        config = RedactionConfig(keys=list(options.redact_headers), case_insensitive=True)
    return redact_object(info, config, field="data")


async def log_request(request: web.Request, options: RequestLoggerOptions) -> None:
    """Extrait, masque et émet l'entrée d'une requête."""
    target = options.logger or default_logger
    try:
        info = apply_header_redaction(await extract_request_info(request, options), options)
        message = (
            f"{options.message_prefix} {info.get('method', 'UNKNOWN')} "
            f"{info.get('url', 'unknown')}"
        )
        target.log(LogLevel.from_name(options.log_level), message, info)
    except Exception as e:
        log_internal_error("Failed to log HTTP request:", e)


def _spawn(request: web.Request, options: RequestLoggerOptions) -> None:
    task = asyncio.get_running_loop().create_task(log_request(request, options))
    _background.add(task)
    task.add_done_callback(_background.discard)


async def _buffer_body(request: web.Request) -> None:
    """
    Lit le corps avant le handler.

    aiohttp met le corps lu en cache: le handler et la tâche de log le
    relisent sans lecture concurrente du flux.
    """
    if not request.body_exists:
        return
    try:
        await request.read()
    except Exception as e:
        log_internal_warning("Failed to buffer HTTP request body:", e)


async def _log_and_handle(
    request: web.Request,
    handler: Handler,
    options: RequestLoggerOptions,
    reads_body: bool,
) -> web.StreamResponse:
    if reads_body:
        await _buffer_body(request)
    _spawn(request, options)
    return await handler(request)


async def drain_request_logs() -> None:
    """Attend les entrées de requêtes encore en cours d'émission."""
    if _background:
        await asyncio.gather(*list(_background), return_exceptions=True)


def request_logger(
    handler: Handler, options: Optional[RequestLoggerOptions] = None
) -> Handler:
    """
    Enveloppe un handler aiohttp.web.

    Args:
        handler: Handler d'origine
        options: Options de logging

    Returns:
        Handler qui planifie le log puis délègue au handler d'origine

    Raises:
        ValueError: Si options.fields contient un champ inconnu
    """
    opts = options or RequestLoggerOptions()
    reads_body = "body" in opts.selected_fields()

    async def wrapped(request: web.Request) -> web.StreamResponse:
        return await _log_and_handle(request, handler, opts, reads_body)

    return wrapped


def request_logging_middleware(options: Optional[RequestLoggerOptions] = None) -> Any:
    """Middleware aiohttp équivalent à request_logger pour toutes les routes."""
    opts = options or RequestLoggerOptions()
    reads_body = "body" in opts.selected_fields()

    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        return await _log_and_handle(request, handler, opts, reads_body)

    return middleware
