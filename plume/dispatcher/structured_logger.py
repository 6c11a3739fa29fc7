"""
Plume: Dispatcher - Structured Logger

Dispatcher des appels de log vers les transports configurés.

Processus d'un appel:
    1. Filtre de niveau (SILENT supprime tout)
    2. Normalisation en LogEntry (contexte du logger en base de data)
    3. Livraison isolée à chaque transport (snapshot des options)
    4. Routage vers le webhook Discord partagé si l'entrée est marquée

Les livraisons asynchrones deviennent des tâches suivies; flush_all()
les rejoint puis vide chaque transport. Aucune erreur de transport ne
remonte à l'appelant: elles passent par le hook d'erreur interne.
"""

import asyncio
import dataclasses
import inspect
from collections.abc import Mapping
from typing import Any, Awaitable, Dict, List, Optional, Set, Union

from ..core.diagnostics import log_internal_error
from ..core.interfaces import ITransport, LogEntry, LoggerOptions, LogLevel
from ..core.normalizer import normalize_entry
from ..redaction.interfaces import RedactionConfig
from ..transports.console import ConsoleTransport
from .child_logger import ChildLogger
from .discord_registry import (
    get_discord_transport,
    peek_discord_transport,
    reset_discord_transport,
)

OPTION_NAMES = frozenset(f.name for f in dataclasses.fields(LoggerOptions))
FORMAT_MODES = ("string", "json")


def default_options() -> LoggerOptions:
    """Options initiales: niveau INFO, un ConsoleTransport."""
    return LoggerOptions(level=LogLevel.INFO, transports=[ConsoleTransport()])


def _merge_redaction(
    current: Optional[RedactionConfig],
    value: Union[None, RedactionConfig, Mapping],
) -> Optional[RedactionConfig]:
    if value is None or isinstance(value, RedactionConfig):
        return value
    if current is None:
        return RedactionConfig.from_dict(value)
    return dataclasses.replace(current, **dict(value))


def merge_options(current: LoggerOptions, overrides: Mapping) -> LoggerOptions:
    """
    Fusionne des surcharges dans un nouveau LoggerOptions.

    Fusion superficielle, sauf custom_console_colors et redaction
    (mapping fusionné dans la valeur existante).

    Args:
        current: Options actuelles (non modifiées)
        overrides: Surcharges par nom de champ

    Returns:
        Nouvelles options

    Raises:
        ValueError: Si un nom d'option ou un format est inconnu
        InvalidLogLevelError: Si le niveau est invalide
    """
    unknown = set(overrides) - OPTION_NAMES
    if unknown:
        raise ValueError(f"Unknown logger options: {sorted(unknown)}")

    changes: Dict[str, Any] = dict(overrides)
    if "level" in changes:
        changes["level"] = LogLevel.coerce(changes["level"])
    if "format" in changes and changes["format"] not in FORMAT_MODES:
        raise ValueError(f"format must be one of {FORMAT_MODES}, got {changes['format']!r}")
    if "custom_console_colors" in changes:
        changes["custom_console_colors"] = {
            **current.custom_console_colors,
            **(changes["custom_console_colors"] or {}),
        }
    if "redaction" in changes:
        changes["redaction"] = _merge_redaction(current.redaction, changes["redaction"])
    if "transports" in changes:
        changes["transports"] = list(changes["transports"] or [])
    if changes.get("context") is not None:
        changes["context"] = dict(changes["context"])

    return dataclasses.replace(current, **changes)


class StructuredLogger:
    """
    Logger structuré multi-transports.

    Les options sont remplacées, jamais modifiées en place: chaque appel
    transmet aux transports le snapshot en vigueur au moment de l'appel.

    Example:
        log = StructuredLogger({"level": "debug"})
        log.info("User login", {"user_id": 42})
        log.error("Payment failed", error, {"order": "A-1", "discord": True})
        await log.flush_all()
    """

    def __init__(
        self,
        options: Union[None, LoggerOptions, Mapping] = None,
        **overrides: Any,
    ) -> None:
        """
        Args:
            options: Options initiales (LoggerOptions ou mapping)
            **overrides: Surcharges par nom de champ
        """
        self._options = default_options()
        self._pending: Set["asyncio.Task[None]"] = set()
        if options is not None or overrides:
            self.set_options(options, **overrides)

    @property
    def options(self) -> LoggerOptions:
        return self._options

    @property
    def level(self) -> LogLevel:
        return self._options.level

    @property
    def transports(self) -> List[ITransport]:
        return list(self._options.transports)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def set_options(
        self,
        options: Union[None, LoggerOptions, Mapping] = None,
        **overrides: Any,
    ) -> None:
        """
        Met à jour les options.

        Un LoggerOptions remplace toutes les options; un mapping et les
        surcharges nommées sont fusionnés dans les options actuelles.
        """
        if isinstance(options, LoggerOptions):
            base = dataclasses.replace(
                options,
                level=LogLevel.coerce(options.level),
                transports=list(options.transports),
            )
            self._options = merge_options(base, overrides)
            return

        values = dict(options or {})
        values.update(overrides)
        self._options = merge_options(self._options, values)

    def reset_options(self) -> None:
        """Restaure les options par défaut."""
        self._options = default_options()

    def reset(self) -> None:
        """Restaure les options par défaut et annule les livraisons en cours."""
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()
        self.reset_options()

    def add_transport(self, transport: ITransport) -> None:
        self._options = dataclasses.replace(
            self._options, transports=[*self._options.transports, transport]
        )

    def remove_transport(self, transport: ITransport) -> bool:
        """
        Retire un transport (comparaison par identité).

        Returns:
            True si le transport était configuré
        """
        remaining = [t for t in self._options.transports if t is not transport]
        removed = len(remaining) != len(self._options.transports)
        self._options = dataclasses.replace(self._options, transports=remaining)
        return removed

    def clear_transports(self) -> None:
        self._options = dataclasses.replace(self._options, transports=[])

    def set_transports(self, transports: List[ITransport]) -> None:
        """Remplace la liste des transports (la liste fournie est copiée)."""
        self._options = dataclasses.replace(self._options, transports=list(transports))

    def is_level_enabled(self, level: LogLevel) -> bool:
        """True si un appel à ce niveau passe le filtre."""
        threshold = self._options.level
        if threshold == LogLevel.SILENT or level == LogLevel.SILENT:
            return False
        return level <= threshold

    def log(self, level: Union[LogLevel, int, str], message: Any, *args: Any) -> Optional[LogEntry]:
        """
        Crée une entrée et la livre à chaque transport.

        Args:
            level: Niveau de l'appel
            message: Message
            *args: Arguments (les dicts sont fusionnés dans data)

        Returns:
            Entrée créée, ou None si filtrée par le niveau
        """
        level = LogLevel.coerce(level)
        options = self._options
        if not self.is_level_enabled(level):
            return None

        entry = normalize_entry(
            level,
            message,
            args,
            base_data=options.context,
            human_readable_time=options.use_human_readable_time,
        )

        for transport in options.transports:
            self._dispatch(transport, entry, options)

        if entry.discord and options.discord_webhook_url:
            self._dispatch(get_discord_transport(options.discord_webhook_url), entry, options)

        return entry

    def _dispatch(self, transport: ITransport, entry: LogEntry, options: LoggerOptions) -> None:
        name = type(transport).__name__
        try:
            result = transport.log(entry, options)
        except Exception as e:
            log_internal_error(f"Synchronous error in transport '{name}':", e, options)
            return

        if not inspect.isawaitable(result):
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._settle(result, name, options))
            return

        task = loop.create_task(self._settle(result, name, options))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _settle(self, delivery: Awaitable[Any], name: str, options: LoggerOptions) -> None:
        try:
            await delivery
        except Exception as e:
            log_internal_error(f"Async error in transport '{name}':", e, options)

    def fatal(self, message: Any, *args: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.FATAL, message, *args)

    def error(self, message: Any, *args: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.ERROR, message, *args)

    def warn(self, message: Any, *args: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.WARN, message, *args)

    warning = warn

    def info(self, message: Any, *args: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.INFO, message, *args)

    def debug(self, message: Any, *args: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.DEBUG, message, *args)

    def trace(self, message: Any, *args: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.TRACE, message, *args)

    def child(
        self,
        message_prefix: Optional[str] = None,
        default_data: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> ChildLogger:
        """Crée un logger enfant (préfixe et données par défaut)."""
        return ChildLogger(self, message_prefix, default_data, context)

    def _flush_targets(self) -> List[ITransport]:
        targets = list(self._options.transports)
        singleton = peek_discord_transport()
        if singleton is not None and all(t is not singleton for t in targets):
            targets.append(singleton)
        return targets

    async def _flush_transport(self, transport: ITransport, options: LoggerOptions) -> None:
        try:
            await transport.flush(options)
        except Exception as e:
            log_internal_error(
                f"Error flushing transport '{type(transport).__name__}':", e, options
            )

    async def flush_all(self) -> None:
        """
        Attend les livraisons en cours puis vide chaque transport.

        Un transport en échec est rapporté sans bloquer les autres.
        Ne lève jamais.
        """
        options = self._options
        pending = list(self._pending)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        await asyncio.gather(
            *(self._flush_transport(t, options) for t in self._flush_targets()),
            return_exceptions=True,
        )

    async def shutdown(self) -> None:
        """Vide puis ferme chaque transport et le webhook partagé."""
        await self.flush_all()

        options = self._options
        for transport in options.transports:
            try:
                await transport.close()
            except Exception as e:
                log_internal_error(
                    f"Error closing transport '{type(transport).__name__}':", e, options
                )

        await reset_discord_transport()


logger = StructuredLogger()
