"""
Tests unitaires pour Plume: Dispatcher - StructuredLogger

Filtre de niveau, normalisation, isolation des transports et options.
"""

import asyncio
from typing import List, Optional, Tuple

import pytest

from plume.core import (
    InvalidLogLevelError,
    ITransport,
    LogEntry,
    LoggerOptions,
    LogLevel,
)
from plume.dispatcher import StructuredLogger, logger
from plume.redaction import RedactionConfig
from plume.transports import ConsoleTransport


class RecordingTransport(ITransport):
    """Transport synchrone enregistrant les entrées et options reçues."""

    def __init__(self) -> None:
        self.received: List[Tuple[LogEntry, LoggerOptions]] = []
        self.flushed = 0
        self.closed = False

    @property
    def messages(self) -> List[str]:
        return [entry.message for entry, _ in self.received]

    def log(self, entry: LogEntry, options: LoggerOptions) -> None:
        self.received.append((entry, options))

    async def flush(self, options: Optional[LoggerOptions] = None) -> None:
        self.flushed += 1

    async def close(self) -> None:
        self.closed = True


class AsyncRecordingTransport(RecordingTransport):
    """Transport asynchrone: log retourne une coroutine."""

    async def log(self, entry: LogEntry, options: LoggerOptions) -> None:  # type: ignore[override]
        await asyncio.sleep(0)
        self.received.append((entry, options))


class FailingTransport(ITransport):
    def log(self, entry: LogEntry, options: LoggerOptions) -> None:
        raise RuntimeError("transport down")


class AsyncFailingTransport(ITransport):
    async def log(self, entry: LogEntry, options: LoggerOptions) -> None:  # type: ignore[override]
        raise RuntimeError("async transport down")


class TestLevelFiltering:
    """Tests du filtre de niveau."""

    def test_warn_threshold(self) -> None:
        """Seuil WARN: info et debug filtrés, warn et error livrés."""
        transport = RecordingTransport()
        log = StructuredLogger(level="warn", transports=[transport])

        assert log.info("info") is None
        assert log.debug("debug") is None
        log.warn("warn")
        log.error("error")

        assert transport.messages == ["warn", "error"]

    def test_silent_suppresses_everything(self) -> None:
        """SILENT: aucune sortie, même FATAL."""
        transport = RecordingTransport()
        log = StructuredLogger(level=LogLevel.SILENT, transports=[transport])

        log.fatal("fatal")

        assert transport.received == []
        assert not log.is_level_enabled(LogLevel.FATAL)

    def test_trace_level_enables_all(self) -> None:
        """TRACE: tous les niveaux passent."""
        transport = RecordingTransport()
        log = StructuredLogger(level="trace", transports=[transport])

        for method in (log.fatal, log.error, log.warn, log.warning, log.info, log.debug, log.trace):
            method("m")

        assert len(transport.received) == 7

    def test_log_with_level_name(self) -> None:
        """log accepte un nom de niveau."""
        transport = RecordingTransport()
        log = StructuredLogger(transports=[transport])

        entry = log.log("error", "named")

        assert entry is not None
        assert entry.level == LogLevel.ERROR

    def test_invalid_level(self) -> None:
        """Niveau inconnu: InvalidLogLevelError."""
        with pytest.raises(InvalidLogLevelError):
            StructuredLogger(level="loud")


class TestEntryCreation:
    """Tests de la création des entrées."""

    def test_data_and_args(self) -> None:
        """Records fusionnés dans data, autres arguments conservés."""
        transport = RecordingTransport()
        log = StructuredLogger(transports=[transport])

        entry = log.info("User login", {"user_id": 42}, "web", {"ip": "1.2.3.4"})

        assert entry is not None
        assert entry.data == {"user_id": 42, "ip": "1.2.3.4"}
        assert entry.args.processed_args == ("web",)
        assert transport.received[0][0] is entry

    def test_context_as_base_data(self) -> None:
        """Le contexte du logger sert de base, l'appel l'emporte."""
        transport = RecordingTransport()
        log = StructuredLogger(transports=[transport], context={"env": "prod", "app": "api"})

        entry = log.info("x", {"env": "staging"})

        assert entry is not None
        assert entry.data == {"env": "staging", "app": "api"}

    def test_human_readable_time(self) -> None:
        """Horodatage lisible sur option."""
        transport = RecordingTransport()
        log = StructuredLogger(transports=[transport], use_human_readable_time=True)

        entry = log.info("x")

        assert entry is not None
        assert entry.timestamp.endswith(("AM", "PM"))

    def test_same_entry_for_every_transport(self) -> None:
        """Chaque transport reçoit la même entrée."""
        first, second = RecordingTransport(), RecordingTransport()
        log = StructuredLogger(transports=[first, second])

        log.info("shared")

        assert first.received[0][0] is second.received[0][0]


class TestTransportIsolation:
    """Tests de l'isolation des transports."""

    def test_sync_failure_reported(self, internal_errors) -> None:
        """Un transport en échec n'empêche pas les suivants."""
        transport = RecordingTransport()
        log = StructuredLogger(transports=[FailingTransport(), transport])

        log.info("still delivered")

        assert transport.messages == ["still delivered"]
        assert internal_errors[0][0] == "Synchronous error in transport 'FailingTransport':"

    @pytest.mark.asyncio
    async def test_async_delivery_tracked(self) -> None:
        """Livraison asynchrone suivie puis rejointe par flush_all."""
        transport = AsyncRecordingTransport()
        log = StructuredLogger(transports=[transport])

        log.info("later")
        assert log.pending_count == 1
        assert transport.received == []

        await log.flush_all()

        assert transport.messages == ["later"]
        assert log.pending_count == 0
        assert transport.flushed == 1

    @pytest.mark.asyncio
    async def test_async_failure_reported(self, internal_errors) -> None:
        """Échec asynchrone: rapporté au hook d'erreur."""
        log = StructuredLogger(transports=[AsyncFailingTransport()])

        log.info("x")
        await log.flush_all()

        assert internal_errors[0][0] == "Async error in transport 'AsyncFailingTransport':"

    def test_async_transport_without_running_loop(self) -> None:
        """Sans boucle active, la livraison asynchrone est exécutée sur place."""
        transport = AsyncRecordingTransport()
        log = StructuredLogger(transports=[transport])

        log.info("inline")

        assert transport.messages == ["inline"]
        assert log.pending_count == 0

    @pytest.mark.asyncio
    async def test_reset_cancels_pending(self) -> None:
        """reset annule les livraisons en cours."""
        transport = AsyncRecordingTransport()
        log = StructuredLogger(transports=[transport])

        log.info("cancelled")
        log.reset()
        await asyncio.sleep(0.01)

        assert transport.received == []
        assert log.pending_count == 0
        assert isinstance(log.transports[0], ConsoleTransport)


class TestOptions:
    """Tests des options."""

    def test_defaults(self) -> None:
        """INFO et un ConsoleTransport."""
        log = StructuredLogger()

        assert log.level == LogLevel.INFO
        assert len(log.transports) == 1
        assert isinstance(log.transports[0], ConsoleTransport)

    def test_snapshot_per_call(self) -> None:
        """Un changement d'options n'affecte pas les appels déjà faits."""
        transport = RecordingTransport()
        log = StructuredLogger(transports=[transport])

        log.info("before")
        log.set_options({"format": "json"})
        log.info("after")

        assert transport.received[0][1].format == "string"
        assert transport.received[1][1].format == "json"

    def test_mapping_merges(self) -> None:
        """Un mapping est fusionné, les couleurs aussi."""
        log = StructuredLogger(custom_console_colors={"info": "#00ff00"})

        log.set_options({"custom_console_colors": {"error": "#ff0000"}, "level": "debug"})

        assert log.options.custom_console_colors == {"info": "#00ff00", "error": "#ff0000"}
        assert log.level == LogLevel.DEBUG

    def test_redaction_mapping_merged(self) -> None:
        """redaction en mapping: fusion dans la politique existante."""
        log = StructuredLogger(redaction=RedactionConfig(keys=["password"]))

        log.set_options(redaction={"redact_in": "file"})

        assert log.options.redaction is not None
        assert log.options.redaction.keys == ["password"]
        assert log.options.redaction.redact_in == "file"

    def test_logger_options_replace(self) -> None:
        """Un LoggerOptions remplace toutes les options."""
        transport = RecordingTransport()
        log = StructuredLogger(context={"a": 1})

        log.set_options(LoggerOptions(level=LogLevel.ERROR, transports=[transport]))

        assert log.options.context is None
        assert log.transports == [transport]

    def test_unknown_option_rejected(self) -> None:
        """Nom d'option inconnu: ValueError."""
        with pytest.raises(ValueError):
            StructuredLogger(colour=True)

    def test_invalid_format_rejected(self) -> None:
        """Format hors string/json: ValueError."""
        with pytest.raises(ValueError):
            StructuredLogger(format="xml")

    def test_transport_list_copied(self) -> None:
        """La liste fournie est copiée."""
        transports: List[ITransport] = [RecordingTransport()]
        log = StructuredLogger(transports=transports)

        transports.append(RecordingTransport())

        assert len(log.transports) == 1

    def test_transport_mutators(self) -> None:
        """add, remove, clear, set."""
        first, second = RecordingTransport(), RecordingTransport()
        log = StructuredLogger(transports=[])

        log.add_transport(first)
        log.add_transport(second)
        assert log.remove_transport(first) is True
        assert log.remove_transport(first) is False
        assert log.transports == [second]

        log.clear_transports()
        assert log.transports == []

        log.set_transports([first])
        assert log.transports == [first]

    def test_reset_options(self) -> None:
        """reset_options restaure les défauts."""
        log = StructuredLogger(level="error", transports=[])

        log.reset_options()

        assert log.level == LogLevel.INFO
        assert len(log.transports) == 1


class TestGlobalLogger:
    """Tests de l'instance globale."""

    def test_global_logger_is_structured_logger(self) -> None:
        """logger est un StructuredLogger aux options par défaut."""
        assert isinstance(logger, StructuredLogger)
        assert logger.level == LogLevel.INFO

    def test_global_logger_configurable(self) -> None:
        """L'instance globale se configure comme les autres."""
        transport = RecordingTransport()
        logger.set_options(transports=[transport])

        logger.info("global")

        assert transport.messages == ["global"]
