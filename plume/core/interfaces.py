"""
Plume: Core - Interfaces

Types canoniques du pipeline de logging: niveaux, entrées normalisées,
options du dispatcher et contrats des formatters et transports.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Tuple,
)

if TYPE_CHECKING:
    from ..redaction.interfaces import RedactionConfig


class InvalidLogLevelError(Exception):
    """Niveau de log inconnu."""

    def __init__(self, level: Any) -> None:
        self.level = level
        super().__init__(f"Invalid log level: {level!r}")


class LogLevel(IntEnum):
    """
    Niveaux de log.

    Ordre de sévérité: plus l'ordinal est bas, plus le niveau est sévère.
    SILENT est une sentinelle qui supprime toute sortie.
    """

    SILENT = 0
    FATAL = 1
    ERROR = 2
    WARN = 3
    INFO = 4
    DEBUG = 5
    TRACE = 6

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        """
        Résout un niveau depuis son nom (insensible à la casse).

        Args:
            name: Nom du niveau ("warn", "WARNING", "info"...)

        Returns:
            LogLevel correspondant

        Raises:
            InvalidLogLevelError: Si le nom est inconnu
        """
        normalized = str(name).strip().upper()
        if normalized == "WARNING":
            normalized = "WARN"
        try:
            return cls[normalized]
        except KeyError:
            raise InvalidLogLevelError(name) from None

    @classmethod
    def coerce(cls, value: Any) -> "LogLevel":
        """Accepte un LogLevel, un entier ou un nom."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                raise InvalidLogLevelError(value) from None
        if isinstance(value, str):
            return cls.from_name(value)
        raise InvalidLogLevelError(value)


@dataclass(frozen=True)
class LogArgs:
    """Arguments positionnels sérialisés d'un appel de log."""

    processed_args: Tuple[Any, ...] = ()
    has_complex_args: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processed_args": list(self.processed_args),
            "has_complex_args": self.has_complex_args,
        }


@dataclass(frozen=True)
class LogEntry:
    """
    Représentation canonique d'un appel de log.

    Immuable après création: les transports travaillent sur des copies
    (voir redaction.get_redacted_entry).
    """

    timestamp: str
    level: LogLevel
    level_name: str
    message: str
    args: LogArgs = field(default_factory=LogArgs)
    data: Optional[Dict[str, Any]] = None
    discord: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convertit en dictionnaire sérialisable."""
        result: Dict[str, Any] = {
            "timestamp": self.timestamp,
            "level": int(self.level),
            "level_name": self.level_name,
            "message": self.message,
            "args": self.args.to_dict(),
        }
        if self.data is not None:
            result["data"] = self.data
        return result

    def to_json(self) -> str:
        """Convertit en JSON."""
        return json.dumps(self.to_dict(), ensure_ascii=False)


class ILogFormatter(ABC):
    """Interface d'un formatter enfichable."""

    @abstractmethod
    def format(
        self,
        entry: LogEntry,
        console_colors: Optional[Dict[str, Any]] = None,
        use_colors: bool = False,
    ) -> str:
        """
        Transforme une entrée en chaîne affichable.

        Args:
            entry: Entrée (éventuellement masquée)
            console_colors: Table de couleurs (fusionnée avec les défauts)
            use_colors: Active les séquences ANSI

        Returns:
            Chaîne formatée
        """
        pass


class ITransport(ABC):
    """
    Destination de livraison des entrées.

    log() peut retourner un awaitable: le dispatcher le planifie comme
    tâche et le rejoint dans flush_all().
    """

    @abstractmethod
    def log(
        self, entry: LogEntry, options: "LoggerOptions"
    ) -> Optional[Awaitable[None]]:
        """Livre une entrée (éventuellement de manière différée)."""
        pass

    async def flush(self, options: Optional["LoggerOptions"] = None) -> None:
        """Termine toutes les livraisons en cours."""
        return None

    async def close(self) -> None:
        """Annule les tâches planifiées et libère les connexions."""
        return None


InternalHandler = Callable[[str, Optional[Any]], None]


@dataclass
class LoggerOptions:
    """Options du dispatcher, transmises telles quelles aux transports."""

    level: LogLevel = LogLevel.INFO
    use_human_readable_time: bool = False
    transports: List[ITransport] = field(default_factory=list)
    format: str = "string"  # "string" | "json"
    formatter: Optional[Callable[[LogEntry], str]] = None
    pluggable_formatter: Optional[ILogFormatter] = None
    custom_console_colors: Dict[str, str] = field(default_factory=dict)
    redaction: Optional["RedactionConfig"] = None
    discord_webhook_url: Optional[str] = None
    context: Optional[Dict[str, Any]] = None
    internal_error_handler: Optional[InternalHandler] = None
    internal_warning_handler: Optional[InternalHandler] = None
    internal_debug_handler: Optional[InternalHandler] = None
