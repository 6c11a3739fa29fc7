"""
Plume: Config - Interfaces

Modèles de configuration validés (pydantic) et contrat du chargeur.
"""

from abc import ABC, abstractmethod
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.interfaces import InvalidLogLevelError, ITransport, LoggerOptions, LogLevel
from ..dispatcher.structured_logger import StructuredLogger
from ..dispatcher.structured_logger import logger as default_logger
from ..formatters.registry import BUILT_IN_FORMATTERS, create_formatter
from ..redaction.interfaces import DEFAULT_REPLACEMENT, RedactionConfig
from ..transports.console import ConsoleTransport
from ..transports.discord_webhook import DiscordWebhookOptions, DiscordWebhookTransport
from ..transports.file import FileTransport, LogRotationConfig
from ..transports.websocket import WebSocketTransport, WebSocketTransportOptions


# ══════════════════════════════════════════════════════════════════════════════
# TRANSPORTS
# ══════════════════════════════════════════════════════════════════════════════


class ConsoleTransportSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["console"] = "console"
    use_colors: bool = True

    def build(self) -> ITransport:
        return ConsoleTransport(use_colors=self.use_colors)


class RotationSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    max_file_size: int = Field(default=10 * 1024 * 1024, gt=0)
    max_files: int = Field(default=5, ge=1)
    compress: bool = True
    date_rotation: bool = False


class FileTransportSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["file"]
    path: str = Field(min_length=1)
    rotation: Optional[RotationSettings] = None

    def build(self) -> ITransport:
        rotation = LogRotationConfig(**self.rotation.model_dump()) if self.rotation else None
        return FileTransport(self.path, rotation)


class DiscordTransportSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["discord"]
    webhook_url: str = Field(min_length=1)
    batch_interval: float = Field(default=2.0, gt=0)
    max_batch_size: int = Field(default=10, ge=1)
    username: str = "Plume"
    max_retries: int = Field(default=3, ge=0)
    suppress_errors: bool = False

    def build(self) -> ITransport:
        options = DiscordWebhookOptions(
            **self.model_dump(exclude={"type", "webhook_url"})
        )
        return DiscordWebhookTransport(self.webhook_url, options)


class WebSocketTransportSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["websocket"]
    url: str = Field(min_length=1)
    reconnect_interval: float = Field(default=1.0, gt=0)
    max_reconnect_interval: float = Field(default=30.0, gt=0)
    redact: bool = True
    auto_reconnect: bool = True
    open_timeout: float = Field(default=5.0, gt=0)

    def build(self) -> ITransport:
        options = WebSocketTransportOptions(**self.model_dump(exclude={"type", "url"}))
        return WebSocketTransport(self.url, options)


TransportSettings = Annotated[
    Union[
        ConsoleTransportSettings,
        FileTransportSettings,
        DiscordTransportSettings,
        WebSocketTransportSettings,
    ],
    Field(discriminator="type"),
]


# ══════════════════════════════════════════════════════════════════════════════
# LOGGER
# ══════════════════════════════════════════════════════════════════════════════


class RedactionSettings(BaseModel):
    """Bloc `redaction` (règles exprimables en YAML)."""

    model_config = ConfigDict(extra="forbid")

    keys: List[str] = Field(default_factory=list)
    key_patterns: List[str] = Field(default_factory=list)
    value_patterns: List[str] = Field(default_factory=list)
    redact_strings: bool = False
    string_patterns: List[str] = Field(default_factory=list)
    whitelist: List[str] = Field(default_factory=list)
    whitelist_patterns: List[str] = Field(default_factory=list)
    replacement: str = DEFAULT_REPLACEMENT
    case_insensitive: bool = True
    redact_in: Literal["console", "file", "both"] = "both"
    audit_redaction: bool = False
    max_depth: int = Field(default=10, ge=1)
    fields: List[Literal["args", "data", "message"]] = Field(
        default_factory=lambda: ["args", "data", "message"]
    )

    def to_config(self) -> RedactionConfig:
        values = self.model_dump()
        values["fields"] = tuple(values["fields"])
        return RedactionConfig(**values)


class LoggingSettings(BaseModel):
    """
    Configuration complète d'un logger.

    Example:
        settings = LoggingSettings.model_validate({
            "level": "debug",
            "transports": [{"type": "file", "path": "logs/app.log"}],
        })
        settings.apply(logger)
    """

    model_config = ConfigDict(extra="forbid")

    level: str = "info"
    use_human_readable_time: bool = False
    format: Literal["string", "json"] = "string"
    formatter: Optional[str] = None
    custom_console_colors: Dict[str, str] = Field(default_factory=dict)
    discord_webhook_url: Optional[str] = None
    context: Dict[str, Any] = Field(default_factory=dict)
    redaction: Optional[RedactionSettings] = None
    transports: List[TransportSettings] = Field(
        default_factory=lambda: [ConsoleTransportSettings()]
    )

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        try:
            LogLevel.from_name(value)
        except InvalidLogLevelError as e:
            raise ValueError(str(e)) from None
        return value

    @field_validator("formatter")
    @classmethod
    def _check_formatter(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in BUILT_IN_FORMATTERS:
            raise ValueError(
                f"Unknown formatter {value!r}, expected one of {sorted(BUILT_IN_FORMATTERS)}"
            )
        return value

    def to_options(self) -> LoggerOptions:
        """Construit les options du logger (transports instanciés)."""
        return LoggerOptions(
            level=LogLevel.from_name(self.level),
            use_human_readable_time=self.use_human_readable_time,
            transports=[transport.build() for transport in self.transports],
            format=self.format,
            pluggable_formatter=create_formatter(self.formatter) if self.formatter else None,
            custom_console_colors=dict(self.custom_console_colors),
            redaction=self.redaction.to_config() if self.redaction else None,
            discord_webhook_url=self.discord_webhook_url,
            context=dict(self.context) or None,
        )

    def apply(self, logger: Optional[StructuredLogger] = None) -> StructuredLogger:
        """
        Remplace les options d'un logger (défaut: logger global).

        Returns:
            Le logger configuré
        """
        if logger is None:
            logger = default_logger
        logger.set_options(self.to_options())
        return logger


# ══════════════════════════════════════════════════════════════════════════════
# INTERFACES
# ══════════════════════════════════════════════════════════════════════════════


class IConfigLoader(ABC):
    """Charge et valide une configuration de logging."""

    @abstractmethod
    async def load(self) -> LoggingSettings:
        """
        Charge la configuration.

        Raises:
            ConfigIntegrityError: Si fichier absent, YAML invalide ou validation en échec
        """
        pass
