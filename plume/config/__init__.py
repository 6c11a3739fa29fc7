"""
Plume: Config

Configuration déclarative du logger:
- Modèles pydantic validés (niveau, format, redaction, transports)
- Chargement depuis un fichier YAML
"""

from .interfaces import (
    # Models
    LoggingSettings,
    RedactionSettings,
    RotationSettings,
    ConsoleTransportSettings,
    FileTransportSettings,
    DiscordTransportSettings,
    WebSocketTransportSettings,
    # Interfaces
    IConfigLoader,
)
from .config_loader import (
    ConfigLoader,
    # Exceptions
    ConfigIntegrityError,
)

__all__ = [
    # Models
    "LoggingSettings",
    "RedactionSettings",
    "RotationSettings",
    "ConsoleTransportSettings",
    "FileTransportSettings",
    "DiscordTransportSettings",
    "WebSocketTransportSettings",
    # Interfaces
    "IConfigLoader",
    # Implementations
    "ConfigLoader",
    # Exceptions
    "ConfigIntegrityError",
]
