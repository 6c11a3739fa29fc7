"""
Plume: Dispatcher

Répartition des appels de log vers les transports:
- StructuredLogger et instance globale `logger`
- ChildLogger (préfixe et données par défaut)
- Webhook Discord partagé pour les entrées marquées `discord`
- Presets de configuration des transports
"""

from .structured_logger import (
    StructuredLogger,
    default_options,
    merge_options,
    logger,
)
from .child_logger import ChildLogger, deep_merge, join_prefix
from .discord_registry import (
    get_discord_transport,
    peek_discord_transport,
    reset_discord_transport,
)
from .presets import (
    use_console_and_file,
    use_console_file_and_discord,
    use_console_and_websocket,
    use_all_transports,
    add_file_logging,
    add_discord_logging,
    add_websocket_logging,
)

__all__ = [
    # Implementations
    "StructuredLogger",
    "ChildLogger",
    "logger",
    "default_options",
    "merge_options",
    "deep_merge",
    "join_prefix",
    # Discord
    "get_discord_transport",
    "peek_discord_transport",
    "reset_discord_transport",
    # Presets
    "use_console_and_file",
    "use_console_file_and_discord",
    "use_console_and_websocket",
    "use_all_transports",
    "add_file_logging",
    "add_discord_logging",
    "add_websocket_logging",
]
