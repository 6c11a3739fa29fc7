"""
Plume: Dispatcher - Child Logger

Vue sur un logger racine ajoutant un préfixe de message et des données
par défaut. Un enfant d'enfant est rattaché directement à la racine:
la profondeur d'appel reste constante.
"""

from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple, Union

from ..core.interfaces import LogEntry, LogLevel
from ..core.serialization import safe_stringify
from ..core.type_guards import is_data_argument

if TYPE_CHECKING:
    from .structured_logger import StructuredLogger


def join_prefix(*parts: Optional[str]) -> str:
    """Joint les préfixes non vides par un espace."""
    return " ".join(part for part in parts if part)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fusion récursive de deux dicts, override prioritaire.

    Example:
        deep_merge({"a": {"x": 1}}, {"a": {"y": 2}}) == {"a": {"x": 1, "y": 2}}
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class ChildLogger:
    """
    Logger enfant.

    Example:
        api = logger.child(message_prefix="[API]", default_data={"service": "api"})
        users = api.child(message_prefix="[users]")
        users.info("created", {"id": 3})
        # message "[API] [users] created", data {"service": "api", "id": 3}
    """

    def __init__(
        self,
        parent: Union["StructuredLogger", "ChildLogger"],
        message_prefix: Optional[str] = None,
        default_data: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Args:
            parent: Logger racine ou autre enfant
            message_prefix: Préfixe ajouté après ceux des parents
            default_data: Données fusionnées sous celles de l'appel
            context: Alias de default_data (prioritaire en cas de conflit)
        """
        own_data = deep_merge(dict(default_data or {}), dict(context or {}))

        if isinstance(parent, ChildLogger):
            self._root = parent.root
            self._message_prefix = join_prefix(parent.message_prefix, message_prefix)
            self._default_data = deep_merge(parent.default_data, own_data)
        else:
            self._root = parent
            self._message_prefix = join_prefix(message_prefix)
            self._default_data = own_data

    @property
    def root(self) -> "StructuredLogger":
        return self._root

    @property
    def message_prefix(self) -> str:
        return self._message_prefix

    @property
    def default_data(self) -> Dict[str, Any]:
        return dict(self._default_data)

    def _prefix_message(self, message: Any) -> Any:
        if not self._message_prefix:
            return message
        text = message if isinstance(message, str) else safe_stringify(message)
        return join_prefix(self._message_prefix, text)

    def _with_default_data(self, args: Tuple[Any, ...]) -> Tuple[Any, ...]:
        if not self._default_data:
            return args

        for index, arg in enumerate(args):
            if is_data_argument(arg):
                merged = {**self._default_data, **arg}
                return args[:index] + (merged,) + args[index + 1:]

        return (dict(self._default_data),) + args

    def log(self, level: LogLevel, message: Any, *args: Any) -> Optional[LogEntry]:
        return self._root.log(
            level, self._prefix_message(message), *self._with_default_data(args)
        )

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
    ) -> "ChildLogger":
        """Enfant rattaché à la même racine, préfixes et données composés."""
        return ChildLogger(self, message_prefix, default_data, context)

    async def flush_all(self) -> None:
        await self._root.flush_all()
