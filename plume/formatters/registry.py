"""
Plume: Formatters - Registry

Formatters intégrés sélectionnables par nom.
"""

from typing import Dict, Type

from ..core.interfaces import ILogFormatter
from .default import DefaultFormatter
from .json_formatter import JsonFormatter, NdjsonFormatter, PrettyJsonFormatter
from .logfmt import LogfmtFormatter
from .pretty_console import PrettyConsoleFormatter


class UnknownFormatterError(Exception):
    """Nom de formatter inconnu."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Unknown formatter: {name!r} (available: {', '.join(BUILT_IN_FORMATTERS)})"
        )


BUILT_IN_FORMATTERS: Dict[str, Type[ILogFormatter]] = {
    "default": DefaultFormatter,
    "pretty": PrettyConsoleFormatter,
    "json": JsonFormatter,
    "ndjson": NdjsonFormatter,
    "pretty_json": PrettyJsonFormatter,
    "logfmt": LogfmtFormatter,
}

DEFAULT_FORMATTER: ILogFormatter = DefaultFormatter()


def create_formatter(name: str) -> ILogFormatter:
    """
    Instancie un formatter intégré.

    Args:
        name: "default", "pretty", "json", "ndjson", "pretty_json" ou "logfmt"

    Returns:
        Nouvelle instance

    Raises:
        UnknownFormatterError: Si le nom est inconnu
    """
    try:
        formatter_class = BUILT_IN_FORMATTERS[name]
    except KeyError:
        raise UnknownFormatterError(name) from None
    return formatter_class()
