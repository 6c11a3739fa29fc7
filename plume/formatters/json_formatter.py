"""
Plume: Formatters - JSON

Formatters JSON:
    - JsonFormatter: entrée sérialisée telle quelle
    - NdjsonFormatter: objet aplati sur une ligne (timestamp, level, message, data...)
    - PrettyJsonFormatter: objet aplati indenté
"""

import re
from typing import Any, Dict, Optional

from ..core.interfaces import ILogFormatter, LogEntry
from ..core.serialization import safe_json_stringify
from .colors import (
    FormatterColors,
    bold_text,
    colorize_level_text,
    dim_text,
    resolve_formatter_colors,
)


def flatten_entry(entry: LogEntry) -> Dict[str, Any]:
    """
    Objet aplati: champs principaux, puis data, puis args s'il y en a.

    Args:
        entry: Entrée à aplatir

    Returns:
        Dict prêt pour la sérialisation
    """
    flattened: Dict[str, Any] = {
        "timestamp": entry.timestamp,
        "level": entry.level_name.lower(),
        "message": entry.message,
    }
    if entry.data:
        flattened.update(entry.data)
    if entry.args.processed_args:
        flattened["args"] = entry.args.to_dict()
    return flattened


class JsonFormatter(ILogFormatter):
    """Entrée sérialisée verbatim, sans jamais lever d'exception."""

    def format(
        self,
        entry: LogEntry,
        console_colors: Optional[Dict[str, Any]] = None,
        use_colors: bool = False,
    ) -> str:
        return safe_json_stringify(entry.to_dict())


class NdjsonFormatter(ILogFormatter):
    """Une ligne JSON par entrée, champs clés colorisés en option."""

    def format(
        self,
        entry: LogEntry,
        console_colors: Optional[Dict[str, Any]] = None,
        use_colors: bool = False,
    ) -> str:
        json_string = safe_json_stringify(flatten_entry(entry))
        colors = resolve_formatter_colors(console_colors, use_colors)
        if colors is None:
            return json_string
        return self._colorize(json_string, entry, colors)

    def _colorize(self, text: str, entry: LogEntry, colors: FormatterColors) -> str:
        text = re.sub(
            r'"level": "([^"]*)"',
            lambda m: colorize_level_text(m.group(0), entry.level, colors),
            text,
            count=1,
        )
        text = re.sub(
            r'"message": "([^"]*)"',
            lambda m: bold_text(m.group(0), colors),
            text,
            count=1,
        )
        return re.sub(
            r'"timestamp": "([^"]*)"',
            lambda m: dim_text(m.group(0), colors),
            text,
            count=1,
        )


class PrettyJsonFormatter(ILogFormatter):
    """JSON indenté (2 espaces), valeurs clés colorisées en option."""

    INDENT: int = 2

    def format(
        self,
        entry: LogEntry,
        console_colors: Optional[Dict[str, Any]] = None,
        use_colors: bool = False,
    ) -> str:
        text = safe_json_stringify(flatten_entry(entry), indent=self.INDENT)
        colors = resolve_formatter_colors(console_colors, use_colors)
        if colors is None:
            return text

        def wrap(name: str, styler: Any) -> None:
            nonlocal text
            text = re.sub(
                rf'("{name}":\s*")([^"]+)(")',
                lambda m: f"{m.group(1)}{styler(m.group(2))}{m.group(3)}",
                text,
                count=1,
            )

        wrap("timestamp", lambda value: dim_text(value, colors))
        wrap("level", lambda value: colorize_level_text(value, entry.level, colors))
        wrap("message", lambda value: bold_text(value, colors))
        return text
