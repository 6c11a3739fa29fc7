"""
Plume: Formatters - Pretty Console

Format multi-lignes pour la lecture en console:
    - En-tête timestamp + niveau, séparateurs horizontaux
    - Sections "Message:", "Data:", "Arguments:"
    - Indentation proportionnelle à la profondeur
    - Étiquettes de type: [string], [number], [object[N]], [array[N]], [error]...
    - Retour à la ligne au-delà de max_line_length
"""

import datetime
from typing import Any, Dict, List, Optional

from ..core.interfaces import ILogFormatter, LogEntry, LogLevel
from ..core.serialization import safe_stringify
from .colors import (
    FormatterColors,
    colorize_level_text,
    dim_text,
    resolve_formatter_colors,
)

SEPARATOR_CHAR = "─"


class PrettyConsoleFormatter(ILogFormatter):
    """Formatter multi-lignes avec indentation et étiquettes de type."""

    DEFAULT_INDENT_SIZE: int = 2
    DEFAULT_MAX_LINE_LENGTH: int = 80

    def __init__(
        self,
        indent_size: int = DEFAULT_INDENT_SIZE,
        max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
    ) -> None:
        """
        Args:
            indent_size: Espaces par niveau d'imbrication
            max_line_length: Colonne de retour à la ligne
        """
        self._indent_size = indent_size
        self._max_line_length = max_line_length

    @property
    def indent_size(self) -> int:
        return self._indent_size

    @property
    def max_line_length(self) -> int:
        return self._max_line_length

    def _indent(self, level: int = 1) -> str:
        return " " * (level * self._indent_size)

    def format(
        self,
        entry: LogEntry,
        console_colors: Optional[Dict[str, Any]] = None,
        use_colors: bool = False,
    ) -> str:
        colors = resolve_formatter_colors(console_colors, use_colors)
        lines: List[str] = []

        level_string = (entry.level_name or "UNKNOWN").upper()
        separator = dim_text(SEPARATOR_CHAR * self._max_line_length, colors)

        lines.append(
            f"{dim_text(f'[{entry.timestamp}]', colors)} "
            f"{colorize_level_text(level_string, entry.level, colors)}"
        )
        lines.append(separator)

        if entry.message:
            lines.append(dim_text("Message:", colors))
            width = self._max_line_length - self._indent_size
            for line in self.wrap_text(entry.message, width):
                lines.append(f"{self._indent()}{line}")

        if isinstance(entry.data, dict) and entry.data:
            lines.append(dim_text("Data:", colors))
            lines.append(self._format_object(entry.data, 1, colors))

        processed_args = entry.args.processed_args
        if processed_args:
            lines.append(dim_text("Arguments:", colors))
            for index, arg in enumerate(processed_args):
                tag = dim_text(f"[{self.get_value_type(arg)}]", colors)
                lines.append(f"{self._indent()}{index + 1}. {tag}")
                if isinstance(arg, (dict, list, tuple)):
                    lines.append(self._format_object(arg, 2, colors))
                else:
                    width = self._max_line_length - self._indent_size * 2
                    for line in self.wrap_text(safe_stringify(arg), width):
                        lines.append(f"{self._indent(2)}{line}")

        lines.append(separator)
        return "\n".join(lines)

    def _format_object(
        self, value: Any, indent_level: int, colors: Optional[FormatterColors]
    ) -> str:
        indent = self._indent(indent_level)
        if value is None:
            return f"{indent}null"
        if not isinstance(value, (dict, list, tuple)):
            return f"{indent}{safe_stringify(value)}"

        child_indent = self._indent(indent_level + 1)
        lines: List[str] = []

        if isinstance(value, (list, tuple)):
            lines.append(f"{indent}[")
            for index, item in enumerate(value):
                tag = dim_text(f"[{self.get_value_type(item)}]", colors)
                if isinstance(item, (dict, list, tuple)):
                    lines.append(f"{child_indent}{index}: {tag}")
                    lines.append(self._format_object(item, indent_level + 2, colors))
                else:
                    lines.append(f"{child_indent}{index}: {tag} {safe_stringify(item)}")
            lines.append(f"{indent}]")
            return "\n".join(lines)

        lines.append(f"{indent}{{")
        for key, item in value.items():
            key = str(key)
            tag = dim_text(f"[{self.get_value_type(item)}]", colors)
            label = self._colorize_key(key, colors)

            if isinstance(item, (dict, list, tuple)):
                lines.append(f"{child_indent}{label}: {tag}")
                lines.append(self._format_object(item, indent_level + 2, colors))
                continue

            text = safe_stringify(item)
            room = self._max_line_length - len(child_indent) - len(key) - 10
            if len(text) > room:
                lines.append(f"{child_indent}{label}: {tag}")
                nested = self._indent(indent_level + 2)
                width = self._max_line_length - len(nested)
                for line in self.wrap_text(text, width):
                    lines.append(f"{nested}{line}")
            else:
                lines.append(f"{child_indent}{label}: {tag} {text}")
        lines.append(f"{indent}}}")
        return "\n".join(lines)

    def get_value_type(self, value: Any) -> str:
        """
        Étiquette de type d'une valeur.

        Args:
            value: Valeur affichée

        Returns:
            "null", "array[N]", "date", "error", "object[N]", "string",
            "number", "boolean" ou le nom de classe en minuscules
        """
        if value is None:
            return "null"
        if isinstance(value, (list, tuple)):
            return f"array[{len(value)}]"
        if isinstance(value, (datetime.date, datetime.time)):
            return "date"
        if isinstance(value, dict):
            if (
                isinstance(value.get("name"), str)
                and isinstance(value.get("message"), str)
                and value.get("name")
                and value.get("message")
                and value.get("stack")
            ):
                return "error"
            return f"object[{len(value)}]"
        if isinstance(value, str):
            return "string"
        if isinstance(value, bool):
            return "boolean"
        if isinstance(value, (int, float)):
            return "number"
        return type(value).__name__.lower()

    def _colorize_key(self, key: str, colors: Optional[FormatterColors]) -> str:
        if colors is None:
            return key
        return f"{colors.levels.get(LogLevel.INFO, '')}{key}{colors.reset}"

    def wrap_text(self, text: str, max_length: int) -> List[str]:
        """
        Découpe text en lignes d'au plus max_length caractères.

        Coupe aux espaces; un mot plus long que max_length est scindé.
        """
        if max_length <= 0 or len(text) <= max_length:
            return [text]

        lines: List[str] = []
        current = ""
        for word in text.split(" "):
            if len(current) + len(word) + 1 <= max_length:
                current = f"{current} {word}" if current else word
            elif current:
                lines.append(current)
                current = word
            else:
                remaining = word
                while len(remaining) > max_length:
                    lines.append(remaining[:max_length])
                    remaining = remaining[max_length:]
                current = remaining

        if current:
            lines.append(current)

        return lines or [text]
