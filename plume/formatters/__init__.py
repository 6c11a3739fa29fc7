"""
Plume: Formatters

Transformation d'une entrée en chaîne affichable:
- DefaultFormatter: une ligne, couleurs ANSI optionnelles
- PrettyConsoleFormatter: multi-lignes, étiquettes de type
- JsonFormatter, NdjsonFormatter, PrettyJsonFormatter
- LogfmtFormatter
"""

from .colors import (
    DEFAULT_COLORS,
    FormatterColors,
    get_formatter_colors,
    merge_console_colors,
    to_ansi_color,
)
from .default import DefaultFormatter
from .pretty_console import PrettyConsoleFormatter
from .json_formatter import (
    JsonFormatter,
    NdjsonFormatter,
    PrettyJsonFormatter,
)
from .logfmt import LogfmtFormatter
from .registry import (
    BUILT_IN_FORMATTERS,
    DEFAULT_FORMATTER,
    create_formatter,
    # Exceptions
    UnknownFormatterError,
)
from .render import format_with_custom, render_entry

__all__ = [
    # Colors
    "DEFAULT_COLORS",
    "FormatterColors",
    "get_formatter_colors",
    "merge_console_colors",
    "to_ansi_color",
    # Implementations
    "DefaultFormatter",
    "PrettyConsoleFormatter",
    "JsonFormatter",
    "NdjsonFormatter",
    "PrettyJsonFormatter",
    "LogfmtFormatter",
    # Registry
    "BUILT_IN_FORMATTERS",
    "DEFAULT_FORMATTER",
    "create_formatter",
    "format_with_custom",
    "render_entry",
    # Exceptions
    "UnknownFormatterError",
]
