"""
Plume: Formatters - Default

Format une ligne: [timestamp] LEVEL: message {data} args
"""

from typing import Any, Dict, Optional

from ..core.interfaces import ILogFormatter, LogEntry
from ..core.serialization import safe_process_args, safe_process_data
from .colors import colorize_level_text, dim_text, resolve_formatter_colors


class DefaultFormatter(ILogFormatter):
    """
    Formatter sur une ligne.

    Example:
        [2024-12-04T14:30:00.123Z] INFO : User login {"user_id":42}
    """

    def format(
        self,
        entry: LogEntry,
        console_colors: Optional[Dict[str, Any]] = None,
        use_colors: bool = False,
    ) -> str:
        colors = resolve_formatter_colors(console_colors, use_colors)

        level_string = (entry.level_name or "UNKNOWN").ljust(5)

        data_display = safe_process_data(entry.data)
        data_string = f" {data_display}" if data_display else ""

        processed_args = safe_process_args(entry.args)
        args_string = f" {' '.join(processed_args)}" if processed_args else ""

        if colors is not None:
            timestamp_part = dim_text(f"[{entry.timestamp}]", colors)
            level_part = colorize_level_text(f"{level_string}:", entry.level, colors)
            return f"{timestamp_part} {level_part} {entry.message}{data_string}{args_string}"

        return f"[{entry.timestamp}] {level_string}: {entry.message}{data_string}{args_string}"
