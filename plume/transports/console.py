"""
Plume: Transports - Console

Écriture des entrées sur la console, flux choisi selon le niveau:
    - FATAL, ERROR -> error (stderr)
    - WARN -> warn (stderr)
    - DEBUG, TRACE -> debug (stdout)
    - INFO -> info (stdout)
"""

import sys
from typing import Callable, Dict, Optional

from ..core.diagnostics import log_internal_error
from ..core.interfaces import ITransport, LogEntry, LoggerOptions, LogLevel
from ..formatters.colors import merge_console_colors
from ..formatters.render import render_entry
from ..redaction.redactor import get_redacted_entry

Sink = Callable[[str], None]

STREAM_ERROR = "error"
STREAM_WARN = "warn"
STREAM_DEBUG = "debug"
STREAM_INFO = "info"


def _stderr_sink(text: str) -> None:
    print(text, file=sys.stderr)


def _stdout_sink(text: str) -> None:
    print(text, file=sys.stdout)


def stream_for_level(level: LogLevel) -> str:
    """Nom du flux console associé à un niveau."""
    if level in (LogLevel.ERROR, LogLevel.FATAL):
        return STREAM_ERROR
    if level == LogLevel.WARN:
        return STREAM_WARN
    if level in (LogLevel.DEBUG, LogLevel.TRACE):
        return STREAM_DEBUG
    return STREAM_INFO


class ConsoleTransport(ITransport):
    """
    Transport console synchrone.

    Example:
        transport = ConsoleTransport()
        transport = ConsoleTransport(sinks={"info": captured.append})
    """

    def __init__(
        self,
        sinks: Optional[Dict[str, Sink]] = None,
        use_colors: bool = True,
    ) -> None:
        """
        Args:
            sinks: Surcharges des flux ("error", "warn", "debug", "info")
            use_colors: Colorise la sortie du formatter par défaut
        """
        self._sinks: Dict[str, Sink] = {
            STREAM_ERROR: _stderr_sink,
            STREAM_WARN: _stderr_sink,
            STREAM_DEBUG: _stdout_sink,
            STREAM_INFO: _stdout_sink,
        }
        self._sinks.update(sinks or {})
        self._use_colors = use_colors

    @property
    def use_colors(self) -> bool:
        return self._use_colors

    def log(self, entry: LogEntry, options: LoggerOptions) -> None:
        redacted = get_redacted_entry(entry, options.redaction, "console")
        sink = self._sinks[stream_for_level(redacted.level)]

        output = render_entry(
            redacted,
            options,
            use_colors=self._use_colors and options.format != "json",
            console_colors=merge_console_colors(options.custom_console_colors),
            source="ConsoleTransport",
        )

        try:
            sink(output)
        except Exception as e:
            log_internal_error("ConsoleTransport write error:", e, options)

    async def flush(self, options: Optional[LoggerOptions] = None) -> None:
        return None
