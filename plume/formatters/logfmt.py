"""
Plume: Formatters - Logfmt

Format clé=valeur: ts=... level=info msg="..." user_id="42" arg0="..."
"""

import json
from typing import Any, Dict, List, Optional

from ..core.interfaces import ILogFormatter, LogEntry


def _quote(value: Any) -> str:
    text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False, default=str)
    return '"' + text.replace('"', '\\"') + '"'


class LogfmtFormatter(ILogFormatter):
    """Formatter logfmt, sans couleurs."""

    def format(
        self,
        entry: LogEntry,
        console_colors: Optional[Dict[str, Any]] = None,
        use_colors: bool = False,
    ) -> str:
        pairs: List[str] = [
            f"ts={entry.timestamp}",
            f"level={entry.level_name.lower()}",
            f"msg={_quote(entry.message)}",
        ]

        for key, value in (entry.data or {}).items():
            pairs.append(f"{key}={_quote(value)}")

        for index, arg in enumerate(entry.args.processed_args):
            pairs.append(f"arg{index}={_quote(arg)}")

        return " ".join(pairs)
