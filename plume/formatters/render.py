"""
Plume: Formatters - Render

Chaîne de formatage partagée par les transports:
pluggable_formatter -> formatter -> mode JSON -> DefaultFormatter.

Une exception de formatter est rapportée au hook d'erreur interne et
remplacée par la sortie du DefaultFormatter.
"""

from typing import Any, Dict, Optional

from ..core.diagnostics import log_internal_error
from ..core.interfaces import LogEntry, LoggerOptions
from ..core.serialization import safe_json_stringify
from .registry import DEFAULT_FORMATTER


def format_with_custom(
    entry: LogEntry,
    options: LoggerOptions,
    use_colors: bool = False,
    console_colors: Optional[Dict[str, Any]] = None,
    source: str = "transport",
) -> Optional[str]:
    """
    Applique le formatter utilisateur s'il y en a un.

    Args:
        entry: Entrée à formater
        options: Options du logger
        use_colors: Active les couleurs
        console_colors: Table de couleurs
        source: Nom du transport appelant (diagnostic)

    Returns:
        Chaîne formatée, ou None si aucun formatter utilisateur
    """
    if options.pluggable_formatter is not None:
        try:
            return options.pluggable_formatter.format(
                entry, console_colors=console_colors, use_colors=use_colors
            )
        except Exception as e:
            log_internal_error(
                f"Pluggable formatter failed in {source}, using default:", e, options
            )
            return DEFAULT_FORMATTER.format(
                entry, console_colors=console_colors, use_colors=use_colors
            )

    if options.formatter is not None:
        try:
            return options.formatter(entry)
        except Exception as e:
            log_internal_error(
                f"Custom formatter failed in {source}, using default:", e, options
            )
            return DEFAULT_FORMATTER.format(
                entry, console_colors=console_colors, use_colors=use_colors
            )

    return None


def render_entry(
    entry: LogEntry,
    options: LoggerOptions,
    use_colors: bool = False,
    console_colors: Optional[Dict[str, Any]] = None,
    source: str = "transport",
) -> str:
    """
    Formate une entrée selon les options du logger.

    Returns:
        Chaîne prête à écrire
    """
    custom = format_with_custom(entry, options, use_colors, console_colors, source)
    if custom is not None:
        return custom

    if options.format == "json":
        return safe_json_stringify(entry.to_dict())

    try:
        return DEFAULT_FORMATTER.format(
            entry, console_colors=console_colors, use_colors=use_colors
        )
    except Exception as e:
        log_internal_error(f"Default formatter failed in {source}:", e, options)
        return f"[{entry.timestamp}] {entry.level_name}: {entry.message}"
