"""
Plume: Formatters - Colors

Table de couleurs ANSI par niveau et helpers de colorisation.

Les surcharges utilisateur acceptent une séquence ANSI brute, un hex
("#ff8800"), un "rgb(255, 136, 0)" ou un nom de couleur.
"""

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from rich.color import Color, ColorParseError

from ..core.diagnostics import log_internal_warning
from ..core.interfaces import LogLevel

RESET = "\x1b[0m"
BOLD = "\x1b[1m"
DIM = "\x1b[2m"

DEFAULT_COLORS: Dict[str, str] = {
    "reset": RESET,
    "bold": BOLD,
    "dim": DIM,
    "FATAL": "\x1b[91m",
    "ERROR": "\x1b[31m",
    "WARN": "\x1b[33m",
    "INFO": "\x1b[32m",
    "DEBUG": "\x1b[34m",
    "TRACE": "\x1b[35m",
}

_STYLE_KEYS = ("reset", "bold", "dim")


def to_ansi_color(color: str) -> str:
    """
    Convertit une spécification de couleur en séquence ANSI truecolor.

    Args:
        color: Séquence ANSI, hex, rgb(...) ou nom de couleur

    Returns:
        Séquence ANSI, ou "" si la couleur est invalide
    """
    if not color:
        return ""
    if color.startswith("\x1b["):
        return color
    try:
        triplet = Color.parse(color).get_truecolor()
    except ColorParseError as e:
        log_internal_warning(f"Invalid console color '{color}':", e)
        return ""
    return f"\x1b[38;2;{triplet.red};{triplet.green};{triplet.blue}m"


@dataclass
class FormatterColors:
    """Couleurs résolues pour un formatter."""

    reset: str = RESET
    bold: str = BOLD
    dim: str = DIM
    levels: Dict[LogLevel, str] = field(default_factory=dict)


def merge_console_colors(custom: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Fusionne les couleurs par défaut et les surcharges (clés de niveau en majuscules)."""
    merged = dict(DEFAULT_COLORS)
    for key, value in (custom or {}).items():
        name = str(key) if key in _STYLE_KEYS else str(key).upper()
        merged[name] = value
    return merged


def get_formatter_colors(console_colors: Mapping[str, str]) -> FormatterColors:
    """
    Résout une table de couleurs en séquences ANSI.

    Args:
        console_colors: Table (défauts + surcharges)

    Returns:
        FormatterColors
    """
    merged = merge_console_colors(console_colors)
    levels = {
        level: to_ansi_color(merged.get(level.name, ""))
        for level in LogLevel
        if level is not LogLevel.SILENT
    }
    return FormatterColors(
        reset=to_ansi_color(merged["reset"]) or RESET,
        bold=to_ansi_color(merged["bold"]) or BOLD,
        dim=to_ansi_color(merged["dim"]) or DIM,
        levels=levels,
    )


def resolve_formatter_colors(
    console_colors: Optional[Mapping[str, str]], use_colors: bool
) -> Optional[FormatterColors]:
    """Couleurs actives seulement si use_colors et une table est fournie."""
    if not use_colors or console_colors is None:
        return None
    return get_formatter_colors(console_colors)


def colorize(text: str, color: str, colors: Optional[FormatterColors]) -> str:
    if colors is None or not color:
        return text
    return f"{color}{text}{colors.reset}"


def colorize_level_text(
    text: str, level: LogLevel, colors: Optional[FormatterColors]
) -> str:
    if colors is None:
        return text
    return colorize(text, f"{colors.bold}{colors.levels.get(level, '')}", colors)


def dim_text(text: str, colors: Optional[FormatterColors]) -> str:
    if colors is None:
        return text
    return colorize(text, colors.dim, colors)


def bold_text(text: str, colors: Optional[FormatterColors]) -> str:
    if colors is None:
        return text
    return colorize(text, colors.bold, colors)
