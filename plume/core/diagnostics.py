"""
Plume: Core - Diagnostics

Canal de rapport des problèmes internes de la bibliothèque (formatter en
échec, transport en erreur, lot abandonné...).

Les hooks sont remplaçables globalement ou par logger (LoggerOptions).
Les hooks par défaut écrivent via le module logging standard, sous le
logger "plume". Un hook défaillant ne fait jamais échouer l'appelant.
"""

import logging
from typing import Any, Optional

from .interfaces import InternalHandler, LoggerOptions

logger = logging.getLogger("plume")


def _default_error_handler(message: str, error: Optional[Any] = None) -> None:
    if isinstance(error, BaseException):
        logger.error(message, exc_info=error)
    elif error is not None:
        logger.error("%s %s", message, error)
    else:
        logger.error(message)


def _default_warning_handler(message: str, error: Optional[Any] = None) -> None:
    if error is not None:
        logger.warning("%s %s", message, error)
    else:
        logger.warning(message)


def _default_debug_handler(message: str, data: Optional[Any] = None) -> None:
    if data is not None:
        logger.debug("%s %s", message, data)
    else:
        logger.debug(message)


_error_handler: InternalHandler = _default_error_handler
_warning_handler: InternalHandler = _default_warning_handler
_debug_handler: InternalHandler = _default_debug_handler


def set_internal_error_handler(handler: Optional[InternalHandler]) -> None:
    """Remplace le hook d'erreur global (None restaure le défaut)."""
    global _error_handler
    _error_handler = handler or _default_error_handler


def set_internal_warning_handler(handler: Optional[InternalHandler]) -> None:
    """Remplace le hook d'avertissement global (None restaure le défaut)."""
    global _warning_handler
    _warning_handler = handler or _default_warning_handler


def set_internal_debug_handler(handler: Optional[InternalHandler]) -> None:
    """Remplace le hook de debug global (None restaure le défaut)."""
    global _debug_handler
    _debug_handler = handler or _default_debug_handler


def reset_internal_handlers() -> None:
    """Restaure les trois hooks par défaut."""
    set_internal_error_handler(None)
    set_internal_warning_handler(None)
    set_internal_debug_handler(None)


def _dispatch(
    handler: InternalHandler,
    fallback: InternalHandler,
    label: str,
    message: str,
    payload: Optional[Any],
) -> None:
    try:
        handler(message, payload)
    except Exception:
        fallback(f"[INTERNAL {label} HANDLER FAILED] {message}", payload)


def log_internal_error(
    message: str,
    error: Optional[Any] = None,
    options: Optional[LoggerOptions] = None,
) -> None:
    """
    Rapporte une erreur interne.

    Args:
        message: Description du problème
        error: Exception ou détail associé
        options: Options du logger (hook spécifique prioritaire)
    """
    handler = (options and options.internal_error_handler) or _error_handler
    _dispatch(handler, _default_error_handler, "ERROR", message, error)


def log_internal_warning(
    message: str,
    error: Optional[Any] = None,
    options: Optional[LoggerOptions] = None,
) -> None:
    """Rapporte un avertissement interne."""
    handler = (options and options.internal_warning_handler) or _warning_handler
    _dispatch(handler, _default_warning_handler, "WARNING", message, error)


def log_internal_debug(
    message: str,
    data: Optional[Any] = None,
    options: Optional[LoggerOptions] = None,
) -> None:
    """Rapporte une information de debug interne."""
    handler = (options and options.internal_debug_handler) or _debug_handler
    _dispatch(handler, _default_debug_handler, "DEBUG", message, data)
