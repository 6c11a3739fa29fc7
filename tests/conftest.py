"""
Plume - Pytest Configuration
Fixtures partagées pour tous les tests.
"""

from datetime import datetime, timezone
from typing import Any, Callable, List, Tuple

import pytest

from plume.core import (
    LogLevel,
    LogEntry,
    normalize_entry,
    reset_internal_handlers,
    set_internal_error_handler,
    set_internal_warning_handler,
)
from plume.dispatcher import discord_registry, logger

FIXED_NOW = datetime(2024, 12, 4, 14, 30, 0, 123000, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_plume(monkeypatch: pytest.MonkeyPatch):
    """Remet le logger global, les hooks internes et le webhook partagé à zéro."""
    logger.reset()
    reset_internal_handlers()
    monkeypatch.setattr(discord_registry, "_transport", None)
    yield
    logger.reset()
    reset_internal_handlers()


@pytest.fixture
def internal_errors() -> List[Tuple[str, Any]]:
    """Capture les erreurs rapportées au hook d'erreur interne."""
    captured: List[Tuple[str, Any]] = []
    set_internal_error_handler(lambda message, error=None: captured.append((message, error)))
    return captured


@pytest.fixture
def internal_warnings() -> List[Tuple[str, Any]]:
    """Capture les avertissements rapportés au hook interne."""
    captured: List[Tuple[str, Any]] = []
    set_internal_warning_handler(lambda message, error=None: captured.append((message, error)))
    return captured


@pytest.fixture
def make_entry() -> Callable[..., LogEntry]:
    """Fabrique d'entrées horodatées de manière fixe."""

    def factory(message: str = "Test message", *args: Any, level: LogLevel = LogLevel.INFO) -> LogEntry:
        return normalize_entry(level, message, args, now=FIXED_NOW)

    return factory
