"""
Plume: Core - Clock

Horodatage des entrées.
"""

from datetime import datetime, timezone
from typing import Optional


def iso_timestamp(now: Optional[datetime] = None) -> str:
    """
    Timestamp ISO 8601 UTC avec millisecondes.

    Format: 2024-12-04T14:30:00.123Z

    Args:
        now: Instant à formater (défaut: maintenant)

    Returns:
        Timestamp formaté
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def human_readable_timestamp(now: Optional[datetime] = None) -> str:
    """
    Timestamp lisible en heure locale.

    Format: 2024-12-04 02:30:00 PM
    """
    now = now or datetime.now()
    return now.strftime("%Y-%m-%d %I:%M:%S %p")


def get_timestamp(human_readable: bool = False, now: Optional[datetime] = None) -> str:
    """
    Génère le timestamp d'une entrée.

    Args:
        human_readable: Format lisible plutôt qu'ISO 8601
        now: Instant injecté (tests)

    Returns:
        Timestamp formaté
    """
    if human_readable:
        return human_readable_timestamp(now)
    return iso_timestamp(now)
