"""
Plume: Core - Normalizer

Conversion d'un appel de log brut en LogEntry canonique.

Processus:
    1. Suppression des arguments None
    2. Fusion des records (dict non error-like) dans `data`
    3. Extraction du drapeau `discord`
    4. Sérialisation des arguments restants et des données
    5. Horodatage
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .clock import get_timestamp
from .interfaces import LogEntry, LogLevel
from .serialization import (
    DEFAULT_MAX_DEPTH,
    create_safe_object,
    process_log_args,
    safe_stringify,
    serialize_value,
)
from .type_guards import is_data_argument

DISCORD_FLAG_KEY = "discord"


def extract_data(
    args: Iterable[Any],
    base_data: Optional[Dict[str, Any]] = None,
) -> Tuple[List[Any], Optional[Dict[str, Any]], bool]:
    """
    Sépare les données structurées des arguments positionnels.

    Args:
        args: Arguments bruts de l'appel
        base_data: Données de base (contexte), écrasées par l'appel

    Returns:
        Tuple (arguments restants, données fusionnées ou None, drapeau discord)
    """
    data: Dict[str, Any] = dict(base_data) if base_data else {}
    remaining: List[Any] = []

    for arg in args:
        if arg is None:
            continue
        if is_data_argument(arg):
            data.update(arg)
        else:
            remaining.append(arg)

    discord = False
    if DISCORD_FLAG_KEY in data:
        discord = bool(data.pop(DISCORD_FLAG_KEY))

    return remaining, (data or None), discord


def _serialize_data(data: Dict[str, Any]) -> Dict[str, Any]:
    try:
        return serialize_value(data, max_depth=DEFAULT_MAX_DEPTH)
    except Exception:
        return create_safe_object(data)


def normalize_entry(
    level: LogLevel,
    message: Any,
    args: Iterable[Any] = (),
    base_data: Optional[Dict[str, Any]] = None,
    human_readable_time: bool = False,
    now: Optional[datetime] = None,
) -> LogEntry:
    """
    Produit une LogEntry à partir d'un appel de log.

    Args:
        level: Niveau de l'appel
        message: Message (converti en str si nécessaire)
        args: Arguments positionnels de l'appel
        base_data: Données de contexte du logger
        human_readable_time: Format d'horodatage lisible
        now: Instant injecté (tests)

    Returns:
        LogEntry immuable, args et data représentables en JSON

    Example:
        entry = normalize_entry(LogLevel.INFO, "User login", [{"user_id": 42}])
        assert entry.data == {"user_id": 42}
    """
    remaining, data, discord = extract_data(args, base_data)

    return LogEntry(
        timestamp=get_timestamp(human_readable_time, now),
        level=level,
        level_name=level.name,
        message=message if isinstance(message, str) else safe_stringify(message),
        args=process_log_args(remaining),
        data=_serialize_data(data) if data is not None else None,
        discord=discord,
    )
