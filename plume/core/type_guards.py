"""
Plume: Core - Type Guards

Classification explicite des valeurs reçues par un appel de log.
Appliquée une fois par argument par le normalizer et par le redactor.
"""

import datetime
import decimal
import enum
import re
import uuid
from pathlib import PurePath
from typing import Any

PRIMITIVE_TYPES = (str, int, float, bool)

# Types feuilles: jamais de références internes, donc pas de suivi de cycle
LEAF_TYPES = (
    bytes,
    bytearray,
    complex,
    decimal.Decimal,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    enum.Enum,
    uuid.UUID,
    PurePath,
    re.Pattern,
)


def is_primitive(value: Any) -> bool:
    """True pour None, str, int, float et bool."""
    return value is None or isinstance(value, PRIMITIVE_TYPES)


def is_record(value: Any) -> bool:
    """
    True si value est un enregistrement de données simple (dict).

    Les listes, dates, regex et exceptions ne sont jamais des records.
    """
    return isinstance(value, dict)


def is_error_like(value: Any) -> bool:
    """True pour un record portant `name` et `message` de type str."""
    return (
        is_record(value)
        and isinstance(value.get("name"), str)
        and isinstance(value.get("message"), str)
    )


def is_error(value: Any) -> bool:
    """True pour une instance d'exception."""
    return isinstance(value, BaseException)


def is_data_argument(value: Any) -> bool:
    """True si l'argument doit être fusionné dans `data`."""
    return is_record(value) and not is_error_like(value)


def might_have_circular_refs(value: Any) -> bool:
    """
    True si value peut contenir des références vers d'autres objets.

    Candidat au suivi d'identité lors d'un parcours récursif.
    """
    return not (is_primitive(value) or isinstance(value, LEAF_TYPES))
