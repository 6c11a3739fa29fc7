"""
Plume: Core - Serialization

Sérialisation défensive des valeurs arbitraires reçues par un appel de log.

Toute valeur est convertie en structure représentable en JSON:
    - Exceptions -> {name, message, stack, cause?}
    - Dates -> ISO 8601, regex -> source, set/mapping -> résumé textuel
    - Fonctions -> "[Function: nom]"
    - Objets -> {"__type__": Classe, ...attributs}
    - Cycles -> "[Circular Reference]", profondeur -> "[Max Depth Exceeded]"

Aucune erreur de sérialisation ne remonte à l'appelant: un argument en
échec est remplacé par un marqueur, ses voisins ne sont pas affectés.
"""

import dataclasses
import datetime
import decimal
import enum
import json
import math
import re
import traceback
import types
import uuid
from collections.abc import Mapping
from pathlib import PurePath
from typing import Any, Dict, Iterable, List, Optional

from .interfaces import LogArgs
from .traversal import TreeWalker, WalkContext
from .type_guards import is_primitive

DEFAULT_MAX_DEPTH: int = 10
DEFAULT_ERROR_CAUSE_DEPTH: int = 3
NON_SERIALIZABLE_MARKER = "[Non-serializable]"

_FUNCTION_TYPES = (
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    types.BuiltinMethodType,
)


def serialize_error(
    error: BaseException, max_depth: int = DEFAULT_ERROR_CAUSE_DEPTH
) -> Dict[str, Any]:
    """
    Sérialise une exception avec sa chaîne de causes.

    Args:
        error: Exception à sérialiser
        max_depth: Nombre maximal de causes suivies

    Returns:
        Dict {name, message, stack, cause?}
    """
    serialized: Dict[str, Any] = {
        "name": type(error).__name__,
        "message": str(error),
        "stack": _format_stack(error),
    }

    if max_depth <= 0:
        return serialized

    cause = error.__cause__
    if cause is None and not error.__suppress_context__:
        cause = error.__context__
    if cause is not None:
        serialized["cause"] = serialize_error(cause, max_depth - 1)
        return serialized

    # Cause non-exception portée par un attribut applicatif
    custom_cause = getattr(error, "cause", None)
    if custom_cause is not None:
        if isinstance(custom_cause, BaseException):
            serialized["cause"] = serialize_error(custom_cause, max_depth - 1)
        else:
            try:
                serialized["cause"] = json.loads(json.dumps(custom_cause))
            except (TypeError, ValueError):
                serialized["cause"] = _safe_str(custom_cause)

    return serialized


def _format_stack(error: BaseException) -> Optional[str]:
    if error.__traceback__ is None:
        return None
    lines = traceback.format_exception(
        type(error), error, error.__traceback__, chain=False
    )
    return "".join(lines).rstrip("\n")


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return NON_SERIALIZABLE_MARKER


def _function_name(value: Any) -> str:
    name = getattr(value, "__name__", "") or ""
    if not name or name == "<lambda>":
        return "anonymous"
    return name


def _summarize_set(value: Any, walker: TreeWalker, context: WalkContext) -> str:
    try:
        items = [
            safe_stringify(walker.walk(item, depth=context.depth + 1))
            for item in value
        ]
        return f"[Set: {', '.join(items)}]"
    except Exception:
        return f"[Set: {len(value)} items]"


def _summarize_mapping(
    value: Mapping, walker: TreeWalker, context: WalkContext
) -> str:
    try:
        items = [
            f"{safe_stringify(key)} => "
            f"{safe_stringify(walker.walk(item, depth=context.depth + 1))}"
            for key, item in value.items()
        ]
        return f"[Map: {', '.join(items)}]"
    except Exception:
        return f"[Map: {len(value)} entries]"


def _object_attributes(value: Any) -> Iterable[str]:
    if dataclasses.is_dataclass(value):
        return [f.name for f in dataclasses.fields(value)]
    names: List[str] = []
    if hasattr(value, "__dict__"):
        names.extend(vars(value).keys())
    for klass in type(value).__mro__:
        for slot in getattr(klass, "__slots__", ()):
            if slot not in names and not slot.startswith("__"):
                names.append(slot)
    return names


def _serialize_node(value: Any, context: WalkContext, walker: TreeWalker) -> Any:
    """Transformation d'un noeud pour le TreeWalker."""
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else str(value)

    if isinstance(value, BaseException):
        return serialize_error(value)
    if isinstance(value, enum.Enum):
        return walker.walk(value.value, context.key, context.path, context.depth)
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, datetime.timedelta):
        return str(value)
    if isinstance(value, re.Pattern):
        return value.pattern
    if isinstance(value, (bytes, bytearray)):
        return f"[Bytes: {len(value)}]"
    if isinstance(value, (decimal.Decimal, complex, uuid.UUID, PurePath)):
        return str(value)

    if isinstance(value, (set, frozenset)):
        return _summarize_set(value, walker, context)

    if isinstance(value, dict):
        result: Dict[str, Any] = {}
        for key, item in value.items():
            try:
                result[str(key)] = walker.walk_child(item, context, key)
            except Exception as e:
                result[str(key)] = f"[Property Error: {e}]"
        return result

    if isinstance(value, Mapping):
        return _summarize_mapping(value, walker, context)

    if isinstance(value, (list, tuple)):
        items: List[Any] = []
        for index, item in enumerate(value):
            try:
                items.append(walker.walk_child(item, context, None, index=index))
            except Exception:
                items.append(f"[Array Item {index}: Processing Error]")
        return items

    if isinstance(value, type):
        return f"[Class: {value.__name__}]"
    if isinstance(value, _FUNCTION_TYPES) or (
        callable(value) and not hasattr(value, "__dict__")
    ):
        return f"[Function: {_function_name(value)}]"

    return _serialize_object(value, context, walker)


def _serialize_object(value: Any, context: WalkContext, walker: TreeWalker) -> Any:
    result: Dict[str, Any] = {"__type__": type(value).__name__}
    for name in _object_attributes(value):
        try:
            result[name] = walker.walk_child(getattr(value, name), context, name)
        except Exception as e:
            result[name] = f"[Property Error: {e}]"
    return result


def serialize_value(value: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> Any:
    """
    Convertit une valeur arbitraire en structure représentable en JSON.

    Un ensemble d'identités est tenu pour la durée de l'appel: une
    référence circulaire devient "[Circular Reference]".

    Args:
        value: Valeur à sérialiser
        max_depth: Profondeur maximale avant "[Max Depth Exceeded]"

    Returns:
        Valeur sérialisable (dict, list, str, int, float, bool, None)
    """
    return TreeWalker(_serialize_node, max_depth=max_depth).walk(value)


def process_log_args(
    args: Iterable[Any], max_depth: int = DEFAULT_MAX_DEPTH
) -> LogArgs:
    """
    Sérialise les arguments positionnels d'un appel de log.

    Args:
        args: Arguments restants après extraction des données
        max_depth: Profondeur maximale de sérialisation

    Returns:
        LogArgs avec valeurs traitées et drapeau has_complex_args
    """
    processed: List[Any] = []
    has_complex_args = False

    for index, arg in enumerate(args):
        if not is_primitive(arg):
            has_complex_args = True
        try:
            processed.append(serialize_value(arg, max_depth=max_depth))
        except Exception:
            processed.append(f"[Argument {index}: Processing Failed]")

    return LogArgs(processed_args=tuple(processed), has_complex_args=has_complex_args)


def _json_default(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def safe_json_stringify(value: Any, indent: Optional[int] = None) -> str:
    """
    Sérialise en JSON sans jamais lever d'exception.

    Stratégies successives:
        1. json.dumps direct
        2. json.dumps de serialize_value(value) (cycles et types exotiques)
        3. copie superficielle clé par clé (create_safe_object)
        4. chaîne JSON du repr

    Args:
        value: Valeur à sérialiser
        indent: Indentation optionnelle

    Returns:
        Chaîne JSON
    """
    try:
        return json.dumps(value, ensure_ascii=False, indent=indent, default=_json_default)
    except (TypeError, ValueError, RecursionError):
        pass

    try:
        prepared = value.to_dict() if hasattr(value, "to_dict") else value
        return json.dumps(serialize_value(prepared), ensure_ascii=False, indent=indent)
    except Exception:
        pass

    try:
        return json.dumps(create_safe_object(value), ensure_ascii=False, indent=indent)
    except Exception:
        return json.dumps(_safe_str(value))


def create_safe_object(value: Any) -> Any:
    """
    Copie superficielle ne conservant que les valeurs sérialisables.

    Args:
        value: Liste ou dict potentiellement non sérialisable

    Returns:
        Copie où chaque valeur rejetée est remplacée par un marqueur
    """
    if is_primitive(value):
        return value

    if isinstance(value, (list, tuple)):
        items: List[Any] = []
        for item in value:
            try:
                json.dumps(item)
                items.append(item)
            except (TypeError, ValueError, RecursionError):
                items.append("[Non-serializable Array Item]")
        return items

    if isinstance(value, dict):
        safe: Dict[str, Any] = {}
        for key, item in value.items():
            try:
                json.dumps(item)
                safe[str(key)] = item
            except (TypeError, ValueError, RecursionError):
                safe[str(key)] = "[Non-serializable Value]"
        return safe

    return _safe_str(value)


def safe_stringify(value: Any, fallback: str = NON_SERIALIZABLE_MARKER) -> str:
    """
    Représentation textuelle d'une valeur pour l'affichage.

    Args:
        value: Valeur à afficher
        fallback: Texte si aucune conversion ne réussit

    Returns:
        Chaîne: texte brut pour str, JSON pour les structures
    """
    if value is None:
        return "null"
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)

    if isinstance(value, (dict, list, tuple)):
        try:
            return json.dumps(serialize_value(value), ensure_ascii=False)
        except Exception:
            return f"[Object: {type(value).__name__}]"

    try:
        return str(value)
    except Exception:
        return fallback


def safe_process_args(args: Any) -> List[str]:
    """Arguments traités sous forme de chaînes d'affichage."""
    items = args.processed_args if isinstance(args, LogArgs) else args
    return [safe_stringify(arg) for arg in items or ()]


def safe_process_data(data: Optional[Dict[str, Any]]) -> str:
    """Données structurées en JSON compact, ou chaîne vide."""
    if not data:
        return ""
    try:
        return json.dumps(serialize_value(data), ensure_ascii=False)
    except Exception:
        return "[Data - Processing Error]"
