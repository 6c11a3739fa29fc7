"""
Plume: Core - Traversal

Parcours récursif protégé contre les cycles, partagé par la sérialisation
des arguments et par le moteur de masquage.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .type_guards import might_have_circular_refs

CIRCULAR_REFERENCE_MARKER = "[Circular Reference]"
MAX_DEPTH_MARKER = "[Max Depth Exceeded]"


def join_path(parent: str, key: Any) -> str:
    """Chemin pointé d'une clé: "user" + "password" -> "user.password"."""
    return f"{parent}.{key}" if parent else str(key)


def index_path(parent: str, index: int) -> str:
    """Chemin d'un élément de liste: "items" + 2 -> "items[2]"."""
    return f"{parent}[{index}]"


@dataclass(frozen=True)
class WalkContext:
    """Position du noeud courant dans l'arbre parcouru."""

    key: str = ""
    path: str = ""
    depth: int = 0


NodeVisitor = Callable[[Any, WalkContext, "TreeWalker"], Any]


class TreeWalker:
    """
    Parcours en profondeur avec suivi d'identité et borne de profondeur.

    Le visiteur reçoit chaque noeud et décide de sa transformation; il
    rappelle walk() pour les enfants qu'il veut visiter. Le walker garde
    l'ensemble des objets en cours de visite: revisiter l'un d'eux
    produit `on_cycle` au lieu de boucler.

    Example:
        walker = TreeWalker(visitor, max_depth=10)
        result = walker.walk(value)
    """

    DEFAULT_MAX_DEPTH: int = 10

    def __init__(
        self,
        visitor: NodeVisitor,
        max_depth: int = DEFAULT_MAX_DEPTH,
        on_cycle: Any = CIRCULAR_REFERENCE_MARKER,
        on_max_depth: Any = MAX_DEPTH_MARKER,
    ) -> None:
        """
        Args:
            visitor: Transformation appliquée à chaque noeud
            max_depth: Profondeur maximale visitée (incluse)
            on_cycle: Valeur retournée sur une référence circulaire
            on_max_depth: Valeur retournée au-delà de max_depth
        """
        self._visitor = visitor
        self._max_depth = max_depth
        self._on_cycle = on_cycle
        self._on_max_depth = on_max_depth
        # id -> objet: garde les objets vivants tant qu'ils sont actifs
        self._active: Dict[int, Any] = {}

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def walk(
        self,
        value: Any,
        key: str = "",
        path: str = "",
        depth: int = 0,
    ) -> Any:
        """
        Visite value et retourne le résultat du visiteur.

        Args:
            value: Noeud à visiter
            key: Clé du noeud dans son parent
            path: Chemin complet du noeud
            depth: Profondeur du noeud

        Returns:
            Résultat du visiteur, ou marqueur de cycle / profondeur
        """
        if depth > self._max_depth:
            return self._on_max_depth

        context = WalkContext(key=key, path=path, depth=depth)
        if not might_have_circular_refs(value):
            return self._visitor(value, context, self)

        marker = id(value)
        if marker in self._active:
            return self._on_cycle

        self._active[marker] = value
        try:
            return self._visitor(value, context, self)
        finally:
            del self._active[marker]

    def walk_child(
        self,
        value: Any,
        parent: WalkContext,
        key: Any,
        index: Optional[int] = None,
    ) -> Any:
        """
        Visite un enfant du noeud `parent`.

        Args:
            value: Valeur de l'enfant
            parent: Contexte du parent
            key: Clé de l'enfant (ignorée si index est fourni)
            index: Position dans une liste

        Returns:
            Résultat du visiteur pour l'enfant
        """
        if index is not None:
            return self.walk(
                value,
                key=f"[{index}]",
                path=index_path(parent.path, index),
                depth=parent.depth + 1,
            )
        return self.walk(
            value,
            key=str(key),
            path=join_path(parent.path, key),
            depth=parent.depth + 1,
        )
