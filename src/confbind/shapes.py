"""Structural shape registry for collection-typed destinations.

A destination type is either a scalar, a single-type-argument sequence
contract (``list[int]``, ``Sequence[str]``, ``frozenset[Colour]``) or a
two-type-argument mapping contract (``dict[str, int]``, ``Mapping[K, V]``).
The :class:`ShapeRegistry` maps the generic origin of a sequence or mapping
contract to a factory that builds a concrete container from a finished buffer.

Abstract contracts are satisfied by registering a concrete factory for them;
``Sequence[int]`` is fulfilled by a ``list`` and ``AbstractSet[int]`` by a
``frozenset``. Subclasses of registered concrete containers are constructed
directly. Contracts that have no registered factory, such as ``Iterator[int]``
or a fixed-length ``tuple[int, str]``, raise
:class:`~confbind.errors.UnsupportedCollectionShapeError`.
"""

import collections
import collections.abc
import enum
from dataclasses import dataclass
from typing import Any, Callable, Optional, get_args, get_origin

from confbind.errors import UnsupportedCollectionShapeError

__all__ = ["Shape", "CollectionShape", "ShapeRegistry", "default_shapes"]


class Shape(enum.Enum):
    SEQUENCE = "sequence"
    MAPPING = "mapping"


@dataclass(frozen=True)
class CollectionShape:
    """How to build a particular collection destination.

    Attributes:
        kind: Whether the destination is a sequence or a mapping.
        factory: Builds the concrete container from a list (sequences) or an
            insertion-ordered dict (mappings).
        argument_types: The element type for sequences; the key and value types
            for mappings.
    """

    kind: Shape
    factory: Callable[[Any], Any]
    argument_types: tuple[Any, ...]


_STRING_LIKE = (str, bytes, bytearray)


class ShapeRegistry:
    """Lookup from a destination type's generic origin to a construction strategy."""

    def __init__(self):
        self._factories: dict[type, tuple[Shape, Callable[[Any], Any]]] = {}

    def register_sequence(self, origin: type, factory: Callable[[list], Any]):
        self._factories[origin] = (Shape.SEQUENCE, factory)

    def register_mapping(self, origin: type, factory: Callable[[dict], Any]):
        self._factories[origin] = (Shape.MAPPING, factory)

    def shape_of(self, destination_type: Any) -> Optional[CollectionShape]:
        """Classify ``destination_type``.

        Returns:
            A :class:`CollectionShape` for sequence and mapping contracts, or None
            for scalar destinations.

        Raises:
            UnsupportedCollectionShapeError: If the type claims a sequence or mapping
                contract that no registered factory can satisfy.
        """
        origin = get_origin(destination_type) or destination_type
        if not isinstance(origin, type) or issubclass(origin, _STRING_LIKE + (enum.Enum,)):
            return None

        kind, factory = self._factory_for(origin)
        if kind is None:
            if _is_abstract_iterable(origin):
                raise UnsupportedCollectionShapeError(
                    f"No concrete collection is registered for {destination_type!r}"
                )
            return None

        args = get_args(destination_type)
        if kind is Shape.MAPPING:
            return CollectionShape(kind, factory, _mapping_arguments(destination_type, args))
        return CollectionShape(
            kind, factory, (_element_argument(destination_type, origin, args),)
        )

    def _factory_for(self, origin: type):
        if origin in self._factories:
            return self._factories[origin]

        # Subclasses of registered concrete containers build themselves.
        for registered, (kind, _) in self._factories.items():
            if not _is_abstract_iterable(registered) and issubclass(origin, registered):
                return kind, origin

        return None, None


def _is_abstract_iterable(origin: type) -> bool:
    return origin.__module__ in ("collections.abc", "typing") and issubclass(
        origin, collections.abc.Iterable
    )


def _element_argument(destination_type: Any, origin: type, args: tuple) -> Any:
    if not args:
        return Any
    if issubclass(origin, tuple):
        if len(args) == 2 and args[1] is Ellipsis:
            return args[0]
        raise UnsupportedCollectionShapeError(
            f"Fixed-length tuple {destination_type!r} is not a single-type-argument sequence"
        )
    if len(args) != 1:
        raise UnsupportedCollectionShapeError(
            f"Sequence type {destination_type!r} must have exactly one type argument"
        )
    return args[0]


def _mapping_arguments(destination_type: Any, args: tuple) -> tuple[Any, Any]:
    if not args:
        return str, Any
    if len(args) != 2:
        raise UnsupportedCollectionShapeError(
            f"Mapping type {destination_type!r} must have exactly two type arguments"
        )
    return args[0], args[1]


def default_shapes() -> ShapeRegistry:
    """Return a registry covering the built-in containers and their abstract contracts."""
    shapes = ShapeRegistry()

    for origin in (
        list,
        collections.abc.Iterable,
        collections.abc.Collection,
        collections.abc.Reversible,
        collections.abc.Sequence,
        collections.abc.MutableSequence,
    ):
        shapes.register_sequence(origin, list)
    shapes.register_sequence(tuple, tuple)
    shapes.register_sequence(set, set)
    shapes.register_sequence(collections.abc.MutableSet, set)
    shapes.register_sequence(frozenset, frozenset)
    shapes.register_sequence(collections.abc.Set, frozenset)
    shapes.register_sequence(collections.deque, collections.deque)

    for origin in (dict, collections.abc.Mapping, collections.abc.MutableMapping):
        shapes.register_mapping(origin, dict)
    shapes.register_mapping(collections.OrderedDict, collections.OrderedDict)

    return shapes
