"""Conversion of configuration nodes into instances of arbitrary destination types.

The :class:`TypeCoercionEngine` turns a :class:`~confbind.node.ConfigNode` into
a value of whatever type the consuming member declares. Rules are applied in a
fixed order:

0. A converter declared on the consuming member (see
   :class:`~confbind.converters.Converter`) wins whenever a value is present.
1. ``Optional`` and other ``Union`` destinations are unwrapped. An empty node
   gives None for an ``Optional``, as does empty text unless the union admits
   ``str`` or ``bytes``; otherwise each member of the union is tried in
   declaration order.
2. ``str``, ``object`` and ``Any`` receive the raw value unchanged. A section
   with children and no value is handed to ``object`` and ``Any`` as the
   :class:`~confbind.node.ConfigNode` itself.
3. Sequence contracts (``list[int]``, ``Sequence[str]``, ...) are built by the
   :class:`~confbind.lists.ListMaterialiser`.
4. Mapping contracts (``dict[str, int]``, ...) are built from the node's named
   children: names convert to the key type and child nodes to the value type.
5. Scalars: ``bool`` accepts exactly ``true``/``false`` in any case; ``int``,
   ``float`` and ``Decimal`` use culture-invariant parsing; enums are looked up
   by case-sensitive member name; anything else goes to the
   :class:`~confbind.converters.ConverterRegistry`.

An absent value is an error for numbers, booleans and enums, the empty string
(or bytes) for ``str``/``bytes``, and None for every other scalar type.
"""

import decimal
import enum
import logging
import re
import types
from functools import reduce
from typing import TYPE_CHECKING, Annotated, Any, Optional, Union, get_args, get_origin

from confbind.converters import ConverterRegistry, ConvertFunc, default_converters
from confbind.errors import (
    CoercionError,
    ConfigurationError,
    MissingConverterError,
    UnsupportedCollectionShapeError,
)
from confbind.lists import ListMaterialiser
from confbind.node import EMPTY_NODE, ConfigNode
from confbind.shapes import CollectionShape, Shape, ShapeRegistry, default_shapes

if TYPE_CHECKING:
    from confbind.members import Member

__all__ = ["TypeCoercionEngine"]

logger = logging.getLogger(__name__)

_INTEGER = re.compile(r"[+-]?[0-9]+")
_REAL = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_NON_FINITE = {"nan", "infinity", "+infinity", "-infinity", "inf", "+inf", "-inf"}

_IDENTITY_TYPES = (str, object, Any)
_EMPTY_VALUES = {str: "", bytes: b""}
_TEXT_TYPES = (str, bytes, object, Any)
_VALUE_TYPES = (bool, int, float, decimal.Decimal, enum.Enum)


class TypeCoercionEngine:
    """Converts configuration nodes to destination types.

    Args:
        converters: Scalar converters keyed by destination type. Defaults to
            :func:`~confbind.converters.default_converters`.
        shapes: Collection shape registry. Defaults to
            :func:`~confbind.shapes.default_shapes`.
        element_key: Nested key used by the wrapped list element convention.
        item_key: Wrapper key used by the wrapped list convention.
    """

    def __init__(
        self,
        converters: Optional[ConverterRegistry] = None,
        shapes: Optional[ShapeRegistry] = None,
        element_key: str = "value",
        item_key: str = "item",
    ):
        self.converters = converters if converters is not None else default_converters()
        self.shapes = shapes if shapes is not None else default_shapes()
        self.lists = ListMaterialiser(self, element_key, item_key)

    def coerce(
        self,
        node: Optional[ConfigNode],
        destination_type: Any,
        member: Optional["Member"] = None,
    ) -> Any:
        """Convert ``node`` to an instance of ``destination_type``.

        Args:
            node: The raw configuration node; None is treated as an empty node.
            destination_type: The declared type of the consuming member.
            member: The member being populated, consulted for a converter override.

        Raises:
            CoercionError: If a present value cannot be converted, or a value is
                required but absent.
            MissingConverterError: If no rule or registered converter applies.
            UnsupportedCollectionShapeError: If a collection contract has no
                constructible concrete container.
        """
        if node is None:
            node = EMPTY_NODE
        destination_type = _strip_annotated(destination_type)

        override = member.converter if member is not None else None
        if override is not None and node.value is not None:
            return _convert(override, node.value, destination_type, member)

        if _is_union(destination_type):
            return self._coerce_union(node, destination_type, member)

        if destination_type in _IDENTITY_TYPES:
            if node.value is None:
                if node.children and destination_type is not str:
                    return node
                return _EMPTY_VALUES.get(destination_type)
            return node.value

        shape = self.shapes.shape_of(destination_type)
        if shape is not None:
            if shape.kind is Shape.SEQUENCE:
                return self.lists.materialise(node, destination_type, shape)
            return self._materialise_mapping(node, destination_type, shape)

        return self._coerce_scalar(node.value, destination_type, member)

    def coerce_value(
        self,
        raw: Optional[str],
        destination_type: Any,
        member: Optional["Member"] = None,
    ) -> Any:
        """Convert a bare scalar string, as :meth:`coerce` would for a leaf node."""
        return self.coerce(ConfigNode(raw), destination_type, member)

    def _coerce_union(self, node: ConfigNode, destination_type: Any, member) -> Any:
        args = get_args(destination_type)
        options = [arg for arg in args if arg is not type(None)]

        if len(options) < len(args):
            if node.is_empty or (_is_blank(node) and not _accepts_text(options)):
                return None
            if len(options) == 1:
                return self.coerce(node, options[0], member)

        failures = []
        for option in options:
            try:
                return self.coerce(node, option, member)
            except ConfigurationError as e:
                logger.debug("Union member %r rejected %r: %s", option, node.value, e)
                failures.append(e)

        raise CoercionError(
            f"Value {node.value!r}{_context(member)} does not convert to any of "
            f"{_type_name(destination_type)}: {'; '.join(str(f) for f in failures)}"
        )

    def _materialise_mapping(
        self, node: ConfigNode, destination_type: Any, shape: CollectionShape
    ) -> Any:
        key_type, value_type = shape.argument_types
        buffer = {}
        for name, child in node.children.items():
            key = self.coerce(ConfigNode(name), key_type)
            if key in buffer:
                raise CoercionError(
                    f"Key {name!r} duplicates an earlier key of {_type_name(destination_type)} "
                    f"after conversion to {_type_name(key_type)}"
                )
            buffer[key] = self.coerce(child, value_type)
        try:
            return shape.factory(buffer)
        except TypeError as e:
            raise UnsupportedCollectionShapeError(
                f"{destination_type!r} cannot be constructed from its entries: {e}"
            ) from e

    def _coerce_scalar(self, raw: Optional[str], destination_type: Any, member) -> Any:
        if raw is None:
            if _is_value_type(destination_type):
                raise CoercionError(
                    f"No value is configured{_context(member)} for "
                    f"{_type_name(destination_type)}, which requires one"
                )
            return _EMPTY_VALUES.get(destination_type)

        if destination_type is bool:
            return _parse_bool(raw, member)
        if isinstance(destination_type, type) and issubclass(destination_type, enum.Enum):
            return _parse_enum(raw, destination_type, member)
        if destination_type in _NUMERIC_PARSERS:
            return _parse_numeric(raw, destination_type, member)

        converter = self.converters.converter_for(destination_type)
        if converter is None:
            raise MissingConverterError(
                f"No converter is registered for {_type_name(destination_type)} "
                f"to convert value {raw!r}{_context(member)}"
            )
        return _convert(converter, raw, destination_type, member)


def _parse_bool(raw: str, member) -> bool:
    token = raw.strip().lower()
    if token == "true":
        return True
    if token == "false":
        return False
    raise CoercionError(
        f"Value {raw!r}{_context(member)} is not a valid bool; expected 'true' or 'false'"
    )


def _parse_enum(raw: str, destination_type: type[enum.Enum], member) -> enum.Enum:
    names = [name.strip() for name in raw.split(",")]
    if len(names) > 1 and not issubclass(destination_type, enum.Flag):
        names = [raw.strip()]

    try:
        members = [destination_type[name] for name in names]
    except KeyError:
        raise CoercionError(
            f"Value {raw!r}{_context(member)} is not a member of {_type_name(destination_type)}; "
            f"expected one of {list(destination_type.__members__)}"
        ) from None

    return reduce(lambda combined, flag: combined | flag, members)


def _parse_integer(text: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise ValueError(text)
    return int(text)


def _parse_real(text: str, parse: ConvertFunc) -> Any:
    if not (_REAL.fullmatch(text) or text.lower() in _NON_FINITE):
        raise ValueError(text)
    return parse(text)


_NUMERIC_PARSERS: dict[type, ConvertFunc] = {
    int: _parse_integer,
    float: lambda text: _parse_real(text, float),
    decimal.Decimal: lambda text: _parse_real(text, decimal.Decimal),
}


def _parse_numeric(raw: str, destination_type: type, member) -> Any:
    try:
        return _NUMERIC_PARSERS[destination_type](raw.strip())
    except (ValueError, ArithmeticError):
        raise CoercionError(
            f"Value {raw!r}{_context(member)} is not a valid {_type_name(destination_type)}"
        ) from None


def _convert(converter: ConvertFunc, raw: str, destination_type: Any, member) -> Any:
    try:
        return converter(raw)
    except ConfigurationError:
        raise
    except (ValueError, TypeError, ArithmeticError) as e:
        raise CoercionError(
            f"Value {raw!r}{_context(member)} could not be converted to "
            f"{_type_name(destination_type)}: {e}"
        ) from e


def _strip_annotated(destination_type: Any) -> Any:
    if get_origin(destination_type) is Annotated:
        return get_args(destination_type)[0]
    return destination_type


def _is_union(destination_type: Any) -> bool:
    return get_origin(destination_type) in (Union, types.UnionType)


def _is_blank(node: ConfigNode) -> bool:
    return node.value == "" and not node.children


def _accepts_text(options: list) -> bool:
    return any(_strip_annotated(option) in _TEXT_TYPES for option in options)


def _is_value_type(destination_type: Any) -> bool:
    return isinstance(destination_type, type) and issubclass(destination_type, _VALUE_TYPES)


def _type_name(destination_type: Any) -> str:
    if isinstance(destination_type, type) and not get_args(destination_type):
        return destination_type.__qualname__
    return repr(destination_type)


def _context(member) -> str:
    if member is None:
        return ""
    return f" for {member.kind.value} '{member.name}'"
