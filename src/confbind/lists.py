"""Materialisation of sequence-shaped destinations from configuration nodes."""

import logging
import types
from typing import TYPE_CHECKING, Annotated, Any, Optional, Union, get_args, get_origin

from confbind.errors import UnsupportedCollectionShapeError
from confbind.node import ConfigNode
from confbind.shapes import CollectionShape, Shape

if TYPE_CHECKING:
    from confbind.coercion import TypeCoercionEngine

__all__ = ["ListMaterialiser"]

logger = logging.getLogger(__name__)


class ListMaterialiser:
    """Builds sequence containers from the ordered children of a configuration node.

    Each child of the node is one element, taken in declaration order. Two
    wrapped conventions are also understood:

    * a child holding nothing but a single ``value`` key contributes that nested
      node (``{"value": "1"}`` is the element ``"1"``) when the element type is
      not itself a collection, and
    * a node whose only child is ``item`` takes its elements from the children
      of ``item``.

    Elements are coerced one at a time with the sequence's element type into a
    private buffer, and the concrete container is only constructed from the
    buffer once every element has converted. A failing element therefore never
    leaves a partially filled collection behind.

    Args:
        engine: The coercion engine used for elements and for shape lookup.
        element_key: Key of the nested value in the wrapped element convention.
        item_key: Key of the wrapper node in the wrapped list convention.
    """

    def __init__(
        self,
        engine: "TypeCoercionEngine",
        element_key: str = "value",
        item_key: str = "item",
    ):
        self._engine = engine
        self._element_key = element_key
        self._item_key = item_key

    def materialise(
        self,
        node: ConfigNode,
        destination_type: Any,
        shape: Optional[CollectionShape] = None,
    ) -> Any:
        """Build a fresh collection satisfying ``destination_type`` from ``node``.

        Args:
            node: The node whose children are the sequence elements.
            destination_type: The sequence contract to satisfy, e.g. ``list[int]``.
            shape: The already-resolved shape of ``destination_type``, if known.

        Returns:
            A newly constructed container; empty if the node has no children.

        Raises:
            UnsupportedCollectionShapeError: If ``destination_type`` is not a sequence
                contract with a constructible concrete container.
            CoercionError: If an element cannot be converted to the element type.
        """
        shape = shape or self._engine.shapes.shape_of(destination_type)
        if shape is None or shape.kind is not Shape.SEQUENCE:
            raise UnsupportedCollectionShapeError(
                f"{destination_type!r} is not a sequence type"
            )

        (element_type,) = shape.argument_types
        elements = self.elements(node, unwrap=self._holds_scalars(element_type))
        logger.debug(
            "Materialising %d element(s) as %r", len(elements), destination_type
        )

        buffer = [self._engine.coerce(element, element_type) for element in elements]
        try:
            return shape.factory(buffer)
        except TypeError as e:
            raise UnsupportedCollectionShapeError(
                f"{destination_type!r} cannot be constructed from its elements: {e}"
            ) from e

    def elements(self, node: ConfigNode, unwrap: bool = True) -> list[ConfigNode]:
        """Return the element nodes of a sequence node in declaration order.

        Args:
            node: The sequence node.
            unwrap: Whether single-``value`` children stand for their nested node.
                Elements that are themselves collections are never unwrapped, as a
                ``value`` key is then part of the element's own data.
        """
        children = node.children
        if node.value is None and list(children) == [self._item_key]:
            children = children[self._item_key].children

        if not unwrap:
            return list(children.values())
        return [self._unwrap(child) for child in children.values()]

    def _unwrap(self, child: ConfigNode) -> ConfigNode:
        if child.value is None and list(child.children) == [self._element_key]:
            return child.children[self._element_key]
        return child

    def _holds_scalars(self, element_type: Any) -> bool:
        if get_origin(element_type) is Annotated:
            element_type = get_args(element_type)[0]
        if get_origin(element_type) in (Union, types.UnionType):
            return all(
                self._holds_scalars(option)
                for option in get_args(element_type)
                if option is not type(None)
            )
        try:
            return self._engine.shapes.shape_of(element_type) is None
        except UnsupportedCollectionShapeError:
            return False
