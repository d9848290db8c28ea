"""Immutable hierarchical configuration tree.

A :class:`ConfigNode` is one addressable point in a configuration tree: it may
hold a scalar string value and an ordered set of named children. Nodes are
frozen once built, so any number of readers may walk the same tree without
coordination.

Keys address nested nodes with ``:`` as the path separator, following the
convention of flattened configuration sources (``"components:0:type"``).

Trees are normally produced by a format-specific loader; this module only
offers builders from already-parsed Python data:

    >>> config = ConfigNode.from_mapping({"count": 5, "names": ["a", "b"]})
    >>> config.get("count")
    '5'
    >>> [name for name, _ in config.get_children("names")]
    ['0', '1']
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Union

__all__ = ["ConfigNode", "EMPTY_NODE", "KEY_SEPARATOR"]

KEY_SEPARATOR = ":"


@dataclass(frozen=True)
class ConfigNode:
    """A node in the configuration tree.

    Attributes:
        value: The scalar string value held by this node, or None.
        children: Read-only mapping of child names to nodes, in declaration order.
    """

    value: Optional[str] = None
    children: Mapping[str, "ConfigNode"] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "children", MappingProxyType(dict(self.children)))

    @property
    def is_empty(self) -> bool:
        return self.value is None and len(self.children) == 0

    def section(self, key: str) -> "ConfigNode":
        """Return the node at ``key``, or an empty node if nothing is configured there."""
        node = self
        for part in _split(key):
            node = node.children.get(part)
            if node is None:
                return EMPTY_NODE
        return node

    def get(self, key: str) -> Optional[str]:
        """Return the scalar value at ``key``, or None if absent."""
        return self.section(key).value

    def get_children(self, key: str = "") -> list[tuple[str, "ConfigNode"]]:
        """Return the ``(name, node)`` children at ``key`` in declaration order."""
        return list(self.section(key).children.items())

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ConfigNode":
        """Build a tree from nested mappings, lists and scalars.

        Lists become children named ``"0"``, ``"1"``, ... in order. Scalars are
        rendered as strings; booleans as ``"true"``/``"false"`` and None as an
        absent value.
        """
        return _node_from(data)

    @classmethod
    def from_pairs(
        cls,
        pairs: Union[Mapping[str, Any], Iterable[tuple[str, Any]]],
    ) -> "ConfigNode":
        """Build a tree from flat ``("a:b:c", value)`` pairs.

        Children appear in the order their first key was seen.
        """
        if isinstance(pairs, Mapping):
            pairs = pairs.items()

        root = _NodeBuilder()
        for key, value in pairs:
            target = root
            for part in _split(key):
                target = target.children.setdefault(part, _NodeBuilder())
            target.value = _render(value)
        return root.freeze()


EMPTY_NODE = ConfigNode()


class _NodeBuilder:
    def __init__(self):
        self.value: Optional[str] = None
        self.children: dict[str, "_NodeBuilder"] = {}

    def freeze(self) -> ConfigNode:
        return ConfigNode(
            self.value,
            {name: child.freeze() for name, child in self.children.items()},
        )


def _split(key: str) -> list[str]:
    if not key:
        return []
    return key.split(KEY_SEPARATOR)


def _render(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _node_from(data: Any) -> ConfigNode:
    if isinstance(data, ConfigNode):
        return data
    if isinstance(data, Mapping):
        return ConfigNode(None, {str(k): _node_from(v) for k, v in data.items()})
    if isinstance(data, (list, tuple)):
        return ConfigNode(None, {str(i): _node_from(v) for i, v in enumerate(data)})
    return ConfigNode(_render(data))
