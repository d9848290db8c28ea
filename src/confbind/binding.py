"""Deferred binding of configured values to constructor parameters and properties.

When configuration is read, nothing yet knows which constructor or property
will receive a configured value: the host may weigh several constructors before
activating a component. Rather than values, the :class:`ParameterBinder`
therefore hands out :class:`DeferredParameter` capabilities. The host probes
each one against its candidate members with :meth:`DeferredParameter.matches`
and, once it has settled on a member, asks for the value with
:meth:`DeferredParameter.resolve`, which converts the captured configuration
node to the member's real declared type.

Both operations are pure. A deferred parameter holds only its source name and
a snapshot of its own immutable node, so it may be probed any number of times,
in any order, from any thread.

Example:
    >>> binder = ParameterBinder()
    >>> [count] = binder.bind(ConfigNode.from_mapping({"count": "5"}))
    >>> member = Member("count", MemberKind.PARAMETER, int)
    >>> count.matches(member), count.resolve(member)
    (True, 5)
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, Optional

from confbind.coercion import TypeCoercionEngine
from confbind.node import ConfigNode
from confbind.members import Member, MemberKind, backing_property

__all__ = ["ALL_KINDS", "DeferredParameter", "ParameterBinder"]

logger = logging.getLogger(__name__)

ALL_KINDS: FrozenSet[MemberKind] = frozenset(MemberKind)


@dataclass(frozen=True)
class DeferredParameter:
    """A configured value waiting for the member it will populate.

    Attributes:
        source_name: The configured name the value was declared under.
        node_provider: Returns the captured configuration node.
        engine: The coercion engine used to produce the value.
        kinds: The member kinds this parameter may be supplied to.
    """

    source_name: str
    node_provider: Callable[[], ConfigNode]
    engine: TypeCoercionEngine
    kinds: FrozenSet[MemberKind] = ALL_KINDS

    @property
    def node(self) -> ConfigNode:
        return self.node_provider()

    def matches(self, member: Member) -> bool:
        """Return whether this parameter supplies ``member``.

        Properties match on their name. Constructor parameters match on their
        own name, or on the name of their backing property, so a value
        configured as ``Input`` reaches an ``input`` parameter that populates
        an ``Input`` property.
        """
        if member.kind not in self.kinds:
            return False
        if member.name == self.source_name:
            return True
        if member.kind is MemberKind.PARAMETER:
            prop = backing_property(member)
            return prop is not None and prop.name == self.source_name
        return False

    def resolve(self, member: Member) -> Any:
        """Convert the captured node to the declared type of ``member``.

        For constructor parameters the backing property is looked up, so that a
        converter declared on the property applies even when the value arrives
        through the constructor. A converter on the parameter itself takes
        precedence.

        Raises:
            ConfigurationError: If the value cannot be converted.
        """
        return self.engine.coerce(self.node, member.declared_type, self._hint_for(member))

    def _hint_for(self, member: Member) -> Member:
        if member.kind is not MemberKind.PARAMETER or member.converter is not None:
            return member

        prop = backing_property(member)
        if prop is not None and prop.converter is not None:
            return prop
        return member


class ParameterBinder:
    """Produces deferred parameters from the named children of a configuration section.

    Args:
        engine: The coercion engine deferred parameters resolve with; a default
            engine is created if omitted.
    """

    def __init__(self, engine: Optional[TypeCoercionEngine] = None):
        self.engine = engine if engine is not None else TypeCoercionEngine()

    def bind(
        self, section: ConfigNode, kinds: FrozenSet[MemberKind] = ALL_KINDS
    ) -> list[DeferredParameter]:
        """Return one deferred parameter per child of ``section``, in declaration order."""
        parameters = [
            self.bind_one(name, node, kinds) for name, node in section.get_children()
        ]
        logger.debug(
            "Bound %d deferred parameter(s): %s",
            len(parameters),
            [p.source_name for p in parameters],
        )
        return parameters

    def bind_one(
        self, name: str, node: ConfigNode, kinds: FrozenSet[MemberKind] = ALL_KINDS
    ) -> DeferredParameter:
        return DeferredParameter(name, _snapshot(node), self.engine, frozenset(kinds))


def _snapshot(node: ConfigNode) -> Callable[[], ConfigNode]:
    return lambda: node
