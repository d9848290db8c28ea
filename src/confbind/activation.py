"""Construction of components whose arguments and properties come from configuration.

The :class:`ReflectionActivator` plays the host container's part in the
deferred binding protocol: it enumerates candidate constructors, probes the
configured :class:`~confbind.binding.DeferredParameter` objects against each
candidate's parameters, chooses a constructor, and only then resolves values.
"""

import logging
from typing import Any, Callable, Iterable

from confbind.binding import DeferredParameter
from confbind.errors import ActivationError
from confbind.members import Member, parameters_of, properties_of

__all__ = ["ReflectionActivator"]

logger = logging.getLogger(__name__)

_Slots = dict[str, tuple[Member, DeferredParameter]]


class ReflectionActivator:
    """Activates instances of a component type from deferred parameters.

    Candidate constructors are the type itself followed by any named factory
    classmethods. A candidate is usable when every parameter without a default
    is matched by a deferred parameter; each parameter takes the first deferred
    parameter that matches it. Among usable candidates the one with the most
    parameters wins, with earlier candidates winning ties.

    All values, for constructor arguments and properties alike, are resolved
    before the constructor is called, so a conversion failure never leaves a
    partially initialised instance behind.

    Args:
        component_type: The class to activate.
        parameters: Deferred values for constructor parameters.
        properties: Deferred values for settable properties, assigned after construction.
        factories: Names of alternative constructor classmethods on ``component_type``.
    """

    def __init__(
        self,
        component_type: type,
        parameters: Iterable[DeferredParameter] = (),
        properties: Iterable[DeferredParameter] = (),
        factories: Iterable[str] = (),
    ):
        self.component_type = component_type
        self._parameters = tuple(parameters)
        self._properties = tuple(properties)
        self._factories = tuple(factories)

    def constructors(self) -> list[tuple[Callable, list[Member]]]:
        """Return the candidate constructors and their parameters, in consideration order."""
        candidates = [(self.component_type, parameters_of(self.component_type))]
        for name in self._factories:
            factory = getattr(self.component_type, name, None)
            if not callable(factory):
                raise ActivationError(
                    f"{self.component_type.__qualname__} has no factory method {name!r}"
                )
            candidates.append((factory, parameters_of(factory, self.component_type)))
        return candidates

    def select(self) -> tuple[Callable, _Slots]:
        """Choose the constructor to activate with, and the deferred parameter for each of its slots.

        Raises:
            ActivationError: If no candidate constructor can be satisfied.
        """
        selected = None
        for factory, members in self.constructors():
            slots = self._match(members)
            if slots is None:
                continue
            if selected is None or len(members) > selected[2]:
                selected = (factory, slots, len(members))

        if selected is None:
            raise ActivationError(
                f"None of the constructors of {self.component_type.__qualname__} can be "
                f"satisfied by the configured parameters "
                f"{[p.source_name for p in self._parameters]}"
            )

        factory, slots, _ = selected
        return factory, slots

    def activate(self) -> Any:
        """Create a new instance of the component.

        Raises:
            ActivationError: If no candidate constructor can be satisfied.
            ConfigurationError: If a configured value cannot be converted.
        """
        factory, slots = self.select()
        arguments = {
            name: parameter.resolve(member) for name, (member, parameter) in slots.items()
        }
        property_values = self._resolve_properties()

        logger.debug(
            "Activating %s with arguments %s and properties %s",
            self.component_type.__qualname__,
            list(arguments),
            list(property_values),
        )
        instance = factory(**arguments)
        for name, value in property_values.items():
            setattr(instance, name, value)
        return instance

    def _match(self, members: list[Member]):
        slots: _Slots = {}
        for member in members:
            parameter = next((p for p in self._parameters if p.matches(member)), None)
            if parameter is not None:
                slots[member.name] = (member, parameter)
            elif not member.has_default:
                logger.debug(
                    "No configured value for required parameter %r of %s",
                    member.name,
                    self.component_type.__qualname__,
                )
                return None
        return slots

    def _resolve_properties(self) -> dict[str, Any]:
        if not self._properties:
            return {}

        values = {}
        for member in properties_of(self.component_type, settable_only=True):
            parameter = next((p for p in self._properties if p.matches(member)), None)
            if parameter is not None:
                values[member.name] = parameter.resolve(member)

        unmatched = {p.source_name for p in self._properties} - values.keys()
        if unmatched:
            logger.debug(
                "Configured properties %s match no settable property of %s",
                sorted(unmatched),
                self.component_type.__qualname__,
            )
        return values
