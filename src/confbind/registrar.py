"""Registration of components described in configuration.

A ``components`` section lists the components to register. Each entry names
its ``type`` and may add a ``name``, the ``services`` it is exposed as,
constructor ``parameters``, ``properties``, alternative ``factories`` and
``metadata``:

.. code-block:: json

    {
      "defaultModule": "myapp.components",
      "components": [
        {
          "type": "Counter",
          "services": ["myapp.api.Meter"],
          "parameters": {"count": 5, "labels": ["a", "b"]},
          "properties": {"Enabled": true},
          "metadata": [{"key": "answer", "value": 42, "type": "int"}]
        }
      ]
    }

Components are activated afresh on every resolution; lifetime and ownership
management belong to the host container.
"""

import builtins
import logging
import types
from dataclasses import dataclass
from typing import Any, Optional, Union

from confbind.activation import ReflectionActivator
from confbind.binding import ParameterBinder
from confbind.configuration import (
    default_module,
    get_parameters,
    get_properties,
    get_type,
    load_type,
)
from confbind.errors import ActivationError, ArgumentError
from confbind.node import ConfigNode

__all__ = [
    "ComponentKey",
    "ComponentRegistration",
    "ComponentRegistry",
    "ComponentRegistrar",
    "make_registry",
]

logger = logging.getLogger(__name__)

ComponentKey = Union[str, type]


@dataclass(frozen=True)
class ComponentRegistration:
    """A configured component.

    Attributes:
        name: The configured name, or the component type's name if none was given.
        activator: Creates instances of the component.
        services: The types the component may be resolved as.
        metadata: Arbitrary values attached to the registration.
    """

    name: str
    activator: ReflectionActivator
    services: tuple[type, ...]
    metadata: dict[str, Any]


class ComponentRegistry:
    """Registrations addressable by name or by service type.

    Example:
        >>> registry = make_registry(config)
        >>> meter = registry[Meter]
        >>> all_meters = registry.resolve_all(Meter)
    """

    def __init__(self):
        self._registrations: list[ComponentRegistration] = []

    def register(self, registration: ComponentRegistration):
        self._registrations.append(registration)

    def registrations(self, key: Optional[ComponentKey] = None) -> list[ComponentRegistration]:
        """Return registrations in registration order, optionally filtered by name or service."""
        if key is None:
            return list(self._registrations)
        return [r for r in self._registrations if _provides(r, key)]

    def resolve(self, key: ComponentKey) -> Any:
        """Activate the most recently registered component for ``key``.

        Raises:
            ActivationError: If nothing is registered for ``key``.
        """
        registrations = self.registrations(key)
        if not registrations:
            raise ActivationError(f"No component is registered for {_describe(key)}")
        return registrations[-1].activator.activate()

    def resolve_all(self, key: ComponentKey) -> list[Any]:
        """Activate every component registered for ``key``, in registration order."""
        return [r.activator.activate() for r in self.registrations(key)]

    def __getitem__(self, key: ComponentKey) -> Any:
        return self.resolve(key)

    def __contains__(self, key: ComponentKey) -> bool:
        return any(_provides(r, key) for r in self._registrations)


class ComponentRegistrar:
    """Reads the ``components`` section of a configuration and registers each entry.

    Args:
        binder: Produces the deferred parameters and properties of each component.
    """

    def __init__(self, binder: Optional[ParameterBinder] = None):
        self._binder = binder if binder is not None else ParameterBinder()

    def register_components(
        self, config: ConfigNode, registry: ComponentRegistry
    ) -> list[ComponentRegistration]:
        """Register every configured component into ``registry``.

        Returns:
            The new registrations, in configuration order.

        Raises:
            ArgumentError: If ``config`` or ``registry`` is None.
            ActivationError: If a component's type or services cannot be resolved.
        """
        if config is None:
            raise ArgumentError("A configuration is required")
        if registry is None:
            raise ArgumentError("A component registry is required")

        module = default_module(config)
        registered = []
        for key, component in config.get_children("components"):
            registration = self._registration_for(key, component, module)
            registry.register(registration)
            registered.append(registration)
            logger.debug(
                "Registered component %r as %s",
                registration.name,
                [s.__qualname__ for s in registration.services],
            )
        return registered

    def _registration_for(
        self, key: str, component: ConfigNode, module: Optional[types.ModuleType]
    ) -> ComponentRegistration:
        component_type = get_type(component, "type", module)
        if component_type is None:
            raise ActivationError(f"Component {key!r} does not configure a type")

        activator = ReflectionActivator(
            component_type,
            get_parameters(component, "parameters", self._binder),
            get_properties(component, "properties", self._binder),
            self._strings(component.section("factories")),
        )
        services = tuple(
            load_type(name, module) for name in self._strings(component.section("services"))
        )

        return ComponentRegistration(
            component.get("name") or component_type.__qualname__,
            activator,
            services or (component_type,),
            self._metadata(component.section("metadata")),
        )

    def _strings(self, section: ConfigNode) -> list[str]:
        # A single name may be given in place of a list.
        if section.value is not None:
            return [section.value]
        return self._binder.engine.coerce(section, list[str])

    def _metadata(self, section: ConfigNode) -> dict[str, Any]:
        metadata = {}
        for _, item in section.get_children():
            key = item.get("key")
            if not key:
                raise ActivationError("Metadata items must configure a key")
            type_name = item.get("type")
            value_type = load_type(type_name, builtins) if type_name else str
            metadata[key] = self._binder.engine.coerce(item.section("value"), value_type)
        return metadata


def make_registry(config: ConfigNode, binder: Optional[ParameterBinder] = None) -> ComponentRegistry:
    """Build a registry holding every component configured in ``config``."""
    registry = ComponentRegistry()
    ComponentRegistrar(binder).register_components(config, registry)
    return registry


def _provides(registration: ComponentRegistration, key: ComponentKey) -> bool:
    if isinstance(key, str):
        return registration.name == key
    return key in registration.services


def _describe(key: ComponentKey) -> str:
    return repr(key) if isinstance(key, str) else key.__qualname__
