from typing import Optional

import pytest

from confbind.errors import ActivationError, ArgumentError, CoercionError
from confbind.node import ConfigNode
from confbind.registrar import ComponentRegistrar, ComponentRegistry, make_registry


class BaseComponent:
    pass


class SimpleComponent(BaseComponent):
    ABool: bool = False
    Message: Optional[str] = None

    def __init__(self, input: int = 0):
        self.Input = input


class Pool:
    def __init__(self, sizes: list[int], labels: dict[str, str]):
        self.sizes = sizes
        self.labels = labels

    @classmethod
    def of_size(cls, size: int) -> "Pool":
        return cls([size], {})


def components(*entries, **settings) -> ConfigNode:
    return ConfigNode.from_mapping({"components": list(entries), **settings})


def test_same_type_may_be_registered_several_times():
    registry = make_registry(
        components(
            {"type": f"{__name__}.SimpleComponent", "parameters": {"input": 5}},
            {"type": f"{__name__}.SimpleComponent", "parameters": {"input": 10}},
        )
    )

    resolved = registry.resolve_all(SimpleComponent)

    assert sorted(c.Input for c in resolved) == [5, 10]


def test_constructor_injection_and_property_values():
    registry = make_registry(
        components(
            {
                "type": "SimpleComponent",
                "services": [f"{__name__}.BaseComponent"],
                "parameters": {"input": 1},
                "properties": {"Message": "hello", "ABool": True},
            },
            defaultModule=__name__,
        )
    )

    component = registry[BaseComponent]

    assert isinstance(component, SimpleComponent)
    assert (component.Input, component.Message, component.ABool) == (1, "hello", True)


def test_services_replace_the_component_type():
    registry = make_registry(
        components(
            {"type": "SimpleComponent", "services": ["BaseComponent"]},
            defaultModule=__name__,
        )
    )

    assert BaseComponent in registry
    assert SimpleComponent not in registry


def test_components_are_addressable_by_name():
    registry = make_registry(
        components(
            {"type": f"{__name__}.SimpleComponent", "name": "a", "parameters": {"input": 3}},
            {"type": f"{__name__}.SimpleComponent"},
        )
    )

    assert registry["a"].Input == 3
    assert registry["SimpleComponent"].Input == 0


def test_the_latest_registration_wins_single_resolution():
    registry = make_registry(
        components(
            {"type": f"{__name__}.SimpleComponent", "parameters": {"input": 1}},
            {"type": f"{__name__}.SimpleComponent", "parameters": {"input": 2}},
        )
    )

    assert registry[SimpleComponent].Input == 2


def test_each_resolution_activates_a_new_instance():
    registry = make_registry(components({"type": f"{__name__}.SimpleComponent"}))

    assert registry[SimpleComponent] is not registry[SimpleComponent]


def test_collection_parameters_are_materialised():
    registry = make_registry(
        components(
            {
                "type": f"{__name__}.Pool",
                "parameters": {"sizes": [1, 2, 3], "labels": {"env": "test"}},
            }
        )
    )

    pool = registry[Pool]

    assert pool.sizes == [1, 2, 3]
    assert pool.labels == {"env": "test"}


def test_metadata_is_converted_to_its_declared_type():
    [registration] = ComponentRegistrar().register_components(
        components(
            {
                "type": f"{__name__}.SimpleComponent",
                "metadata": [
                    {"key": "answer", "value": 42, "type": "int"},
                    {"key": "owner", "value": "ops"},
                ],
            }
        ),
        ComponentRegistry(),
    )

    assert registration.metadata == {"answer": 42, "owner": "ops"}


def test_factories_are_read_from_configuration():
    registry = make_registry(
        components(
            {
                "type": f"{__name__}.Pool",
                "factories": ["of_size"],
                "parameters": {"size": 4},
            }
        )
    )

    assert registry[Pool].sizes == [4]


def test_a_single_service_may_be_named_without_a_list():
    registry = make_registry(
        components(
            {"type": "SimpleComponent", "services": "BaseComponent"},
            defaultModule=__name__,
        )
    )

    assert BaseComponent in registry


def test_components_must_configure_a_type():
    with pytest.raises(ActivationError, match="Component '0' does not configure a type"):
        make_registry(components({"name": "untyped"}))


def test_unknown_keys_cannot_be_resolved():
    with pytest.raises(ActivationError, match="No component is registered for 'missing'"):
        make_registry(components())["missing"]


def test_configuration_is_required():
    with pytest.raises(ArgumentError):
        ComponentRegistrar().register_components(None, ComponentRegistry())


def test_conversion_errors_surface_on_resolution():
    registry = make_registry(
        components({"type": f"{__name__}.SimpleComponent", "parameters": {"input": "abc"}})
    )

    with pytest.raises(CoercionError, match="'abc'"):
        registry[SimpleComponent]
