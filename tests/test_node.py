import dataclasses

import pytest

from confbind.node import ConfigNode, EMPTY_NODE


@pytest.fixture
def config() -> ConfigNode:
    return ConfigNode.from_mapping(
        {
            "defaultModule": "myapp.components",
            "components": [
                {"type": "Counter", "parameters": {"count": 5, "enabled": True}},
                {"type": "Gauge", "parameters": {"label": None}},
            ],
        }
    )


def test_scalars_are_rendered_as_strings(config):
    assert config.get("components:0:parameters:count") == "5"
    assert config.get("components:0:parameters:enabled") == "true"
    assert config.get("components:1:parameters:label") is None


def test_lists_become_index_named_children_in_order(config):
    names = [name for name, _ in config.get_children("components")]
    assert names == ["0", "1"]
    assert [node.get("type") for _, node in config.get_children("components")] == [
        "Counter",
        "Gauge",
    ]


def test_missing_keys_give_empty_results(config):
    assert config.get("no:such:key") is None
    assert config.get_children("components:0:properties") == []
    assert config.section("components:7") is EMPTY_NODE
    assert config.section("components:7").is_empty


def test_empty_key_addresses_the_node_itself(config):
    assert config.section("") is config
    assert [name for name, _ in config.get_children()] == ["defaultModule", "components"]


def test_nodes_cannot_be_modified(config):
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.value = "changed"

    with pytest.raises(TypeError):
        config.children["extra"] = ConfigNode("x")


def test_nodes_are_isolated_from_the_mapping_they_were_built_from():
    children = {"a": ConfigNode("1")}
    node = ConfigNode(None, children)
    children["b"] = ConfigNode("2")

    assert list(node.children) == ["a"]


def test_from_pairs_builds_nested_nodes_in_first_seen_order():
    config = ConfigNode.from_pairs(
        [
            ("list:1", "second"),
            ("list:0", "first"),
            ("name", "value"),
            ("name:nested", "child"),
        ]
    )

    assert [node.value for _, node in config.get_children("list")] == ["second", "first"]
    assert config.get("name") == "value"
    assert config.get("name:nested") == "child"


def test_from_pairs_accepts_a_mapping():
    config = ConfigNode.from_pairs({"defaultModule": "json", "flag": False})

    assert config.get("defaultModule") == "json"
    assert config.get("flag") == "false"
