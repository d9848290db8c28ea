import collections
from typing import Iterable, Iterator, Optional, Sequence

import pytest

from confbind.coercion import TypeCoercionEngine
from confbind.errors import CoercionError, UnsupportedCollectionShapeError
from confbind.node import ConfigNode


class TrackingList(list):
    created: list["TrackingList"] = []

    def __init__(self, items=()):
        super().__init__(items)
        TrackingList.created.append(self)


@pytest.fixture
def engine() -> TypeCoercionEngine:
    return TypeCoercionEngine()


@pytest.fixture
def materialiser(engine):
    return engine.lists


def node(data) -> ConfigNode:
    return ConfigNode.from_mapping({"x": data}).section("x")


def test_elements_convert_in_declaration_order(materialiser):
    assert materialiser.materialise(node(["1", "2", "3"]), list[int]) == [1, 2, 3]


def test_order_follows_declaration_not_names(materialiser):
    values = [str(n) for n in range(12)]

    assert materialiser.materialise(node(values), list[str]) == values

    reversed_names = ConfigNode.from_pairs([("x:2", "c"), ("x:1", "b"), ("x:0", "a")])
    assert materialiser.materialise(reversed_names.section("x"), list[str]) == ["c", "b", "a"]


def test_zero_children_give_an_empty_collection(engine):
    assert engine.coerce(node([]), list[int]) == []
    assert engine.coerce(None, list[int]) == []
    assert engine.coerce(node({}), frozenset[int]) == frozenset()


def test_each_materialisation_builds_a_fresh_collection(materialiser):
    source = node(["1", "2"])

    first = materialiser.materialise(source, list[int])
    second = materialiser.materialise(source, list[int])

    assert first == second
    assert first is not second


@pytest.mark.parametrize(
    "destination_type, expected",
    [
        (Sequence[int], [1, 2, 2]),
        (Iterable[int], [1, 2, 2]),
        (tuple[int, ...], (1, 2, 2)),
        (set[int], {1, 2}),
        (frozenset[int], frozenset({1, 2})),
        (collections.deque[int], collections.deque([1, 2, 2])),
    ],
)
def test_sequence_contracts_are_satisfied_by_concrete_containers(
    engine, destination_type, expected
):
    result = engine.coerce(node(["1", "2", "2"]), destination_type)

    assert result == expected
    assert type(result) is type(expected)


def test_unparameterised_sequences_hold_raw_values(engine):
    assert engine.coerce(node(["1", "two"]), list) == ["1", "two"]


def test_wrapped_elements_are_unwrapped(engine):
    wrapped = node([{"value": "1"}, {"value": "2"}])

    assert engine.coerce(wrapped, list[int]) == [1, 2]


def test_item_wrapper_holds_the_elements(engine):
    wrapped = node({"item": [{"value": "4"}, {"value": "5"}]})

    assert engine.coerce(wrapped, list[int]) == [4, 5]


def test_custom_element_key():
    engine = TypeCoercionEngine(element_key="v")

    assert engine.coerce(node([{"v": "1"}, {"v": "2"}]), list[int]) == [1, 2]


def test_elements_may_be_collections_and_mappings(engine):
    assert engine.coerce(node([["1", "2"], ["3"]]), list[list[int]]) == [[1, 2], [3]]
    assert engine.coerce(node([{"a": "1"}, {"b": "2"}]), list[dict[str, int]]) == [
        {"a": 1},
        {"b": 2},
    ]


def test_collection_elements_keep_their_own_value_keys(engine):
    elements = node([{"value": "x"}, {"value": "y"}])

    assert engine.coerce(elements, list[dict[str, str]]) == [{"value": "x"}, {"value": "y"}]
    assert engine.coerce(elements, list[Optional[dict[str, str]]]) == [
        {"value": "x"},
        {"value": "y"},
    ]


def test_list_subclasses_that_cannot_take_a_buffer_are_unsupported(engine):
    class Pair(list):
        def __init__(self, first, second):
            super().__init__([first, second])

    with pytest.raises(UnsupportedCollectionShapeError, match="Pair"):
        engine.coerce(node(["1", "2"]), Pair)


def test_list_subclasses_are_constructed_directly(engine):
    result = engine.coerce(node(["a"]), TrackingList)

    assert isinstance(result, TrackingList)
    assert result == ["a"]


def test_failing_element_leaves_no_collection_behind(engine):
    TrackingList.created.clear()

    with pytest.raises(CoercionError, match="'abc' is not a valid int"):
        engine.coerce(node(["1", "abc", "3"]), TrackingList[int])

    assert TrackingList.created == []


@pytest.mark.parametrize("destination_type", [Iterator[int], tuple[int, str]])
def test_unconstructible_contracts_are_unsupported(engine, destination_type):
    with pytest.raises(UnsupportedCollectionShapeError):
        engine.coerce(node(["1"]), destination_type)


def test_materialiser_rejects_non_sequence_destinations(materialiser):
    with pytest.raises(UnsupportedCollectionShapeError, match="not a sequence type"):
        materialiser.materialise(node(["1"]), dict[str, int])

    with pytest.raises(UnsupportedCollectionShapeError):
        materialiser.materialise(node(["1"]), int)
