import math
import pathlib
import sys
from decimal import Decimal
from fractions import Fraction

import pytest

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1]))

from hieralloc.config import EngineSettings, RoundingMode, round_value
from hieralloc.models import (
    Node,
    build_tree,
    check_unique_ids,
    coerce_number,
    find_node,
    finite_float,
    iter_nodes,
    parse_delta,
)


def test_leaf_and_empty_branch_are_distinguished():
    tree = build_tree(
        [
            {"id": "leaf", "label": "Leaf", "value": 3},
            {"id": "branch", "label": "Branch", "children": []},
        ]
    )

    assert tree[0].is_leaf
    assert not tree[1].is_leaf
    assert tree[1].children == ()


def test_definition_extras_and_input_alias():
    tree = build_tree({"id": "x", "value": 1, "col1": "25", "currency": "USD"})

    node = tree[0]
    assert node.pending_input == "25"
    assert node.extras == {"currency": "USD"}


def test_branch_value_is_dropped():
    tree = build_tree({"id": "b", "value": 99, "children": [{"id": "c", "value": 1}]})

    assert tree[0].value is None


def test_duplicate_ids_are_rejected_across_levels():
    with pytest.raises(ValueError, match="Duplicate"):
        build_tree(
            [
                {"id": "a", "children": [{"id": "x", "value": 1}]},
                {"id": "b", "children": [{"id": "x", "value": 2}]},
            ]
        )


@pytest.mark.parametrize(
    "definition",
    [
        {"label": "no id"},
        {"id": "  "},
        {"id": "a", "children": "nope"},
    ],
)
def test_invalid_definitions(definition):
    with pytest.raises(ValueError):
        build_tree(definition)


def test_iter_nodes_and_find():
    tree = build_tree(
        {"id": "r", "children": [{"id": "a", "children": [{"id": "b", "value": 1}]}]}
    )

    assert [(node.id, level) for node, level in iter_nodes(tree)] == [("r", 0), ("a", 1), ("b", 2)]
    assert find_node(tree, "b").value == 1
    assert find_node(tree, "zzz") is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 0.0),
        (5, 5.0),
        (2.5, 2.5),
        (" 12 ", 12.0),
        ("", 0.0),
        ("abc", 0.0),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
        (True, 1.0),
        ([1], 0.0),
    ],
)
def test_coerce_number(raw, expected):
    assert coerce_number(raw) == expected


def test_parse_delta():
    assert parse_delta("300") == 300.0
    assert parse_delta("") == 0.0
    assert parse_delta("abc") is None
    assert parse_delta(float("inf")) is None
    assert parse_delta(None) is None
    assert math.isclose(parse_delta("-2.5"), -2.5)


def test_round_value_modes():
    assert round_value(2.5) == 3
    assert round_value(-2.5) == -3
    assert round_value(2.4) == 2
    assert round_value(2.5, RoundingMode.HALF_EVEN) == 2
    assert round_value(3.5, RoundingMode.HALF_EVEN) == 4


def test_settings_validation():
    assert EngineSettings(rounding="half_even").rounding is RoundingMode.HALF_EVEN
    with pytest.raises(ValueError):
        EngineSettings(rounding="truncate")
    with pytest.raises(ValueError):
        EngineSettings(variance_decimals=-1)


def test_round_value_near_ties():
    assert round_value(0.49999999999999994) == 0
    assert round_value(-0.49999999999999994) == 0
    assert round_value(4503599627370497.0) == 4503599627370497
    assert round_value(-1.5) == -2


@pytest.mark.parametrize(
    "raw, expected",
    [
        (Decimal("2.5"), 2.5),
        (Fraction(1, 4), 0.25),
        (Decimal("NaN"), None),
        (True, None),
        ("3", None),
    ],
)
def test_finite_float(raw, expected):
    assert finite_float(raw) == expected


def test_check_unique_ids():
    tree = build_tree({"id": "r", "children": [{"id": "a", "value": 1}]})
    check_unique_ids(tree)

    with pytest.raises(ValueError, match="Duplicate"):
        check_unique_ids(tree + (Node("a", value=2),))
