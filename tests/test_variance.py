import pathlib
import sys

import pytest

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1]))

from hieralloc.allocation import apply_amount, apply_percentage, build_baseline, update_field
from hieralloc.config import EngineSettings
from hieralloc.models import build_tree, find_node
from hieralloc.sample_data import sample_definition
from hieralloc.variance import format_variance, variance, variance_percent


def _sample():
    tree = build_tree(sample_definition())
    return tree, build_baseline(tree)


def test_unchanged_tree_reports_zero_percent_with_decimals():
    tree, baseline = _sample()

    assert variance(find_node(tree, "phones"), baseline) == "0.00%"
    assert variance(find_node(tree, "electronics"), baseline) == "0.00%"


def test_amount_scenario_variances():
    tree, baseline = _sample()

    tree = apply_amount(tree, "electronics", 300, baseline).tree

    assert variance(find_node(tree, "phones"), baseline) == "20.00%"
    assert variance(find_node(tree, "laptops"), baseline) == "20.00%"
    assert variance(find_node(tree, "electronics"), baseline) == "20.00%"
    assert variance(find_node(tree, "furniture"), baseline) == "0.00%"


def test_percentage_scenario_variance():
    tree, baseline = _sample()

    tree = apply_percentage(tree, "furniture", 10, baseline).tree

    assert variance(find_node(tree, "tables"), baseline) == "10.00%"
    assert variance(find_node(tree, "furniture"), baseline) == "10.00%"


def test_negative_variance():
    tree, baseline = _sample()

    tree = apply_amount(tree, "phones", -24, baseline).tree

    assert variance(find_node(tree, "phones"), baseline) == "-3.00%"


def test_zero_baseline_leaf_always_reports_zero():
    tree = build_tree({"id": "root", "children": [{"id": "new", "value": 0}]})
    baseline = build_baseline(tree)

    tree = update_field(tree, "new", "value", 50).tree

    assert variance(find_node(tree, "new"), baseline) == "0%"
    assert variance_percent(find_node(tree, "new"), baseline) is None


def test_branch_variance_only_looks_at_direct_children():
    tree = build_tree(
        {
            "id": "root",
            "children": [
                {"id": "group", "children": [{"id": "a", "value": 100}]},
                {"id": "c", "value": 100},
            ],
        }
    )
    baseline = build_baseline(tree)

    grown = apply_amount(tree, "a", 100, baseline).tree
    assert variance(grown[0], baseline) == "0.00%"

    grown = update_field(grown, "c", "value", 150).tree
    assert variance(grown[0], baseline) == "50.00%"


def test_branch_of_branches_reports_zero():
    tree = build_tree(
        {"id": "root", "children": [{"id": "group", "children": [{"id": "a", "value": 100}]}]}
    )
    baseline = build_baseline(tree)

    tree = apply_amount(tree, "root", 50, baseline).tree

    assert variance(tree[0], baseline) == "0%"
    assert variance(find_node(tree, "group"), baseline) == "50.00%"


def test_variance_decimals_setting():
    tree, baseline = _sample()
    tree = apply_amount(tree, "electronics", 300, baseline).tree

    settings = EngineSettings(variance_decimals=1)

    assert variance(find_node(tree, "phones"), baseline, settings) == "20.0%"


def test_format_variance():
    assert format_variance(12.5) == "12.50%"
    assert format_variance(None) == "0%"
    assert variance_percent(build_tree({"id": "x", "value": 5})[0], {"x": 4}) == pytest.approx(25.0)
