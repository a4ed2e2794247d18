"""Core aggregation and distribution utilities."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from .config import DEFAULT_SETTINGS, EngineSettings
from .models import (
    PENDING_INPUT_ALIASES,
    Node,
    Tree,
    TreeLike,
    as_tree,
    coerce_number,
    finite_float,
    iter_leaves,
)

logger = logging.getLogger(__name__)

Baseline = Mapping[str, float]

_STRUCTURAL_FIELDS = frozenset({"id", "children"})
_NODE_FIELDS = frozenset({"label", "value", "pending_input"})


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a mutation request.

    ``matched`` is ``False`` when no node carries the target id, in which case
    ``tree`` is the input tree. ``applied`` is ``False`` when the delta was a
    no-op (zero or not a finite number).
    """

    tree: Tree
    matched: bool
    applied: bool


def aggregate(node: Node) -> float:
    """Return the value of a leaf or the recursive sum of a branch."""

    if node.children is None:
        return coerce_number(node.value)
    return sum((aggregate(child) for child in node.children), 0.0)


def aggregate_tree(tree: TreeLike) -> float:
    return sum((aggregate(node) for node in as_tree(tree)), 0.0)


def build_baseline(tree: TreeLike) -> Baseline:
    """Snapshot every leaf value keyed by id.

    Branches are not recorded; their baseline is derived on demand through
    :func:`baseline_weight`.
    """

    snapshot: Dict[str, float] = {}
    for leaf in iter_leaves(tree):
        snapshot[leaf.id] = coerce_number(leaf.value)
    return MappingProxyType(snapshot)


def baseline_weight(node: Node, baseline: Baseline) -> float:
    """Sum of the baseline values of the leaves below ``node``."""

    return sum((baseline.get(leaf.id, 0.0) for leaf in iter_leaves(node)), 0.0)


def _effective_delta(delta: Any) -> Optional[float]:
    number = finite_float(delta)
    return None if number == 0 else number


def _clear_pending(node: Node) -> Node:
    if node.pending_input == "":
        return node
    return replace(node, pending_input="")


def _update_by_id(
    nodes: Tuple[Node, ...], node_id: str, updater: Callable[[Node], Node]
) -> Tuple[Tuple[Node, ...], bool]:
    """Rebuild the path to ``node_id``; untouched subtrees are shared."""

    updated = list(nodes)
    for index, node in enumerate(nodes):
        if node.id == node_id:
            updated[index] = updater(node)
            return tuple(updated), True
        if node.children:
            children, matched = _update_by_id(node.children, node_id, updater)
            if matched:
                updated[index] = replace(node, children=children)
                return tuple(updated), True
    return nodes, False


def _distribute_shares(
    children: Sequence[Node],
    amount: float,
    baseline: Baseline,
    leaf_update: Callable[[Node, float], Node],
) -> Tuple[Node, ...]:
    weights = [baseline_weight(child, baseline) for child in children]
    total_weight = sum(weights, 0.0)
    distributed = []
    for child, weight in zip(children, weights):
        share = 0.0 if total_weight == 0 else (weight / total_weight) * amount
        if child.children is not None:
            distributed.append(
                replace(
                    child,
                    children=_distribute_shares(child.children, share, baseline, leaf_update),
                )
            )
        else:
            distributed.append(leaf_update(child, share))
    return tuple(distributed)


def distribute_amount(
    children: Sequence[Node],
    amount: float,
    baseline: Baseline,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Tuple[Node, ...]:
    """Add ``amount`` to ``children`` weighted by their baseline subtree totals."""

    def add_share(leaf: Node, share: float) -> Node:
        return replace(leaf, value=settings.round(coerce_number(leaf.value) + share))

    return _distribute_shares(children, amount, baseline, add_share)


def distribute_total(
    children: Sequence[Node],
    total: float,
    baseline: Baseline,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Tuple[Node, ...]:
    """Replace the values below ``children`` so they sum to ``total``."""

    def set_share(leaf: Node, share: float) -> Node:
        return replace(leaf, value=settings.round(share))

    return _distribute_shares(children, total, baseline, set_share)


def scale_leaves(
    children: Sequence[Node],
    percent: float,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Tuple[Node, ...]:
    """Grow every leaf below ``children`` by ``percent`` of its own value."""

    scaled = []
    for child in children:
        if child.children is not None:
            scaled.append(replace(child, children=scale_leaves(child.children, percent, settings)))
        else:
            current = coerce_number(child.value)
            scaled.append(replace(child, value=settings.round(current + current * percent / 100)))
    return tuple(scaled)


def _mutate(
    tree: TreeLike,
    target_id: str,
    kind: str,
    delta: Any,
    apply_delta: Optional[Callable[[Node], Node]],
) -> MutationResult:
    roots = as_tree(tree)

    def updater(node: Node) -> Node:
        if apply_delta is not None:
            node = apply_delta(node)
        return _clear_pending(node)

    updated, matched = _update_by_id(roots, target_id, updater)
    applied = matched and apply_delta is not None
    logger.debug(
        "%s %r on %r: matched=%s applied=%s", kind, delta, target_id, matched, applied
    )
    return MutationResult(tree=updated, matched=matched, applied=applied)


def apply_amount(
    tree: TreeLike,
    target_id: str,
    amount: Any,
    baseline: Baseline,
    settings: Optional[EngineSettings] = None,
) -> MutationResult:
    """Add ``amount`` to the node ``target_id``.

    A leaf target gains ``amount`` directly. A branch target spreads it over
    its direct children in proportion to their baseline subtree totals, and
    each branch child cascades its share the same way. Leaves written by the
    cascade are rounded with the configured :class:`~hieralloc.config.RoundingMode`.
    """

    settings = settings or DEFAULT_SETTINGS
    delta = _effective_delta(amount)

    def add(node: Node) -> Node:
        if node.children is None:
            return replace(node, value=coerce_number(node.value) + delta)
        return replace(node, children=distribute_amount(node.children, delta, baseline, settings))

    return _mutate(tree, target_id, "amount", amount, None if delta is None else add)


def apply_percentage(
    tree: TreeLike,
    target_id: str,
    percent: Any,
    baseline: Optional[Baseline] = None,
    settings: Optional[EngineSettings] = None,
) -> MutationResult:
    """Grow every leaf under ``target_id`` by ``percent`` of its current value.

    ``baseline`` is accepted for signature symmetry with :func:`apply_amount`;
    percentage growth is leaf-local and never consults it.
    """

    settings = settings or DEFAULT_SETTINGS
    delta = _effective_delta(percent)

    def grow(node: Node) -> Node:
        if node.children is None:
            return scale_leaves((node,), delta, settings)[0]
        return replace(node, children=scale_leaves(node.children, delta, settings))

    return _mutate(tree, target_id, "percent", percent, None if delta is None else grow)


def allocate_total(
    tree: TreeLike,
    target_id: str,
    total: Any,
    baseline: Baseline,
    settings: Optional[EngineSettings] = None,
) -> MutationResult:
    """Set the subtree total of ``target_id`` to ``total``.

    Shares follow the baseline weights exactly as :func:`apply_amount` does,
    but leaves are overwritten rather than incremented. A total of zero is a
    valid request and empties the subtree.
    """

    settings = settings or DEFAULT_SETTINGS
    target_total = finite_float(total)

    def assign(node: Node) -> Node:
        if node.children is None:
            return replace(node, value=settings.round(target_total))
        return replace(
            node, children=distribute_total(node.children, target_total, baseline, settings)
        )

    return _mutate(tree, target_id, "total", total, None if target_total is None else assign)


def update_field(tree: TreeLike, target_id: str, field: str, value: Any) -> MutationResult:
    """Replace a non-computed field on the node ``target_id``."""

    field = PENDING_INPUT_ALIASES.get(field, field)
    if field in _STRUCTURAL_FIELDS or field == "extras":
        raise ValueError(f"Field {field!r} cannot be edited directly")

    def edit(node: Node) -> Node:
        if field == "value" and node.children is not None:
            raise ValueError(f"Branch {node.id!r} derives its value from its children")
        if field in _NODE_FIELDS:
            return replace(node, **{field: value})
        extras = dict(node.extras)
        extras[field] = value
        return replace(node, extras=MappingProxyType(extras))

    updated, matched = _update_by_id(as_tree(tree), target_id, edit)
    logger.debug("edit %s=%r on %r: matched=%s", field, value, target_id, matched)
    return MutationResult(tree=updated, matched=matched, applied=matched)


__all__ = [
    "Baseline",
    "MutationResult",
    "aggregate",
    "aggregate_tree",
    "allocate_total",
    "apply_amount",
    "apply_percentage",
    "baseline_weight",
    "build_baseline",
    "distribute_amount",
    "distribute_total",
    "scale_leaves",
    "update_field",
]
