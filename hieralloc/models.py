"""Data models for the hierarchical allocation engine."""
from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Optional, Sequence, Union

PENDING_INPUT_ALIASES: dict[str, str] = {
    "col1": "pending_input",
    "pendingInput": "pending_input",
}

_KNOWN_KEYS = frozenset({"id", "label", "children", "value", "pending_input"})


@dataclass(frozen=True, slots=True)
class Node:
    """Represents a single entry in the allocation hierarchy.

    A node is a leaf when ``children`` is ``None`` and a branch otherwise,
    even when the children tuple is empty. Only leaves carry a ``value``.
    """

    id: str
    label: str = ""
    children: Optional[tuple["Node", ...]] = None
    value: Any = None
    pending_input: Any = ""
    extras: Mapping[str, Any] = field(default_factory=dict, hash=False)

    @property
    def is_leaf(self) -> bool:
        return self.children is None

    @property
    def numeric_value(self) -> float:
        """Return the leaf value coerced to a number."""
        return coerce_number(self.value)


Tree = tuple[Node, ...]
TreeLike = Union[Node, Sequence[Node]]


def finite_float(value: Any) -> Optional[float]:
    """Return a real number (``int``, ``float``, ``Fraction``, ``Decimal``...) as
    a finite float, or ``None`` for anything else. Bools are not numbers here.
    """

    if isinstance(value, bool) or not isinstance(value, (numbers.Real, Decimal)):
        return None
    try:
        number = float(value)
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def coerce_number(value: Any) -> float:
    """Return ``value`` as a finite float, defaulting to ``0.0``."""

    if isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            value = float(text)
        except ValueError:
            return 0.0
    number = finite_float(value)
    return 0.0 if number is None else number


def parse_delta(value: Any) -> Optional[float]:
    """Parse an operator-entered delta.

    Returns ``None`` when the value is not a finite number. Blank text is
    read as ``0.0`` so that an empty input field behaves as a no-op.
    """

    if isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            value = float(text)
        except ValueError:
            return None
    return finite_float(value)


def check_unique_ids(tree: TreeLike) -> None:
    """Raise :class:`ValueError` when an id appears more than once in ``tree``."""

    seen: set[str] = set()
    for node, _ in iter_nodes(tree):
        if node.id in seen:
            raise ValueError(f"Duplicate node id: {node.id!r}")
        seen.add(node.id)


def as_tree(tree: TreeLike) -> Tree:
    if isinstance(tree, Node):
        return (tree,)
    return tuple(tree)


def iter_nodes(tree: TreeLike, level: int = 0) -> Iterator[tuple[Node, int]]:
    """Yield ``(node, depth)`` pairs in pre-order."""

    for node in as_tree(tree):
        yield node, level
        if node.children:
            yield from iter_nodes(node.children, level + 1)


def iter_leaves(tree: TreeLike) -> Iterator[Node]:
    for node, _ in iter_nodes(tree):
        if node.is_leaf:
            yield node


def find_node(tree: TreeLike, node_id: str) -> Optional[Node]:
    for node, _ in iter_nodes(tree):
        if node.id == node_id:
            return node
    return None


def build_node(definition: Mapping[str, Any], seen: Optional[set[str]] = None) -> Node:
    """Build a :class:`Node` from a nested mapping definition."""

    if seen is None:
        seen = set()
    if not isinstance(definition, Mapping):
        raise ValueError(f"Node definition must be a mapping, got {type(definition).__name__}")

    data = {PENDING_INPUT_ALIASES.get(key, key): value for key, value in definition.items()}
    raw_id = data.get("id")
    if raw_id is None or str(raw_id).strip() == "":
        raise ValueError(f"Node definition is missing an id: {dict(definition)!r}")
    node_id = str(raw_id)
    if node_id in seen:
        raise ValueError(f"Duplicate node id: {node_id!r}")
    seen.add(node_id)

    children: Optional[tuple[Node, ...]] = None
    raw_children = data.get("children")
    if raw_children is not None:
        if not isinstance(raw_children, (list, tuple)):
            raise ValueError(f"Children of {node_id!r} must be a list of node definitions")
        children = tuple(build_node(child, seen) for child in raw_children)

    extras = {key: value for key, value in data.items() if key not in _KNOWN_KEYS}
    pending = data.get("pending_input")
    return Node(
        id=node_id,
        label=str(data.get("label") or ""),
        children=children,
        value=data.get("value") if children is None else None,
        pending_input="" if pending is None else pending,
        extras=MappingProxyType(extras),
    )


def build_tree(definition: Union[Mapping[str, Any], Iterable[Mapping[str, Any]]]) -> Tree:
    """Build a tree (a tuple of root nodes) from one or more definitions."""

    if isinstance(definition, Mapping):
        definition = [definition]
    seen: set[str] = set()
    return tuple(build_node(item, seen) for item in definition)


__all__ = [
    "Node",
    "Tree",
    "TreeLike",
    "as_tree",
    "build_node",
    "build_tree",
    "check_unique_ids",
    "coerce_number",
    "find_node",
    "finite_float",
    "iter_leaves",
    "iter_nodes",
    "parse_delta",
]
