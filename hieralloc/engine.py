"""Stateful front end over the allocation functions."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Union

from .allocation import (
    Baseline,
    MutationResult,
    aggregate,
    allocate_total,
    apply_amount,
    apply_percentage,
    build_baseline,
    update_field,
)
from .config import DEFAULT_SETTINGS, EngineSettings
from .models import Node, Tree, build_tree, check_unique_ids, find_node, iter_nodes, parse_delta
from .variance import variance

logger = logging.getLogger(__name__)


class MutationKind(str, Enum):
    AMOUNT = "amount"
    PERCENT = "percent"
    TOTAL = "total"


@dataclass(frozen=True)
class MutationRequest:
    target_id: str
    kind: MutationKind
    delta: Any


@dataclass(frozen=True)
class FieldEdit:
    target_id: str
    field: str
    value: Any


@dataclass(frozen=True)
class TableRow:
    """Represents a single display row of the allocation table."""

    node_id: str
    label: str
    level: int
    is_leaf: bool
    value: float
    pending_input: Any
    variance: str


class AllocationEngine:
    """Holds a tree and the baseline snapshot taken when it was built.

    Every operation replaces :attr:`tree` wholesale with the tree returned by
    the underlying pure function; the baseline is never recomputed.
    """

    def __init__(
        self,
        definition: Union[Mapping[str, Any], Iterable[Mapping[str, Any]], Iterable[Node]],
        settings: Optional[EngineSettings] = None,
    ) -> None:
        if isinstance(definition, Node):
            definition = [definition]
        items = list(definition) if not isinstance(definition, Mapping) else [definition]
        if items and all(isinstance(item, Node) for item in items):
            self._tree: Tree = tuple(items)
            check_unique_ids(self._tree)
        else:
            self._tree = build_tree(items)
        self._baseline = build_baseline(self._tree)
        self._settings = settings or DEFAULT_SETTINGS
        logger.debug(
            "Engine initialised with %d roots and %d baseline leaves",
            len(self._tree),
            len(self._baseline),
        )

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def tree(self) -> Tree:
        return self._tree

    @property
    def baseline(self) -> Baseline:
        return self._baseline

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    def find(self, node_id: str) -> Optional[Node]:
        return find_node(self._tree, node_id)

    def _require(self, node_id: str) -> Node:
        node = self.find(node_id)
        if node is None:
            raise KeyError(node_id)
        return node

    def aggregate(self, node_id: str) -> float:
        return aggregate(self._require(node_id))

    def variance(self, node_id: str) -> str:
        return variance(self._require(node_id), self._baseline, self._settings)

    def rows(self) -> List[TableRow]:
        """Flatten the tree into display rows in pre-order."""

        return [
            TableRow(
                node_id=node.id,
                label=node.label,
                level=level,
                is_leaf=node.is_leaf,
                value=aggregate(node),
                pending_input=node.pending_input,
                variance=variance(node, self._baseline, self._settings),
            )
            for node, level in iter_nodes(self._tree)
        ]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def _commit(self, result: MutationResult) -> MutationResult:
        self._tree = result.tree
        return result

    def apply(self, request: MutationRequest) -> MutationResult:
        try:
            kind = MutationKind(request.kind)
        except ValueError as exc:
            raise ValueError(f"Unsupported mutation kind: {request.kind!r}") from exc
        if kind is MutationKind.AMOUNT:
            result = apply_amount(
                self._tree, request.target_id, request.delta, self._baseline, self._settings
            )
        elif kind is MutationKind.PERCENT:
            result = apply_percentage(
                self._tree, request.target_id, request.delta, self._baseline, self._settings
            )
        else:
            result = allocate_total(
                self._tree, request.target_id, request.delta, self._baseline, self._settings
            )
        return self._commit(result)

    def apply_amount(self, node_id: str, amount: Any) -> MutationResult:
        return self.apply(MutationRequest(node_id, MutationKind.AMOUNT, amount))

    def apply_percentage(self, node_id: str, percent: Any) -> MutationResult:
        return self.apply(MutationRequest(node_id, MutationKind.PERCENT, percent))

    def allocate_total(self, node_id: str, total: Any) -> MutationResult:
        return self.apply(MutationRequest(node_id, MutationKind.TOTAL, total))

    def edit(self, request: FieldEdit) -> MutationResult:
        return self._commit(update_field(self._tree, request.target_id, request.field, request.value))

    def update_field(self, node_id: str, field: str, value: Any) -> MutationResult:
        return self.edit(FieldEdit(node_id, field, value))

    def stage_input(self, node_id: str, value: Any) -> MutationResult:
        return self.update_field(node_id, "pending_input", value)

    def apply_staged(
        self, node_id: str, kind: Union[MutationKind, str] = MutationKind.AMOUNT
    ) -> MutationResult:
        """Apply the pending input staged on ``node_id``.

        Text that does not parse as a finite number leaves the tree and the
        staged text untouched, as does a staged zero.
        """

        node = self.find(node_id)
        if node is None:
            logger.debug("No node %r to apply staged input to", node_id)
            return MutationResult(tree=self._tree, matched=False, applied=False)
        delta = parse_delta(node.pending_input)
        if delta is None or delta == 0:
            logger.debug("Ignoring staged input %r on %r", node.pending_input, node_id)
            return MutationResult(tree=self._tree, matched=True, applied=False)
        return self.apply(MutationRequest(node_id, kind, delta))


__all__ = [
    "AllocationEngine",
    "FieldEdit",
    "MutationKind",
    "MutationRequest",
    "TableRow",
]
