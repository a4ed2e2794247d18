"""Hierarchical allocation engine package."""
from .allocation import (
    MutationResult,
    aggregate,
    allocate_total,
    apply_amount,
    apply_percentage,
    build_baseline,
    update_field,
)
from .config import DEFAULT_SETTINGS, EngineSettings, RoundingMode
from .engine import AllocationEngine, FieldEdit, MutationKind, MutationRequest, TableRow
from .models import Node, build_tree
from .variance import variance

__all__ = [
    "AllocationEngine",
    "DEFAULT_SETTINGS",
    "EngineSettings",
    "FieldEdit",
    "MutationKind",
    "MutationRequest",
    "MutationResult",
    "Node",
    "RoundingMode",
    "TableRow",
    "aggregate",
    "allocate_total",
    "apply_amount",
    "apply_percentage",
    "build_baseline",
    "build_tree",
    "update_field",
    "variance",
]
