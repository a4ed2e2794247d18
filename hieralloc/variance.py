"""Variance of current values against the baseline snapshot."""
from __future__ import annotations

from typing import Mapping, Optional

from .config import DEFAULT_SETTINGS, EngineSettings
from .models import Node, coerce_number

ZERO_VARIANCE = "0%"


def _shallow_value(node: Node) -> float:
    # Branch children count as zero; branch variance only looks one level down.
    if node.children is not None:
        return 0.0
    return coerce_number(node.value)


def variance_percent(node: Node, baseline: Mapping[str, float]) -> Optional[float]:
    """Return the percentage change of ``node`` against the baseline.

    Leaves compare their value with their own baseline entry. Branches compare
    the summed values of their direct leaf children with the summed baseline
    entries of all direct children, so nested branches contribute nothing.
    ``None`` is returned when the baseline total is zero.
    """

    if node.children is None:
        initial = baseline.get(node.id, 0.0)
        current = coerce_number(node.value)
    else:
        initial = sum((baseline.get(child.id, 0.0) for child in node.children), 0.0)
        current = sum((_shallow_value(child) for child in node.children), 0.0)
    if initial == 0:
        return None
    return (current - initial) / initial * 100


def format_variance(percent: Optional[float], decimals: int = 2) -> str:
    if percent is None:
        return ZERO_VARIANCE
    return f"{percent:.{decimals}f}%"


def variance(
    node: Node,
    baseline: Mapping[str, float],
    settings: Optional[EngineSettings] = None,
) -> str:
    """Return the variance of ``node`` formatted like ``"12.50%"``.

    A zero baseline always reports ``"0%"``, even for a leaf that has since
    gained value.
    """

    settings = settings or DEFAULT_SETTINGS
    return format_variance(variance_percent(node, baseline), settings.variance_decimals)


__all__ = ["ZERO_VARIANCE", "format_variance", "variance", "variance_percent"]
