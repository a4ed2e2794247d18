"""Engine settings and rounding helpers."""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


class RoundingMode(str, Enum):
    """Rounding applied to leaf values written by a distribution."""

    HALF_AWAY_FROM_ZERO = "half_away_from_zero"
    HALF_EVEN = "half_even"


@dataclass(frozen=True, slots=True)
class EngineSettings:
    rounding: RoundingMode = RoundingMode.HALF_AWAY_FROM_ZERO
    variance_decimals: int = 2

    def __post_init__(self) -> None:
        # Accept the plain string form, e.g. ``EngineSettings(rounding="half_even")``.
        try:
            object.__setattr__(self, "rounding", RoundingMode(self.rounding))
        except ValueError as exc:
            raise ValueError(f"Unsupported rounding mode: {self.rounding!r}") from exc
        if self.variance_decimals < 0:
            raise ValueError("Variance decimals must not be negative.")

    def round(self, value: float) -> int:
        return round_value(value, self.rounding)


DEFAULT_SETTINGS = EngineSettings()


def round_value(value: float, mode: RoundingMode = RoundingMode.HALF_AWAY_FROM_ZERO) -> int:
    """Round ``value`` to the nearest integer using ``mode`` for ties."""

    if mode is RoundingMode.HALF_EVEN:
        return round(value)
    magnitude = abs(value)
    whole = math.floor(magnitude)
    if magnitude - whole >= 0.5:
        whole += 1
    return -whole if value < 0 else whole


__all__ = [
    "DEFAULT_SETTINGS",
    "EngineSettings",
    "RoundingMode",
    "round_value",
]
