"""Sample hierarchy used to seed an engine."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional


@dataclass
class NodeSeed:
    id: str
    label: str
    value: Optional[float] = None
    children: Iterable["NodeSeed"] | None = None

    def as_definition(self) -> dict[str, Any]:
        definition: dict[str, Any] = {"id": self.id, "label": self.label}
        if self.children is not None:
            definition["children"] = [child.as_definition() for child in self.children]
        elif self.value is not None:
            definition["value"] = self.value
        return definition


SAMPLE_NODES: list[NodeSeed] = [
    NodeSeed(
        id="electronics",
        label="Electronics",
        children=[
            NodeSeed(id="phones", label="Phones", value=800),
            NodeSeed(id="laptops", label="Laptops", value=700),
        ],
    ),
    NodeSeed(
        id="furniture",
        label="Furniture",
        children=[
            NodeSeed(id="tables", label="Tables", value=300),
            NodeSeed(id="chairs", label="Chairs", value=700),
        ],
    ),
]


def sample_definition() -> list[dict[str, Any]]:
    """Return a fresh copy of the sample definition."""

    return [seed.as_definition() for seed in SAMPLE_NODES]


__all__ = ["NodeSeed", "SAMPLE_NODES", "sample_definition"]
