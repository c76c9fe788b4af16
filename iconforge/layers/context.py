"""Per-render scratch space shared by the layers of one pipeline pass."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, TypeVar

from iconforge.icon import IconImage
from iconforge.render.svg import VectorRenderer


class PropertyKind(Enum):
    """Closed set of values a layer may publish for downstream layers."""

    DOMINANT_COLOR = "dominant_color"


@dataclass(frozen=True)
class DominantColor:
    """Alpha-weighted average colour of an image's content bounds."""

    r: int
    g: int
    b: int
    a: int

    kind = PropertyKind.DOMINANT_COLOR

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.r, self.g, self.b, self.a)


Property = DominantColor
P = TypeVar("P", bound=Property)


@dataclass
class RenderContext:
    """Carries the current image and published properties through one pass.

    Properties are valid for this pass only; layer caches hold pixels, never
    properties.
    """

    image: IconImage
    vectors: VectorRenderer = field(default_factory=VectorRenderer)
    _properties: dict[PropertyKind, Property] = field(default_factory=dict, repr=False)

    def set(self, value: Property) -> None:
        self._properties[value.kind] = value

    def get(self, kind: type[P]) -> Optional[P]:
        return self._properties.get(kind.kind)  # type: ignore[return-value]

    def has(self, kind: type[Property]) -> bool:
        return kind.kind in self._properties
