"""Placement of duplicated artboard sets."""

from __future__ import annotations

from typing import Iterable, Sequence

from .host import Layer
from .structures import ArtboardPosition, Frame

ARTBOARD_MARGIN = 100


class LayoutCursor:
    """Computes offsets that keep each locale's artboard set apart.

    The cursor starts one bounding box (plus margin) away from the templates
    and moves one more box each time ``advance`` is called. Callers place all
    duplicates of a locale first and advance once afterwards.
    """

    def __init__(self, frames: Iterable[Frame], margin: float = ARTBOARD_MARGIN) -> None:
        frames = list(frames)
        if not frames:
            raise ValueError("A layout cursor needs at least one frame.")

        xmin = min(frame.x for frame in frames)
        ymin = min(frame.y for frame in frames)
        xmax = max(frame.max_x for frame in frames)
        ymax = max(frame.max_y for frame in frames)

        self.unit_width = xmax - xmin + margin
        self.unit_height = ymax - ymin + margin
        self.width = self.unit_width
        self.height = self.unit_height

    @classmethod
    def from_layers(cls, layers: Sequence[Layer]) -> "LayoutCursor":
        return cls(layer.frame for layer in layers)

    def advance(self) -> None:
        self.width += self.unit_width
        self.height += self.unit_height

    def place_right(self, layer: Layer) -> None:
        layer.offset(self.width, 0)

    def place_bottom(self, layer: Layer) -> None:
        layer.offset(0, self.height)

    def place(self, layer: Layer, position: ArtboardPosition) -> None:
        if position == ArtboardPosition.BOTTOM:
            self.place_bottom(layer)
        else:
            self.place_right(layer)
