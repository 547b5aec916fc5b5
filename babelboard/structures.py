"""Core data structures for the Babelboard translator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict


TranslationMap = Dict[str, str]
TranslationTable = Dict[str, TranslationMap]


class ApplyTo(IntEnum):
    """Which layers a run duplicates."""

    SELECTED_ARTBOARDS = 0
    CURRENT_PAGE = 1


class ArtboardPosition(IntEnum):
    """Where duplicated artboard sets are laid out."""

    RIGHT = 0
    BOTTOM = 1


class CaseMatching(IntEnum):
    """How layer text is compared against translation keys."""

    SENSITIVE = 0
    INSENSITIVE = 1


@dataclass(frozen=True)
class Frame:
    """Position and size of a layer in document units."""

    x: float
    y: float
    width: float
    height: float

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    def offset(self, dx: float, dy: float) -> "Frame":
        return Frame(self.x + dx, self.y + dy, self.width, self.height)

    def intersects(self, other: "Frame") -> bool:
        """Return True when both frames share interior area."""

        return (
            self.x < other.max_x
            and other.x < self.max_x
            and self.y < other.max_y
            and other.y < self.max_y
        )
