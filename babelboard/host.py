"""Abstract layer interface consumed by the translation engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, List

from .structures import Frame


class Layer(ABC):
    """A layer of a design document.

    Concrete backends wrap the host's own layer objects. Every operation acts
    on the live document immediately.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Layer name as shown in the layer list."""

    @name.setter
    @abstractmethod
    def name(self, value: str) -> None:
        ...

    @property
    @abstractmethod
    def frame(self) -> Frame:
        """Current frame of the layer."""

    @frame.setter
    @abstractmethod
    def frame(self, value: Frame) -> None:
        ...

    @property
    @abstractmethod
    def is_artboard(self) -> bool:
        ...

    @property
    @abstractmethod
    def is_text(self) -> bool:
        ...

    @property
    @abstractmethod
    def text(self) -> str:
        """Text content; only valid on text layers."""

    @text.setter
    @abstractmethod
    def text(self, value: str) -> None:
        ...

    @property
    @abstractmethod
    def children(self) -> List["Layer"]:
        """Direct child layers, in document order."""

    @abstractmethod
    def duplicate(self) -> "Layer":
        """Insert an independent copy of this layer subtree and return it."""

    def offset(self, dx: float, dy: float) -> None:
        self.frame = self.frame.offset(dx, dy)

    def iter_descendants(self) -> Iterator["Layer"]:
        """Yield every layer below this one, depth first."""

        for child in self.children:
            yield child
            yield from child.iter_descendants()

    def text_layers(self) -> List["Layer"]:
        return [layer for layer in self.iter_descendants() if layer.is_text]
