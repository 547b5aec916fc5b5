"""Sketch document backend.

A ``.sketch`` file is a zip archive. ``document.json`` lists the pages, each
page lives in ``pages/<id>.json`` and holds a tree of layer objects keyed by
``_class``. Layers are edited in place on the decoded JSON and the archive is
rewritten on save; entries this module does not understand are copied through
untouched.
"""

from __future__ import annotations

import copy
import json
import pathlib
import uuid
import zipfile
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import DocumentFormatError, HostOperationError, UnsupportedFileTypeError
from .host import Layer
from .structures import Frame

ARTBOARD_CLASS = "artboard"
TEXT_CLASS = "text"


def _utf16_length(text: str) -> int:
    # Attribute ranges count UTF-16 code units.
    return len(text.encode("utf-16-le")) // 2


def _refresh_object_ids(data: Dict[str, Any]) -> None:
    if "do_objectID" in data:
        data["do_objectID"] = str(uuid.uuid4()).upper()
    for child in data.get("layers", []):
        _refresh_object_ids(child)


class SketchLayer(Layer):
    """Wraps one layer object of a page tree."""

    def __init__(self, data: Dict[str, Any], siblings: Optional[List[Dict[str, Any]]] = None):
        self.data = data
        self.siblings = siblings

    def __repr__(self) -> str:
        return f"SketchLayer({self.data.get('_class')!r}, {self.name!r})"

    @property
    def name(self) -> str:
        return str(self.data.get("name", ""))

    @name.setter
    def name(self, value: str) -> None:
        self.data["name"] = value

    @property
    def frame(self) -> Frame:
        rect = self.data.get("frame") or {}
        return Frame(
            x=rect.get("x", 0),
            y=rect.get("y", 0),
            width=rect.get("width", 0),
            height=rect.get("height", 0),
        )

    @frame.setter
    def frame(self, value: Frame) -> None:
        rect = self.data.setdefault("frame", {"_class": "rect"})
        rect.update(x=value.x, y=value.y, width=value.width, height=value.height)

    @property
    def is_artboard(self) -> bool:
        return self.data.get("_class") == ARTBOARD_CLASS

    @property
    def is_text(self) -> bool:
        return self.data.get("_class") == TEXT_CLASS

    @property
    def is_selected(self) -> bool:
        return bool(self.data.get("isSelected", False))

    @property
    def text(self) -> str:
        if not self.is_text:
            raise HostOperationError(f"Layer '{self.name}' has no text.")
        attributed = self.data.get("attributedString") or {}
        return str(attributed.get("string", ""))

    @text.setter
    def text(self, value: str) -> None:
        if not self.is_text:
            raise HostOperationError(f"Cannot set text on layer '{self.name}'.")
        attributed = self.data.setdefault(
            "attributedString",
            {"_class": "attributedString", "attributes": []},
        )
        attributed["string"] = value
        # A single run keeps the style of the first original run.
        runs = attributed.get("attributes") or []
        if runs:
            first = runs[0]
            first["location"] = 0
            first["length"] = _utf16_length(value)
            attributed["attributes"] = [first]

    @property
    def children(self) -> List[Layer]:
        layers = self.data.get("layers")
        if not isinstance(layers, list):
            return []
        return [SketchLayer(child, layers) for child in layers]

    def duplicate(self) -> "SketchLayer":
        if self.siblings is None:
            raise HostOperationError(f"Layer '{self.name}' is not part of a page.")
        index = next(
            (idx for idx, item in enumerate(self.siblings) if item is self.data),
            None,
        )
        if index is None:
            raise HostOperationError(f"Layer '{self.name}' was removed from its page.")

        data = copy.deepcopy(self.data)
        _refresh_object_ids(data)
        data["isSelected"] = False
        self.siblings.insert(index + 1, data)
        return SketchLayer(data, self.siblings)


class SketchPage:
    """One page of a Sketch document."""

    def __init__(self, data: Dict[str, Any]):
        self.data = data
        self.data.setdefault("layers", [])

    @property
    def name(self) -> str:
        return str(self.data.get("name", ""))

    @property
    def layers(self) -> List[Layer]:
        layers = self.data["layers"]
        return [SketchLayer(item, layers) for item in layers]

    def walk(self) -> Iterator[SketchLayer]:
        for layer in self.layers:
            yield layer  # type: ignore[misc]
            yield from layer.iter_descendants()  # type: ignore[misc]

    @property
    def selected_layers(self) -> List[Layer]:
        return [layer for layer in self.walk() if layer.is_selected]

    def find_layers(self, names: Iterable[str]) -> List[Layer]:
        """Return the layers whose names are listed, in document order."""

        wanted = set(names)
        return [layer for layer in self.walk() if layer.name in wanted]


class SketchDocument:
    """Reads a ``.sketch`` archive and writes it back after edits."""

    def __init__(self, source_path: pathlib.Path):
        self.source_path = source_path
        try:
            with zipfile.ZipFile(source_path) as archive:
                self._entries: Dict[str, bytes] = {
                    name: archive.read(name) for name in archive.namelist()
                }
            self.document = json.loads(self._entries["document.json"])
            self._pages: List[Tuple[str, SketchPage]] = [
                (entry, SketchPage(json.loads(self._entries[entry])))
                for entry in self._page_entries()
            ]
        except zipfile.BadZipFile as exc:
            raise DocumentFormatError(f"{source_path.name} is not a Sketch archive.") from exc
        except KeyError as exc:
            raise DocumentFormatError(
                f"{source_path.name} is missing the archive entry {exc}."
            ) from exc
        except ValueError as exc:
            raise DocumentFormatError(
                f"{source_path.name} contains unreadable JSON: {exc}"
            ) from exc

    def _page_entries(self) -> List[str]:
        entries = []
        for reference in self.document.get("pages", []):
            ref = reference.get("_ref")
            if not ref:
                continue
            entries.append(ref if ref.endswith(".json") else f"{ref}.json")
        return entries

    @property
    def pages(self) -> List[SketchPage]:
        return [page for _, page in self._pages]

    @property
    def current_page(self) -> SketchPage:
        pages = self.pages
        if not pages:
            raise DocumentFormatError(f"{self.source_path.name} has no pages.")
        index = self.document.get("currentPageIndex", 0)
        if not isinstance(index, int) or not 0 <= index < len(pages):
            index = 0
        return pages[index]

    def page_named(self, name: str) -> SketchPage:
        for page in self.pages:
            if page.name == name:
                return page
        raise DocumentFormatError(f"No page named '{name}' in {self.source_path.name}.")

    def save(self, destination: pathlib.Path) -> None:
        entries = dict(self._entries)
        entries["document.json"] = json.dumps(self.document).encode("utf-8")
        for entry, page in self._pages:
            entries[entry] = json.dumps(page.data).encode("utf-8")
        with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for name, content in entries.items():
                archive.writestr(name, content)


def open_document(path: pathlib.Path) -> SketchDocument:
    """Open the design document at ``path``."""

    if path.suffix.lower() != ".sketch":
        raise UnsupportedFileTypeError(
            "This file type isn't supported. Please use a .sketch document."
        )
    return SketchDocument(path)
