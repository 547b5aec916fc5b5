import json
import zipfile
from pathlib import Path

import pytest

from babelboard.settings import JsonFileBackend, SettingsStore
from babelboard.sketch import SketchLayer

_counter = {"value": 0}


def _object_id():
    _counter["value"] += 1
    return f"OBJ-{_counter['value']:04d}"


def make_frame(x=0, y=0, width=100, height=100):
    return {"_class": "rect", "x": x, "y": y, "width": width, "height": height}


def make_text(text, name=None, x=0, y=0):
    return {
        "_class": "text",
        "do_objectID": _object_id(),
        "name": name or text,
        "frame": make_frame(x, y, 80, 20),
        "attributedString": {
            "_class": "attributedString",
            "string": text,
            "attributes": [
                {
                    "_class": "stringAttribute",
                    "location": 0,
                    "length": len(text),
                    "attributes": {"MSAttributedStringFontAttribute": {"name": "Inter"}},
                }
            ],
        },
    }


def make_group(name, layers, x=0, y=0):
    return {
        "_class": "group",
        "do_objectID": _object_id(),
        "name": name,
        "frame": make_frame(x, y, 200, 200),
        "layers": layers,
    }


def make_artboard(name, layers=None, x=0, y=0, width=375, height=667, selected=False):
    return {
        "_class": "artboard",
        "do_objectID": _object_id(),
        "name": name,
        "isSelected": selected,
        "frame": make_frame(x, y, width, height),
        "layers": layers or [],
    }


def make_page(name, layers, page_id="PAGE-1"):
    return {
        "_class": "page",
        "do_objectID": page_id,
        "name": name,
        "frame": make_frame(),
        "layers": layers,
    }


def wrap(page_data):
    """Return SketchLayer wrappers for the top-level layers of a page."""

    layers = page_data["layers"]
    return [SketchLayer(item, layers) for item in layers]


def write_sketch(path: Path, pages, current_page_index=0):
    document = {
        "_class": "document",
        "do_objectID": "DOCUMENT",
        "currentPageIndex": current_page_index,
        "pages": [
            {
                "_class": "MSJSONFileReference",
                "_ref_class": "MSImmutablePage",
                "_ref": f"pages/{page['do_objectID']}",
            }
            for page in pages
        ],
    }
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("document.json", json.dumps(document))
        archive.writestr("meta.json", json.dumps({"appVersion": "99"}))
        archive.writestr("previews/preview.png", b"\x89PNG")
        for page in pages:
            archive.writestr(f"pages/{page['do_objectID']}.json", json.dumps(page))
    return path


def read_sketch_page(path: Path, page_id="PAGE-1"):
    with zipfile.ZipFile(path) as archive:
        return json.loads(archive.read(f"pages/{page_id}.json"))


@pytest.fixture
def settings_path(tmp_path):
    return tmp_path / "settings" / "settings.json"


@pytest.fixture
def store(settings_path):
    store = SettingsStore(JsonFileBackend(settings_path))
    store.load()
    return store
