"""Persistence of the per-user translation settings."""

from __future__ import annotations

import json
import os
import pathlib
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional

from .errors import SettingsDeserializationError
from .structures import ApplyTo, ArtboardPosition, CaseMatching

SETTINGS_KEY = "com.babelboard.translate.settings"


@dataclass
class Settings:
    """User choices for a translation run."""

    apply_to: ApplyTo = ApplyTo.SELECTED_ARTBOARDS
    add_new_artboard_to: ArtboardPosition = ArtboardPosition.RIGHT
    case_matching: CaseMatching = CaseMatching.SENSITIVE
    first_row_for_suffix: bool = True
    filenames: List[str] = field(default_factory=list)


# Persisted record keys mapped to Settings attributes.
RECORD_FIELDS: Dict[str, str] = {
    "applyTo": "apply_to",
    "addNewArtboardTo": "add_new_artboard_to",
    "caseMatching": "case_matching",
    "firstRowForSuffix": "first_row_for_suffix",
    "filenames": "filenames",
}

_ENUM_FIELDS = {
    "applyTo": ApplyTo,
    "addNewArtboardTo": ArtboardPosition,
    "caseMatching": CaseMatching,
}


def decode_record(raw: Optional[str]) -> Dict[str, Any]:
    """Decode a persisted settings string into a plain mapping.

    A missing value decodes to an empty record. Anything that is not a JSON
    object raises SettingsDeserializationError.
    """

    if raw is None:
        return {}
    try:
        record = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise SettingsDeserializationError(f"Stored settings are not valid JSON: {exc}") from exc
    if record is None:
        return {}
    if not isinstance(record, dict):
        raise SettingsDeserializationError("Stored settings must be a JSON object.")
    return record


def _coerce(key: str, value: Any) -> Any:
    """Return the typed value for a persisted field, or None when unusable."""

    if key in _ENUM_FIELDS:
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        try:
            return _ENUM_FIELDS[key](value)
        except ValueError:
            return None
    if key == "firstRowForSuffix":
        return value if isinstance(value, bool) else None
    if key == "filenames":
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return list(value)
        return None
    return None


def settings_from_record(record: Mapping[str, Any]) -> Settings:
    """Merge a persisted record over the defaults, field by field."""

    settings = Settings()
    for key, attribute in RECORD_FIELDS.items():
        if key not in record:
            continue
        value = _coerce(key, record[key])
        if value is not None:
            setattr(settings, attribute, value)
    return settings


def settings_to_record(settings: Settings) -> Dict[str, Any]:
    record: Dict[str, Any] = {}
    for key, attribute in RECORD_FIELDS.items():
        value = getattr(settings, attribute)
        if key in _ENUM_FIELDS:
            value = int(value)
        elif key == "filenames":
            value = [str(item) for item in value]
        record[key] = value
    return record


class SettingsBackend(ABC):
    """Key/value storage for serialized settings."""

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """Return the stored string for ``key`` or None."""

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        """Replace the stored string for ``key``."""


class JsonFileBackend(SettingsBackend):
    """Stores every key in a single JSON object on disk."""

    def __init__(self, path: pathlib.Path) -> None:
        self.path = path

    def _read_all(self) -> Dict[str, Any]:
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(content)
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def read(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        if value is None:
            return None
        return value if isinstance(value, str) else json.dumps(value)

    def write(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        handle, temp_name = tempfile.mkstemp(
            dir=str(self.path.parent),
            prefix=f".{self.path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(handle, "w", encoding="utf-8") as stream:
                json.dump(data, stream, indent=2)
            os.replace(temp_name, self.path)
        except BaseException:
            if os.path.exists(temp_name):
                os.unlink(temp_name)
            raise


class SettingsStore:
    """Loads, exposes and saves the Settings record of one session."""

    def __init__(self, backend: SettingsBackend, key: str = SETTINGS_KEY) -> None:
        self.backend = backend
        self.key = key
        self.settings = Settings()

    def load(self) -> Settings:
        try:
            record = decode_record(self.backend.read(self.key))
        except SettingsDeserializationError:
            record = {}
        self.settings = settings_from_record(record)
        return self.settings

    def get(self, key: str) -> Any:
        return getattr(self.settings, self._attribute(key))

    def set(self, key: str, value: Any) -> None:
        setattr(self.settings, self._attribute(key), value)

    def save(self, settings: Optional[Settings] = None) -> None:
        if settings is not None:
            self.settings = settings
        payload = json.dumps(settings_to_record(self.settings))
        self.backend.write(self.key, payload)

    @staticmethod
    def _attribute(key: str) -> str:
        if key in RECORD_FIELDS:
            return RECORD_FIELDS[key]
        if key in {item.name for item in fields(Settings)}:
            return key
        raise KeyError(f"Unknown setting '{key}'.")
