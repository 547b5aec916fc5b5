"""Error definitions for the Babelboard translator."""

from __future__ import annotations


class BabelboardError(Exception):
    """Base exception for all custom errors."""


class SelectionError(BabelboardError):
    """Raised when the selection cannot be used as translation templates."""


class EmptySelectionError(SelectionError):
    """Raised when artboards were requested but nothing is selected."""

    def __init__(self, message: str = "Please select at least one artboard.") -> None:
        super().__init__(message)


class MixedSelectionError(SelectionError):
    """Raised when the selection contains layers that are not artboards."""

    def __init__(
        self,
        message: str = "Only artboards can be translated. Please select artboards only.",
    ) -> None:
        super().__init__(message)


class SettingsDeserializationError(BabelboardError):
    """Raised when the persisted settings record cannot be decoded."""


class HostOperationError(BabelboardError):
    """Raised when the document refuses a layer operation."""


class UnsupportedFileTypeError(BabelboardError):
    """Raised when a given file extension is not supported."""


class DocumentFormatError(BabelboardError):
    """Raised when a document archive cannot be read."""


class OverwriteRefusedError(BabelboardError):
    """Raised when attempting to overwrite an output without consent."""


class ConfigurationError(BabelboardError):
    """Raised when the application configuration is invalid."""


class SpreadsheetError(BabelboardError):
    """Raised when a spreadsheet file cannot be read."""
