"""Spreadsheet reading and translation table construction."""

from __future__ import annotations

import csv
import pathlib
import zipfile
from typing import Any, Iterable, List, Mapping, Sequence

from .errors import BabelboardError, SpreadsheetError, UnsupportedFileTypeError
from .structures import TranslationTable

Rows = List[List[str]]


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _import_openpyxl():
    try:
        from openpyxl import load_workbook  # type: ignore
        from openpyxl.utils.exceptions import InvalidFileException  # type: ignore
    except ImportError as exc:  # pragma: no cover - import guard
        raise BabelboardError(
            "openpyxl is required to read .xlsx files. "
            "Install it with `pip install openpyxl`."
        ) from exc
    return load_workbook, InvalidFileException


def _read_xlsx(path: pathlib.Path) -> Rows:
    load_workbook, InvalidFileException = _import_openpyxl()
    try:
        workbook = load_workbook(str(path), read_only=True, data_only=True)
    except (zipfile.BadZipFile, InvalidFileException, KeyError) as exc:
        raise SpreadsheetError(
            f"Spreadsheet '{path.name}' is not a readable .xlsx workbook."
        ) from exc
    try:
        sheet = workbook.active
        return [
            [_cell_text(value) for value in row]
            for row in sheet.iter_rows(values_only=True)
        ]
    finally:
        workbook.close()


def _read_delimited(path: pathlib.Path, *, delimiter: str, encoding: str) -> Rows:
    with path.open("r", encoding=encoding, newline="") as stream:
        return [list(row) for row in csv.reader(stream, delimiter=delimiter)]


def _read_by_suffix(path: pathlib.Path, *, encoding: str) -> Rows:
    suffix = path.suffix.lower()
    if suffix == ".xlsx":
        return _read_xlsx(path)
    if suffix == ".csv":
        return _read_delimited(path, delimiter=",", encoding=encoding)
    if suffix == ".tsv":
        return _read_delimited(path, delimiter="\t", encoding=encoding)
    raise UnsupportedFileTypeError(
        f"Spreadsheet '{path.name}' isn't supported. Please use .xlsx, .csv or .tsv; "
        "save .xls and .ods files as .xlsx first."
    )


def read_rows(path: pathlib.Path, *, encoding: str = "utf-8-sig") -> Rows:
    """Read the first sheet of a spreadsheet file as rows of strings."""

    try:
        return _read_by_suffix(path, encoding=encoding)
    except FileNotFoundError as exc:
        raise SpreadsheetError(f"Spreadsheet not found: {path}") from exc
    except UnicodeDecodeError as exc:
        raise SpreadsheetError(
            f"Spreadsheet '{path.name}' is not encoded as {encoding}. Save it as UTF-8 "
            "or set BABELBOARD_CSV_ENCODING to its encoding (for example latin-1)."
        ) from exc
    except LookupError as exc:
        raise SpreadsheetError(f"Unknown text encoding '{encoding}'.") from exc
    except csv.Error as exc:
        raise SpreadsheetError(f"Spreadsheet '{path.name}' could not be parsed: {exc}") from exc
    except OSError as exc:
        raise SpreadsheetError(f"Spreadsheet '{path.name}' could not be read: {exc}") from exc


def read_spreadsheets(
    paths: Iterable[pathlib.Path],
    *,
    encoding: str = "utf-8-sig",
) -> dict[str, Rows]:
    return {str(path): read_rows(path, encoding=encoding) for path in paths}


def parse(
    rows_by_filename: Mapping[str, Sequence[Sequence[str]]],
    first_row_for_suffix: bool,
) -> TranslationTable:
    """Build a translation table from spreadsheet rows.

    The first column holds the source text and every further column one
    locale. When ``first_row_for_suffix`` is set the first row names the
    locales; otherwise locales are named by column number starting at 1.
    Rows from several files are merged in order.
    """

    table: TranslationTable = {}
    for rows in rows_by_filename.values():
        if not rows:
            continue
        header: Sequence[str] = rows[0] if first_row_for_suffix else []
        body = rows[1:] if first_row_for_suffix else rows
        width = max(len(row) for row in rows)

        locales = []
        for column in range(1, width):
            label = header[column].strip() if column < len(header) else ""
            locales.append(label or str(column))

        columns: dict[str, dict[str, str]] = {locale: {} for locale in locales}
        for row in body:
            if not row or not row[0].strip():
                continue
            source = row[0]
            for column, locale in enumerate(locales, start=1):
                if column >= len(row) or not row[column].strip():
                    continue
                columns[locale][source] = row[column]

        # Locales keep column order; columns without any translation are dropped.
        for locale, translations in columns.items():
            if translations:
                table.setdefault(locale, {}).update(translations)
    return table
