"""Command line interface for the Babelboard translator."""

from __future__ import annotations

import argparse
import pathlib
import sys
from typing import Iterable, List, Optional, Sequence

from .configuration import get_settings, settings_file_path
from .engine import EngineState, RunSummary, TranslationEngine
from .errors import (
    BabelboardError,
    ConfigurationError,
    OverwriteRefusedError,
    SelectionError,
)
from .host import Layer
from .settings import JsonFileBackend, SettingsStore
from .sketch import SketchDocument, open_document
from .spreadsheets import parse, read_spreadsheets
from .structures import ApplyTo, ArtboardPosition, CaseMatching

APPLY_TO_CHOICES = {
    "selection": ApplyTo.SELECTED_ARTBOARDS,
    "page": ApplyTo.CURRENT_PAGE,
}
POSITION_CHOICES = {
    "right": ArtboardPosition.RIGHT,
    "bottom": ArtboardPosition.BOTTOM,
}
CASE_CHOICES = {
    "sensitive": CaseMatching.SENSITIVE,
    "insensitive": CaseMatching.INSENSITIVE,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="babelboard",
        description=(
            "Duplicate Sketch artboards once per language and replace their text "
            "using a spreadsheet (.xlsx, .csv or .tsv)."
        ),
    )
    parser.add_argument(
        "document",
        help="Path to the .sketch document holding the template artboards.",
    )
    parser.add_argument(
        "-s",
        "--spreadsheet",
        action="append",
        dest="spreadsheets",
        help=(
            "Spreadsheet with source text in the first column and one column per "
            "language. Repeat to merge several files. Defaults to the last used files."
        ),
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Output file path. Defaults to appending '_translated' to the document name.",
    )
    parser.add_argument(
        "--apply-to",
        choices=sorted(APPLY_TO_CHOICES),
        help="Translate the selected artboards or every artboard of the page.",
    )
    parser.add_argument(
        "--position",
        choices=sorted(POSITION_CHOICES),
        help="Place new artboards to the right of or below the templates.",
    )
    parser.add_argument(
        "--case",
        choices=sorted(CASE_CHOICES),
        help="Case matching between layer text and the spreadsheet.",
    )
    parser.add_argument(
        "--first-row-suffix",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Use the first spreadsheet row as artboard name suffixes.",
    )
    parser.add_argument(
        "--page",
        help="Page to work on. Defaults to the page that was open when the document was saved.",
    )
    parser.add_argument(
        "--select",
        action="append",
        help="Select layers by name instead of using the saved selection. Repeatable.",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Allow overwriting the output file if it already exists.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed progress information.",
    )
    return parser


def derive_output_path(input_path: pathlib.Path) -> pathlib.Path:
    return input_path.with_name(f"{input_path.stem}_translated{input_path.suffix}")


def validate_paths(
    input_path: pathlib.Path,
    output_path: pathlib.Path,
    force_overwrite: bool,
) -> None:
    """Validate input/output path combinations and overwrite policy."""

    if not input_path.exists():
        raise FileNotFoundError(
            "Document not found. Please provide a readable .sketch file."
        )
    if not input_path.is_file():
        raise BabelboardError("Document path must be a file.")

    if input_path.resolve() == output_path.resolve():
        raise OverwriteRefusedError(
            "The output path matches the input document. Refusing to overwrite the source file."
        )

    if output_path.exists() and not force_overwrite:
        raise OverwriteRefusedError(
            "The output file already exists. Rename it or use the overwrite flag."
        )


def resolve_selection(
    document: SketchDocument,
    *,
    apply_to: ApplyTo,
    page_name: str | None,
    layer_names: Sequence[str] | None,
) -> List[Layer]:
    """Return the layers a run starts from: page layers or the selection."""

    page = document.page_named(page_name) if page_name else document.current_page
    if apply_to == ApplyTo.CURRENT_PAGE:
        return page.layers
    if layer_names:
        return page.find_layers(layer_names)
    return page.selected_layers


def _failure_message(engine: TranslationEngine, message: str) -> str:
    """Note that partial work was discarded when a run stopped halfway."""

    if engine.state == EngineState.TRANSLATING:
        return (
            f"{message}\nTranslation stopped partway through. "
            "No output file was written and the source document is unchanged."
        )
    return message


def execute_translation(
    *,
    document_file: str,
    output_file: str | None,
    spreadsheet_files: Sequence[str] | None,
    settings_path: pathlib.Path,
    apply_to: ApplyTo | None = None,
    position: ArtboardPosition | None = None,
    case_matching: CaseMatching | None = None,
    first_row_for_suffix: bool | None = None,
    page_name: str | None = None,
    layer_names: Sequence[str] | None = None,
    force_overwrite: bool = False,
    csv_encoding: str = "utf-8-sig",
    verbose: bool = False,
) -> tuple[int, RunSummary | None, str | None]:
    """Execute a translation run and return the exit code, summary, and message."""

    input_path = pathlib.Path(document_file).expanduser().resolve()
    output_path = (
        pathlib.Path(output_file).expanduser().resolve()
        if output_file
        else derive_output_path(input_path)
    )

    try:
        validate_paths(input_path, output_path, force_overwrite=force_overwrite)
    except FileNotFoundError as exc:
        return 1, None, str(exc)
    except BabelboardError as exc:
        return 1, None, str(exc)

    store = SettingsStore(JsonFileBackend(settings_path))
    try:
        settings = store.load()
    except OSError as exc:
        return 1, None, f"Settings file could not be read: {exc}"
    if apply_to is not None:
        store.set("applyTo", apply_to)
    if position is not None:
        store.set("addNewArtboardTo", position)
    if case_matching is not None:
        store.set("caseMatching", case_matching)
    if first_row_for_suffix is not None:
        store.set("firstRowForSuffix", first_row_for_suffix)
    if spreadsheet_files:
        store.set(
            "filenames",
            [str(pathlib.Path(name).expanduser().resolve()) for name in spreadsheet_files],
        )

    if not settings.filenames:
        return 1, None, "No spreadsheet given. Please select a spreadsheet with --spreadsheet."

    engine = TranslationEngine(store, verbose=verbose)
    try:
        document = open_document(input_path)
        selection = resolve_selection(
            document,
            apply_to=settings.apply_to,
            page_name=page_name,
            layer_names=layer_names,
        )
        engine.validate_selection(settings, selection)

        rows = read_spreadsheets(
            (pathlib.Path(name) for name in settings.filenames),
            encoding=csv_encoding,
        )
        table = parse(rows, settings.first_row_for_suffix)
        if verbose:
            print(
                f"Loaded {len(table)} languages from "
                f"{len(settings.filenames)} spreadsheet(s)."
            )

        summary = engine.run(settings, selection, table)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        document.save(output_path)
    except SelectionError as exc:
        return 1, None, str(exc)
    except BabelboardError as exc:
        return 1, None, _failure_message(engine, str(exc))
    except KeyboardInterrupt:
        return 2, None, _failure_message(engine, "Translation interrupted by user.")
    except Exception as exc:  # pragma: no cover - defensive catch
        error_message = (
            f"{exc}\n"
            "An unexpected error occurred. Please rerun with --verbose for more details."
        )
        return 1, None, _failure_message(engine, error_message)

    return 0, summary, None


def print_summary(summary: RunSummary, output_path: str | None = None) -> None:
    """Output a friendly report once processing completes."""

    print("\nTranslation complete.")
    if output_path:
        print(f"  Output file:     {output_path}")
    print(f"  Languages:       {', '.join(summary.locales) or 'none'}")
    print(
        f"  Artboards:       {len(summary.created_artboards)} created "
        f"from {summary.template_artboards} templates"
    )
    print(
        f"  Text layers:     {summary.replaced_texts} replaced / "
        f"{summary.replaced_texts + summary.unmatched_texts} total"
    )
    print(f"  Elapsed time:    {summary.elapsed_seconds:.2f} seconds")


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        config = get_settings()
    except ConfigurationError as exc:
        print(exc)
        return 1

    output = args.output or str(derive_output_path(pathlib.Path(args.document).expanduser().resolve()))
    exit_code, summary, message = execute_translation(
        document_file=args.document,
        output_file=output,
        spreadsheet_files=args.spreadsheets,
        settings_path=settings_file_path(config),
        apply_to=APPLY_TO_CHOICES.get(args.apply_to) if args.apply_to else None,
        position=POSITION_CHOICES.get(args.position) if args.position else None,
        case_matching=CASE_CHOICES.get(args.case) if args.case else None,
        first_row_for_suffix=args.first_row_suffix,
        page_name=args.page,
        layer_names=args.select,
        force_overwrite=args.force,
        csv_encoding=config.BABELBOARD_CSV_ENCODING,
        verbose=bool(args.verbose or config.BABELBOARD_VERBOSE),
    )

    if message:
        print(message)
    if summary:
        print_summary(summary, output)
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
