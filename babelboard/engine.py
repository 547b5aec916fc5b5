"""High-level orchestration of artboard translation."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Mapping, Sequence

from .errors import EmptySelectionError, MixedSelectionError, SelectionError
from .host import Layer
from .layout import LayoutCursor
from .settings import Settings, SettingsStore
from .structures import ApplyTo, CaseMatching, TranslationMap


class EngineState(Enum):
    IDLE = auto()
    VALIDATING = auto()
    TRANSLATING = auto()
    DONE = auto()
    ABORTED = auto()


@dataclass
class RunSummary:
    """Report returned after translating a set of artboards."""

    locales: List[str]
    template_artboards: int
    created_artboards: List[str] = field(default_factory=list)
    replaced_texts: int = 0
    unmatched_texts: int = 0
    elapsed_seconds: float = 0.0


def normalize(translations: Mapping[str, str], mode: CaseMatching) -> TranslationMap:
    """Return a lookup copy of ``translations`` for the given matching mode.

    Insensitive matching lower-cases the source texts; when two sources only
    differ by case the first one wins. Translations are kept as written.
    """

    if mode != CaseMatching.INSENSITIVE:
        return dict(translations)
    lookup: TranslationMap = {}
    for source, translated in translations.items():
        lookup.setdefault(source.lower(), translated)
    return lookup


def artboards_in_scope(settings: Settings, layers: Sequence[Layer]) -> List[Layer]:
    """Pick the template artboards from the selection or page layers."""

    if settings.apply_to != ApplyTo.CURRENT_PAGE:
        return [layer for layer in layers if layer.is_artboard]

    found: List[Layer] = []
    pending = list(layers)
    while pending:
        layer = pending.pop(0)
        if layer.is_artboard:
            found.append(layer)
        else:
            pending[:0] = layer.children
    return found


class TranslationEngine:
    """Duplicates template artboards once per locale and translates them."""

    def __init__(self, store: SettingsStore, *, verbose: bool = False) -> None:
        self.store = store
        self.verbose = verbose
        self.state = EngineState.IDLE

    def validate_selection(self, settings: Settings, selection: Sequence[Layer]) -> None:
        self.state = EngineState.VALIDATING
        try:
            if settings.apply_to == ApplyTo.CURRENT_PAGE:
                return
            if not selection:
                raise EmptySelectionError()
            if not all(layer.is_artboard for layer in selection):
                raise MixedSelectionError()
        except SelectionError:
            self.state = EngineState.ABORTED
            raise

    def run(
        self,
        settings: Settings,
        selection: Sequence[Layer],
        table: Mapping[str, Mapping[str, str]],
    ) -> RunSummary:
        start_time = time.time()
        self.validate_selection(settings, selection)
        self.state = EngineState.TRANSLATING

        artboards = artboards_in_scope(settings, selection)
        summary = RunSummary(locales=list(table), template_artboards=len(artboards))

        if artboards and table:
            cursor = LayoutCursor.from_layers(artboards)
            for locale, translations in table.items():
                lookup = normalize(translations, settings.case_matching)
                for artboard in artboards:
                    self._translate_artboard(
                        artboard,
                        locale=locale,
                        lookup=lookup,
                        cursor=cursor,
                        settings=settings,
                        summary=summary,
                    )
                cursor.advance()
                if self.verbose:
                    print(f"Created {len(artboards)} artboards for locale '{locale}'.")
        elif self.verbose:
            print("Nothing to translate: no artboards or no locales were found.")

        self.store.save(settings)
        self.state = EngineState.DONE
        summary.elapsed_seconds = time.time() - start_time
        return summary

    def _translate_artboard(
        self,
        artboard: Layer,
        *,
        locale: str,
        lookup: TranslationMap,
        cursor: LayoutCursor,
        settings: Settings,
        summary: RunSummary,
    ) -> None:
        duplicate = artboard.duplicate()
        cursor.place(duplicate, settings.add_new_artboard_to)
        duplicate.name = f"{artboard.name}-{locale}"
        summary.created_artboards.append(duplicate.name)

        insensitive = settings.case_matching == CaseMatching.INSENSITIVE
        for layer in duplicate.text_layers():
            text = str(layer.text)
            matching_text = text.lower() if insensitive else text
            if matching_text in lookup:
                layer.text = lookup[matching_text]
                summary.replaced_texts += 1
            else:
                summary.unmatched_texts += 1
