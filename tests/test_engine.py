import copy

import pytest

from babelboard.engine import (
    EngineState,
    TranslationEngine,
    artboards_in_scope,
    normalize,
)
from babelboard.errors import (
    EmptySelectionError,
    HostOperationError,
    MixedSelectionError,
)
from babelboard.settings import Settings
from babelboard.sketch import SketchLayer
from babelboard.structures import ApplyTo, ArtboardPosition, CaseMatching, Frame

from conftest import make_artboard, make_group, make_page, make_text, wrap


def texts_of(layer):
    return [text.text for text in layer.text_layers()]


def artboards_named(page, suffix):
    return [item for item in wrap(page) if item.name.endswith(suffix)]


class TestNormalize:
    def test_sensitive_returns_independent_copy(self):
        original = {"Hello": "Bonjour"}

        lookup = normalize(original, CaseMatching.SENSITIVE)
        lookup["Hello"] = "changed"

        assert original == {"Hello": "Bonjour"}

    def test_insensitive_lowercases_sources_only(self):
        original = {"Buy Now": "Acheter", "HELLO": "Bonjour"}

        lookup = normalize(original, CaseMatching.INSENSITIVE)

        assert lookup == {"buy now": "Acheter", "hello": "Bonjour"}
        assert original == {"Buy Now": "Acheter", "HELLO": "Bonjour"}

    def test_insensitive_keeps_first_of_colliding_sources(self):
        lookup = normalize({"Hello": "first", "HELLO": "second"}, CaseMatching.INSENSITIVE)

        assert lookup == {"hello": "first"}


class TestValidateSelection:
    def test_empty_selection_aborts(self, store):
        engine = TranslationEngine(store)

        with pytest.raises(EmptySelectionError):
            engine.validate_selection(Settings(), [])
        assert engine.state == EngineState.ABORTED

    def test_mixed_selection_aborts(self, store):
        page = make_page("Page", [make_artboard("Card"), make_text("Loose")])
        engine = TranslationEngine(store)

        with pytest.raises(MixedSelectionError):
            engine.validate_selection(Settings(), wrap(page))
        assert engine.state == EngineState.ABORTED

    def test_current_page_is_always_valid(self, store):
        engine = TranslationEngine(store)

        engine.validate_selection(Settings(apply_to=ApplyTo.CURRENT_PAGE), [])

        assert engine.state == EngineState.VALIDATING


class TestRun:
    def test_card_scenario(self, store, settings_path):
        page = make_page("Page", [make_artboard("Card", [make_text("Buy now")])])
        settings = Settings(case_matching=CaseMatching.INSENSITIVE)
        engine = TranslationEngine(store)

        summary = engine.run(settings, wrap(page), {"fr": {"buy now": "Acheter"}})

        layers = wrap(page)
        assert [layer.name for layer in layers] == ["Card", "Card-fr"]
        original, duplicate = layers
        assert duplicate.frame == original.frame.offset(375 + 100, 0)
        assert texts_of(duplicate) == ["Acheter"]
        assert texts_of(original) == ["Buy now"]
        assert summary.created_artboards == ["Card-fr"]
        assert summary.replaced_texts == 1
        assert engine.state == EngineState.DONE
        assert settings_path.exists()

    def test_case_sensitive_matches_exact_text_only(self, store):
        page = make_page(
            "Page",
            [make_artboard("Card", [make_text("Hello"), make_text("hello")])],
        )
        engine = TranslationEngine(store)

        engine.run(Settings(), wrap(page), {"de": {"hello": "hallo"}})

        duplicate = artboards_named(page, "-de")[0]
        assert texts_of(duplicate) == ["Hello", "hallo"]

    def test_case_insensitive_matches_any_case(self, store):
        page = make_page("Page", [make_artboard("Card", [make_text("Hello")])])
        settings = Settings(case_matching=CaseMatching.INSENSITIVE)
        engine = TranslationEngine(store)

        engine.run(settings, wrap(page), {"de": {"hello": "Hallo"}})

        assert texts_of(artboards_named(page, "-de")[0]) == ["Hallo"]

    def test_unmatched_text_is_left_untouched(self, store):
        page = make_page(
            "Page",
            [make_artboard("Card", [make_text("Ünïcode ✓ text  "), make_text("Buy now")])],
        )
        engine = TranslationEngine(store)

        summary = engine.run(Settings(), wrap(page), {"fr": {"Buy now": "Acheter"}})

        duplicate = artboards_named(page, "-fr")[0]
        assert texts_of(duplicate) == ["Ünïcode ✓ text  ", "Acheter"]
        assert summary.unmatched_texts == 1

    def test_nested_text_layers_are_translated(self, store):
        card = make_artboard(
            "Card",
            [make_group("Button", [make_group("Label", [make_text("OK")])])],
        )
        page = make_page("Page", [card])
        engine = TranslationEngine(store)

        engine.run(Settings(), wrap(page), {"es": {"OK": "Vale"}})

        assert texts_of(artboards_named(page, "-es")[0]) == ["Vale"]

    @pytest.mark.parametrize(
        "position",
        [ArtboardPosition.RIGHT, ArtboardPosition.BOTTOM],
    )
    def test_duplicates_never_overlap_across_locales(self, store, position):
        templates = [
            make_artboard("A", x=0, y=0, width=300, height=500),
            make_artboard("B", x=350, y=40, width=200, height=700),
            make_artboard("C", x=-120, y=900, width=100, height=100),
        ]
        page = make_page("Page", templates)
        table = {locale: {} for locale in ["fr", "de", "es", "it"]}
        engine = TranslationEngine(store)

        summary = engine.run(Settings(add_new_artboard_to=position), wrap(page), table)

        assert len(summary.created_artboards) == 3 * 4
        by_locale = {
            locale: [layer.frame for layer in artboards_named(page, f"-{locale}")]
            for locale in table
        }
        assert all(len(frames) == 3 for frames in by_locale.values())
        locales = list(by_locale)
        for i, first in enumerate(locales):
            for second in locales[i + 1:]:
                for a in by_locale[first]:
                    for b in by_locale[second]:
                        assert not a.intersects(b)

    def test_locales_follow_table_order(self, store):
        page = make_page("Page", [make_artboard("Card")])
        engine = TranslationEngine(store)

        summary = engine.run(Settings(), wrap(page), {"zh": {}, "ar": {}, "de": {}})

        assert summary.created_artboards == ["Card-zh", "Card-ar", "Card-de"]
        offsets = [artboards_named(page, f"-{key}")[0].frame.x for key in ["zh", "ar", "de"]]
        assert offsets == sorted(offsets)

    def test_table_is_not_mutated(self, store):
        page = make_page("Page", [make_artboard("Card", [make_text("HELLO")])])
        table = {"fr": {"Hello": "Bonjour"}, "de": {"Hello": "Hallo"}}
        snapshot = copy.deepcopy(table)
        engine = TranslationEngine(store)

        engine.run(Settings(case_matching=CaseMatching.INSENSITIVE), wrap(page), table)

        assert table == snapshot
        assert texts_of(artboards_named(page, "-fr")[0]) == ["Bonjour"]
        assert texts_of(artboards_named(page, "-de")[0]) == ["Hallo"]

    def test_current_page_collects_artboards_only(self, store):
        page = make_page(
            "Page",
            [
                make_artboard("Home", [make_text("Hi")]),
                make_text("Sticky note"),
                make_group("Folder", [make_artboard("Nested")]),
            ],
        )
        settings = Settings(apply_to=ApplyTo.CURRENT_PAGE)

        scope = artboards_in_scope(settings, wrap(page))

        assert [layer.name for layer in scope] == ["Home", "Nested"]

    def test_empty_selection_creates_nothing_and_keeps_settings(self, store, settings_path):
        page = make_page("Page", [make_artboard("Card")])
        engine = TranslationEngine(store)

        with pytest.raises(EmptySelectionError):
            engine.run(Settings(), [], {"fr": {}})

        assert [layer.name for layer in wrap(page)] == ["Card"]
        assert not settings_path.exists()

    def test_empty_selection_leaves_saved_settings_byte_identical(self, store, settings_path):
        store.save(Settings(case_matching=CaseMatching.INSENSITIVE, filenames=["a.csv"]))
        saved = settings_path.read_bytes()
        engine = TranslationEngine(store)

        with pytest.raises(EmptySelectionError):
            engine.run(Settings(apply_to=ApplyTo.SELECTED_ARTBOARDS), [], {"fr": {}})

        assert settings_path.read_bytes() == saved

    def test_mixed_selection_makes_no_changes(self, store, settings_path):
        page = make_page("Page", [make_artboard("Card"), make_text("Loose")])
        before = copy.deepcopy(page)
        engine = TranslationEngine(store)

        with pytest.raises(MixedSelectionError):
            engine.run(Settings(), wrap(page), {"fr": {"Loose": "Libre"}})

        assert page == before
        assert not settings_path.exists()

    def test_no_artboards_on_page_still_saves_settings(self, store, settings_path):
        page = make_page("Page", [make_text("Alone")])
        engine = TranslationEngine(store)

        summary = engine.run(Settings(apply_to=ApplyTo.CURRENT_PAGE), wrap(page), {"fr": {}})

        assert summary.created_artboards == []
        assert engine.state == EngineState.DONE
        assert settings_path.exists()

    def test_host_failure_keeps_earlier_duplicates(self, store, settings_path):
        page = make_page("Page", [make_artboard("First"), make_artboard("Second")])
        first, second = wrap(page)
        # Detach the second artboard so duplicating it is refused.
        detached = SketchLayer(second.data)
        engine = TranslationEngine(store)

        with pytest.raises(HostOperationError):
            engine.run(Settings(), [first, detached], {"fr": {}, "de": {}})

        assert [layer.name for layer in wrap(page)] == ["First", "First-fr", "Second"]
        assert engine.state == EngineState.TRANSLATING
        assert not settings_path.exists()

    def test_run_saves_settings_used(self, store):
        page = make_page("Page", [make_artboard("Card")])
        settings = Settings(
            add_new_artboard_to=ArtboardPosition.BOTTOM,
            filenames=["/tmp/copy.xlsx"],
        )
        engine = TranslationEngine(store)

        engine.run(settings, wrap(page), {"fr": {}})

        reloaded = type(store)(store.backend).load()
        assert reloaded == settings
        assert artboards_named(page, "-fr")[0].frame == Frame(0, 767, 375, 667)
