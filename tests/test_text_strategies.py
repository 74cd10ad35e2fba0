from __future__ import annotations

from locator_healing.config.schema import ElementContext
from locator_healing.strategies.semantic_text import SemanticTextStrategy, semantic_variants, stem
from locator_healing.strategies.text_fuzzy import TextFuzzyMatchStrategy, text_variations
from tests.helpers import ABBREVIATED_LABEL_PAGE, save_document_context

ORDER_PAGE = """
<html><body>
  <div class="actions">
    <button data-testid="order-submit">Submit Orders</button>
    <button>Back</button>
  </div>
</body></html>
"""


def test_fuzzy_text_finds_slightly_changed_labels(healing_config, snapshot_dom):
    strategy = TextFuzzyMatchStrategy(snapshot_dom(ORDER_PAGE), healing_config)
    context = ElementContext(
        original_selector='text="Submit Order"',
        tag_name="button",
        text_content="Submit Order",
        is_visible=True,
    )

    candidates = strategy.generate_candidates(context)
    selectors = [item.selector for item in candidates]

    assert selectors[0] == 'button:has-text("Submit Order")'
    assert '[data-testid="order-submit"]' in selectors
    assert 'text="Submit Order"' not in selectors
    similar = next(item for item in candidates if item.selector == '[data-testid="order-submit"]')
    assert similar.reasoning == 'Similar text content: "Submit Orders"'
    assert similar.features["tagMatch"] == 1.0
    assert similar.features["visibility"] == 1.0
    assert all(item.strategy == "text-fuzzy-match" for item in candidates)


def test_text_variations_cover_case_punctuation_and_substitutions():
    variations = text_variations("Save & Close")
    assert "save & close" in variations
    assert "SAVE & CLOSE" in variations
    assert "Save and Close" in variations
    assert "Save  Close" in variations
    assert "Save&Close" in variations

    assert "Save document" in text_variations("Save doc")


def test_substitutions_only_replace_whole_words():
    variations = text_variations("Save Document")
    assert "Save doc" in variations
    assert "save doc" in variations
    assert not any("documentument" in item.lower() for item in variations)
    assert text_variations("Docket") == ["docket", "DOCKET", "Docket"]
    assert "50percent off" in text_variations("50% off")


def test_text_selectors_skip_tag_forms_for_unknown_tags():
    selectors = TextFuzzyMatchStrategy.text_selectors("Go now", "unknown")
    assert not any(":has-text(" in item for item in selectors)
    assert 'text="Go now"' in selectors
    assert "text=now" in selectors


def test_short_text_is_ignored(healing_config, snapshot_dom):
    dom = snapshot_dom("<html><body><button>X</button></body></html>")
    context = ElementContext(original_selector="#x", tag_name="button", text_content="X")
    assert TextFuzzyMatchStrategy(dom, healing_config).generate_candidates(context) == []
    assert SemanticTextStrategy(dom, healing_config).generate_candidates(context) == []


def test_semantic_variants_swap_synonyms_and_stem():
    assert semantic_variants("Save Document") == ["save document", "save doc"]
    assert semantic_variants("Loading items") == ["loading items", "load item"]
    assert semantic_variants("Sign in") == ["sign in", "login"]
    assert semantic_variants("Documentation") == ["documentation"]


def test_stem_strips_common_suffixes():
    assert stem("Saved") == "sav"
    assert stem("quickly") == "quick"
    assert stem("orders") == "order"
    assert stem("go") == "go"


def test_abbreviated_label_is_found_through_synonyms(healing_config, snapshot_dom):
    strategy = SemanticTextStrategy(snapshot_dom(ABBREVIATED_LABEL_PAGE), healing_config)
    candidates = strategy.generate_candidates(save_document_context())

    selectors = [item.selector for item in candidates]
    assert 'button:has-text("save doc")' in selectors
    assert 'text="save document"' not in selectors
    match = next(item for item in candidates if item.selector == 'button:has-text("save doc")')
    assert match.features["structure"] == 0.5
    assert match.features["visual"] == 0.0
    assert match.reasoning == 'Semantic text variant match: button:has-text("save doc")'


def test_semantic_selectors_include_word_fallbacks():
    selectors = SemanticTextStrategy.build_selectors("Save Document", "unknown")
    assert selectors == [
        'text="save document"',
        "text=save",
        "text=document",
        'text="save doc"',
        "text=doc",
    ]
