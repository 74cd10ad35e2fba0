from __future__ import annotations

import pytest

from locator_healing.config.schema import HealingConfig, ScanConfig
from locator_healing.strategies.dom_structure import (
    DomStructureStrategy,
    StructuralFingerprint,
    structural_similarity,
)
from locator_healing.strategies.visual_intelligence import (
    VisualBreakdown,
    VisualIntelligenceStrategy,
    enhanced_confidence,
)
from locator_healing.strategies.visual_similarity import VisualSimilarityStrategy
from locator_healing.utils.budget import ScanBudget
from tests.helpers import DISABLED_LOGIN_PAGE, LOGIN_PAGE, login_button_context

TWIN_BUTTONS_PAGE = """
<html><body><div>
  <button id="first" style="width: 120px; height: 40px">Log in</button>
  <button id="second" style="width: 120px; height: 40px">Log in</button>
</div></body></html>
"""


def test_structural_similarity_gives_partial_credit():
    original = StructuralFingerprint(tag="button", parent_tag="form", interactive=True, role="button")
    assert structural_similarity(original, original) == 1.0
    assert structural_similarity(
        original, StructuralFingerprint(tag="a", parent_tag="form", interactive=True, role="link")
    ) == pytest.approx(0.88)
    assert structural_similarity(
        original, StructuralFingerprint(tag="div", parent_tag=None, interactive=False, role="generic")
    ) == 0.0


def test_dom_structure_ranks_by_tag_parent_and_interactivity(healing_config, snapshot_dom):
    strategy = DomStructureStrategy(snapshot_dom(LOGIN_PAGE), healing_config)
    candidates = strategy.generate_candidates(login_button_context(parent_tag="form"))

    by_selector = {item.selector: item for item in candidates}
    assert list(by_selector) == ["#email-input", "#login-button-v2", ".link"]
    assert by_selector["#login-button-v2"].features["structure"] == 1.0
    assert by_selector["#email-input"].features["structure"] == pytest.approx(0.88)
    assert by_selector["#login-button-v2"].score == pytest.approx(0.525)
    assert "under form" in by_selector["#login-button-v2"].reasoning


def test_dom_structure_respects_the_scan_budget(healing_config, snapshot_dom):
    strategy = DomStructureStrategy(snapshot_dom(LOGIN_PAGE), healing_config)
    assert strategy.generate_candidates(login_button_context(), ScanBudget(0.0)) == []


def test_dom_structure_honours_the_node_cap(snapshot_dom):
    config = HealingConfig(scan=ScanConfig(time_budget_seconds=60.0, max_nodes=4))
    strategy = DomStructureStrategy(snapshot_dom(LOGIN_PAGE), config)
    candidates = strategy.generate_candidates(login_button_context(parent_tag="form"))
    assert [item.selector for item in candidates] == ["#email-input"]


def test_visual_similarity_matches_geometry_and_styles(healing_config, snapshot_dom):
    strategy = VisualSimilarityStrategy(snapshot_dom(LOGIN_PAGE), healing_config)
    candidates = strategy.generate_candidates(login_button_context())

    assert [item.selector for item in candidates] == ["#login-button-v2"]
    assert candidates[0].features["visual"] == 1.0
    assert candidates[0].score == pytest.approx(0.45)
    assert candidates[0].reasoning == "Visual similarity match: 100.0%"


def test_visual_strategies_need_recorded_geometry(healing_config, snapshot_dom):
    dom = snapshot_dom(LOGIN_PAGE)
    context = login_button_context(bounding_box=None)
    assert VisualSimilarityStrategy(dom, healing_config).generate_candidates(context) == []
    assert VisualIntelligenceStrategy(dom, healing_config).generate_candidates(context) == []


def test_visual_intelligence_boosts_strong_matches(healing_config, snapshot_dom):
    strategy = VisualIntelligenceStrategy(snapshot_dom(LOGIN_PAGE), healing_config)
    candidates = strategy.generate_candidates(login_button_context())

    assert [item.selector for item in candidates] == ["#login-button-v2"]
    match = candidates[0]
    assert match.score == pytest.approx(0.925)
    assert match.confidence == 1.0
    assert match.features["size"] == 1.0
    assert match.features["typography"] == 0.5
    assert match.features["screenshot"] == 0.5
    assert match.features["layoutContext"] == 1.0
    assert "Responsive: desktop" in match.reasoning


def test_screenshot_evidence_is_recorded(healing_config, snapshot_dom):
    strategy = VisualIntelligenceStrategy(
        snapshot_dom(LOGIN_PAGE),
        healing_config,
        screenshot_analyzer=lambda context, snapshot: {"matched": snapshot.tag == "button"},
    )
    match = strategy.generate_candidates(login_button_context())[0]
    assert match.features["screenshot"] == 0.9
    assert "Screenshot analysis available" in match.reasoning


def test_visual_intelligence_skips_disabled_elements(healing_config, snapshot_dom):
    strategy = VisualIntelligenceStrategy(snapshot_dom(DISABLED_LOGIN_PAGE), healing_config)
    assert strategy.generate_candidates(login_button_context()) == []


def test_visual_intelligence_keeps_the_top_n_in_document_order(snapshot_dom):
    dom = snapshot_dom(TWIN_BUTTONS_PAGE)
    both = VisualIntelligenceStrategy(dom, HealingConfig()).generate_candidates(login_button_context())
    one = VisualIntelligenceStrategy(dom, HealingConfig(visual_top_n=1)).generate_candidates(login_button_context())

    assert [item.selector for item in both] == ["#first", "#second"]
    assert [item.selector for item in one] == ["#first"]
    assert both[0].score == pytest.approx(0.825)


def test_enhanced_confidence_applies_each_multiplier():
    breakdown = VisualBreakdown(size=0.4, color=0.9, typography=0.9, layout=0.5, content=0.5, shape=0.5)
    assert breakdown.overall == pytest.approx(0.615)
    assert enhanced_confidence(breakdown, layout_context=0.8, has_screenshot=True) == pytest.approx(0.6228, abs=1e-4)
    assert enhanced_confidence(breakdown, layout_context=0.5, has_screenshot=False) == pytest.approx(
        0.615 * 1.02 * 1.02 * 0.9, abs=1e-4
    )

    perfect = VisualBreakdown(size=1.0, color=1.0, typography=1.0, layout=1.0, content=1.0, shape=1.0)
    assert enhanced_confidence(perfect, layout_context=1.0, has_screenshot=True) == 1.0
