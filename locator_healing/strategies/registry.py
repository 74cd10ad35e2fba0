from __future__ import annotations

from locator_healing.config.schema import HealingConfig
from locator_healing.core.dom_query import DomQuery
from locator_healing.strategies.anchor_proximity import AnchorProximityStrategy
from locator_healing.strategies.attribute_relaxation import AttributeRelaxationStrategy
from locator_healing.strategies.base import HealingStrategy
from locator_healing.strategies.dom_structure import DomStructureStrategy
from locator_healing.strategies.role_name import RoleAccessibleNameStrategy
from locator_healing.strategies.semantic_text import SemanticTextStrategy
from locator_healing.strategies.text_fuzzy import TextFuzzyMatchStrategy
from locator_healing.strategies.visual_intelligence import ScreenshotAnalyzer, VisualIntelligenceStrategy
from locator_healing.strategies.visual_similarity import VisualSimilarityStrategy

STRATEGY_CLASSES: dict[str, type[HealingStrategy]] = {
    cls.name: cls
    for cls in (
        AttributeRelaxationStrategy,
        RoleAccessibleNameStrategy,
        TextFuzzyMatchStrategy,
        AnchorProximityStrategy,
        SemanticTextStrategy,
        DomStructureStrategy,
        VisualSimilarityStrategy,
        VisualIntelligenceStrategy,
    )
}


def build_strategies(
    dom: DomQuery,
    config: HealingConfig,
    screenshot_analyzer: ScreenshotAnalyzer | None = None,
) -> list[HealingStrategy]:
    strategies: list[HealingStrategy] = []
    for name in config.strategies:
        cls = STRATEGY_CLASSES[name]
        if cls is VisualIntelligenceStrategy:
            strategies.append(VisualIntelligenceStrategy(dom, config, screenshot_analyzer))
        else:
            strategies.append(cls(dom, config))
    return strategies
