from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from locator_healing.config.schema import ElementContext, HealingConfig
from locator_healing.core.dom_query import DomQuery
from locator_healing.core.metadata import ElementSnapshot, HealingCandidate
from locator_healing.core.validation import validate_interactable
from locator_healing.strategies.base import HealingStrategy
from locator_healing.utils.budget import ScanBudget
from locator_healing.utils.dom_extract import snapshot_selector
from locator_healing.utils.similarity import clamp
from locator_healing.utils.tables import breakpoint_for
from locator_healing.utils.visual import (
    NEUTRAL_VISUAL_SCORE,
    color_similarity,
    content_similarity,
    has_geometry,
    layout_context_score,
    layout_similarity,
    shape_similarity,
    size_similarity,
    typography_similarity,
)

ScreenshotAnalyzer = Callable[[ElementContext, ElementSnapshot], Any]

SIMILARITY_THRESHOLD = 0.6
COMPONENT_WEIGHTS: dict[str, float] = {
    "size": 0.25,
    "color": 0.2,
    "typography": 0.15,
    "layout": 0.15,
    "content": 0.15,
    "shape": 0.1,
}


@dataclass(slots=True)
class VisualBreakdown:
    size: float
    color: float
    typography: float
    layout: float
    content: float
    shape: float

    @property
    def overall(self) -> float:
        return round(sum(weight * getattr(self, name) for name, weight in COMPONENT_WEIGHTS.items()), 4)

    def as_dict(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in COMPONENT_WEIGHTS}


def decompose(context: ElementContext, snapshot: ElementSnapshot) -> VisualBreakdown:
    styles = context.computed_styles
    return VisualBreakdown(
        size=size_similarity(context.bounding_box, snapshot.rect),
        color=color_similarity(styles, snapshot.styles, empty=NEUTRAL_VISUAL_SCORE),
        typography=typography_similarity(styles, snapshot.styles),
        layout=layout_similarity(styles, snapshot.styles, empty=NEUTRAL_VISUAL_SCORE),
        content=content_similarity(context.tag_name, context.text_content, snapshot),
        shape=shape_similarity(context.bounding_box, styles, snapshot),
    )


def enhanced_confidence(breakdown: VisualBreakdown, layout_context: float, has_screenshot: bool) -> float:
    confidence = breakdown.overall
    if breakdown.overall > 0.8:
        confidence *= 1.1
    if has_screenshot:
        confidence *= 1.05
    if layout_context > 0.7:
        confidence *= 1.03
    if breakdown.typography > 0.8:
        confidence *= 1.02
    if breakdown.color > 0.8:
        confidence *= 1.02
    if breakdown.size < 0.5:
        confidence *= 0.9
    return round(min(confidence, 1.0), 4)


class VisualIntelligenceStrategy(HealingStrategy):
    """Richer visual matching: six similarity components plus confidence multipliers.

    Candidates must be visible and enabled, and only the best ``visual_top_n``
    are kept. A screenshot analyzer, when supplied, is called per scanned
    element; any non-empty result counts as screenshot evidence.
    """

    name = "visual-intelligence"

    def __init__(
        self,
        dom: DomQuery,
        config: HealingConfig | None = None,
        screenshot_analyzer: ScreenshotAnalyzer | None = None,
    ) -> None:
        super().__init__(dom, config)
        self.screenshot_analyzer = screenshot_analyzer

    def _generate(self, context: ElementContext, budget: ScanBudget) -> list[HealingCandidate]:
        if not has_geometry(context.bounding_box):
            return []
        snapshots = self._scan(budget, visible_only=True)
        candidates: list[tuple[HealingCandidate, int]] = []
        seen: set[str] = set()
        for snapshot in snapshots:
            if budget.exhausted():
                break
            breakdown = decompose(context, snapshot)
            if breakdown.overall < SIMILARITY_THRESHOLD:
                continue
            selector = snapshot_selector(snapshot, snapshots)
            if selector in seen or not validate_interactable(self.dom, selector):
                continue
            seen.add(selector)
            analysis = self._analyze(context, snapshot)
            layout_context = layout_context_score(snapshot)
            features = {
                "visual": breakdown.overall,
                **breakdown.as_dict(),
                "screenshot": 0.9 if analysis else 0.5,
                "layoutContext": layout_context,
            }
            candidate = HealingCandidate(
                selector=selector,
                strategy=self.name,
                features={key: round(clamp(value), 4) for key, value in features.items()},
                score=round(clamp(breakdown.overall), 4),
                reasoning=self._reasoning(breakdown, snapshot, bool(analysis)),
                confidence=enhanced_confidence(breakdown, layout_context, bool(analysis)),
            )
            candidates.append((candidate, snapshot.index))
        candidates.sort(key=lambda item: (-item[0].confidence, item[1]))
        return [candidate for candidate, _ in candidates[: self.config.visual_top_n]]

    def _analyze(self, context: ElementContext, snapshot: ElementSnapshot) -> Any:
        if self.screenshot_analyzer is None:
            return None
        return self.screenshot_analyzer(context, snapshot)

    @staticmethod
    def _reasoning(breakdown: VisualBreakdown, snapshot: ElementSnapshot, has_screenshot: bool) -> str:
        reasons = [f"Overall visual similarity: {breakdown.overall * 100:.1f}%"]
        for name, value in breakdown.as_dict().items():
            if value > 0.7:
                reasons.append(f"{name.capitalize()} similarity: {value * 100:.1f}%")
        if has_screenshot:
            reasons.append("Screenshot analysis available")
        label = breakpoint_for(snapshot.viewport_width)
        if label:
            reasons.append(f"Responsive: {label}")
        return ", ".join(reasons)
