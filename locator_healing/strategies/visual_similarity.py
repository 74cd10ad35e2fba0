from __future__ import annotations

from locator_healing.config.schema import ElementContext
from locator_healing.core.metadata import ElementSnapshot, HealingCandidate
from locator_healing.core.validation import validate_selector
from locator_healing.strategies.base import HealingStrategy
from locator_healing.utils.budget import ScanBudget
from locator_healing.utils.dom_extract import snapshot_selector
from locator_healing.utils.visual import color_similarity, has_geometry, layout_similarity, size_similarity

SIZE_WEIGHT = 0.35
TAG_WEIGHT = 0.2
COLOR_WEIGHT = 0.25
LAYOUT_WEIGHT = 0.2
VISUAL_FLOOR = 0.5
PLACEHOLDER_FEATURE = 0.5


def visual_similarity(context: ElementContext, snapshot: ElementSnapshot) -> float:
    score = SIZE_WEIGHT * size_similarity(context.bounding_box, snapshot.rect)
    score += TAG_WEIGHT * (1.0 if snapshot.tag == context.tag_name else 0.0)
    score += COLOR_WEIGHT * color_similarity(context.computed_styles, snapshot.styles)
    score += LAYOUT_WEIGHT * layout_similarity(context.computed_styles, snapshot.styles)
    return round(score, 4)


class VisualSimilarityStrategy(HealingStrategy):
    name = "visual-similarity"

    def _generate(self, context: ElementContext, budget: ScanBudget) -> list[HealingCandidate]:
        # Without recorded geometry there is nothing to compare against.
        if not has_geometry(context.bounding_box):
            return []
        snapshots = [
            item
            for item in self._scan(budget, visible_only=True)
            if item.rect.get("width", 0.0) > 0 and item.rect.get("height", 0.0) > 0
        ]
        candidates: list[HealingCandidate] = []
        seen: set[str] = set()
        for snapshot in snapshots:
            if budget.exhausted():
                break
            similarity = visual_similarity(context, snapshot)
            if similarity <= VISUAL_FLOOR:
                continue
            selector = snapshot_selector(snapshot, snapshots)
            if selector in seen or not validate_selector(self.dom, selector):
                continue
            seen.add(selector)
            features = {
                "visual": similarity,
                "attribute": PLACEHOLDER_FEATURE,
                "text": PLACEHOLDER_FEATURE,
                "structure": PLACEHOLDER_FEATURE,
            }
            candidates.append(
                self._candidate(selector, features, f"Visual similarity match: {similarity * 100:.1f}%")
            )
        return candidates
