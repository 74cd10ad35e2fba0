from __future__ import annotations

from locator_healing.config.schema import ElementContext
from locator_healing.core.locators import has_text_selector, id_selector, stable_selector_for
from locator_healing.core.metadata import ElementDescription, HealingCandidate
from locator_healing.core.validation import describe_matches, fetch_candidate
from locator_healing.strategies.base import HealingStrategy
from locator_healing.utils.budget import ScanBudget
from locator_healing.utils.similarity import attribute_evidence, text_similarity


class AnchorProximityStrategy(HealingStrategy):
    """Finds the element through stable neighbours: its label or a recorded anchor.

    Labels resolve through their ``for`` attribute; CSS anchors scope a
    descendant search for the original tag.
    """

    name = "anchor-proximity"

    def _generate(self, context: ElementContext, budget: ScanBudget) -> list[HealingCandidate]:
        candidates: list[HealingCandidate] = []
        seen: set[str] = set()
        for anchor, selector in self._anchored_selectors(context):
            if budget.exhausted():
                break
            if selector in seen:
                continue
            seen.add(selector)
            description = fetch_candidate(self.dom, selector)
            if description is None:
                continue
            candidates.append(
                self._candidate(selector, self.features(context, description), f"Anchor proximity via {anchor}")
            )
        return candidates

    def _anchored_selectors(self, context: ElementContext):
        for label in context.nearby_labels:
            text = label.strip()
            if len(text) < 2:
                continue
            anchor = has_text_selector("label", text)
            for element in describe_matches(self.dom, anchor):
                target = element.attributes.get("for")
                if target:
                    yield anchor, id_selector(target)

        if context.tag_name == "unknown":
            return
        for anchor in context.stable_anchors:
            scoped = f"{anchor.strip()} {context.tag_name}"
            for element in describe_matches(self.dom, scoped):
                selector = stable_selector_for(element.tag_name, element.attributes, element.text_content)
                if selector:
                    yield anchor, selector

    @staticmethod
    def features(context: ElementContext, candidate: ElementDescription) -> dict[str, float]:
        return {
            "attribute": attribute_evidence(candidate.attributes, context.attributes),
            "structure": 0.6 if candidate.tag_name == context.tag_name else 0.3,
            "text": text_similarity(candidate.text_content, context.text_content),
            "visual": 0.0,
        }
