from __future__ import annotations

from locator_healing.config.schema import ElementContext
from locator_healing.core.locators import role_selector
from locator_healing.core.metadata import ElementDescription, HealingCandidate
from locator_healing.core.scoring import ROLE_NAME_WEIGHTS
from locator_healing.strategies.base import HealingStrategy
from locator_healing.utils.budget import ScanBudget
from locator_healing.utils.similarity import attribute_evidence, stability_score, text_similarity
from locator_healing.utils.tables import TAG_ROLE_HINTS

MAX_NEARBY_LABELS = 3


class RoleAccessibleNameStrategy(HealingStrategy):
    """Targets elements whose ARIA role and accessible name survived a markup change."""

    name = "role-accessible-name"
    weights = ROLE_NAME_WEIGHTS

    def _generate(self, context: ElementContext, budget: ScanBudget) -> list[HealingCandidate]:
        selectors: list[str] = []
        names = self.name_hints(context)
        for role in self.role_hints(context):
            selectors.append(role_selector(role))
            selectors.extend(role_selector(role, name) for name in names)
        return self._evaluate(
            selectors,
            budget,
            lambda description, selector: self.features(context, description, selector),
            lambda selector: f"Role/accessible name matching: {selector}",
        )

    @staticmethod
    def role_hints(context: ElementContext) -> list[str]:
        if context.role and context.role.strip():
            return [context.role.strip().lower()]
        hint = TAG_ROLE_HINTS.get(context.tag_name)
        return [hint] if hint else []

    @staticmethod
    def name_hints(context: ElementContext) -> list[str]:
        hints = [context.aria_name, context.aria_label]
        hints.extend(context.nearby_labels[:MAX_NEARBY_LABELS])
        hints.append(context.text_content)
        return list(dict.fromkeys(item.strip() for item in hints if item and item.strip()))

    @staticmethod
    def features(context: ElementContext, candidate: ElementDescription, selector: str) -> dict[str, float]:
        original_role = (context.role or "").strip().lower()
        candidate_role = (candidate.attributes.get("role") or "").strip().lower()
        candidate_name = candidate.attributes.get("aria-label") or candidate.text_content
        return {
            "role": 1.0 if original_role and candidate_role == original_role else 0.0,
            "text": text_similarity(candidate_name, context.best_name),
            "attribute": attribute_evidence(candidate.attributes, context.attributes),
            "structure": 0.5 if candidate.tag_name == context.tag_name else 0.2,
            "visual": 0.5 if candidate.is_visible == context.is_visible else 0.2,
            "stability": stability_score(selector),
        }
