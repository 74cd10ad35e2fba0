from __future__ import annotations

import logging
from dataclasses import dataclass

from locator_healing.config.schema import ElementContext
from locator_healing.core.metadata import ElementSnapshot, HealingCandidate
from locator_healing.core.validation import validate_selector
from locator_healing.strategies.base import HealingStrategy
from locator_healing.utils.budget import ScanBudget
from locator_healing.utils.dom_extract import snapshot_selector
from locator_healing.utils.tables import effective_role, is_interactive, related_tags

logger = logging.getLogger(__name__)

TAG_WEIGHT = 0.4
PARENT_WEIGHT = 0.3
INTERACTIVE_WEIGHT = 0.3
RELATED_TAG_CREDIT = 0.7
STRUCTURE_FLOOR = 0.4
PLACEHOLDER_FEATURE = 0.5


@dataclass(slots=True, frozen=True)
class StructuralFingerprint:
    tag: str
    parent_tag: str | None
    interactive: bool
    role: str

    @classmethod
    def of_context(cls, context: ElementContext) -> "StructuralFingerprint":
        return cls(
            tag=context.tag_name,
            parent_tag=context.parent_tag,
            interactive=is_interactive(context.tag_name, context.attributes),
            role=(context.role or "").lower() or effective_role(context.tag_name, context.attributes),
        )

    @classmethod
    def of_snapshot(cls, snapshot: ElementSnapshot) -> "StructuralFingerprint":
        return cls(
            tag=snapshot.tag,
            parent_tag=snapshot.parent_tag or None,
            interactive=snapshot.interactive,
            role=effective_role(snapshot.tag, snapshot.attributes),
        )


def _tag_credit(left: str | None, right: str | None) -> float:
    if not left or not right:
        return 0.0
    if left == right:
        return 1.0
    return RELATED_TAG_CREDIT if related_tags(left, right) else 0.0


def structural_similarity(original: StructuralFingerprint, candidate: StructuralFingerprint) -> float:
    score = TAG_WEIGHT * _tag_credit(original.tag, candidate.tag)
    score += PARENT_WEIGHT * _tag_credit(original.parent_tag, candidate.parent_tag)
    if original.interactive == candidate.interactive:
        score += INTERACTIVE_WEIGHT
    return round(score, 4)


class DomStructureStrategy(HealingStrategy):
    """Whole-document scan ranking elements by tag, parent and interactivity."""

    name = "dom-structure"

    def _generate(self, context: ElementContext, budget: ScanBudget) -> list[HealingCandidate]:
        original = StructuralFingerprint.of_context(context)
        snapshots = self._scan(budget, visible_only=False)
        candidates: list[HealingCandidate] = []
        seen: set[str] = set()
        for snapshot in snapshots:
            if budget.exhausted():
                logger.info("dom-structure stopped early after %d candidates", len(candidates))
                break
            fingerprint = StructuralFingerprint.of_snapshot(snapshot)
            similarity = structural_similarity(original, fingerprint)
            if similarity <= STRUCTURE_FLOOR:
                continue
            selector = snapshot_selector(snapshot, snapshots)
            if selector in seen or not validate_selector(self.dom, selector):
                continue
            seen.add(selector)
            features = {
                "structure": similarity,
                "attribute": PLACEHOLDER_FEATURE,
                "text": PLACEHOLDER_FEATURE,
                "role": PLACEHOLDER_FEATURE,
            }
            candidates.append(
                self._candidate(
                    selector,
                    features,
                    f"DOM structure match: {similarity * 100:.1f}% "
                    f"({fingerprint.tag}, role {fingerprint.role}, under {fingerprint.parent_tag})",
                )
            )
        return candidates
