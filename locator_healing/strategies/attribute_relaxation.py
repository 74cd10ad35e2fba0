from __future__ import annotations

import re
from itertools import combinations

from locator_healing.config.schema import ElementContext
from locator_healing.core.locators import attribute_selector, has_text_selector, is_css_identifier
from locator_healing.core.metadata import ElementDescription, HealingCandidate
from locator_healing.core.scoring import ATTRIBUTE_RELAXATION_WEIGHTS
from locator_healing.strategies.base import HealingStrategy
from locator_healing.utils.budget import ScanBudget
from locator_healing.utils.similarity import (
    attribute_similarity,
    collapse_whitespace,
    simplicity_score,
    stability_score,
    text_similarity,
)
from locator_healing.utils.tables import (
    GENERIC_BUTTON_TEXTS,
    ID_SUFFIX_REWRITES,
    PARTIAL_MATCH_ATTRIBUTES,
    RELAXATION_PRIORITY,
    STABLE_ATTRIBUTES,
    TEXT_BEARING_ATTRIBUTES,
)

_CONTAINS_ID = re.compile(r'\[id\*="((?:[^"\\]|\\.)*)"\]')

LIMITED_ATTRIBUTE_FLOOR = 0.3
LIMITED_ATTRIBUTE_SCORE = 0.5
LIMITED_TEXT_SCORE = 0.7
PARTIAL_ID_ATTRIBUTE_SCORE = 0.85
LIMITED_BUTTON_TAG_SCORE = 0.8
LIMITED_VISIBILITY_SCORE = 0.9


class AttributeRelaxationStrategy(HealingStrategy):
    """Loosens the original attributes one at a time: exact, contains, prefix, per class."""

    name = "attribute-relaxation"
    weights = ATTRIBUTE_RELAXATION_WEIGHTS

    def _generate(self, context: ElementContext, budget: ScanBudget) -> list[HealingCandidate]:
        candidates: list[HealingCandidate] = []
        for attr in RELAXATION_PRIORITY:
            value = context.attributes.get(attr)
            if not value:
                continue
            candidates.extend(
                self._evaluate(
                    self.attribute_selectors(attr, value, context.tag_name),
                    budget,
                    lambda description, selector: self.features(context, description, selector),
                    lambda selector, attr=attr: f"Relaxed {attr} attribute matching: {selector}",
                )
            )

        if not candidates:
            candidates.extend(self._similar_elements(context, budget))

        for combo in self.combination_selectors(context):
            candidates.extend(
                self._evaluate(
                    [combo],
                    budget,
                    lambda description, selector: self.features(context, description, selector),
                    lambda selector: f"Combined stable attributes: {selector}",
                )
            )
        return candidates

    @staticmethod
    def attribute_selectors(attr: str, value: str, tag_name: str) -> list[str]:
        tag = "" if tag_name == "unknown" else tag_name
        selectors = [attribute_selector(attr, value)]
        if tag:
            selectors.append(attribute_selector(attr, value, tag=tag))
        if attr in PARTIAL_MATCH_ATTRIBUTES:
            selectors.append(attribute_selector(attr, value, "*="))
            selectors.append(attribute_selector(attr, value, "^="))
        if attr == "class":
            for item in value.split():
                if not is_css_identifier(item):
                    continue
                selectors.append(f".{item}")
                if tag:
                    selectors.append(f"{tag}.{item}")
        if attr in TEXT_BEARING_ATTRIBUTES:
            selectors.extend(attribute_selector(attr, variation) for variation in text_variations(value))
        return selectors

    @staticmethod
    def combination_selectors(context: ElementContext) -> list[str]:
        tag = "" if context.tag_name == "unknown" else context.tag_name
        available = [attr for attr in STABLE_ATTRIBUTES if context.attributes.get(attr)]
        selectors: list[str] = []
        for size in (2, 3):
            for combo in combinations(available, size):
                selectors.append(
                    tag + "".join(attribute_selector(attr, context.attributes[attr]) for attr in combo)
                )
        return selectors

    def _similar_elements(self, context: ElementContext, budget: ScanBudget) -> list[HealingCandidate]:
        original = context.original_selector.strip()
        if not original.startswith("#"):
            return []
        id_value = original[1:]
        variations = [id_value, id_value.replace("-", "")]
        variations.extend(re.sub(pattern, replacement, id_value) for pattern, replacement in ID_SUFFIX_REWRITES)
        candidates = self._evaluate(
            [attribute_selector("data-testid", item) for item in variations if item],
            budget,
            lambda description, selector: self.features(context, description, selector),
            lambda selector: f"Similar element found via data-testid: {selector}",
        )
        candidates.extend(
            self._evaluate(
                [has_text_selector("button", text) for text in GENERIC_BUTTON_TEXTS],
                budget,
                lambda description, selector: self.features(context, description, selector),
                lambda selector: f"Similar element found via button text: {selector}",
            )
        )
        return candidates

    @staticmethod
    def features(context: ElementContext, candidate: ElementDescription, selector: str) -> dict[str, float]:
        limited = context.is_limited
        attribute = attribute_similarity(candidate.attributes, context.attributes)
        if context.attributes.get("id"):
            match = _CONTAINS_ID.search(selector)
            if match and match.group(1) in candidate.attributes.get("id", ""):
                attribute = max(attribute, PARTIAL_ID_ATTRIBUTE_SCORE)
        if limited and attribute < LIMITED_ATTRIBUTE_FLOOR:
            attribute = LIMITED_ATTRIBUTE_SCORE

        if limited and not context.text_content:
            text = LIMITED_TEXT_SCORE
        else:
            text = text_similarity(candidate.text_content, context.text_content)

        tag_match = 1.0 if candidate.tag_name == context.tag_name else 0.0
        if limited and candidate.tag_name == "button" and context.tag_name == "unknown":
            tag_match = LIMITED_BUTTON_TAG_SCORE

        visibility = 1.0 if candidate.is_visible == context.is_visible else 0.0
        if limited and candidate.is_visible and not context.is_visible:
            visibility = LIMITED_VISIBILITY_SCORE

        return {
            "attribute": attribute,
            "text": text,
            "tagMatch": tag_match,
            "visibility": visibility,
            "simplicity": simplicity_score(selector),
            "stability": stability_score(selector),
        }


def text_variations(text: str) -> list[str]:
    variations = [
        text.strip(),
        text.lower(),
        text.upper(),
        collapse_whitespace(text),
        re.sub(r"[^\w\s]", "", text).strip(),
    ]
    return [item for item in dict.fromkeys(variations) if item]
