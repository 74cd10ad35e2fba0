from __future__ import annotations

import re

from locator_healing.config.schema import ElementContext
from locator_healing.core.locators import has_text_selector, text_selector
from locator_healing.core.metadata import ElementDescription, HealingCandidate
from locator_healing.strategies.base import HealingStrategy
from locator_healing.utils.budget import ScanBudget
from locator_healing.utils.similarity import attribute_evidence, normalize_text, text_similarity
from locator_healing.utils.tables import SYNONYMS

MIN_TEXT_LENGTH = 2
_STEM_SUFFIX = re.compile(r"(ing|ed|ly|s)$", re.IGNORECASE)


def _phrase_pattern(phrase: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(phrase)}\b", re.IGNORECASE)


def stem(word: str) -> str:
    return _STEM_SUFFIX.sub("", word).lower()


def semantic_variants(text: str) -> list[str]:
    """Normalized text, its synonym swaps in both directions, and a stemmed form."""

    base = normalize_text(text)
    variants = [base]
    for left, right in SYNONYMS:
        for source, target in ((left, right), (right, left)):
            pattern = _phrase_pattern(source)
            if pattern.search(base):
                variants.append(pattern.sub(target, base))
    stemmed = " ".join(stem(token) for token in base.split(" ") if token).strip()
    if stemmed and stemmed != base:
        variants.append(stemmed)
    return [item for item in dict.fromkeys(variants) if item]


class SemanticTextStrategy(HealingStrategy):
    name = "semantic-text"

    def _generate(self, context: ElementContext, budget: ScanBudget) -> list[HealingCandidate]:
        if len(context.text_content) < MIN_TEXT_LENGTH:
            return []
        return self._evaluate(
            self.build_selectors(context.text_content, context.tag_name),
            budget,
            lambda description, selector: self.features(context, description),
            lambda selector: f"Semantic text variant match: {selector}",
        )

    @staticmethod
    def build_selectors(text: str, tag_name: str) -> list[str]:
        tag = "" if tag_name == "unknown" else tag_name
        selectors: list[str] = []
        for variant in semantic_variants(text):
            selectors.append(text_selector(variant))
            if tag:
                selectors.append(has_text_selector(tag, variant))
            selectors.extend(text_selector(word, exact=False) for word in variant.split(" ") if len(word) > 2)
        return list(dict.fromkeys(selectors))

    @staticmethod
    def features(context: ElementContext, candidate: ElementDescription) -> dict[str, float]:
        return {
            "text": text_similarity(candidate.text_content, context.text_content),
            "attribute": attribute_evidence(candidate.attributes, context.attributes),
            "structure": 0.5 if candidate.tag_name == context.tag_name else 0.2,
            "visual": 0.0,
        }
