from __future__ import annotations

import re

from locator_healing.config.schema import ElementContext
from locator_healing.core.locators import has_text_selector, stable_selector_for, text_selector
from locator_healing.core.metadata import ElementDescription, HealingCandidate
from locator_healing.core.validation import describe_matches, fetch_candidate
from locator_healing.strategies.base import HealingStrategy
from locator_healing.utils.budget import ScanBudget
from locator_healing.utils.similarity import (
    attribute_evidence,
    is_text_similar,
    length_similarity,
    levenshtein_ratio,
    normalize_text,
    text_similarity,
)
from locator_healing.utils.tables import TEXT_SUBSTITUTIONS

MIN_TEXT_LENGTH = 2
MIN_WORD_LENGTH = 3


class TextFuzzyMatchStrategy(HealingStrategy):
    name = "text-fuzzy-match"

    def _generate(self, context: ElementContext, budget: ScanBudget) -> list[HealingCandidate]:
        text = context.text_content
        if len(text) < MIN_TEXT_LENGTH:
            return []
        candidates = self._evaluate(
            self.text_selectors(text, context.tag_name),
            budget,
            lambda description, selector: self.features(context, description),
            lambda selector: f"Text-based matching: {selector}",
        )
        candidates.extend(self._similar_text_elements(context, budget))
        return candidates

    @staticmethod
    def text_selectors(text: str, tag_name: str) -> list[str]:
        tag = "" if tag_name == "unknown" else tag_name
        normalized = normalize_text(text)
        selectors: list[str] = []

        def add(value: str) -> None:
            selectors.append(text_selector(value))
            if tag:
                selectors.append(has_text_selector(tag, value))

        add(text)
        if normalized and normalized != text:
            add(normalized)
        for word in _long_words(normalized):
            selectors.append(text_selector(word, exact=False))
            if tag:
                selectors.append(has_text_selector(tag, word))
        for variation in text_variations(text):
            add(variation)
            selectors.extend(text_selector(word, exact=False) for word in _long_words(normalize_text(variation)))
        return selectors

    def _similar_text_elements(self, context: ElementContext, budget: ScanBudget) -> list[HealingCandidate]:
        if context.tag_name == "unknown":
            return []
        candidates: list[HealingCandidate] = []
        for element in describe_matches(self.dom, context.tag_name):
            if budget.exhausted():
                break
            if not is_text_similar(context.text_content, element.text_content):
                continue
            selector = stable_selector_for(element.tag_name, element.attributes, element.text_content)
            if selector is None:
                continue
            description = fetch_candidate(self.dom, selector)
            if description is None:
                continue
            candidates.append(
                self._candidate(
                    selector,
                    self.features(context, description),
                    f'Similar text content: "{element.text_content}"',
                )
            )
        return candidates

    @staticmethod
    def features(context: ElementContext, candidate: ElementDescription) -> dict[str, float]:
        original = context.text_content
        normalized_original = normalize_text(original)
        normalized_candidate = normalize_text(candidate.text_content)
        if normalized_original or normalized_candidate:
            levenshtein = levenshtein_ratio(normalized_original, normalized_candidate)
        else:
            levenshtein = 0.0
        return {
            "text": text_similarity(candidate.text_content, original),
            "levenshtein": levenshtein,
            "tagMatch": 1.0 if candidate.tag_name == context.tag_name else 0.0,
            "attribute": attribute_evidence(candidate.attributes, context.attributes),
            "visibility": 1.0 if candidate.is_visible == context.is_visible else 0.0,
            "lengthSimilarity": length_similarity(original, candidate.text_content),
        }


def _long_words(text: str) -> list[str]:
    return [word for word in text.split(" ") if len(word) >= MIN_WORD_LENGTH]


def _title_case(text: str) -> str:
    return re.sub(r"\w\S*", lambda match: match.group(0)[0].upper() + match.group(0)[1:].lower(), text)


def text_variations(text: str) -> list[str]:
    """Case, whitespace, punctuation and abbreviation variants of ``text``."""

    variations = [
        text.lower(),
        text.upper(),
        _title_case(text),
        re.sub(r"\s+", " ", text).strip(),
        re.sub(r"\s", "", text),
        re.sub(r"[^\w\s]", "", text),
        re.sub(r"[.,!?;:]", "", text),
    ]
    for source, target in TEXT_SUBSTITUTIONS:
        for old, new in ((source, target), (target, source)):
            pattern = _phrase_pattern(old)
            if pattern.search(text):
                variations.append(pattern.sub(new, text))
    return [item for item in dict.fromkeys(variations) if item.strip()]


def _phrase_pattern(phrase: str) -> re.Pattern[str]:
    # Word-character edges must not continue into a longer word; symbols match anywhere.
    head = r"(?<!\w)" if re.match(r"\w", phrase) else ""
    tail = r"(?!\w)" if re.search(r"\w$", phrase) else ""
    return re.compile(head + re.escape(phrase) + tail, re.IGNORECASE)
