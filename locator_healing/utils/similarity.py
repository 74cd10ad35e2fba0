from __future__ import annotations

import re
from typing import Iterable

from rapidfuzz.distance import Levenshtein

from locator_healing.utils.tables import IMPORTANT_ATTRIBUTES, STABILITY_BONUSES

FUZZY_TEXT_THRESHOLD = 0.65
NEUTRAL_ATTRIBUTE_EVIDENCE = 0.5

_WHITESPACE = re.compile(r"\s+")
_BRACKETS = re.compile(r"[()\[\]{}]")
_NON_WORD = re.compile(r"[^\w\s]")
_COMPLEXITY_CHARS = re.compile(r"[\[\].#]")


def collapse_whitespace(text: str | None) -> str:
    return _WHITESPACE.sub(" ", text or "").strip()


def normalize_whitespace(text: str | None) -> str:
    """Lowercases and collapses runs of whitespace."""

    return collapse_whitespace(text).lower()


def normalize_text(text: str | None) -> str:
    """Normalizes text for fuzzy comparison: brackets and punctuation are dropped."""

    collapsed = collapse_whitespace(text)
    collapsed = _BRACKETS.sub("", collapsed)
    collapsed = _NON_WORD.sub("", collapsed)
    return collapsed.lower()


def word_set(text: str) -> set[str]:
    return {word for word in text.split(" ") if word}


def jaccard(left: Iterable[str], right: Iterable[str]) -> float:
    left_set = set(left)
    right_set = set(right)
    union = left_set | right_set
    if not union:
        return 0.0
    return len(left_set & right_set) / len(union)


def has_identifying_attributes(attributes: dict[str, str]) -> bool:
    return any(attributes.get(key) for key in IMPORTANT_ATTRIBUTES)


def attribute_similarity(candidate: dict[str, str], original: dict[str, str]) -> float:
    """Share of the original's important attributes the candidate reproduces exactly.

    Returns 1.0 when the original carries none of them. That value is vacuous;
    callers that treat attributes as secondary evidence use
    :func:`attribute_evidence` instead.
    """

    present = [key for key in IMPORTANT_ATTRIBUTES if original.get(key)]
    if not present:
        return 1.0
    matches = sum(1 for key in present if candidate.get(key) == original[key])
    return matches / len(present)


def attribute_evidence(candidate: dict[str, str], original: dict[str, str]) -> float:
    if not has_identifying_attributes(original):
        return NEUTRAL_ATTRIBUTE_EVIDENCE
    return attribute_similarity(candidate, original)


def text_similarity(left: str | None, right: str | None) -> float:
    """Word-set overlap of two texts after lowercasing and whitespace collapsing."""

    norm_left = normalize_whitespace(left)
    norm_right = normalize_whitespace(right)
    if norm_left == norm_right:
        return 1.0
    if not norm_left or not norm_right:
        return 0.0
    return jaccard(word_set(norm_left), word_set(norm_right))


def levenshtein_ratio(left: str, right: str) -> float:
    longest = max(len(left), len(right))
    if longest == 0:
        return 1.0
    return 1.0 - Levenshtein.distance(left, right) / longest


def fuzzy_text_similarity(left: str | None, right: str | None) -> float:
    """0.6 x normalized Levenshtein similarity + 0.4 x word Jaccard."""

    norm_left = normalize_text(left)
    norm_right = normalize_text(right)
    if norm_left == norm_right:
        return 1.0
    lev = levenshtein_ratio(norm_left, norm_right)
    overlap = jaccard(word_set(norm_left), word_set(norm_right))
    return 0.6 * lev + 0.4 * overlap


def is_text_similar(left: str | None, right: str | None, threshold: float = FUZZY_TEXT_THRESHOLD) -> bool:
    if not left or not right:
        return False
    return fuzzy_text_similarity(left, right) >= threshold


def length_similarity(left: str | None, right: str | None) -> float:
    left_len = len(left or "")
    right_len = len(right or "")
    longest = max(left_len, right_len)
    if left_len == 0 or longest == 0:
        return 0.0
    return 1.0 - abs(left_len - right_len) / longest


def stability_score(selector: str) -> float:
    score = 0.5
    for token, bonus in STABILITY_BONUSES:
        if token in selector:
            score += bonus
            break
    score -= 0.05 * len(_COMPLEXITY_CHARS.findall(selector))
    return clamp(score)


def simplicity_score(selector: str) -> float:
    return max(0.0, 1.0 - len(selector) / 100)


def ratio(left: float, right: float) -> float:
    """min/max ratio of two non-negative magnitudes; 0 when either is zero."""

    if left <= 0 or right <= 0:
        return 0.0
    return min(left, right) / max(left, right)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))
