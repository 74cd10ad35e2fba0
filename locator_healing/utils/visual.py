"""Geometry and style comparisons between a recorded element and a scanned one."""

from __future__ import annotations

import re

from locator_healing.config.schema import BoundingBox, ComputedStyles
from locator_healing.core.metadata import ElementSnapshot
from locator_healing.utils.similarity import fuzzy_text_similarity, ratio
from locator_healing.utils.tables import breakpoint_for

NEUTRAL_VISUAL_SCORE = 0.5
_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")

COLOR_PROPERTIES = (("background_color", "backgroundColor"), ("color", "color"))
LAYOUT_PROPERTIES = (("display", "display"), ("position", "position"))


def parse_px(value: str | None) -> float:
    if not value:
        return 0.0
    match = _NUMBER.search(value)
    return float(match.group(0)) if match else 0.0


def has_geometry(box: BoundingBox | None) -> bool:
    return box is not None and (box.width > 0 or box.height > 0)


def size_similarity(box: BoundingBox | None, rect: dict[str, float]) -> float:
    """Mean of the width and height min/max ratios; 0 when either side has no size."""

    if not has_geometry(box):
        return 0.0
    width = rect.get("width", 0.0)
    height = rect.get("height", 0.0)
    if width <= 0 and height <= 0:
        return 0.0
    return (ratio(box.width, width) + ratio(box.height, height)) / 2


def _matching_share(
    styles: ComputedStyles | None,
    scanned: dict[str, str],
    properties: tuple[tuple[str, str], ...],
    empty: float,
) -> float:
    if styles is None:
        return empty
    compared = 0
    matches = 0
    for field_name, css_name in properties:
        expected = getattr(styles, field_name)
        actual = scanned.get(css_name)
        if not expected or not actual:
            continue
        compared += 1
        if expected.strip() == actual.strip():
            matches += 1
    return matches / compared if compared else empty


def color_similarity(styles: ComputedStyles | None, scanned: dict[str, str], empty: float = 0.0) -> float:
    return _matching_share(styles, scanned, COLOR_PROPERTIES, empty)


def layout_similarity(styles: ComputedStyles | None, scanned: dict[str, str], empty: float = 0.0) -> float:
    return _matching_share(styles, scanned, LAYOUT_PROPERTIES, empty)


def typography_similarity(styles: ComputedStyles | None, scanned: dict[str, str]) -> float:
    if styles is None:
        return NEUTRAL_VISUAL_SCORE
    scores: list[float] = []
    expected_size = parse_px(styles.font_size)
    actual_size = parse_px(scanned.get("fontSize"))
    if expected_size and actual_size:
        scores.append(ratio(expected_size, actual_size))
    for field_name, css_name in (("font_family", "fontFamily"), ("font_weight", "fontWeight")):
        expected = getattr(styles, field_name)
        actual = scanned.get(css_name)
        if expected and actual:
            scores.append(1.0 if expected.strip().lower() == actual.strip().lower() else 0.0)
    return sum(scores) / len(scores) if scores else NEUTRAL_VISUAL_SCORE


def content_similarity(tag_name: str, text: str, snapshot: ElementSnapshot) -> float:
    if text and snapshot.text:
        return fuzzy_text_similarity(text, snapshot.text)
    if not text and not snapshot.text:
        return 1.0 if tag_name == snapshot.tag else NEUTRAL_VISUAL_SCORE
    return 0.0


def shape_similarity(box: BoundingBox | None, styles: ComputedStyles | None, snapshot: ElementSnapshot) -> float:
    scores: list[float] = []
    width = snapshot.rect.get("width", 0.0)
    height = snapshot.rect.get("height", 0.0)
    if has_geometry(box) and box.height > 0 and height > 0:
        scores.append(ratio(box.width / box.height, width / height))
    if styles is not None and styles.border_radius and snapshot.styles.get("borderRadius"):
        expected = parse_px(styles.border_radius)
        actual = parse_px(snapshot.styles["borderRadius"])
        scores.append(1.0 if expected == actual else ratio(expected, actual))
    return sum(scores) / len(scores) if scores else NEUTRAL_VISUAL_SCORE


def layout_context_score(snapshot: ElementSnapshot) -> float:
    """Position sanity, responsive breakpoint and sibling crowding, averaged."""

    x = snapshot.rect.get("x", 0.0)
    y = snapshot.rect.get("y", 0.0)
    width = snapshot.rect.get("width", 0.0)
    height = snapshot.rect.get("height", 0.0)
    scores = [1.0 if width > 10 and height > 10 and x >= 0 and y >= 0 else 0.5]
    if breakpoint_for(snapshot.viewport_width):
        scores.append(1.0)
    scores.append(1.0 if 0 < snapshot.sibling_count < 10 else 0.7)
    return sum(scores) / len(scores)
