from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from locator_healing.core.exceptions import SelectorValidationError
from locator_healing.core.locators import infer_selector_type, parse_locator

DEFAULT_STRATEGY_ORDER: tuple[str, ...] = (
    "attribute-relaxation",
    "role-accessible-name",
    "text-fuzzy-match",
    "anchor-proximity",
    "semantic-text",
    "dom-structure",
    "visual-similarity",
    "visual-intelligence",
)

_CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)
_COMPOUND_TAG = re.compile(r"^([A-Za-z][\w-]*)")
_COMPOUND_ID = re.compile(r"#([\w-]+)")
_COMPOUND_CLASS = re.compile(r"\.([\w-]+)")
_COMPOUND_ATTRIBUTE = re.compile(
    r"""\[\s*([\w-]+)\s*[~|^$*]?=\s*(?:"((?:[^"\\]|\\.)*)"|'([^']*)'|([^\]]*))\s*\]"""
)
_XPATH_TAG = re.compile(r"//([A-Za-z][\w-]*)")
_XPATH_ATTRIBUTE = re.compile(r"""@([\w-]+)\s*=\s*['"]([^'"]*)['"]""")
_XPATH_TEXT = re.compile(r"""text\(\)\s*=\s*['"]([^'"]*)['"]""")


class BoundingBox(BaseModel):
    model_config = _CAMEL_CONFIG

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


class ComputedStyles(BaseModel):
    model_config = _CAMEL_CONFIG

    background_color: str | None = None
    color: str | None = None
    display: str | None = None
    position: str | None = None
    font_size: str | None = None
    font_family: str | None = None
    font_weight: str | None = None
    border_radius: str | None = None
    border_width: str | None = None
    border_color: str | None = None


class ElementContext(BaseModel):
    """Snapshot of the element a test step originally targeted."""

    model_config = _CAMEL_CONFIG

    original_selector: str
    tag_name: str = "unknown"
    attributes: dict[str, str] = Field(default_factory=dict)
    text_content: str = ""
    is_visible: bool = False
    role: str | None = None
    aria_label: str | None = None
    aria_name: str | None = None
    nearby_labels: list[str] = Field(default_factory=list)
    parent_tag: str | None = None
    stable_anchors: list[str] = Field(default_factory=list)
    bounding_box: BoundingBox | None = None
    computed_styles: ComputedStyles | None = None

    @field_validator("tag_name", mode="before")
    @classmethod
    def normalize_tag(cls, value: str | None) -> str:
        normalized = (value or "").strip().lower()
        return normalized or "unknown"

    @field_validator("parent_tag", mode="before")
    @classmethod
    def normalize_parent_tag(cls, value: str | None) -> str | None:
        normalized = (value or "").strip().lower()
        return normalized or None

    @field_validator("text_content", mode="before")
    @classmethod
    def normalize_text(cls, value: str | None) -> str:
        return (value or "").strip()

    @property
    def is_limited(self) -> bool:
        return not self.is_visible and len(self.attributes) <= 2

    @property
    def best_name(self) -> str:
        for value in (self.aria_name, self.aria_label, self.text_content):
            if value and value.strip():
                return value.strip()
        return ""

    @classmethod
    def from_selector(cls, selector: str) -> "ElementContext":
        """Reconstructs a limited context from a failing locator alone."""

        selector_type = infer_selector_type(selector)
        data: dict = {"original_selector": selector}
        if selector_type == "xpath":
            data.update(_xpath_hints(selector))
        elif selector_type in {"text", "role", "has-text"}:
            try:
                locator = parse_locator(selector)
            except SelectorValidationError:
                return cls.model_validate(data)
            if locator.kind == "role":
                data["role"] = locator.role
                if locator.name:
                    data["aria_name"] = locator.name
            else:
                data["text_content"] = locator.text
                if locator.kind == "has-text":
                    data.update(_compound_hints(locator.css))
        else:
            data.update(_compound_hints(selector))
        return cls.model_validate(data)


class ThresholdConfig(BaseModel):
    resolved: float = Field(default=0.8, ge=0.0, le=1.0)
    ambiguity_epsilon: float = Field(default=0.05, ge=0.0, le=1.0)
    minimum: float = Field(default=0.5, ge=0.0, le=1.0)


class ScanConfig(BaseModel):
    time_budget_seconds: float = Field(default=2.0, gt=0.0)
    max_nodes: int = Field(default=5000, gt=0)


class HealingConfig(BaseModel):
    strategies: list[str] = Field(default_factory=lambda: list(DEFAULT_STRATEGY_ORDER))
    thresholds: ThresholdConfig = Field(default_factory=ThresholdConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    visual_top_n: int = Field(default=5, gt=0)
    parallel_strategies: bool = False
    max_workers: int = Field(default=4, gt=0)
    audit_root: str | None = None

    @field_validator("strategies")
    @classmethod
    def validate_strategies(cls, value: list[str]) -> list[str]:
        normalized = [item.strip().lower() for item in value]
        invalid = [item for item in normalized if item not in DEFAULT_STRATEGY_ORDER]
        if invalid:
            raise ValueError(f"Unsupported strategies: {', '.join(invalid)}")
        return list(dict.fromkeys(normalized))


def _last_compound(selector: str) -> str:
    """Right-most compound of a CSS selector.

    Whitespace and ``> + ~`` inside brackets, parentheses or quotes do not
    separate compounds.
    """

    compounds = [""]
    depth = 0
    quote = ""
    escaped = False
    for char in selector.strip():
        if quote:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = ""
            compounds[-1] += char
            continue
        if char in "\"'":
            quote = char
        elif char in "[(":
            depth += 1
        elif char in "])":
            depth = max(0, depth - 1)
        elif depth == 0 and (char.isspace() or char in ">+~"):
            compounds.append("")
            continue
        compounds[-1] += char
    parts = [item for item in compounds if item]
    return parts[-1] if parts else ""


def _compound_hints(selector: str) -> dict:
    # Only the right-most compound names the target element.
    compound = _last_compound(selector)
    hints: dict = {}
    attributes: dict[str, str] = {}
    tag_match = _COMPOUND_TAG.match(compound)
    if tag_match:
        hints["tag_name"] = tag_match.group(1)
    for name, double, single, bare in _COMPOUND_ATTRIBUTE.findall(compound):
        attributes[name] = double or single or bare.strip()
    stripped = _COMPOUND_ATTRIBUTE.sub("", compound)
    id_match = _COMPOUND_ID.search(stripped)
    if id_match:
        attributes["id"] = id_match.group(1)
    classes = _COMPOUND_CLASS.findall(stripped)
    if classes:
        attributes["class"] = " ".join(classes)
    if attributes:
        hints["attributes"] = attributes
    return hints


def _xpath_hints(selector: str) -> dict:
    hints: dict = {}
    tags = _XPATH_TAG.findall(selector)
    if tags:
        hints["tag_name"] = tags[-1]
    attributes = dict(_XPATH_ATTRIBUTE.findall(selector))
    if attributes:
        hints["attributes"] = attributes
    text_match = _XPATH_TEXT.search(selector)
    if text_match:
        hints["text_content"] = text_match.group(1)
    return hints
