"""Offline DOM queries over a saved page source.

Geometry and styles come from inline ``style`` attributes, since a static
document carries no layout. That is enough to heal against DOM snapshots
captured at failure time and to exercise the strategies deterministically.
"""

from __future__ import annotations

import re
from typing import Any

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from locator_healing.core.dom_query import DomQuery
from locator_healing.core.exceptions import SelectorValidationError, UnsupportedLocatorError
from locator_healing.core.locators import parse_locator
from locator_healing.core.metadata import ElementDescription
from locator_healing.utils.similarity import collapse_whitespace
from locator_healing.utils.tables import NON_RENDERED_TAGS, effective_role

_PX_VALUE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*(?:px)?\s*$")
_INLINE_BLOCK_TAGS = frozenset({"button", "input", "select", "textarea"})
_INLINE_TAGS = frozenset({"a", "span", "label", "img", "strong", "em", "b", "i", "small", "code"})
_TEXT_SKIP_TAGS = frozenset({"script", "style", "noscript", "template"})


class SnapshotDomQuery(DomQuery):
    supports_concurrent_dispatch = True

    def __init__(self, html: str, viewport_width: float = 1280.0) -> None:
        self.soup = BeautifulSoup(html, "lxml")
        self.viewport_width = viewport_width
        root = self.soup.body or self.soup
        self._elements: list[Tag] = [node for node in root.find_all(True) if node.name not in NON_RENDERED_TAGS]

    def exists(self, selector: str) -> bool:
        return bool(self._find(selector))

    def describe(self, selector: str) -> ElementDescription | None:
        matches = self._find(selector)
        if not matches:
            return None
        return self._describe_node(matches[0])

    def describe_all(self, selector: str) -> list[ElementDescription]:
        return [self._describe_node(node) for node in self._find(selector)]

    def is_visible(self, selector: str) -> bool:
        matches = self._find(selector)
        return bool(matches) and _node_visible(matches[0])

    def is_enabled(self, selector: str) -> bool:
        matches = self._find(selector)
        if not matches:
            return False
        node = matches[0]
        return not node.has_attr("disabled") and node.get("aria-disabled", "").lower() != "true"

    def scan(self, script: str, context_data: dict[str, Any]) -> list[dict[str, Any]]:
        visible_only = bool(context_data.get("visible_only"))
        max_nodes = int(context_data.get("max_nodes") or 5000)
        skip = set(context_data.get("skip_tags") or ())
        items: list[dict[str, Any]] = []
        for node in self._elements:
            if len(items) >= max_nodes:
                break
            if node.name in skip:
                continue
            visible = _node_visible(node)
            if visible_only and not visible:
                continue
            parent = node.parent if isinstance(node.parent, Tag) else None
            styles = _inline_styles(node)
            items.append(
                {
                    "tag": node.name,
                    "parent_tag": parent.name if parent is not None and parent.name != "[document]" else "",
                    "attributes": _attributes(node),
                    "text": _text_of(node)[:200],
                    "rect": _rect(styles),
                    "styles": _computed_styles(node, styles),
                    "is_visible": visible,
                    "sibling_count": len(parent.find_all(True, recursive=False)) - 1 if parent is not None else 0,
                    "child_count": len(node.find_all(True, recursive=False)),
                    "viewport_width": self.viewport_width,
                }
            )
        return items

    def _find(self, selector: str) -> list[Tag]:
        try:
            locator = parse_locator(selector)
        except SelectorValidationError:
            return []
        if locator.kind == "xpath":
            raise UnsupportedLocatorError("XPath is not supported on HTML snapshots")
        if locator.kind == "css":
            return self._select(locator.css)
        if locator.kind == "has-text":
            needle = locator.text.lower()
            return [node for node in self._select(locator.css) if needle in _text_of(node).lower()]
        if locator.kind == "text":
            return self._find_text(locator.text, locator.exact)
        return [
            node
            for node in self._elements
            if effective_role(node.name, _attributes(node)) == locator.role
            and (locator.name is None or locator.name.lower() in self._accessible_name(node).lower())
        ]

    def _select(self, css: str) -> list[Tag]:
        try:
            return [node for node in self.soup.select(css) if node.name not in NON_RENDERED_TAGS]
        except (SelectorSyntaxError, NotImplementedError, ValueError):
            return []

    def _find_text(self, text: str, exact: bool) -> list[Tag]:
        def matches(node: Tag) -> bool:
            if node.name in _TEXT_SKIP_TAGS:
                return False
            content = _text_of(node)
            if exact:
                return content == text
            return text.lower() in content.lower()

        found = []
        for node in self._elements:
            if not matches(node):
                continue
            if any(matches(child) for child in node.find_all(True, recursive=False)):
                continue
            found.append(node)
        return found

    def _accessible_name(self, node: Tag) -> str:
        label = node.get("aria-label", "")
        if label.strip():
            return collapse_whitespace(label)
        labelled_by = node.get("aria-labelledby", "")
        if labelled_by:
            parts = [self.soup.find(id=item) for item in labelled_by.split()]
            texts = [_text_of(part) for part in parts if part is not None]
            if texts:
                return collapse_whitespace(" ".join(texts))
        element_id = node.get("id")
        if element_id:
            label_node = self.soup.find("label", attrs={"for": element_id})
            if label_node is not None:
                return _text_of(label_node)
        wrapping = node.find_parent("label")
        if wrapping is not None:
            return _text_of(wrapping)
        for attr in ("alt", "title", "value", "placeholder"):
            value = node.get(attr, "")
            if attr == "value" and node.name != "input":
                continue
            if value.strip():
                return collapse_whitespace(value)
        return _text_of(node)

    @staticmethod
    def _describe_node(node: Tag) -> ElementDescription:
        return ElementDescription(
            tag_name=node.name,
            attributes=_attributes(node),
            text_content=_text_of(node),
            is_visible=_node_visible(node),
        )


def _attributes(node: Tag) -> dict[str, str]:
    attributes: dict[str, str] = {}
    for key, value in node.attrs.items():
        attributes[key] = " ".join(value) if isinstance(value, list) else str(value)
    return attributes


def _text_of(node: Tag) -> str:
    return collapse_whitespace(node.get_text(" ", strip=True))


def _inline_styles(node: Tag) -> dict[str, str]:
    styles: dict[str, str] = {}
    for declaration in node.get("style", "").split(";"):
        if ":" not in declaration:
            continue
        name, value = declaration.split(":", 1)
        styles[name.strip().lower()] = value.strip()
    return styles


def _camel(name: str) -> str:
    head, *rest = name.split("-")
    return head + "".join(part.capitalize() for part in rest)


def _computed_styles(node: Tag, inline: dict[str, str]) -> dict[str, str]:
    if node.name in _INLINE_BLOCK_TAGS:
        display = "inline-block"
    elif node.name in _INLINE_TAGS:
        display = "inline"
    else:
        display = "block"
    styles = {"display": display, "position": "static"}
    for name, value in inline.items():
        styles[_camel(name)] = value
    return styles


def _px(value: str | None) -> float:
    if not value:
        return 0.0
    match = _PX_VALUE.match(value)
    return float(match.group(1)) if match else 0.0


def _rect(inline: dict[str, str]) -> dict[str, float]:
    return {
        "x": _px(inline.get("left")),
        "y": _px(inline.get("top")),
        "width": _px(inline.get("width")),
        "height": _px(inline.get("height")),
    }


def _node_visible(node: Tag) -> bool:
    if node.name == "input" and node.get("type", "").lower() == "hidden":
        return False
    current: Tag | None = node
    while isinstance(current, Tag) and current.name != "[document]":
        if current.has_attr("hidden"):
            return False
        styles = _inline_styles(current)
        if styles.get("display") == "none" or styles.get("visibility") == "hidden":
            return False
        current = current.parent
    return True
