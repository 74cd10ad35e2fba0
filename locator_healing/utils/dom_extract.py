from __future__ import annotations

from typing import Any, Iterable

from locator_healing.core.locators import attribute_selector, id_selector, is_css_identifier
from locator_healing.core.metadata import ElementSnapshot
from locator_healing.utils.budget import ScanBudget

_SHARED_HELPERS = r"""
const collapse = (value) => (value || "").replace(/\s+/g, " ").trim();
const textOf = (node) => collapse(node.innerText || node.textContent || "");
const attributesOf = (node) => Array.from(node.attributes).reduce((acc, attr) => {
  acc[attr.name] = attr.value;
  return acc;
}, {});
const isVisible = (node) => {
  const rect = node.getBoundingClientRect();
  const style = window.getComputedStyle(node);
  return rect.width > 0 && rect.height > 0 && style.visibility !== "hidden" && style.display !== "none";
};
"""

RESOLVE_LOCATOR_SCRIPT = _SHARED_HELPERS + r"""
const query = arguments[0];
const implicitRole = (node) => {
  const tag = node.tagName.toLowerCase();
  if (tag === "a") return node.hasAttribute("href") ? "link" : "generic";
  if (tag === "img") return node.hasAttribute("alt") ? "img" : "presentation";
  if (tag === "input") {
    const type = (node.getAttribute("type") || "text").toLowerCase();
    const inputRoles = {
      button: "button", submit: "button", reset: "button", image: "button",
      checkbox: "checkbox", radio: "radio", range: "slider", search: "searchbox",
    };
    return inputRoles[type] || "textbox";
  }
  const roles = {
    button: "button", select: "combobox", textarea: "textbox",
    h1: "heading", h2: "heading", h3: "heading", h4: "heading", h5: "heading", h6: "heading",
    nav: "navigation", main: "main", section: "region", article: "article",
    aside: "complementary", header: "banner", footer: "contentinfo",
  };
  return roles[tag] || "generic";
};
const roleOf = (node) => collapse(node.getAttribute("role")).toLowerCase() || implicitRole(node);
const accessibleName = (node) => {
  const label = node.getAttribute("aria-label");
  if (label && label.trim()) return collapse(label);
  const labelledBy = node.getAttribute("aria-labelledby");
  if (labelledBy) {
    const parts = labelledBy.split(/\s+/).map((id) => document.getElementById(id)).filter(Boolean).map(textOf);
    if (parts.length) return collapse(parts.join(" "));
  }
  if (node.labels && node.labels.length) return collapse(Array.from(node.labels).map(textOf).join(" "));
  for (const attr of ["alt", "title", "value", "placeholder"]) {
    const value = node.getAttribute(attr);
    if (value && value.trim() && (attr !== "value" || node.tagName.toLowerCase() === "input")) return collapse(value);
  }
  return textOf(node);
};
const textMatches = (node) => {
  const text = textOf(node);
  if (query.exact) return text === query.text;
  return text.toLowerCase().includes(query.text.toLowerCase());
};

const results = [];
if (query.kind === "text") {
  const all = Array.from(document.body ? document.body.querySelectorAll("*") : []);
  for (const node of all) {
    if (["script", "style", "noscript", "template"].includes(node.tagName.toLowerCase())) continue;
    if (!textMatches(node)) continue;
    if (Array.from(node.children).some(textMatches)) continue;
    results.push(node);
  }
} else if (query.kind === "has-text") {
  const needle = query.text.toLowerCase();
  for (const node of document.querySelectorAll(query.css)) {
    if (textOf(node).toLowerCase().includes(needle)) results.push(node);
  }
} else if (query.kind === "role") {
  for (const node of document.querySelectorAll("*")) {
    if (roleOf(node) !== query.role) continue;
    if (query.name !== null && query.name !== undefined
        && !accessibleName(node).toLowerCase().includes(query.name.toLowerCase())) continue;
    results.push(node);
  }
}
return results;
"""

DESCRIBE_ELEMENT_SCRIPT = _SHARED_HELPERS + r"""
const node = arguments[0];
return {
  tag: node.tagName.toLowerCase(),
  attributes: attributesOf(node),
  text: textOf(node),
  visible: isVisible(node),
};
"""

COLLECT_ELEMENTS_SCRIPT = _SHARED_HELPERS + r"""
const options = arguments[0] || {};
const skip = new Set(options.skip_tags || []);
const items = [];
const viewportWidth = window.innerWidth || document.documentElement.clientWidth || 0;
for (const node of document.querySelectorAll("*")) {
  if (items.length >= (options.max_nodes || 5000)) break;
  const tag = node.tagName.toLowerCase();
  if (skip.has(tag)) continue;
  const visible = isVisible(node);
  if (options.visible_only && !visible) continue;
  const rect = node.getBoundingClientRect();
  const style = window.getComputedStyle(node);
  items.push({
    tag,
    parent_tag: node.parentElement ? node.parentElement.tagName.toLowerCase() : "",
    attributes: attributesOf(node),
    text: textOf(node).slice(0, 200),
    rect: {x: rect.x, y: rect.y, width: rect.width, height: rect.height},
    styles: {
      backgroundColor: style.backgroundColor,
      color: style.color,
      display: style.display,
      position: style.position,
      fontSize: style.fontSize,
      fontFamily: style.fontFamily,
      fontWeight: style.fontWeight,
      borderRadius: style.borderRadius,
      borderWidth: style.borderWidth,
      borderColor: style.borderColor,
    },
    is_visible: visible,
    sibling_count: node.parentElement ? node.parentElement.children.length - 1 : 0,
    child_count: node.children.length,
    viewport_width: viewportWidth,
  });
}
return items;
"""


def scan_payload(*, visible_only: bool, max_nodes: int, skip_tags: Iterable[str]) -> dict[str, Any]:
    return {
        "visible_only": visible_only,
        "max_nodes": max_nodes,
        "skip_tags": sorted(skip_tags),
    }


def iter_snapshots(raw_items: list[dict[str, Any]] | None, budget: ScanBudget | None = None):
    """Yields parsed snapshots until the list or the budget runs out."""

    for index, item in enumerate(raw_items or []):
        if budget is not None and budget.exhausted():
            return
        yield ElementSnapshot.from_payload(index, item)


def extract_snapshots(raw_items: list[dict[str, Any]] | None) -> list[ElementSnapshot]:
    return list(iter_snapshots(raw_items))


def snapshot_selector(snapshot: ElementSnapshot, population: list[ElementSnapshot]) -> str:
    """Locator for a scanned element: id, then data-testid, then a unique class list, then tag."""

    element_id = snapshot.attributes.get("id")
    if element_id:
        return id_selector(element_id)
    test_id = snapshot.attributes.get("data-testid")
    if test_id:
        return attribute_selector("data-testid", test_id)
    classes = snapshot.class_list
    if classes and all(is_css_identifier(item) for item in classes):
        wanted = set(classes)
        holders = sum(1 for other in population if wanted.issubset(other.class_list))
        if holders == 1:
            return "." + ".".join(classes)
    return snapshot.tag
