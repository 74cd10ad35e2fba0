"""Locator dialect spoken between the strategies and the DOM bindings.

Besides plain CSS and XPath, strategies emit three pseudo forms:

* ``text="Save"`` exact text (whitespace collapsed, case-sensitive);
  ``text=save`` case-insensitive substring.
* ``button:has-text("Save")`` CSS-matched elements whose text contains the
  value, case-insensitively.
* ``role=button`` / ``role=button[name="Save"]`` explicit or implicit ARIA role,
  optionally narrowed by a case-insensitive accessible-name substring.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from locator_healing.core.exceptions import SelectorValidationError

_QUOTED = r'"(?:[^"\\]|\\.)*"'
_ROLE_PATTERN = re.compile(rf"^role=([A-Za-z][\w-]*)(?:\[name=({_QUOTED})\])?$")
_HAS_TEXT_PATTERN = re.compile(rf"^(.*?):has-text\(({_QUOTED})\)$")
_CSS_IDENTIFIER = re.compile(r"^-?[A-Za-z_][\w-]*$")


@dataclass(slots=True, frozen=True)
class Locator:
    kind: str
    raw: str
    css: str = ""
    text: str = ""
    exact: bool = False
    role: str = ""
    name: str | None = None


def infer_selector_type(selector: str) -> str:
    stripped = selector.strip()
    if stripped.startswith("/") or stripped.startswith("("):
        return "xpath"
    if stripped.startswith("text="):
        return "text"
    if stripped.startswith("role="):
        return "role"
    if _HAS_TEXT_PATTERN.match(stripped):
        return "has-text"
    return "css"


def parse_locator(selector: str) -> Locator:
    raw = selector.strip()
    if not raw:
        raise SelectorValidationError("Empty locator")
    if "\n" in raw or "\r" in raw:
        raise SelectorValidationError("Locator spans multiple lines")

    kind = infer_selector_type(raw)
    if kind == "xpath":
        return Locator(kind=kind, raw=raw)
    if kind == "text":
        body = raw[len("text="):].strip()
        if len(body) >= 2 and body.startswith('"') and body.endswith('"'):
            value = unquote(body)
            exact = True
        else:
            value = body
            exact = False
        if not value:
            raise SelectorValidationError(f"Text locator without text: {raw}")
        return Locator(kind=kind, raw=raw, text=value, exact=exact)
    if kind == "role":
        match = _ROLE_PATTERN.match(raw)
        if not match:
            raise SelectorValidationError(f"Malformed role locator: {raw}")
        name = unquote(match.group(2)) if match.group(2) else None
        return Locator(kind=kind, raw=raw, role=match.group(1).lower(), name=name)
    if kind == "has-text":
        match = _HAS_TEXT_PATTERN.match(raw)
        css = match.group(1).strip() or "*"
        value = unquote(match.group(2))
        if not value:
            raise SelectorValidationError(f"has-text locator without text: {raw}")
        return Locator(kind=kind, raw=raw, css=css, text=value)
    return Locator(kind="css", raw=raw, css=raw)


def quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def unquote(value: str) -> str:
    inner = value[1:-1]
    return re.sub(r"\\(.)", r"\1", inner)


def is_css_identifier(value: str) -> bool:
    return bool(_CSS_IDENTIFIER.match(value))


def attribute_selector(name: str, value: str, operator: str = "=", tag: str = "") -> str:
    return f"{tag}[{name}{operator}{quote(value)}]"


def id_selector(value: str) -> str:
    if is_css_identifier(value):
        return f"#{value}"
    return attribute_selector("id", value)


def text_selector(text: str, exact: bool = True) -> str:
    if exact:
        return f"text={quote(text)}"
    return f"text={text}"


def has_text_selector(tag: str, text: str) -> str:
    return f"{tag}:has-text({quote(text)})"


def role_selector(role: str, name: str | None = None) -> str:
    if name is None:
        return f"role={role}"
    return f"role={role}[name={quote(name)}]"


def stable_selector_for(tag_name: str, attributes: dict[str, str], text: str) -> str | None:
    """Builds a locator preferring ``data-testid`` > ``id`` > ``name`` > text."""

    if attributes.get("data-testid"):
        return attribute_selector("data-testid", attributes["data-testid"])
    if attributes.get("id"):
        return id_selector(attributes["id"])
    if attributes.get("name"):
        return attribute_selector("name", attributes["name"])
    if text:
        return has_text_selector(tag_name, text)
    return None
