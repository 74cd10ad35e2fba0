"""Static heuristic tables shared by the healing strategies.

Everything here is configuration data, kept apart from the scoring code so the
tables can be tuned and tested on their own.
"""

from __future__ import annotations

IMPORTANT_ATTRIBUTES: tuple[str, ...] = ("id", "data-testid", "name", "type", "role", "aria-label")

RELAXATION_PRIORITY: tuple[str, ...] = (
    "data-testid",
    "data-test",
    "data-cy",
    "id",
    "name",
    "type",
    "role",
    "aria-label",
    "title",
    "placeholder",
    "class",
)

PARTIAL_MATCH_ATTRIBUTES = frozenset({"class", "data-testid", "id"})
TEXT_BEARING_ATTRIBUTES = frozenset({"title", "placeholder", "aria-label"})
STABLE_ATTRIBUTES: tuple[str, ...] = ("data-testid", "id", "name", "type", "role")

ID_SUFFIX_REWRITES: tuple[tuple[str, str], ...] = (
    (r"-btn$", "-button"),
    (r"-button$", "-btn"),
    (r"btn$", "button"),
    (r"button$", "btn"),
)

GENERIC_BUTTON_TEXTS: tuple[str, ...] = ("Click Me", "Submit", "Button", "Click")

# (token, bonus) in priority order; the first token found wins.
STABILITY_BONUSES: tuple[tuple[str, float], ...] = (
    ("data-testid", 0.4),
    ("data-test", 0.35),
    ("data-cy", 0.35),
    ("#", 0.3),
    ("[name=", 0.25),
    ("[type=", 0.2),
    ("[role=", 0.2),
    (".", 0.1),
)

TEXT_SUBSTITUTIONS: tuple[tuple[str, str], ...] = (
    ("&", "and"),
    ("@", "at"),
    ("%", "percent"),
    ("$", "dollar"),
    ("+", "plus"),
    ("document", "doc"),
    ("cancel operation", "cancel"),
    ("save document", "save doc"),
)

SYNONYMS: tuple[tuple[str, str], ...] = (
    ("document", "doc"),
    ("save document", "save doc"),
    ("cancel operation", "cancel"),
    ("username", "user name"),
    ("e-mail", "email"),
    ("sign in", "login"),
    ("sign out", "logout"),
    ("catalog", "catalogue"),
    ("colour", "color"),
    ("amount", "price"),
)

RELATED_TAG_GROUPS: tuple[frozenset[str], ...] = (
    frozenset({"button", "input", "a"}),
    frozenset({"div", "span", "section", "article"}),
    frozenset({"h1", "h2", "h3", "h4", "h5", "h6"}),
    frozenset({"ul", "ol", "dl"}),
    frozenset({"li", "dt", "dd"}),
    frozenset({"p", "blockquote", "pre"}),
    frozenset({"img", "svg", "canvas"}),
    frozenset({"table", "thead", "tbody", "tfoot"}),
    frozenset({"tr", "th", "td"}),
)

INTERACTIVE_TAGS = frozenset({"button", "input", "select", "textarea", "a"})
INTERACTIVE_ROLES = frozenset({"button", "link", "textbox", "combobox", "checkbox", "radio"})

IMPLICIT_ROLES: dict[str, str] = {
    "button": "button",
    "select": "combobox",
    "textarea": "textbox",
    "h1": "heading",
    "h2": "heading",
    "h3": "heading",
    "h4": "heading",
    "h5": "heading",
    "h6": "heading",
    "nav": "navigation",
    "main": "main",
    "section": "region",
    "article": "article",
    "aside": "complementary",
    "header": "banner",
    "footer": "contentinfo",
}

INPUT_TYPE_ROLES: dict[str, str] = {
    "button": "button",
    "submit": "button",
    "reset": "button",
    "image": "button",
    "checkbox": "checkbox",
    "radio": "radio",
    "range": "slider",
    "text": "textbox",
    "email": "textbox",
    "password": "textbox",
    "search": "searchbox",
    "tel": "textbox",
    "url": "textbox",
}

# Role inferred from the tag when the recorded context carries no explicit role.
TAG_ROLE_HINTS: dict[str, str] = {
    "button": "button",
    "input": "button",
    "a": "link",
    "img": "img",
    "select": "combobox",
    "listbox": "combobox",
}

NON_RENDERED_TAGS = frozenset({"html", "head", "script", "style", "meta", "link", "title", "noscript", "template"})

# Viewport widths (px) at which the layout context switches breakpoints.
RESPONSIVE_BREAKPOINTS: tuple[tuple[str, int], ...] = (
    ("mobile", 0),
    ("tablet", 768),
    ("desktop", 1024),
)


def implicit_role(tag_name: str, attributes: dict[str, str] | None = None) -> str:
    attrs = attributes or {}
    tag = (tag_name or "").lower()
    if tag == "a":
        return "link" if "href" in attrs else "generic"
    if tag == "input":
        return INPUT_TYPE_ROLES.get(attrs.get("type", "text").lower(), "textbox")
    if tag == "img":
        return "img" if "alt" in attrs else "presentation"
    return IMPLICIT_ROLES.get(tag, "generic")


def effective_role(tag_name: str, attributes: dict[str, str]) -> str:
    explicit = (attributes.get("role") or "").strip().lower()
    return explicit or implicit_role(tag_name, attributes)


def related_tags(left: str | None, right: str | None) -> bool:
    if not left or not right:
        return False
    return any(left in group and right in group for group in RELATED_TAG_GROUPS)


def is_interactive(tag_name: str, attributes: dict[str, str]) -> bool:
    if (tag_name or "").lower() in INTERACTIVE_TAGS:
        return True
    role = (attributes.get("role") or "").lower()
    if role in INTERACTIVE_ROLES:
        return True
    if "onclick" in attributes or "href" in attributes:
        return True
    tabindex = attributes.get("tabindex")
    if tabindex is None:
        return False
    try:
        return int(tabindex) >= 0
    except ValueError:
        return False


def breakpoint_for(viewport_width: float | None) -> str | None:
    if not viewport_width:
        return None
    label = None
    for name, min_width in RESPONSIVE_BREAKPOINTS:
        if viewport_width >= min_width:
            label = name
    return label
