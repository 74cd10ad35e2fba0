from __future__ import annotations

import pytest

from locator_healing.core.exceptions import SelectorValidationError
from locator_healing.core.locators import (
    attribute_selector,
    has_text_selector,
    id_selector,
    infer_selector_type,
    parse_locator,
    role_selector,
    stable_selector_for,
    text_selector,
)


def test_selector_types_are_inferred():
    assert infer_selector_type("#login-button") == "css"
    assert infer_selector_type("//button[@type='submit']") == "xpath"
    assert infer_selector_type("(//button)[1]") == "xpath"
    assert infer_selector_type('text="Save"') == "text"
    assert infer_selector_type('role=button[name="Save"]') == "role"
    assert infer_selector_type('button:has-text("Save")') == "has-text"


def test_text_locators_distinguish_exact_and_substring():
    exact = parse_locator('text="Save Doc"')
    loose = parse_locator("text=save")
    assert (exact.kind, exact.text, exact.exact) == ("text", "Save Doc", True)
    assert (loose.kind, loose.text, loose.exact) == ("text", "save", False)


def test_role_locator_parses_optional_name():
    named = parse_locator('role=Button[name="Say \\"hi\\""]')
    bare = parse_locator("role=link")
    assert named.role == "button"
    assert named.name == 'Say "hi"'
    assert bare.role == "link"
    assert bare.name is None


def test_has_text_locator_splits_css_and_text():
    locator = parse_locator('form button:has-text("Log in")')
    assert locator.kind == "has-text"
    assert locator.css == "form button"
    assert locator.text == "Log in"


@pytest.mark.parametrize("selector", ["", "   ", "text=", "role=button[name=Save]", "#a\n#b"])
def test_malformed_locators_raise(selector):
    with pytest.raises(SelectorValidationError):
        parse_locator(selector)


def test_builders_quote_values():
    assert attribute_selector("id", "submit-btn", "*=") == '[id*="submit-btn"]'
    assert attribute_selector("name", 'say "hi"', tag="input") == 'input[name="say \\"hi\\""]'
    assert text_selector("Save Doc") == 'text="Save Doc"'
    assert text_selector("save", exact=False) == "text=save"
    assert has_text_selector("button", "save doc") == 'button:has-text("save doc")'
    assert role_selector("button") == "role=button"
    assert role_selector("button", "Submit") == 'role=button[name="Submit"]'


def test_id_selector_falls_back_to_attribute_form():
    assert id_selector("login-button") == "#login-button"
    assert id_selector("1st-button") == '[id="1st-button"]'
    assert id_selector("a.b") == '[id="a.b"]'


def test_stable_selector_prefers_test_ids_then_ids_then_names():
    assert stable_selector_for("button", {"data-testid": "t", "id": "i"}, "Go") == '[data-testid="t"]'
    assert stable_selector_for("button", {"id": "i", "name": "n"}, "Go") == "#i"
    assert stable_selector_for("input", {"name": "n"}, "") == '[name="n"]'
    assert stable_selector_for("button", {}, "Go") == 'button:has-text("Go")'
    assert stable_selector_for("div", {}, "") is None
