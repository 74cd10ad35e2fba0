from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from locator_healing.config.loader import ConfigLoader
from locator_healing.config.schema import DEFAULT_STRATEGY_ORDER, ElementContext, HealingConfig


def test_config_loader_validates_json(tmp_path):
    config_path = tmp_path / "healing.json"
    config_path.write_text(
        json.dumps(
            {
                "strategies": ["Role-Accessible-Name", "attribute-relaxation", "role-accessible-name"],
                "thresholds": {"resolved": 0.85, "ambiguity_epsilon": 0.02, "minimum": 0.4},
                "scan": {"time_budget_seconds": 1.5, "max_nodes": 200},
                "parallel_strategies": True,
            }
        ),
        encoding="utf-8",
    )
    config = ConfigLoader.load(config_path)
    assert config.strategies == ["role-accessible-name", "attribute-relaxation"]
    assert config.thresholds.resolved == 0.85
    assert config.scan.max_nodes == 200
    assert config.parallel_strategies is True
    assert config.visual_top_n == 5


def test_config_defaults_cover_every_strategy():
    config = HealingConfig()
    assert config.strategies == list(DEFAULT_STRATEGY_ORDER)
    assert config.thresholds.resolved == 0.8
    assert config.thresholds.ambiguity_epsilon == 0.05
    assert config.thresholds.minimum == 0.5
    assert config.parallel_strategies is False


def test_config_rejects_unknown_strategies_and_bad_thresholds():
    with pytest.raises(ValidationError):
        HealingConfig(strategies=["attribute-relaxation", "llm-repair"])
    with pytest.raises(ValidationError):
        HealingConfig.model_validate({"thresholds": {"resolved": 1.5}})
    with pytest.raises(ValidationError):
        HealingConfig.model_validate({"scan": {"time_budget_seconds": 0}})


def test_context_loader_accepts_camel_case(tmp_path):
    context_path = tmp_path / "context.json"
    context_path.write_text(
        json.dumps(
            {
                "originalSelector": "#login",
                "tagName": "BUTTON",
                "attributes": {"id": "login"},
                "textContent": "  Log in ",
                "isVisible": True,
                "ariaName": "Log in",
                "nearbyLabels": ["Sign in form"],
                "boundingBox": {"x": 1, "y": 2, "width": 120, "height": 40},
                "computedStyles": {"backgroundColor": "rgb(0, 0, 255)", "fontSize": "14px"},
            }
        ),
        encoding="utf-8",
    )
    context = ConfigLoader.load_context(context_path)
    assert context.tag_name == "button"
    assert context.text_content == "Log in"
    assert context.bounding_box.width == 120
    assert context.computed_styles.background_color == "rgb(0, 0, 255)"
    assert context.computed_styles.font_size == "14px"
    assert context.nearby_labels == ["Sign in form"]
    assert not context.is_limited


def test_context_is_read_only():
    context = ElementContext(original_selector="#a")
    with pytest.raises(ValidationError):
        context.tag_name = "button"


def test_limited_context_detection():
    assert ElementContext(original_selector="#a", attributes={"id": "a"}).is_limited
    assert not ElementContext(original_selector="#a", attributes={"id": "a"}, is_visible=True).is_limited
    assert not ElementContext(
        original_selector="#a",
        attributes={"id": "a", "name": "a", "type": "submit"},
    ).is_limited


def test_best_name_prefers_aria_name_then_label_then_text():
    assert ElementContext(original_selector="#a", aria_name="A", aria_label="B", text_content="C").best_name == "A"
    assert ElementContext(original_selector="#a", aria_label="B", text_content="C").best_name == "B"
    assert ElementContext(original_selector="#a", text_content="C").best_name == "C"
    assert ElementContext(original_selector="#a").best_name == ""


@pytest.mark.parametrize(
    ("selector", "expected"),
    [
        ("#submit-btn", {"tag_name": "unknown", "attributes": {"id": "submit-btn"}}),
        ("form button.btn-old.primary", {"tag_name": "button", "attributes": {"class": "btn-old primary"}}),
        ('input[name="email"]', {"tag_name": "input", "attributes": {"name": "email"}}),
        ('button[aria-label="Save document"]', {"tag_name": "button", "attributes": {"aria-label": "Save document"}}),
        ('nav.menu > a[class~="nav-link"]', {"tag_name": "a", "attributes": {"class": "nav-link"}}),
        ('form [title="a > b"]', {"tag_name": "unknown", "attributes": {"title": "a > b"}}),
        ('li:nth-child(2 of .x) span#go', {"tag_name": "span", "attributes": {"id": "go"}}),
        ('role=button[name="Submit"]', {"role": "button", "aria_name": "Submit"}),
        ('text="Save Document"', {"text_content": "Save Document"}),
        ('button:has-text("Save")', {"tag_name": "button", "text_content": "Save"}),
        ("//button[@id='go']", {"tag_name": "button", "attributes": {"id": "go"}}),
        ("//span[text()='Go']", {"tag_name": "span", "text_content": "Go"}),
    ],
)
def test_context_from_selector(selector, expected):
    context = ElementContext.from_selector(selector)
    assert context.original_selector == selector
    for field_name, value in expected.items():
        assert getattr(context, field_name) == value
    assert not context.is_visible
