from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

import pytest
from selenium.common.exceptions import WebDriverException

from locator_healing.config.schema import BoundingBox, ComputedStyles, ElementContext
from locator_healing.core.browser import BrowserSession
from locator_healing.core.metadata import HealingCandidate
from locator_healing.strategies.base import HealingStrategy

SUBMIT_ID_CHANGED_PAGE = """
<html><body>
  <form id="checkout-form">
    <button id="submit-btn-new" class="btn btn-primary" type="submit">Place order</button>
  </form>
</body></html>
"""

ABBREVIATED_LABEL_PAGE = """
<html><body>
  <div class="toolbar">
    <button class="primary" type="button">Save Doc</button>
    <button type="button">Cancel</button>
  </div>
</body></html>
"""

CLASS_CHANGED_PAGE = """
<html><body>
  <form>
    <input name="email" type="email">
    <button class="btn-primary-v2" role="button" type="submit">Submit</button>
  </form>
</body></html>
"""

ELEMENT_REMOVED_PAGE = """
<html><body>
  <div class="banner">Welcome back</div>
</body></html>
"""

LOGIN_PAGE = """
<html><body>
  <div id="app" style="width: 800px; height: 600px">
    <form id="login-form" style="width: 400px; height: 300px">
      <label for="email-input">Email address</label>
      <input id="email-input" name="email" type="email" placeholder="Email">
      <button id="login-button-v2" data-testid="login-submit" type="submit" class="btn btn-primary"
        style="left: 20px; top: 240px; width: 120px; height: 40px; background-color: rgb(0, 0, 255);
               color: rgb(255, 255, 255); display: inline-block">Log in</button>
      <a href="/forgot" class="link">Forgot password?</a>
    </form>
  </div>
</body></html>
"""

DISABLED_LOGIN_PAGE = LOGIN_PAGE.replace('type="submit" class', 'type="submit" disabled class')


def submit_id_context() -> ElementContext:
    return ElementContext(original_selector="#submit-btn", attributes={"id": "submit-btn"})


def save_document_context() -> ElementContext:
    return ElementContext(
        original_selector='text="Save Document"',
        tag_name="button",
        text_content="Save Document",
        is_visible=True,
    )


def submit_role_context() -> ElementContext:
    return ElementContext(
        original_selector=".btn-old",
        tag_name="button",
        attributes={"class": "btn-old"},
        role="button",
        aria_name="Submit",
    )


def removed_checkout_context() -> ElementContext:
    return ElementContext(
        original_selector="#checkout",
        tag_name="button",
        attributes={"id": "checkout"},
        text_content="Checkout",
        role="button",
        is_visible=True,
    )


def login_button_context(**overrides) -> ElementContext:
    data = {
        "original_selector": "#login-button",
        "tag_name": "button",
        "attributes": {"id": "login-button", "type": "submit"},
        "text_content": "Log in",
        "is_visible": True,
        "bounding_box": BoundingBox(x=20, y=240, width=120, height=40),
        "computed_styles": ComputedStyles(
            background_color="rgb(0, 0, 255)",
            color="rgb(255, 255, 255)",
            display="inline-block",
            position="static",
        ),
    }
    data.update(overrides)
    return ElementContext(**data)


def candidate(selector: str, confidence: float, strategy: str = "static", reasoning: str = "") -> HealingCandidate:
    return HealingCandidate(
        selector=selector,
        strategy=strategy,
        features={"attribute": confidence},
        score=confidence,
        reasoning=reasoning or f"{strategy} proposed {selector}",
    )


def ranking(candidates: list[HealingCandidate]) -> list[tuple[str, float]]:
    return [(item.selector, item.confidence) for item in candidates]


class StaticStrategy(HealingStrategy):
    """Returns a fixed candidate list regardless of the page."""

    def __init__(self, name: str, candidates: list[HealingCandidate]) -> None:
        super().__init__(None)
        self.name = name
        self.candidates = candidates

    def _generate(self, context, budget):
        return list(self.candidates)


class ExplodingStrategy(HealingStrategy):
    name = "exploding"

    def __init__(self) -> None:
        super().__init__(None)

    def _generate(self, context, budget):
        raise RuntimeError("matcher blew up")


class CancellingStrategy(HealingStrategy):
    """Cancels the surrounding healing attempt while it runs."""

    name = "cancelling"

    def __init__(self, event: threading.Event, candidates: list[HealingCandidate]) -> None:
        super().__init__(None)
        self.event = event
        self.candidates = candidates

    def _generate(self, context, budget):
        self.event.set()
        return list(self.candidates)


class StepClock:
    """Monotonic stand-in that advances one second per reading."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        current = self.now
        self.now += 1.0
        return current


@contextmanager
def managed_browser(browser_name: str = "chrome") -> Iterator[BrowserSession]:
    session = BrowserSession(browser_name=browser_name, headless=True)
    try:
        session.start()
    except WebDriverException as exc:
        pytest.skip(f"WebDriver could not start for {browser_name}: {exc}")
    try:
        yield session
    finally:
        session.stop()
