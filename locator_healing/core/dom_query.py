from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from selenium.common.exceptions import (
    InvalidSelectorException,
    JavascriptException,
    NoSuchElementException,
    StaleElementReferenceException,
)
from selenium.webdriver.common.by import By

from locator_healing.core.exceptions import SelectorValidationError
from locator_healing.core.locators import parse_locator
from locator_healing.core.metadata import ElementDescription
from locator_healing.utils.dom_extract import DESCRIBE_ELEMENT_SCRIPT, RESOLVE_LOCATOR_SCRIPT


class DomQuery(ABC):
    """Read-only view of the page the strategies heal against."""

    supports_concurrent_dispatch = False

    @abstractmethod
    def exists(self, selector: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def describe(self, selector: str) -> ElementDescription | None:
        raise NotImplementedError

    @abstractmethod
    def describe_all(self, selector: str) -> list[ElementDescription]:
        raise NotImplementedError

    @abstractmethod
    def is_visible(self, selector: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def is_enabled(self, selector: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def scan(self, script: str, context_data: dict[str, Any]) -> list[dict[str, Any]]:
        """Evaluates ``script`` over the whole document and returns plain element payloads."""
        raise NotImplementedError


class SeleniumDomQuery(DomQuery):
    """DOM queries against a live Selenium session.

    CSS and XPath go through ``find_elements``; the text and role forms are
    resolved in page by an injected script.
    """

    def __init__(self, driver) -> None:
        self.driver = driver

    def exists(self, selector: str) -> bool:
        return bool(self._find(selector))

    def describe(self, selector: str) -> ElementDescription | None:
        matches = self._find(selector)
        if not matches:
            return None
        return self._describe_element(matches[0])

    def describe_all(self, selector: str) -> list[ElementDescription]:
        descriptions: list[ElementDescription] = []
        for element in self._find(selector):
            description = self._describe_element(element)
            if description is not None:
                descriptions.append(description)
        return descriptions

    def is_visible(self, selector: str) -> bool:
        matches = self._find(selector)
        if not matches:
            return False
        try:
            return bool(matches[0].is_displayed())
        except StaleElementReferenceException:
            return False

    def is_enabled(self, selector: str) -> bool:
        matches = self._find(selector)
        if not matches:
            return False
        try:
            return bool(matches[0].is_enabled())
        except StaleElementReferenceException:
            return False

    def scan(self, script: str, context_data: dict[str, Any]) -> list[dict[str, Any]]:
        return self.driver.execute_script(script, context_data) or []

    def _find(self, selector: str) -> list:
        try:
            locator = parse_locator(selector)
        except SelectorValidationError:
            return []
        try:
            if locator.kind == "css":
                return self.driver.find_elements(By.CSS_SELECTOR, locator.css)
            if locator.kind == "xpath":
                return self.driver.find_elements(By.XPATH, locator.raw)
            payload = {
                "kind": locator.kind,
                "css": locator.css,
                "text": locator.text,
                "exact": locator.exact,
                "role": locator.role,
                "name": locator.name,
            }
            return self.driver.execute_script(RESOLVE_LOCATOR_SCRIPT, payload) or []
        except (InvalidSelectorException, JavascriptException, NoSuchElementException):
            return []

    def _describe_element(self, element) -> ElementDescription | None:
        try:
            payload = self.driver.execute_script(DESCRIBE_ELEMENT_SCRIPT, element)
        except (StaleElementReferenceException, JavascriptException):
            return None
        if not payload:
            return None
        return ElementDescription(
            tag_name=payload.get("tag", ""),
            attributes=payload.get("attributes", {}),
            text_content=payload.get("text", ""),
            is_visible=bool(payload.get("visible")),
        )
