from __future__ import annotations

import logging

from locator_healing.core.dom_query import DomQuery
from locator_healing.core.exceptions import HealingError
from locator_healing.core.metadata import ElementDescription

logger = logging.getLogger(__name__)


def validate_selector(dom: DomQuery, selector: str) -> bool:
    """True when ``selector`` resolves to at least one element.

    Locators the binding cannot evaluate count as failed validation.
    """

    try:
        return dom.exists(selector)
    except HealingError as exc:
        logger.debug("Dropping candidate %s: %s", selector, exc)
        return False


def validate_interactable(dom: DomQuery, selector: str) -> bool:
    try:
        return dom.is_visible(selector) and dom.is_enabled(selector)
    except HealingError as exc:
        logger.debug("Dropping candidate %s: %s", selector, exc)
        return False


def fetch_candidate(dom: DomQuery, selector: str) -> ElementDescription | None:
    """Validates ``selector`` and describes the first element it resolves to."""

    if not validate_selector(dom, selector):
        return None
    try:
        return dom.describe(selector)
    except HealingError as exc:
        logger.debug("Could not describe %s: %s", selector, exc)
        return None


def describe_matches(dom: DomQuery, selector: str) -> list[ElementDescription]:
    try:
        return dom.describe_all(selector)
    except HealingError as exc:
        logger.debug("Could not describe %s: %s", selector, exc)
        return []
