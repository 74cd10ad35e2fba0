from __future__ import annotations

import pytest

from locator_healing.config.schema import HealingConfig, ScanConfig
from locator_healing.core.engine import HealingEngine
from locator_healing.core.metadata import HealingOutcome
from tests.helpers import (
    CLASS_CHANGED_PAGE,
    ELEMENT_REMOVED_PAGE,
    SUBMIT_ID_CHANGED_PAGE,
    managed_browser,
    removed_checkout_context,
    submit_id_context,
    submit_role_context,
)


@pytest.mark.integration
def test_live_page_heals_changed_id():
    config = HealingConfig(strategies=["attribute-relaxation"], scan=ScanConfig(time_budget_seconds=30.0))
    with managed_browser() as session:
        session.load_html(SUBMIT_ID_CHANGED_PAGE)
        report = HealingEngine(session.dom_query(), config).diagnose(submit_id_context())

    assert report.top.selector == '[id*="submit-btn"]'
    assert report.top.confidence == pytest.approx(0.7345, abs=1e-4)


@pytest.mark.integration
def test_live_page_resolves_role_locators():
    config = HealingConfig(strategies=["role-accessible-name"], scan=ScanConfig(time_budget_seconds=30.0))
    with managed_browser() as session:
        session.load_html(CLASS_CHANGED_PAGE)
        report = HealingEngine(session.dom_query(), config).diagnose(submit_role_context())

    assert report.top.selector == 'role=button[name="Submit"]'


@pytest.mark.integration
def test_live_scan_reports_nothing_for_removed_element():
    config = HealingConfig(scan=ScanConfig(time_budget_seconds=30.0))
    with managed_browser() as session:
        session.load_html(ELEMENT_REMOVED_PAGE)
        report = HealingEngine(session.dom_query(), config).diagnose(removed_checkout_context())

    assert report.outcome is HealingOutcome.UNRESOLVED


@pytest.mark.integration
def test_live_description_skips_hidden_text():
    with managed_browser() as session:
        session.load_html('<html><body><button id="b">Save<span style="display:none"> hidden</span></button></body></html>')
        description = session.dom_query().describe("#b")

    assert description.text_content == "Save"
