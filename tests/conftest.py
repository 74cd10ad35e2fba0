from __future__ import annotations

import pytest

from locator_healing.config.schema import HealingConfig, ScanConfig
from locator_healing.core.snapshot_dom import SnapshotDomQuery


@pytest.fixture()
def healing_config():
    # Generous budget so slow CI machines never truncate a scan.
    return HealingConfig(scan=ScanConfig(time_budget_seconds=60.0))


@pytest.fixture()
def snapshot_dom():
    def build(html: str) -> SnapshotDomQuery:
        return SnapshotDomQuery(html)

    return build
