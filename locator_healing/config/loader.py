from __future__ import annotations

import json
from pathlib import Path

from locator_healing.config.schema import ElementContext, HealingConfig


class ConfigLoader:
    """Loads and validates engine configuration and recorded element contexts."""

    @staticmethod
    def load(path: str | Path) -> HealingConfig:
        return HealingConfig.model_validate(_read_json(path))

    @staticmethod
    def load_context(path: str | Path) -> ElementContext:
        return ElementContext.model_validate(_read_json(path))


def _read_json(path: str | Path):
    config_path = Path(path)
    with config_path.open("r", encoding="utf-8") as handle:
        return json.load(handle)
