from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any

from locator_healing.core.metadata import HealAttempt


class HealingAuditLogger:
    """Appends one JSON line per healing attempt."""

    def __init__(self, root: str | Path = "artifacts") -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.attempts_path = self.root / "healing_attempts.jsonl"
        self._lock = threading.Lock()

    def write(self, attempt: HealAttempt) -> None:
        payload = {
            "original_selector": attempt.original_selector,
            "outcome": attempt.outcome,
            "top_candidates": attempt.top_candidates,
            "strategy_counts": attempt.strategy_counts,
            "strategy_errors": attempt.strategy_errors,
            "elapsed_seconds": attempt.elapsed_seconds,
            "cancelled": attempt.cancelled,
        }
        with self._lock, self.attempts_path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload, sort_keys=True) + "\n")

    def read_attempts(self) -> list[dict[str, Any]]:
        if not self.attempts_path.exists():
            return []
        lines = self.attempts_path.read_text(encoding="utf-8").splitlines()
        return [json.loads(line) for line in lines if line.strip()]
