from __future__ import annotations

import threading
import time
from typing import Callable


class ScanBudget:
    """Soft deadline plus cooperative cancellation for whole-document scans."""

    def __init__(
        self,
        seconds: float,
        cancel_event: threading.Event | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.clock = clock
        self.deadline = clock() + seconds
        self.cancel_event = cancel_event

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    @property
    def expired(self) -> bool:
        return self.clock() >= self.deadline

    def exhausted(self) -> bool:
        return self.cancelled or self.expired
