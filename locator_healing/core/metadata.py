from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from locator_healing.utils.tables import is_interactive


class HealingOutcome(str, Enum):
    RESOLVED = "resolved"
    AMBIGUOUS = "ambiguous"
    UNRESOLVED = "unresolved"


@dataclass(slots=True)
class ElementDescription:
    tag_name: str
    attributes: dict[str, str]
    text_content: str
    is_visible: bool


@dataclass(slots=True)
class ElementSnapshot:
    """One element as returned by a whole-document scan, in document order."""

    index: int
    tag: str
    parent_tag: str
    attributes: dict[str, str]
    text: str
    rect: dict[str, float]
    styles: dict[str, str]
    is_visible: bool = True
    sibling_count: int = 0
    child_count: int = 0
    viewport_width: float = 0.0

    @classmethod
    def from_payload(cls, index: int, payload: dict[str, Any]) -> "ElementSnapshot":
        return cls(
            index=index,
            tag=(payload.get("tag") or "").lower(),
            parent_tag=(payload.get("parent_tag") or "").lower(),
            attributes={str(key): str(value) for key, value in (payload.get("attributes") or {}).items()},
            text=payload.get("text") or "",
            rect={key: float(value or 0.0) for key, value in (payload.get("rect") or {}).items()},
            styles={key: str(value) for key, value in (payload.get("styles") or {}).items() if value is not None},
            is_visible=bool(payload.get("is_visible", True)),
            sibling_count=int(payload.get("sibling_count") or 0),
            child_count=int(payload.get("child_count") or 0),
            viewport_width=float(payload.get("viewport_width") or 0.0),
        )

    @property
    def class_list(self) -> list[str]:
        return [item for item in self.attributes.get("class", "").split() if item]

    @property
    def interactive(self) -> bool:
        return is_interactive(self.tag, self.attributes)


@dataclass(slots=True)
class HealingCandidate:
    selector: str
    strategy: str
    features: dict[str, float]
    score: float
    reasoning: str
    confidence: float | None = None

    def __post_init__(self) -> None:
        if self.confidence is None:
            self.confidence = self.score

    def to_payload(self) -> dict[str, Any]:
        return {
            "selector": self.selector,
            "strategy": self.strategy,
            "score": self.score,
            "confidence": self.confidence,
            "features": dict(self.features),
            "reasoning": self.reasoning,
        }


@dataclass(slots=True)
class HealingReport:
    original_selector: str
    candidates: list[HealingCandidate]
    outcome: HealingOutcome
    strategy_counts: dict[str, int] = field(default_factory=dict)
    strategy_errors: dict[str, str] = field(default_factory=dict)
    elapsed_seconds: float = 0.0
    cancelled: bool = False

    @property
    def top(self) -> HealingCandidate | None:
        return self.candidates[0] if self.candidates else None


@dataclass(slots=True)
class HealAttempt:
    original_selector: str
    outcome: str
    top_candidates: list[dict[str, Any]]
    strategy_counts: dict[str, int]
    strategy_errors: dict[str, str]
    elapsed_seconds: float
    cancelled: bool = False
