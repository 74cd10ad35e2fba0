from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Iterable

from locator_healing.config.schema import ElementContext, HealingConfig
from locator_healing.core.dom_query import DomQuery
from locator_healing.core.metadata import ElementDescription, ElementSnapshot, HealingCandidate
from locator_healing.core.scoring import BASE_WEIGHTS, WeightProfile, weighted_score
from locator_healing.core.validation import fetch_candidate
from locator_healing.utils.budget import ScanBudget
from locator_healing.utils.dom_extract import COLLECT_ELEMENTS_SCRIPT, iter_snapshots, scan_payload
from locator_healing.utils.tables import NON_RENDERED_TAGS

logger = logging.getLogger(__name__)

FeatureBuilder = Callable[[ElementDescription, str], dict[str, float]]


@dataclass(slots=True)
class StrategyResult:
    candidates: list[HealingCandidate] = field(default_factory=list)
    error: str | None = None


class HealingStrategy(ABC):
    """One evidence source for replacement locators.

    Subclasses implement ``_generate``; the public entry points never raise.
    Strategies hold no per-attempt state, so one instance can serve many
    healing attempts.
    """

    name: str = ""
    weights: WeightProfile = BASE_WEIGHTS

    def __init__(self, dom: DomQuery, config: HealingConfig | None = None) -> None:
        self.dom = dom
        self.config = config or HealingConfig()

    def generate_candidates(
        self,
        context: ElementContext,
        budget: ScanBudget | None = None,
    ) -> list[HealingCandidate]:
        return self.collect(context, budget).candidates

    def collect(self, context: ElementContext, budget: ScanBudget | None = None) -> StrategyResult:
        budget = budget or ScanBudget(self.config.scan.time_budget_seconds)
        try:
            return StrategyResult(candidates=self._generate(context, budget))
        except Exception as exc:  # noqa: BLE001 - a failing strategy must not abort healing.
            logger.warning(
                "Strategy %s failed for %s",
                self.name,
                context.original_selector,
                exc_info=True,
            )
            return StrategyResult(error=f"{type(exc).__name__}: {exc}")

    @abstractmethod
    def _generate(self, context: ElementContext, budget: ScanBudget) -> list[HealingCandidate]:
        raise NotImplementedError

    def _evaluate(
        self,
        selectors: Iterable[str],
        budget: ScanBudget,
        build_features: FeatureBuilder,
        reasoning: Callable[[str], str],
    ) -> list[HealingCandidate]:
        """Validates each distinct selector in order and scores the survivors."""

        candidates: list[HealingCandidate] = []
        for selector in dict.fromkeys(selectors):
            if budget.exhausted():
                logger.info("%s stopped early after %d candidates", self.name, len(candidates))
                break
            description = fetch_candidate(self.dom, selector)
            if description is None:
                continue
            features = build_features(description, selector)
            candidates.append(self._candidate(selector, features, reasoning(selector)))
        return candidates

    def _candidate(
        self,
        selector: str,
        features: dict[str, float],
        reasoning: str,
        confidence: float | None = None,
    ) -> HealingCandidate:
        return HealingCandidate(
            selector=selector,
            strategy=self.name,
            features={key: round(value, 4) for key, value in features.items()},
            score=weighted_score(features, self.weights),
            reasoning=reasoning,
            confidence=confidence,
        )

    def _scan(self, budget: ScanBudget, *, visible_only: bool) -> list[ElementSnapshot]:
        raw = self.dom.scan(
            COLLECT_ELEMENTS_SCRIPT,
            scan_payload(
                visible_only=visible_only,
                max_nodes=self.config.scan.max_nodes,
                skip_tags=NON_RENDERED_TAGS,
            ),
        )
        snapshots = list(iter_snapshots(raw, budget))
        if len(snapshots) < len(raw or []):
            logger.info(
                "%s scan cut short at %d of %d elements",
                self.name,
                len(snapshots),
                len(raw),
            )
        return snapshots
