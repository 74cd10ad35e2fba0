from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

from locator_healing.config.schema import DEFAULT_STRATEGY_ORDER, ElementContext, HealingConfig, ThresholdConfig
from locator_healing.core.dom_query import DomQuery
from locator_healing.core.metadata import HealAttempt, HealingCandidate, HealingOutcome, HealingReport
from locator_healing.core.scoring import confidence_level
from locator_healing.logging.audit import HealingAuditLogger
from locator_healing.strategies.base import HealingStrategy, StrategyResult
from locator_healing.strategies.registry import build_strategies
from locator_healing.strategies.visual_intelligence import ScreenshotAnalyzer
from locator_healing.utils.budget import ScanBudget
from locator_healing.utils.similarity import clamp

logger = logging.getLogger(__name__)

REASONING_SEPARATOR = " | "
AUDIT_TOP_CANDIDATES = 5


class HealingEngine:
    """Runs every configured strategy against one failure and ranks the merged candidates.

    The engine never applies a candidate and never raises for a failing
    strategy: it reports what it found and classifies the outcome so the
    caller can decide.
    """

    def __init__(
        self,
        dom: DomQuery,
        config: HealingConfig | None = None,
        audit_logger: HealingAuditLogger | None = None,
        screenshot_analyzer: ScreenshotAnalyzer | None = None,
        strategies: list[HealingStrategy] | None = None,
    ) -> None:
        self.dom = dom
        self.config = config or HealingConfig()
        if audit_logger is None and self.config.audit_root:
            audit_logger = HealingAuditLogger(self.config.audit_root)
        self.audit_logger = audit_logger
        if strategies is None:
            strategies = build_strategies(dom, self.config, screenshot_analyzer)
        self.strategies = strategies

    def heal(self, context: ElementContext, cancel_event: threading.Event | None = None) -> list[HealingCandidate]:
        return self.diagnose(context, cancel_event).candidates

    def diagnose(self, context: ElementContext, cancel_event: threading.Event | None = None) -> HealingReport:
        started = time.monotonic()
        results, cancelled = self._run_strategies(context, cancel_event)

        strategy_counts: dict[str, int] = {}
        strategy_errors: dict[str, str] = {}
        collected: list[HealingCandidate] = []
        for strategy, result in results:
            strategy_counts[strategy.name] = len(result.candidates)
            if result.error is not None:
                strategy_errors[strategy.name] = result.error
            collected.extend(result.candidates)

        ranked = rank_candidates(deduplicate(normalize_candidates(collected)))
        report = HealingReport(
            original_selector=context.original_selector,
            candidates=ranked,
            outcome=classify_outcome(ranked, self.config.thresholds),
            strategy_counts=strategy_counts,
            strategy_errors=strategy_errors,
            elapsed_seconds=round(time.monotonic() - started, 4),
            cancelled=cancelled,
        )
        logger.info(
            "Healing %s: %s with %d candidates in %.3fs",
            context.original_selector,
            report.outcome.value,
            len(ranked),
            report.elapsed_seconds,
        )
        if self.audit_logger is not None:
            self.audit_logger.write(self._attempt(report))
        return report

    def _run_strategies(
        self,
        context: ElementContext,
        cancel_event: threading.Event | None,
    ) -> tuple[list[tuple[HealingStrategy, StrategyResult]], bool]:
        def budget() -> ScanBudget:
            return ScanBudget(self.config.scan.time_budget_seconds, cancel_event)

        def is_cancelled() -> bool:
            return cancel_event is not None and cancel_event.is_set()

        results: list[tuple[HealingStrategy, StrategyResult]] = []
        if self.config.parallel_strategies and self.dom.supports_concurrent_dispatch:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                futures = [
                    (strategy, pool.submit(strategy.collect, context, budget()))
                    for strategy in self.strategies
                ]
                for strategy, future in futures:
                    if is_cancelled() and future.cancel():
                        continue
                    results.append((strategy, future.result()))
            return results, is_cancelled()

        for strategy in self.strategies:
            if is_cancelled():
                logger.info("Healing of %s cancelled before %s", context.original_selector, strategy.name)
                return results, True
            results.append((strategy, strategy.collect(context, budget())))
        return results, is_cancelled()

    @staticmethod
    def _attempt(report: HealingReport) -> HealAttempt:
        top = []
        for candidate in report.candidates[:AUDIT_TOP_CANDIDATES]:
            payload = candidate.to_payload()
            payload["level"] = confidence_level(candidate.confidence)
            top.append(payload)
        return HealAttempt(
            original_selector=report.original_selector,
            outcome=report.outcome.value,
            top_candidates=top,
            strategy_counts=dict(report.strategy_counts),
            strategy_errors=dict(report.strategy_errors),
            elapsed_seconds=report.elapsed_seconds,
            cancelled=report.cancelled,
        )


def normalize_candidates(candidates: list[HealingCandidate]) -> list[HealingCandidate]:
    """Copies candidates with features, score and confidence clamped to [0, 1]."""

    normalized: list[HealingCandidate] = []
    for candidate in candidates:
        confidence = candidate.score if candidate.confidence is None else candidate.confidence
        normalized.append(
            replace(
                candidate,
                features={key: round(clamp(value), 4) for key, value in candidate.features.items()},
                score=round(clamp(candidate.score), 4),
                confidence=round(clamp(confidence), 4),
            )
        )
    return normalized


def deduplicate(candidates: list[HealingCandidate]) -> list[HealingCandidate]:
    """Collapses identical selectors into the highest-confidence copy.

    Reasonings of all copies are merged; on equal confidence the earlier
    candidate wins.
    """

    merged: dict[str, HealingCandidate] = {}
    reasonings: dict[str, list[str]] = {}
    for candidate in candidates:
        current = merged.get(candidate.selector)
        notes = reasonings.setdefault(candidate.selector, [])
        if candidate.reasoning and candidate.reasoning not in notes:
            notes.append(candidate.reasoning)
        if current is None or candidate.confidence > current.confidence:
            merged[candidate.selector] = candidate
    return [
        replace(candidate, reasoning=REASONING_SEPARATOR.join(reasonings[selector]))
        for selector, candidate in merged.items()
    ]


def _priority(strategy: str) -> int:
    if strategy in DEFAULT_STRATEGY_ORDER:
        return DEFAULT_STRATEGY_ORDER.index(strategy)
    return len(DEFAULT_STRATEGY_ORDER)


def rank_candidates(candidates: list[HealingCandidate]) -> list[HealingCandidate]:
    return sorted(candidates, key=lambda item: (-item.confidence, _priority(item.strategy), item.selector))


def classify_outcome(candidates: list[HealingCandidate], thresholds: ThresholdConfig | None = None) -> HealingOutcome:
    """Resolved needs a confident top candidate with a clear lead.

    Anything between the minimum floor and that bar is ambiguous and left to
    the caller.
    """

    thresholds = thresholds or ThresholdConfig()
    if not candidates or candidates[0].confidence < thresholds.minimum:
        return HealingOutcome.UNRESOLVED
    top = candidates[0].confidence
    runner_up = candidates[1].confidence if len(candidates) > 1 else None
    clear_lead = runner_up is None or round(top - runner_up, 4) > thresholds.ambiguity_epsilon
    if top >= thresholds.resolved and clear_lead:
        return HealingOutcome.RESOLVED
    return HealingOutcome.AMBIGUOUS
