"""Badge unlock rules.

Each rule is a pure predicate over a user's analysis history (oldest first)
and the badge's criteria. Unknown rule types never unlock anything.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import date, timedelta

from app.schemas.achievements import BadgeCriteria
from app.schemas.analysis import AnalysisRecord

logger = logging.getLogger(__name__)

Rule = Callable[[Sequence[AnalysisRecord], BadgeCriteria], bool]

DEFAULT_HIGH_SCORE_THRESHOLD = 95


def _as_number(value: object, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    return default


def _longest_run(days: set[date], step: timedelta) -> int:
    longest = 0
    for day in days:
        if day - step in days:
            continue
        length = 1
        while day + step * length in days:
            length += 1
        longest = max(longest, length)
    return longest


def _analysis_count(history: Sequence[AnalysisRecord], criteria: BadgeCriteria) -> bool:
    return len(history) >= _as_number(criteria.value)


def _score_threshold(history: Sequence[AnalysisRecord], criteria: BadgeCriteria) -> bool:
    target = _as_number(criteria.value)
    return any(record.final_score >= target for record in history)


def _high_scores(history: Sequence[AnalysisRecord], criteria: BadgeCriteria) -> bool:
    threshold = _as_number(criteria.threshold, DEFAULT_HIGH_SCORE_THRESHOLD)
    hits = sum(1 for record in history if record.final_score >= threshold)
    return hits >= _as_number(criteria.value)


def _consecutive_days(history: Sequence[AnalysisRecord], criteria: BadgeCriteria) -> bool:
    days = {record.created_at.date() for record in history}
    return bool(days) and _longest_run(days, timedelta(days=1)) >= _as_number(criteria.value)


def _consecutive_weeks(history: Sequence[AnalysisRecord], criteria: BadgeCriteria) -> bool:
    # Monday of each ISO week.
    weeks = {
        record.created_at.date() - timedelta(days=record.created_at.date().weekday())
        for record in history
    }
    return bool(weeks) and _longest_run(weeks, timedelta(weeks=1)) >= _as_number(criteria.value)


def _ai_verified(history: Sequence[AnalysisRecord], criteria: BadgeCriteria) -> bool:
    verified = sum(1 for record in history if record.ai_status == "success")
    return verified >= _as_number(criteria.value)


def _score_improvement(history: Sequence[AnalysisRecord], criteria: BadgeCriteria) -> bool:
    if len(history) < 2:
        return False
    first = history[0].final_score
    best_later = max(record.final_score for record in history[1:])
    return best_later - first >= _as_number(criteria.value)


RULES: dict[str, Rule] = {
    "analysis_count": _analysis_count,
    "score_threshold": _score_threshold,
    "high_scores": _high_scores,
    "consecutive_days": _consecutive_days,
    "consecutive_weeks": _consecutive_weeks,
    "ai_verified": _ai_verified,
    "score_improvement": _score_improvement,
}


def evaluate(criteria: BadgeCriteria, history: Sequence[AnalysisRecord]) -> bool:
    rule = RULES.get(criteria.type)
    if rule is None:
        logger.warning("badge_rule_unknown type=%s", criteria.type)
        return False
    return rule(history, criteria)
