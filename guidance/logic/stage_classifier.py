"""
Stage Classifier

Derives the applicant's application stage from target/saved programs.
Rules are evaluated in priority order; the first match wins and
EXPLORING is the fallback, so classification is total.
"""

from typing import Callable, List, Tuple

from .contracts import UserSnapshot
from .constants import (
    ApplicationStage,
    DECISION_STATUSES,
    INTERVIEW_STATUSES,
    ACTIVE_APPLICATION_STATUSES,
)


def _any_target_status(snapshot: UserSnapshot, statuses: Tuple[str, ...]) -> bool:
    return any(p.status in statuses for p in snapshot.target_programs)


def _has_decision(snapshot: UserSnapshot) -> bool:
    return _any_target_status(snapshot, DECISION_STATUSES)


def _is_interviewing(snapshot: UserSnapshot) -> bool:
    return _any_target_status(snapshot, INTERVIEW_STATUSES)


def _is_applying(snapshot: UserSnapshot) -> bool:
    return _any_target_status(snapshot, ACTIVE_APPLICATION_STATUSES)


def _has_programs(snapshot: UserSnapshot) -> bool:
    return bool(snapshot.target_programs or snapshot.saved_program_ids)


# Highest stage first
STAGE_RULES: List[Tuple[ApplicationStage, Callable[[UserSnapshot], bool]]] = [
    (ApplicationStage.POST_DECISION, _has_decision),
    (ApplicationStage.INTERVIEWING, _is_interviewing),
    (ApplicationStage.EXECUTING, _is_applying),
    (ApplicationStage.STRATEGIZING, _has_programs),
]

FALLBACK_STAGE = ApplicationStage.EXPLORING


def classify_stage(snapshot: UserSnapshot) -> ApplicationStage:
    """
    Classify a snapshot into an application stage.

    Args:
        snapshot: Normalized user snapshot

    Returns:
        ApplicationStage enum value
    """
    for stage, predicate in STAGE_RULES:
        if predicate(snapshot):
            return stage
    return FALLBACK_STAGE
