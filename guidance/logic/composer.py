"""
Guidance Composer

Assembles the independently computed pipeline outputs into the final
GuidanceState contract. Nothing is re-sorted or re-scored here.
"""

from typing import List

from .constants import ApplicationStage, RiskSignal, SupportMode
from .contracts import UserSnapshot, NextBestStep, ReadinessScore, GuidanceState


def active_focus_areas(snapshot: UserSnapshot) -> List[str]:
    """Focus areas the user marked active, in their original order, without duplicates."""
    areas: List[str] = []
    for focus in snapshot.primary_focus_areas:
        if focus.status == "active" and focus.area not in areas:
            areas.append(focus.area)
    return areas


def compose_guidance_state(
    snapshot: UserSnapshot,
    stage: ApplicationStage,
    risk_signals: List[RiskSignal],
    support_mode: SupportMode,
    next_best_steps: List[NextBestStep],
    readiness: ReadinessScore,
    engine_version: str,
) -> GuidanceState:
    """
    Build the GuidanceState for one snapshot.

    Args:
        snapshot: Normalized user snapshot
        stage: Classified application stage
        risk_signals: Detected risk signals, in enumeration order
        support_mode: Selected support mode
        next_best_steps: Ranked and truncated steps
        readiness: Composite readiness score
        engine_version: Version string stamped on the output

    Returns:
        GuidanceState
    """
    return GuidanceState(
        user_id=snapshot.user_id,
        application_stage=stage,
        support_mode=support_mode,
        risk_signals=list(risk_signals),
        next_best_steps=list(next_best_steps),
        readiness_score=readiness.total_score,
        readiness_level=readiness.level,
        category_breakdown=list(readiness.categories),
        readiness=readiness,
        primary_focus_areas=active_focus_areas(snapshot),
        engine_version=engine_version,
    )
