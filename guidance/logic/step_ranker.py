"""
Step Ranker

Orders qualified steps by tier, then catalog order, then step id, and
truncates to the configured maximum. Sorting is total, so ranking the
same set twice always yields the same sequence.
"""

from typing import List, Optional, Tuple

from .constants import StepTier, TIER_RANK
from .contracts import NextBestStep, QualifiedStep


def sort_key(qualified: QualifiedStep) -> Tuple[int, int, str]:
    step = qualified.step
    return (TIER_RANK[StepTier(step.tier)], qualified.order, step.step_id)


def sort_steps(qualified: List[QualifiedStep]) -> List[QualifiedStep]:
    """Sort qualified steps: quick wins first, then moderate, then long-term."""
    return sorted(qualified, key=sort_key)


def rank_steps(
    qualified: List[QualifiedStep],
    max_steps: Optional[int] = None,
) -> List[NextBestStep]:
    """
    Rank qualified steps and keep the top N.

    Args:
        qualified: Steps that passed qualification
        max_steps: Maximum to return; None keeps every step

    Returns:
        Ordered list of NextBestStep
    """
    ranked = sort_steps(qualified)
    if max_steps is not None:
        ranked = ranked[:max_steps]
    return [q.step for q in ranked]
