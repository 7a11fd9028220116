"""
Risk Signal Detector

Flags conditions indicating an applicant may need intervention.
Every predicate is evaluated independently so signals can co-occur.
Thresholds come from EngineConfig; time is measured against the
snapshot's reference time, never the wall clock.
"""

from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from .config import EngineConfig
from .contracts import UserSnapshot
from .constants import RiskSignal
from .normalizer import resolve_reference_time


def _meaningful_timestamps(snapshot: UserSnapshot, config: EngineConfig) -> List[datetime]:
    timestamps = [
        a.occurred_at for a in snapshot.activity_log
        if a.action_type in config.meaningful_actions
    ]
    timestamps.extend(snapshot.last_activity_at.values())
    return timestamps


def last_meaningful_activity(snapshot: UserSnapshot, config: EngineConfig) -> Optional[datetime]:
    """Most recent meaningful action, or None if the user never acted."""
    timestamps = _meaningful_timestamps(snapshot, config)
    return max(timestamps) if timestamps else None


def _is_stagnant(snapshot: UserSnapshot, config: EngineConfig, now: datetime) -> bool:
    last = last_meaningful_activity(snapshot, config)
    if last is None:
        return True
    return now - last >= timedelta(days=config.stagnation_days)


def _has_momentum(snapshot: UserSnapshot, config: EngineConfig, now: datetime) -> bool:
    window_start = now - timedelta(days=config.momentum_window_days)
    recent = [
        a for a in snapshot.activity_log
        if a.action_type in config.meaningful_actions and window_start <= a.occurred_at <= now
    ]
    return len(recent) >= config.momentum_min_actions


def _has_deadline_pressure(snapshot: UserSnapshot, config: EngineConfig, now: datetime) -> bool:
    today = now.date()
    for program in snapshot.target_programs:
        if program.deadline is None:
            continue
        days_until = (program.deadline - today).days
        if 0 < days_until < config.deadline_window_days and \
                program.checklist_progress < config.deadline_progress_threshold:
            return True
    return False


def _is_below_benchmark(snapshot: UserSnapshot, config: EngineConfig, now: datetime) -> bool:
    academic = snapshot.academic
    entered = [g for g in (academic.overall_gpa, academic.science_gpa) if g]
    return any(gpa < config.gpa_benchmark for gpa in entered)


def _is_missing_prerequisite(snapshot: UserSnapshot, config: EngineConfig, now: datetime) -> bool:
    return any(p.missing_prerequisites for p in snapshot.target_programs)


def _has_expiring_certification(snapshot: UserSnapshot, config: EngineConfig, now: datetime) -> bool:
    today = now.date()
    horizon = today + timedelta(days=config.certification_expiry_days)
    return any(
        c.expires_on is not None and c.is_held(today) and c.expires_on <= horizon
        for c in snapshot.certifications
    )


SIGNAL_RULES: Dict[RiskSignal, Callable[[UserSnapshot, EngineConfig, datetime], bool]] = {
    RiskSignal.STAGNATION: _is_stagnant,
    RiskSignal.DEADLINE_PRESSURE: _has_deadline_pressure,
    RiskSignal.BELOW_BENCHMARK_ACADEMICS: _is_below_benchmark,
    RiskSignal.MISSING_PREREQUISITE: _is_missing_prerequisite,
    RiskSignal.EXPIRING_CERTIFICATION: _has_expiring_certification,
    RiskSignal.MOMENTUM: _has_momentum,
}


def detect_risk_signals(snapshot: UserSnapshot, config: EngineConfig) -> List[RiskSignal]:
    """
    Evaluate every risk predicate against the snapshot.

    Args:
        snapshot: Normalized user snapshot
        config: Engine configuration with thresholds

    Returns:
        Duplicate-free list of RiskSignal in enumeration order
    """
    now = resolve_reference_time(snapshot)
    flagged = {signal for signal, rule in SIGNAL_RULES.items() if rule(snapshot, config, now)}

    # A user with momentum has returned; they are not stalled
    if RiskSignal.MOMENTUM in flagged:
        flagged.discard(RiskSignal.STAGNATION)

    return [signal for signal in RiskSignal if signal in flagged]
