"""
Tests for stage classification and risk signal detection.
"""

import pytest

from guidance.logic.config import EngineConfig
from guidance.logic.constants import ApplicationStage, RiskSignal
from guidance.logic.normalizer import normalize_snapshot
from guidance.logic.risk_detector import detect_risk_signals, last_meaningful_activity
from guidance.logic.stage_classifier import classify_stage

from conftest import AS_OF, days_ago, days_ahead, make_snapshot


def _signals(config, **overrides):
    return detect_risk_signals(normalize_snapshot(make_snapshot(**overrides)), config)


def _recent_actions(*days, action="log_clinical"):
    return [{"action_type": action, "occurred_at": days_ago(d)} for d in days]


# =============================================================================
# STAGE CLASSIFIER
# =============================================================================

@pytest.mark.parametrize("overrides, expected", [
    ({}, ApplicationStage.EXPLORING),
    ({"saved_program_ids": ["1"]}, ApplicationStage.STRATEGIZING),
    ({"target_programs": [{"program_id": "1"}]}, ApplicationStage.STRATEGIZING),
    ({"target_programs": [{"program_id": "1", "status": "in_progress"}]}, ApplicationStage.EXECUTING),
    ({"target_programs": [{"program_id": "1", "status": "submitted"}]}, ApplicationStage.EXECUTING),
    ({"target_programs": [{"program_id": "1", "status": "interview_invite"}]}, ApplicationStage.INTERVIEWING),
    ({"target_programs": [{"program_id": "1", "status": "waitlisted"}]}, ApplicationStage.POST_DECISION),
])
def test_classify_stage(overrides, expected):
    assert classify_stage(normalize_snapshot(make_snapshot(**overrides))) == expected


def test_latest_stage_wins():
    snapshot = normalize_snapshot(make_snapshot(target_programs=[
        {"program_id": "1", "status": "in_progress"},
        {"program_id": "2", "status": "interview_complete"},
        {"program_id": "3", "status": "accepted"},
    ]))
    assert classify_stage(snapshot) == ApplicationStage.POST_DECISION


# =============================================================================
# STAGNATION & MOMENTUM
# =============================================================================

def test_no_activity_is_stagnant(config):
    assert RiskSignal.STAGNATION in _signals(config)


@pytest.mark.parametrize("days, stagnant", [(13, False), (14, True), (30, True)])
def test_stagnation_threshold(config, days, stagnant):
    signals = _signals(config, activity_log=_recent_actions(days))
    assert (RiskSignal.STAGNATION in signals) is stagnant


def test_last_activity_map_counts_as_meaningful(config):
    signals = _signals(config, last_activity_at={"shadow": days_ago(2)})
    assert RiskSignal.STAGNATION not in signals


def test_non_meaningful_actions_do_not_count(config):
    snapshot = normalize_snapshot(make_snapshot(activity_log=_recent_actions(1, action="view_page")))
    assert last_meaningful_activity(snapshot, config) is None
    assert RiskSignal.STAGNATION in detect_risk_signals(snapshot, config)


def test_momentum_requires_three_recent_actions(config):
    assert RiskSignal.MOMENTUM in _signals(config, activity_log=_recent_actions(1, 2, 6))
    assert RiskSignal.MOMENTUM not in _signals(config, activity_log=_recent_actions(1, 2, 8))


def test_momentum_clears_stagnation():
    config = EngineConfig(stagnation_days=1)
    signals = _signals(config, activity_log=_recent_actions(2, 3, 4))

    assert RiskSignal.MOMENTUM in signals
    assert RiskSignal.STAGNATION not in signals


# =============================================================================
# DEADLINES, ACADEMICS, PREREQUISITES, CERTIFICATIONS
# =============================================================================

@pytest.mark.parametrize("days_until, progress, expected", [
    (10, 0.3, True),
    (29, 0.59, True),
    (10, 0.6, False),
    (30, 0.1, False),
    (0, 0.1, False),
    (-5, 0.1, False),
])
def test_deadline_pressure(config, days_until, progress, expected):
    signals = _signals(config, target_programs=[{
        "program_id": "1",
        "status": "in_progress",
        "deadline": days_ahead(days_until),
        "checklist_progress": progress,
    }])
    assert (RiskSignal.DEADLINE_PRESSURE in signals) is expected


@pytest.mark.parametrize("academic, expected", [
    ({"overall_gpa": 2.9}, True),
    ({"overall_gpa": 3.4, "science_gpa": 2.8}, True),
    ({"overall_gpa": 3.0, "science_gpa": 3.2}, False),
    ({}, False),
])
def test_below_benchmark_academics(config, academic, expected):
    assert (RiskSignal.BELOW_BENCHMARK_ACADEMICS in _signals(config, academic=academic)) is expected


def test_gpa_benchmark_is_configurable():
    config = EngineConfig(gpa_benchmark=3.5)
    assert RiskSignal.BELOW_BENCHMARK_ACADEMICS in _signals(config, academic={"overall_gpa": 3.4})


def test_missing_prerequisite(config):
    signals = _signals(config, target_programs=[{"program_id": "1", "missing_prerequisites": ["biochemistry"]}])
    assert RiskSignal.MISSING_PREREQUISITE in signals


@pytest.mark.parametrize("cert, expected", [
    ({"cert_type": "ccrn", "status": "active", "expires_on": days_ahead(30)}, True),
    ({"cert_type": "ccrn", "status": "active", "expires_on": days_ahead(90)}, False),
    ({"cert_type": "ccrn", "status": "expired", "expires_on": days_ahead(30)}, False),
    ({"cert_type": "acls", "status": "active", "expires_on": days_ago(3)[:10]}, False),
    ({"cert_type": "ccrn", "status": "active"}, False),
])
def test_expiring_certification(config, cert, expected):
    assert (RiskSignal.EXPIRING_CERTIFICATION in _signals(config, certifications=[cert])) is expected


def test_signals_are_in_enumeration_order(config):
    signals = _signals(
        config,
        academic={"overall_gpa": 2.5},
        target_programs=[{
            "program_id": "1",
            "status": "in_progress",
            "deadline": days_ahead(5),
            "missing_prerequisites": ["physics"],
        }],
    )
    assert signals == [
        RiskSignal.STAGNATION,
        RiskSignal.DEADLINE_PRESSURE,
        RiskSignal.BELOW_BENCHMARK_ACADEMICS,
        RiskSignal.MISSING_PREREQUISITE,
    ]


def test_detection_uses_reference_time_not_wall_clock(config):
    # Same activity, evaluated from two different reference times
    activity = [{"action_type": "log_clinical", "occurred_at": AS_OF.isoformat()}]
    fresh = detect_risk_signals(normalize_snapshot({"user_id": "u", "activity_log": activity}), config)
    later = detect_risk_signals(normalize_snapshot({
        "user_id": "u",
        "activity_log": activity,
        "as_of": "2025-07-01T12:00:00+00:00",
    }), config)

    assert RiskSignal.STAGNATION not in fresh
    assert RiskSignal.STAGNATION in later
