"""
End-to-end tests for the guidance engine.
"""

import logging

import pytest

from guidance.logic import (
    ApplicationStage,
    EngineConfig,
    GuidanceEngine,
    ReadinessLevel,
    RiskSignal,
    SupportMode,
    UserSnapshot,
    ValidationError,
    compute_guidance_state,
)
from guidance.logic.catalog import NEXT_BEST_STEP_CATALOG

from conftest import days_ago, make_snapshot


@pytest.fixture
def engine(config, catalog):
    return GuidanceEngine(config=config, catalog=catalog)


# =============================================================================
# SCENARIOS
# =============================================================================

def test_emerging_applicant(engine, emerging_snapshot):
    state = engine.compute(emerging_snapshot)

    assert state.user_id == "emerging_user"
    assert state.application_stage == ApplicationStage.EXPLORING.value
    assert state.support_mode == SupportMode.REENGAGEMENT.value
    assert RiskSignal.STAGNATION.value in state.risk_signals
    assert RiskSignal.BELOW_BENCHMARK_ACADEMICS.value in state.risk_signals
    assert state.readiness_score < 40
    assert state.readiness_level == ReadinessLevel.EMERGING.value
    assert [s.step_id for s in state.next_best_steps] == [
        "learn_how_programs_evaluate",
        "save_first_program",
        "log_clinical_experience",
    ]


def test_exceptional_applicant(engine, exceptional_snapshot):
    state = engine.compute(exceptional_snapshot)

    assert state.application_stage == ApplicationStage.EXECUTING.value
    assert state.risk_signals == [RiskSignal.MOMENTUM.value]
    assert state.support_mode == SupportMode.EXECUTION.value
    assert state.readiness_score == 100
    assert state.readiness_level == ReadinessLevel.EXCEPTIONAL.value
    assert state.next_best_steps == []


# =============================================================================
# PROPERTIES
# =============================================================================

def test_compute_is_deterministic(engine, emerging_snapshot, exceptional_snapshot):
    for raw in (emerging_snapshot, exceptional_snapshot):
        assert engine.compute(raw).model_dump() == engine.compute(raw).model_dump()


def test_minimal_snapshot_is_total(engine):
    state = engine.compute({"user_id": "bare"})

    assert state.application_stage == ApplicationStage.EXPLORING.value
    assert state.support_mode == SupportMode.REENGAGEMENT.value
    assert 0 <= state.readiness_score <= 100
    assert len(state.next_best_steps) == 3


def test_missing_user_id_raises(engine):
    with pytest.raises(ValidationError):
        engine.compute({"academic": {"overall_gpa": 3.5}})


def test_completed_steps_never_surface(engine, emerging_snapshot):
    first = engine.compute(emerging_snapshot)
    completed = [s.step_id for s in first.next_best_steps]

    second = engine.compute(dict(emerging_snapshot, completed_actions=completed))
    assert not set(completed) & {s.step_id for s in second.next_best_steps}
    assert len(second.next_best_steps) == 3


def test_step_count_never_exceeds_limit(catalog, emerging_snapshot):
    for limit in (1, 2, 5):
        engine = GuidanceEngine(config=EngineConfig(max_next_best_steps=limit), catalog=catalog)
        assert len(engine.compute(emerging_snapshot).next_best_steps) <= limit


def test_unlimited_steps(catalog, emerging_snapshot):
    engine = GuidanceEngine(config=EngineConfig(max_next_best_steps=None), catalog=catalog)
    assert len(engine.compute(emerging_snapshot).next_best_steps) > 3


def test_risk_and_support_mode_agree(engine):
    stalled = engine.compute(make_snapshot(activity_log=[{"action_type": "log_eq", "occurred_at": days_ago(20)}]))
    assert RiskSignal.STAGNATION.value in stalled.risk_signals
    assert stalled.support_mode == SupportMode.REENGAGEMENT.value

    pressured = engine.compute(make_snapshot(
        target_programs=[{"program_id": "1", "status": "in_progress",
                          "deadline": "2025-06-15", "checklist_progress": 0.2}],
        activity_log=[{"action_type": "log_eq", "occurred_at": days_ago(1)}],
    ))
    assert pressured.risk_signals == [RiskSignal.DEADLINE_PRESSURE.value]
    assert pressured.support_mode == SupportMode.URGENT.value


def test_output_echoes_readiness(engine, emerging_snapshot):
    state = engine.compute(emerging_snapshot)

    assert state.readiness_score == state.readiness.total_score
    assert state.readiness_level == state.readiness.level
    assert state.category_breakdown == state.readiness.categories


def test_active_focus_areas_pass_through(engine):
    state = engine.compute(make_snapshot(primary_focus_areas=[
        {"area": "shadowing", "status": "active"},
        {"area": "resume", "status": "completed"},
        {"area": "gpa_prereqs"},
    ]))
    assert state.primary_focus_areas == ["shadowing", "gpa_prereqs"]


def test_accepts_user_snapshot(engine):
    snapshot = UserSnapshot(user_id="model_user", saved_program_ids=["9"])
    state = engine.compute(snapshot)
    assert state.application_stage == ApplicationStage.STRATEGIZING.value


def test_compute_from_dict_matches_compute(engine, emerging_snapshot):
    assert engine.compute_from_dict(emerging_snapshot).model_dump() == engine.compute(emerging_snapshot).model_dump()


def test_score_readiness_only(engine, exceptional_snapshot):
    readiness = engine.score_readiness(exceptional_snapshot)
    assert readiness.total_score == 100


def test_convenience_function(config, emerging_snapshot):
    state = compute_guidance_state(emerging_snapshot, config=config, catalog=NEXT_BEST_STEP_CATALOG)
    assert state.engine_version == "1.0.0"
    assert state.user_id == "emerging_user"


def test_logs_one_info_line(engine, emerging_snapshot, caplog):
    with caplog.at_level(logging.INFO, logger="guidance.logic.engine"):
        engine.compute(emerging_snapshot)

    info = [r for r in caplog.records if r.name == "guidance.logic.engine" and r.levelno == logging.INFO]
    assert len(info) == 1
    assert "emerging_user" in info[0].getMessage()
