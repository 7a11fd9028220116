"""
Tests for the step catalog, qualification and ranking.
"""

import json

import pytest

from guidance.logic.catalog import (
    NEXT_BEST_STEP_CATALOG,
    StepDefinition,
    get_program_contextual_steps,
    get_step_by_id,
    get_steps_for_milestone,
    get_steps_for_stage,
    load_catalog,
)
from guidance.logic.constants import ApplicationStage, StepTier
from guidance.logic.contracts import NextBestStep, QualifiedStep
from guidance.logic.normalizer import normalize_snapshot
from guidance.logic.stage_classifier import classify_stage
from guidance.logic.step_qualifier import qualify_steps
from guidance.logic.step_ranker import rank_steps, sort_steps

from conftest import days_ago, make_snapshot


def _qualified_ids(config, catalog, **overrides):
    snapshot = normalize_snapshot(make_snapshot(**overrides))
    stage = classify_stage(snapshot)
    return [q.step.step_id for q in qualify_steps(snapshot, stage, config, catalog)]


def _qualified(step_id, tier, order):
    return QualifiedStep(
        step=NextBestStep(step_id=step_id, tier=tier, action=step_id, why_it_matters=""),
        order=order,
    )


# =============================================================================
# CATALOG
# =============================================================================

def test_catalog_ids_are_unique():
    ids = [step.step_id for step in NEXT_BEST_STEP_CATALOG]
    assert len(ids) == len(set(ids))


def test_every_step_has_a_stage():
    assert all(step.allowed_stages for step in NEXT_BEST_STEP_CATALOG)


def test_catalog_helpers():
    assert get_step_by_id("calculate_gpa").tier == StepTier.QUICK_WIN
    assert get_step_by_id("does_not_exist") is None
    assert "learn_how_programs_evaluate" in [s.step_id for s in get_steps_for_stage(ApplicationStage.EXPLORING)]
    assert {s.step_id for s in get_program_contextual_steps()} == {
        "continue_program_application",
        "submit_application",
    }
    assert all(s.milestone == "Shadowing" for s in get_steps_for_milestone("Shadowing"))


def test_load_catalog_from_json(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps([step.model_dump(mode="json") for step in NEXT_BEST_STEP_CATALOG]))

    loaded = load_catalog(str(path))
    assert [s.step_id for s in loaded] == [s.step_id for s in NEXT_BEST_STEP_CATALOG]
    assert loaded[0].allowed_stages == NEXT_BEST_STEP_CATALOG[0].allowed_stages


def test_unknown_rule_is_rejected(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps([{
        "step_id": "mystery",
        "tier": "quick_win",
        "order": 1,
        "rule": "no_such_rule",
        "action": "Do something",
        "why_it_matters": "Because",
        "allowed_stages": ["exploring"],
    }]))
    with pytest.raises(ValueError):
        load_catalog(str(path))


def test_program_rule_must_come_from_program_registry():
    with pytest.raises(ValueError):
        StepDefinition(
            step_id="bad_contextual",
            tier=StepTier.MODERATE,
            order=1,
            rule="always",
            action="x",
            why_it_matters="y",
            allowed_stages=[ApplicationStage.EXECUTING],
            program_contextual=True,
        )


def _contextual_entry(**overrides):
    entry = {
        "step_id": "chase_program",
        "tier": "moderate",
        "order": 1,
        "rule": "application_in_progress",
        "action": "Continue your {program_name} application",
        "why_it_matters": "Due {deadline}.",
        "href": "/my-programs/{program_id}",
        "allowed_stages": ["executing"],
        "program_contextual": True,
    }
    entry.update(overrides)
    return entry


@pytest.mark.parametrize("overrides", [
    {"action": "Continue your {programName} application"},
    {"why_it_matters": "Only {days_left} days to go."},
    {"href": "/my-programs/{program_id}/{0}"},
])
def test_unknown_template_placeholder_is_rejected(overrides):
    with pytest.raises(ValueError):
        StepDefinition(**_contextual_entry(**overrides))


@pytest.mark.parametrize("text", ["Finish {program_name", "Finish program_name}"])
def test_stray_template_brace_is_rejected(tmp_path, text):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps([_contextual_entry(action=text)]))
    with pytest.raises(ValueError):
        load_catalog(str(path))


def test_valid_contextual_template_loads(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps([_contextual_entry(
        why_it_matters="{incomplete_count} items left before {deadline}.",
    )]))
    (step,) = load_catalog(str(path))
    assert step.program_contextual is True


def test_snapshot_steps_are_not_treated_as_templates():
    step = StepDefinition(
        step_id="braces_ok",
        tier=StepTier.QUICK_WIN,
        order=1,
        rule="always",
        action="Write {anything} here",
        why_it_matters="}",
        allowed_stages=[ApplicationStage.EXPLORING],
    )
    assert step.action == "Write {anything} here"


def test_duplicate_step_ids_are_rejected(tmp_path):
    entry = NEXT_BEST_STEP_CATALOG[0].model_dump(mode="json")
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps([entry, entry]))
    with pytest.raises(ValueError):
        load_catalog(str(path))


def test_catalog_file_must_be_a_list(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({"steps": []}))
    with pytest.raises(ValueError):
        load_catalog(str(path))


# =============================================================================
# QUALIFIER
# =============================================================================

def test_stage_gate(config, catalog):
    assert "learn_how_programs_evaluate" in _qualified_ids(config, catalog)
    assert "learn_how_programs_evaluate" not in _qualified_ids(config, catalog, saved_program_ids=["1"])


def test_completed_actions_are_excluded(config, catalog):
    ids = _qualified_ids(config, catalog, completed_actions=["learn_how_programs_evaluate"])
    assert "learn_how_programs_evaluate" not in ids
    assert "save_first_program" in ids


def test_completed_milestone_excludes_its_steps(config, catalog):
    ids = _qualified_ids(
        config,
        catalog,
        milestones=[{"name": "Explore & Save CRNA Programs", "status": "completed"}],
    )
    assert "save_first_program" not in ids
    assert "learn_how_programs_evaluate" in ids


def test_recent_dismissal_is_suppressed(config, catalog):
    dismissed = lambda days: [{"step_id": "save_first_program", "dismissed_at": days_ago(days)}]

    assert "save_first_program" not in _qualified_ids(config, catalog, dismissed_steps=dismissed(3))
    assert "save_first_program" in _qualified_ids(config, catalog, dismissed_steps=dismissed(8))


def test_program_contextual_steps_are_hydrated(config, catalog):
    snapshot = normalize_snapshot(make_snapshot(target_programs=[
        {"program_id": "duke1", "name": "Duke", "status": "in_progress",
         "checklist_progress": 0.5, "checklist_items_remaining": 4, "deadline": "2025-09-15"},
        {"program_id": "rush2", "name": "Rush", "status": "in_progress", "checklist_progress": 0.95},
    ]))
    qualified = {
        q.step.step_id: q.step
        for q in qualify_steps(snapshot, ApplicationStage.EXECUTING, config, catalog)
    }

    step = qualified["continue_program_application_duke1"]
    assert step.action == "Continue your Duke application"
    assert step.why_it_matters == "You have 4 items remaining before the Sep 15 deadline."
    assert step.href == "/my-programs/duke1"
    assert step.program_id == "duke1"

    assert "submit_application_rush2" in qualified
    assert "continue_program_application_rush2" not in qualified
    assert "submit_application_duke1" not in qualified


def test_program_contextual_completion_uses_hydrated_id(config, catalog):
    programs = [
        {"program_id": "a", "name": "A", "status": "in_progress", "checklist_progress": 0.2},
        {"program_id": "b", "name": "B", "status": "in_progress", "checklist_progress": 0.2},
    ]
    ids = _qualified_ids(
        config,
        catalog,
        target_programs=programs,
        completed_actions=["continue_program_application_a"],
    )
    assert "continue_program_application_a" not in ids
    assert "continue_program_application_b" in ids


def test_repeated_program_yields_one_step(config, catalog):
    program = {"program_id": "duke1", "name": "Duke", "status": "in_progress", "checklist_progress": 0.5}
    ids = _qualified_ids(config, catalog, target_programs=[program, dict(program, name="Duke CRNA")])

    assert ids.count("continue_program_application_duke1") == 1


# =============================================================================
# RANKER
# =============================================================================

def test_rank_orders_by_tier_then_order_then_id():
    qualified = [
        _qualified("long", StepTier.LONG_TERM, 1),
        _qualified("moderate_b", StepTier.MODERATE, 5),
        _qualified("moderate_a", StepTier.MODERATE, 5),
        _qualified("quick_late", StepTier.QUICK_WIN, 90),
        _qualified("quick_early", StepTier.QUICK_WIN, 10),
    ]
    ranked = rank_steps(qualified)
    assert [s.step_id for s in ranked] == ["quick_early", "quick_late", "moderate_a", "moderate_b", "long"]


def test_truncation_happens_after_sorting():
    qualified = [
        _qualified("long", StepTier.LONG_TERM, 1),
        _qualified("moderate", StepTier.MODERATE, 1),
        _qualified("quick", StepTier.QUICK_WIN, 99),
    ]
    assert [s.step_id for s in rank_steps(qualified, max_steps=1)] == ["quick"]
    assert len(rank_steps(qualified, max_steps=None)) == 3


def test_ranking_is_idempotent(config, catalog, emerging_snapshot):
    snapshot = normalize_snapshot(emerging_snapshot)
    qualified = qualify_steps(snapshot, classify_stage(snapshot), config, catalog)

    once = sort_steps(qualified)
    assert sort_steps(once) == once
    assert sort_steps(list(reversed(qualified))) == once
