"""
Step Qualifier

Filters the catalog down to the steps that would help this applicant now.
A step qualifies when:
1. The applicant's stage is in its allowed stages
2. Its qualification rule holds for the snapshot
3. It is not already satisfied (completed action or completed milestone)
4. It was not dismissed within the cool-off window

Program-contextual steps are expanded once per qualifying target program.
"""

from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from .catalog import Catalog, StepDefinition
from .config import EngineConfig
from .constants import ApplicationStage
from .contracts import UserSnapshot, TargetProgram, NextBestStep, QualifiedStep
from .normalizer import resolve_reference_time
from .qualification_rules import SNAPSHOT_RULES, PROGRAM_RULES


def contextual_step_id(step_id: str, program_id: str) -> str:
    return f"{step_id}_{program_id}"


def _format_deadline(deadline: Optional[date]) -> str:
    if deadline is None:
        return "upcoming"
    return f"{deadline:%b} {deadline.day}"


def _program_tokens(program: TargetProgram) -> Dict[str, str]:
    return {
        "program_name": program.name or "your target program",
        "program_id": program.program_id,
        "incomplete_count": str(program.checklist_items_remaining),
        "deadline": _format_deadline(program.deadline),
    }


def _to_step(
    definition: StepDefinition,
    program: Optional[TargetProgram] = None,
) -> QualifiedStep:
    """Materialize a catalog entry, hydrating template tokens for a program."""
    step_id = definition.step_id
    action = definition.action
    why = definition.why_it_matters
    href = definition.href
    program_id = None

    if program is not None:
        tokens = _program_tokens(program)
        step_id = contextual_step_id(definition.step_id, program.program_id)
        action = action.format_map(tokens)
        why = why.format_map(tokens)
        href = href.format_map(tokens)
        program_id = program.program_id

    step = NextBestStep(
        step_id=step_id,
        tier=definition.tier,
        action=action,
        why_it_matters=why,
        cta_label=definition.cta_label,
        href=href,
        milestone=definition.milestone,
        focus_area=definition.focus_area,
        program_id=program_id,
    )
    return QualifiedStep(step=step, order=definition.order)


# =============================================================================
# FILTERS
# =============================================================================

def _completed_milestones(snapshot: UserSnapshot) -> set:
    return {m.name for m in snapshot.milestones if m.status == "completed"}


def _is_satisfied(step_ids: List[str], definition: StepDefinition, snapshot: UserSnapshot) -> bool:
    if any(step_id in snapshot.completed_actions for step_id in step_ids):
        return True
    return definition.milestone is not None and definition.milestone in _completed_milestones(snapshot)


def _is_cooling_off(step_ids: List[str], snapshot: UserSnapshot, config: EngineConfig, now: datetime) -> bool:
    cooloff = timedelta(days=config.dismissal_cooloff_days)
    return any(
        d.step_id in step_ids and now - d.dismissed_at < cooloff
        for d in snapshot.dismissed_steps
    )


def _is_available(
    step_ids: List[str],
    definition: StepDefinition,
    snapshot: UserSnapshot,
    config: EngineConfig,
    now: datetime,
) -> bool:
    if _is_satisfied(step_ids, definition, snapshot):
        return False
    return not _is_cooling_off(step_ids, snapshot, config, now)


# =============================================================================
# QUALIFICATION
# =============================================================================

def qualify_steps(
    snapshot: UserSnapshot,
    stage: ApplicationStage,
    config: EngineConfig,
    catalog: Catalog,
) -> List[QualifiedStep]:
    """
    Select catalog entries that qualify for this snapshot.

    Args:
        snapshot: Normalized user snapshot
        stage: Classified application stage
        config: Engine configuration
        catalog: Step catalog to evaluate

    Returns:
        Unordered list of QualifiedStep
    """
    now = resolve_reference_time(snapshot)
    qualified: List[QualifiedStep] = []

    for definition in catalog:
        if stage not in definition.allowed_stages:
            continue

        if definition.program_contextual:
            rule = PROGRAM_RULES[definition.rule]
            seen = set()
            for program in snapshot.target_programs:
                if not rule(program):
                    continue
                hydrated_id = contextual_step_id(definition.step_id, program.program_id)
                # A program listed twice yields one step
                if hydrated_id in seen:
                    continue
                seen.add(hydrated_id)
                step_ids = [definition.step_id, hydrated_id]
                if _is_available(step_ids, definition, snapshot, config, now):
                    qualified.append(_to_step(definition, program))
            continue

        if not SNAPSHOT_RULES[definition.rule](snapshot, config):
            continue
        if _is_available([definition.step_id], definition, snapshot, config, now):
            qualified.append(_to_step(definition))

    return qualified
