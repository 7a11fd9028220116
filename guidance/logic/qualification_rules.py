"""
Qualification Rules

Eligibility predicates for Next Best Step catalog entries, keyed by rule name.
Catalog entries reference rules by name so a catalog can be loaded from data.

Each rule answers "would this step still help?" and is a pure function of
the snapshot and config. Program-contextual rules take a single TargetProgram.
"""

from typing import Callable, Dict, List

from .config import EngineConfig
from .contracts import UserSnapshot, TargetProgram, Certification
from .constants import (
    ADVANCED_DEVICES,
    AANA_EVENT_TYPES,
    INTERVIEW_STATUSES,
    OTHER_RECOGNISED_CERTS,
    PREFERRED_ICU_YEARS,
    PUBLICATION_KINDS,
)
from .normalizer import resolve_reference_time

SnapshotRule = Callable[[UserSnapshot, EngineConfig], bool]
ProgramRule = Callable[[TargetProgram], bool]

CLINICAL_LOG_TARGET = 10
LEADERSHIP_TARGET = 3
VOLUNTEERING_TARGET = 2
LETTER_TARGET = 3
FEW_MISSING_PREREQS = 2
COMPETITIVE_SCIENCE_GPA = 3.3
READY_TO_SUBMIT_PROGRESS = 0.9


# =============================================================================
# DERIVED FACTS
# =============================================================================

def held_certifications(snapshot: UserSnapshot) -> List[Certification]:
    """Certifications that are active/passed and unexpired at the reference date."""
    today = resolve_reference_time(snapshot).date()
    return [c for c in snapshot.certifications if c.is_held(today)]


def has_ccrn(snapshot: UserSnapshot) -> bool:
    return any(c.cert_type == "ccrn" for c in held_certifications(snapshot))


def other_recognised_certs(snapshot: UserSnapshot) -> List[str]:
    held = {c.cert_type for c in held_certifications(snapshot)}
    return [cert for cert in OTHER_RECOGNISED_CERTS if cert in held]


def total_shadow_hours(snapshot: UserSnapshot) -> float:
    return sum(e.hours for e in snapshot.shadowing_entries)


def completed_core_prerequisites(snapshot: UserSnapshot, config: EngineConfig) -> List[str]:
    completed = {p.course_type for p in snapshot.prerequisites if p.is_completed}
    return [course for course in config.core_prerequisites if course in completed]


def missing_core_prerequisites(snapshot: UserSnapshot, config: EngineConfig) -> int:
    return len(config.core_prerequisites) - len(completed_core_prerequisites(snapshot, config))


def has_advanced_devices(snapshot: UserSnapshot) -> bool:
    return any(
        d.item_id in ADVANCED_DEVICES
        for entry in snapshot.clinical_entries
        for d in entry.devices
    )


def has_aana_event(snapshot: UserSnapshot) -> bool:
    return any(e.event_type in AANA_EVENT_TYPES for e in snapshot.events_attended)


# =============================================================================
# SNAPSHOT RULES
# =============================================================================

def _always(s: UserSnapshot, c: EngineConfig) -> bool:
    # Only retired by marking the step completed
    return True


def _no_programs(s, c):
    return not s.saved_program_ids and not s.target_programs


def _saved_without_target(s, c):
    return bool(s.saved_program_ids) and not s.target_programs


def _low_science_gpa_without_gre(s, c):
    science = s.academic.science_gpa
    return bool(science) and science < COMPETITIVE_SCIENCE_GPA and not s.academic.gre_taken


def _low_overall_gpa(s, c):
    overall = s.academic.overall_gpa
    return bool(overall) and overall < c.gpa_benchmark


def _no_publications(s, c):
    return not any(r.kind in PUBLICATION_KINDS for r in s.research_entries)


SNAPSHOT_RULES: Dict[str, SnapshotRule] = {
    "always": _always,

    # Foundations
    "no_programs": _no_programs,
    "saved_without_target": _saved_without_target,

    # Quick wins: log what already exists
    "gpa_not_entered": lambda s, c: not s.academic.gpa_entered,
    "few_clinical_entries": lambda s, c: len(s.clinical_entries) < CLINICAL_LOG_TARGET,
    "no_shadow_hours": lambda s, c: total_shadow_hours(s) == 0,
    "no_events_logged": lambda s, c: not s.events_attended,
    "no_certifications_logged": lambda s, c: not s.certifications,
    "no_organizations": lambda s, c: s.organization_count == 0,
    "no_eq_reflections": lambda s, c: s.eq_reflection_count == 0,
    "no_leadership": lambda s, c: not s.leadership_entries,
    "no_volunteering": lambda s, c: s.volunteering_count == 0,

    # Moderate
    "missing_ccrn": lambda s, c: not has_ccrn(s),
    "ccrn_only": lambda s, c: has_ccrn(s) and not other_recognised_certs(s),
    "shadow_below_goal": lambda s, c: 0 < total_shadow_hours(s) < c.shadow_goal_hours,
    "no_aana_event": lambda s, c: not has_aana_event(s),
    "some_leadership": lambda s, c: 0 < len(s.leadership_entries) < LEADERSHIP_TARGET,
    "some_volunteering": lambda s, c: 0 < s.volunteering_count < VOLUNTEERING_TARGET,
    "few_missing_prerequisites": lambda s, c: 0 < missing_core_prerequisites(s, c) <= FEW_MISSING_PREREQS,
    "target_missing_prerequisites": lambda s, c: any(p.missing_prerequisites for p in s.target_programs),
    "resume_incomplete": lambda s, c: not s.resume_completed,
    "personal_statement_incomplete": lambda s, c: not s.personal_statement_completed,
    "few_letter_requests": lambda s, c: s.letter_request_count < LETTER_TARGET,
    "no_research": lambda s, c: not s.research_entries,
    "gre_required_not_taken": lambda s, c: any(p.requires_gre for p in s.target_programs)
    and not s.academic.gre_taken,
    "interview_scheduled": lambda s, c: any(p.status in INTERVIEW_STATUSES for p in s.target_programs),

    # Long-term
    "low_science_gpa_without_gre": _low_science_gpa_without_gre,
    "many_missing_prerequisites": lambda s, c: missing_core_prerequisites(s, c) > FEW_MISSING_PREREQS,
    "limited_icu_years": lambda s, c: s.clinical_profile.years_experience < PREFERRED_ICU_YEARS,
    "no_advanced_devices": lambda s, c: not has_advanced_devices(s),
    "low_overall_gpa": _low_overall_gpa,
    "no_publications": _no_publications,
}


# =============================================================================
# PROGRAM-CONTEXTUAL RULES
# =============================================================================

PROGRAM_RULES: Dict[str, ProgramRule] = {
    "application_in_progress": lambda p: p.status == "in_progress"
    and p.checklist_progress < READY_TO_SUBMIT_PROGRESS,
    "application_ready_to_submit": lambda p: p.status == "in_progress"
    and p.checklist_progress >= READY_TO_SUBMIT_PROGRESS,
}
