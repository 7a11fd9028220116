"""
Shared snapshot fixtures for the guidance engine tests.

Every snapshot pins as_of so time-relative rules never depend on the wall clock.
"""

from datetime import datetime, timedelta, timezone

import pytest

from guidance.logic.catalog import load_catalog
from guidance.logic.config import EngineConfig

AS_OF = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def days_ago(days: float) -> str:
    return (AS_OF - timedelta(days=days)).isoformat()


def days_ahead(days: int) -> str:
    return (AS_OF + timedelta(days=days)).date().isoformat()


def make_snapshot(**overrides) -> dict:
    """Minimal raw snapshot with a pinned reference time."""
    data = {"user_id": "user_test", "as_of": AS_OF.isoformat()}
    data.update(overrides)
    return data


def _rich_clinical_entry() -> dict:
    could_teach = lambda ids: [{"item_id": i, "confidence": "could_teach"} for i in ids]
    return {
        "unit_type": "cvicu",
        "devices": could_teach([
            "ecmo", "impella", "lvad",
            "evd", "crrt", "iabp", "targeted_temp", "icp_monitor",
            "mechanical_vent", "rapid_infuser", "pacemaker", "swan_ganz",
            "flotrac", "lumbar_drain", "epidural", "chest_tube",
            "arterial_line", "central_line", "cvp_monitoring", "foley", "picc",
        ]),
        "medications": could_teach([
            "norepinephrine", "epinephrine", "vasopressin", "phenylephrine", "dobutamine",
            "milrinone", "propofol", "precedex", "midazolam", "fentanyl",
            "morphine", "rocuronium", "cisatracurium", "amiodarone", "lidocaine",
            "heparin", "argatroban", "nicardipine", "nitroglycerin", "labetalol",
        ]),
        "procedures": could_teach([
            "arterial_line_insertion", "central_line_assist", "intubation_assist",
            "bronchoscopy_assist", "cardioversion", "chest_tube_insertion",
            "paracentesis_assist", "thoracentesis_assist", "tee_assist", "proning",
        ]),
        "patient_populations": ["cardiac", "trauma", "neuro", "transplant", "sepsis", "burn"],
        "code_or_rapid_response": True,
    }


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def catalog():
    return load_catalog()


@pytest.fixture
def emerging_snapshot():
    """New applicant: nothing logged, low GPA, inactive for 90 days."""
    return make_snapshot(
        user_id="emerging_user",
        academic={"overall_gpa": 2.7, "science_gpa": 2.6},
        activity_log=[{"action_type": "log_clinical", "occurred_at": days_ago(90)}],
    )


@pytest.fixture
def exceptional_snapshot():
    """Applicant with every category complete and applications submitted."""
    return make_snapshot(
        user_id="exceptional_user",
        academic={
            "overall_gpa": 3.8,
            "science_gpa": 3.9,
            "last_60_gpa": 3.85,
            "gre": {"quantitative": 160, "verbal": 158},
        },
        prerequisites=[
            {"course_type": course, "status": "completed", "attempts": [{"grade": "A"}]}
            for course in [
                "anatomy", "physiology", "general_chemistry", "organic_chemistry",
                "biochemistry", "statistics", "physics", "microbiology",
            ]
        ],
        clinical_profile={"primary_unit_type": "cvicu", "years_experience": 4},
        clinical_entries=[_rich_clinical_entry() for _ in range(10)],
        shadowing_entries=[
            {"hours": 8, "provider_id": f"crna_{i}", "setting": setting}
            for i, setting in enumerate(["main_or", "cardiac", "ob", "main_or", "cardiac"])
        ],
        certifications=[
            {"cert_type": "CCRN", "status": "active"},
            {"cert_type": "csc", "status": "active"},
            {"cert_type": "cmc", "status": "passed"},
            {"cert_type": "acls", "status": "active"},
        ],
        leadership_entries=[{"role": "charge_nurse"}, {"role": "preceptor"}, {"role": "council_member"}],
        research_entries=[{"kind": "published_article"}],
        volunteering_count=3,
        organization_count=2,
        eq_reflection_count=4,
        events_attended=[
            {"event_type": "aana_national"},
            {"event_type": "aana_state"},
            {"event_type": "school_open_house"},
            {"event_type": "info_session"},
            {"event_type": "workshop"},
            {"event_type": "aana_national"},
        ],
        saved_program_ids=["101", "102"],
        target_programs=[
            {"program_id": "101", "name": "Duke", "status": "submitted",
             "deadline": days_ahead(90), "checklist_progress": 1.0, "requires_gre": True},
            {"program_id": "102", "name": "Rush", "status": "submitted",
             "deadline": days_ahead(120), "checklist_progress": 1.0},
        ],
        resume_completed=True,
        personal_statement_started=True,
        personal_statement_completed=True,
        letter_request_count=3,
        activity_log=[
            {"action_type": "submit_application", "occurred_at": days_ago(1)},
            {"action_type": "log_clinical", "occurred_at": days_ago(2)},
            {"action_type": "log_shadow", "occurred_at": days_ago(3)},
        ],
    )
