"""
Next Best Steps Catalog

The "menu" of all possible Next Best Steps the guidance engine can surface.
The engine decides at runtime which steps qualify and in what order.

- Catalog = what steps exist (this file)
- Qualification rules = when a step would help (qualification_rules.py)
- Qualifier/Ranker = which steps surface and in what order

The catalog is immutable configuration: built once, passed into the engine.
Alternate catalogs can be loaded from JSON with load_catalog(path).
"""

import json
import string
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from .constants import ApplicationStage, StepTier, DEFAULT_CTA_LABEL
from .qualification_rules import SNAPSHOT_RULES, PROGRAM_RULES

# Placeholders a program-contextual template may reference
TEMPLATE_TOKENS = ("program_name", "program_id", "incomplete_count", "deadline")
TEMPLATE_FIELDS = ("action", "why_it_matters", "href")


class StepDefinition(BaseModel):
    """A static catalog entry. Program-contextual entries are templates."""
    step_id: str
    tier: StepTier
    order: int = Field(ge=0)
    rule: str
    action: str
    why_it_matters: str
    href: str = ""
    cta_label: str = DEFAULT_CTA_LABEL
    milestone: Optional[str] = None
    focus_area: Optional[str] = None
    allowed_stages: List[ApplicationStage]
    program_contextual: bool = False

    class Config:
        frozen = True
        use_enum_values = True

    @model_validator(mode="after")
    def check_rule(self) -> "StepDefinition":
        registry = PROGRAM_RULES if self.program_contextual else SNAPSHOT_RULES
        if self.rule not in registry:
            raise ValueError(f"Step {self.step_id!r} references unknown rule {self.rule!r}")
        return self

    @model_validator(mode="after")
    def check_templates(self) -> "StepDefinition":
        if not self.program_contextual:
            return self
        for name in TEMPLATE_FIELDS:
            text = getattr(self, name)
            try:
                tokens = [field for _, field, _, _ in string.Formatter().parse(text) if field is not None]
            except ValueError as e:
                raise ValueError(f"Step {self.step_id!r} has a malformed {name} template: {e}")
            unknown = sorted(set(tokens) - set(TEMPLATE_TOKENS))
            if unknown:
                raise ValueError(f"Step {self.step_id!r} {name} uses unknown placeholder(s) {unknown}")
        return self


Catalog = Tuple[StepDefinition, ...]

PRE_DECISION = [
    ApplicationStage.EXPLORING,
    ApplicationStage.STRATEGIZING,
    ApplicationStage.EXECUTING,
]
PLANNING = [ApplicationStage.STRATEGIZING, ApplicationStage.EXECUTING]
LONG_HORIZON = [
    ApplicationStage.STRATEGIZING,
    ApplicationStage.EXECUTING,
    ApplicationStage.POST_DECISION,
]


# =============================================================================
# 1. QUICK WINS (log what you already have)
# =============================================================================

QUICK_WIN_STEPS = [
    StepDefinition(
        step_id="learn_how_programs_evaluate",
        tier=StepTier.QUICK_WIN,
        order=10,
        rule="always",
        action="Learn how CRNA programs evaluate applicants",
        why_it_matters="Understanding what programs look for helps you make smarter decisions from day one.",
        href="/learning-library/understanding-the-profession",
        milestone="Understand the Profession + Early Prep",
        focus_area="school_search",
        allowed_stages=[ApplicationStage.EXPLORING],
    ),
    StepDefinition(
        step_id="save_first_program",
        tier=StepTier.QUICK_WIN,
        order=20,
        rule="no_programs",
        action="Save your first CRNA program",
        why_it_matters="Saving programs helps us tailor your guidance to your specific goals.",
        href="/school-database",
        milestone="Explore & Save CRNA Programs",
        focus_area="school_search",
        allowed_stages=[ApplicationStage.EXPLORING],
    ),
    StepDefinition(
        step_id="add_target_program",
        tier=StepTier.QUICK_WIN,
        order=30,
        rule="saved_without_target",
        action="Add a target program to start tracking",
        why_it_matters="Target programs unlock custom checklists, deadlines, and personalized guidance.",
        href="/my-programs",
        milestone="Explore & Save CRNA Programs",
        focus_area="school_search",
        allowed_stages=[ApplicationStage.EXPLORING, ApplicationStage.STRATEGIZING],
    ),
    StepDefinition(
        step_id="calculate_gpa",
        tier=StepTier.QUICK_WIN,
        order=40,
        rule="gpa_not_entered",
        action="Calculate your GPA",
        why_it_matters="CRNA programs evaluate multiple GPA types. Knowing yours helps identify where to focus.",
        href="/tools/gpa-calculator",
        milestone="GPA + Prerequisites",
        focus_area="gpa_prereqs",
        allowed_stages=PRE_DECISION,
    ),
    StepDefinition(
        step_id="log_clinical_experience",
        tier=StepTier.QUICK_WIN,
        order=50,
        rule="few_clinical_entries",
        action="Log your clinical experience",
        why_it_matters="Log devices, medications, and procedures you've worked with. Your logs power your resume and interview prep.",
        href="/trackers/clinical",
        milestone="Critical Care Experience",
        allowed_stages=PRE_DECISION,
    ),
    StepDefinition(
        step_id="log_shadow_hours",
        tier=StepTier.QUICK_WIN,
        order=60,
        rule="no_shadow_hours",
        action="Log your shadow hours",
        why_it_matters="Already shadowed? Log those hours!",
        href="/trackers/shadow",
        milestone="Shadowing",
        focus_area="shadowing",
        allowed_stages=PRE_DECISION,
    ),
    StepDefinition(
        step_id="log_attended_events",
        tier=StepTier.QUICK_WIN,
        order=70,
        rule="no_events_logged",
        action="Log events you've attended",
        why_it_matters="Already attended an AANA meeting or info session? Add it!",
        href="/trackers/events",
        milestone="Anesthesia Events + Networking",
        allowed_stages=PRE_DECISION,
    ),
    StepDefinition(
        step_id="add_certifications",
        tier=StepTier.QUICK_WIN,
        order=80,
        rule="no_certifications_logged",
        action="Add your certifications",
        why_it_matters="Log your CCRN, BLS, ACLS, and other credentials.",
        href="/profile/certifications",
        milestone="Certifications",
        focus_area="certifications",
        allowed_stages=PRE_DECISION,
    ),
    StepDefinition(
        step_id="add_professional_organizations",
        tier=StepTier.QUICK_WIN,
        order=90,
        rule="no_organizations",
        action="Add your professional organizations",
        why_it_matters="Log AANA, AACN, or other memberships.",
        href="/profile/organizations",
        milestone="Leadership + Community Involvement",
        focus_area="leadership",
        allowed_stages=PRE_DECISION,
    ),
    StepDefinition(
        step_id="log_eq_reflection",
        tier=StepTier.QUICK_WIN,
        order=100,
        rule="no_eq_reflections",
        action="Log an EQ reflection",
        why_it_matters="Start building your interview story bank.",
        href="/trackers/eq",
        milestone="Interview Preparation",
        focus_area="interview_prep",
        allowed_stages=PRE_DECISION + [ApplicationStage.INTERVIEWING],
    ),
    StepDefinition(
        step_id="add_leadership_experience",
        tier=StepTier.QUICK_WIN,
        order=110,
        rule="no_leadership",
        action="Add your leadership experience",
        why_it_matters="Log charge nurse, preceptor, or committee roles.",
        href="/stats#leadership",
        milestone="Leadership + Community Involvement",
        focus_area="leadership",
        allowed_stages=PRE_DECISION,
    ),
    StepDefinition(
        step_id="add_community_involvement",
        tier=StepTier.QUICK_WIN,
        order=120,
        rule="no_volunteering",
        action="Add community involvement",
        why_it_matters="Log volunteer work or medical missions.",
        href="/stats#community",
        milestone="Leadership + Community Involvement",
        focus_area="leadership",
        allowed_stages=PRE_DECISION,
    ),
]


# =============================================================================
# 2. MODERATE (1-8 weeks)
# =============================================================================

MODERATE_STEPS = [
    StepDefinition(
        step_id="continue_program_application",
        tier=StepTier.MODERATE,
        order=10,
        rule="application_in_progress",
        action="Continue your {program_name} application",
        why_it_matters="You have {incomplete_count} items remaining before the {deadline} deadline.",
        href="/my-programs/{program_id}",
        milestone="Target Program Checklists",
        focus_area="school_search",
        allowed_stages=[ApplicationStage.EXECUTING],
        program_contextual=True,
    ),
    StepDefinition(
        step_id="submit_application",
        tier=StepTier.MODERATE,
        order=20,
        rule="application_ready_to_submit",
        action="Submit your {program_name} application",
        why_it_matters="Your checklist is nearly complete. Submitting on time ensures consideration.",
        href="/my-programs/{program_id}",
        cta_label="Submit",
        milestone="Target Program Checklists",
        focus_area="school_search",
        allowed_stages=[ApplicationStage.EXECUTING],
        program_contextual=True,
    ),
    StepDefinition(
        step_id="prepare_for_interviews",
        tier=StepTier.MODERATE,
        order=30,
        rule="interview_scheduled",
        action="Prepare for your upcoming interviews",
        why_it_matters="Strong interviews are built over time. Starting now builds confidence.",
        href="/learning-library/interview-prep",
        milestone="Interview Preparation",
        focus_area="interview_prep",
        allowed_stages=[ApplicationStage.EXECUTING, ApplicationStage.INTERVIEWING],
    ),
    StepDefinition(
        step_id="practice_interview_skills",
        tier=StepTier.MODERATE,
        order=40,
        rule="interview_scheduled",
        action="Practice your interview skills",
        why_it_matters="Practicing how you communicate builds confidence and clarity.",
        href="/mock-interviews",
        milestone="Interview Preparation",
        focus_area="interview_prep",
        allowed_stages=[ApplicationStage.INTERVIEWING],
    ),
    StepDefinition(
        step_id="work_toward_ccrn",
        tier=StepTier.MODERATE,
        order=50,
        rule="missing_ccrn",
        action="Get CCRN certified",
        why_it_matters="Most programs require CCRN. Plan 4-8 weeks to prepare.",
        href="/certifications/ccrn",
        milestone="Certifications",
        focus_area="certifications",
        allowed_stages=PRE_DECISION,
    ),
    StepDefinition(
        step_id="identify_prereq_gaps",
        tier=StepTier.MODERATE,
        order=60,
        rule="target_missing_prerequisites",
        action="Identify prerequisite gaps for your target programs",
        why_it_matters="Prerequisite courses often take the longest. Identifying gaps early sets you up for success.",
        href="/prerequisite-library",
        milestone="GPA + Prerequisites",
        focus_area="gpa_prereqs",
        allowed_stages=PLANNING,
    ),
    StepDefinition(
        step_id="complete_remaining_prerequisites",
        tier=StepTier.MODERATE,
        order=70,
        rule="few_missing_prerequisites",
        action="Complete your remaining prerequisites",
        why_it_matters="You're close to finishing your prerequisites.",
        href="/stats#academic",
        milestone="GPA + Prerequisites",
        focus_area="gpa_prereqs",
        allowed_stages=PRE_DECISION,
    ),
    StepDefinition(
        step_id="plan_gre_prep",
        tier=StepTier.MODERATE,
        order=80,
        rule="gre_required_not_taken",
        action="Plan your GRE preparation",
        why_it_matters="Some of your target programs require the GRE. Planning early gives you flexibility.",
        href="/gre-study-plan",
        milestone="GRE",
        focus_area="gpa_prereqs",
        allowed_stages=PLANNING,
    ),
    StepDefinition(
        step_id="build_shadowing_experience",
        tier=StepTier.MODERATE,
        order=90,
        rule="shadow_below_goal",
        action="Build your shadowing experience",
        why_it_matters="Aim for 40+ hours across different settings. Shadowing gives you concrete stories for essays and interviews.",
        href="/trackers/shadow",
        milestone="Shadowing",
        focus_area="shadowing",
        allowed_stages=PRE_DECISION,
    ),
    StepDefinition(
        step_id="work_on_personal_statement",
        tier=StepTier.MODERATE,
        order=100,
        rule="personal_statement_incomplete",
        action="Work on your personal statement",
        why_it_matters="Starting early allows time for reflection, drafts, and strong feedback.",
        href="/learning-library/personal-statement",
        milestone="Personal Statement",
        focus_area="essay",
        allowed_stages=PLANNING,
    ),
    StepDefinition(
        step_id="develop_resume",
        tier=StepTier.MODERATE,
        order=110,
        rule="resume_incomplete",
        action="Develop your CRNA resume",
        why_it_matters="Your resume is foundational for networking, applications, and interviews.",
        href="/resume-builder",
        milestone="Resume / CV",
        focus_area="resume",
        allowed_stages=PLANNING,
    ),
    StepDefinition(
        step_id="plan_recommendation_letters",
        tier=StepTier.MODERATE,
        order=120,
        rule="few_letter_requests",
        action="Plan your letters of recommendation",
        why_it_matters="Letters take coordination and time. Planning early avoids last-minute stress.",
        href="/lor-tracker",
        milestone="Letters of Recommendation",
        focus_area="essay",
        allowed_stages=PLANNING,
    ),
    StepDefinition(
        step_id="explore_additional_certs",
        tier=StepTier.MODERATE,
        order=130,
        rule="ccrn_only",
        action="Get an additional certification",
        why_it_matters="Consider CSC, CMC, or TNCC to strengthen your application.",
        href="/profile/certifications",
        milestone="Certifications",
        focus_area="certifications",
        allowed_stages=PLANNING,
    ),
    StepDefinition(
        step_id="attend_aana_meeting",
        tier=StepTier.MODERATE,
        order=140,
        rule="no_aana_event",
        action="Attend a state or national AANA meeting",
        why_it_matters="Great for networking and learning about programs.",
        href="/events",
        milestone="Anesthesia Events + Networking",
        allowed_stages=PRE_DECISION,
    ),
    StepDefinition(
        step_id="build_leadership_experience",
        tier=StepTier.MODERATE,
        order=150,
        rule="some_leadership",
        action="Build more leadership experience",
        why_it_matters="Consider charge nurse, preceptor, or committee roles.",
        href="/stats#leadership",
        milestone="Leadership + Community Involvement",
        focus_area="leadership",
        allowed_stages=PRE_DECISION,
    ),
    StepDefinition(
        step_id="expand_community_involvement",
        tier=StepTier.MODERATE,
        order=160,
        rule="some_volunteering",
        action="Get more community involvement",
        why_it_matters="Volunteer work shows well-roundedness.",
        href="/stats#community",
        milestone="Leadership + Community Involvement",
        focus_area="leadership",
        allowed_stages=PRE_DECISION,
    ),
    StepDefinition(
        step_id="join_quality_improvement_project",
        tier=StepTier.MODERATE,
        order=170,
        rule="no_research",
        action="Get involved in a QI project",
        why_it_matters="Ask about unit-based quality improvement initiatives.",
        href="/stats#research",
        milestone="Leadership + Community Involvement",
        focus_area="leadership",
        allowed_stages=PLANNING,
    ),
]


# =============================================================================
# 3. LONG-TERM (3+ months)
# =============================================================================

LONG_TERM_STEPS = [
    StepDefinition(
        step_id="plan_prerequisite_coursework",
        tier=StepTier.LONG_TERM,
        order=10,
        rule="many_missing_prerequisites",
        action="Plan your prerequisite coursework",
        why_it_matters="Map out which semesters to take remaining courses.",
        href="/stats#academic",
        milestone="GPA + Prerequisites",
        focus_area="gpa_prereqs",
        allowed_stages=LONG_HORIZON,
    ),
    StepDefinition(
        step_id="build_icu_experience",
        tier=StepTier.LONG_TERM,
        order=20,
        rule="limited_icu_years",
        action="Continue building ICU experience",
        why_it_matters="Most programs prefer 2+ years of critical care experience.",
        href="/trackers/clinical",
        milestone="Critical Care Experience",
        allowed_stages=LONG_HORIZON,
    ),
    StepDefinition(
        step_id="seek_high_acuity_assignments",
        tier=StepTier.LONG_TERM,
        order=30,
        rule="no_advanced_devices",
        action="Seek high-acuity patient assignments",
        why_it_matters="ECMO, IABP, CRRT experience strengthens your application.",
        href="/trackers/clinical",
        milestone="Critical Care Experience",
        allowed_stages=LONG_HORIZON,
    ),
    StepDefinition(
        step_id="consider_grade_replacement",
        tier=StepTier.LONG_TERM,
        order=40,
        rule="low_overall_gpa",
        action="Consider grade replacement options",
        why_it_matters="Some schools accept retakes. Check target program policies.",
        href="/stats#academic",
        milestone="GPA + Prerequisites",
        focus_area="gpa_prereqs",
        allowed_stages=LONG_HORIZON,
    ),
    StepDefinition(
        step_id="consider_gre",
        tier=StepTier.LONG_TERM,
        order=50,
        rule="low_science_gpa_without_gre",
        action="Consider taking the GRE",
        why_it_matters="A strong GRE can offset a lower GPA for some programs.",
        href="/stats#academic",
        milestone="GRE",
        focus_area="gpa_prereqs",
        allowed_stages=LONG_HORIZON,
    ),
    StepDefinition(
        step_id="pursue_research_opportunity",
        tier=StepTier.LONG_TERM,
        order=60,
        rule="no_publications",
        action="Consider a research opportunity",
        why_it_matters="Publications or poster presentations stand out.",
        href="/stats#research",
        milestone="Leadership + Community Involvement",
        focus_area="leadership",
        allowed_stages=LONG_HORIZON,
    ),
]


# =============================================================================
# FULL CATALOG
# =============================================================================

def build_catalog(steps: Iterable[StepDefinition]) -> Catalog:
    """Freeze a list of step definitions into a catalog, rejecting duplicate ids."""
    catalog = tuple(steps)
    seen = set()
    for step in catalog:
        if step.step_id in seen:
            raise ValueError(f"Duplicate step_id in catalog: {step.step_id!r}")
        seen.add(step.step_id)
    return catalog


NEXT_BEST_STEP_CATALOG: Catalog = build_catalog(QUICK_WIN_STEPS + MODERATE_STEPS + LONG_TERM_STEPS)


def load_catalog(path: Optional[str] = None) -> Catalog:
    """
    Load a catalog.

    Args:
        path: JSON file holding a list of step definitions. None returns the built-in catalog.

    Returns:
        Immutable tuple of StepDefinition
    """
    if path is None:
        return NEXT_BEST_STEP_CATALOG
    with open(path, "r", encoding="utf-8") as fh:
        entries = json.load(fh)
    if not isinstance(entries, list):
        raise ValueError(f"Catalog file {path} must contain a JSON list")
    return build_catalog(StepDefinition(**entry) for entry in entries)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_step_by_id(step_id: str, catalog: Catalog = NEXT_BEST_STEP_CATALOG) -> Optional[StepDefinition]:
    return next((step for step in catalog if step.step_id == step_id), None)


def get_steps_for_stage(stage: ApplicationStage, catalog: Catalog = NEXT_BEST_STEP_CATALOG) -> List[StepDefinition]:
    return [step for step in catalog if stage in step.allowed_stages]


def get_program_contextual_steps(catalog: Catalog = NEXT_BEST_STEP_CATALOG) -> List[StepDefinition]:
    return [step for step in catalog if step.program_contextual]


def get_steps_for_milestone(milestone: str, catalog: Catalog = NEXT_BEST_STEP_CATALOG) -> List[StepDefinition]:
    return [step for step in catalog if step.milestone == milestone]
