"""
Guidance Engine Constants

Defines the enums, reference tables, weights and thresholds used by the
guidance and readiness engine. All values are deterministic with no AI/ML components.
These are the defaults behind EngineConfig; engine code reads them through the config.
"""

from enum import Enum
from typing import Dict, List


# =============================================================================
# ENUMS
# =============================================================================

class ApplicationStage(str, Enum):
    """Applicant lifecycle stage, ordered from earliest to latest."""
    EXPLORING = "exploring"          # Early research, no programs yet
    STRATEGIZING = "strategizing"    # Saved programs, building a plan
    EXECUTING = "executing"          # Actively working on applications
    INTERVIEWING = "interviewing"    # Interview phase
    POST_DECISION = "post_decision"  # Accepted, waitlisted, or denied


class RiskSignal(str, Enum):
    """Conditions flagged by the risk detector."""
    STAGNATION = "stagnation"
    DEADLINE_PRESSURE = "deadline_pressure"
    BELOW_BENCHMARK_ACADEMICS = "below_benchmark_academics"
    MISSING_PREREQUISITE = "missing_prerequisite"
    EXPIRING_CERTIFICATION = "expiring_certification"
    MOMENTUM = "momentum"  # Positive signal, never raises support intensity


class SupportMode(str, Enum):
    """Tone/intensity of guidance. Declared from lowest to highest severity."""
    ORIENTATION = "orientation"    # New user, needs overview
    STRATEGY = "strategy"          # Planning, needs decision support
    EXECUTION = "execution"        # Active work, needs task management
    CONFIDENCE = "confidence"      # Interview prep, needs polish
    TARGETED = "targeted"          # A specific gap needs attention
    URGENT = "urgent"              # Deadline at risk
    REENGAGEMENT = "reengagement"  # Stalled, needs to be brought back


class StepTier(str, Enum):
    """Priority bucket for a next best step."""
    QUICK_WIN = "quick_win"    # Log what you already have, doable today
    MODERATE = "moderate"      # 1-8 weeks of effort
    LONG_TERM = "long_term"    # 3+ months


class ReadinessLevel(str, Enum):
    EMERGING = "emerging"
    DEVELOPING = "developing"
    STRONG = "strong"
    EXCEPTIONAL = "exceptional"


class ReadinessCategory(str, Enum):
    ACADEMIC = "academic"
    CLINICAL = "clinical"
    SHADOWING = "shadowing"
    LEADERSHIP = "leadership"
    ENGAGEMENT = "engagement"
    CERTIFICATIONS = "certifications"


class SkillConfidence(str, Enum):
    OBSERVED = "observed"
    ASSISTED = "assisted"
    PERFORMED = "performed"
    COULD_TEACH = "could_teach"


# Sort rank for tiers (lower ranks first)
TIER_RANK: Dict[StepTier, int] = {
    StepTier.QUICK_WIN: 0,
    StepTier.MODERATE: 1,
    StepTier.LONG_TERM: 2,
}

# =============================================================================
# STAGE / SIGNAL / SUPPORT MODE TABLES
# =============================================================================

STAGE_SUPPORT_MODES: Dict[str, str] = {
    ApplicationStage.EXPLORING.value: SupportMode.ORIENTATION.value,
    ApplicationStage.STRATEGIZING.value: SupportMode.STRATEGY.value,
    ApplicationStage.EXECUTING.value: SupportMode.EXECUTION.value,
    ApplicationStage.INTERVIEWING.value: SupportMode.CONFIDENCE.value,
    ApplicationStage.POST_DECISION.value: SupportMode.ORIENTATION.value,
}

# Signals absent from this table do not influence the support mode
RISK_SIGNAL_SUPPORT_MODES: Dict[str, str] = {
    RiskSignal.STAGNATION.value: SupportMode.REENGAGEMENT.value,
    RiskSignal.DEADLINE_PRESSURE.value: SupportMode.URGENT.value,
    RiskSignal.BELOW_BENCHMARK_ACADEMICS.value: SupportMode.TARGETED.value,
    RiskSignal.MISSING_PREREQUISITE.value: SupportMode.TARGETED.value,
    RiskSignal.EXPIRING_CERTIFICATION.value: SupportMode.TARGETED.value,
}

# Lowest to highest
SUPPORT_MODE_SEVERITY: List[str] = [mode.value for mode in SupportMode]

# Target program statuses driving stage classification
DECISION_STATUSES = ("accepted", "waitlisted", "denied")
INTERVIEW_STATUSES = ("interview_invite", "interview_complete")
ACTIVE_APPLICATION_STATUSES = ("in_progress", "submitted")

# =============================================================================
# RISK THRESHOLDS
# =============================================================================

MEANINGFUL_ACTIONS: List[str] = [
    "log_clinical",
    "log_shadow",
    "log_eq",
    "complete_checklist_item",
    "submit_application",
    "add_target_program",
    "update_target_program",
    "complete_milestone_item",
]

STAGNATION_DAYS = 14
MOMENTUM_WINDOW_DAYS = 7
MOMENTUM_MIN_ACTIONS = 3
DEADLINE_WINDOW_DAYS = 30
DEADLINE_PROGRESS_THRESHOLD = 0.6
CERTIFICATION_EXPIRY_DAYS = 60
GPA_BENCHMARK = 3.0

# =============================================================================
# NEXT BEST STEP CONFIGURATION
# =============================================================================

MAX_NEXT_BEST_STEPS = 3
DISMISSAL_COOLOFF_DAYS = 7
DEFAULT_CTA_LABEL = "Get started"

# =============================================================================
# READINESS WEIGHTS & LEVELS
# =============================================================================

# Category weights (must sum to 1.0)
CATEGORY_WEIGHTS: Dict[str, float] = {
    ReadinessCategory.ACADEMIC.value: 0.25,
    ReadinessCategory.CLINICAL.value: 0.20,
    ReadinessCategory.SHADOWING.value: 0.15,
    ReadinessCategory.LEADERSHIP.value: 0.15,
    ReadinessCategory.ENGAGEMENT.value: 0.15,
    ReadinessCategory.CERTIFICATIONS.value: 0.10,
}

CATEGORY_LABELS: Dict[str, str] = {
    ReadinessCategory.ACADEMIC.value: "Academic",
    ReadinessCategory.CLINICAL.value: "Clinical Experience",
    ReadinessCategory.SHADOWING.value: "Shadowing",
    ReadinessCategory.LEADERSHIP.value: "Leadership & Research",
    ReadinessCategory.ENGAGEMENT.value: "Engagement & Events",
    ReadinessCategory.CERTIFICATIONS.value: "Certifications & Exams",
}

# Minimum total score for each level, checked highest first
READINESS_LEVEL_THRESHOLDS: Dict[str, int] = {
    ReadinessLevel.EXCEPTIONAL.value: 80,
    ReadinessLevel.STRONG.value: 60,
    ReadinessLevel.DEVELOPING.value: 40,
    ReadinessLevel.EMERGING.value: 0,
}

# Weakest category below this is surfaced as the focus category
FOCUS_CATEGORY_THRESHOLD = 50

# =============================================================================
# ACADEMIC
# =============================================================================

# Weighted GPA components (renormalized over the GPAs actually entered)
GPA_COMPONENT_WEIGHTS: Dict[str, float] = {
    "overall_gpa": 0.3,
    "science_gpa": 0.4,
    "last_60_gpa": 0.3,
}

# (minimum weighted GPA, band score), checked top-down
GPA_SCORE_BANDS = [
    (3.7, 100),
    (3.5, 85),
    (3.3, 70),
    (3.0, 55),
]
GPA_FLOOR_SCORE = 40
MAX_GPA = 4.0

CORE_PREREQUISITES: List[str] = [
    "anatomy",
    "physiology",
    "general_chemistry",
    "organic_chemistry",
    "biochemistry",
    "statistics",
    "physics",
    "microbiology",
]

LOW_GRADES = ("C+", "C", "C-", "D+", "D", "D-", "F")
CLEAN_TRANSCRIPT_BONUS = 10

# =============================================================================
# CLINICAL
# =============================================================================

FULL_CREDIT_ICU_YEARS = 3.0
PREFERRED_ICU_YEARS = 2.0

UNIT_ACUITY_SCORES: Dict[str, int] = {
    "cvicu": 100,
    "cticu": 100,
    "sicu": 100,
    "trauma_icu": 100,
    "flight_nurse": 95,
    "burn_icu": 90,
    "micu": 85,
    "neuro_icu": 85,
    "mixed": 80,
    "picu": 75,
    "nicu": 70,
    "other": 60,
}
DEFAULT_UNIT_ACUITY = 60

CLINICAL_SUBWEIGHTS: Dict[str, float] = {
    "years": 0.4,
    "unit_acuity": 0.3,
    "acuity_index": 0.3,
}

# Clinical acuity index components (sum to 1.0)
ACUITY_WEIGHTS: Dict[str, float] = {
    "device_complexity": 0.30,
    "medication_variety": 0.25,
    "procedure_participation": 0.20,
    "population_diversity": 0.15,
    "vasopressor_depth": 0.10,
}

# Counts that earn full credit for each acuity component
ACUITY_BENCHMARKS: Dict[str, float] = {
    "tier4_devices": 3,
    "tier3_devices": 5,
    "tier2_devices": 8,
    "tier1_devices": 5,
    "medication_categories": 7,
    "unique_medications": 20,
    "procedures": 10,
    "codes_rapids": 5,
    "populations": 6,
    "vasopressors": 5,
}

DEVICE_TIER_WEIGHTS: Dict[int, float] = {4: 0.4, 3: 0.3, 2: 0.2, 1: 0.1}

CONFIDENCE_WEIGHTS: Dict[str, float] = {
    SkillConfidence.OBSERVED.value: 0.3,
    SkillConfidence.ASSISTED.value: 0.5,
    SkillConfidence.PERFORMED.value: 0.7,
    SkillConfidence.COULD_TEACH.value: 1.0,
}

ACUITY_STRENGTH_THRESHOLD = 70
ACUITY_GAP_THRESHOLD = 40

DEVICE_TIERS: Dict[str, int] = {
    "impella": 4,
    "lvad": 4,
    "ecmo": 4,
    "evd": 3,
    "crrt": 3,
    "iabp": 3,
    "targeted_temp": 3,
    "icp_monitor": 3,
    "mechanical_vent": 2,
    "rapid_infuser": 2,
    "pacemaker": 2,
    "swan_ganz": 2,
    "flotrac": 2,
    "lumbar_drain": 2,
    "epidural": 2,
    "pa_catheter": 2,
    "external_pacer": 2,
    "temporary_pacer": 2,
    "bipap_cpap": 2,
    "chest_tube": 2,
    "arterial_line": 1,
    "central_line": 1,
    "cvp_monitoring": 1,
    "foley": 1,
    "ng_og_tube": 1,
    "picc": 1,
}

# Devices that count as high-acuity experience
ADVANCED_DEVICES = ("ecmo", "impella", "lvad", "iabp", "crrt")

MEDICATION_CATEGORIES: Dict[str, str] = {
    "norepinephrine": "vasopressors",
    "epinephrine": "vasopressors",
    "vasopressin": "vasopressors",
    "phenylephrine": "vasopressors",
    "dopamine": "vasopressors",
    "dobutamine": "inotropes",
    "milrinone": "inotropes",
    "propofol": "sedatives",
    "precedex": "sedatives",
    "midazolam": "sedatives",
    "ketamine": "sedatives",
    "lorazepam": "sedatives",
    "fentanyl": "analgesics",
    "morphine": "analgesics",
    "hydromorphone": "analgesics",
    "remifentanil": "analgesics",
    "rocuronium": "paralytics",
    "cisatracurium": "paralytics",
    "vecuronium": "paralytics",
    "succinylcholine": "paralytics",
    "amiodarone": "antiarrhythmics",
    "lidocaine": "antiarrhythmics",
    "adenosine": "antiarrhythmics",
    "diltiazem": "antiarrhythmics",
    "esmolol": "antiarrhythmics",
    "metoprolol": "antiarrhythmics",
    "atropine": "antiarrhythmics",
    "heparin": "anticoagulants",
    "argatroban": "anticoagulants",
    "bivalirudin": "anticoagulants",
    "enoxaparin": "anticoagulants",
    "nicardipine": "vasodilators",
    "nitroglycerin": "vasodilators",
    "clevidipine": "vasodilators",
    "nitroprusside": "vasodilators",
    "hydralazine": "vasodilators",
    "labetalol": "vasodilators",
}

PRESSOR_CATEGORIES = ("vasopressors", "inotropes")

# =============================================================================
# SHADOWING
# =============================================================================

SHADOW_GOAL_HOURS = 40
SHADOW_MODERATE_GOAL_HOURS = 24
SHADOW_PROVIDER_GOAL = 5
SHADOW_SETTING_GOAL = 3

# =============================================================================
# LEADERSHIP & RESEARCH
# =============================================================================

LEADERSHIP_TIERS: Dict[str, int] = {
    "none": 0,
    "committee_member": 40,
    "preceptor": 60,
    "charge_nurse": 70,
    "project_lead": 85,
    "council_member": 100,
}

RESEARCH_TIERS: Dict[str, int] = {
    "none": 0,
    "ebp_project": 40,
    "poster_presentation": 60,
    "published_article": 85,
    "clinical_research_team": 100,
}

PUBLICATION_KINDS = ("published_article", "poster_presentation")

# =============================================================================
# ENGAGEMENT
# =============================================================================

EVENT_WEIGHTS: Dict[str, int] = {
    "aana_national": 30,
    "aana_state": 20,
    "school_open_house": 15,
    "info_session": 10,
    "workshop": 10,
    "other": 5,
}

AANA_EVENT_TYPES = ("aana_national", "aana_state")

# =============================================================================
# CERTIFICATIONS & EXAMS
# =============================================================================

CCRN_POINTS = 50
OTHER_CERT_POINTS = 10
OTHER_CERT_MAX_POINTS = 30
GRE_POINTS = 20

OTHER_RECOGNISED_CERTS = ("csc", "cmc", "tncc", "pals", "nihss", "acls")
HELD_CERT_STATUSES = ("active", "passed")

# =============================================================================
# DRIVERS & WEEKLY FOCUS
# =============================================================================

MAX_DRIVERS = 3

# Lower number = higher impact
DRIVER_PRIORITY: Dict[str, int] = {
    "ccrn": 1,
    "shadow": 2,
    "prereqs": 3,
    "icu_years": 4,
    "events": 5,
    "leadership": 6,
}
ENGAGEMENT_DRIVER_THRESHOLD = 30
WEEKLY_SHADOW_HOURS_CAP = 8

# Weekly focus priority by weakest category score (upper bounds, exclusive)
WEEKLY_FOCUS_HIGH_BELOW = 30
WEEKLY_FOCUS_MEDIUM_BELOW = 50

# Default weekly action per weakest category
FOCUS_RECOMMENDATIONS: Dict[str, str] = {
    ReadinessCategory.ACADEMIC.value: "Review your GPA calculation or consider a prereq refresh course",
    ReadinessCategory.CLINICAL.value: "Log your shifts this week to build your clinical portfolio",
    ReadinessCategory.SHADOWING.value: "Schedule your next shadow day or log recent experiences",
    ReadinessCategory.LEADERSHIP.value: "Look for a committee or project to get involved with",
    ReadinessCategory.ENGAGEMENT.value: "Attend an info session or reach out to a target program",
    ReadinessCategory.CERTIFICATIONS.value: "Work toward your CCRN or schedule your GRE",
}
