"""
Data Contracts for the Guidance Engine

Defines Pydantic models for UserSnapshot (input) and GuidanceState (output).
These contracts are the API boundary for the guidance and readiness engine.

Field validators clamp out-of-range values (negative hours, GPAs above 4.0,
checklist progress above 100%) so scoring code never sees invalid ranges.
"""

from datetime import date, datetime, timezone
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator

from .constants import (
    ApplicationStage,
    SupportMode,
    RiskSignal,
    StepTier,
    ReadinessLevel,
    ReadinessCategory,
    SkillConfidence,
    DEFAULT_CTA_LABEL,
    HELD_CERT_STATUSES,
    MAX_GPA,
)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _clamp(value, low: float, high: Optional[float] = None):
    if value is None:
        return None
    value = float(value)
    if high is not None:
        value = min(high, value)
    return max(low, value)


# =============================================================================
# INPUT CONTRACTS
# =============================================================================

class GreScores(BaseModel):
    quantitative: Optional[int] = None
    verbal: Optional[int] = None
    analytical_writing: Optional[float] = None

    class Config:
        frozen = True

    @property
    def taken(self) -> bool:
        return bool(self.quantitative and self.verbal)


class AcademicRecord(BaseModel):
    """GPA values on a 4.0 scale plus optional GRE scores."""
    overall_gpa: Optional[float] = None
    science_gpa: Optional[float] = None
    last_60_gpa: Optional[float] = None
    gre: Optional[GreScores] = None

    class Config:
        frozen = True

    @field_validator("overall_gpa", "science_gpa", "last_60_gpa", mode="before")
    @classmethod
    def clamp_gpa(cls, v):
        return _clamp(v, 0.0, MAX_GPA)

    @property
    def gpa_entered(self) -> bool:
        return bool(self.overall_gpa or self.science_gpa)

    @property
    def gre_taken(self) -> bool:
        return self.gre is not None and self.gre.taken


class CourseAttempt(BaseModel):
    term: Optional[str] = None
    grade: Optional[str] = None

    class Config:
        frozen = True


class PrerequisiteCourse(BaseModel):
    """A prerequisite course with its retake history, oldest attempt first."""
    course_type: str
    status: str = "planned"  # completed/in_progress/planned
    attempts: List[CourseAttempt] = Field(default_factory=list)

    class Config:
        frozen = True

    @field_validator("course_type", "status")
    @classmethod
    def lower(cls, v: str) -> str:
        return v.strip().lower()

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def effective_grade(self) -> Optional[str]:
        """Grade of the latest graded attempt; a retake replaces earlier grades."""
        graded = [a.grade for a in self.attempts if a.grade]
        return graded[-1].strip().upper() if graded else None


class ClinicalProfile(BaseModel):
    primary_unit_type: Optional[str] = None  # cvicu/micu/neuro_icu/...
    years_experience: float = 0.0

    class Config:
        frozen = True

    @field_validator("years_experience", mode="before")
    @classmethod
    def non_negative(cls, v):
        return _clamp(v, 0.0) or 0.0


class SkillLog(BaseModel):
    """A medication, device or procedure logged with the nurse's confidence level."""
    item_id: str
    confidence: SkillConfidence = SkillConfidence.PERFORMED

    class Config:
        frozen = True
        use_enum_values = True

    @field_validator("item_id")
    @classmethod
    def lower(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("confidence", mode="before")
    @classmethod
    def known_confidence(cls, v):
        if v is None:
            return SkillConfidence.PERFORMED.value
        v = str(v).strip().lower()
        if v == "used_it":
            return SkillConfidence.PERFORMED.value
        if v not in {c.value for c in SkillConfidence}:
            return SkillConfidence.ASSISTED.value
        return v


class ClinicalEntry(BaseModel):
    """One clinical tracker entry (typically one shift)."""
    unit_type: Optional[str] = None
    logged_on: Optional[date] = None
    medications: List[SkillLog] = Field(default_factory=list)
    devices: List[SkillLog] = Field(default_factory=list)
    procedures: List[SkillLog] = Field(default_factory=list)
    patient_populations: List[str] = Field(default_factory=list)
    code_or_rapid_response: bool = False

    class Config:
        frozen = True

    @field_validator("medications", "devices", "procedures", mode="before")
    @classmethod
    def accept_plain_ids(cls, v):
        # Plain string ids are shorthand for a performed skill
        if v is None:
            return []
        return [{"item_id": item} if isinstance(item, str) else item for item in v]


class ShadowingEntry(BaseModel):
    hours: float = 0.0
    provider_id: Optional[str] = None
    setting: Optional[str] = None
    shadowed_on: Optional[date] = None

    class Config:
        frozen = True

    @field_validator("hours", mode="before")
    @classmethod
    def non_negative(cls, v):
        return _clamp(v, 0.0) or 0.0


class Certification(BaseModel):
    cert_type: str
    status: str = "active"  # active/passed/in_progress/expired
    expires_on: Optional[date] = None

    class Config:
        frozen = True

    @field_validator("cert_type", "status")
    @classmethod
    def lower(cls, v: str) -> str:
        return v.strip().lower()

    def is_held(self, on: date) -> bool:
        if self.status not in HELD_CERT_STATUSES:
            return False
        return self.expires_on is None or self.expires_on >= on


class LeadershipEntry(BaseModel):
    role: str = "none"

    class Config:
        frozen = True


class ResearchEntry(BaseModel):
    kind: str = "none"

    class Config:
        frozen = True


class EventAttendance(BaseModel):
    event_type: str = "other"
    attended_on: Optional[date] = None
    program_id: Optional[str] = None

    class Config:
        frozen = True


class TargetProgram(BaseModel):
    """A program the applicant is actively targeting."""
    program_id: str
    name: str = ""
    status: str = "not_started"
    deadline: Optional[date] = None
    checklist_progress: float = 0.0  # 0.0 - 1.0
    checklist_items_remaining: int = 0
    requires_ccrn: bool = False
    requires_gre: bool = False
    missing_prerequisites: List[str] = Field(default_factory=list)

    class Config:
        frozen = True

    @field_validator("program_id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        return str(v) if isinstance(v, int) else v

    @field_validator("checklist_progress", mode="before")
    @classmethod
    def clamp_progress(cls, v):
        return _clamp(v, 0.0, 1.0) or 0.0

    @field_validator("checklist_items_remaining", mode="before")
    @classmethod
    def non_negative(cls, v):
        return max(0, int(v or 0))


class ActivityEvent(BaseModel):
    action_type: str
    occurred_at: datetime

    class Config:
        frozen = True

    @field_validator("occurred_at")
    @classmethod
    def utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class Milestone(BaseModel):
    name: str
    status: str = "not_started"

    class Config:
        frozen = True


class StepDismissal(BaseModel):
    step_id: str
    dismissed_at: datetime

    class Config:
        frozen = True

    @field_validator("dismissed_at")
    @classmethod
    def utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class FocusArea(BaseModel):
    area: str
    status: str = "active"

    class Config:
        frozen = True


class UserSnapshot(BaseModel):
    """
    Input contract for the guidance engine.
    A read-only aggregate of everything known about one applicant.
    Every optional field has an explicit default; only user_id is required.
    """
    # Identity
    user_id: str

    # Reference time for every time-relative rule (see normalizer)
    as_of: Optional[datetime] = None

    # Academic
    academic: AcademicRecord = Field(default_factory=AcademicRecord)
    prerequisites: List[PrerequisiteCourse] = Field(default_factory=list)

    # Clinical & Shadowing
    clinical_profile: ClinicalProfile = Field(default_factory=ClinicalProfile)
    clinical_entries: List[ClinicalEntry] = Field(default_factory=list)
    shadowing_entries: List[ShadowingEntry] = Field(default_factory=list)

    # Credentials & Involvement
    certifications: List[Certification] = Field(default_factory=list)
    leadership_entries: List[LeadershipEntry] = Field(default_factory=list)
    research_entries: List[ResearchEntry] = Field(default_factory=list)
    volunteering_count: int = 0
    organization_count: int = 0
    eq_reflection_count: int = 0
    events_attended: List[EventAttendance] = Field(default_factory=list)

    # Programs
    saved_program_ids: List[str] = Field(default_factory=list)
    target_programs: List[TargetProgram] = Field(default_factory=list)

    # Application Materials
    resume_completed: bool = False
    personal_statement_started: bool = False
    personal_statement_completed: bool = False
    letter_request_count: int = 0

    # Activity & Guidance History
    activity_log: List[ActivityEvent] = Field(default_factory=list)
    last_activity_at: Dict[str, datetime] = Field(default_factory=dict)
    milestones: List[Milestone] = Field(default_factory=list)
    completed_actions: List[str] = Field(default_factory=list)
    dismissed_steps: List[StepDismissal] = Field(default_factory=list)
    primary_focus_areas: List[FocusArea] = Field(default_factory=list)

    class Config:
        frozen = True

    @field_validator(
        "volunteering_count",
        "organization_count",
        "eq_reflection_count",
        "letter_request_count",
        mode="before",
    )
    @classmethod
    def non_negative_count(cls, v):
        return max(0, int(v or 0))

    @field_validator("as_of")
    @classmethod
    def utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @field_validator("last_activity_at")
    @classmethod
    def utc_values(cls, v: Dict[str, datetime]) -> Dict[str, datetime]:
        return {category: _as_utc(ts) for category, ts in v.items()}


# =============================================================================
# OUTPUT CONTRACTS
# =============================================================================

class NextBestStep(BaseModel):
    """A ranked, display-ready recommendation."""
    step_id: str
    tier: StepTier
    action: str
    why_it_matters: str
    cta_label: str = DEFAULT_CTA_LABEL
    href: str = ""
    milestone: Optional[str] = None
    focus_area: Optional[str] = None
    program_id: Optional[str] = None

    class Config:
        frozen = True
        use_enum_values = True


class QualifiedStep(BaseModel):
    """Internal: a qualified step carrying its catalog sort position."""
    step: NextBestStep
    order: int = 0

    class Config:
        frozen = True


class CategoryScore(BaseModel):
    """Individual readiness category score with details."""
    category: ReadinessCategory
    label: str
    score: int = Field(ge=0, le=100)
    weight: float = Field(ge=0.0, le=1.0)
    weighted_score: float = Field(ge=0.0, le=100.0)
    details: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        frozen = True
        use_enum_values = True


class AcuityScore(BaseModel):
    """Clinical acuity index: how complex and varied the logged ICU experience is."""
    total_score: int = Field(default=0, ge=0, le=100)
    level: ReadinessLevel = ReadinessLevel.EMERGING
    components: Dict[str, float] = Field(default_factory=dict)
    details: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    strengths: List[str] = Field(default_factory=list)
    gaps: List[str] = Field(default_factory=list)
    entry_count: int = 0

    class Config:
        frozen = True
        use_enum_values = True


class ReadinessDriver(BaseModel):
    """A concrete gap worth working on, ranked by impact (1 = highest)."""
    driver_id: str
    action: str
    context: str
    category: ReadinessCategory
    priority: int = Field(ge=1)

    class Config:
        frozen = True
        use_enum_values = True


class WeeklyFocus(BaseModel):
    """This week's suggested action for the weakest category."""
    category: ReadinessCategory
    label: str
    action: str
    score: int = Field(ge=0, le=100)
    priority: str  # high/medium/low

    class Config:
        frozen = True
        use_enum_values = True


class ReadinessScore(BaseModel):
    """Composite 0-100 readiness score with its category breakdown."""
    total_score: int = Field(ge=0, le=100)
    level: ReadinessLevel
    categories: List[CategoryScore] = Field(default_factory=list)
    strongest: Optional[ReadinessCategory] = None
    weakest: Optional[ReadinessCategory] = None
    focus_category: Optional[ReadinessCategory] = None
    clinical_acuity: AcuityScore = Field(default_factory=AcuityScore)
    drivers: List[ReadinessDriver] = Field(default_factory=list)
    weekly_focus: Optional[WeeklyFocus] = None

    class Config:
        frozen = True
        use_enum_values = True


class GuidanceState(BaseModel):
    """
    Output contract for the guidance engine.
    Produced fresh per call; never persisted by the engine.
    """
    user_id: str
    application_stage: ApplicationStage
    support_mode: SupportMode
    risk_signals: List[RiskSignal] = Field(default_factory=list)
    next_best_steps: List[NextBestStep] = Field(default_factory=list)

    # Readiness
    readiness_score: int = Field(ge=0, le=100)
    readiness_level: ReadinessLevel
    category_breakdown: List[CategoryScore] = Field(default_factory=list)
    readiness: ReadinessScore

    primary_focus_areas: List[str] = Field(default_factory=list)
    engine_version: str = "1.0.0"

    class Config:
        frozen = True
        use_enum_values = True
