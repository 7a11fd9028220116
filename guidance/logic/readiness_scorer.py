"""
Readiness Scorer

Scores the applicant across six readiness categories and combines them
into a single 0-100 readiness score.

Each category scorer produces a score between 0 and 100 plus a details dict.
Category weights come from EngineConfig and always sum to 1.0, so the
composite equals the sum of the weighted category scores.
"""

from typing import Callable, Dict, List, Tuple

from .acuity import calculate_acuity_score, level_for_score, round_half_up
from .config import EngineConfig
from .contracts import (
    UserSnapshot,
    CategoryScore,
    ReadinessScore,
    ReadinessDriver,
    WeeklyFocus,
    AcuityScore,
)
from .constants import (
    ReadinessCategory,
    CATEGORY_LABELS,
    FOCUS_CATEGORY_THRESHOLD,
    GPA_COMPONENT_WEIGHTS,
    GPA_SCORE_BANDS,
    GPA_FLOOR_SCORE,
    LOW_GRADES,
    CLEAN_TRANSCRIPT_BONUS,
    FULL_CREDIT_ICU_YEARS,
    UNIT_ACUITY_SCORES,
    DEFAULT_UNIT_ACUITY,
    CLINICAL_SUBWEIGHTS,
    SHADOW_PROVIDER_GOAL,
    SHADOW_SETTING_GOAL,
    LEADERSHIP_TIERS,
    RESEARCH_TIERS,
    EVENT_WEIGHTS,
    CCRN_POINTS,
    OTHER_CERT_POINTS,
    OTHER_CERT_MAX_POINTS,
    GRE_POINTS,
    PREFERRED_ICU_YEARS,
    MAX_DRIVERS,
    DRIVER_PRIORITY,
    ENGAGEMENT_DRIVER_THRESHOLD,
    WEEKLY_SHADOW_HOURS_CAP,
    WEEKLY_FOCUS_HIGH_BELOW,
    WEEKLY_FOCUS_MEDIUM_BELOW,
    FOCUS_RECOMMENDATIONS,
)
from .qualification_rules import (
    completed_core_prerequisites,
    has_ccrn,
    other_recognised_certs,
    total_shadow_hours,
)

CategoryResult = Tuple[float, Dict]


def _ratio(value: float, goal: float) -> float:
    if goal <= 0:
        return 1.0
    return max(0.0, min(1.0, value / goal))


# =============================================================================
# ACADEMIC
# =============================================================================

def weighted_gpa(snapshot: UserSnapshot):
    """Weighted GPA over the GPA types actually entered, or None."""
    academic = snapshot.academic
    entered = {
        name: getattr(academic, name)
        for name in GPA_COMPONENT_WEIGHTS
        if getattr(academic, name)
    }
    if not entered:
        return None
    total_weight = sum(GPA_COMPONENT_WEIGHTS[name] for name in entered)
    return sum(gpa * GPA_COMPONENT_WEIGHTS[name] for name, gpa in entered.items()) / total_weight


def gpa_band_score(gpa) -> int:
    if gpa is None:
        return 0
    for minimum, score in GPA_SCORE_BANDS:
        if gpa >= minimum:
            return score
    return GPA_FLOOR_SCORE


def score_academic(snapshot: UserSnapshot, config: EngineConfig, acuity: AcuityScore) -> CategoryResult:
    """
    GPA band (60%) + core prerequisite completion (40%).

    A clean transcript (no completed course below a B) earns a bonus
    on the prerequisite part, capped at 100.
    """
    gpa = weighted_gpa(snapshot)
    gpa_score = gpa_band_score(gpa)

    completed = completed_core_prerequisites(snapshot, config)
    prereq_score = _ratio(len(completed), len(config.core_prerequisites)) * 100

    low_grades = [
        p.course_type for p in snapshot.prerequisites
        if p.is_completed and p.effective_grade in LOW_GRADES
    ]
    clean_transcript = bool(completed) and not low_grades
    if clean_transcript:
        prereq_score = min(100.0, prereq_score + CLEAN_TRANSCRIPT_BONUS)

    score = gpa_score * 0.6 + prereq_score * 0.4
    return score, {
        "weighted_gpa": round(gpa, 2) if gpa is not None else None,
        "gpa_score": gpa_score,
        "prerequisites_completed": len(completed),
        "prerequisites_total": len(config.core_prerequisites),
        "low_grades": sorted(low_grades),
        "clean_transcript": clean_transcript,
    }


# =============================================================================
# CLINICAL
# =============================================================================

def unit_acuity_score(unit_type) -> int:
    if not unit_type:
        return 0
    return UNIT_ACUITY_SCORES.get(unit_type.strip().lower(), DEFAULT_UNIT_ACUITY)


def score_clinical(snapshot: UserSnapshot, config: EngineConfig, acuity: AcuityScore) -> CategoryResult:
    profile = snapshot.clinical_profile
    years_score = _ratio(profile.years_experience, FULL_CREDIT_ICU_YEARS) * 100
    unit_score = unit_acuity_score(profile.primary_unit_type)

    score = (
        years_score * CLINICAL_SUBWEIGHTS["years"]
        + unit_score * CLINICAL_SUBWEIGHTS["unit_acuity"]
        + acuity.total_score * CLINICAL_SUBWEIGHTS["acuity_index"]
    )
    return score, {
        "years_experience": profile.years_experience,
        "years_score": round(years_score, 1),
        "unit_type": profile.primary_unit_type,
        "unit_acuity_score": unit_score,
        "acuity_index": acuity.total_score,
    }


# =============================================================================
# SHADOWING
# =============================================================================

def score_shadowing(snapshot: UserSnapshot, config: EngineConfig, acuity: AcuityScore) -> CategoryResult:
    hours = total_shadow_hours(snapshot)
    providers = {e.provider_id for e in snapshot.shadowing_entries if e.provider_id}
    settings = {e.setting for e in snapshot.shadowing_entries if e.setting}

    score = (
        _ratio(hours, config.shadow_goal_hours) * 50
        + _ratio(len(providers), SHADOW_PROVIDER_GOAL) * 30
        + _ratio(len(settings), SHADOW_SETTING_GOAL) * 20
    )
    return score, {
        "total_hours": round(hours, 1),
        "goal_hours": config.shadow_goal_hours,
        "unique_providers": len(providers),
        "unique_settings": len(settings),
    }


# =============================================================================
# LEADERSHIP & RESEARCH
# =============================================================================

def score_leadership(snapshot: UserSnapshot, config: EngineConfig, acuity: AcuityScore) -> CategoryResult:
    leadership = max((LEADERSHIP_TIERS.get(e.role, 0) for e in snapshot.leadership_entries), default=0)
    research = max((RESEARCH_TIERS.get(e.kind, 0) for e in snapshot.research_entries), default=0)
    return max(leadership, research), {
        "leadership_score": leadership,
        "research_score": research,
        "leadership_roles": len(snapshot.leadership_entries),
        "research_entries": len(snapshot.research_entries),
    }


# =============================================================================
# ENGAGEMENT
# =============================================================================

def score_engagement(snapshot: UserSnapshot, config: EngineConfig, acuity: AcuityScore) -> CategoryResult:
    points = sum(
        EVENT_WEIGHTS.get(e.event_type, EVENT_WEIGHTS["other"])
        for e in snapshot.events_attended
    )
    return min(100, points), {
        "events_attended": len(snapshot.events_attended),
        "event_points": points,
    }


# =============================================================================
# CERTIFICATIONS & EXAMS
# =============================================================================

def score_certifications(snapshot: UserSnapshot, config: EngineConfig, acuity: AcuityScore) -> CategoryResult:
    ccrn = has_ccrn(snapshot)
    others = other_recognised_certs(snapshot)
    gre = snapshot.academic.gre_taken

    points = (
        (CCRN_POINTS if ccrn else 0)
        + min(OTHER_CERT_MAX_POINTS, OTHER_CERT_POINTS * len(others))
        + (GRE_POINTS if gre else 0)
    )
    return min(100, points), {
        "ccrn": ccrn,
        "other_certifications": others,
        "gre_taken": gre,
    }


CATEGORY_SCORERS: Dict[ReadinessCategory, Callable[[UserSnapshot, EngineConfig, AcuityScore], CategoryResult]] = {
    ReadinessCategory.ACADEMIC: score_academic,
    ReadinessCategory.CLINICAL: score_clinical,
    ReadinessCategory.SHADOWING: score_shadowing,
    ReadinessCategory.LEADERSHIP: score_leadership,
    ReadinessCategory.ENGAGEMENT: score_engagement,
    ReadinessCategory.CERTIFICATIONS: score_certifications,
}


# =============================================================================
# DRIVERS & WEEKLY FOCUS
# =============================================================================

def readiness_drivers(categories: List[CategoryScore]) -> List[ReadinessDriver]:
    """
    The highest-impact gaps, most important first, at most MAX_DRIVERS.

    Priority: CCRN, shadow hours, prerequisites, ICU years, events, leadership.
    """
    by_category = {c.category: c for c in categories}
    academic = by_category[ReadinessCategory.ACADEMIC.value].details
    clinical = by_category[ReadinessCategory.CLINICAL.value].details
    shadowing = by_category[ReadinessCategory.SHADOWING.value].details
    certifications = by_category[ReadinessCategory.CERTIFICATIONS.value].details

    candidates = []
    if not certifications["ccrn"]:
        candidates.append((
            "ccrn", "Get CCRN certified",
            "Most programs require this certification",
            ReadinessCategory.CERTIFICATIONS,
        ))

    hours, goal = shadowing["total_hours"], shadowing["goal_hours"]
    if hours < goal:
        candidates.append((
            "shadow", "Log more shadow experiences",
            f"You have {hours:g} hours, aim for {goal:g}+",
            ReadinessCategory.SHADOWING,
        ))

    remaining = academic["prerequisites_total"] - academic["prerequisites_completed"]
    if remaining > 0:
        candidates.append((
            "prereqs", "Complete missing prerequisites",
            f"{remaining} course{'s' if remaining > 1 else ''} remaining",
            ReadinessCategory.ACADEMIC,
        ))

    if clinical["years_experience"] < PREFERRED_ICU_YEARS:
        candidates.append((
            "icu_years", "Continue building ICU experience",
            f"Most programs prefer {PREFERRED_ICU_YEARS:g}+ years",
            ReadinessCategory.CLINICAL,
        ))

    if by_category[ReadinessCategory.ENGAGEMENT.value].score < ENGAGEMENT_DRIVER_THRESHOLD:
        candidates.append((
            "events", "Attend a CRNA networking event",
            "Great way to learn about programs",
            ReadinessCategory.ENGAGEMENT,
        ))

    if by_category[ReadinessCategory.LEADERSHIP.value].score == 0:
        candidates.append((
            "leadership", "Get involved in a leadership role or project",
            "Shows initiative beyond clinical work",
            ReadinessCategory.LEADERSHIP,
        ))

    drivers = [
        ReadinessDriver(
            driver_id=driver_id,
            action=action,
            context=context,
            category=category,
            priority=DRIVER_PRIORITY[driver_id],
        )
        for driver_id, action, context, category in candidates
    ]
    drivers.sort(key=lambda d: d.priority)
    return drivers[:MAX_DRIVERS]


def weekly_focus(weakest: CategoryScore) -> WeeklyFocus:
    """Suggested action for the weakest category this week."""
    action = FOCUS_RECOMMENDATIONS[weakest.category]

    if weakest.category == ReadinessCategory.SHADOWING:
        needed = weakest.details["goal_hours"] - weakest.details["total_hours"]
        if needed > 0:
            action = (
                f"Log {min(WEEKLY_SHADOW_HOURS_CAP, needed):g} more shadow hours "
                f"to reach your {weakest.details['goal_hours']:g}-hour goal"
            )
    elif weakest.category == ReadinessCategory.CERTIFICATIONS:
        if not weakest.details["ccrn"]:
            action = "Start preparing for your CCRN certification"
        elif not weakest.details["gre_taken"]:
            action = "Consider scheduling your GRE exam"

    if weakest.score < WEEKLY_FOCUS_HIGH_BELOW:
        priority = "high"
    elif weakest.score < WEEKLY_FOCUS_MEDIUM_BELOW:
        priority = "medium"
    else:
        priority = "low"

    return WeeklyFocus(
        category=weakest.category,
        label=weakest.label,
        action=action,
        score=weakest.score,
        priority=priority,
    )


# =============================================================================
# COMPOSITE
# =============================================================================

def score_categories(snapshot: UserSnapshot, config: EngineConfig, acuity: AcuityScore) -> List[CategoryScore]:
    """Score every category in declaration order."""
    categories = []
    for category, scorer in CATEGORY_SCORERS.items():
        raw, details = scorer(snapshot, config, acuity)
        score = max(0, min(100, round_half_up(raw)))
        weight = config.category_weights[category.value]
        categories.append(CategoryScore(
            category=category,
            label=CATEGORY_LABELS[category.value],
            score=score,
            weight=weight,
            weighted_score=score * weight,
            details=details,
        ))
    return categories


def score_readiness(snapshot: UserSnapshot, config: EngineConfig) -> ReadinessScore:
    """
    Compute the composite readiness score.

    Args:
        snapshot: Normalized user snapshot
        config: Engine configuration holding category weights

    Returns:
        ReadinessScore with per-category breakdown, drivers and weekly focus
    """
    acuity = calculate_acuity_score(snapshot.clinical_entries)
    categories = score_categories(snapshot, config, acuity)

    total = round_half_up(sum(c.weighted_score for c in categories))
    total = max(0, min(100, total))

    # max/min keep the first category on ties, i.e. declaration order
    strongest = max(categories, key=lambda c: c.score)
    weakest = min(categories, key=lambda c: c.score)
    focus = weakest.category if weakest.score < FOCUS_CATEGORY_THRESHOLD else None

    return ReadinessScore(
        total_score=total,
        level=level_for_score(total, config.readiness_level_thresholds),
        categories=categories,
        strongest=strongest.category,
        weakest=weakest.category,
        focus_category=focus,
        clinical_acuity=acuity,
        drivers=readiness_drivers(categories),
        weekly_focus=weekly_focus(weakest),
    )
