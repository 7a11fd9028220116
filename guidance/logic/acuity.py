"""
Clinical Acuity Index

Scores how complex and varied an applicant's logged ICU experience is (0-100).

Components:
- Device Complexity (30%): unique devices by tier, tier 4 weighted highest
- Medication Variety (25%): drug category coverage and unique medications
- Procedure Participation (20%): unique procedures plus codes/rapid responses
- Population Diversity (15%): unique patient populations
- Vasopressor Depth (10%): unique vasopressors and inotropes

Each unique item counts once at the highest confidence it was logged with.
"""

import math
from typing import Dict, Iterable, List, Tuple

from .contracts import ClinicalEntry, SkillLog, AcuityScore
from .constants import (
    ReadinessLevel,
    ACUITY_WEIGHTS,
    ACUITY_BENCHMARKS,
    ACUITY_STRENGTH_THRESHOLD,
    ACUITY_GAP_THRESHOLD,
    CONFIDENCE_WEIGHTS,
    DEVICE_TIERS,
    DEVICE_TIER_WEIGHTS,
    MEDICATION_CATEGORIES,
    PRESSOR_CATEGORIES,
    READINESS_LEVEL_THRESHOLDS,
)

COMPONENT_LABELS: Dict[str, str] = {
    "device_complexity": "Device Complexity",
    "medication_variety": "Medication Variety",
    "procedure_participation": "Procedure Experience",
    "population_diversity": "Population Diversity",
    "vasopressor_depth": "Vasopressor Depth",
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def level_for_score(score: int, thresholds: Dict[str, int] = READINESS_LEVEL_THRESHOLDS) -> ReadinessLevel:
    """Highest readiness level whose minimum the score reaches."""
    for level, minimum in sorted(thresholds.items(), key=lambda item: item[1], reverse=True):
        if score >= minimum:
            return ReadinessLevel(level)
    return ReadinessLevel.EMERGING


def _against_benchmark(value: float, benchmark: float) -> float:
    return max(0.0, min(1.0, value / benchmark))


def _best_confidence(logs: Iterable[SkillLog]) -> Dict[str, float]:
    """item_id -> highest confidence weight seen for that item."""
    best: Dict[str, float] = {}
    for log in logs:
        weight = CONFIDENCE_WEIGHTS[log.confidence]
        if weight > best.get(log.item_id, 0.0):
            best[log.item_id] = weight
    return best


# =============================================================================
# COMPONENTS
# =============================================================================

def score_device_complexity(entries: List[ClinicalEntry]) -> Tuple[float, Dict]:
    devices = _best_confidence(
        d for entry in entries for d in entry.devices if d.item_id in DEVICE_TIERS
    )

    tier_totals = {tier: 0.0 for tier in DEVICE_TIER_WEIGHTS}
    for device_id, weight in devices.items():
        tier_totals[DEVICE_TIERS[device_id]] += weight

    score = sum(
        _against_benchmark(tier_totals[tier], ACUITY_BENCHMARKS[f"tier{tier}_devices"]) * tier_weight
        for tier, tier_weight in DEVICE_TIER_WEIGHTS.items()
    )
    details = {f"tier{tier}": round(total, 1) for tier, total in tier_totals.items()}
    details["total"] = len(devices)
    return score * 100, details


def score_medication_variety(entries: List[ClinicalEntry]) -> Tuple[float, Dict]:
    medications = {
        m.item_id for entry in entries for m in entry.medications
        if m.item_id in MEDICATION_CATEGORIES
    }
    categories = sorted({MEDICATION_CATEGORIES[m] for m in medications})

    # 60% category coverage, 40% unique medications
    score = (
        _against_benchmark(len(categories), ACUITY_BENCHMARKS["medication_categories"]) * 0.6
        + _against_benchmark(len(medications), ACUITY_BENCHMARKS["unique_medications"]) * 0.4
    )
    return score * 100, {
        "unique_medications": len(medications),
        "unique_categories": len(categories),
        "categories": categories,
    }


def score_procedure_participation(entries: List[ClinicalEntry]) -> Tuple[float, Dict]:
    procedures = _best_confidence(p for entry in entries for p in entry.procedures)
    weighted = sum(procedures.values())
    codes = sum(1 for entry in entries if entry.code_or_rapid_response)

    # 70% procedures, 30% codes/rapids
    score = (
        _against_benchmark(weighted, ACUITY_BENCHMARKS["procedures"]) * 0.7
        + _against_benchmark(codes, ACUITY_BENCHMARKS["codes_rapids"]) * 0.3
    )
    return score * 100, {
        "unique_procedures": len(procedures),
        "weighted_procedures": round(weighted, 1),
        "code_rapid_count": codes,
    }


def score_population_diversity(entries: List[ClinicalEntry]) -> Tuple[float, Dict]:
    populations = sorted({p.strip().lower() for entry in entries for p in entry.patient_populations if p.strip()})
    score = _against_benchmark(len(populations), ACUITY_BENCHMARKS["populations"])
    return score * 100, {"unique_populations": len(populations), "populations": populations}


def score_vasopressor_depth(entries: List[ClinicalEntry]) -> Tuple[float, Dict]:
    pressors = _best_confidence(
        m for entry in entries for m in entry.medications
        if MEDICATION_CATEGORIES.get(m.item_id) in PRESSOR_CATEGORIES
    )
    weighted = sum(pressors.values())
    score = _against_benchmark(weighted, ACUITY_BENCHMARKS["vasopressors"])
    return score * 100, {"unique_vasopressors": len(pressors), "weighted_count": round(weighted, 1)}


COMPONENT_SCORERS = {
    "device_complexity": score_device_complexity,
    "medication_variety": score_medication_variety,
    "procedure_participation": score_procedure_participation,
    "population_diversity": score_population_diversity,
    "vasopressor_depth": score_vasopressor_depth,
}


def calculate_acuity_score(entries: List[ClinicalEntry]) -> AcuityScore:
    """
    Calculate the clinical acuity index from clinical tracker entries.

    Args:
        entries: Clinical entries from the snapshot

    Returns:
        AcuityScore with component breakdown, strengths and gaps
    """
    if not entries:
        return AcuityScore(components={name: 0.0 for name in COMPONENT_SCORERS})

    components: Dict[str, float] = {}
    details: Dict[str, Dict] = {}
    for name, scorer in COMPONENT_SCORERS.items():
        components[name], details[name] = scorer(entries)

    total = round_half_up(sum(components[name] * ACUITY_WEIGHTS[name] for name in components))
    total = max(0, min(100, total))

    strengths = [COMPONENT_LABELS[n] for n, s in components.items() if s >= ACUITY_STRENGTH_THRESHOLD]
    gaps = [COMPONENT_LABELS[n] for n, s in components.items() if s < ACUITY_GAP_THRESHOLD]

    return AcuityScore(
        total_score=total,
        level=level_for_score(total),
        components={name: round(score, 1) for name, score in components.items()},
        details=details,
        strengths=strengths,
        gaps=gaps,
        entry_count=len(entries),
    )
