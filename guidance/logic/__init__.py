"""
Guidance Logic Module

Provides the deterministic guidance engine: application stage, risk signals,
support mode, next best steps and readiness scoring for CRNA applicants.
"""

from .contracts import (
    UserSnapshot,
    GuidanceState,
    NextBestStep,
    ReadinessScore,
    ReadinessDriver,
    WeeklyFocus,
    CategoryScore,
    AcuityScore,
)
from .engine import GuidanceEngine, compute_guidance_state
from .config import EngineConfig, load_config, get_default_config
from .catalog import StepDefinition, load_catalog
from .errors import ValidationError
from .constants import (
    ApplicationStage,
    RiskSignal,
    SupportMode,
    StepTier,
    ReadinessLevel,
    ReadinessCategory,
)

__all__ = [
    # Main engine
    "GuidanceEngine",
    "compute_guidance_state",

    # Configuration
    "EngineConfig",
    "load_config",
    "get_default_config",
    "StepDefinition",
    "load_catalog",

    # Contracts
    "UserSnapshot",
    "GuidanceState",
    "NextBestStep",
    "ReadinessScore",
    "ReadinessDriver",
    "WeeklyFocus",
    "CategoryScore",
    "AcuityScore",
    "ValidationError",

    # Enums
    "ApplicationStage",
    "RiskSignal",
    "SupportMode",
    "StepTier",
    "ReadinessLevel",
    "ReadinessCategory",
]
