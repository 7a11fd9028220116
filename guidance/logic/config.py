"""
Engine Configuration

Process-wide, read-only configuration for the guidance engine: category
weights, risk thresholds, support-mode tables and ranking limits.

Defaults come from constants.py. Overrides can be supplied through environment
variables (a .env file is honoured) or a JSON file, so thresholds can be tuned
without touching engine logic.
"""

import json
import logging
import os
from functools import lru_cache
from typing import Dict, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from .constants import (
    ApplicationStage,
    ReadinessCategory,
    SupportMode,
    RiskSignal,
    CATEGORY_WEIGHTS,
    CORE_PREREQUISITES,
    MEANINGFUL_ACTIONS,
    STAGE_SUPPORT_MODES,
    RISK_SIGNAL_SUPPORT_MODES,
    SUPPORT_MODE_SEVERITY,
    READINESS_LEVEL_THRESHOLDS,
    STAGNATION_DAYS,
    MOMENTUM_WINDOW_DAYS,
    MOMENTUM_MIN_ACTIONS,
    DEADLINE_WINDOW_DAYS,
    DEADLINE_PROGRESS_THRESHOLD,
    CERTIFICATION_EXPIRY_DAYS,
    GPA_BENCHMARK,
    MAX_NEXT_BEST_STEPS,
    DISMISSAL_COOLOFF_DAYS,
    SHADOW_GOAL_HOURS,
)

logger = logging.getLogger(__name__)

WEIGHT_TOLERANCE = 1e-9

# Environment variable -> config field
ENV_OVERRIDES: Dict[str, str] = {
    "GUIDANCE_STAGNATION_DAYS": "stagnation_days",
    "GUIDANCE_MOMENTUM_WINDOW_DAYS": "momentum_window_days",
    "GUIDANCE_DEADLINE_WINDOW_DAYS": "deadline_window_days",
    "GUIDANCE_DISMISSAL_COOLOFF_DAYS": "dismissal_cooloff_days",
    "GUIDANCE_MAX_NEXT_BEST_STEPS": "max_next_best_steps",
    "GUIDANCE_GPA_BENCHMARK": "gpa_benchmark",
}


class EngineConfig(BaseModel):
    """Immutable engine configuration. Validated once at load time."""

    # Readiness
    category_weights: Dict[str, float] = Field(default_factory=lambda: dict(CATEGORY_WEIGHTS))
    readiness_level_thresholds: Dict[str, int] = Field(
        default_factory=lambda: dict(READINESS_LEVEL_THRESHOLDS)
    )
    core_prerequisites: List[str] = Field(default_factory=lambda: list(CORE_PREREQUISITES))
    shadow_goal_hours: float = SHADOW_GOAL_HOURS

    # Risk signals
    meaningful_actions: List[str] = Field(default_factory=lambda: list(MEANINGFUL_ACTIONS))
    stagnation_days: int = Field(default=STAGNATION_DAYS, ge=1)
    momentum_window_days: int = Field(default=MOMENTUM_WINDOW_DAYS, ge=1)
    momentum_min_actions: int = Field(default=MOMENTUM_MIN_ACTIONS, ge=1)
    deadline_window_days: int = Field(default=DEADLINE_WINDOW_DAYS, ge=1)
    deadline_progress_threshold: float = Field(default=DEADLINE_PROGRESS_THRESHOLD, ge=0.0, le=1.0)
    certification_expiry_days: int = Field(default=CERTIFICATION_EXPIRY_DAYS, ge=0)
    gpa_benchmark: float = Field(default=GPA_BENCHMARK, ge=0.0, le=4.0)

    # Support modes
    stage_support_modes: Dict[str, str] = Field(default_factory=lambda: dict(STAGE_SUPPORT_MODES))
    risk_signal_support_modes: Dict[str, str] = Field(
        default_factory=lambda: dict(RISK_SIGNAL_SUPPORT_MODES)
    )
    support_mode_severity: List[str] = Field(default_factory=lambda: list(SUPPORT_MODE_SEVERITY))

    # Next best steps
    max_next_best_steps: Optional[int] = Field(default=MAX_NEXT_BEST_STEPS, ge=1)
    dismissal_cooloff_days: int = Field(default=DISMISSAL_COOLOFF_DAYS, ge=0)

    class Config:
        frozen = True

    @field_validator("max_next_best_steps", mode="before")
    @classmethod
    def unlimited_steps(cls, v):
        if isinstance(v, str) and v.strip().lower() in ("", "none", "unlimited"):
            return None
        return v

    @model_validator(mode="after")
    def check_tables(self) -> "EngineConfig":
        categories = {c.value for c in ReadinessCategory}
        if set(self.category_weights) != categories:
            raise ValueError(
                f"category_weights must cover exactly {sorted(categories)}, "
                f"got {sorted(self.category_weights)}"
            )
        total = sum(self.category_weights.values())
        if abs(total - 1.0) > WEIGHT_TOLERANCE:
            raise ValueError(f"category_weights must sum to 1.0, got {total}")

        modes = {m.value for m in SupportMode}
        if sorted(self.support_mode_severity) != sorted(modes):
            raise ValueError("support_mode_severity must list every support mode exactly once")

        stages = {s.value for s in ApplicationStage}
        if set(self.stage_support_modes) != stages:
            raise ValueError("stage_support_modes must map every application stage")
        unknown_modes = (
            set(self.stage_support_modes.values()) | set(self.risk_signal_support_modes.values())
        ) - modes
        if unknown_modes:
            raise ValueError(f"Unknown support modes in config: {sorted(unknown_modes)}")

        unknown_signals = set(self.risk_signal_support_modes) - {s.value for s in RiskSignal}
        if unknown_signals:
            raise ValueError(f"Unknown risk signals in config: {sorted(unknown_signals)}")
        return self

    def severity(self, mode: str) -> int:
        """Position of a support mode in the severity order (higher = more intensive)."""
        return self.support_mode_severity.index(mode)

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config from defaults, GUIDANCE_CONFIG_FILE and GUIDANCE_* overrides."""
        load_dotenv()

        overrides: Dict[str, object] = {}
        config_file = os.getenv("GUIDANCE_CONFIG_FILE")
        if config_file:
            overrides.update(_read_json(config_file))

        for env_name, field_name in ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if raw is not None:
                overrides[field_name] = raw

        if overrides:
            logger.info(f"Guidance config overrides: {sorted(overrides)}")
        return cls(**overrides)


def _read_json(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")
    return data


def load_config(path: str) -> EngineConfig:
    """Load an EngineConfig from a JSON file; missing keys keep their defaults."""
    return EngineConfig(**_read_json(path))


@lru_cache(maxsize=1)
def get_default_config() -> EngineConfig:
    """Process-wide configuration, loaded once."""
    return EngineConfig.from_env()
