"""
Guidance Engine

Main orchestrator that turns a UserSnapshot into a GuidanceState.
This is the primary entry point for guidance and readiness scoring.
"""

import logging
from typing import Any, Mapping, Optional, Union

from .catalog import Catalog, load_catalog
from .composer import compose_guidance_state
from .config import EngineConfig, get_default_config
from .contracts import UserSnapshot, GuidanceState, ReadinessScore
from .normalizer import normalize_snapshot
from .readiness_scorer import score_readiness
from .risk_detector import detect_risk_signals
from .stage_classifier import classify_stage
from .step_qualifier import qualify_steps
from .step_ranker import rank_steps
from .support_mode import select_support_mode

logger = logging.getLogger(__name__)

ENGINE_VERSION = "1.0.0"

SnapshotInput = Union[UserSnapshot, Mapping[str, Any]]


class GuidanceEngine:
    """
    Guidance engine that orchestrates the pipeline.

    Pipeline flow:
    1. Normalization - Default and validate the snapshot
    2. Stage Classification - Where is the applicant in the process
    3. Risk Detection - Which conditions need intervention
    4. Support Mode - How intensive the guidance should be
    5. Step Qualification & Ranking - What to do next
    6. Readiness Scoring - How prepared is the applicant
    7. Composition - Build the final GuidanceState

    The engine holds no mutable state; one instance can serve concurrent calls.
    """

    def __init__(self, config: Optional[EngineConfig] = None, catalog: Optional[Catalog] = None):
        """
        Initialize the guidance engine.

        Args:
            config: Engine configuration. If None, uses the process-wide default.
            catalog: Step catalog. If None, uses the built-in catalog.
        """
        self.config = config if config is not None else get_default_config()
        self.catalog = catalog if catalog is not None else load_catalog()
        self.version = ENGINE_VERSION

    def compute(self, snapshot: SnapshotInput) -> GuidanceState:
        """
        Compute the guidance state for a snapshot.

        Args:
            snapshot: A UserSnapshot or a mapping shaped like one

        Returns:
            GuidanceState

        Raises:
            ValidationError: if the snapshot has no user_id
        """
        snapshot = normalize_snapshot(snapshot)

        stage = classify_stage(snapshot)
        risk_signals = detect_risk_signals(snapshot, self.config)
        support_mode = select_support_mode(stage, risk_signals, self.config)

        qualified = qualify_steps(snapshot, stage, self.config, self.catalog)
        next_best_steps = rank_steps(qualified, self.config.max_next_best_steps)

        readiness = score_readiness(snapshot, self.config)

        logger.debug(
            f"Guidance for {snapshot.user_id}: signals={[s.value for s in risk_signals]} "
            f"qualified={len(qualified)} as_of={snapshot.as_of.isoformat()}"
        )
        logger.info(
            f"Guidance computed for {snapshot.user_id}: stage={stage.value} "
            f"mode={support_mode.value} readiness={readiness.total_score} steps={len(next_best_steps)}"
        )

        return compose_guidance_state(
            snapshot=snapshot,
            stage=stage,
            risk_signals=risk_signals,
            support_mode=support_mode,
            next_best_steps=next_best_steps,
            readiness=readiness,
            engine_version=self.version,
        )

    def compute_from_dict(self, data: Mapping[str, Any]) -> GuidanceState:
        """
        Compute guidance from a dictionary snapshot.

        Convenience method for API integration.
        """
        return self.compute(data)

    def score_readiness(self, snapshot: SnapshotInput) -> ReadinessScore:
        """Readiness score only, without stage, signals or steps."""
        return score_readiness(normalize_snapshot(snapshot), self.config)


# Convenience function for simple usage
def compute_guidance_state(
    snapshot: SnapshotInput,
    config: Optional[EngineConfig] = None,
    catalog: Optional[Catalog] = None,
) -> GuidanceState:
    """
    Convenience function to compute a guidance state.

    Args:
        snapshot: A UserSnapshot or a mapping shaped like one
        config: Optional engine configuration
        catalog: Optional step catalog

    Returns:
        GuidanceState
    """
    engine = GuidanceEngine(config=config, catalog=catalog)
    return engine.compute(snapshot)
