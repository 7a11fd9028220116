"""
Support Mode Selector

Maps (application stage, risk signals) to a single support mode.
The stage contributes a baseline mode, each risk signal may contribute
an override, and the most severe candidate in the configured order wins.
"""

from typing import Iterable

from .config import EngineConfig
from .constants import ApplicationStage, RiskSignal, SupportMode


def select_support_mode(
    stage: ApplicationStage,
    risk_signals: Iterable[RiskSignal],
    config: EngineConfig,
) -> SupportMode:
    """
    Select the support mode for a stage and set of risk signals.

    Args:
        stage: Classified application stage
        risk_signals: Detected risk signals
        config: Engine configuration holding the lookup tables

    Returns:
        SupportMode enum value
    """
    stage_value = ApplicationStage(stage).value
    candidates = [config.stage_support_modes[stage_value]]

    for signal in risk_signals:
        mode = config.risk_signal_support_modes.get(RiskSignal(signal).value)
        if mode is not None:
            candidates.append(mode)

    return SupportMode(max(candidates, key=config.severity))
