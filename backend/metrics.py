# Outcome metric calculator - delta sign convention and MCID achievement
from __future__ import annotations

from typing import Dict, Tuple

from models import NDI, ODI, LEFS, QUICKDASH, RPQ

# Instruments where a falling score means the patient improved
LOWER_IS_BETTER = frozenset({NDI, ODI, QUICKDASH})

# MCID threshold table, in instrument points
MCID_THRESHOLDS: Dict[str, float] = {
    NDI: 10,
    ODI: 6,
    QUICKDASH: 10,
    LEFS: 9,
    RPQ: 8,
}


def is_lower_better(index_type: str) -> bool:
    return index_type in LOWER_IS_BETTER


def get_mcid_threshold(index_type: str) -> float:
    """MCID threshold for an instrument; 0 when the table has no entry."""
    return MCID_THRESHOLDS.get(index_type, 0) or 0


def compute_delta(index_type: str, baseline: float, discharge: float) -> float:
    """Signed change where a positive value always means clinical improvement."""
    if is_lower_better(index_type):
        return baseline - discharge
    return discharge - baseline


def is_mcid_achieved(delta: float, mcid_threshold: float) -> bool:
    """
    abs(delta) >= threshold. A threshold of 0 makes every delta count as
    achieved; that boundary is kept as-is.
    """
    return abs(delta) >= mcid_threshold


def improvement_pct(delta: float, mcid_threshold: float) -> float:
    """Signed delta as a percentage of the threshold; 0 when the threshold is 0.

    Negative for a worsening episode.
    """
    if not mcid_threshold:
        return 0.0
    return delta / mcid_threshold * 100


def calculate_outcome_metrics(
    index_type: str,
    baseline: float,
    discharge: float,
    mcid_threshold: float | None = None,
) -> Tuple[float, float, bool]:
    """
    Compute (delta, mcidThreshold, mcidAchieved) for one instrument.

    mcid_threshold overrides the table lookup, e.g. when the threshold comes
    from an external provider.
    """
    threshold = get_mcid_threshold(index_type) if mcid_threshold is None else mcid_threshold
    delta = compute_delta(index_type, baseline, discharge)
    return delta, threshold, is_mcid_achieved(delta, threshold)
