# Risk stratification - rule-based flags, priority tier, recommended action
from __future__ import annotations

import logging
import re
from collections import defaultdict
from datetime import date
from typing import DefaultDict, Dict, Iterable, List, Optional

from models import AtRiskEpisode, Episode, EpisodeOutcome, PriorityTier, RiskFactor
from metrics import improvement_pct
from normalizer import days_between

logger = logging.getLogger(__name__)

LOW_COMPLIANCE_RATINGS = {"low", "poor"}
_LOW_COMPLIANCE_BAND = re.compile(r"^0\s*[-–—]\s*59\s*%?$")

MINIMAL_IMPROVEMENT_PCT = 50
EXTENDED_CARE_VISITS = 6
EXTENDED_CARE_PCT = 75

RECOMMEND_DECLINING = "consider neurological exam or imaging"
RECOMMEND_EXTENDED = "review for complex presentation, consider specialist referral"
RECOMMEND_MONITOR = "continue monitoring"


def is_low_compliance(rating: Optional[str]) -> bool:
    """True for "Low"/"Poor" or a 0-59 band (any dash, optional %)."""
    if not rating:
        return False
    normalized = rating.strip().lower()
    return normalized in LOW_COMPLIANCE_RATINGS or bool(_LOW_COMPLIANCE_BAND.match(normalized))


def evaluate_risk_factors(
    outcomes: List[EpisodeOutcome],
    compliance_rating: Optional[str] = None,
) -> List[RiskFactor]:
    """
    Apply every rule, in fixed order, without early exit.

    Rules 2-4 hold when any of the episode's instruments satisfies them.
    """
    factors: List[RiskFactor] = []
    if not outcomes:
        return factors

    pcts = [improvement_pct(o.delta, o.mcidThreshold) for o in outcomes]
    visit_count = max(o.visitCount for o in outcomes)

    # Rule 1
    if is_low_compliance(compliance_rating):
        factors.append(RiskFactor.LOW_COMPLIANCE)

    # Rule 2: magnitude of change, either direction
    if any(0 < abs(pct) < MINIMAL_IMPROVEMENT_PCT for pct in pcts):
        factors.append(RiskFactor.MINIMAL_IMPROVEMENT)

    # Rule 3
    if any(o.delta < 0 for o in outcomes):
        factors.append(RiskFactor.DECLINING_TRAJECTORY)

    # Rule 4: signed percent
    if visit_count > EXTENDED_CARE_VISITS and any(pct < EXTENDED_CARE_PCT for pct in pcts):
        factors.append(RiskFactor.EXTENDED_CARE)

    return factors


def get_priority_tier(factor_count: int) -> Optional[PriorityTier]:
    """>=3 HIGH, 2 MEDIUM, 1 LOW; None for no factors."""
    if factor_count >= 3:
        return PriorityTier.HIGH
    elif factor_count == 2:
        return PriorityTier.MEDIUM
    elif factor_count == 1:
        return PriorityTier.LOW
    return None


def get_recommendation(factors: List[RiskFactor]) -> str:
    """First match wins: declining > extended care > monitor."""
    if RiskFactor.DECLINING_TRAJECTORY in factors:
        return RECOMMEND_DECLINING
    elif RiskFactor.EXTENDED_CARE in factors:
        return RECOMMEND_EXTENDED
    return RECOMMEND_MONITOR


def days_active(episode: Optional[Episode], outcomes: List[EpisodeOutcome], as_of: date) -> int:
    """Start to discharge, or start to as_of for an open episode."""
    if episode is None:
        return outcomes[0].daysToDischarge
    if episode.dischargeDate:
        return days_between(episode.startDate, episode.dischargeDate)
    return days_between(episode.startDate, as_of.isoformat())


def stratify_episode(
    outcomes: List[EpisodeOutcome],
    episode: Optional[Episode] = None,
    as_of: Optional[date] = None,
) -> Optional[AtRiskEpisode]:
    """
    Build an AtRiskEpisode from one episode's outcomes.
    Returns None when no rule matches: no factors means not at risk.
    """
    if not outcomes:
        return None

    compliance = episode.complianceRating if episode is not None else None
    factors = evaluate_risk_factors(outcomes, compliance)
    if not factors:
        return None

    first = outcomes[0]
    return AtRiskEpisode(
        episodeId=first.episodeId,
        region=first.region,
        diagnosis=first.diagnosis,
        clinicianId=first.clinicianId,
        riskFactors=factors,
        priority=get_priority_tier(len(factors)),
        recommendation=get_recommendation(factors),
        visitCount=max(o.visitCount for o in outcomes),
        improvementPct=round(min(improvement_pct(o.delta, o.mcidThreshold) for o in outcomes), 1),
        daysActive=days_active(episode, outcomes, as_of or date.today()),
    )


def stratify_episodes(
    outcomes: Iterable[EpisodeOutcome],
    episodes: Iterable[Episode] = (),
    as_of: Optional[date] = None,
) -> List[AtRiskEpisode]:
    """
    Evaluate every episode with at least one resolved outcome.
    Sorted by factor count, most factors first.
    """
    by_episode: DefaultDict[str, List[EpisodeOutcome]] = defaultdict(list)
    for outcome in outcomes:
        by_episode[outcome.episodeId].append(outcome)
    episode_lookup: Dict[str, Episode] = {ep.episodeId: ep for ep in episodes}

    at_risk: List[AtRiskEpisode] = []
    for episode_id, eps_outcomes in by_episode.items():
        flagged = stratify_episode(eps_outcomes, episode_lookup.get(episode_id), as_of)
        if flagged is not None:
            at_risk.append(flagged)

    at_risk.sort(key=lambda a: -len(a.riskFactors))
    logger.debug(f"risk: {len(at_risk)} of {len(by_episode)} episode(s) flagged")
    return at_risk


def summarize_risk(at_risk: List[AtRiskEpisode]) -> Dict:
    """Tier counts plus the serialized at-risk list."""
    return {
        "total": len(at_risk),
        "highCount": sum(1 for a in at_risk if a.priority == PriorityTier.HIGH),
        "mediumCount": sum(1 for a in at_risk if a.priority == PriorityTier.MEDIUM),
        "lowCount": sum(1 for a in at_risk if a.priority == PriorityTier.LOW),
        "episodes": [a.to_dict() for a in at_risk],
    }
