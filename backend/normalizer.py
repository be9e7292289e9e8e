# Record normalizer - pairs baseline/discharge scores per episode and instrument
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import DefaultDict, Dict, Iterable, List, Optional

from models import Episode, EpisodeOutcome, OutcomeScore
from metrics import calculate_outcome_metrics

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"


def _score_date(score: OutcomeScore) -> str:
    """Calendar date part of recordedAt (YYYY-MM-DD)."""
    return score.recordedAt.split("T")[0]


def count_visits(scores: Iterable[OutcomeScore]) -> int:
    """Distinct calendar dates across an episode's scores, used as the visit count."""
    return len({_score_date(s) for s in scores})


def days_between(start: str, end: str) -> int:
    return (date.fromisoformat(end[:10]) - date.fromisoformat(start[:10])).days


def group_scores_by_episode(scores: Iterable[OutcomeScore]) -> Dict[str, List[OutcomeScore]]:
    """Group scores per episode, each list ordered by recordedAt."""
    by_episode: DefaultDict[str, List[OutcomeScore]] = defaultdict(list)
    for score in scores:
        by_episode[score.episodeId].append(score)
    return {
        episode_id: sorted(eps_scores, key=lambda s: s.recordedAt)
        for episode_id, eps_scores in by_episode.items()
    }


def _first_of_type(scores: List[OutcomeScore], score_type: str) -> Optional[OutcomeScore]:
    for score in scores:
        if score.scoreType == score_type:
            return score
    return None


def normalize_episode(
    episode: Episode,
    episode_scores: List[OutcomeScore],
    thresholds: Optional[Dict[str, float]] = None,
) -> List[EpisodeOutcome]:
    """
    Build one EpisodeOutcome per instrument that has both a baseline and a
    discharge score. Instruments missing either are skipped.
    """
    if not episode_scores:
        return []

    visit_count = count_visits(episode_scores)

    # Partition by instrument, keeping first-seen order
    by_index: Dict[str, List[OutcomeScore]] = {}
    for score in episode_scores:
        by_index.setdefault(score.indexType, []).append(score)

    outcomes: List[EpisodeOutcome] = []
    for index_type, type_scores in by_index.items():
        baseline = _first_of_type(type_scores, "baseline")
        discharge = _first_of_type(type_scores, "discharge")
        if baseline is None or discharge is None:
            logger.debug(
                f"normalize: episode {episode.episodeId} {index_type} has no "
                f"{'baseline' if baseline is None else 'discharge'} score, skipping"
            )
            continue

        override = thresholds.get(index_type) if thresholds is not None else None
        delta, threshold, achieved = calculate_outcome_metrics(
            index_type, baseline.score, discharge.score, override
        )
        discharge_date = (episode.dischargeDate or _score_date(discharge))[:10]

        outcomes.append(EpisodeOutcome(
            episodeId=episode.episodeId,
            region=episode.region,
            diagnosis=episode.diagnosis or UNKNOWN,
            indexType=index_type,
            intakeScore=baseline.score,
            dischargeScore=discharge.score,
            delta=delta,
            mcidThreshold=threshold,
            mcidAchieved=achieved,
            daysToDischarge=days_between(episode.startDate, discharge_date),
            visitCount=visit_count,
            clinicianId=episode.clinicianId or UNKNOWN,
            dischargeDate=discharge_date,
            referralSource=episode.referralSource,
        ))

    return outcomes


def build_episode_outcomes(
    episodes: Iterable[Episode],
    scores: Iterable[OutcomeScore],
    thresholds: Optional[Dict[str, float]] = None,
) -> List[EpisodeOutcome]:
    """
    Flatten episodes + scores into EpisodeOutcome rows, one per
    (episode, instrument) pair with a complete baseline/discharge observation.
    """
    scores_by_episode = group_scores_by_episode(scores)
    outcomes: List[EpisodeOutcome] = []
    for episode in episodes:
        outcomes.extend(
            normalize_episode(episode, scores_by_episode.get(episode.episodeId, []), thresholds)
        )
    logger.debug(f"normalize: built {len(outcomes)} outcome(s)")
    return outcomes
