# Outcome benchmarking - anonymized, cohort-floored clinician comparison
# NEVER exposes clinician identifiers; only sequential labels leave this module
from __future__ import annotations

import logging
import string
from collections import Counter, defaultdict
from typing import Dict, List, Set

from models import EpisodeOutcome
from aggregation import rate_pct

logger = logging.getLogger(__name__)

MIN_COHORT_SIZE = 5


def _clinician_label(position: int) -> str:
    """0 -> "Clinician A", 25 -> "Clinician Z", 26 -> "Clinician AA"."""
    letters = string.ascii_uppercase
    suffix = ""
    position += 1
    while position > 0:
        position, rem = divmod(position - 1, 26)
        suffix = letters[rem] + suffix
    return f"Clinician {suffix}"


def _cohort_counts(outcomes: List[EpisodeOutcome]) -> Dict[str, Dict[str, int]]:
    """
    Per clinician: distinct episodes (the cohort size) plus outcome rows and
    MCID-achieved rows (the rate). A multi-instrument episode is one episode.
    """
    totals = Counter(o.clinicianId for o in outcomes)
    achieved = Counter(o.clinicianId for o in outcomes if o.mcidAchieved)
    episode_ids: Dict[str, Set[str]] = defaultdict(set)
    for o in outcomes:
        episode_ids[o.clinicianId].add(o.episodeId)
    return {
        cid: {
            "episodes": len(episode_ids[cid]),
            "total": totals[cid],
            "achieved": achieved.get(cid, 0),
        }
        for cid in totals
    }


def get_clinician_benchmarks(
    outcomes: List[EpisodeOutcome],
    min_cohort_size: int = MIN_COHORT_SIZE,
) -> List[Dict]:
    """
    Anonymized per-clinician MCID rates.

    Clinicians with fewer than min_cohort_size distinct episodes are
    excluded. Labels are assigned over clinician ids sorted ascending so they
    stay stable across recomputes; the list is then ordered by MCID rate,
    highest first.
    """
    cohorts = _cohort_counts(outcomes)
    eligible_ids = sorted(cid for cid, c in cohorts.items() if c["episodes"] >= min_cohort_size)

    excluded = len(cohorts) - len(eligible_ids)
    if excluded:
        logger.debug(f"benchmark: excluded {excluded} clinician(s) below cohort floor {min_cohort_size}")

    rows = []
    for position, clinician_id in enumerate(eligible_ids):
        stats = cohorts[clinician_id]
        rows.append({
            "label": _clinician_label(position),
            "total": stats["total"],
            "achieved": stats["achieved"],
            "mcidRate": rate_pct(stats["achieved"], stats["total"]),
        })

    rows.sort(key=lambda r: (-r["mcidRate"], r["label"]))
    return rows


def get_network_benchmark(
    outcomes: List[EpisodeOutcome],
    min_cohort_size: int = MIN_COHORT_SIZE,
) -> Dict:
    """
    Anonymized benchmark: per-clinician rows plus the pooled network rate.
    Returns eligible=false when no clinician meets the cohort floor.
    """
    clinicians = get_clinician_benchmarks(outcomes, min_cohort_size)

    if not clinicians:
        return {
            "eligible": False,
            "reason": "insufficient_cohorts",
            "minCohortSize": min_cohort_size,
            "clinicians": [],
            "networkAverage": 0,
            "participatingCount": 0,
        }

    pooled_total = sum(c["total"] for c in clinicians)
    pooled_achieved = sum(c["achieved"] for c in clinicians)
    return {
        "eligible": True,
        "reason": None,
        "minCohortSize": min_cohort_size,
        "clinicians": clinicians,
        "networkAverage": rate_pct(pooled_achieved, pooled_total),
        "participatingCount": len(clinicians),
    }
