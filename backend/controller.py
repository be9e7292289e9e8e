# Filter/recompute controller - query predicate and full analytics recompute
"""
Analytics Controller

Turns a registry snapshot plus a query into every derived view the
dashboard shows.

    compute_dashboard(snapshot, query)    pure, synchronous, re-entrant
    AnalyticsController.update(query)     async fetch + recompute,
                                          last request wins

The only state held is the most recent (query, result) pair and the
snapshot it was computed from. A fetch that completes after a newer
request was issued never replaces that state.
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, List, Optional, Tuple

from models import EpisodeOutcome
from normalizer import build_episode_outcomes
from aggregation import (
    avg_delta_by_diagnosis,
    filter_options,
    headline_kpis,
    mcid_rate_by_region,
    monthly_trend,
    visit_distribution,
)
from benchmarking import get_network_benchmark
from risk import stratify_episodes, summarize_risk
from provider import DataProvider, Snapshot, fetch_snapshot

logger = logging.getLogger(__name__)

ALL = "all"


@dataclass(frozen=True)
class AnalyticsQuery:
    """Filter applied before recompute. Date bounds are inclusive, on discharge date."""
    dateFrom: Optional[str] = None  # YYYY-MM-DD
    dateTo: Optional[str] = None  # YYYY-MM-DD
    region: str = ALL
    diagnosis: str = ALL

    def matches(self, outcome: EpisodeOutcome) -> bool:
        discharged = outcome.dischargeDate[:10]
        if self.dateFrom and discharged < self.dateFrom:
            return False
        if self.dateTo and discharged > self.dateTo:
            return False
        if self.region and self.region != ALL and outcome.region != self.region:
            return False
        if self.diagnosis and self.diagnosis != ALL and outcome.diagnosis != self.diagnosis:
            return False
        return True

    def to_dict(self) -> Dict:
        return {
            "dateFrom": self.dateFrom,
            "dateTo": self.dateTo,
            "region": self.region,
            "diagnosis": self.diagnosis,
        }


def filter_outcomes(outcomes: List[EpisodeOutcome], query: AnalyticsQuery) -> List[EpisodeOutcome]:
    return [o for o in outcomes if query.matches(o)]


def normalize_snapshot(snapshot: Snapshot) -> List[EpisodeOutcome]:
    return build_episode_outcomes(snapshot.episodes, snapshot.scores, snapshot.thresholds)


def compute_dashboard(
    snapshot: Snapshot,
    query: AnalyticsQuery,
    as_of: Optional[date] = None,
) -> Dict:
    """
    Normalize, filter, and run every aggregation over one snapshot.

    Same snapshot + query + as_of always gives the same output.
    """
    outcomes = normalize_snapshot(snapshot)
    filtered = filter_outcomes(outcomes, query)
    at_risk = stratify_episodes(filtered, snapshot.episodes, as_of or date.today())

    return {
        "query": query.to_dict(),
        "filterOptions": filter_options(outcomes),
        "kpis": headline_kpis(filtered),
        "mcidByRegion": mcid_rate_by_region(filtered),
        "avgDeltaByDiagnosis": avg_delta_by_diagnosis(filtered),
        "visitDistribution": visit_distribution(filtered),
        "monthlyTrend": monthly_trend(filtered),
        "benchmark": get_network_benchmark(filtered),
        "risk": summarize_risk(at_risk),
    }


class AnalyticsController:
    """
    Owns the last computed snapshot for one consumer (e.g. a dashboard view).

    Concurrent update() calls are allowed; each caller gets the result for its
    own query, but only the most recently issued request may store its result.
    """

    def __init__(self, provider: DataProvider, clock: Callable[[], date] = date.today):
        self.provider = provider
        self.clock = clock
        self._sequence = itertools.count(1)
        self._latest_issued = 0
        self._snapshot: Optional[Snapshot] = None
        self._last: Optional[Tuple[AnalyticsQuery, Dict]] = None

    @property
    def snapshot(self) -> Optional[Snapshot]:
        return self._snapshot

    @property
    def last_result(self) -> Optional[Dict]:
        return self._last[1] if self._last else None

    @property
    def last_query(self) -> Optional[AnalyticsQuery]:
        return self._last[0] if self._last else None

    async def update(self, query: AnalyticsQuery) -> Dict:
        """
        Fetch a fresh snapshot and recompute for query.
        Raises DataProviderError when the fetch fails; stored state is untouched.
        """
        request_id = next(self._sequence)
        self._latest_issued = request_id

        snapshot = await fetch_snapshot(self.provider)
        result = compute_dashboard(snapshot, query, self.clock())

        if request_id == self._latest_issued:
            self._snapshot = snapshot
            self._last = (query, result)
            logger.info(
                f"AnalyticsController: request {request_id} applied "
                f"({result['kpis']['totalEpisodes']} outcome(s))"
            )
        else:
            logger.debug(
                f"AnalyticsController: request {request_id} is stale "
                f"(latest {self._latest_issued}), result not stored"
            )
        return result

    def recompute(self, query: AnalyticsQuery) -> Dict:
        """
        Re-run the pure stage over the stored snapshot without fetching.
        Counts as the latest request, so an update() still in flight is discarded.
        """
        self._latest_issued = next(self._sequence)
        result = compute_dashboard(self._snapshot or Snapshot(), query, self.clock())
        self._last = (query, result)
        return result

    async def fetch_outcomes(self, query: AnalyticsQuery) -> List[EpisodeOutcome]:
        """Fresh snapshot, normalized and filtered. Stored state is not touched."""
        snapshot = await fetch_snapshot(self.provider)
        return filter_outcomes(normalize_snapshot(snapshot), query)
