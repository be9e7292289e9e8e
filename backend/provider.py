# Data provider contract - read-only snapshot source for the analytics engine
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

import models
from models import Episode, OutcomeScore
from metrics import get_mcid_threshold

logger = logging.getLogger(__name__)


class DataProviderError(Exception):
    """Recoverable failure while fetching a snapshot. Nothing is computed on partial data."""

    def __init__(
        self,
        message: str,
        code: str = "DATA_PROVIDER_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class DataProvider(ABC):
    """
    External data source. All methods are read-only and may be slow;
    implementations are free to do real I/O.
    """

    @abstractmethod
    async def list_discharged_episodes(self) -> List[Episode]:
        ...

    @abstractmethod
    async def list_outcome_scores(self, episode_ids: List[str]) -> List[OutcomeScore]:
        ...

    @abstractmethod
    async def get_mcid_threshold(self, index_type: str) -> float:
        ...

    @abstractmethod
    async def list_compliance(self, episode_ids: List[str]) -> List[Dict[str, str]]:
        """[{"episodeId": ..., "rating": ...}]"""
        ...


class InMemoryDataProvider(DataProvider):
    """Serves the in-memory stores in models (seeded by seed.py)."""

    async def list_discharged_episodes(self) -> List[Episode]:
        discharged = [ep for ep in models.episodes if ep.is_discharged]
        return sorted(discharged, key=lambda ep: ep.dischargeDate, reverse=True)

    async def list_outcome_scores(self, episode_ids: List[str]) -> List[OutcomeScore]:
        wanted = set(episode_ids)
        scores = [s for s in models.outcome_scores if s.episodeId in wanted]
        return sorted(scores, key=lambda s: s.recordedAt)

    async def get_mcid_threshold(self, index_type: str) -> float:
        return get_mcid_threshold(index_type)

    async def list_compliance(self, episode_ids: List[str]) -> List[Dict[str, str]]:
        return [
            {"episodeId": episode_id, "rating": models.compliance_ratings[episode_id]}
            for episode_id in episode_ids
            if episode_id in models.compliance_ratings
        ]


@dataclass(frozen=True)
class Snapshot:
    """Complete, immutable input for one recompute."""
    episodes: Tuple[Episode, ...] = ()
    scores: Tuple[OutcomeScore, ...] = ()
    thresholds: Dict[str, float] = field(default_factory=dict)


async def fetch_snapshot(provider: DataProvider) -> Snapshot:
    """
    Pull a full snapshot from the provider.

    Any provider failure is raised as DataProviderError; a partial snapshot
    is never returned.
    """
    try:
        episodes = await provider.list_discharged_episodes()
        episode_ids = [ep.episodeId for ep in episodes]
        scores = await provider.list_outcome_scores(episode_ids) if episode_ids else []
        compliance = await provider.list_compliance(episode_ids) if episode_ids else []

        thresholds: Dict[str, float] = {}
        for index_type in sorted({s.indexType for s in scores}):
            thresholds[index_type] = await provider.get_mcid_threshold(index_type) or 0
    except DataProviderError:
        raise
    except Exception as exc:
        logger.exception(f"fetch_snapshot: provider raised {exc}")
        raise DataProviderError(
            f"Failed to load registry snapshot: {exc}",
            details={"provider": type(provider).__name__},
        ) from exc

    ratings = {row["episodeId"]: row["rating"] for row in compliance}
    merged = tuple(
        replace(ep, complianceRating=ratings[ep.episodeId]) if ep.episodeId in ratings else ep
        for ep in episodes
    )
    return Snapshot(episodes=merged, scores=tuple(scores), thresholds=thresholds)
