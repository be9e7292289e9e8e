"""
Shared pytest fixtures for outcome analytics tests.
"""
import pytest
from fastapi.testclient import TestClient

from main import app
from models import Episode, EpisodeOutcome, OutcomeScore
from provider import DataProvider
from metrics import get_mcid_threshold
from seed import seed_data

# Query window covering the whole seed snapshot
SEED_WINDOW = {"dateFrom": "2025-01-01", "dateTo": "2025-12-31"}


@pytest.fixture
def client():
    """FastAPI TestClient."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def seeded_data():
    """Reset to the seed snapshot before each test."""
    seed_data()
    yield


def make_outcome(
    episode_id="E1",
    delta=10.0,
    mcid_threshold=10.0,
    mcid_achieved=None,
    region="Cervical",
    diagnosis="Mechanical neck pain",
    index_type="NDI",
    visit_count=4,
    clinician_id="clin-x",
    discharge_date="2025-03-15",
    days_to_discharge=30,
) -> EpisodeOutcome:
    """Build an EpisodeOutcome directly, bypassing the normalizer."""
    if mcid_achieved is None:
        mcid_achieved = abs(delta) >= mcid_threshold
    return EpisodeOutcome(
        episodeId=episode_id,
        region=region,
        diagnosis=diagnosis,
        indexType=index_type,
        intakeScore=40.0,
        dischargeScore=40.0 - delta,
        delta=delta,
        mcidThreshold=mcid_threshold,
        mcidAchieved=mcid_achieved,
        daysToDischarge=days_to_discharge,
        visitCount=visit_count,
        clinicianId=clinician_id,
        dischargeDate=discharge_date,
    )


def make_score(episode_id, index_type, score_type, score, recorded_at) -> OutcomeScore:
    return OutcomeScore(
        episodeId=episode_id,
        indexType=index_type,
        scoreType=score_type,
        score=score,
        recordedAt=recorded_at,
    )


def make_episode(
    episode_id="E1",
    region="Cervical",
    diagnosis="Mechanical neck pain",
    start="2025-01-01",
    discharge="2025-02-01",
    clinician_id="clin-x",
    compliance=None,
) -> Episode:
    return Episode(
        episodeId=episode_id,
        region=region,
        diagnosis=diagnosis,
        startDate=start,
        dischargeDate=discharge,
        complianceRating=compliance,
        clinicianId=clinician_id,
    )


class StaticProvider(DataProvider):
    """Provider over fixed lists; `fail_on` names a method that raises."""

    def __init__(self, episodes=(), scores=(), compliance=None, fail_on=None):
        self.episodes = list(episodes)
        self.scores = list(scores)
        self.compliance = dict(compliance or {})
        self.fail_on = fail_on
        self.calls = []

    def _maybe_fail(self, name):
        self.calls.append(name)
        if self.fail_on == name:
            raise ConnectionError(f"{name} unavailable")

    async def list_discharged_episodes(self):
        self._maybe_fail("list_discharged_episodes")
        return [ep for ep in self.episodes if ep.dischargeDate]

    async def list_outcome_scores(self, episode_ids):
        self._maybe_fail("list_outcome_scores")
        return [s for s in self.scores if s.episodeId in set(episode_ids)]

    async def get_mcid_threshold(self, index_type):
        self._maybe_fail("get_mcid_threshold")
        return get_mcid_threshold(index_type)

    async def list_compliance(self, episode_ids):
        self._maybe_fail("list_compliance")
        return [
            {"episodeId": eid, "rating": self.compliance[eid]}
            for eid in episode_ids
            if eid in self.compliance
        ]
