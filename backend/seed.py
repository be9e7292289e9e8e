# Seed data - deterministic registry snapshot for local runs and tests
import logging
from datetime import date, timedelta
from typing import Optional

from models import (
    Episode, OutcomeScore, episodes, outcome_scores, compliance_ratings, clear_snapshot,
    NDI, ODI, LEFS, QUICKDASH,
)

logger = logging.getLogger(__name__)


def _visit_dates(start: str, end: str, visits: int):
    """`visits` distinct dates from start to end inclusive (start and end always included)."""
    first, last = date.fromisoformat(start), date.fromisoformat(end)
    if visits <= 1:
        return [first]
    step = (last - first).days / (visits - 1)
    return [first + timedelta(days=round(i * step)) for i in range(visits)]


def add_episode(
    episode_id: str,
    region: str,
    diagnosis: Optional[str],
    clinician_id: str,
    start: str,
    discharge: Optional[str],
    index_type: str,
    baseline: float,
    discharge_score: Optional[float],
    visits: int,
    compliance: Optional[str] = None,
):
    """
    Add an episode with `visits` scored visits: baseline on the start date,
    follow-ups in between, discharge on the last date.
    A None discharge_score leaves the instrument without a discharge entry.
    """
    end = discharge or (date.fromisoformat(start) + timedelta(days=7 * visits)).isoformat()
    dates = _visit_dates(start, end, visits)

    episodes.append(Episode(
        episodeId=episode_id,
        region=region,
        diagnosis=diagnosis,
        startDate=start,
        dischargeDate=discharge,
        visitCount=visits,
        clinicianId=clinician_id,
        referralSource="Primary care",
    ))
    if compliance:
        compliance_ratings[episode_id] = compliance

    for i, visit_date in enumerate(dates):
        if i == 0:
            score_type, score = "baseline", baseline
        elif i == len(dates) - 1 and discharge_score is not None:
            score_type, score = "discharge", discharge_score
        else:
            score_type, score = "followup", baseline
        outcome_scores.append(OutcomeScore(
            episodeId=episode_id,
            indexType=index_type,
            scoreType=score_type,
            score=score,
            recordedAt=f"{visit_date.isoformat()}T09:00:00",
        ))


def seed_data():
    """
    Initialize the registry snapshot:
    - clin-01: 6 discharged outcomes (benchmarked)
    - clin-02: 5 discharged outcomes (benchmarked, exactly at the cohort floor)
    - clin-03: 3 discharged outcomes + 1 baseline-only + 1 active (below floor)
    """
    clear_snapshot()

    # clin-01
    add_episode("ep-001", "Cervical", "Cervical radiculopathy", "clin-01",
                "2025-01-06", "2025-02-17", NDI, 40, 20, 5, "Good")
    add_episode("ep-002", "Cervical", "Mechanical neck pain", "clin-01",
                "2025-01-13", "2025-03-10", NDI, 30, 28, 8, "Fair")
    add_episode("ep-003", "Lumbar", "Lumbar disc herniation", "clin-01",
                "2025-02-03", "2025-03-24", ODI, 44, 30, 6, "Good")
    add_episode("ep-004", "Lumbar", "Lumbar disc herniation", "clin-01",
                "2025-02-10", "2025-04-07", ODI, 38, 41, 9, "Poor")
    add_episode("ep-005", "Knee", "Patellofemoral pain syndrome", "clin-01",
                "2025-03-03", "2025-04-21", LEFS, 42, 60, 6, "Excellent")
    add_episode("ep-006", "Knee", "ACL reconstruction rehabilitation", "clin-01",
                "2025-03-10", "2025-05-19", LEFS, 35, 52, 7, "Good")

    # clin-02
    add_episode("ep-007", "Shoulder", "Rotator cuff tendinopathy", "clin-02",
                "2025-01-20", "2025-03-03", QUICKDASH, 55, 30, 5, "Good")
    add_episode("ep-008", "Shoulder", "Adhesive capsulitis", "clin-02",
                "2025-02-17", "2025-04-14", QUICKDASH, 60, 54, 7, "Fair")
    add_episode("ep-009", "Cervical", "Whiplash associated disorder", "clin-02",
                "2025-03-17", "2025-05-05", NDI, 36, 24, 5, "Good")
    add_episode("ep-010", "Lumbar", "Nonspecific low back pain", "clin-02",
                "2025-04-07", "2025-05-26", ODI, 28, 20, 4, "Good")
    add_episode("ep-011", "Knee", "Patellofemoral pain syndrome", "clin-02",
                "2025-04-14", "2025-06-09", LEFS, 50, 48, 5, "Low")

    # clin-03
    add_episode("ep-012", "Cervical", "Mechanical neck pain", "clin-03",
                "2025-04-21", "2025-06-16", NDI, 26, 18, 4, "Good")
    add_episode("ep-013", "Lumbar", "Lumbar spinal stenosis", "clin-03",
                "2025-05-05", "2025-06-30", ODI, 40, 33, 5)
    add_episode("ep-014", "Shoulder", "Rotator cuff tendinopathy", "clin-03",
                "2025-05-12", "2025-07-07", QUICKDASH, 48, 40, 4, "Good")
    add_episode("ep-015", "Knee", "Meniscal tear", "clin-03",
                "2025-05-19", "2025-07-14", LEFS, 40, None, 4)
    add_episode("ep-016", "Cervical", None, "clin-03",
                "2025-06-02", None, NDI, 34, None, 3)

    logger.info(
        f"Seed data initialized: {len(episodes)} episodes, "
        f"{len(outcome_scores)} outcome scores, {len(compliance_ratings)} compliance ratings"
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed_data()
