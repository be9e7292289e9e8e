# In-memory data models - registry snapshot and derived analytics records
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

# In-memory storage (the registry snapshot served by InMemoryDataProvider)
episodes: List['Episode'] = []
outcome_scores: List['OutcomeScore'] = []
compliance_ratings: Dict[str, str] = {}

# Clinical instruments (index types)
NDI = "NDI"
ODI = "ODI"
LEFS = "LEFS"
QUICKDASH = "QuickDASH"
RPQ = "RPQ"

SCORE_TYPES = ("baseline", "discharge", "followup")


class RiskFactor(str, Enum):
    """Rule-derived flag that an episode may need clinical attention."""
    LOW_COMPLIANCE = "LowCompliance"
    MINIMAL_IMPROVEMENT = "MinimalImprovement"
    DECLINING_TRAJECTORY = "DecliningTrajectory"
    EXTENDED_CARE = "ExtendedCare"


class PriorityTier(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


@dataclass
class Episode:
    """One clinical episode of care"""
    episodeId: str
    region: str
    diagnosis: Optional[str]
    startDate: str  # YYYY-MM-DD
    dischargeDate: Optional[str] = None  # YYYY-MM-DD, None while active
    visitCount: int = 0
    complianceRating: Optional[str] = None  # "Excellent" | "Good" | "Fair" | "Poor" | "Low" | "0-59" ...
    referralSource: Optional[str] = None
    clinicianId: Optional[str] = None

    @property
    def is_discharged(self) -> bool:
        return bool(self.dischargeDate)


@dataclass(frozen=True)
class OutcomeScore:
    """One recorded measurement. Immutable once recorded."""
    episodeId: str
    indexType: str
    scoreType: str  # "baseline" | "discharge" | "followup"
    score: float
    recordedAt: str  # ISO timestamp, e.g. 2024-03-01T09:30:00


@dataclass(frozen=True)
class EpisodeOutcome:
    """
    One (episode, instrument) pair with a resolved baseline and discharge.
    Only built when both scores exist.
    """
    episodeId: str
    region: str
    diagnosis: str
    indexType: str
    intakeScore: float
    dischargeScore: float
    delta: float
    mcidThreshold: float
    mcidAchieved: bool
    daysToDischarge: int
    visitCount: int
    clinicianId: str
    dischargeDate: str
    referralSource: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "episodeId": self.episodeId,
            "region": self.region,
            "diagnosis": self.diagnosis,
            "indexType": self.indexType,
            "intakeScore": self.intakeScore,
            "dischargeScore": self.dischargeScore,
            "delta": self.delta,
            "mcidThreshold": self.mcidThreshold,
            "mcidAchieved": self.mcidAchieved,
            "daysToDischarge": self.daysToDischarge,
            "visitCount": self.visitCount,
            "clinicianId": self.clinicianId,
            "dischargeDate": self.dischargeDate,
            "referralSource": self.referralSource,
        }


@dataclass
class AtRiskEpisode:
    """Episode flagged by at least one risk rule"""
    episodeId: str
    region: str
    diagnosis: str
    clinicianId: str
    riskFactors: List[RiskFactor] = field(default_factory=list)
    priority: PriorityTier = PriorityTier.LOW
    recommendation: str = ""
    visitCount: int = 0
    improvementPct: float = 0.0
    daysActive: int = 0

    def to_dict(self) -> dict:
        return {
            "episodeId": self.episodeId,
            "region": self.region,
            "diagnosis": self.diagnosis,
            "clinicianId": self.clinicianId,
            "riskFactors": [f.value for f in self.riskFactors],
            "priority": self.priority.value,
            "recommendation": self.recommendation,
            "visitCount": self.visitCount,
            "improvementPct": self.improvementPct,
            "daysActive": self.daysActive,
        }


def clear_snapshot():
    """Empty all in-memory stores"""
    episodes.clear()
    outcome_scores.clear()
    compliance_ratings.clear()
