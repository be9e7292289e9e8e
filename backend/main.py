# Backend main entry point - outcome analytics API
import logging
import os
from datetime import date
from dotenv import load_dotenv
load_dotenv()  # Load .env so DEMO_MODE / LOG_LEVEL work for local runs
from fastapi import FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Optional, List
from controller import AnalyticsController, AnalyticsQuery, ALL
from export import outcomes_to_csv, export_filename
from provider import DataProviderError, InMemoryDataProvider
from seed import seed_data

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize seed data
seed_data()

app = FastAPI(title="Outcome Analytics API")
controller = AnalyticsController(InMemoryDataProvider())


def _is_demo_mode() -> bool:
    """True only when DEMO_MODE env var is explicitly 'true' (case-insensitive)."""
    return os.environ.get("DEMO_MODE", "").lower() == "true"

# Configure CORS - allow local dev and deployed frontend
_allowed_origins = [
    "http://localhost:5173",
    "http://localhost:5174",
]
# Add frontend URL from env if set (e.g. https://your-app.vercel.app)
_frontend_url = os.environ.get("FRONTEND_URL", "")
if _frontend_url:
    _allowed_origins.append(_frontend_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Response models
class BenchmarkRow(BaseModel):
    label: str
    total: int
    achieved: int
    mcidRate: int

class BenchmarkResponse(BaseModel):
    eligible: bool
    reason: Optional[str] = None
    minCohortSize: int
    clinicians: List[BenchmarkRow]
    networkAverage: int
    participatingCount: int

class AtRiskEpisodeResponse(BaseModel):
    episodeId: str
    region: str
    diagnosis: str
    clinicianId: str
    riskFactors: List[str]
    priority: str
    recommendation: str
    visitCount: int
    improvementPct: float
    daysActive: int

class RiskSummaryResponse(BaseModel):
    total: int
    highCount: int
    mediumCount: int
    lowCount: int
    episodes: List[AtRiskEpisodeResponse]


def _six_months_before(today: date) -> date:
    month = today.month - 6
    year = today.year
    if month <= 0:
        month += 12
        year -= 1
    # Clamp day for shorter months (e.g. Aug 31 -> Feb 28)
    for day in (today.day, 30, 29, 28):
        try:
            return date(year, month, day)
        except ValueError:
            continue
    return date(year, month, 28)


def _build_query(
    dateFrom: Optional[date],
    dateTo: Optional[date],
    region: str,
    diagnosis: str,
) -> AnalyticsQuery:
    """Default range is the six months up to today."""
    today = date.today()
    date_to = dateTo or today
    date_from = dateFrom or _six_months_before(date_to)
    if date_from > date_to:
        raise HTTPException(status_code=400, detail="dateFrom must be on or before dateTo")
    return AnalyticsQuery(
        dateFrom=date_from.isoformat(),
        dateTo=date_to.isoformat(),
        region=region or ALL,
        diagnosis=diagnosis or ALL,
    )


async def _run(query: AnalyticsQuery) -> dict:
    try:
        return await controller.update(query)
    except DataProviderError as exc:
        raise HTTPException(status_code=503, detail=exc.to_dict())


@app.get("/")
def read_root():
    return {"message": "Outcome Analytics & Risk Stratification API"}

@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.get("/analytics")
async def get_analytics(
    dateFrom: Optional[date] = Query(None),
    dateTo: Optional[date] = Query(None),
    region: str = Query(ALL),
    diagnosis: str = Query(ALL),
):
    """Full dashboard: KPIs, region/diagnosis charts, visit distribution, trend, benchmark, risk."""
    return await _run(_build_query(dateFrom, dateTo, region, diagnosis))


@app.get("/analytics/at-risk", response_model=RiskSummaryResponse)
async def get_at_risk(
    dateFrom: Optional[date] = Query(None),
    dateTo: Optional[date] = Query(None),
    region: str = Query(ALL),
    diagnosis: str = Query(ALL),
):
    """Episodes flagged by one or more risk rules, most factors first."""
    result = await _run(_build_query(dateFrom, dateTo, region, diagnosis))
    return result["risk"]


@app.get("/analytics/benchmark", response_model=BenchmarkResponse)
async def get_benchmark(
    dateFrom: Optional[date] = Query(None),
    dateTo: Optional[date] = Query(None),
    region: str = Query(ALL),
    diagnosis: str = Query(ALL),
):
    """Anonymized clinician benchmark (cohorts below the floor are excluded)."""
    result = await _run(_build_query(dateFrom, dateTo, region, diagnosis))
    return result["benchmark"]


@app.get("/analytics/export.csv")
async def export_csv(
    dateFrom: Optional[date] = Query(None),
    dateTo: Optional[date] = Query(None),
    region: str = Query(ALL),
    diagnosis: str = Query(ALL),
):
    """CSV of the filtered outcomes, one row per (episode, instrument)."""
    query = _build_query(dateFrom, dateTo, region, diagnosis)
    try:
        outcomes = await controller.fetch_outcomes(query)
    except DataProviderError as exc:
        raise HTTPException(status_code=503, detail=exc.to_dict())
    content = outcomes_to_csv(outcomes)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@app.get("/demo/status")
def demo_status():
    """Returns whether demo mode is enabled. Only for frontend visibility gate."""
    return {"demoMode": _is_demo_mode()}


@app.post("/demo/reset")
def demo_reset():
    """
    Reset prototype to baseline. Only available when DEMO_MODE=true.
    Restores the seed snapshot.
    """
    if not _is_demo_mode():
        raise HTTPException(status_code=404, detail="Demo reset not available")
    seed_data()
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
