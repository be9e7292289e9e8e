# CSV export - one row per EpisodeOutcome for the aggregate tab download
from __future__ import annotations

import csv
from datetime import date
from io import StringIO
from typing import Iterable, List, Optional

from models import EpisodeOutcome

CSV_HEADERS = [
    "Episode ID",
    "Region",
    "Diagnosis",
    "Index Type",
    "Intake Score",
    "Discharge Score",
    "Delta",
    "MCID Achieved",
    "Days to Discharge",
    "Visit Count",
    "Clinician ID",
    "Discharge Date",
]


def outcome_row(o: EpisodeOutcome) -> List[str]:
    return [
        o.episodeId,
        o.region,
        o.diagnosis,
        o.indexType,
        f"{o.intakeScore:.1f}",
        f"{o.dischargeScore:.1f}",
        f"{o.delta:.1f}",
        "Yes" if o.mcidAchieved else "No",
        str(o.daysToDischarge),
        str(o.visitCount),
        o.clinicianId,
        date.fromisoformat(o.dischargeDate[:10]).strftime("%Y-%m-%d"),
    ]


def outcomes_to_csv(outcomes: Iterable[EpisodeOutcome]) -> str:
    """Header row is unquoted; every data cell is quoted."""
    output = StringIO()
    csv.writer(output, lineterminator="\n").writerow(CSV_HEADERS)
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for o in outcomes:
        writer.writerow(outcome_row(o))
    return output.getvalue()


def export_filename(today: Optional[date] = None) -> str:
    return f"aggregate-analytics-{(today or date.today()).isoformat()}.csv"
