# Aggregation & statistics - population views over filtered EpisodeOutcomes
"""
Every function here is pure: it takes a list of EpisodeOutcome rows and
returns plain dicts/lists ready for chart binding. Nothing is mutated.

Quartiles and medians use positional indexing, sorted[floor(n * p)], not an
interpolated quantile. Downstream consumers depend on these exact values.
"""
from __future__ import annotations

import math
from collections import Counter
from datetime import date
from typing import Dict, List, Optional, Sequence

from models import EpisodeOutcome

TOP_DIAGNOSES = 10
DIAGNOSIS_LABEL_MAX = 25
ROLLING_WINDOW = 3


def round_half_up(value: float) -> int:
    """Round to nearest integer, .5 going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def rate_pct(achieved: int, total: int) -> int:
    """achieved / total * 100, rounded; 0 for an empty group."""
    if total <= 0:
        return 0
    return round_half_up(achieved / total * 100)


def positional_quantile(sorted_values: Sequence[float], p: float):
    """sorted_values[floor(n * p)]; None when empty."""
    if not sorted_values:
        return None
    index = min(int(math.floor(len(sorted_values) * p)), len(sorted_values) - 1)
    return sorted_values[index]


def truncate_label(text: str, limit: int = DIAGNOSIS_LABEL_MAX) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def _group_totals(outcomes: List[EpisodeOutcome], key) -> Dict[str, Dict[str, float]]:
    """key(outcome) -> {"total", "achieved", "deltaSum"} built in one pass."""
    totals = Counter(key(o) for o in outcomes)
    achieved = Counter(key(o) for o in outcomes if o.mcidAchieved)
    delta_sums: Dict[str, float] = {}
    for o in outcomes:
        delta_sums[key(o)] = delta_sums.get(key(o), 0.0) + o.delta
    return {
        k: {"total": totals[k], "achieved": achieved.get(k, 0), "deltaSum": delta_sums[k]}
        for k in totals
    }


def mcid_rate_by_region(outcomes: List[EpisodeOutcome]) -> List[Dict]:
    """MCID achievement rate per region, largest groups first."""
    groups = _group_totals(outcomes, lambda o: o.region)
    rows = [
        {
            "region": region,
            "rate": rate_pct(stats["achieved"], stats["total"]),
            "count": stats["total"],
        }
        for region, stats in groups.items()
    ]
    return sorted(rows, key=lambda r: -r["count"])


def avg_delta_by_diagnosis(outcomes: List[EpisodeOutcome]) -> List[Dict]:
    """
    Average delta per diagnosis for the 10 largest groups, sorted by count.
    `label` is the display-truncated diagnosis; `diagnosis` stays intact.
    """
    groups = _group_totals(outcomes, lambda o: o.diagnosis)
    rows = [
        {
            "diagnosis": diagnosis,
            "label": truncate_label(diagnosis),
            "avgDelta": round_half_up(stats["deltaSum"] / stats["total"]),
            "count": stats["total"],
        }
        for diagnosis, stats in groups.items()
    ]
    rows.sort(key=lambda r: -r["count"])
    return rows[:TOP_DIAGNOSES]


def visit_distribution(outcomes: List[EpisodeOutcome]) -> Dict:
    """Histogram keyed by exact visit count plus summary statistics."""
    visits = sorted(o.visitCount for o in outcomes)
    histogram = Counter(visits)

    if not visits:
        return {
            "histogram": [],
            "min": 0,
            "max": 0,
            "mean": 0,
            "median": 0,
            "q1": 0,
            "q3": 0,
            "count": 0,
        }

    return {
        "histogram": [{"visits": v, "count": histogram[v]} for v in sorted(histogram)],
        "min": visits[0],
        "max": visits[-1],
        "mean": round_half_up(sum(visits) / len(visits)),
        "median": positional_quantile(visits, 0.5),
        "q1": positional_quantile(visits, 0.25),
        "q3": positional_quantile(visits, 0.75),
        "count": len(visits),
    }


def rolling_average(values: List[float], window: int = ROLLING_WINDOW) -> List[Optional[int]]:
    """Trailing mean; positions before the window fills are None."""
    result: List[Optional[int]] = []
    for idx in range(len(values)):
        if idx < window - 1:
            result.append(None)
            continue
        recent = values[idx - window + 1: idx + 1]
        result.append(round_half_up(sum(recent) / window))
    return result


def _month_label(month_key: str) -> str:
    return date.fromisoformat(month_key + "-01").strftime("%b %Y")


def monthly_trend(outcomes: List[EpisodeOutcome]) -> List[Dict]:
    """Discharges and MCID rate per YYYY-MM, oldest first, with a 3-month rolling rate."""
    if not outcomes:
        return []

    groups = _group_totals(outcomes, lambda o: o.dischargeDate[:7])
    months = sorted(groups)
    rates = [rate_pct(groups[m]["achieved"], groups[m]["total"]) for m in months]
    rolling = rolling_average(rates)

    return [
        {
            "month": month,
            "monthLabel": _month_label(month),
            "discharges": groups[month]["total"],
            "mcidRate": rate,
            "rollingAvg": avg,
        }
        for month, rate, avg in zip(months, rates, rolling)
    ]


def headline_kpis(outcomes: List[EpisodeOutcome]) -> Dict:
    """Overall MCID rate, median days to discharge, median visit count, total."""
    if not outcomes:
        return {
            "mcidRate": 0,
            "medianDaysToDischarge": 0,
            "medianVisitCount": 0,
            "totalEpisodes": 0,
        }

    achieved = sum(1 for o in outcomes if o.mcidAchieved)
    return {
        "mcidRate": rate_pct(achieved, len(outcomes)),
        "medianDaysToDischarge": positional_quantile(sorted(o.daysToDischarge for o in outcomes), 0.5),
        "medianVisitCount": positional_quantile(sorted(o.visitCount for o in outcomes), 0.5),
        "totalEpisodes": len(outcomes),
    }


def filter_options(outcomes: List[EpisodeOutcome]) -> Dict[str, List[str]]:
    """Distinct regions and diagnoses for populating filter controls."""
    return {
        "regions": sorted({o.region for o in outcomes}),
        "diagnoses": sorted({o.diagnosis for o in outcomes}),
    }
