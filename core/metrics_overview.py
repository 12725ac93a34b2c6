from __future__ import annotations

from typing import Any, Dict, List, Optional

import pandas as pd

from core.aggregation import count_by


MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
DEALS_TARGET = 175
RECENT_DEALS = 5
KPI_MODALITIES = ["ADC", "mAb", "Cell Therapy"]
KPI_INDICATIONS = ["NSCLC", "TNBC", "MM", "AML"]


def latest_year(deals: pd.DataFrame) -> Optional[int]:
    if deals.empty:
        return None
    years = pd.to_numeric(deals["date"].str[:4], errors="coerce").dropna()
    return int(years.max()) if not years.empty else None


def deals_in_year(deals: pd.DataFrame, year: int) -> pd.DataFrame:
    if deals.empty:
        return deals
    return deals[deals["date"].str.startswith(str(year))]


def timeline_points(deals: pd.DataFrame, year: int) -> List[Dict[str, Any]]:
    """One point per calendar month of `year`; months without deals count 0."""
    in_year = deals_in_year(deals, year)
    counts = pd.Series(0, index=range(1, 13))
    if not in_year.empty:
        month = pd.to_numeric(in_year["date"].str[5:7], errors="coerce").dropna().astype(int)
        counts = counts.add(month.value_counts(), fill_value=0).astype(int)
    return [{"month": MONTHS[m - 1], "count": int(counts.loc[m])} for m in range(1, 13)]


def _breakdown(counts: pd.Series, names: List[str], key: str) -> List[Dict[str, Any]]:
    rows = [{key: n, "count": int(counts.get(n, 0))} for n in names]
    return sorted(rows, key=lambda r: r["count"], reverse=True)


def compute_overview(deals: pd.DataFrame, *, year: Optional[int] = None) -> Dict[str, Any]:
    year = year if year is not None else latest_year(deals)
    if year is None:
        return {
            "year": None,
            "deals_ytd": 0,
            "quarters": [0, 0, 0, 0],
            "target": DEALS_TARGET,
            "target_progress": 0.0,
            "top_modality": None,
            "top_indication": None,
            "modality_breakdown": [],
            "indication_breakdown": [],
            "timeline": [],
            "recent": [],
        }

    in_year = deals_in_year(deals, year)
    modality_counts = count_by(in_year, "modality")
    indication_counts = count_by(in_year, "indication")
    timeline = timeline_points(deals, year)
    quarters = [sum(p["count"] for p in timeline[q * 3 : q * 3 + 3]) for q in range(4)]
    deals_ytd = int(len(in_year))

    return {
        "year": year,
        "deals_ytd": deals_ytd,
        "quarters": quarters,
        "target": DEALS_TARGET,
        "target_progress": min(100.0, deals_ytd / DEALS_TARGET * 100.0),
        "top_modality": str(modality_counts.index[0]) if not modality_counts.empty else None,
        "top_indication": str(indication_counts.index[0]) if not indication_counts.empty else None,
        "modality_breakdown": _breakdown(modality_counts, KPI_MODALITIES, "modality"),
        "indication_breakdown": _breakdown(indication_counts, KPI_INDICATIONS, "indication"),
        "timeline": timeline,
        "recent": deals.head(RECENT_DEALS).to_dict(orient="records"),
    }
