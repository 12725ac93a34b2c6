from __future__ import annotations

import locale
import zlib
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

import pandas as pd


SORT_COLUMNS = {
    "date": "date",
    "companies": "companyA",
    "asset": "asset",
    "indication": "indication",
    "stage": "stage",
    "total": "total",
}
NUMERIC_SORT_COLUMNS = {"total"}
DEFAULT_SORT_COLUMN = "date"

STAGE_BADGES = {
    "Preclinical": "neutral",
    "Phase 1": "warning",
    "Phase 2": "accent",
    "Phase 3": "primary",
    "Approved": "success",
}
STAGE_BADGE_COLORS = {
    "neutral": ("#e4e7eb", "#3e4c59"),
    "warning": ("#fdf3e1", "#b7791f"),
    "accent": ("#e3f4f4", "#178f8f"),
    "primary": ("#f8e6ef", "#a92269"),
    "success": ("#e3f6ea", "#2f855a"),
}


@dataclass(frozen=True)
class SortSpec:
    column: str = DEFAULT_SORT_COLUMN
    direction: str = "desc"

    @property
    def ascending(self) -> bool:
        return self.direction == "asc"


def next_sort(spec: SortSpec, column: str) -> SortSpec:
    """Header click: flip direction on the active column, otherwise switch column descending."""
    if column not in SORT_COLUMNS:
        raise ValueError(f"column not sortable: {column}")
    if spec.column == column:
        return SortSpec(column, "asc" if spec.direction == "desc" else "desc")
    return SortSpec(column, "desc")


def _text_key(value: object) -> str:
    s = "" if value is None else str(value)
    try:
        return locale.strxfrm(s.casefold())
    except Exception:
        return s.casefold()


def sort_deals(deals: pd.DataFrame, spec: SortSpec) -> pd.DataFrame:
    """Stable sorted copy; text columns compare locale-aware, `total` numerically."""
    if spec.column not in SORT_COLUMNS:
        raise ValueError(f"column not sortable: {spec.column}")
    if deals.empty:
        return deals.copy()
    col = SORT_COLUMNS[spec.column]
    if spec.column in NUMERIC_SORT_COLUMNS:
        key = lambda s: pd.to_numeric(s, errors="coerce")
    else:
        key = lambda s: s.map(_text_key)
    return deals.sort_values(col, ascending=spec.ascending, kind="mergesort", key=key).reset_index(drop=True)


def format_date(value: str, *, long: bool = False) -> str:
    try:
        d = date.fromisoformat(str(value)[:10])
    except ValueError:
        return str(value)
    month = d.strftime("%B" if long else "%b")
    return f"{month} {d.day}, {d.year}"


def format_money(value: float) -> str:
    if value is None or pd.isna(value):
        return ""
    v = float(value)
    return f"${v:,.0f}" if v.is_integer() else f"${v:,.1f}"


def table_rows(deals: pd.DataFrame) -> pd.DataFrame:
    if deals.empty:
        return pd.DataFrame(columns=["Date", "Companies", "Asset", "Indication", "Stage", "Total Value ($M)"])
    return pd.DataFrame(
        {
            "Date": deals["date"].map(format_date),
            "Companies": deals["companyA"].astype(str) + " → " + deals["companyB"].astype(str),
            "Asset": deals["asset"],
            "Indication": deals["indication"],
            "Stage": deals["stage"],
            "Total Value ($M)": deals["total"].map(format_money),
        }
    ).reset_index(drop=True)


def row_record(deals: pd.DataFrame, position: int) -> Optional[Dict[str, Any]]:
    """Full deal record for a clicked table row, or None when the position is out of range."""
    if position < 0 or position >= len(deals):
        return None
    return deals.iloc[position].to_dict()


def table_state_key(prefix: str, spec: SortSpec, deals: pd.DataFrame) -> str:
    """Widget key for a deal table that changes whenever its row order does.

    Row selections are positional, so a new sort or a new row set must start from a
    fresh widget instead of re-reading an old position into different rows.
    """
    ids = "\x1f".join(deals["id"].astype(str)) if "id" in deals.columns else ""
    digest = zlib.crc32(ids.encode("utf-8"))
    return f"{prefix}_table_{spec.column}_{spec.direction}_{digest:08x}"


def stage_badge(stage: str) -> str:
    return STAGE_BADGES.get(stage, "neutral")


def stage_badge_colors(stage: str):
    return STAGE_BADGE_COLORS[stage_badge(stage)]
