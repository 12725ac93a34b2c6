from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from core.data import STAGE_ORDER


DEFAULT_DATE_RANGE: Tuple[str, str] = ("2024-01-01", "2025-12-31")
SEARCH_COLUMNS = ["id", "companyA", "companyB", "asset", "indication", "modality"]


@dataclass(frozen=True)
class HeatmapFilters:
    search: str = ""
    highlighted_indications: frozenset = field(default_factory=frozenset)
    highlighted_modalities: frozenset = field(default_factory=frozenset)


@dataclass(frozen=True)
class DealFilters:
    search: str = ""
    indication: Tuple[str, ...] = ()
    modality: Tuple[str, ...] = ()
    stage: Tuple[str, ...] = ()
    value_range: Tuple[float, float] = (0.0, float("inf"))
    date_range: Tuple[str, str] = DEFAULT_DATE_RANGE
    companies: Tuple[str, ...] = ()


def _as_str_tuple(values: Optional[Iterable[object]]) -> Tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        values = [values]
    return tuple(str(v) for v in values if v is not None and str(v) != "")


def _as_range(value: object, default: Tuple[float, float]) -> Tuple[float, float]:
    try:
        lo, hi = value  # type: ignore[misc]
        lo, hi = float(lo), float(hi)
    except Exception:
        return default
    return (lo, hi) if lo <= hi else (hi, lo)


def default_deal_filters(max_total: float) -> DealFilters:
    return DealFilters(value_range=(0.0, float(max_total)))


def normalize_filters(raw: dict, *, max_total: Optional[float] = None) -> DealFilters:
    value_default = (0.0, float(max_total) if max_total is not None else float("inf"))
    value_range = _as_range(raw.get("value_range"), value_default)

    date_range = DEFAULT_DATE_RANGE
    dr = raw.get("date_range")
    if dr and len(dr) == 2 and all(dr):
        start, end = str(dr[0]), str(dr[1])
        date_range = (start, end) if start <= end else (end, start)

    return DealFilters(
        search=str(raw.get("search") or "").strip(),
        indication=_as_str_tuple(raw.get("indication")),
        modality=_as_str_tuple(raw.get("modality")),
        stage=_as_str_tuple(raw.get("stage")),
        value_range=value_range,
        date_range=date_range,
        companies=_as_str_tuple(raw.get("companies")),
    )


def toggle_value(values: Sequence[str], value: str) -> Tuple[str, ...]:
    """Checkbox-style toggle: add when absent, remove when present."""
    if value in values:
        return tuple(v for v in values if v != value)
    return tuple(values) + (value,)


def filter_grid(grid: pd.DataFrame, search: str) -> Tuple[pd.DataFrame, List[str], List[str]]:
    """Narrow the grid to cells whose indication or modality contains `search`.

    Returns the surviving cells plus the axis names that still have cells, both in input order.
    """
    term = (search or "").strip().lower()
    out = grid
    if term and not grid.empty:
        mask = grid["indication"].str.lower().str.contains(term, regex=False) | grid["modality"].str.lower().str.contains(
            term, regex=False
        )
        out = grid[mask]
    out = out.reset_index(drop=True)
    indications = list(dict.fromkeys(out["indication"].tolist()))
    modalities = list(dict.fromkeys(out["modality"].tolist()))
    return out, indications, modalities


def highlight_mask(grid: pd.DataFrame, highlighted_indications: Iterable[str], highlighted_modalities: Iterable[str]) -> pd.Series:
    inds = set(highlighted_indications or ())
    mods = set(highlighted_modalities or ())
    if not inds and not mods:
        return pd.Series(True, index=grid.index, dtype=bool)
    return grid["indication"].isin(inds) | grid["modality"].isin(mods)


def search_deals(deals: pd.DataFrame, term: str) -> pd.DataFrame:
    q = (term or "").strip().lower()
    if not q or deals.empty:
        return deals
    mask = pd.Series(False, index=deals.index)
    for col in SEARCH_COLUMNS:
        if col in deals.columns:
            mask = mask | deals[col].astype(str).str.lower().str.contains(q, regex=False, na=False)
    return deals[mask]


def apply_deal_filters(deals: pd.DataFrame, filters: DealFilters) -> pd.DataFrame:
    """AND across dimensions, OR within one; an empty selection leaves that dimension alone."""
    out = search_deals(deals, filters.search)
    if out.empty:
        return out.reset_index(drop=True)

    if filters.indication:
        out = out[out["indication"].isin(filters.indication)]
    if filters.modality:
        out = out[out["modality"].isin(filters.modality)]
    if filters.stage:
        out = out[out["stage"].isin(filters.stage)]

    lo, hi = filters.value_range
    out = out[(out["total"] >= lo) & (out["total"] <= hi)]

    start, end = filters.date_range
    out = out[(out["date"] >= start) & (out["date"] <= end)]

    if filters.companies:
        out = out[out["companyA"].isin(filters.companies) | out["companyB"].isin(filters.companies)]
    return out.reset_index(drop=True)


def filter_options(deals: pd.DataFrame) -> dict:
    if deals.empty:
        return {"stages": [], "companies": [], "max_total": 0.0}
    seen = list(dict.fromkeys(deals["stage"].tolist()))
    stages = [s for s in STAGE_ORDER if s in seen] + [s for s in seen if s not in STAGE_ORDER]
    companies = list(dict.fromkeys(c for a, b in zip(deals["companyA"], deals["companyB"]) for c in (a, b)))
    return {"stages": stages, "companies": companies, "max_total": float(deals["total"].max())}


def has_active_selection(filters: DealFilters) -> bool:
    return bool(filters.indication or filters.modality or filters.stage or filters.companies)


def active_filter_chips(filters: DealFilters) -> List[Tuple[str, str]]:
    chips: List[Tuple[str, str]] = []
    for label, values in [
        ("Indication", filters.indication),
        ("Modality", filters.modality),
        ("Stage", filters.stage),
        ("Company", filters.companies),
    ]:
        chips.extend((label, v) for v in values)
    return chips
