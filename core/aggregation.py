from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import pandas as pd


GRID_COLUMNS = ["indication", "modality", "count"]


@dataclass(frozen=True)
class HeatmapCell:
    indication: str
    modality: str
    count: int


def build_heatmap_grid(deals: pd.DataFrame, indications: Sequence[str], modalities: Sequence[str]) -> pd.DataFrame:
    """Dense indication x modality count grid, indication-major, zero cells included.

    Matching is exact and case-sensitive. Axis lists are used as given (no dedup), so
    a repeated name produces a repeated row/column.
    """
    indications = [str(x) for x in indications]
    modalities = [str(x) for x in modalities]
    if not indications or not modalities:
        return pd.DataFrame({"indication": pd.Series(dtype=str), "modality": pd.Series(dtype=str), "count": pd.Series(dtype=int)})

    pairs = pd.MultiIndex.from_product([indications, modalities], names=["indication", "modality"])
    if deals.empty:
        counts = pd.Series(0, index=pairs)
    else:
        counts = deals.groupby(["indication", "modality"], sort=False).size().reindex(pairs, fill_value=0)

    grid = counts.rename("count").reset_index()
    grid["count"] = grid["count"].astype(int)
    return grid[GRID_COLUMNS]


def grid_cells(grid: pd.DataFrame) -> List[HeatmapCell]:
    return [
        HeatmapCell(indication=str(r.indication), modality=str(r.modality), count=int(r.count))
        for r in grid.itertuples(index=False)
    ]


def drill_through(deals: pd.DataFrame, indication: str, modality: str) -> pd.DataFrame:
    if deals.empty:
        return deals.copy()
    mask = (deals["indication"] == indication) & (deals["modality"] == modality)
    return deals[mask].reset_index(drop=True)


def count_by(deals: pd.DataFrame, column: str) -> pd.Series:
    """Counts per value, highest first; ties keep first-seen order."""
    if deals.empty or column not in deals.columns:
        return pd.Series(dtype=int)
    counts = deals[column].value_counts(sort=False)
    return counts.sort_values(ascending=False, kind="mergesort")
