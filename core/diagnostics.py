from __future__ import annotations

from typing import Any, Dict

import pandas as pd

from core.data import DealDataset


def unmatched_mask(deals: pd.DataFrame, column: str, names: pd.Series) -> pd.Series:
    if deals.empty:
        return pd.Series(dtype=bool)
    return ~deals[column].isin(set(names.astype(str)))


def count_unmatched_deals(deals: pd.DataFrame, indications: pd.Series, modalities: pd.Series) -> int:
    """Deals whose indication or modality has no exact match on the grid axes (they add nothing to the grid)."""
    if deals.empty:
        return 0
    mask = unmatched_mask(deals, "indication", indications) | unmatched_mask(deals, "modality", modalities)
    return int(mask.sum())


def compute_diagnostics(dataset: DealDataset) -> Dict[str, Any]:
    deals = dataset.deals
    payload: Dict[str, Any] = {
        "row_counts": {
            "deals": int(len(deals)),
            "companies": int(len(dataset.companies)),
            "indications": int(len(dataset.indications)),
            "modalities": int(len(dataset.modalities)),
        },
        "load_errors": dict(dataset.errors),
        "unmatched_deals": count_unmatched_deals(deals, dataset.indications["name"], dataset.modalities["name"]),
        "unmatched": {"indication": [], "modality": [], "company": []},
    }
    if deals.empty:
        return payload

    for column, names in [("indication", dataset.indications["name"]), ("modality", dataset.modalities["name"])]:
        mask = unmatched_mask(deals, column, names)
        payload["unmatched"][column] = deals.loc[mask, ["id", column]].to_dict(orient="records")

    company_names = set(dataset.companies["name"].astype(str))
    bad = deals[~deals["companyA"].isin(company_names) | ~deals["companyB"].isin(company_names)]
    payload["unmatched"]["company"] = bad[["id", "companyA", "companyB"]].to_dict(orient="records")
    return payload
