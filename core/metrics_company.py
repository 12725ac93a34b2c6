from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd


MIN_SEARCH_LENGTH = 2


def company_slug(name: str) -> str:
    return str(name).lower()


def search_companies(companies: pd.DataFrame, term: str) -> List[Dict[str, Any]]:
    """Name search for the company picker; terms shorter than two characters return nothing."""
    q = (term or "").strip().lower()
    if len(q) < MIN_SEARCH_LENGTH or companies.empty:
        return []
    hits = companies[companies["name"].str.lower().str.contains(q, regex=False, na=False)]
    return [dict(r, slug=company_slug(r["name"])) for r in hits.to_dict(orient="records")]


def compute_company_profile(companies: pd.DataFrame, deals: pd.DataFrame, slug: str) -> Dict[str, Any]:
    slug = (slug or "").strip().lower()
    match = companies[companies["name"].str.lower() == slug] if slug and not companies.empty else companies.iloc[0:0]
    if match.empty:
        return {"found": False, "slug": slug, "company": None, "deals": [], "total_deals": 0, "as_licensor": 0, "as_licensee": 0}

    company = match.iloc[0].to_dict()
    name = company["name"]
    related = company_deals(deals, name)
    return {
        "found": True,
        "slug": slug,
        "company": company,
        "deals": related.to_dict(orient="records"),
        "total_deals": int(len(related)),
        "as_licensor": int((related["companyB"] == name).sum()) if not related.empty else 0,
        "as_licensee": int((related["companyA"] == name).sum()) if not related.empty else 0,
    }


def company_deals(deals: pd.DataFrame, name: str) -> pd.DataFrame:
    if deals.empty:
        return deals
    return deals[(deals["companyA"] == name) | (deals["companyB"] == name)].reset_index(drop=True)
