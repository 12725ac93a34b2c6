from __future__ import annotations

from typing import Any, Dict

from core.deal_table import format_date, format_money, stage_badge
from core.metrics_company import company_slug


def deal_summary(deal: Dict[str, Any]) -> str:
    a, b = deal.get("companyA", ""), deal.get("companyB", "")
    return (
        f"This strategic collaboration grants {a} exclusive global rights to develop and commercialize "
        f"{b}'s {deal.get('asset', '')} for the treatment of {deal.get('indication', '')}. "
        f"The asset is at the {deal.get('stage', '')} stage. The agreement includes development and "
        f"commercial milestone payments, as well as tiered royalties on future sales."
    )


def deal_detail(deal: Dict[str, Any]) -> Dict[str, Any]:
    """View model for the deal detail panel opened from a table row."""
    return {
        "id": deal.get("id", ""),
        "date": format_date(deal.get("date", ""), long=True),
        "type": "Licensing",
        "licensee": {"name": deal.get("companyA", ""), "initials": str(deal.get("companyA", ""))[:2], "slug": company_slug(deal.get("companyA", ""))},
        "licensor": {"name": deal.get("companyB", ""), "initials": str(deal.get("companyB", ""))[:2], "slug": company_slug(deal.get("companyB", ""))},
        "asset": deal.get("asset", ""),
        "modality": deal.get("modality", ""),
        "indication": deal.get("indication", ""),
        "stage": deal.get("stage", ""),
        "stage_badge": stage_badge(deal.get("stage", "")),
        "financials": {
            "upfront": format_money(deal.get("upfront", 0.0)) + "M",
            "milestones": format_money(deal.get("milestones", 0.0)) + "M",
            "total": format_money(deal.get("total", 0.0)) + "M",
        },
        "summary": deal_summary(deal),
    }
