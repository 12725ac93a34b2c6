from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class DealModel(BaseModel):
    id: str
    date: str
    companyA: str
    companyB: str
    asset: str
    modality: str
    indication: str
    stage: str
    upfront: float = 0.0
    milestones: float = 0.0
    total: float = 0.0


class CompanyModel(BaseModel):
    id: str
    name: str
    logo: Optional[str] = None
    hq: str = ""
    focus: List[str] = Field(default_factory=list)
    description: str = ""
    website: str = ""


class IndicationModel(BaseModel):
    id: str
    name: str
    fullName: str = ""
    category: str = ""
    prevalence: Optional[float] = None


class ModalityModel(BaseModel):
    id: str
    name: str
    fullName: str = ""
    category: str = ""
    description: Optional[str] = None


class ErrorResponse(BaseModel):
    message: str
