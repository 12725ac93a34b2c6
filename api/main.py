from __future__ import annotations

import logging
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.schemas import CompanyModel, DealModel, ErrorResponse, IndicationModel, ModalityModel
from core.data import read_dataset


app = FastAPI(title="Oncology Deal Intelligence API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:8501", "http://127.0.0.1:8501", "http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


def _passthrough(name: str) -> JSONResponse:
    """Return a static document verbatim, or 500 with a generic message when it cannot be read."""
    try:
        return JSONResponse(content=read_dataset(name))
    except Exception:
        logger.exception("reading %s data failed", name)
        return JSONResponse(status_code=500, content={"message": f"Error loading {name} data"})


def _responses(model: type) -> dict:
    return {200: {"model": List[model]}, 500: {"model": ErrorResponse}}


@app.get("/api/deals", responses=_responses(DealModel))
def deals():
    return _passthrough("deals")


@app.get("/api/companies", responses=_responses(CompanyModel))
def companies():
    return _passthrough("companies")


@app.get("/api/indications", responses=_responses(IndicationModel))
def indications():
    return _passthrough("indications")


@app.get("/api/modalities", responses=_responses(ModalityModel))
def modalities():
    return _passthrough("modalities")
