from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
DATA_DIR_ENV = "DEAL_DATA_DIR"

DATASETS = {
    "deals": "deals.json",
    "companies": "companies.json",
    "indications": "indications.json",
    "modalities": "modalities.json",
}

STAGE_ORDER = ["Preclinical", "Phase 1", "Phase 2", "Phase 3", "Approved"]

DEAL_COLUMNS = ["id", "date", "companyA", "companyB", "asset", "modality", "indication", "stage", "upfront", "milestones", "total"]
DEAL_TEXT_COLUMNS = ["id", "date", "companyA", "companyB", "asset", "modality", "indication", "stage"]
DEAL_MONEY_COLUMNS = ["upfront", "milestones", "total"]
COMPANY_COLUMNS = ["id", "name", "logo", "hq", "focus", "description", "website"]
INDICATION_COLUMNS = ["id", "name", "fullName", "category", "prevalence"]
MODALITY_COLUMNS = ["id", "name", "fullName", "category", "description"]


def get_data_dir() -> Path:
    override = os.environ.get(DATA_DIR_ENV)
    return Path(override) if override else DATA_DIR


def dataset_path(name: str, data_dir: Optional[Path] = None) -> Path:
    if name not in DATASETS:
        raise KeyError(f"unknown dataset: {name}")
    return (data_dir or get_data_dir()) / DATASETS[name]


def read_dataset(name: str, data_dir: Optional[Path] = None) -> Any:
    """Read one static document and return its parsed JSON verbatim."""
    path = dataset_path(name, data_dir)
    return json.loads(path.read_text(encoding="utf-8"))


def file_signature(data_dir: Path) -> Tuple[Tuple[str, float], ...]:
    sig = []
    for filename in DATASETS.values():
        path = data_dir / filename
        sig.append((filename, path.stat().st_mtime if path.exists() else -1.0))
    return tuple(sig)


def _records(raw: object) -> List[Dict[str, Any]]:
    if not isinstance(raw, list):
        raise ValueError("expected a JSON array of records")
    return [r for r in raw if isinstance(r, dict)]


def _frame(records: Iterable[Dict[str, Any]], columns: List[str]) -> pd.DataFrame:
    df = pd.DataFrame(list(records))
    for col in columns:
        if col not in df.columns:
            df[col] = pd.NA
    return df[columns].reset_index(drop=True)


def deals_frame(records: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    df = _frame(records, DEAL_COLUMNS)
    for col in DEAL_TEXT_COLUMNS:
        df[col] = df[col].fillna("").astype(str)
    for col in DEAL_MONEY_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0).astype(float)
    return df


def companies_frame(records: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    df = _frame(records, COMPANY_COLUMNS)
    for col in ["id", "name", "hq", "description", "website"]:
        df[col] = df[col].fillna("").astype(str)
    df["focus"] = df["focus"].apply(lambda v: [str(x) for x in v] if isinstance(v, list) else [])
    return df


def reference_frame(records: Iterable[Dict[str, Any]], columns: List[str]) -> pd.DataFrame:
    df = _frame(records, columns)
    for col in ["id", "name", "fullName", "category"]:
        df[col] = df[col].fillna("").astype(str)
    return df


_FRAME_BUILDERS = {
    "deals": deals_frame,
    "companies": companies_frame,
    "indications": lambda r: reference_frame(r, INDICATION_COLUMNS),
    "modalities": lambda r: reference_frame(r, MODALITY_COLUMNS),
}


@dataclass(frozen=True)
class DealDataset:
    deals: pd.DataFrame
    companies: pd.DataFrame
    indications: pd.DataFrame
    modalities: pd.DataFrame
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def empty(self) -> bool:
        return self.deals.empty


def empty_dataset(errors: Optional[Dict[str, str]] = None) -> DealDataset:
    return DealDataset(
        deals=deals_frame([]),
        companies=companies_frame([]),
        indications=reference_frame([], INDICATION_COLUMNS),
        modalities=reference_frame([], MODALITY_COLUMNS),
        errors=dict(errors or {}),
    )


@lru_cache(maxsize=4)
def _load_dataset_cached(data_dir: str, files_sig: Tuple[Tuple[str, float], ...]) -> DealDataset:
    frames: Dict[str, pd.DataFrame] = {}
    errors: Dict[str, str] = {}
    for name in DATASETS:
        try:
            frames[name] = _FRAME_BUILDERS[name](_records(read_dataset(name, Path(data_dir))))
        except Exception as exc:
            logger.warning("loading %s data failed: %s", name, exc)
            errors[name] = f"Error loading {name} data"
            frames[name] = _FRAME_BUILDERS[name]([])
    return DealDataset(errors=errors, **frames)


def load_dataset(data_dir: Optional[Path] = None) -> DealDataset:
    """Load all four collections; a failed collection comes back empty and is noted in `errors`."""
    data_dir = data_dir or get_data_dir()
    return _load_dataset_cached(str(data_dir), file_signature(data_dir))


def indication_names(dataset: DealDataset) -> List[str]:
    return [str(x) for x in dataset.indications["name"].tolist()]


def modality_names(dataset: DealDataset) -> List[str]:
    return [str(x) for x in dataset.modalities["name"].tolist()]


class LoadGuard:
    """Tracks the latest in-flight load for a view so stale results can be dropped."""

    def __init__(self) -> None:
        self._token = 0
        self._closed = False

    def begin(self) -> int:
        self._token += 1
        self._closed = False
        return self._token

    def close(self) -> None:
        self._closed = True

    def accept(self, token: int) -> bool:
        return not self._closed and token == self._token

    def apply(self, token: int, result: DealDataset, current: Optional[DealDataset] = None) -> Optional[DealDataset]:
        if self.accept(token):
            return result
        logger.debug("discarding stale load result (token=%s, latest=%s)", token, self._token)
        return current
