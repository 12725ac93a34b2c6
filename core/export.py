from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional

import altair as alt
import pandas as pd

from core.charts import to_vega_spec
from core.viz import VizFrame


EXPORT_COLUMNS = ["indication", "modality", "count", "value", "percent"]
EXPORT_KINDS = ("csv", "json", "vega", "html")


@dataclass(frozen=True)
class ExportArtifact:
    filename: str
    mime: str
    data: bytes


def export_frame(frame: VizFrame) -> pd.DataFrame:
    if frame.cells.empty:
        return pd.DataFrame(columns=EXPORT_COLUMNS)
    return frame.cells[EXPORT_COLUMNS].copy()


def export_cells_csv(frame: VizFrame) -> bytes:
    return export_frame(frame).to_csv(index=False).encode("utf-8")


def export_cells_json(frame: VizFrame) -> bytes:
    payload = {
        "view": frame.state.to_dict(),
        "total": frame.total,
        "indications": frame.indications,
        "modalities": frame.modalities,
        "cells": export_frame(frame).to_dict(orient="records"),
    }
    return json.dumps(payload, indent=2).encode("utf-8")


def export_chart_spec(chart: alt.TopLevelMixin) -> bytes:
    """Vega-Lite JSON for the rendered chart (a vector description any Vega renderer can draw)."""
    return json.dumps(to_vega_spec(chart), indent=2).encode("utf-8")


def export_chart_html(chart: alt.TopLevelMixin) -> bytes:
    return chart.to_html().encode("utf-8")


def export_artifact(kind: str, frame: VizFrame, chart: Optional[alt.TopLevelMixin] = None, *, stem: str = "deal-heatmap") -> ExportArtifact:
    if kind not in EXPORT_KINDS:
        raise ValueError(f"unknown export kind: {kind}")
    if kind == "csv":
        return ExportArtifact(f"{stem}.csv", "text/csv", export_cells_csv(frame))
    if kind == "json":
        return ExportArtifact(f"{stem}.json", "application/json", export_cells_json(frame))
    if chart is None:
        raise ValueError(f"{kind} export needs a rendered chart")
    if kind == "vega":
        return ExportArtifact(f"{stem}.vl.json", "application/json", export_chart_spec(chart))
    return ExportArtifact(f"{stem}.html", "text/html", export_chart_html(chart))
