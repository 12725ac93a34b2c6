"""View state and presentation logic for the indication x modality visualization.

State is an immutable ``VizState``; every user interaction is an action dataclass and
``reduce(state, action)`` returns the next state. ``prepare_view`` turns a grid plus
state into a ``VizFrame`` (colours, emphasis, tooltips, geometry) that any of the three
chart layouts can draw.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd

from core.filters import HeatmapFilters, filter_grid, highlight_mask


VIEW_MODES = ("grid", "bubble", "treemap")
DEFAULT_VIEW_MODE = "grid"
TREEMAP_GROUPINGS = (None, "indication", "modality")

EMPTY_COLOR = "#f5f5f5"
EMPTY_STROKE_DASH = [4, 3]
CELL_STROKE = "#ffffff"
EMPTY_STROKE = "#c9ced6"
HOVER_STROKE = "#A92269"
LABEL_COLOR = "#52606D"
DIMMED_OPACITY = 0.25

PALETTES: Dict[str, Tuple[Tuple[int, int, int], ...]] = {
    "magenta": ((250, 233, 242), (169, 34, 105)),
    "teal": ((226, 245, 245), (23, 143, 143)),
    "navy": ((228, 234, 243), (24, 55, 95)),
    "viridis": ((68, 1, 84), (59, 82, 139), (33, 145, 140), (94, 201, 98), (253, 231, 37)),
    "heat": ((255, 245, 235), (253, 174, 97), (215, 48, 39), (103, 0, 13)),
}
DEFAULT_PALETTE = "magenta"

ZOOM_MIN, ZOOM_MAX, ZOOM_DEFAULT = 50, 200, 100
MARGIN = {"top": 60, "right": 40, "bottom": 40, "left": 150}
MAX_CELL_SIZE = 40.0
MIN_CELL_SIZE = 16.0
MIN_CANVAS_WIDTH = 800
DEFAULT_CONTAINER_WIDTH = 800
TEXT_FLIP_RATIO = 0.7
INDICATION_LABEL_SELECTION = "indication_label"
MODALITY_LABEL_SELECTION = "modality_label"


# ---------------- State + actions ----------------
@dataclass(frozen=True)
class VizState:
    view_mode: str = DEFAULT_VIEW_MODE
    search: str = ""
    highlighted_indications: frozenset = field(default_factory=frozenset)
    highlighted_modalities: frozenset = field(default_factory=frozenset)
    normalized: bool = False
    palette: str = DEFAULT_PALETTE
    zoom: int = ZOOM_DEFAULT
    container_width: int = DEFAULT_CONTAINER_WIDTH
    treemap_group_by: Optional[str] = None
    show_values: bool = True

    @property
    def filters(self) -> HeatmapFilters:
        return HeatmapFilters(self.search, self.highlighted_indications, self.highlighted_modalities)

    def to_dict(self) -> Dict[str, object]:
        return {
            "view_mode": self.view_mode,
            "search": self.search,
            "highlighted_indications": sorted(self.highlighted_indications),
            "highlighted_modalities": sorted(self.highlighted_modalities),
            "normalized": self.normalized,
            "palette": self.palette,
            "zoom": self.zoom,
            "container_width": self.container_width,
            "treemap_group_by": self.treemap_group_by,
            "show_values": self.show_values,
        }


@dataclass(frozen=True)
class SetViewMode:
    mode: str


@dataclass(frozen=True)
class SetSearch:
    term: str


@dataclass(frozen=True)
class ToggleIndicationHighlight:
    name: str


@dataclass(frozen=True)
class ToggleModalityHighlight:
    name: str


@dataclass(frozen=True)
class ClearHighlights:
    pass


@dataclass(frozen=True)
class SetNormalized:
    enabled: bool


@dataclass(frozen=True)
class SetPalette:
    name: str


@dataclass(frozen=True)
class SetZoom:
    percent: float


@dataclass(frozen=True)
class SetContainerWidth:
    width: float


@dataclass(frozen=True)
class SetTreemapGrouping:
    group_by: Optional[str]


@dataclass(frozen=True)
class SetShowValues:
    enabled: bool


@dataclass(frozen=True)
class ResetView:
    pass


Action = Union[
    SetViewMode,
    SetSearch,
    ToggleIndicationHighlight,
    ToggleModalityHighlight,
    ClearHighlights,
    SetNormalized,
    SetPalette,
    SetZoom,
    SetContainerWidth,
    SetTreemapGrouping,
    SetShowValues,
    ResetView,
]


def _toggle(values: frozenset, name: str) -> frozenset:
    return values - {name} if name in values else values | {name}


def clamp_zoom(percent: float) -> int:
    return int(max(ZOOM_MIN, min(ZOOM_MAX, round(float(percent)))))


def reduce(state: VizState, action: Action) -> VizState:
    if isinstance(action, SetViewMode):
        if action.mode not in VIEW_MODES:
            raise ValueError(f"unknown view mode: {action.mode}")
        return replace(state, view_mode=action.mode)
    if isinstance(action, SetSearch):
        return replace(state, search=action.term or "")
    if isinstance(action, ToggleIndicationHighlight):
        return replace(state, highlighted_indications=_toggle(state.highlighted_indications, action.name))
    if isinstance(action, ToggleModalityHighlight):
        return replace(state, highlighted_modalities=_toggle(state.highlighted_modalities, action.name))
    if isinstance(action, ClearHighlights):
        return replace(state, highlighted_indications=frozenset(), highlighted_modalities=frozenset())
    if isinstance(action, SetNormalized):
        return replace(state, normalized=bool(action.enabled))
    if isinstance(action, SetPalette):
        if action.name not in PALETTES:
            raise ValueError(f"unknown palette: {action.name}")
        return replace(state, palette=action.name)
    if isinstance(action, SetZoom):
        return replace(state, zoom=clamp_zoom(action.percent))
    if isinstance(action, SetContainerWidth):
        return replace(state, container_width=max(0, int(action.width)))
    if isinstance(action, SetTreemapGrouping):
        if action.group_by not in TREEMAP_GROUPINGS:
            raise ValueError(f"unsupported grouping: {action.group_by}")
        return replace(state, treemap_group_by=action.group_by)
    if isinstance(action, SetShowValues):
        return replace(state, show_values=bool(action.enabled))
    if isinstance(action, ResetView):
        return VizState(container_width=state.container_width)
    raise TypeError(f"unsupported action: {action!r}")


def reduce_all(state: VizState, actions: Sequence[Action]) -> VizState:
    for action in actions:
        state = reduce(state, action)
    return state


def highlight_actions(state: VizState, indications: Sequence[str], modalities: Sequence[str]) -> List[Action]:
    """Toggle actions that bring the highlight sets in line with a multiselect's current value."""
    actions: List[Action] = []
    for name in sorted(state.highlighted_indications.symmetric_difference(indications)):
        actions.append(ToggleIndicationHighlight(name))
    for name in sorted(state.highlighted_modalities.symmetric_difference(modalities)):
        actions.append(ToggleModalityHighlight(name))
    return actions


# ---------------- Colour ----------------
def _hex(rgb: Sequence[float]) -> str:
    return "#{:02x}{:02x}{:02x}".format(*(int(round(max(0, min(255, c)))) for c in rgb))


def interpolate_color(t: float, stops: Sequence[Tuple[int, int, int]]) -> str:
    """Piecewise-linear interpolation across palette stops for t in [0, 1]."""
    if not stops:
        raise ValueError("palette has no stops")
    if len(stops) == 1:
        return _hex(stops[0])
    t = 0.0 if t != t else max(0.0, min(1.0, float(t)))
    pos = t * (len(stops) - 1)
    i = min(int(pos), len(stops) - 2)
    frac = pos - i
    a, b = stops[i], stops[i + 1]
    return _hex([a[k] + (b[k] - a[k]) * frac for k in range(3)])


def palette_hex(name: str) -> List[str]:
    return [_hex(s) for s in PALETTES[name]]


@dataclass(frozen=True)
class ColorScale:
    max_count: int
    palette: str = DEFAULT_PALETTE
    normalized: bool = False

    @property
    def domain_max(self) -> float:
        if self.normalized:
            return 1.0
        return float(self.max_count) if self.max_count > 0 else 10.0

    def value(self, count: int) -> float:
        return cell_value(count, self.max_count, self.normalized)

    def color_for(self, count: int) -> str:
        if count <= 0:
            return EMPTY_COLOR
        return interpolate_color(self.value(count) / self.domain_max, PALETTES[self.palette])

    def text_color_for(self, count: int) -> str:
        return "#ffffff" if self.max_count > 0 and count > self.max_count * TEXT_FLIP_RATIO else LABEL_COLOR


def cell_value(count: int, max_count: int, normalized: bool) -> float:
    if not normalized:
        return float(count)
    return float(count) / max_count if max_count > 0 else 0.0


def percent_of_total(count: int, total: int) -> float:
    return 100.0 * float(count) / max(1, int(total))


def tooltip_for(indication: str, modality: str, count: int, total: int) -> Dict[str, object]:
    pct = percent_of_total(count, total)
    return {
        "label": f"{indication} × {modality}",
        "count": int(count),
        "percent": pct,
        "text": f"{indication} × {modality}: {int(count)} deals ({pct:.1f}% of total)",
    }


# ---------------- Geometry ----------------
@dataclass(frozen=True)
class GridGeometry:
    cell_size: float
    width: float
    height: float
    min_width: float
    plot_width: float
    plot_height: float


def compute_geometry(n_rows: int, n_cols: int, container_width: float, zoom: float = ZOOM_DEFAULT) -> GridGeometry:
    min_width = float(max(MIN_CANVAS_WIDTH, n_rows * 40 + 200))
    width = max(float(container_width or 0), min_width)
    avail = width - MARGIN["left"] - MARGIN["right"]
    base = min(MAX_CELL_SIZE, avail / n_cols) if n_cols > 0 else MAX_CELL_SIZE
    cell_size = max(MIN_CELL_SIZE, base * clamp_zoom(zoom) / 100.0)
    plot_width = cell_size * n_cols
    plot_height = cell_size * n_rows
    width = max(width, plot_width + MARGIN["left"] + MARGIN["right"])
    return GridGeometry(
        cell_size=cell_size,
        width=width,
        height=plot_height + MARGIN["top"] + MARGIN["bottom"],
        min_width=min_width,
        plot_width=plot_width,
        plot_height=plot_height,
    )


# ---------------- View frame ----------------
@dataclass(frozen=True)
class VizFrame:
    cells: pd.DataFrame
    indications: List[str]
    modalities: List[str]
    total: int
    max_count: int
    scale: ColorScale
    geometry: GridGeometry
    state: VizState

    @property
    def empty(self) -> bool:
        return self.cells.empty


def prepare_view(grid: pd.DataFrame, state: VizState) -> VizFrame:
    filters = state.filters
    cells, indications, modalities = filter_grid(grid, filters.search)
    cells = cells.copy()
    max_count = int(cells["count"].max()) if not cells.empty else 0
    total = int(cells["count"].sum()) if not cells.empty else 0
    scale = ColorScale(max_count=max_count, palette=state.palette, normalized=state.normalized)

    cells["value"] = [scale.value(c) for c in cells["count"]]
    cells["color"] = [scale.color_for(c) for c in cells["count"]]
    cells["text_color"] = [scale.text_color_for(c) for c in cells["count"]]
    cells["empty"] = cells["count"] <= 0
    cells["stroke"] = [EMPTY_STROKE if e else CELL_STROKE for e in cells["empty"]]
    cells["emphasized"] = highlight_mask(cells, filters.highlighted_indications, filters.highlighted_modalities).to_numpy(dtype=bool)
    cells["opacity"] = [1.0 if e else DIMMED_OPACITY for e in cells["emphasized"]]
    cells["percent"] = [percent_of_total(c, total) for c in cells["count"]]
    cells["label"] = cells["indication"].astype(str) + " × " + cells["modality"].astype(str)

    geometry = compute_geometry(len(indications), len(modalities), state.container_width, state.zoom)
    return VizFrame(
        cells=cells,
        indications=indications,
        modalities=modalities,
        total=total,
        max_count=max_count,
        scale=scale,
        geometry=geometry,
        state=state,
    )


def label_emphasis(frame: VizFrame) -> Dict[str, Dict[str, bool]]:
    """Per-axis-label emphasis for drawing highlighted / dimmed axis labels."""
    st = frame.state
    any_active = bool(st.highlighted_indications or st.highlighted_modalities)
    return {
        "indications": {n: (not any_active) or n in st.highlighted_indications for n in frame.indications},
        "modalities": {n: (not any_active) or n in st.highlighted_modalities for n in frame.modalities},
    }


def handle_cell_click(cell: Dict[str, object], on_click: Callable[[str, str], None]) -> None:
    """Forward any clicked cell, populated or empty, to the drill-through callback."""
    on_click(str(cell["indication"]), str(cell["modality"]))


def label_click_actions(selection: Dict[str, object]) -> List[Action]:
    """Toggle actions for axis labels picked in a chart selection event."""
    actions: List[Action] = []
    for point in selection.get(INDICATION_LABEL_SELECTION) or []:
        if point.get("indication") is not None:
            actions.append(ToggleIndicationHighlight(str(point["indication"])))
    for point in selection.get(MODALITY_LABEL_SELECTION) or []:
        if point.get("modality") is not None:
            actions.append(ToggleModalityHighlight(str(point["modality"])))
    return actions
