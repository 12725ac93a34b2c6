from __future__ import annotations

import math
from typing import Any, Dict, List, Sequence, Tuple

import altair as alt
import pandas as pd

from core.aggregation import grid_cells
from core.layout import GroupNode, LeafNode, build_hierarchy, pack, squarify
from core.viz import (
    DIMMED_OPACITY,
    EMPTY_STROKE_DASH,
    HOVER_STROKE,
    INDICATION_LABEL_SELECTION,
    LABEL_COLOR,
    MARGIN,
    MODALITY_LABEL_SELECTION,
    PALETTES,
    VizFrame,
    VizState,
    label_emphasis,
    palette_hex,
)

alt.data_transformers.disable_max_rows()

CELL_SELECTION = "cell"
GROUP_FILL = "#eef0f3"
GROUP_STROKE = "#9aa5b1"
TIMELINE_COLOR = "#A92269"
MIN_LAYOUT_HEIGHT = 420


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _cell_selection() -> alt.Parameter:
    return alt.selection_point(name=CELL_SELECTION, fields=["indication", "modality"], on="click", empty=False)


def _hover_selection() -> alt.Parameter:
    return alt.selection_point(name="hover", fields=["indication", "modality"], on="mouseover", empty=False, clear="mouseout")


def _tooltip() -> List[alt.Tooltip]:
    return [
        alt.Tooltip("label:N", title="Pair"),
        alt.Tooltip("count:Q", title="Deals"),
        alt.Tooltip("percent:Q", title="% of total", format=".1f"),
    ]


def _cell_records(frame: VizFrame) -> Dict[Tuple[str, str], Dict[str, Any]]:
    out: Dict[Tuple[str, str], Dict[str, Any]] = {}
    for rec in frame.cells.to_dict(orient="records"):
        out.setdefault((rec["indication"], rec["modality"]), rec)
    return out


def layout_canvas(frame: VizFrame) -> Tuple[float, float]:
    width = frame.geometry.width - MARGIN["left"] - MARGIN["right"]
    width = max(width * frame.state.zoom / 100.0, 200.0)
    height = max(float(MIN_LAYOUT_HEIGHT), width * 0.6)
    return width, height


def _label_selection(name: str, field: str) -> alt.Parameter:
    return alt.selection_point(name=name, fields=[field], on="click", empty=False)


def _axis_labels(frame: VizFrame) -> Tuple[alt.Chart, alt.Chart]:
    """Clickable axis labels; a click toggles that name in the highlight set."""
    emphasis = label_emphasis(frame)
    rows = pd.DataFrame({"indication": frame.indications, "on": [emphasis["indications"][n] for n in frame.indications]})
    cols = pd.DataFrame({"modality": frame.modalities, "on": [emphasis["modalities"][n] for n in frame.modalities]})
    weight = alt.condition("datum.on", alt.value("bold"), alt.value("normal"))
    fade = alt.condition("datum.on", alt.value(1.0), alt.value(DIMMED_OPACITY))

    row_labels = (
        alt.Chart(rows)
        .mark_text(align="right", baseline="middle", dx=-6, color=LABEL_COLOR, cursor="pointer")
        .encode(
            y=alt.Y("indication:N", sort=frame.indications, axis=None),
            x=alt.value(0),
            text="indication:N",
            fontWeight=weight,
            opacity=fade,
        )
        .add_params(_label_selection(INDICATION_LABEL_SELECTION, "indication"))
    )
    col_labels = (
        alt.Chart(cols)
        .mark_text(align="left", baseline="middle", angle=315, dy=-6, color=LABEL_COLOR, cursor="pointer")
        .encode(
            x=alt.X("modality:N", sort=frame.modalities, axis=None),
            y=alt.value(0),
            text="modality:N",
            fontWeight=weight,
            opacity=fade,
        )
        .add_params(_label_selection(MODALITY_LABEL_SELECTION, "modality"))
    )
    return row_labels, col_labels


def heatmap_chart(frame: VizFrame) -> alt.LayerChart:
    cells = frame.cells
    geo = frame.geometry
    select = _cell_selection()
    hover = _hover_selection()

    # axis labels are drawn by the clickable label layers
    base = alt.Chart(cells).encode(
        x=alt.X("modality:N", sort=frame.modalities, axis=None),
        y=alt.Y("indication:N", sort=frame.indications, axis=None),
    )
    rects = (
        base.mark_rect(cornerRadius=2, strokeWidth=2, cursor="pointer")
        .encode(
            color=alt.Color("color:N", scale=None),
            opacity=alt.Opacity("opacity:Q", scale=None),
            stroke=alt.condition(hover, alt.value(HOVER_STROKE), alt.Stroke("stroke:N", scale=None)),
            strokeDash=alt.condition("datum.empty", alt.value(EMPTY_STROKE_DASH), alt.value([1, 0])),
            tooltip=_tooltip(),
        )
        .add_params(select, hover)
    )
    layers: List[alt.Chart] = [rects, *_axis_labels(frame)]
    if frame.state.show_values:
        text = (
            base.transform_filter("datum.count > 0")
            .mark_text(fontSize=12)
            .encode(text=alt.Text("count:Q"), color=alt.Color("text_color:N", scale=None), opacity=alt.Opacity("opacity:Q", scale=None))
        )
        layers.append(text)
    return alt.layer(*layers).properties(
        width=max(geo.plot_width, 1.0),
        height=max(geo.plot_height, 1.0),
        title="Number of Deals by Indication and Modality",
    )


def bubble_frame(frame: VizFrame) -> pd.DataFrame:
    width, height = layout_canvas(frame)
    root = build_hierarchy(grid_cells(frame.cells), frame.state.treemap_group_by)
    records = _cell_records(frame)
    rows: List[Dict[str, Any]] = []
    for c in pack(root, width=width, height=height):
        if isinstance(c.node, LeafNode):
            rec = dict(records[(c.node.indication, c.node.modality)])
            rec.update({"x": c.x, "y": c.y, "r": c.r, "size": math.pi * c.r * c.r, "kind": "leaf", "group": ""})
            rows.append(rec)
        elif c.depth > 0:
            rows.append({"x": c.x, "y": c.y, "r": c.r, "size": math.pi * c.r * c.r, "kind": "group", "group": c.node.name})
    return pd.DataFrame(rows)


def bubble_chart(frame: VizFrame) -> alt.LayerChart:
    width, height = layout_canvas(frame)
    df = bubble_frame(frame)
    select = _cell_selection()
    hover = _hover_selection()
    x = alt.X("x:Q", scale=alt.Scale(domain=[0, width]), axis=None)
    y = alt.Y("y:Q", scale=alt.Scale(domain=[height, 0]), axis=None)

    leaves_df = df[df["kind"] == "leaf"] if not df.empty else df
    bubbles = (
        alt.Chart(leaves_df)
        .mark_circle(strokeWidth=1.5, cursor="pointer")
        .encode(
            x=x,
            y=y,
            size=alt.Size("size:Q", scale=None),
            color=alt.Color("color:N", scale=None),
            opacity=alt.Opacity("opacity:Q", scale=None),
            stroke=alt.condition(hover, alt.value(HOVER_STROKE), alt.Stroke("stroke:N", scale=None)),
            strokeDash=alt.condition("datum.empty", alt.value(EMPTY_STROKE_DASH), alt.value([1, 0])),
            tooltip=_tooltip(),
        )
        .add_params(select, hover)
    )
    layers: List[alt.Chart] = []
    groups_df = df[df["kind"] == "group"] if not df.empty else df
    if not groups_df.empty:
        rings = (
            alt.Chart(groups_df)
            .mark_circle(filled=False, stroke=GROUP_STROKE, strokeDash=[2, 2])
            .encode(x=x, y=y, size=alt.Size("size:Q", scale=None), tooltip=[alt.Tooltip("group:N", title="Category")])
        )
        layers.append(rings)
    layers.append(bubbles)
    if frame.state.show_values and not leaves_df.empty:
        labels = (
            alt.Chart(leaves_df)
            .transform_filter("datum.count > 0 && datum.r > 14")
            .mark_text(fontSize=10)
            .encode(x=x, y=y, text=alt.Text("count:Q"), color=alt.Color("text_color:N", scale=None))
        )
        layers.append(labels)
    return alt.layer(*layers).properties(width=width, height=height, title="Deal Concentration (bubble)")


def treemap_frame(frame: VizFrame) -> pd.DataFrame:
    width, height = layout_canvas(frame)
    root = build_hierarchy(grid_cells(frame.cells), frame.state.treemap_group_by)
    records = _cell_records(frame)
    rows: List[Dict[str, Any]] = []
    for r in squarify(root, 0.0, 0.0, width, height):
        base = {"x0": r.x0, "y0": r.y0, "x1": r.x1, "y1": r.y1, "xc": (r.x0 + r.x1) / 2, "yc": (r.y0 + r.y1) / 2}
        if isinstance(r.node, LeafNode):
            rec = dict(records[(r.node.indication, r.node.modality)])
            rec.update(base, kind="leaf", group="")
            rows.append(rec)
        elif isinstance(r.node, GroupNode) and r.depth > 0:
            rows.append(dict(base, kind="group", group=r.node.name))
    return pd.DataFrame(rows)


def treemap_chart(frame: VizFrame) -> alt.LayerChart:
    width, height = layout_canvas(frame)
    df = treemap_frame(frame)
    select = _cell_selection()
    hover = _hover_selection()
    x = alt.X("x0:Q", scale=alt.Scale(domain=[0, width]), axis=None)
    y = alt.Y("y0:Q", scale=alt.Scale(domain=[height, 0]), axis=None)

    layers: List[alt.Chart] = []
    groups_df = df[df["kind"] == "group"] if not df.empty else df
    if not groups_df.empty:
        layers.append(
            alt.Chart(groups_df)
            .mark_rect(fill=GROUP_FILL, stroke=GROUP_STROKE)
            .encode(x=x, x2="x1", y=y, y2="y1", tooltip=[alt.Tooltip("group:N", title="Category")])
        )
    leaves_df = df[df["kind"] == "leaf"] if not df.empty else df
    layers.append(
        alt.Chart(leaves_df)
        .mark_rect(strokeWidth=1.5, cursor="pointer")
        .encode(
            x=x,
            x2="x1",
            y=y,
            y2="y1",
            color=alt.Color("color:N", scale=None),
            opacity=alt.Opacity("opacity:Q", scale=None),
            stroke=alt.condition(hover, alt.value(HOVER_STROKE), alt.Stroke("stroke:N", scale=None)),
            strokeDash=alt.condition("datum.empty", alt.value(EMPTY_STROKE_DASH), alt.value([1, 0])),
            tooltip=_tooltip(),
        )
        .add_params(select, hover)
    )
    if frame.state.show_values and not leaves_df.empty:
        layers.append(
            alt.Chart(leaves_df)
            .transform_filter("datum.count > 0 && (datum.x1 - datum.x0) > 40 && (datum.y1 - datum.y0) > 24")
            .mark_text(fontSize=10, lineBreak="\n")
            .encode(
                x=alt.X("xc:Q", scale=alt.Scale(domain=[0, width]), axis=None),
                y=alt.Y("yc:Q", scale=alt.Scale(domain=[height, 0]), axis=None),
                text=alt.Text("label:N"),
                color=alt.Color("text_color:N", scale=None),
            )
        )
    return alt.layer(*layers).properties(width=width, height=height, title="Deal Concentration (treemap)")


_RENDERERS = {"grid": heatmap_chart, "bubble": bubble_chart, "treemap": treemap_chart}
_SELECTIONS = {
    "grid": [CELL_SELECTION, INDICATION_LABEL_SELECTION, MODALITY_LABEL_SELECTION],
    "bubble": [CELL_SELECTION],
    "treemap": [CELL_SELECTION],
}


def render_chart(frame: VizFrame) -> alt.LayerChart:
    return _RENDERERS[frame.state.view_mode](frame)


def chart_selections(state: VizState) -> List[str]:
    """Names of the click selections the chart for this view mode carries."""
    return list(_SELECTIONS[state.view_mode])


def legend_stops(state: VizState) -> List[str]:
    """Hex colours for a gradient legend bar of the active palette."""
    return palette_hex(state.palette if state.palette in PALETTES else "magenta")


def timeline_chart(points: Sequence[Dict[str, Any]], year: int) -> alt.LayerChart:
    df = pd.DataFrame(list(points), columns=["month", "count"])
    months = df["month"].tolist()
    max_count = int(df["count"].max()) if not df.empty else 0
    x = alt.X("month:N", sort=months, title=None, axis=alt.Axis(labelAngle=0, grid=False))
    y = alt.Y(
        "count:Q",
        title=None,
        scale=alt.Scale(domain=[0, max(1.0, max_count * 1.2)]),
        axis=alt.Axis(tickCount=5, format="d", gridDash=[4, 4], domain=False, ticks=False),
    )
    hover = alt.selection_point(fields=["month"], on="mouseover", empty=False, clear="mouseout")
    base = alt.Chart(df).encode(x=x, y=y)
    area = base.mark_area(
        interpolate="monotone",
        line={"color": TIMELINE_COLOR, "strokeWidth": 3},
        color=alt.Gradient(
            gradient="linear",
            stops=[alt.GradientStop(color="white", offset=0), alt.GradientStop(color=TIMELINE_COLOR, offset=1)],
            x1=1,
            x2=1,
            y1=1,
            y2=0,
        ),
        opacity=0.7,
    )
    dots = (
        base.transform_filter("datum.count > 0")
        .mark_point(filled=True, color=TIMELINE_COLOR, stroke="white")
        .encode(
            size=alt.condition(hover, alt.value(140), alt.value(80)),
            tooltip=[alt.Tooltip("month:N", title=str(year)), alt.Tooltip("count:Q", title="Deals")],
        )
        .add_params(hover)
    )
    return alt.layer(area, dots).properties(height=300, title=f"Monthly Deal Activity ({year})")
