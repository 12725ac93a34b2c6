import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import List, Optional

import altair as alt
import pandas as pd
import streamlit as st

from core.aggregation import build_heatmap_grid, drill_through
from core.charts import CELL_SELECTION, chart_selections, legend_stops, render_chart, timeline_chart
from core.data import indication_names, load_dataset, modality_names
from core.deal_detail import deal_detail
from core.deal_table import SORT_COLUMNS, SortSpec, next_sort, row_record, sort_deals, stage_badge_colors, table_rows, table_state_key
from core.diagnostics import compute_diagnostics
from core.export import EXPORT_KINDS, export_artifact
from core.filters import (
    DealFilters,
    active_filter_chips,
    apply_deal_filters,
    default_deal_filters,
    filter_options,
    has_active_selection,
    normalize_filters,
    toggle_value,
)
from core.metrics_company import compute_company_profile, search_companies
from core.metrics_overview import compute_overview
from core.viz import (
    PALETTES,
    TREEMAP_GROUPINGS,
    VIEW_MODES,
    ZOOM_MAX,
    ZOOM_MIN,
    ClearHighlights,
    ResetView,
    SetContainerWidth,
    SetNormalized,
    SetPalette,
    SetSearch,
    SetShowValues,
    SetTreemapGrouping,
    SetViewMode,
    SetZoom,
    VizState,
    handle_cell_click,
    highlight_actions,
    label_click_actions,
    label_emphasis,
    prepare_view,
    reduce,
    reduce_all,
    tooltip_for,
)

alt.data_transformers.disable_max_rows()
logger = logging.getLogger(__name__)


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #323F4B;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #323F4B;}
        .card-actions {font-size: 0.9rem;color: #A92269;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        .chip.on {background: #f8e6ef;border-color: #A92269;color: #A92269;}
        .chip.off {opacity: 0.45;}
        .badge {border-radius: 999px;padding: 2px 8px;font-size: 0.75rem;}
        .legend-bar {height: 12px;border-radius: 3px;width: 200px;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, actions: Optional[str] = None):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
            <div class="card-actions">{actions or ""}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def chip_row(labels: List[str], css: str = "chip") -> str:
    return "".join([f"<span class='{css}'>{txt}</span>" for txt in labels])


def render_page_header(title: str, breadcrumb: str, chips_html: str = ""):
    inject_base_styles()
    st.markdown(
        f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
        unsafe_allow_html=True,
    )
    if chips_html:
        st.markdown(f"<div class='chip-row'>{chips_html}</div>", unsafe_allow_html=True)


def stage_badge_html(stage: str) -> str:
    bg, fg = stage_badge_colors(stage)
    return f"<span class='badge' style='background:{bg};color:{fg}'>{stage}</span>"


def render_deal_detail(deal: Optional[dict]):
    if not deal:
        return
    d = deal_detail(deal)
    with card("Deal Details", d["id"]):
        c1, c2 = st.columns(2)
        with c1:
            st.markdown("**Deal Overview**")
            st.write(f"ID: {d['id']}")
            st.write(f"Date: {d['date']}")
            st.write(f"Type: {d['type']}")
            st.markdown("**Companies**")
            st.write(f"{d['licensee']['name']} (Licensee)")
            st.write(f"{d['licensor']['name']} (Licensor)")
        with c2:
            st.markdown("**Asset Details**")
            st.write(f"Asset: {d['asset']}")
            st.write(f"Modality: {d['modality']}")
            st.write(f"Indication: {d['indication']}")
            st.markdown(stage_badge_html(d["stage"]), unsafe_allow_html=True)
            st.markdown("**Financial Terms**")
            f1, f2, f3 = st.columns(3)
            f1.metric("Upfront", d["financials"]["upfront"])
            f2.metric("Milestones", d["financials"]["milestones"])
            f3.metric("Total Value", d["financials"]["total"])
        st.markdown("**Deal Summary**")
        st.write(d["summary"])
        if st.button("Close", key=f"close-{d['id']}"):
            close_deal_detail()
            st.rerun()


def close_deal_detail():
    st.session_state.pop("selected_deal", None)
    table_key = st.session_state.pop("selected_deal_table", None)
    if table_key:
        st.session_state.pop(table_key, None)


def render_deal_table(deals: pd.DataFrame, key: str, title: str = ""):
    """Sortable deal table; a selected row opens the deal detail panel."""
    spec: SortSpec = st.session_state.get(f"{key}_sort", SortSpec())
    if title:
        st.markdown(f"#### {title}")
    cols = st.columns(len(SORT_COLUMNS))
    for col, name in zip(cols, SORT_COLUMNS):
        arrow = ("▲" if spec.ascending else "▼") if spec.column == name else ""
        if col.button(f"{name.title()} {arrow}".strip(), key=f"{key}_hdr_{name}"):
            spec = next_sort(spec, name)
            st.session_state[f"{key}_sort"] = spec

    ordered = sort_deals(deals, spec)
    state_key = table_state_key(key, spec, ordered)
    event = st.dataframe(
        table_rows(ordered),
        hide_index=True,
        use_container_width=True,
        on_select="rerun",
        selection_mode="single-row",
        key=state_key,
    )
    rows = event.selection.rows if event is not None else []
    if rows:
        st.session_state["selected_deal"] = row_record(ordered, rows[0])
        st.session_state["selected_deal_table"] = state_key


# ---------- UI setup ----------
st.set_page_config(page_title="Oncology Deal Intelligence", layout="wide")
inject_base_styles()
st.title("Oncology Deal Intelligence")
st.caption("Licensing deal activity across indications, modalities and time.")

# a rerun stops the previous script run, so a superseded load is never applied
dataset = load_dataset()
if dataset.errors:
    logger.warning("dataset loaded with errors: %s", dataset.errors)
    st.warning("Some data could not be loaded: " + ", ".join(sorted(dataset.errors.values())))

deals = dataset.deals.copy()
indications = indication_names(dataset)
modalities = modality_names(dataset)

with st.sidebar:
    st.markdown("### Navigate")
    nav_choice = st.radio("Navigate", ["Dashboard", "Indication Heatmap", "Deal Explorer", "Company Profile", "About"], index=0)
    st.markdown("---")


# ---------- Pages ----------
def page_dashboard():
    overview = compute_overview(deals)
    render_page_header("Dashboard Overview", "Home / Dashboard", chip_row([f"Year: {overview['year'] or 'n/a'}"]))
    if deals.empty:
        st.info("No deal data available.")
        return

    c1, c2, c3 = st.columns(3)
    with c1:
        with card("Deals YTD"):
            st.metric("Deals YTD", overview["deals_ytd"])
            st.progress(int(overview["target_progress"]))
            q = overview["quarters"]
            st.caption(f"Q1: {q[0]}  Q2: {q[1]}  Q3: {q[2]}  Target: {overview['target']}")
    with c2:
        with card("Top Modalities"):
            st.metric("Top modality", overview["top_modality"] or "n/a")
            for row in overview["modality_breakdown"]:
                st.write(f"{row['modality']}: {row['count']}")
    with c3:
        with card("Hot Indications"):
            st.metric("Top indication", overview["top_indication"] or "n/a")
            for row in overview["indication_breakdown"]:
                st.write(f"{row['indication']}: {row['count']}")

    st.altair_chart(timeline_chart(overview["timeline"], overview["year"]), use_container_width=True)
    render_deal_table(pd.DataFrame(overview["recent"], columns=deals.columns), key="recent", title="Recent Deals")
    render_deal_detail(st.session_state.get("selected_deal"))


def open_drill(indication: str, modality: str):
    st.session_state["drill"] = (indication, modality)


def dispatch(*actions):
    st.session_state["viz_state"] = reduce_all(st.session_state.get("viz_state", VizState()), list(actions))


def page_heatmap():
    state: VizState = st.session_state.setdefault("viz_state", VizState())
    drill = st.session_state.get("drill")

    if drill:
        ind, mod = drill
        render_page_header("Filtered Deals", "Home / Indication Heatmap / Drill-through", chip_row([f"Indication: {ind}", f"Modality: {mod}"]))
        if st.button("← Back to Heatmap"):
            st.session_state.pop("drill", None)
            st.session_state.pop("viz_chart", None)
            close_deal_detail()
            st.rerun()
        subset = drill_through(deals, ind, mod)
        if subset.empty:
            st.info("No deals found for this combination.")
            return
        total = int(build_heatmap_grid(deals, indications, modalities)["count"].sum())
        st.caption(tooltip_for(ind, mod, len(subset), total)["text"])
        render_deal_table(subset, key="drill")
        render_deal_detail(st.session_state.get("selected_deal"))
        return

    render_page_header("Indication Heatmap", "Home / Indication Heatmap")
    with st.sidebar:
        st.markdown("### View")
        mode = st.radio("Layout", VIEW_MODES, index=VIEW_MODES.index(state.view_mode), horizontal=True)
        search = st.text_input("Search indications / modalities", state.search)
        hi_ind = st.multiselect("Highlight indications", indications, default=sorted(set(state.highlighted_indications) & set(indications)))
        hi_mod = st.multiselect("Highlight modalities", modalities, default=sorted(set(state.highlighted_modalities) & set(modalities)))
        normalized = st.toggle("Normalize to max", value=state.normalized)
        show_values = st.toggle("Show values", value=state.show_values)
        palette = st.selectbox("Palette", list(PALETTES), index=list(PALETTES).index(state.palette))
        zoom = st.slider("Zoom (%)", ZOOM_MIN, ZOOM_MAX, state.zoom, step=10)
        width = st.number_input("Canvas width (px)", min_value=400, max_value=3000, value=int(state.container_width), step=50)
        grouping_labels = {None: "None", "indication": "Indication category", "modality": "Modality category"}
        group_by = st.selectbox(
            "Group bubbles / treemap by",
            TREEMAP_GROUPINGS,
            index=TREEMAP_GROUPINGS.index(state.treemap_group_by),
            format_func=lambda g: grouping_labels[g],
        )
        b1, b2 = st.columns(2)
        clear = b1.button("Clear highlights")
        reset = b2.button("Reset view")

    if reset:
        dispatch(ResetView())
        st.rerun()
    actions = [
        SetViewMode(mode),
        SetSearch(search),
        SetNormalized(normalized),
        SetShowValues(show_values),
        SetPalette(palette),
        SetZoom(zoom),
        SetContainerWidth(width),
        SetTreemapGrouping(group_by),
    ]
    state = reduce_all(state, actions)
    state = reduce_all(state, highlight_actions(state, hi_ind, hi_mod))
    if clear:
        state = reduce(state, ClearHighlights())
    st.session_state["viz_state"] = state

    grid = build_heatmap_grid(deals, indications, modalities)
    frame = prepare_view(grid, state)
    if frame.empty:
        st.info("No indication or modality matches the search. Clear the search to see the full grid.")
        return

    emphasis = label_emphasis(frame)
    st.markdown(
        "<div class='chip-row'>"
        + chip_row([n for n, on in emphasis["indications"].items() if on and state.highlighted_indications], "chip on")
        + chip_row([n for n, on in emphasis["modalities"].items() if on and state.highlighted_modalities], "chip on")
        + "</div>",
        unsafe_allow_html=True,
    )

    chart = render_chart(frame)
    event = st.altair_chart(chart, use_container_width=False, on_select="rerun", selection_mode=chart_selections(state), key="viz_chart")
    selection = event.selection if event is not None else {}
    toggles = label_click_actions(selection)
    if toggles:
        dispatch(*toggles)
        st.session_state.pop("viz_chart", None)
        st.rerun()
    picked = selection.get(CELL_SELECTION) or []
    if picked:
        handle_cell_click(picked[0], open_drill)
        st.rerun()

    stops = legend_stops(state)
    st.markdown(
        f"<div class='legend-bar' style='background: linear-gradient(to right, {', '.join(stops)})'></div>"
        f"<small>0 – {'1.0' if state.normalized else frame.max_count}</small>",
        unsafe_allow_html=True,
    )
    st.caption(f"{frame.total} deals across {len(frame.indications)} indications × {len(frame.modalities)} modalities. Click a cell to view its deals, or an axis label to highlight it.")

    with st.expander("Export"):
        cols = st.columns(len(EXPORT_KINDS))
        for col, kind in zip(cols, EXPORT_KINDS):
            art = export_artifact(kind, frame, chart)
            col.download_button(f"Download {kind.upper()}", data=art.data, file_name=art.filename, mime=art.mime, key=f"export_{kind}")

    with st.expander("Data quality"):
        st.json(compute_diagnostics(dataset))


CHIP_FIELDS = {
    "Indication": ("indication", "f_ind"),
    "Modality": ("modality", "f_mod"),
    "Stage": ("stage", "f_stage"),
    "Company": ("companies", "f_comp"),
}


def page_explorer():
    opts = filter_options(deals)
    filters: DealFilters = st.session_state.get("deal_filters") or default_deal_filters(opts["max_total"])

    with st.sidebar:
        st.markdown("### Filters")
        if st.button("Reset filters"):
            filters = default_deal_filters(opts["max_total"])
            for k in ["f_ind", "f_mod", "f_stage", "f_comp", "f_search"]:
                st.session_state.pop(k, None)
        ind = st.multiselect("Indication", indications, default=list(filters.indication), key="f_ind")
        mod = st.multiselect("Modality", modalities, default=list(filters.modality), key="f_mod")
        stage = st.multiselect("Development Stage", opts["stages"], default=list(filters.stage), key="f_stage")
        max_total = max(opts["max_total"], 1.0)
        lo, hi = filters.value_range
        value_range = st.slider("Deal Value ($M)", 0.0, max_total, (float(lo), float(min(hi, max_total))), step=100.0)
        start, end = filters.date_range
        date_range = st.date_input("Date range", (pd.Timestamp(start).date(), pd.Timestamp(end).date()))
        comps = st.multiselect("Companies", opts["companies"], default=list(filters.companies), key="f_comp")

    search = st.text_input("Search deals, companies, assets...", filters.search, key="f_search")
    if isinstance(date_range, (list, tuple)) and len(date_range) == 2:
        date_range = (date_range[0].isoformat(), date_range[1].isoformat())
    else:
        date_range = filters.date_range
    filters = normalize_filters(
        {
            "search": search,
            "indication": ind,
            "modality": mod,
            "stage": stage,
            "value_range": value_range,
            "date_range": date_range,
            "companies": comps,
        },
        max_total=opts["max_total"],
    )
    st.session_state["deal_filters"] = filters

    render_page_header("Deal Explorer", "Home / Deal Explorer")
    if has_active_selection(filters):
        chips = active_filter_chips(filters)
        cols = st.columns(min(len(chips), 6))
        for i, (dim, val) in enumerate(chips):
            field_name, widget_key = CHIP_FIELDS[dim]
            if cols[i % len(cols)].button(f"{dim}: {val} ✕", key=f"chip_{dim}_{val}"):
                updated = toggle_value(getattr(filters, field_name), val)
                st.session_state["deal_filters"] = replace(filters, **{field_name: updated})
                st.session_state.pop(widget_key, None)
                st.rerun()

    results = apply_deal_filters(deals, filters)
    if results.empty:
        st.info("No deals match the current filters.")
        if st.button("Reset all filters"):
            st.session_state.pop("deal_filters", None)
            for k in ["f_ind", "f_mod", "f_stage", "f_comp", "f_search"]:
                st.session_state.pop(k, None)
            st.rerun()
        return
    st.caption(f"Showing {len(results)} of {len(deals)} deals")
    render_deal_table(results, key="explorer")
    render_deal_detail(st.session_state.get("selected_deal"))


def page_company():
    render_page_header("Company Profile", "Home / Company Profile")
    term = st.text_input("Search companies...", "")
    hits = search_companies(dataset.companies, term)
    if term and len(term.strip()) > 1:
        if not hits:
            st.caption("No results found")
        for hit in hits:
            if st.button(hit["name"], key=f"co_{hit['id']}"):
                st.session_state["company_slug"] = hit["slug"]

    profile = compute_company_profile(dataset.companies, deals, st.session_state.get("company_slug", ""))
    if not profile["found"]:
        st.info("Company not found. Please search for a company above.")
        return

    company = profile["company"]
    with card(company["name"], company.get("hq", "")):
        st.write(company.get("description", ""))
        st.markdown(f"[{company.get('website', '')}]({company.get('website', '')})")
        st.markdown("<div class='chip-row'>" + chip_row(company.get("focus") or []) + "</div>", unsafe_allow_html=True)
    c1, c2, c3 = st.columns(3)
    c1.metric("Total Deals", profile["total_deals"])
    c2.metric("As Licensor", profile["as_licensor"])
    c3.metric("As Licensee", profile["as_licensee"])
    render_deal_table(pd.DataFrame(profile["deals"], columns=deals.columns), key="company", title=f"{company['name']} Deals")
    render_deal_detail(st.session_state.get("selected_deal"))


def page_about():
    render_page_header("About", "Home / About")
    st.markdown(
        """
        This dashboard tracks oncology licensing and collaboration deals between companies.

        - **Dashboard** summarises the current year: deal count, leading modalities and indications, monthly activity.
        - **Indication Heatmap** cross-tabulates deals by indication and modality as a grid, bubble chart or treemap.
          Click any cell to list its deals.
        - **Deal Explorer** filters the full deal list by indication, modality, stage, value, date and company.
        - **Company Profile** shows a company's deals as licensee and licensor.

        Data is a static snapshot loaded from JSON documents; the same documents are served read-only under `/api/*`.
        """
    )


PAGES = {
    "Dashboard": page_dashboard,
    "Indication Heatmap": page_heatmap,
    "Deal Explorer": page_explorer,
    "Company Profile": page_company,
    "About": page_about,
}
PAGES[nav_choice]()
