import pytest

from core.aggregation import build_heatmap_grid
from core.viz import (
    DIMMED_OPACITY,
    EMPTY_COLOR,
    EMPTY_STROKE,
    MIN_CANVAS_WIDTH,
    MIN_CELL_SIZE,
    ZOOM_MAX,
    ZOOM_MIN,
    ClearHighlights,
    ColorScale,
    ResetView,
    SetContainerWidth,
    SetNormalized,
    SetPalette,
    SetSearch,
    SetTreemapGrouping,
    SetViewMode,
    SetZoom,
    ToggleIndicationHighlight,
    ToggleModalityHighlight,
    VizState,
    cell_value,
    compute_geometry,
    INDICATION_LABEL_SELECTION,
    MODALITY_LABEL_SELECTION,
    handle_cell_click,
    highlight_actions,
    label_click_actions,
    interpolate_color,
    label_emphasis,
    percent_of_total,
    prepare_view,
    reduce,
    reduce_all,
    tooltip_for,
)


def _grid(example_deals):
    return build_heatmap_grid(example_deals, ['NSCLC', 'TNBC'], ['ADC', 'mAb'])


def test_initial_state_is_grid() -> None:
    state = VizState()

    assert state.view_mode == 'grid'
    assert state.search == ''
    assert not state.normalized


def test_view_mode_transitions_only_on_explicit_action() -> None:
    state = VizState()

    bubble = reduce(state, SetViewMode('bubble'))
    treemap = reduce(bubble, SetViewMode('treemap'))

    assert state.view_mode == 'grid'
    assert bubble.view_mode == 'bubble'
    assert treemap.view_mode == 'treemap'
    assert reduce(treemap, SetSearch('adc')).view_mode == 'treemap'


def test_invalid_actions_are_rejected() -> None:
    state = VizState()

    with pytest.raises(ValueError):
        reduce(state, SetViewMode('pie'))
    with pytest.raises(ValueError):
        reduce(state, SetPalette('rainbow'))
    with pytest.raises(ValueError):
        reduce(state, SetTreemapGrouping('stage'))
    with pytest.raises(TypeError):
        reduce(state, 'grid')


def test_zoom_is_clamped() -> None:
    state = VizState()

    assert reduce(state, SetZoom(500)).zoom == ZOOM_MAX
    assert reduce(state, SetZoom(10)).zoom == ZOOM_MIN
    assert reduce(state, SetZoom(125)).zoom == 125


def test_highlight_toggles_and_clear() -> None:
    state = reduce_all(
        VizState(),
        [ToggleIndicationHighlight('NSCLC'), ToggleModalityHighlight('ADC'), ToggleIndicationHighlight('TNBC')],
    )
    assert state.highlighted_indications == frozenset({'NSCLC', 'TNBC'})

    state = reduce(state, ToggleIndicationHighlight('NSCLC'))
    assert state.highlighted_indications == frozenset({'TNBC'})

    cleared = reduce(state, ClearHighlights())
    assert not cleared.highlighted_indications
    assert not cleared.highlighted_modalities


def test_highlight_actions_sync_with_selection() -> None:
    state = reduce(VizState(), ToggleIndicationHighlight('NSCLC'))

    actions = highlight_actions(state, ['TNBC'], ['ADC'])

    assert actions == [ToggleIndicationHighlight('NSCLC'), ToggleIndicationHighlight('TNBC'), ToggleModalityHighlight('ADC')]
    synced = reduce_all(state, actions)
    assert synced.highlighted_indications == frozenset({'TNBC'})
    assert synced.highlighted_modalities == frozenset({'ADC'})


def test_reset_view_keeps_container_width() -> None:
    state = reduce_all(VizState(), [SetContainerWidth(1200), SetViewMode('bubble'), SetNormalized(True)])

    reset = reduce(state, ResetView())

    assert reset == VizState(container_width=1200)


def test_percent_of_total_handles_zero_total() -> None:
    assert percent_of_total(0, 0) == 0.0
    assert percent_of_total(1, 4) == 25.0
    assert tooltip_for('NSCLC', 'ADC', 1, 4)['text'] == 'NSCLC × ADC: 1 deals (25.0% of total)'


def test_colour_scale_contract() -> None:
    scale = ColorScale(max_count=5)

    assert scale.color_for(0) == EMPTY_COLOR
    assert scale.color_for(5) == '#a92269'
    assert scale.color_for(1) != scale.color_for(4)
    assert ColorScale(max_count=0).domain_max == 10.0
    assert ColorScale(max_count=5, normalized=True).domain_max == 1.0


def test_interpolation_endpoints() -> None:
    stops = ((0, 0, 0), (255, 255, 255))

    assert interpolate_color(0.0, stops) == '#000000'
    assert interpolate_color(1.0, stops) == '#ffffff'
    assert interpolate_color(2.0, stops) == '#ffffff'
    with pytest.raises(ValueError):
        interpolate_color(0.5, ())


def test_normalized_value() -> None:
    assert cell_value(2, 4, True) == 0.5
    assert cell_value(2, 0, True) == 0.0
    assert cell_value(2, 4, False) == 2.0


def test_geometry_floors() -> None:
    small = compute_geometry(14, 8, 300)
    assert small.width >= MIN_CANVAS_WIDTH
    assert small.cell_size == 40.0

    crowded = compute_geometry(5, 100, 800, zoom=50)
    assert crowded.cell_size == MIN_CELL_SIZE
    assert crowded.width >= crowded.plot_width

    zoomed = compute_geometry(14, 8, 800, zoom=50)
    assert zoomed.cell_size == 20.0


def test_prepare_view_colours_and_percentages(example_deals) -> None:
    frame = prepare_view(_grid(example_deals), VizState())
    cells = frame.cells.set_index(['indication', 'modality'])

    assert frame.total == 2
    assert frame.max_count == 1
    assert cells.loc[('NSCLC', 'ADC'), 'percent'] == 50.0
    assert cells.loc[('TNBC', 'ADC'), 'color'] == EMPTY_COLOR
    assert cells.loc[('TNBC', 'ADC'), 'stroke'] == EMPTY_STROKE
    assert bool(cells.loc[('TNBC', 'mAb'), 'empty'])
    assert (frame.cells['opacity'] == 1.0).all()


def test_prepare_view_search_and_highlight(example_deals) -> None:
    state = reduce_all(VizState(), [SetSearch('TNBC')])
    frame = prepare_view(_grid(example_deals), state)

    assert frame.indications == ['TNBC']
    assert frame.total == 0
    assert (frame.cells['color'] == EMPTY_COLOR).all()

    highlighted = prepare_view(_grid(example_deals), reduce(VizState(), ToggleIndicationHighlight('NSCLC')))
    dimmed = highlighted.cells[highlighted.cells['indication'] == 'TNBC']
    assert (dimmed['opacity'] == DIMMED_OPACITY).all()
    assert label_emphasis(highlighted)['indications'] == {'NSCLC': True, 'TNBC': False}


def test_prepare_view_with_no_match_is_empty(example_deals) -> None:
    frame = prepare_view(_grid(example_deals), VizState(search='zzz'))

    assert frame.empty
    assert frame.total == 0


def test_empty_cell_click_still_drills() -> None:
    clicked = []

    handle_cell_click({'indication': 'TNBC', 'modality': 'ADC', 'count': 0}, lambda i, m: clicked.append((i, m)))

    assert clicked == [('TNBC', 'ADC')]


def test_state_exposes_heatmap_filters() -> None:
    state = reduce_all(VizState(), [SetSearch('adc'), ToggleModalityHighlight('ADC')])

    filters = state.filters

    assert filters.search == 'adc'
    assert filters.highlighted_modalities == frozenset({'ADC'})
    assert state.to_dict()['highlighted_modalities'] == ['ADC']


def test_axis_label_clicks_toggle_highlights() -> None:
    selection = {
        INDICATION_LABEL_SELECTION: [{'indication': 'NSCLC'}],
        MODALITY_LABEL_SELECTION: [{'modality': 'ADC'}],
        'cell': [{'indication': 'TNBC', 'modality': 'mAb'}],
    }

    actions = label_click_actions(selection)
    state = reduce_all(VizState(), actions)

    assert actions == [ToggleIndicationHighlight('NSCLC'), ToggleModalityHighlight('ADC')]
    assert state.highlighted_indications == frozenset({'NSCLC'})
    assert reduce_all(state, label_click_actions({INDICATION_LABEL_SELECTION: [{'indication': 'NSCLC'}]})).highlighted_indications == frozenset()
    assert label_click_actions({}) == []
