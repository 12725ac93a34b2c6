from core.aggregation import build_heatmap_grid, count_by, drill_through, grid_cells
from core.data import deals_frame


def test_grid_matches_worked_example(example_deals) -> None:
    grid = build_heatmap_grid(example_deals, ['NSCLC', 'TNBC'], ['ADC', 'mAb'])

    assert grid.to_dict(orient='records') == [
        {'indication': 'NSCLC', 'modality': 'ADC', 'count': 1},
        {'indication': 'NSCLC', 'modality': 'mAb', 'count': 1},
        {'indication': 'TNBC', 'modality': 'ADC', 'count': 0},
        {'indication': 'TNBC', 'modality': 'mAb', 'count': 0},
    ]
    assert grid['count'].sum() == 2


def test_grid_is_dense_and_counts_sum_to_matched_deals() -> None:
    deals = deals_frame(
        [
            {'id': 'a', 'indication': 'AML', 'modality': 'ADC'},
            {'id': 'b', 'indication': 'AML', 'modality': 'ADC'},
            {'id': 'c', 'indication': 'MM', 'modality': 'Bispecific'},
            {'id': 'd', 'indication': 'Unlisted', 'modality': 'ADC'},
            {'id': 'e', 'indication': 'aml', 'modality': 'ADC'},
        ]
    )
    indications = ['AML', 'MM', 'GBM']
    modalities = ['ADC', 'Bispecific']

    grid = build_heatmap_grid(deals, indications, modalities)

    assert len(grid) == len(indications) * len(modalities)
    # unlisted and wrong-case names contribute nothing
    assert grid['count'].sum() == 3
    assert grid.loc[(grid['indication'] == 'AML') & (grid['modality'] == 'ADC'), 'count'].item() == 2
    assert (grid['count'] >= 0).all()


def test_grid_with_no_deals_is_all_zero() -> None:
    grid = build_heatmap_grid(deals_frame([]), ['NSCLC'], ['ADC', 'mAb'])

    assert grid['count'].tolist() == [0, 0]


def test_grid_with_empty_axis_is_empty(example_deals) -> None:
    assert build_heatmap_grid(example_deals, [], ['ADC']).empty
    assert build_heatmap_grid(example_deals, ['NSCLC'], []).empty


def test_grid_keeps_duplicate_axis_names(example_deals) -> None:
    grid = build_heatmap_grid(example_deals, ['NSCLC', 'NSCLC'], ['ADC'])

    assert grid['indication'].tolist() == ['NSCLC', 'NSCLC']
    assert grid['count'].tolist() == [1, 1]


def test_grid_cells_are_typed(example_deals) -> None:
    cells = grid_cells(build_heatmap_grid(example_deals, ['NSCLC'], ['ADC']))

    assert len(cells) == 1
    assert cells[0].indication == 'NSCLC'
    assert cells[0].count == 1


def test_drill_through_returns_exact_pair(example_deals) -> None:
    assert drill_through(example_deals, 'NSCLC', 'ADC')['id'].tolist() == ['D1']
    assert drill_through(example_deals, 'TNBC', 'ADC').empty
    assert drill_through(example_deals, 'nsclc', 'ADC').empty


def test_count_by_orders_highest_first() -> None:
    deals = deals_frame(
        [
            {'id': '1', 'modality': 'mAb'},
            {'id': '2', 'modality': 'ADC'},
            {'id': '3', 'modality': 'ADC'},
        ]
    )

    counts = count_by(deals, 'modality')

    assert counts.index.tolist() == ['ADC', 'mAb']
    assert counts.tolist() == [2, 1]
    assert count_by(deals_frame([]), 'modality').empty
