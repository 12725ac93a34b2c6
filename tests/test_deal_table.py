import pytest

from core.data import deals_frame
from core.deal_detail import deal_detail
from core.deal_table import (
    SortSpec,
    format_date,
    format_money,
    next_sort,
    row_record,
    sort_deals,
    stage_badge,
    table_rows,
    table_state_key,
)


def _deals():
    return deals_frame(
        [
            {'id': 'D1', 'date': '2024-05-01', 'companyA': 'beta Bio', 'companyB': 'X', 'asset': 'B-1', 'indication': 'AML', 'stage': 'Phase 1', 'total': 700},
            {'id': 'D2', 'date': '2025-01-10', 'companyA': 'Alpha', 'companyB': 'Y', 'asset': 'A-1', 'indication': 'MM', 'stage': 'Phase 2', 'total': 1200},
            {'id': 'D3', 'date': '2024-11-20', 'companyA': 'Alpha', 'companyB': 'Z', 'asset': 'A-2', 'indication': 'AML', 'stage': 'Phase 3', 'total': 90.5},
        ]
    )


def test_next_sort_flips_then_switches() -> None:
    spec = SortSpec()
    assert (spec.column, spec.direction) == ('date', 'desc')

    flipped = next_sort(spec, 'date')
    assert flipped == SortSpec('date', 'asc')
    assert next_sort(flipped, 'date') == SortSpec('date', 'desc')
    assert next_sort(flipped, 'total') == SortSpec('total', 'desc')

    with pytest.raises(ValueError):
        next_sort(spec, 'upfront')


def test_sort_by_total_is_numeric_and_reversible() -> None:
    deals = _deals()

    desc = sort_deals(deals, SortSpec('total', 'desc'))['id'].tolist()
    asc = sort_deals(deals, SortSpec('total', 'asc'))['id'].tolist()

    assert desc == ['D2', 'D1', 'D3']
    assert asc == list(reversed(desc))


def test_sort_by_date_default_is_newest_first() -> None:
    assert sort_deals(_deals(), SortSpec())['id'].tolist() == ['D2', 'D3', 'D1']


def test_text_sort_is_case_insensitive_and_stable() -> None:
    deals = _deals()

    asc = sort_deals(deals, SortSpec('companies', 'asc'))['id'].tolist()
    desc = sort_deals(deals, SortSpec('companies', 'desc'))['id'].tolist()

    # the two Alpha deals keep their input order in both directions
    assert asc == ['D2', 'D3', 'D1']
    assert desc == ['D1', 'D2', 'D3']


def test_sort_does_not_mutate_input() -> None:
    deals = _deals()

    sort_deals(deals, SortSpec('total', 'asc'))

    assert deals['id'].tolist() == ['D1', 'D2', 'D3']


def test_formatting_helpers() -> None:
    assert format_date('2025-03-27') == 'Mar 27, 2025'
    assert format_date('2025-03-27', long=True) == 'March 27, 2025'
    assert format_date('not a date') == 'not a date'
    assert format_money(1500) == '$1,500'
    assert format_money(90.5) == '$90.5'


def test_table_rows_and_row_record() -> None:
    deals = _deals()

    rows = table_rows(deals)

    assert rows.columns.tolist() == ['Date', 'Companies', 'Asset', 'Indication', 'Stage', 'Total Value ($M)']
    assert rows.loc[0, 'Companies'] == 'beta Bio → X'
    assert row_record(deals, 1)['id'] == 'D2'
    assert row_record(deals, 3) is None
    assert table_rows(deals.iloc[0:0]).empty


def test_stage_badges() -> None:
    assert stage_badge('Phase 3') == 'primary'
    assert stage_badge('Approved') == 'success'
    assert stage_badge('Unknown') == 'neutral'


def test_deal_detail_view_model() -> None:
    record = row_record(_deals(), 1)

    detail = deal_detail(record)

    assert detail['id'] == 'D2'
    assert detail['date'] == 'January 10, 2025'
    assert detail['licensee']['name'] == 'Alpha'
    assert detail['licensor']['name'] == 'Y'
    assert detail['financials']['total'] == '$1,200M'
    assert 'Alpha' in detail['summary']


def test_table_state_key_follows_row_order() -> None:
    deals = _deals()
    by_date = sort_deals(deals, SortSpec())
    by_total = sort_deals(deals, SortSpec('total', 'asc'))

    key = table_state_key('drill', SortSpec(), by_date)

    assert key == table_state_key('drill', SortSpec(), sort_deals(deals, SortSpec()))
    assert key.startswith('drill_table_date_desc_')
    assert key != table_state_key('drill', SortSpec('total', 'asc'), by_total)
    assert key != table_state_key('drill', SortSpec(), by_date.iloc[1:])
