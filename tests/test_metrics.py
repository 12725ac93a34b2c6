from core.data import companies_frame, deals_frame
from core.metrics_company import compute_company_profile, search_companies
from core.metrics_overview import DEALS_TARGET, compute_overview, latest_year, timeline_points


def _deals():
    return deals_frame(
        [
            {'id': 'D5', 'date': '2025-03-02', 'companyA': 'Aurelia Pharma', 'companyB': 'Norvik Pharma', 'modality': 'ADC', 'indication': 'NSCLC'},
            {'id': 'D4', 'date': '2025-01-20', 'companyA': 'Norvik Pharma', 'companyB': 'Aurelia Pharma', 'modality': 'ADC', 'indication': 'TNBC'},
            {'id': 'D3', 'date': '2025-01-05', 'companyA': 'Elara Medicines', 'companyB': 'Aurelia Pharma', 'modality': 'mAb', 'indication': 'NSCLC'},
            {'id': 'D2', 'date': '2024-12-11', 'companyA': 'Elara Medicines', 'companyB': 'Norvik Pharma', 'modality': 'Cell Therapy', 'indication': 'AML'},
            {'id': 'D1', 'date': '2024-06-30', 'companyA': 'Norvik Pharma', 'companyB': 'Elara Medicines', 'modality': 'mAb', 'indication': 'MM'},
        ]
    )


def test_timeline_has_twelve_months() -> None:
    points = timeline_points(_deals(), 2025)

    assert len(points) == 12
    assert points[0] == {'month': 'Jan', 'count': 2}
    assert points[2] == {'month': 'Mar', 'count': 1}
    assert sum(p['count'] for p in points) == 3


def test_overview_uses_latest_year() -> None:
    deals = _deals()

    overview = compute_overview(deals)

    assert latest_year(deals) == 2025
    assert overview['year'] == 2025
    assert overview['deals_ytd'] == 3
    assert overview['quarters'] == [3, 0, 0, 0]
    assert overview['target'] == DEALS_TARGET
    assert overview['top_modality'] == 'ADC'
    assert overview['top_indication'] == 'NSCLC'
    assert overview['modality_breakdown'][0] == {'modality': 'ADC', 'count': 2}
    assert [d['id'] for d in overview['recent']] == ['D5', 'D4', 'D3', 'D2', 'D1']


def test_overview_for_explicit_year() -> None:
    overview = compute_overview(_deals(), year=2024)

    assert overview['deals_ytd'] == 2
    assert overview['quarters'] == [0, 1, 0, 1]


def test_overview_of_nothing() -> None:
    overview = compute_overview(deals_frame([]))

    assert overview['year'] is None
    assert overview['deals_ytd'] == 0
    assert overview['timeline'] == []


def test_company_search_needs_two_characters(companies) -> None:
    assert search_companies(companies, 'a') == []
    hits = search_companies(companies, 'pharma')
    assert [h['name'] for h in hits] == ['Aurelia Pharma', 'Norvik Pharma']
    assert hits[0]['slug'] == 'aurelia pharma'


def test_company_profile_counts_roles(companies) -> None:
    profile = compute_company_profile(companies, _deals(), 'aurelia pharma')

    assert profile['found']
    assert profile['company']['hq'] == 'Boston, MA'
    assert profile['total_deals'] == 3
    assert profile['as_licensee'] == 1
    assert profile['as_licensor'] == 2


def test_company_profile_not_found(companies) -> None:
    profile = compute_company_profile(companies, _deals(), 'no such co')

    assert not profile['found']
    assert profile['deals'] == []
    assert not compute_company_profile(companies_frame([]), _deals(), 'aurelia pharma')['found']
