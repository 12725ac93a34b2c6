import json

import pytest

from core.data import companies_frame, deals_frame


EXAMPLE_DEALS = [
    {
        'id': 'D1',
        'date': '2025-01-15',
        'companyA': 'Aurelia Pharma',
        'companyB': 'Elara Medicines',
        'asset': 'AUR-101',
        'modality': 'ADC',
        'indication': 'NSCLC',
        'stage': 'Phase 2',
        'upfront': 100,
        'milestones': 400,
        'total': 500,
    },
    {
        'id': 'D2',
        'date': '2025-01-20',
        'companyA': 'Norvik Pharma',
        'companyB': 'Aurelia Pharma',
        'asset': 'NRV-7',
        'modality': 'mAb',
        'indication': 'NSCLC',
        'stage': 'Phase 1',
        'upfront': 50,
        'milestones': 250,
        'total': 300,
    },
]

COMPANIES = [
    {'id': 'c1', 'name': 'Aurelia Pharma', 'hq': 'Boston, MA', 'focus': ['ADC'], 'description': 'ADC developer', 'website': 'https://aurelia.example'},
    {'id': 'c2', 'name': 'Elara Medicines', 'hq': 'Basel', 'focus': ['Oncology'], 'description': '', 'website': ''},
    {'id': 'c3', 'name': 'Norvik Pharma', 'hq': 'Oslo', 'focus': [], 'description': '', 'website': ''},
]

INDICATIONS = [{'id': 'i1', 'name': 'NSCLC'}, {'id': 'i2', 'name': 'TNBC'}]
MODALITIES = [{'id': 'm1', 'name': 'ADC'}, {'id': 'm2', 'name': 'mAb'}]


@pytest.fixture
def example_deals():
    return deals_frame(EXAMPLE_DEALS)


@pytest.fixture
def data_dir(tmp_path):
    payloads = {
        'deals.json': EXAMPLE_DEALS,
        'companies.json': COMPANIES,
        'indications.json': INDICATIONS,
        'modalities.json': MODALITIES,
    }
    for filename, payload in payloads.items():
        (tmp_path / filename).write_text(json.dumps(payload), encoding='utf-8')
    return tmp_path


@pytest.fixture
def companies():
    return companies_frame(COMPANIES)
