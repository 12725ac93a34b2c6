import json

import pytest
from fastapi.testclient import TestClient

from api.main import app
from core.data import DATA_DIR_ENV


@pytest.fixture
def client(monkeypatch, data_dir):
    monkeypatch.setenv(DATA_DIR_ENV, str(data_dir))
    return TestClient(app)


@pytest.mark.parametrize('name', ['deals', 'companies', 'indications', 'modalities'])
def test_endpoints_pass_documents_through(client, data_dir, name) -> None:
    expected = json.loads((data_dir / f'{name}.json').read_text(encoding='utf-8'))

    resp = client.get(f'/api/{name}')

    assert resp.status_code == 200
    assert resp.json() == expected


def test_extra_fields_are_not_stripped(client, data_dir) -> None:
    payload = [{'id': 'x1', 'name': 'ADC', 'internalNote': 'kept'}]
    (data_dir / 'modalities.json').write_text(json.dumps(payload), encoding='utf-8')

    assert client.get('/api/modalities').json() == payload


def test_missing_document_is_a_500(client, data_dir) -> None:
    (data_dir / 'companies.json').unlink()

    resp = client.get('/api/companies')

    assert resp.status_code == 500
    assert resp.json() == {'message': 'Error loading companies data'}


def test_malformed_document_is_a_500(client, data_dir) -> None:
    (data_dir / 'deals.json').write_text('[{"id": ', encoding='utf-8')

    resp = client.get('/api/deals')

    assert resp.status_code == 500
    assert resp.json() == {'message': 'Error loading deals data'}
