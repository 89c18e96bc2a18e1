import pytest
import requests

from diabetic_care.services import cities
from diabetic_care.services.cities import fetch_cities, persian_sort_key

NAMES = ['تهران', 'يزد', 'گرگان', 'آبادان', 'شیراز', 'پاوه', 'لاهیجان', 'بابل', 'کرج', 'اصفهان']
SORTED = ['آبادان', 'اصفهان', 'بابل', 'پاوه', 'تهران', 'شیراز', 'کرج', 'گرگان', 'لاهیجان', 'يزد']


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f'{self.status_code} Error')

    def json(self):
        return self.payload


class CallLog(list):
    """Requested URLs; `state` holds the next fake response."""


def payload(names=NAMES):
    return {'cities': [
        {'id': i, 'name': name, 'slug': f'city-{i}', 'centroid': {}}
        for i, name in enumerate(names, start=1)
    ]}


@pytest.fixture
def calls(monkeypatch):
    """Route the real fetcher through a fake `requests.get` and record requested URLs."""
    calls = CallLog()
    state = {'response': FakeResponse(payload())}

    def fake_get(url, headers=None, timeout=None):
        calls.append(url)
        response = state['response']
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(cities, 'fetch_cities', fetch_cities)
    monkeypatch.setattr(cities.requests, 'get', fake_get)
    calls.state = state
    return calls


class TestPersianSort:
    def test_alphabetical_order(self):
        assert sorted(NAMES, key=persian_sort_key) == SORTED

    def test_arabic_kaf_sorts_with_persian_kaf(self):
        assert sorted(['گرگان', 'كرمان', 'قم'], key=persian_sort_key) == ['قم', 'كرمان', 'گرگان']

    def test_prefix_sorts_first(self):
        assert sorted(['تهرانسر', 'تهران'], key=persian_sort_key) == ['تهران', 'تهرانسر']


class TestFetchCities:
    def test_maps_and_sorts(self, monkeypatch):
        monkeypatch.setattr(cities.requests, 'get', lambda url, headers=None, timeout=None: FakeResponse(payload()))
        result = fetch_cities('https://api.example.ir/places/cities', 5)
        assert [c['name'] for c in result] == SORTED
        assert set(result[0]) == {'id', 'name', 'slug'}

    def test_http_error(self, monkeypatch):
        monkeypatch.setattr(cities.requests, 'get', lambda url, headers=None, timeout=None: FakeResponse({}, 503))
        with pytest.raises(requests.HTTPError):
            fetch_cities('https://api.example.ir/places/cities', 5)

    def test_missing_cities_key(self, monkeypatch):
        monkeypatch.setattr(cities.requests, 'get', lambda url, headers=None, timeout=None: FakeResponse({}))
        assert fetch_cities('https://api.example.ir/places/cities', 5) == []


class TestCitiesEndpoint:
    def test_returns_sorted_list(self, client, calls):
        response = client.get('/api/cities')
        assert response.status_code == 200
        assert [c['name'] for c in response.get_json()] == SORTED

    def test_list_is_cached(self, app, client, calls):
        client.get('/api/cities')
        client.get('/api/cities')
        assert calls == [app.config['CITIES_API_URL']]

    def test_expired_cache_refetches(self, app, client, calls):
        app.config['CITIES_CACHE_SECONDS'] = 0
        client.get('/api/cities')
        client.get('/api/cities')
        assert len(calls) == 2

    def test_failure_without_cache(self, client, calls):
        calls.state['response'] = requests.ConnectionError('offline')
        response = client.get('/api/cities')
        assert response.status_code == 500
        assert response.get_json() == {'error': 'خطا در دریافت لیست شهرها'}

    def test_stale_list_served_on_failure(self, app, client, calls):
        first = client.get('/api/cities').get_json()
        app.config['CITIES_CACHE_SECONDS'] = 0
        calls.state['response'] = requests.Timeout('slow')
        response = client.get('/api/cities')
        assert response.status_code == 200
        assert response.get_json() == first

    def test_malformed_payload(self, client, calls):
        calls.state['response'] = FakeResponse({'cities': [{'name': 'تهران'}]})
        assert client.get('/api/cities').status_code == 500

    def test_registration_form_without_cities(self, admin_client, calls):
        calls.state['response'] = requests.ConnectionError('offline')
        assert admin_client.get('/admin/patients/new').status_code == 200
