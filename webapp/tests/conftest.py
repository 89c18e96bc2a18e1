import io

import pytest
from PIL import Image

from diabetic_care.app import create_app
from diabetic_care.config.settings import TestConfig
from diabetic_care.services import cities


@pytest.fixture
def app(tmp_path):
    app = create_app({
        **{k: getattr(TestConfig, k) for k in dir(TestConfig) if k.isupper()},
        'DATABASE_PATH': str(tmp_path / 'test.db'),
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
        'UPLOAD_MAX_WIDTH': 400,
        'SECRET_KEY': 'test-secret',
    })
    cities.cache.clear()
    yield app
    cities.cache.clear()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(app):
    client = app.test_client()
    with client.session_transaction() as sess:
        sess['admin'] = True
    return client


@pytest.fixture(autouse=True)
def no_network(monkeypatch):
    """The registration form loads cities; never hit the real API from tests."""
    def fake_fetch(url, timeout):
        return [{'id': 1, 'name': 'تهران', 'slug': 'tehran'}]

    monkeypatch.setattr(cities, 'fetch_cities', fake_fetch)


@pytest.fixture
def make_image():
    """Factory for in-memory image files."""
    def _make(width=800, height=600, fmt='PNG', color=(200, 30, 30)):
        buf = io.BytesIO()
        Image.new('RGB', (width, height), color).save(buf, format=fmt)
        buf.seek(0)
        return buf

    return _make


@pytest.fixture
def patient_data():
    return {
        'first_name': 'علی',
        'last_name': 'رضایی',
        'national_id': '0499370899',
        'city': 'تهران',
        'blood_type': 'O+',
        'diabetes_type': 'type1',
        'emergency_contact': '۰۹۱۲۱۲۳۴۵۶۷',
    }
