import pytest

from willboxd_api.app import create_app
from willboxd_api.storage import JsonFileStore


@pytest.fixture
def data_file(tmp_path):
    return str(tmp_path / "willboxd.json")


@pytest.fixture
def store(data_file):
    return JsonFileStore(data_file)


@pytest.fixture
def make_app(data_file):
    """Build an app over the temporary data file with caching disabled unless overridden."""

    def _make_app(store=None, redis_client=None, **overrides):
        settings = {
            "TESTING": True,
            "STORAGE_BACKEND": "json",
            "DATA_FILE": data_file,
            "CACHE_ENABLED": False,
            "STATIC_DIR": None,
        }
        settings.update(overrides)
        return create_app(settings, store=store, redis_client=redis_client)

    return _make_app


@pytest.fixture
def app(make_app, store):
    return make_app(store=store)


@pytest.fixture
def client(app):
    return app.test_client()
