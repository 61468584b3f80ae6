"""
Tests for application wiring: configuration, health, static files and errors.
"""

from unittest.mock import MagicMock

import pytest
import redis

from willboxd_api.cache import ListingCache, build_cache_key
from willboxd_api.config import parse_boolean, parse_origins, validate_settings
from willboxd_api.errors import StorageError


@pytest.mark.parametrize("value, expected", [
    ("true", True),
    ("YES", True),
    ("1", True),
    ("off", False),
    ("0", False),
    ("", False),
    (None, False),
])
def test_parse_boolean(value, expected):
    assert parse_boolean(value) is expected


def test_parse_boolean_default_for_empty():
    assert parse_boolean("  ", default=True) is True


def test_parse_origins():
    assert parse_origins(None) == "*"
    assert parse_origins("*") == "*"
    assert parse_origins("http://a.test, http://b.test") == ["http://a.test", "http://b.test"]


def test_validate_settings_rejects_unknown_values():
    with pytest.raises(ValueError):
        validate_settings({"STORAGE_BACKEND": "sqlite", "VOTER_IDENTITY": "address"})
    with pytest.raises(ValueError):
        validate_settings({"STORAGE_BACKEND": "json", "VOTER_IDENTITY": "cookie"})


def test_create_app_rejects_unknown_backend(make_app):
    with pytest.raises(ValueError):
        make_app(STORAGE_BACKEND="sqlite")


def test_create_app_builds_json_store(make_app, data_file):
    app = make_app()

    assert app.extensions["willboxd"]["store"].path.endswith("willboxd.json")


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.get_json() == {"status": "ok", "storage": "json"}


def test_health_unavailable(make_app):
    store = MagicMock()
    store.ping.side_effect = StorageError("ping", "down")
    client = make_app(store=store).test_client()

    response = client.get("/health")

    assert response.status_code == 503
    assert response.get_json() == {"status": "unavailable"}


def test_unknown_api_route_returns_json(client):
    response = client.get("/api/unknown")

    assert response.status_code == 404
    assert response.get_json() == {"error": "Not found"}


def test_cors_headers(client):
    response = client.get("/api/comments", headers={"Origin": "http://example.test"})

    assert response.headers["Access-Control-Allow-Origin"] in ("*", "http://example.test")


def test_static_files_served(make_app, store, tmp_path):
    site = tmp_path / "site"
    site.mkdir()
    (site / "index.html").write_text("<h1>Willboxd</h1>")
    (site / "app.js").write_text("console.log('hi');")
    client = make_app(store=store, STATIC_DIR=str(site)).test_client()

    assert b"Willboxd" in client.get("/").data
    assert client.get("/app.js").status_code == 200
    assert client.get("/missing.css").status_code == 404
    assert client.get("/api/comments").get_json() == []


def test_build_cache_key():
    assert build_cache_key("comments", "Alien", None) == "comments:Alien:"


def test_cache_disabled_is_noop():
    cache = ListingCache(None)

    cache.set("key", [1])
    cache.invalidate("key")
    assert cache.get("key") is None
    assert cache.enabled is False


def test_cache_errors_are_misses():
    redis_client = MagicMock()
    redis_client.get.side_effect = redis.ConnectionError("down")
    redis_client.setex.side_effect = redis.ConnectionError("down")
    redis_client.delete.side_effect = redis.ConnectionError("down")
    cache = ListingCache(redis_client, ttl_seconds=30)

    assert cache.get("comments") is None
    cache.set("comments", [])
    cache.invalidate("comments")


def test_redis_outage_does_not_fail_requests(make_app, store):
    redis_client = MagicMock()
    redis_client.get.side_effect = redis.ConnectionError("down")
    redis_client.delete.side_effect = redis.ConnectionError("down")
    client = make_app(store=store, redis_client=redis_client, CACHE_ENABLED=True).test_client()

    assert client.post("/api/guestbook", json={"name": "a", "message": "b"}).status_code == 200
    assert len(client.get("/api/guestbook").get_json()) == 1


def test_unreadable_cache_entry_is_a_miss():
    redis_client = MagicMock()
    redis_client.get.return_value = b"{not json"
    cache = ListingCache(redis_client)

    assert cache.get("comments") is None


def test_unreadable_cache_entry_does_not_fail_listing(make_app, store):
    redis_client = MagicMock()
    redis_client.get.return_value = b"\xff{broken"
    client = make_app(store=store, redis_client=redis_client, CACHE_ENABLED=True).test_client()

    response = client.get("/api/guestbook")

    assert response.status_code == 200
    assert response.get_json() == []
