"""
HTTP tests for the /api/ratings endpoints.
"""

from unittest.mock import MagicMock

from willboxd_api.errors import StorageError


def post_rating(client, item_id, rating, address="127.0.0.1", headers=None):
    return client.post(
        "/api/ratings",
        json={"item_id": item_id, "rating": rating},
        environ_overrides={"REMOTE_ADDR": address},
        headers=headers,
    )


def test_get_ratings_for_unrated_item(client):
    response = client.get("/api/ratings/unknown-item")

    assert response.status_code == 200
    assert response.get_json() == {"total": 0, "sum": 0, "average": 0}


def test_post_rating_returns_aggregate(client):
    response = post_rating(client, "Blade Runner", 4)

    assert response.status_code == 200
    assert response.get_json() == {"total": 1, "sum": 4, "average": 4.0}


def test_ratings_from_different_addresses(client):
    post_rating(client, "Blade Runner", 4, address="10.0.0.1")
    response = post_rating(client, "Blade Runner", 5, address="10.0.0.2")

    assert response.get_json() == {"total": 2, "sum": 9, "average": 4.5}
    assert client.get("/api/ratings/Blade%20Runner").get_json() == {"total": 2, "sum": 9, "average": 4.5}


def test_repeat_vote_from_same_address_overwrites(client):
    post_rating(client, "Blade Runner", 3)
    response = post_rating(client, "Blade Runner", 5)

    assert response.get_json() == {"total": 1, "sum": 5, "average": 5.0}


def test_url_encoded_item_id(client):
    post_rating(client, "Amélie / Director Cut", 5)

    response = client.get("/api/ratings/Am%C3%A9lie%20%2F%20Director%20Cut")

    assert response.get_json()["total"] == 1


def test_item_id_is_trimmed(client):
    post_rating(client, "  Heat  ", 2)
    assert client.get("/api/ratings/Heat").get_json()["total"] == 1


def test_rating_as_digit_string(client):
    response = post_rating(client, "Heat", "3")
    assert response.get_json()["sum"] == 3


def test_out_of_range_rating_is_rejected(client):
    for rating in (0, 6):
        response = post_rating(client, "Heat", rating)
        assert response.status_code == 400
        assert "error" in response.get_json()

    assert client.get("/api/ratings/Heat").get_json()["total"] == 0


def test_non_integer_rating_is_rejected(client):
    for rating in (4.5, True, "five", None, "²", "9" * 5000):
        response = post_rating(client, "Heat", rating)
        assert response.status_code == 400


def test_missing_fields_are_rejected(client):
    assert client.post("/api/ratings", json={"rating": 3}).status_code == 400
    assert client.post("/api/ratings", json={"item_id": "Heat"}).status_code == 400
    assert client.post("/api/ratings", json={"item_id": "   ", "rating": 3}).status_code == 400
    assert client.post("/api/ratings", json=[1, 2]).status_code == 400
    assert client.post("/api/ratings", data="not json", content_type="application/json").status_code == 400


def test_storage_failure_returns_500(make_app):
    store = MagicMock()
    store.find_many.side_effect = StorageError("find_many", "connection refused")
    store.upsert_one.side_effect = StorageError("upsert_one", "connection refused")
    client = make_app(store=store).test_client()

    get_response = client.get("/api/ratings/Heat")
    post_response = post_rating(client, "Heat", 3)

    assert get_response.status_code == 500
    assert get_response.get_json() == {"error": "Storage operation failed"}
    assert post_response.status_code == 500
    assert "connection refused" not in post_response.get_data(as_text=True)


def test_unlimited_votes_when_identity_disabled(make_app, store):
    client = make_app(store=store, VOTER_IDENTITY="none").test_client()

    post_rating(client, "Heat", 1)
    response = post_rating(client, "Heat", 3)

    assert response.get_json() == {"total": 2, "sum": 4, "average": 2.0}


def test_forwarded_address_used_behind_proxy(make_app, store):
    client = make_app(store=store, TRUST_PROXY_HEADERS=True).test_client()

    post_rating(client, "Heat", 1, headers={"X-Forwarded-For": "203.0.113.1"})
    response = post_rating(client, "Heat", 5, headers={"X-Forwarded-For": "203.0.113.2"})

    assert response.get_json()["total"] == 2


def test_item_id_is_trimmed_on_lookup(client):
    post_rating(client, "  Heat  ", 2)

    response = client.get("/api/ratings/%20%20Heat%20%20")

    assert response.get_json() == {"total": 1, "sum": 2, "average": 2.0}
