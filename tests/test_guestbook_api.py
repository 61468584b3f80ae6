"""
HTTP tests for the /api/guestbook endpoints.
"""

from willboxd_api.api_guestbook.guestbook_functions import GUESTBOOK_COLLECTION


def test_sign_guestbook(client):
    response = client.post("/api/guestbook", json={"name": " Will ", "message": " Lovely site! "})
    message = response.get_json()

    assert response.status_code == 200
    assert message["name"] == "Will"
    assert message["message"] == "Lovely site!"
    assert message["id"]
    assert client.get("/api/guestbook").get_json() == [message]


def test_messages_newest_first(client, store):
    store.insert_one(GUESTBOOK_COLLECTION, {"name": "a", "message": "older", "timestamp": "2024-01-01T10:00:00.000Z"})
    store.insert_one(GUESTBOOK_COLLECTION, {"name": "b", "message": "newest", "timestamp": "2024-03-01T10:00:00.000Z"})
    store.insert_one(GUESTBOOK_COLLECTION, {"name": "c", "message": "middle", "timestamp": "2024-02-01T10:00:00.000Z"})

    messages = client.get("/api/guestbook").get_json()

    assert [entry["message"] for entry in messages] == ["newest", "middle", "older"]


def test_missing_fields_rejected(client):
    assert client.post("/api/guestbook", json={"name": "Will"}).status_code == 400
    assert client.post("/api/guestbook", json={"message": "hi"}).status_code == 400
    assert client.post("/api/guestbook").status_code == 400


def test_too_long_rejected(client):
    response = client.post("/api/guestbook", json={"name": "n" * 51, "message": "hi"})

    assert response.status_code == 400
    assert response.get_json() == {"error": "Message too long"}
    assert client.post("/api/guestbook", json={"name": "n", "message": "m" * 501}).status_code == 400


def test_delete_message(client):
    message = client.post("/api/guestbook", json={"name": "Will", "message": "hi"}).get_json()

    response = client.delete(f"/api/guestbook/{message['id']}")

    assert response.get_json() == {"success": True}
    assert client.get("/api/guestbook").get_json() == []
