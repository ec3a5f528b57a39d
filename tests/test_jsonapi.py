"""
JSON API Tests
==============

Routes, status codes and the {"Err": ...} envelope of the Flask front end.
"""

import os
from unittest.mock import MagicMock

import pytest

from mailinglist.app import create_app
from mailinglist.core.errors import StoreFailure
from mailinglist.core.store import SubscriberStore


def create(client, email):
    return client.post("/email/create", json={"Email": email})


# ---------------------------------------------------------------------------
# 1. Route table
# ---------------------------------------------------------------------------

EXPECTED_ROUTES = {
    "/email/create": "POST",
    "/email/get": "GET",
    "/email/get_batch": "GET",
    "/email/get_all": "GET",
    "/email/update": "PUT",
    "/email/delete": "POST",
}


def test_routes_registered(app):
    rules = {rule.rule: rule.methods for rule in app.url_map.iter_rules()}
    for path, method in EXPECTED_ROUTES.items():
        assert path in rules, f"{path} missing. Routes: {sorted(rules)}"
        assert method in rules[path]


def test_wrong_method_uses_envelope(client):
    response = client.get("/email/create")
    assert response.status_code == 405
    assert "Err" in response.get_json()


# ---------------------------------------------------------------------------
# 2. Create / Get
# ---------------------------------------------------------------------------

def test_create_returns_stored_entry(client):
    response = create(client, "a@x.com")
    assert response.status_code == 200
    body = response.get_json()
    assert body["Email"] == "a@x.com"
    assert body["ConfirmedAt"] == 0
    assert body["OptOut"] is False
    assert isinstance(body["Id"], int)


def test_create_duplicate_is_client_error(client):
    create(client, "a@x.com")
    response = create(client, "a@x.com")
    assert response.status_code == 400
    assert "a@x.com" in response.get_json()["Err"]


def test_create_requires_email(client):
    response = client.post("/email/create", json={})
    assert response.status_code == 400
    assert response.get_json() == {"Err": "Email field is required"}


def test_create_ignores_payload_fields_other_than_email(client):
    """The response reflects the store, not the request body."""
    response = client.post("/email/create", json={"Email": "a@x.com", "OptOut": True, "ConfirmedAt": 99})
    body = response.get_json()
    assert body["OptOut"] is False
    assert body["ConfirmedAt"] == 0


def test_get_from_body_and_query_string(client):
    create(client, "a@x.com")
    from_body = client.get("/email/get", json={"Email": "a@x.com"})
    from_query = client.get("/email/get?email=a@x.com")
    assert from_body.status_code == from_query.status_code == 200
    assert from_body.get_json() == from_query.get_json()


def test_get_absent_is_not_found(client):
    response = client.get("/email/get", json={"Email": "absent@x.com"})
    assert response.status_code == 404
    assert "Err" in response.get_json()


def test_body_without_content_type_is_read(client):
    create(client, "a@x.com")
    response = client.get("/email/get", data='{"Email": "a@x.com"}')
    assert response.status_code == 200


# ---------------------------------------------------------------------------
# 3. Update / Delete
# ---------------------------------------------------------------------------

def test_update_existing(client):
    create(client, "a@x.com")
    response = client.put("/email/update", json={"Email": "a@x.com", "ConfirmedAt": 1700000000, "OptOut": False})
    assert response.status_code == 200
    assert response.get_json()["ConfirmedAt"] == 1700000000


def test_update_inserts_absent(client):
    response = client.put("/email/update", json={"Email": "new@x.com", "ConfirmedAt": 5, "OptOut": True})
    assert response.status_code == 200
    body = response.get_json()
    assert (body["Email"], body["ConfirmedAt"], body["OptOut"]) == ("new@x.com", 5, True)


def test_update_rejects_bad_timestamp(client):
    response = client.put("/email/update", json={"Email": "a@x.com", "ConfirmedAt": "soon"})
    assert response.status_code == 400


def test_delete_opts_out(client):
    create(client, "a@x.com")
    response = client.post("/email/delete", json={"Email": "a@x.com"})
    assert response.status_code == 200
    assert response.get_json()["OptOut"] is True

    again = create(client, "a@x.com")
    assert again.status_code == 400


def test_delete_absent_is_not_found(client, store):
    response = client.post("/email/delete", json={"Email": "absent@x.com"})
    assert response.status_code == 404
    assert store.get("absent@x.com") is None


# ---------------------------------------------------------------------------
# 4. Batches
# ---------------------------------------------------------------------------

def test_get_batch_pages(client):
    for i in range(5):
        create(client, f"u{i}@x.com")
    client.post("/email/delete", json={"Email": "u1@x.com"})

    first = client.get("/email/get_batch", json={"Page": 1, "Count": 2}).get_json()
    second = client.get("/email/get_batch?page=2&count=2").get_json()

    assert [e["Email"] for e in first] == ["u0@x.com", "u2@x.com"]
    assert [e["Email"] for e in second] == ["u3@x.com", "u4@x.com"]


@pytest.mark.parametrize("body", [
    {"Page": 0, "Count": 10},
    {"Page": 1, "Count": 0},
    {"Page": -1, "Count": 10},
    {"Count": 10},
    {},
])
def test_get_batch_validates_before_querying(body):
    store = MagicMock(spec=SubscriberStore)
    client = create_app(store, {"TESTING": True}).test_client()

    response = client.get("/email/get_batch", json=body)

    assert response.status_code == 400
    assert response.get_json() == {"Err": "page and count fields must be > 0"}
    store.list_page.assert_not_called()


def test_get_batch_oversized_page_is_client_error(client):
    create(client, "a@x.com")
    response = client.get("/email/get_batch", json={"Page": 2**62, "Count": 10})
    assert response.status_code == 400
    assert "Err" in response.get_json()


def test_get_batch_bad_query_string(client):
    response = client.get("/email/get_batch?page=one&count=2")
    assert response.status_code == 400


def test_get_all_includes_opted_out(client):
    create(client, "a@x.com")
    create(client, "b@x.com")
    client.post("/email/delete", json={"Email": "a@x.com"})

    rows = client.get("/email/get_all").get_json()
    assert [(r["Email"], r["OptOut"]) for r in rows] == [("a@x.com", True), ("b@x.com", False)]


# ---------------------------------------------------------------------------
# 5. Failures
# ---------------------------------------------------------------------------

def test_store_failure_is_server_error():
    store = MagicMock(spec=SubscriberStore)
    store.get.side_effect = StoreFailure("disk I/O error")
    client = create_app(store, {"TESTING": True}).test_client()

    response = client.get("/email/get", json={"Email": "a@x.com"})
    assert response.status_code == 500
    assert response.get_json() == {"Err": "disk I/O error"}


def test_unexpected_error_is_server_error():
    store = MagicMock(spec=SubscriberStore)
    store.list_all.side_effect = RuntimeError("boom")
    client = create_app(store, {"TESTING": True}).test_client()

    response = client.get("/email/get_all")
    assert response.status_code == 500
    assert response.get_json() == {"Err": "An unexpected error occurred"}


# ---------------------------------------------------------------------------
# 6. Ambient: CORS and the persistent request log
# ---------------------------------------------------------------------------

def test_cors_headers_when_configured(store):
    app = create_app(store, {"TESTING": True, "CORS_ORIGINS": ["http://example.com"]})
    response = app.test_client().get("/email/get_all", headers={"Origin": "http://example.com"})
    assert response.headers.get("Access-Control-Allow-Origin") == "http://example.com"


def test_no_cors_headers_by_default(client):
    response = client.get("/email/get_all", headers={"Origin": "http://example.com"})
    assert "Access-Control-Allow-Origin" not in response.headers


def test_api_calls_are_logged(store, tmp_db_dir, read_logs):
    log_db = os.path.join(tmp_db_dir, "logs.db")
    client = create_app(store, {"TESTING": True, "MAILINGLIST_LOG_DB": log_db}).test_client()

    create(client, "a@x.com")
    create(client, "a@x.com")

    entries = read_logs(log_db)
    assert entries[0]["level"] == "WARNING"
    assert entries[0]["request_path"] == "/email/create"
    assert "Status: 400" in entries[0]["message"]
    assert "Status: 200" in entries[1]["message"]


def test_old_log_entries_pruned_on_startup(store, tmp_db_dir, read_logs):
    log_db = os.path.join(tmp_db_dir, "logs.db")
    create_app(store, {"TESTING": True, "MAILINGLIST_LOG_DB": log_db}).test_client().get("/email/get_all")
    assert any("/email/get_all" in (e["request_path"] or "") for e in read_logs(log_db))

    create_app(store, {"TESTING": True, "MAILINGLIST_LOG_DB": log_db, "LOG_RETENTION_DAYS": -1})

    assert all(e["request_path"] != "/email/get_all" for e in read_logs(log_db))
