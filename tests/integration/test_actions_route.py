"""
End-to-end tests for POST /actions against a scripted PBX.
"""

import json

import pytest
from fastapi.testclient import TestClient

from clicktocall.main import app
from clicktocall.services.action_dispatcher import ActionDispatcher


@pytest.fixture
def client(monkeypatch, calls, activity):
    dispatcher = ActionDispatcher(calls=calls, activity=activity)
    monkeypatch.setattr("clicktocall.routes.actions.action_dispatcher", dispatcher)
    return TestClient(app)


def _store_preferences(fake_redis, **values):
    for key, value in values.items():
        fake_redis.store[f"pref:{key}"] = json.dumps(value)


def test_make_call_round_trip(client, fake_redis, vendor):
    _store_preferences(
        fake_redis, tenant="acme", extension="1001", password="secret", dialPrefix="8"
    )

    response = client.post("/actions", json={"action": "makeCall", "phoneNumber": "716-923-4121"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["result"]["destination"] == "87169234121"
    assert vendor.call_requests()[0].url.params["destExt"] == "87169234121"

    history = client.post("/actions", json={"action": "getCallHistory"}).json()
    assert [entry["phoneNumber"] for entry in history["result"]] == ["7169234121"]


def test_missing_credentials_reported_as_config_error(client, vendor):
    response = client.post("/actions", json={"action": "makeCall", "phoneNumber": "7169234121"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["origin"] == "config"
    assert body["error_code"] == "configuration_error"
    assert vendor.requests == []


def test_session_expiry_reported_with_call_origin(client, fake_redis, vendor):
    _store_preferences(fake_redis, tenant="acme", extension="1001", password="secret")
    vendor.set_session_cookie = False
    vendor.call_redirects_to_login = True

    body = client.post(
        "/actions", json={"action": "makeCall", "phoneNumber": "7169234121"}
    ).json()

    assert body["success"] is False
    assert body["error"] == "Session expired. Please log in again."
    assert body["origin"] == "call"


def test_test_login_action(client, vendor):
    body = client.post(
        "/actions",
        json={"action": "testLogin", "tenant": "acme", "extension": "1001", "password": "secret"},
    ).json()

    assert body["success"] is True
    assert body["result"]["is_valid"] is True
    assert len(vendor.login_requests()) == 1


def test_unknown_action_is_rejected(client):
    response = client.post("/actions", json={"action": "selfDestruct"})

    assert response.status_code == 422


def test_missing_field_is_rejected(client):
    response = client.post("/actions", json={"action": "makeCall"})

    assert response.status_code == 422
