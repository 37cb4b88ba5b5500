# tests/test_errors.py

"""
Tests for the failure envelope and environment validation.
"""

import json

import pytest
from bson.errors import InvalidId
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError

from config import env
from utils.errors import Forbidden, NotFound, build_error_response, translate_exception


def _body(response):
    return json.loads(response.body)


def test_unknown_route_envelope(client):
    response = client.get("/api/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "statusCode": 404,
        "message": "Can't find /api/does-not-exist on this server!",
    }


def test_known_error_keeps_its_message():
    response = build_error_response(Forbidden("Nope"), development=False)

    assert response.status_code == 403
    assert _body(response) == {"success": False, "statusCode": 403, "message": "Nope"}


def test_unexpected_error_hidden_outside_development():
    response = build_error_response(RuntimeError("db password is hunter2"), development=False)

    assert response.status_code == 500
    body = _body(response)
    assert body["message"] == "Something went wrong"
    assert "stack" not in body


def test_development_adds_debug_fields():
    try:
        raise NotFound("Order not found")
    except NotFound as exc:
        response = build_error_response(exc, development=True)

    body = _body(response)
    assert body["message"] == "Order not found"
    assert body["error"] == "NotFound"
    assert "Traceback" in body["stack"]


def test_library_errors_are_translated():
    duplicate = DuplicateKeyError(
        "E11000 duplicate key", 11000, {"keyValue": {"email": "a@example.com"}}
    )

    error = translate_exception(duplicate)
    assert error.status_code == 400
    assert error.message == "Email already exists. Please use another email."

    assert translate_exception(InvalidId("bad")).status_code == 400
    assert translate_exception(KeyError("x")) is None


def test_unhandled_exception_becomes_500(app):
    @app.get("/api/explode")
    async def explode():
        raise RuntimeError("boom")

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/api/explode")

    assert response.status_code == 500
    assert response.json()["success"] is False
    assert response.json()["message"] == "Something went wrong"


def test_production_requires_secrets(monkeypatch):
    monkeypatch.setattr(env, "ENV", "production")
    monkeypatch.setattr(env, "JWT_SECRET", "")
    monkeypatch.setattr(env, "MONGODB_URI", "mongodb://localhost/market")

    with pytest.raises(RuntimeError) as exc:
        env.validate_production_env()
    assert "JWT_SECRET" in str(exc.value)


def test_production_rejects_unknown_revocation_backend(monkeypatch):
    monkeypatch.setattr(env, "ENV", "production")
    monkeypatch.setattr(env, "JWT_SECRET", "s3cret")
    monkeypatch.setattr(env, "MONGODB_URI", "mongodb://localhost/market")
    monkeypatch.setattr(env, "REVOCATION_BACKEND", "redis")

    with pytest.raises(RuntimeError) as exc:
        env.validate_production_env()
    assert "REVOCATION_BACKEND" in str(exc.value)


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}
