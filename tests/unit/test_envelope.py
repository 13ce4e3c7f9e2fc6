"""
Tests for the response envelope and error mapping.
"""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel

from src.api.envelope import ApiError, install_error_handlers, ok, raise_for_errors
from src.domain.errors import ErrorDetail, http_status_for


@pytest.mark.parametrize(
    ("code", "status"),
    [
        ("VALIDATION_ERROR", 400),
        ("UNAUTHORIZED", 401),
        ("FORBIDDEN", 403),
        ("NOT_FOUND", 404),
        ("CONFLICT", 409),
        ("INVALID_TRANSITION", 400),
        ("DEPTH_EXCEEDED", 400),
        ("EDIT_WINDOW_EXPIRED", 400),
        ("NOT_PUBLISHED", 400),
        ("INTERNAL", 500),
        ("SOMETHING_NEW", 500),
    ],
)
def test_http_status_for(code, status):
    assert http_status_for(code) == status


def test_ok_encodes_data():
    body = ok({"id": UUID(int=1), "at": datetime(2025, 1, 1, tzinfo=UTC)})
    assert body["success"] is True
    assert body["data"]["id"] == "00000000-0000-0000-0000-000000000001"
    assert body["data"]["at"].startswith("2025-01-01T00:00:00")


def test_raise_for_errors_uses_first():
    with pytest.raises(ApiError) as exc_info:
        raise_for_errors(
            [ErrorDetail("NOT_FOUND", "Article not found"), ErrorDetail("FORBIDDEN", "nope")]
        )
    assert exc_info.value.code == "NOT_FOUND"
    assert exc_info.value.status_code == 404


def test_raise_for_errors_empty_is_internal():
    with pytest.raises(ApiError) as exc_info:
        raise_for_errors([])
    assert exc_info.value.status_code == 500


# --- Handlers on a throwaway app ---


class Payload(BaseModel):
    count: int


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    install_error_handlers(app)

    @app.get("/api-error")
    def api_error():
        raise ApiError("UNAUTHORIZED", "Not authenticated")

    @app.get("/http-error")
    def http_error():
        raise HTTPException(status_code=404, detail="Nothing here")

    @app.get("/boom")
    def boom():
        raise RuntimeError("kaboom")

    @app.post("/payload")
    def payload(body: Payload):
        return ok({"count": body.count})

    return TestClient(app, raise_server_exceptions=False)


def test_api_error_envelope(client):
    response = client.get("/api-error")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    assert response.json() == {
        "success": False,
        "error": {"code": "UNAUTHORIZED", "message": "Not authenticated"},
    }


def test_http_exception_envelope(client):
    response = client.get("/http-error")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_unknown_route_envelope(client):
    response = client.get("/missing")
    assert response.status_code == 404
    assert response.json()["success"] is False


def test_validation_error_is_400(client):
    response = client.post("/payload", json={"count": "many"})
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["message"].startswith("count:")


def test_unexpected_error_hides_details(client):
    response = client.get("/boom")
    assert response.status_code == 500
    error = response.json()["error"]
    assert error["code"] == "INTERNAL"
    assert "kaboom" not in error["message"]
