"""Tests for the exception-to-response mapping."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from followdesk.core.error_handlers import register_error_handlers
from followdesk.core.exceptions import (
    AlreadyFollowingError,
    DatabaseError,
    FollowNotFoundError,
    UploadValidationError,
    UserNotFoundError,
)


@pytest.fixture
def client():
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/raise/{kind}")
    async def raise_error(kind: str):
        errors = {
            "user": UserNotFoundError("User not found", details={"user_id": "x"}),
            "follow": FollowNotFoundError("Follow relationship not found"),
            "duplicate": AlreadyFollowingError("Already following this user"),
            "upload": UploadValidationError("No file uploaded"),
            "database": DatabaseError("query failed", error_code="DB_DOWN"),
        }
        if kind in errors:
            raise errors[kind]
        raise RuntimeError("kaboom")

    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.parametrize(
    ("kind", "status_code", "error_code"),
    [
        ("user", 404, "UserNotFoundError"),
        ("follow", 404, "FollowNotFoundError"),
        ("duplicate", 400, "AlreadyFollowingError"),
        ("upload", 400, "UploadValidationError"),
        ("database", 500, "DB_DOWN"),
    ],
)
def test_domain_errors_map_to_status(client, kind, status_code, error_code):
    response = client.get(f"/raise/{kind}")

    assert response.status_code == status_code
    body = response.json()
    assert body["error"] is True
    assert body["status_code"] == status_code
    assert body["error_code"] == error_code


def test_details_are_included(client):
    body = client.get("/raise/user").json()

    assert body["details"] == {"user_id": "x"}


def test_unexpected_errors_hide_internals(client):
    response = client.get("/raise/other")

    assert response.status_code == 500
    body = response.json()
    assert body["error_code"] == "INTERNAL_SERVER_ERROR"
    assert "kaboom" not in body["message"]
