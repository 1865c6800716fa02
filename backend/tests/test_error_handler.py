"""Tests for the JSON error envelope and error statistics."""

from __future__ import annotations

import pytest

from freepool import create_app, db
from freepool.utils.error_handler import ErrorHandler
from freepool.utils.exceptions import Conflict, Forbidden, NotFound, Unauthorized, ValidationFailed

from conftest import TEST_CONFIG


@pytest.fixture
def failing_app():
    """App with extra routes that raise, registered before the first request."""
    app = create_app(TEST_CONFIG)

    @app.route("/boom")
    def boom():
        raise RuntimeError("database password is hunter2")

    @app.route("/conflict")
    def conflict():
        raise Conflict("Already there")

    with app.app_context():
        db.create_all()
        ErrorHandler.reset_stats()
        yield app
        db.session.remove()
        db.drop_all()


def test_unhandled_exception_returns_generic_message(failing_app):
    response = failing_app.test_client().get("/boom")

    assert response.status_code == 500
    assert response.get_json() == {"success": False, "error": "Internal server error"}
    assert "hunter2" not in response.get_data(as_text=True)


def test_api_error_keeps_its_message(failing_app):
    response = failing_app.test_client().get("/conflict")

    assert response.status_code == 409
    assert response.get_json() == {"success": False, "error": "Already there"}


def test_unknown_route_uses_envelope(client):
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.get_json() == {"success": False, "error": "Not found"}


def test_invalid_token_uses_envelope(client):
    response = client.get("/api/bookmarks", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 422
    assert response.get_json()["success"] is False
    assert ErrorHandler.get_error_stats()["by_code"] == {422: 1}


@pytest.mark.parametrize(
    "error, status, message",
    [
        (Unauthorized(), 401, "Authentication required"),
        (Forbidden(), 403, "Forbidden"),
        (NotFound("Comment not found"), 404, "Comment not found"),
        (ValidationFailed(), 400, "Invalid request"),
        (Conflict(), 409, "Conflict"),
    ],
)
def test_error_taxonomy(error, status, message):
    assert error.status_code == status
    assert error.message == message


def test_simplify_path():
    assert ErrorHandler._simplify_path("/api/comments/123/reactions") == "/api/comments/{id}/reactions"
    assert (
        ErrorHandler._simplify_path("/api/reactions/0b8c1c9e-3f1a-4c2b-9a4e-2f8d6a1b7c3d")
        == "/api/reactions/{uuid}"
    )


def test_health(client):
    assert client.get("/api/health").get_json() == {"success": True, "data": {"status": "healthy"}}
