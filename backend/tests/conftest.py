"""Shared fixtures for the engagement backend tests."""

from __future__ import annotations

import itertools

import pytest
from flask_jwt_extended import create_access_token

from freepool import create_app, db
from freepool.models import Campaign, Comment
from freepool.models.campaign import CAMPAIGN_STATUS_PUBLISHED
from freepool.utils.auth_utils import RequestContext
from freepool.utils.error_handler import ErrorHandler

TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "RATELIMIT_ENABLED": False,
    "RATELIMIT_STORAGE_URI": "memory://",
    "JWT_SECRET_KEY": "test-jwt-secret",
    "SECRET_KEY": "test-secret",
    "LOG_DIR": None,
    # Celery 任务在进程内同步执行，不连接 broker
    "CELERY": {"task_always_eager": True, "task_eager_propagates": True},
}


@pytest.fixture
def app():
    """Application bound to a fresh in-memory database."""
    app = create_app(TEST_CONFIG)
    with app.app_context():
        db.create_all()
        ErrorHandler.reset_stats()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    """Build Authorization headers for a user id."""

    def _headers(user_id: str = "user-1", is_admin: bool = False) -> dict:
        claims = {"is_admin": True} if is_admin else None
        token = create_access_token(identity=user_id, additional_claims=claims)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin_headers(auth_headers) -> dict:
    return auth_headers("admin-1", is_admin=True)


@pytest.fixture
def ctx(app) -> RequestContext:
    return RequestContext(user_id="user-1")


@pytest.fixture
def make_campaign(app):
    """Persist a published campaign; extra keyword arguments override columns."""
    counter = itertools.count(1)

    def _make(campaign_id: str | None = None, **overrides) -> Campaign:
        n = next(counter)
        values = {
            "id": campaign_id or f"camp-{n}",
            "slug": f"campaign-{n}",
            "title": f"Campaign {n}",
            "status": CAMPAIGN_STATUS_PUBLISHED,
        }
        values.update(overrides)
        campaign = Campaign(**values)
        db.session.add(campaign)
        db.session.commit()
        return campaign

    return _make


@pytest.fixture
def make_comment(app):
    def _make(campaign_id: str, user_id: str = "user-1", content: str = "Still works for me",
              parent_id: str | None = None) -> Comment:
        comment = Comment(campaign_id=campaign_id, user_id=user_id, content=content, parent_id=parent_id)
        db.session.add(comment)
        db.session.commit()
        return comment

    return _make
