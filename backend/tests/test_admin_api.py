"""API tests for /api/admin."""

from __future__ import annotations

import pytest

from freepool import db
from freepool.models import Campaign, Comment


@pytest.mark.parametrize(
    "method, path",
    [
        ("get", "/api/admin/verification-needed"),
        ("get", "/api/admin/verification-needed/count"),
        ("post", "/api/admin/campaigns/camp-1/verify"),
        ("get", "/api/admin/errors"),
        ("post", "/api/admin/errors/reset"),
    ],
)
def test_non_admin_is_forbidden(client, auth_headers, method, path):
    anonymous = getattr(client, method)(path)
    regular = getattr(client, method)(path, headers=auth_headers("user-1"))

    assert anonymous.status_code == 401
    assert regular.status_code == 403
    assert regular.get_json() == {"success": False, "error": "Admin access required"}


def test_verification_workflow(client, make_campaign, auth_headers, admin_headers):
    campaign = make_campaign()
    make_campaign()
    for index in range(4):
        client.post("/api/reactions", json={"campaignId": campaign.id, "type": "expired"},
                    headers=auth_headers(f"expired-{index}"))
    for index in range(2):
        client.post("/api/reactions", json={"campaignId": campaign.id, "type": "still_works"},
                    headers=auth_headers(f"works-{index}"))

    listing = client.get("/api/admin/verification-needed", headers=admin_headers).get_json()
    assert listing["count"] == 1
    assert listing["data"][0]["campaign"]["id"] == campaign.id
    assert listing["data"][0]["reactionStats"] == {"stillWorks": 2, "expired": 4, "infoIncorrect": 0, "total": 6}

    count = client.get("/api/admin/verification-needed/count", headers=admin_headers).get_json()
    assert count["data"] == {"count": 1}

    verified = client.post(f"/api/admin/campaigns/{campaign.id}/verify", headers=admin_headers)
    assert verified.status_code == 200
    assert verified.get_json()["data"]["needsVerification"] is False
    assert db.session.get(Campaign, campaign.id).needs_verification is False
    assert client.get("/api/admin/verification-needed/count", headers=admin_headers).get_json()["data"]["count"] == 0


def test_verify_unknown_campaign(client, admin_headers):
    response = client.post("/api/admin/campaigns/missing/verify", headers=admin_headers)

    assert response.status_code == 404


def test_mark_comment_useful(client, make_campaign, make_comment, admin_headers):
    comment = make_comment(make_campaign().id)
    url = f"/api/admin/comments/{comment.id}/mark-useful"

    marked = client.post(url, json={"isUseful": True}, headers=admin_headers)
    assert marked.get_json()["data"]["isMarkedUseful"] is True
    assert db.session.get(Comment, comment.id).is_marked_useful is True

    unmarked = client.post(url, json={"isUseful": False}, headers=admin_headers)
    assert unmarked.get_json()["data"]["isMarkedUseful"] is False


def test_mark_useful_validation(client, make_campaign, make_comment, admin_headers):
    comment = make_comment(make_campaign().id)

    invalid = client.post(f"/api/admin/comments/{comment.id}/mark-useful", json={"isUseful": "yes"},
                          headers=admin_headers)
    missing = client.post("/api/admin/comments/missing/mark-useful", json={"isUseful": True},
                          headers=admin_headers)

    assert invalid.status_code == 400
    assert missing.status_code == 404


def test_error_statistics(client, admin_headers):
    client.get("/api/does-not-exist")
    client.delete("/api/health")

    stats = client.get("/api/admin/errors", headers=admin_headers).get_json()["data"]
    assert stats["total_count"] == 2
    assert stats["by_code"] == {"404": 1, "405": 1}

    client.post("/api/admin/errors/reset", headers=admin_headers)
    assert client.get("/api/admin/errors", headers=admin_headers).get_json()["data"]["total_count"] == 0
