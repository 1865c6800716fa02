"""API tests for /api/engagement."""

from __future__ import annotations

from urllib.parse import quote


def test_generic_batch_defaults_to_all_campaign_kinds(client, make_campaign, auth_headers):
    campaign = make_campaign()
    headers = auth_headers("user-1")
    client.post("/api/reactions", json={"campaignId": campaign.id, "type": "still_works"}, headers=headers)
    client.post(f"/api/bookmarks/{campaign.id}", headers=headers)
    client.post(f"/api/campaigns/{campaign.id}/emoji-reactions/{quote('🔥')}", headers=auth_headers("user-2"))

    response = client.post(
        "/api/engagement/batch",
        json={"targetType": "campaign", "ids": [campaign.id, "unknown"]},
        headers=headers,
    )

    data = response.get_json()["data"]
    assert [entry["objectId"] for entry in data] == [campaign.id, "unknown"]
    assert data[0]["counts"] == {
        "still_works": 1,
        "expired": 0,
        "info_incorrect": 0,
        "bookmark": 1,
        "participation": 0,
        "emoji:🔥": 1,
    }
    assert data[0]["total"] == 3
    assert data[0]["callerCategories"] == {"reaction": "still_works", "bookmark": "bookmark"}
    assert data[0]["callerEmojis"] == []
    assert data[1]["total"] == 0


def test_generic_batch_for_comments(client, make_campaign, make_comment, auth_headers):
    comment = make_comment(make_campaign().id)
    client.post(f"/api/comments/{comment.id}/reactions/{quote('👍')}", headers=auth_headers("user-1"))

    data = client.post(
        "/api/engagement/batch",
        json={"targetType": "comment", "ids": [comment.id]},
        headers=auth_headers("user-1"),
    ).get_json()["data"]

    assert data[0]["counts"] == {"emoji:👍": 1}
    assert data[0]["callerEmojis"] == ["👍"]


def test_generic_batch_rejects_unsupported_kind(client):
    response = client.post(
        "/api/engagement/batch",
        json={"targetType": "comment", "ids": ["c-1"], "kinds": ["bookmark"]},
    )

    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_generic_batch_rejects_unknown_target_type(client):
    response = client.post("/api/engagement/batch", json={"targetType": "article", "ids": ["a"]})

    assert response.status_code == 400


def test_my_engagement_summary(client, make_campaign, auth_headers):
    first = make_campaign()
    second = make_campaign()
    headers = auth_headers("user-1")
    client.post("/api/bookmarks", json={"campaignId": first.id}, headers=headers)
    client.post("/api/bookmarks", json={"campaignId": second.id}, headers=headers)
    client.post("/api/participations", json={"campaignId": first.id}, headers=headers)
    client.post("/api/reactions", json={"campaignId": first.id, "type": "expired"}, headers=headers)
    client.post("/api/comments", json={"campaignId": first.id, "content": "Expired for me"}, headers=headers)

    data = client.get("/api/engagement/me", headers=headers).get_json()["data"]

    assert data == {"bookmarks": 2, "participations": 1, "reactions": 1, "comments": 1}


def test_my_engagement_requires_authentication(client):
    assert client.get("/api/engagement/me").status_code == 401
