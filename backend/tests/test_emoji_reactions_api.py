"""API tests for campaign emoji reactions."""

from __future__ import annotations

from urllib.parse import quote

FIRE = quote("🔥")
THUMBS = quote("👍")


def _url(campaign_id: str, emoji: str | None = None, toggle: bool = False) -> str:
    url = f"/api/campaigns/{campaign_id}/emoji-reactions"
    if emoji is not None:
        url += f"/{emoji}"
    if toggle:
        url += "/toggle"
    return url


def test_add_then_list(client, make_campaign, auth_headers):
    campaign = make_campaign()

    response = client.post(_url(campaign.id, FIRE), headers=auth_headers("user-1"))

    assert response.status_code == 200
    assert response.get_json()["data"]["reactions"] == [{"emoji": "🔥", "count": 1, "userReacted": True}]

    listing = client.get(_url(campaign.id)).get_json()
    assert listing == {"success": True, "data": [{"emoji": "🔥", "count": 1, "userReacted": False}]}


def test_duplicate_add_conflicts(client, make_campaign, auth_headers):
    campaign = make_campaign()
    headers = auth_headers("user-1")
    client.post(_url(campaign.id, FIRE), headers=headers)

    response = client.post(_url(campaign.id, FIRE), headers=headers)

    assert response.status_code == 409
    assert response.get_json() == {"success": False, "error": "Already reacted with this emoji"}


def test_multiple_glyphs_per_user(client, make_campaign, auth_headers):
    campaign = make_campaign()
    headers = auth_headers("user-1")
    client.post(_url(campaign.id, FIRE), headers=headers)
    client.post(_url(campaign.id, THUMBS), headers=headers)
    client.post(_url(campaign.id, THUMBS), headers=auth_headers("user-2"))

    data = client.get(_url(campaign.id), headers=headers).get_json()["data"]

    assert data == [
        {"emoji": "👍", "count": 2, "userReacted": True},
        {"emoji": "🔥", "count": 1, "userReacted": True},
    ]


def test_remove(client, make_campaign, auth_headers):
    campaign = make_campaign()
    headers = auth_headers("user-1")
    client.post(_url(campaign.id, FIRE), headers=headers)

    assert client.delete(_url(campaign.id, FIRE), headers=headers).status_code == 200
    missing = client.delete(_url(campaign.id, FIRE), headers=headers)
    assert missing.status_code == 404
    assert missing.get_json()["error"] == "Reaction not found"


def test_toggle(client, make_campaign, auth_headers):
    campaign = make_campaign()
    headers = auth_headers("user-1")

    added = client.post(_url(campaign.id, FIRE, toggle=True), headers=headers).get_json()["data"]
    removed = client.post(_url(campaign.id, FIRE, toggle=True), headers=headers).get_json()["data"]

    assert added["state"] == "added"
    assert added["userReacted"] is True
    assert removed["state"] == "removed"
    assert removed["reactions"] == []


def test_requires_authentication(client, make_campaign):
    campaign = make_campaign()

    response = client.post(_url(campaign.id, FIRE))

    assert response.status_code == 401
    assert response.get_json()["success"] is False


def test_unknown_campaign(client, auth_headers):
    response = client.post(_url("missing", FIRE), headers=auth_headers())

    assert response.status_code == 404


def test_overlong_emoji(client, make_campaign, auth_headers):
    campaign = make_campaign()

    response = client.post(_url(campaign.id, "x" * 11), headers=auth_headers())

    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid emoji"


def test_batch(client, make_campaign, auth_headers):
    first = make_campaign()
    second = make_campaign()
    client.post(_url(first.id, FIRE), headers=auth_headers("user-1"))

    response = client.post(
        "/api/campaigns/emoji-reactions/batch",
        json={"campaignIds": [first.id, second.id]},
        headers=auth_headers("user-1"),
    )

    assert response.get_json()["data"] == {
        first.id: [{"emoji": "🔥", "count": 1, "userReacted": True}],
        second.id: [],
    }


def test_batch_rejects_non_list(client):
    response = client.post("/api/campaigns/emoji-reactions/batch", json={"campaignIds": "camp-1"})

    assert response.status_code == 400


def test_anonymous_caller_is_rejected_before_glyph_validation(client, make_campaign):
    campaign = make_campaign()

    for response in (
        client.post(_url(campaign.id, "x" * 11)),
        client.delete(_url(campaign.id, "x" * 11)),
        client.post(_url(campaign.id, "x" * 11, toggle=True)),
    ):
        assert response.status_code == 401
