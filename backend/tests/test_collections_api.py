"""API tests for /api/bookmarks and /api/participations."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from freepool import db
from freepool.models import Interaction


@pytest.fixture(params=[
    ("/api/bookmarks", "bookmarked", "bookmark", "Bookmark not found"),
    ("/api/participations", "participated", "participation", "Participation not found"),
])
def collection(request):
    """Both collections expose the same endpoint contract."""
    base, flag, item, not_found = request.param
    return {"base": base, "flag": flag, "item": item, "not_found": not_found}


def test_create_is_idempotent(client, make_campaign, auth_headers, collection):
    campaign = make_campaign()
    headers = auth_headers("user-1")

    first = client.post(collection["base"], json={"campaignId": campaign.id}, headers=headers)
    second = client.post(collection["base"], json={"campaignId": campaign.id}, headers=headers)

    assert first.status_code == 200
    assert first.get_json()["data"]["id"] == second.get_json()["data"]["id"]
    assert Interaction.query.filter_by(target_id=campaign.id).count() == 1


def test_create_unknown_campaign(client, auth_headers, collection):
    response = client.post(collection["base"], json={"campaignId": "missing"}, headers=auth_headers())

    assert response.status_code == 404


def test_requires_authentication(client, collection):
    for response in (
        client.get(collection["base"]),
        client.get(f"{collection['base']}/ids"),
        client.post(f"{collection['base']}/camp-1"),
    ):
        assert response.status_code == 401
        assert response.get_json()["success"] is False


def test_check_and_toggle(client, make_campaign, auth_headers, collection):
    campaign = make_campaign()
    headers = auth_headers("user-1")
    url = f"{collection['base']}/{campaign.id}"

    assert client.get(url, headers=headers).get_json()["data"][collection["flag"]] is False

    added = client.post(url, headers=headers).get_json()["data"]
    assert added["state"] == "added"
    assert added[collection["flag"]] is True
    assert added[collection["item"]]["campaignId"] == campaign.id
    assert client.get(url, headers=headers).get_json()["data"][collection["flag"]] is True

    removed = client.post(url, headers=headers).get_json()["data"]
    assert removed["state"] == "removed"
    assert removed[collection["item"]] is None
    assert Interaction.query.count() == 0


def test_delete(client, make_campaign, auth_headers, collection):
    campaign = make_campaign()
    headers = auth_headers("user-1")
    url = f"{collection['base']}/{campaign.id}"
    client.post(collection["base"], json={"campaignId": campaign.id}, headers=headers)

    assert client.delete(url, headers=headers).status_code == 200
    missing = client.delete(url, headers=headers)
    assert missing.status_code == 404
    assert missing.get_json()["error"] == collection["not_found"]


def test_list_and_ids(client, make_campaign, auth_headers, collection):
    live = make_campaign(end_date=datetime.utcnow() + timedelta(days=7))
    ended = make_campaign(end_date=datetime.utcnow() - timedelta(days=1))
    deleted = make_campaign()
    headers = auth_headers("user-1")
    for campaign_id in (live.id, ended.id, deleted.id):
        client.post(collection["base"], json={"campaignId": campaign_id}, headers=headers)
    client.post(collection["base"], json={"campaignId": live.id}, headers=auth_headers("user-2"))

    deleted.deleted_at = datetime.utcnow()
    db.session.commit()

    body = client.get(collection["base"], headers=headers).get_json()
    expired_by_id = {item["campaignId"]: item["isExpired"] for item in body["data"]}
    assert body["count"] == 2
    assert expired_by_id == {live.id: False, ended.id: True}

    ids = client.get(f"{collection['base']}/ids", headers=headers).get_json()["data"]
    assert set(ids) == {live.id, ended.id, deleted.id}


def test_participation_notes(client, make_campaign, auth_headers):
    campaign = make_campaign()
    headers = auth_headers("user-1")

    created = client.post("/api/participations", json={"campaignId": campaign.id, "notes": "Got 100 credits"},
                          headers=headers)
    assert created.get_json()["data"]["notes"] == "Got 100 credits"

    client.delete(f"/api/participations/{campaign.id}", headers=headers)
    toggled = client.post(f"/api/participations/{campaign.id}", json={"notes": "Second try"}, headers=headers)
    assert toggled.get_json()["data"]["participation"]["notes"] == "Second try"


def test_participation_notes_too_long(client, make_campaign, auth_headers):
    campaign = make_campaign()

    response = client.post("/api/participations", json={"campaignId": campaign.id, "notes": "x" * 1001},
                           headers=auth_headers())

    assert response.status_code == 400
