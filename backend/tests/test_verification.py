"""Unit tests for the needs-verification flag."""

from __future__ import annotations

from datetime import datetime

import pytest

from freepool import db
from freepool import tasks
from freepool.models import Campaign
from freepool.models.campaign import CAMPAIGN_STATUS_PENDING
from freepool.services import verification
from freepool.services.mutation_gate import MutationGate
from freepool.utils.auth_utils import RequestContext


def _react(campaign_id: str, expired: int = 0, still_works: int = 0, info_incorrect: int = 0) -> None:
    gate = MutationGate()
    categories = ["expired"] * expired + ["still_works"] * still_works + ["info_incorrect"] * info_incorrect
    for index, category in enumerate(categories):
        gate.set_reaction(RequestContext(user_id=f"voter-{index}"), campaign_id, category)


@pytest.mark.parametrize(
    "stats, expected",
    [
        ({"stillWorks": 2, "expired": 4, "infoIncorrect": 0, "total": 6}, True),
        ({"stillWorks": 1, "expired": 1, "infoIncorrect": 0, "total": 2}, False),
        ({"stillWorks": 2, "expired": 3, "infoIncorrect": 0, "total": 5}, False),
        ({"stillWorks": 0, "expired": 1, "infoIncorrect": 0, "total": 1}, True),
        ({"stillWorks": 0, "expired": 0, "infoIncorrect": 3, "total": 3}, False),
        ({"stillWorks": 0, "expired": 0, "infoIncorrect": 0, "total": 0}, False),
    ],
)
def test_needs_verification_rule(stats, expected):
    assert verification.needs_verification(stats) is expected


def test_flag_is_set_when_expired_dominates(make_campaign):
    campaign = make_campaign()
    _react(campaign.id, expired=4, still_works=2)

    assert verification.check_verification_needed(campaign.id) is True
    assert db.session.get(Campaign, campaign.id).needs_verification is True


def test_flag_is_cleared_when_balance_recovers(make_campaign):
    campaign = make_campaign(needs_verification=True)
    _react(campaign.id, expired=1, still_works=1)

    assert verification.check_verification_needed(campaign.id) is False
    assert db.session.get(Campaign, campaign.id).needs_verification is False


def test_no_reactions_leaves_campaign_untouched(make_campaign):
    campaign = make_campaign(needs_verification=True)

    assert verification.check_verification_needed(campaign.id) is False
    assert db.session.get(Campaign, campaign.id).needs_verification is True


def test_task_recomputes_flag(make_campaign):
    campaign = make_campaign()
    _react(campaign.id, expired=2)

    result = tasks.refresh_verification_flag.delay(campaign.id)

    assert result.get() is True
    assert db.session.get(Campaign, campaign.id).needs_verification is True


def test_queue_failure_is_logged_not_raised(make_campaign, monkeypatch, caplog):
    campaign = make_campaign()

    def _broker_down(*args, **kwargs):
        raise ConnectionError("broker unavailable")

    monkeypatch.setattr(tasks.refresh_verification_flag, "delay", _broker_down)

    verification.queue_verification_refresh(campaign.id)

    assert "broker unavailable" in caplog.text


def test_flagged_list_only_contains_live_published_campaigns(make_campaign):
    flagged = make_campaign(needs_verification=True)
    make_campaign(needs_verification=True, status=CAMPAIGN_STATUS_PENDING)
    make_campaign(needs_verification=True, deleted_at=datetime.utcnow())
    make_campaign()
    _react(flagged.id, expired=3)

    items = verification.get_campaigns_needing_verification()

    assert [item["campaign"]["id"] for item in items] == [flagged.id]
    assert items[0]["reactionStats"]["expired"] == 3
    assert verification.get_verification_needed_count() == 1


def test_mark_verified_clears_flag(make_campaign):
    campaign = make_campaign(needs_verification=True)

    verified = verification.mark_campaign_verified(campaign.id)

    assert verified.needs_verification is False
    assert verification.mark_campaign_verified("missing") is None
