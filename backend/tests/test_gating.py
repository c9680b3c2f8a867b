"""
Tests for match classification and the content gate.
"""
import pytest

from betiq.classifier import ELITE_TEAMS, Classification, classify, classify_teams
from betiq.entitlements import NO_ACCESS, PREMIUM_ACCESS, EffectiveAccess
from betiq.gating import (
    VIP_REQUIRED,
    ContentItem,
    OpenContent,
    UpgradeRedirect,
    ViewDecision,
    open_item,
    resolve_view,
    vip_required_error,
)

from tests.fakes import make_match


def test_real_madrid_is_premium():
    assert classify(make_match("1", "Real Madrid CF", "Getafe")) == Classification.PREMIUM


def test_away_elite_team_is_premium():
    assert classify(make_match("1", "Getafe", "FC Barcelona")) == Classification.PREMIUM


def test_burnley_fulham_is_standard():
    assert classify(make_match("2", "Burnley", "Fulham")) == Classification.STANDARD


def test_substring_collision_is_premium():
    # known limitation of the containment heuristic
    assert classify_teams("Inter Miami", "Orlando City") == Classification.PREMIUM


def test_matching_is_case_sensitive():
    assert classify_teams("real madrid", "getafe") == Classification.STANDARD


def test_every_elite_team_classifies_premium():
    for team in ELITE_TEAMS:
        assert classify_teams(team, "Nobody FC") == Classification.PREMIUM


@pytest.mark.parametrize("access", [NO_ACCESS, PREMIUM_ACCESS])
def test_standard_items_always_visible(access):
    item = ContentItem(identity="2", classification=Classification.STANDARD)
    assert resolve_view(item, access) == ViewDecision.FULLY_VISIBLE
    assert open_item(item, access, "/settings") == OpenContent(item=item)


def test_premium_item_visible_with_premium_access():
    item = ContentItem(identity="1", classification=Classification.PREMIUM)
    assert resolve_view(item, EffectiveAccess(can_view_premium=True)) == ViewDecision.FULLY_VISIBLE


def test_premium_item_locked_without_access_and_open_redirects():
    item = ContentItem(identity="1", classification=Classification.PREMIUM)
    assert resolve_view(item, NO_ACCESS) == ViewDecision.LOCKED_PLACEHOLDER

    opened = open_item(item, NO_ACCESS, "/settings")
    assert opened == UpgradeRedirect(item=item, url="/settings")


def test_gate_is_order_independent():
    items = [
        ContentItem(identity=str(i), classification=c)
        for i, c in enumerate([Classification.PREMIUM, Classification.STANDARD] * 3)
    ]
    forward = [resolve_view(i, NO_ACCESS) for i in items]
    backward = [resolve_view(i, NO_ACCESS) for i in reversed(items)]
    assert forward == list(reversed(backward))


def test_unlock_without_refetch():
    item = ContentItem(identity="1", classification=Classification.PREMIUM)
    assert resolve_view(item, NO_ACCESS) == ViewDecision.LOCKED_PLACEHOLDER
    assert resolve_view(item, PREMIUM_ACCESS) == ViewDecision.FULLY_VISIBLE


def test_vip_required_error_detail():
    item = ContentItem(identity="1", classification=Classification.PREMIUM)
    exc = vip_required_error(UpgradeRedirect(item=item, url="/settings"), "https://checkout.example")
    assert exc.status_code == 403
    assert exc.detail["code"] == VIP_REQUIRED
    assert exc.detail["upgrade_url"] == "/settings"
    assert exc.detail["item_id"] == "1"
