"""
Tests for analysis history and the VIP daily selection.
"""
from datetime import date, timedelta

from betiq import models
from betiq.history import (
    DAILY_HISTORY_DAYS,
    ensure_daily_selection,
    get_daily_selection,
    past_selections,
    pick_daily_matches,
)

from tests.fakes import DEFAULT_MATCHES

DAY = date(2026, 3, 1)


def test_daily_pick_is_three_distinct_matches_from_the_day():
    picks = pick_daily_matches(DEFAULT_MATCHES, DAY)
    assert len(picks) == 3
    assert len({m.id for m in picks}) == 3
    assert all(m in DEFAULT_MATCHES for m in picks)
    # same date, same pick
    assert pick_daily_matches(DEFAULT_MATCHES, DAY) == picks


def test_selection_is_fixed_once_per_day(db_session):
    first = ensure_daily_selection(db_session, DAY, DEFAULT_MATCHES)
    again = ensure_daily_selection(db_session, DAY, list(reversed(DEFAULT_MATCHES)))
    assert again == first
    assert get_daily_selection(db_session, DAY) == first


def test_fewer_than_three_matches_is_not_persisted(db_session):
    assert ensure_daily_selection(db_session, DAY, DEFAULT_MATCHES[:2]) == []
    assert db_session.query(models.DailySelection).count() == 0


def test_past_selections_exclude_today_and_keep_last_seven(db_session):
    for offset in range(10):
        ensure_daily_selection(db_session, DAY - timedelta(days=offset), DEFAULT_MATCHES)

    past = past_selections(db_session, DAY)
    days = list(past)
    assert DAY.isoformat() not in past
    assert len(days) == DAILY_HISTORY_DAYS
    assert days == sorted(days, reverse=True)
    assert days[0] == (DAY - timedelta(days=1)).isoformat()
