"""
Tests for the VIP entitlement lifecycle (lazy 30-day expiry, grants, store failures).
"""
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from betiq import models
from betiq.access_codes import GrantPermanent, GrantTimeBoxed, NoMatch
from betiq.entitlements import (
    THIRTY_DAYS,
    THIRTY_DAYS_MS,
    Entitlement,
    EntitlementLifecycle,
    InMemoryEntitlementStore,
    SqlEntitlementStore,
    StoreUnavailable,
)

from tests.fakes import FakeClock

T0 = datetime(2026, 3, 1, 12, 0, 0)
SUBJECT = "fan@example.com"


@pytest.fixture
def store():
    return InMemoryEntitlementStore()


@pytest.fixture
def clock():
    return FakeClock(T0)


@pytest.fixture
def lifecycle(store, clock):
    return EntitlementLifecycle(store, clock=clock)


def test_thirty_days_constant():
    assert THIRTY_DAYS_MS == 2_592_000_000
    assert THIRTY_DAYS == timedelta(days=30)


def test_no_entitlement_means_no_premium(lifecycle):
    assert lifecycle.derive_current_access("nobody@example.com").can_view_premium is False


def test_inactive_entitlement_means_no_premium(lifecycle, store):
    store.set(SUBJECT, Entitlement(subject_id=SUBJECT, is_active=False, activated_at=T0))
    assert lifecycle.derive_current_access(SUBJECT).can_view_premium is False


def test_permanent_grant_never_expires(lifecycle, clock):
    lifecycle.apply_grant(SUBJECT, GrantPermanent())
    assert lifecycle.derive_current_access(SUBJECT).can_view_premium is True

    clock.advance(days=3650)
    assert lifecycle.derive_current_access(SUBJECT).can_view_premium is True


def test_time_boxed_grant_boundary(lifecycle, store, clock):
    lifecycle.apply_grant(SUBJECT, GrantTimeBoxed(activated_at=T0))

    clock.current = T0 + THIRTY_DAYS - timedelta(milliseconds=1)
    assert lifecycle.derive_current_access(SUBJECT).can_view_premium is True
    assert store.get(SUBJECT).is_active is True

    clock.current = T0 + THIRTY_DAYS + timedelta(milliseconds=1)
    assert lifecycle.derive_current_access(SUBJECT).can_view_premium is False
    # lazy expiry was written back
    assert store.get(SUBJECT).is_active is False


def test_exactly_thirty_days_is_still_active(lifecycle, clock):
    lifecycle.apply_grant(SUBJECT, GrantTimeBoxed(activated_at=T0))
    clock.current = T0 + THIRTY_DAYS
    assert lifecycle.derive_current_access(SUBJECT).can_view_premium is True


def test_derive_is_idempotent(lifecycle, store, clock):
    lifecycle.apply_grant(SUBJECT, GrantTimeBoxed(activated_at=T0))
    clock.advance(days=31)

    first = lifecycle.derive_current_access(SUBJECT)
    state_after_first = store.get(SUBJECT)
    second = lifecycle.derive_current_access(SUBJECT)

    assert first == second
    assert store.get(SUBJECT) == state_after_first


def test_reconcile_expiry_is_the_only_writer_on_read_path(clock):
    store = MagicMock(wraps=InMemoryEntitlementStore())
    lifecycle = EntitlementLifecycle(store, clock=clock)
    lifecycle.apply_grant(SUBJECT, GrantTimeBoxed(activated_at=T0))
    store.set.reset_mock()

    lifecycle.derive_current_access(SUBJECT)
    store.set.assert_not_called()

    clock.advance(days=40)
    lifecycle.reconcile_expiry(SUBJECT)
    store.set.assert_called_once()
    assert lifecycle.derive_current_access(SUBJECT).can_view_premium is False


def test_regrant_after_expiry_restarts_window(lifecycle, clock):
    lifecycle.apply_grant(SUBJECT, GrantTimeBoxed(activated_at=T0))
    clock.advance(days=31)
    assert lifecycle.derive_current_access(SUBJECT).can_view_premium is False

    lifecycle.apply_grant(SUBJECT, GrantTimeBoxed(activated_at=clock()))
    assert lifecycle.derive_current_access(SUBJECT).can_view_premium is True


def test_time_boxed_grant_does_not_downgrade_permanent(lifecycle, store, clock):
    lifecycle.apply_grant(SUBJECT, GrantPermanent())
    lifecycle.apply_grant(SUBJECT, GrantTimeBoxed(activated_at=T0))
    assert store.get(SUBJECT).is_permanent is True

    clock.advance(days=90)
    assert lifecycle.derive_current_access(SUBJECT).can_view_premium is True


def test_no_match_grant_is_a_no_op(lifecycle, store):
    assert lifecycle.apply_grant(SUBJECT, NoMatch()) is None
    assert store.get(SUBJECT) is None


def test_active_time_boxed_without_start_is_expired(lifecycle, store):
    store.set(SUBJECT, Entitlement(subject_id=SUBJECT, is_active=True, activated_at=None))
    assert lifecycle.derive_current_access(SUBJECT).can_view_premium is False
    assert store.get(SUBJECT).is_active is False


def test_configurable_window(store, clock):
    lifecycle = EntitlementLifecycle.with_duration_days(store, 7, clock=clock)
    lifecycle.apply_grant(SUBJECT, GrantTimeBoxed(activated_at=T0))
    clock.advance(days=8)
    assert lifecycle.derive_current_access(SUBJECT).can_view_premium is False


def test_status_reports_days_left(lifecycle, clock):
    assert lifecycle.status(SUBJECT)["status"] == "never"

    lifecycle.apply_grant(SUBJECT, GrantTimeBoxed(activated_at=T0))
    clock.advance(days=10)
    info = lifecycle.status(SUBJECT)
    assert info["status"] == "active"
    assert info["days_left"] == 20
    assert info["expires_at"] == (T0 + THIRTY_DAYS).isoformat()

    clock.advance(days=25)
    assert lifecycle.status(SUBJECT)["status"] == "expired"


# -------------------------------------------------
# SQL store
# -------------------------------------------------
def test_sql_store_round_trip(db_session):
    store = SqlEntitlementStore(db_session)
    assert store.get(SUBJECT) is None

    store.set(SUBJECT, Entitlement(subject_id=SUBJECT, is_active=True, activated_at=T0))
    got = store.get(SUBJECT)
    assert got == Entitlement(subject_id=SUBJECT, is_active=True, activated_at=T0, is_permanent=False)

    store.set(SUBJECT, Entitlement(subject_id=SUBJECT, is_active=False, activated_at=T0))
    assert store.get(SUBJECT).is_active is False
    assert db_session.query(models.VipEntitlement).count() == 1


def test_sql_store_keeps_millisecond_precision(db_session, clock):
    lifecycle = EntitlementLifecycle(SqlEntitlementStore(db_session), clock=clock)
    lifecycle.apply_grant(SUBJECT, GrantTimeBoxed(activated_at=T0))

    clock.current = T0 + THIRTY_DAYS + timedelta(milliseconds=1)
    assert lifecycle.derive_current_access(SUBJECT).can_view_premium is False


def test_sql_store_failures_raise_store_unavailable():
    db = MagicMock()
    db.get.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))
    store = SqlEntitlementStore(db)

    with pytest.raises(StoreUnavailable):
        store.get(SUBJECT)
    with pytest.raises(StoreUnavailable):
        store.set(SUBJECT, Entitlement(subject_id=SUBJECT, is_active=True, activated_at=T0))
    assert db.rollback.called


def test_lifecycle_propagates_store_unavailable(clock):
    failing = MagicMock()
    failing.get.side_effect = StoreUnavailable("down")
    lifecycle = EntitlementLifecycle(failing, clock=clock)

    with pytest.raises(StoreUnavailable):
        lifecycle.derive_current_access(SUBJECT)
