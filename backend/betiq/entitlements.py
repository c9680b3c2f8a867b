# betiq/entitlements.py
"""
VIP entitlement lifecycle.

Rules:
  - no entitlement / inactive        -> no premium access
  - permanent (admin code)           -> premium access forever
  - time-boxed (ordinary code)       -> premium access until activated_at + 30 days
  - expiry is lazy: it is detected (and written back) on the next evaluation,
    there is no background job
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Dict, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from betiq import models
from betiq.access_codes import GrantPermanent, GrantTimeBoxed, ValidationOutcome
from betiq.config import DEFAULT_VIP_DURATION_DAYS
from betiq.timeutil import Clock, utcnow

logger = logging.getLogger(__name__)

THIRTY_DAYS_MS = 30 * 24 * 60 * 60 * 1000
THIRTY_DAYS = timedelta(milliseconds=THIRTY_DAYS_MS)


class StoreUnavailable(Exception):
    """Entitlement persistence failed; the caller must not assume "not VIP"."""


@dataclass(frozen=True)
class Entitlement:
    subject_id: str
    is_active: bool = False
    activated_at: Optional[datetime] = None
    is_permanent: bool = False


@dataclass(frozen=True)
class EffectiveAccess:
    can_view_premium: bool = False


NO_ACCESS = EffectiveAccess(can_view_premium=False)
PREMIUM_ACCESS = EffectiveAccess(can_view_premium=True)


# -------------------------------------------------
# Stores
# -------------------------------------------------
class EntitlementStore(Protocol):
    def get(self, subject_id: str) -> Optional[Entitlement]: ...

    def set(self, subject_id: str, entitlement: Entitlement) -> None: ...


class InMemoryEntitlementStore:
    def __init__(self) -> None:
        self._rows: Dict[str, Entitlement] = {}

    def get(self, subject_id: str) -> Optional[Entitlement]:
        return self._rows.get(subject_id)

    def set(self, subject_id: str, entitlement: Entitlement) -> None:
        self._rows[subject_id] = replace(entitlement, subject_id=subject_id)


class SqlEntitlementStore:
    """Entitlements table; any SQLAlchemy error becomes StoreUnavailable."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, subject_id: str) -> Optional[Entitlement]:
        try:
            row = self.db.get(models.VipEntitlement, subject_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Entitlement read failed for %s: %s", subject_id, e)
            raise StoreUnavailable("entitlement read failed") from e

        if row is None:
            return None
        return Entitlement(
            subject_id=row.subject_id,
            is_active=bool(row.is_active),
            activated_at=row.activated_at,
            is_permanent=bool(row.is_permanent),
        )

    def set(self, subject_id: str, entitlement: Entitlement) -> None:
        try:
            row = self.db.get(models.VipEntitlement, subject_id)
            if row is None:
                row = models.VipEntitlement(subject_id=subject_id)
                self.db.add(row)
            row.is_active = entitlement.is_active
            row.is_permanent = entitlement.is_permanent
            row.activated_at = entitlement.activated_at
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Entitlement write failed for %s: %s", subject_id, e)
            raise StoreUnavailable("entitlement write failed") from e


# -------------------------------------------------
# Lifecycle
# -------------------------------------------------
def expires_at(entitlement: Entitlement, window: timedelta = THIRTY_DAYS) -> Optional[datetime]:
    if entitlement.is_permanent or entitlement.activated_at is None:
        return None
    return entitlement.activated_at + window


def is_expired(entitlement: Entitlement, now: datetime, window: timedelta = THIRTY_DAYS) -> bool:
    if entitlement.is_permanent:
        return False
    if entitlement.activated_at is None:
        # active time-boxed grant without a start date cannot be honoured
        return True
    return (now - entitlement.activated_at) > window


class EntitlementLifecycle:
    def __init__(
        self,
        store: EntitlementStore,
        clock: Optional[Clock] = None,
        window: timedelta = THIRTY_DAYS,
    ) -> None:
        self.store = store
        self._clock = clock or utcnow
        self.window = window

    @classmethod
    def with_duration_days(cls, store: EntitlementStore, days: int, clock: Optional[Clock] = None):
        if days == DEFAULT_VIP_DURATION_DAYS:
            return cls(store, clock=clock)
        return cls(store, clock=clock, window=timedelta(days=days))

    def now(self) -> datetime:
        return self._clock()

    def reconcile_expiry(self, subject_id: str) -> Optional[Entitlement]:
        """
        Deactivates an elapsed time-boxed entitlement in the store.
        Returns the (possibly updated) entitlement.
        """
        current = self.store.get(subject_id)
        if current is None or not current.is_active:
            return current

        if not is_expired(current, self.now(), self.window):
            return current

        expired = replace(current, is_active=False)
        self.store.set(subject_id, expired)
        logger.info("VIP expired for %s (activated %s)", subject_id, current.activated_at)
        return expired

    def derive_current_access(self, subject_id: str) -> EffectiveAccess:
        current = self.reconcile_expiry(subject_id)
        if current is None or not current.is_active:
            return NO_ACCESS
        return PREMIUM_ACCESS

    def apply_grant(self, subject_id: str, outcome: ValidationOutcome) -> Optional[Entitlement]:
        """
        Persists a Grant* outcome. NoMatch is a no-op and returns None.

        A time-boxed grant never downgrades an existing permanent entitlement.
        """
        if isinstance(outcome, GrantPermanent):
            existing = self.store.get(subject_id)
            granted = Entitlement(
                subject_id=subject_id,
                is_active=True,
                activated_at=existing.activated_at if existing else None,
                is_permanent=True,
            )
        elif isinstance(outcome, GrantTimeBoxed):
            existing = self.store.get(subject_id)
            permanent = bool(existing and existing.is_permanent)
            granted = Entitlement(
                subject_id=subject_id,
                is_active=True,
                activated_at=outcome.activated_at,
                is_permanent=permanent,
            )
        else:
            return None

        self.store.set(subject_id, granted)
        logger.info("VIP granted to %s (%s)", subject_id, outcome.kind)
        return granted

    def status(self, subject_id: str) -> dict:
        """Entitlement details for the VIP page (after expiry reconciliation)."""
        current = self.reconcile_expiry(subject_id)
        now = self.now()

        if current is None:
            return {
                "status": "never",
                "is_active": False,
                "is_permanent": False,
                "activated_at": None,
                "expires_at": None,
                "days_left": 0,
            }

        end = expires_at(current, self.window)
        days_left = 0
        if current.is_active and end is not None and end > now:
            remaining = end - now
            days_left = max(0, int((remaining.total_seconds() + 86399) // 86400))

        if not current.is_active:
            state = "expired"
        elif current.is_permanent:
            state = "permanent"
        else:
            state = "active"

        return {
            "status": state,
            "is_active": current.is_active,
            "is_permanent": current.is_permanent,
            "activated_at": current.activated_at.isoformat() if current.activated_at else None,
            "expires_at": end.isoformat() if end else None,
            "days_left": days_left,
        }
