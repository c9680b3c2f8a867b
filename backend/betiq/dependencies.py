# betiq/dependencies.py
from __future__ import annotations

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from .access_codes import CodeValidator
from .auth import get_current_user
from .config import Settings, get_settings
from .database import get_db
from .entitlements import EntitlementLifecycle, SqlEntitlementStore, StoreUnavailable
from .gating import VIP_REQUIRED, ViewerContext
from .match_source import FootballApiClient
from .models import User
from .predictions import PredictionGenerator
from .timeutil import Clock, utcnow

ENTITLEMENT_CHECK_FAILED = "ENTITLEMENT_CHECK_FAILED"


def get_clock() -> Clock:
    return utcnow


def get_entitlement_store(db: Session = Depends(get_db)) -> SqlEntitlementStore:
    return SqlEntitlementStore(db)


def get_lifecycle(
    store: SqlEntitlementStore = Depends(get_entitlement_store),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> EntitlementLifecycle:
    return EntitlementLifecycle.with_duration_days(store, settings.vip_duration_days, clock=clock)


def get_code_validator(
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> CodeValidator:
    return CodeValidator.from_settings(settings, clock=clock)


def get_match_source(settings: Settings = Depends(get_settings)) -> FootballApiClient:
    return FootballApiClient.from_settings(settings)


def get_prediction_generator(settings: Settings = Depends(get_settings)) -> PredictionGenerator:
    return PredictionGenerator.from_settings(settings)


def entitlement_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={
            "code": ENTITLEMENT_CHECK_FAILED,
            "message": "VIP status could not be checked right now. Please retry.",
        },
    )


def get_viewer(
    user: User = Depends(get_current_user),
    lifecycle: EntitlementLifecycle = Depends(get_lifecycle),
) -> ViewerContext:
    """
    Re-derives VIP access for the logged-in user on every request.
    A storage failure is reported as 503, never as "not VIP".
    """
    try:
        access = lifecycle.derive_current_access(user.email)
    except StoreUnavailable:
        raise entitlement_unavailable()
    return ViewerContext(subject_id=user.email, access=access, language=user.language)


def require_vip(
    viewer: ViewerContext = Depends(get_viewer),
    settings: Settings = Depends(get_settings),
) -> ViewerContext:
    """VIP-only gate for whole endpoints (daily picks)."""
    if viewer.access.can_view_premium:
        return viewer
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={
            "code": VIP_REQUIRED,
            "message": "This feature requires VIP access.",
            "upgrade_url": settings.upgrade_url,
            "checkout_url": settings.checkout_url,
        },
    )
