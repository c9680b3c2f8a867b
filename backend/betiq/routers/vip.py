# betiq/routers/vip.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from betiq import history, schemas
from betiq.access_codes import CodeValidator, is_grant
from betiq.config import Settings, get_settings
from betiq.database import get_db
from betiq.dependencies import (
    entitlement_unavailable,
    get_clock,
    get_code_validator,
    get_lifecycle,
    get_match_source,
    get_viewer,
    require_vip,
)
from betiq.entitlements import EntitlementLifecycle, StoreUnavailable
from betiq.gating import ViewerContext
from betiq.match_source import FootballApiClient
from betiq.routers.matches import resolve_day
from betiq.timeutil import Clock

router = APIRouter(prefix="/vip", tags=["vip"])


@router.get("/status", response_model=schemas.VipStatusOut)
def vip_status(
    viewer: ViewerContext = Depends(get_viewer),
    lifecycle: EntitlementLifecycle = Depends(get_lifecycle),
    settings: Settings = Depends(get_settings),
):
    try:
        info = lifecycle.status(viewer.subject_id)
    except StoreUnavailable:
        raise entitlement_unavailable()
    return {
        "can_view_premium": viewer.access.can_view_premium,
        "checkout_url": None if viewer.access.can_view_premium else settings.checkout_url,
        **info,
    }


@router.post("/code", response_model=schemas.CodeOut)
def submit_code(
    payload: schemas.CodeIn,
    viewer: ViewerContext = Depends(get_viewer),
    validator: CodeValidator = Depends(get_code_validator),
    lifecycle: EntitlementLifecycle = Depends(get_lifecycle),
):
    """
    Safe to call on every keystroke: anything that is not a valid code is a
    NO_MATCH answer with no state change.
    """
    outcome = validator.validate(payload.code)
    if not is_grant(outcome):
        return {"outcome": outcome.kind, "can_view_premium": viewer.access.can_view_premium}

    try:
        lifecycle.apply_grant(viewer.subject_id, outcome)
        access = lifecycle.derive_current_access(viewer.subject_id)
    except StoreUnavailable:
        raise entitlement_unavailable()
    return {"outcome": outcome.kind, "can_view_premium": access.can_view_premium}


@router.post("/reconcile", response_model=schemas.VipStatusOut)
def reconcile(
    viewer: ViewerContext = Depends(get_viewer),
    lifecycle: EntitlementLifecycle = Depends(get_lifecycle),
):
    """Explicit expiry check (the same check also runs on every request)."""
    try:
        lifecycle.reconcile_expiry(viewer.subject_id)
        access = lifecycle.derive_current_access(viewer.subject_id)
        info = lifecycle.status(viewer.subject_id)
    except StoreUnavailable:
        raise entitlement_unavailable()
    return {"can_view_premium": access.can_view_premium, **info}


@router.get("/daily-picks", response_model=schemas.DailyPicksOut)
def daily_picks(
    date: Optional[str] = Query(default=None, description="YYYY-MM-DD, defaults to today"),
    viewer: ViewerContext = Depends(require_vip),
    db: Session = Depends(get_db),
    source: FootballApiClient = Depends(get_match_source),
    clock: Clock = Depends(get_clock),
):
    day = resolve_day(date, clock)
    picks = history.get_daily_selection(db, day)
    if picks is None:
        picks = history.ensure_daily_selection(db, day, source.fetch_matches_by_date(day))
    return {"date": day.isoformat(), "matches": picks}


@router.get("/history")
def daily_history(
    viewer: ViewerContext = Depends(get_viewer),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Past daily selections, newest day first (last 7 days with picks)."""
    return history.past_selections(db, clock().date())
