# betiq/routers/predictions.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from betiq import history, schemas
from betiq.config import Settings, get_settings
from betiq.database import get_db
from betiq.dependencies import get_clock, get_match_source, get_prediction_generator, get_viewer
from betiq.gating import UpgradeRedirect, ViewerContext, open_item, vip_required_error
from betiq.match_source import FootballApiClient, find_match
from betiq.predictions import PredictionGenerator, get_or_generate, redact_for_access
from betiq.routers.matches import content_item, resolve_day
from betiq.timeutil import Clock

router = APIRouter(prefix="/predictions", tags=["predictions"])

MATCH_NOT_FOUND = "MATCH_NOT_FOUND"


@router.post("/analyze", response_model=schemas.AnalysisOut)
def analyze_match(
    payload: schemas.AnalyzeIn,
    db: Session = Depends(get_db),
    viewer: ViewerContext = Depends(get_viewer),
    source: FootballApiClient = Depends(get_match_source),
    generator: PredictionGenerator = Depends(get_prediction_generator),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
):
    """
    Opens a match by id. The match record (and so its classification) comes
    from the match source for that date; premium matches are refused
    (upgrade redirect) for non-VIP viewers before any prediction is generated.
    """
    day = resolve_day(payload.date, clock)
    match = find_match(source.fetch_matches_by_date(day), payload.match_id)
    if match is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "code": MATCH_NOT_FOUND,
                "message": f"No match {payload.match_id} on {day.isoformat()}",
            },
        )

    item = content_item(match)
    opened = open_item(item, viewer.access, settings.upgrade_url)
    if isinstance(opened, UpgradeRedirect):
        raise vip_required_error(opened, settings.checkout_url)

    language = payload.language or viewer.language
    bundle = get_or_generate(db, generator, match, language)
    if not bundle.is_fallback:
        history.record_analysis(db, viewer.subject_id, match, bundle)

    return {
        "match_id": match.id,
        "classification": item.classification.value,
        "vip": viewer.access.can_view_premium,
        "bundle": redact_for_access(bundle, viewer.access.can_view_premium),
    }
