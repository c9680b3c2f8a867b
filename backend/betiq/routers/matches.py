# betiq/routers/matches.py
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from betiq import schemas
from betiq.classifier import classify
from betiq.dependencies import get_clock, get_match_source, get_viewer
from betiq.entitlements import EffectiveAccess
from betiq.gating import ContentItem, ViewerContext, resolve_view
from betiq.match_source import FootballApiClient, Match, filter_by_league
from betiq.timeutil import Clock, parse_day, upcoming_days

router = APIRouter(tags=["matches"])


def content_item(match: Match) -> ContentItem:
    return ContentItem(identity=match.id, classification=classify(match))


def annotate(match: Match, access: EffectiveAccess) -> dict:
    item = content_item(match)
    return {
        **match.to_dict(),
        "classification": item.classification.value,
        "view": resolve_view(item, access).value,
    }


def resolve_day(value: Optional[str], clock: Clock) -> date:
    if not value:
        return clock().date()
    day = parse_day(value)
    if day is None:
        raise HTTPException(status_code=400, detail="date must be YYYY-MM-DD")
    return day


@router.get("/matches/days", response_model=list[schemas.DayOut])
def match_days(
    count: int = Query(default=8, ge=1, le=14),
    clock: Clock = Depends(get_clock),
):
    today = clock().date()
    return [{"date": d.isoformat(), "is_today": d == today} for d in upcoming_days(today, count)]


@router.get("/matches", response_model=list[schemas.MatchOut])
def list_matches(
    date: Optional[str] = Query(default=None, description="YYYY-MM-DD, defaults to today"),
    league: Optional[str] = Query(default=None, description="League name filter ('All' for none)"),
    viewer: ViewerContext = Depends(get_viewer),
    source: FootballApiClient = Depends(get_match_source),
    clock: Clock = Depends(get_clock),
):
    day = resolve_day(date, clock)
    matches = filter_by_league(source.fetch_matches_by_date(day), league)
    return [annotate(m, viewer.access) for m in matches]


@router.get("/leagues/{league_id}/standings")
def league_standings(
    league_id: str,
    viewer: ViewerContext = Depends(get_viewer),
    source: FootballApiClient = Depends(get_match_source),
):
    return source.fetch_standings(league_id)
