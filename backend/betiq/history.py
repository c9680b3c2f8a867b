# betiq/history.py
from __future__ import annotations

import json
import random
from datetime import date
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from betiq import models
from betiq.match_source import Match
from betiq.schemas import PredictionBundle

HISTORY_LIMIT = 30
DAILY_PICKS = 3
DAILY_HISTORY_DAYS = 7


# -------------------------------------------------
# Per-user analysis history
# -------------------------------------------------
def record_analysis(db: Session, subject_id: str, match: Match, bundle: PredictionBundle) -> None:
    """Newest first, one entry per match, at most HISTORY_LIMIT entries."""
    db.execute(
        delete(models.AnalysisHistory).where(
            models.AnalysisHistory.subject_id == subject_id,
            models.AnalysisHistory.match_id == match.id,
        )
    )
    payload = {
        "match": match.to_dict(),
        "predictions": [p.model_dump() for p in bundle.predictions],
    }
    db.add(models.AnalysisHistory(subject_id=subject_id, match_id=match.id, payload=json.dumps(payload)))
    db.flush()

    stale_ids = db.scalars(
        select(models.AnalysisHistory.id)
        .where(models.AnalysisHistory.subject_id == subject_id)
        .order_by(models.AnalysisHistory.created_at.desc(), models.AnalysisHistory.id.desc())
        .offset(HISTORY_LIMIT)
    ).all()
    if stale_ids:
        db.execute(delete(models.AnalysisHistory).where(models.AnalysisHistory.id.in_(stale_ids)))
    db.commit()


def list_history(db: Session, subject_id: str) -> list[dict]:
    rows = db.scalars(
        select(models.AnalysisHistory)
        .where(models.AnalysisHistory.subject_id == subject_id)
        .order_by(models.AnalysisHistory.created_at.desc(), models.AnalysisHistory.id.desc())
        .limit(HISTORY_LIMIT)
    ).all()
    out = []
    for row in rows:
        data = json.loads(row.payload)
        out.append({**data, "analyzed_at": row.created_at})
    return out


# -------------------------------------------------
# VIP daily selection
# -------------------------------------------------
def get_daily_selection(db: Session, day: date) -> Optional[list[dict]]:
    row = db.get(models.DailySelection, day.isoformat())
    if row is None:
        return None
    return json.loads(row.payload)


def pick_daily_matches(matches: list[Match], day: date, count: int = DAILY_PICKS) -> list[Match]:
    # seeded by the date so two concurrent first requests agree on the pick
    rng = random.Random(day.isoformat())
    return rng.sample(matches, count)


def ensure_daily_selection(db: Session, day: date, matches: list[Match]) -> list[dict]:
    """
    Fixes the day's picks the first time there are enough matches;
    later calls return the stored picks unchanged.
    """
    existing = get_daily_selection(db, day)
    if existing is not None:
        return existing
    if len(matches) < DAILY_PICKS:
        return []

    picks = [m.to_dict() for m in pick_daily_matches(matches, day)]
    db.add(models.DailySelection(day=day.isoformat(), payload=json.dumps(picks)))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return get_daily_selection(db, day) or []
    return picks


def past_selections(db: Session, today: date, days: int = DAILY_HISTORY_DAYS) -> dict[str, list[dict]]:
    rows = db.scalars(
        select(models.DailySelection)
        .where(models.DailySelection.day < today.isoformat())
        .order_by(models.DailySelection.day.desc())
        .limit(days)
    ).all()
    return {row.day: json.loads(row.payload) for row in rows}
