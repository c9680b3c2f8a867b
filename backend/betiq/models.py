# betiq/models.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base
from .timeutil import utcnow


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    # Email doubles as the subject id for entitlements (normalized lowercase)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)

    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Values: "FR" | "EN"
    language: Mapped[str] = mapped_column(String(2), nullable=False, default="FR")
    # Values: "Safe" | "Moderate" | "High Risk"
    risk_level: Mapped[str] = mapped_column(String(20), nullable=False, default="Moderate")

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class VipEntitlement(Base):
    """
    Persisted VIP state, one row per subject.

    activated_at is only meaningful for time-boxed grants; permanent (admin
    code) grants never expire.
    """

    __tablename__ = "entitlements"

    subject_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_permanent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    activated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class PredictionCache(Base):
    __tablename__ = "prediction_cache"
    __table_args__ = (UniqueConstraint("match_id", "language", name="uq_prediction_match_lang"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    match_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    language: Mapped[str] = mapped_column(String(2), nullable=False)
    payload: Mapped[str] = mapped_column(Text, nullable=False)  # JSON bundle
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class AnalysisHistory(Base):
    __tablename__ = "analysis_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    subject_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    match_id: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[str] = mapped_column(Text, nullable=False)  # match + predictions JSON
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)


class DailySelection(Base):
    """VIP "safe picks": three matches fixed once per calendar date."""

    __tablename__ = "daily_selections"

    day: Mapped[str] = mapped_column(String(10), primary_key=True)  # YYYY-MM-DD
    payload: Mapped[str] = mapped_column(Text, nullable=False)  # JSON list of matches
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
