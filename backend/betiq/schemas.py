# betiq/schemas.py
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

Language = Literal["FR", "EN"]
RiskLevel = Literal["Safe", "Moderate", "High Risk"]
Confidence = Literal["LOW", "MEDIUM", "HIGH"]


# -----------------------------
# AUTH
# -----------------------------
class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: Optional[int] = None


class RegisterIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: Optional[str] = None
    language: Optional[Language] = None


# -----------------------------
# USERS
# -----------------------------
class UserOut(BaseModel):
    id: int
    email: EmailStr
    name: Optional[str] = None
    language: Language
    risk_level: RiskLevel
    created_at: datetime

    class Config:
        from_attributes = True


class UserUpdateMe(BaseModel):
    name: Optional[str] = None
    language: Optional[Language] = None
    risk_level: Optional[RiskLevel] = None


# -----------------------------
# MATCHES
# -----------------------------
class MatchIn(BaseModel):
    id: str = Field(min_length=1)
    home_team: str
    away_team: str
    league: str = ""
    country: str = ""
    date: str = ""
    time: str = ""
    status: str = ""
    home_logo: str = ""
    away_logo: str = ""
    league_id: str = ""


class MatchOut(MatchIn):
    classification: Literal["PREMIUM", "STANDARD"]
    view: Literal["FULLY_VISIBLE", "LOCKED_PLACEHOLDER"]


class DayOut(BaseModel):
    date: str
    is_today: bool = False


# -----------------------------
# PREDICTIONS
# -----------------------------
class PredictionOut(BaseModel):
    bet_type: str
    recommendation: str
    probability: float = Field(ge=0, le=100)
    confidence: Confidence = "MEDIUM"
    odds: Optional[float] = None


class StrategyOut(BaseModel):
    safe: str = "-"
    value: str = "-"
    aggressive: str = "-"


class VipInsightOut(BaseModel):
    exact_scores: list[str] = Field(default_factory=list)
    key_fact: str = ""
    strategy: StrategyOut = Field(default_factory=StrategyOut)
    detailed_stats: Optional[dict[str, Any]] = None


class PredictionBundle(BaseModel):
    predictions: list[PredictionOut]
    analysis: str
    vip_insight: Optional[VipInsightOut] = None
    language: Optional[Language] = None
    # True when the analysis service failed and this is the static placeholder
    is_fallback: bool = False


class AnalyzeIn(BaseModel):
    # the match is looked up server-side; client team names are never trusted
    match_id: str = Field(min_length=1)
    date: Optional[str] = None
    language: Optional[Language] = None


class AnalysisOut(BaseModel):
    match_id: str
    classification: Literal["PREMIUM", "STANDARD"]
    vip: bool
    bundle: PredictionBundle


class HistoryEntryOut(BaseModel):
    match: MatchIn
    predictions: list[PredictionOut]
    analyzed_at: datetime


# -----------------------------
# VIP
# -----------------------------
class CodeIn(BaseModel):
    code: str = ""


class VipStatusOut(BaseModel):
    can_view_premium: bool
    status: str
    is_active: bool
    is_permanent: bool
    activated_at: Optional[str] = None
    expires_at: Optional[str] = None
    days_left: int = 0
    checkout_url: Optional[str] = None


class CodeOut(BaseModel):
    outcome: Literal["NO_MATCH", "GRANT_PERMANENT", "GRANT_TIME_BOXED"]
    can_view_premium: bool


class DailyPicksOut(BaseModel):
    date: str
    matches: list[MatchIn]
