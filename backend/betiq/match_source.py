# betiq/match_source.py
"""
Fixtures from apifootball.com (v3).

Failures never reach the caller: an unreachable or misbehaving API gives an
empty match list and the UI shows its empty state.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Optional

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from betiq.config import Settings

logger = logging.getLogger(__name__)

# Competitions we surface (matched against league_name, lowercase)
LEAGUE_KEYWORDS: tuple[str, ...] = (
    "Champions League", "Europa League", "Conference League", "Libertadores",
    "CAF Champions", "CONCACAF", "FIFA Club World Cup", "Premier League",
    "La Liga", "Serie A", "Bundesliga", "Ligue 1", "Brasileirão", "Liga MX",
    "Major League Soccer", "MLS", "Primeira Liga", "Eredivisie", "World Cup", "Euro",
    "Copa América", "CAN", "Cup of Nations", "Asian Cup", "Gold Cup",
    "Nations League", "Copa del Rey", "Coupe du Roi", "King's Cup", "African Nations",
)
AFRICAN_KEYWORDS: tuple[str, ...] = ("Africa", "CAN", "CAF", "Afrique", "Nations Cup")
MAJOR_COUNTRIES = frozenset({
    "England", "Spain", "Italy", "Germany", "France", "Brazil",
    "Mexico", "USA", "Portugal", "Netherlands",
})
AFCON_LEAGUE_ID = "28"


class MatchSourceUnavailable(Exception):
    pass


class _RetryableStatus(MatchSourceUnavailable):
    pass


@dataclass(frozen=True)
class Match:
    id: str
    league: str
    home_team: str
    away_team: str
    home_logo: str = ""
    away_logo: str = ""
    time: str = ""
    status: str = ""
    date: str = ""
    country: str = ""
    league_id: str = ""

    @classmethod
    def from_api(cls, raw: dict) -> "Match":
        return cls(
            id=str(raw.get("match_id") or ""),
            league=raw.get("league_name") or "",
            home_team=raw.get("match_hometeam_name") or "",
            away_team=raw.get("match_awayteam_name") or "",
            home_logo=raw.get("team_home_badge") or "",
            away_logo=raw.get("team_away_badge") or "",
            time=raw.get("match_time") or "",
            status=raw.get("match_status") or "",
            date=raw.get("match_date") or "",
            country=raw.get("country_name") or "",
            league_id=str(raw.get("league_id") or ""),
        )

    def to_dict(self) -> dict:
        return asdict(self)


def is_major_competition(raw: dict) -> bool:
    name = (raw.get("league_name") or "").lower()
    country = raw.get("country_name") or ""
    country_l = country.lower()

    if any(k.lower() in name for k in LEAGUE_KEYWORDS):
        return True
    if any(k.lower() in name or k.lower() in country_l for k in AFRICAN_KEYWORDS):
        return True
    if country in MAJOR_COUNTRIES:
        return True
    return str(raw.get("league_id") or "") == AFCON_LEAGUE_ID


def filter_by_league(matches: list[Match], league: Optional[str]) -> list[Match]:
    if not league or league == "All":
        return matches
    return [m for m in matches if league in m.league]


def find_match(matches: list[Match], match_id: str) -> Optional[Match]:
    for m in matches:
        if m.id == match_id:
            return m
    return None


class FootballApiClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        retries: int = 3,
        backoff: float = 0.5,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self.retries = max(1, retries)
        self.backoff = backoff
        self._http = http_client

    @classmethod
    def from_settings(cls, settings: Settings) -> "FootballApiClient":
        return cls(
            base_url=settings.football_api_base,
            api_key=settings.football_api_key,
            timeout=settings.football_api_timeout,
            retries=settings.football_api_retries,
        )

    # -------------------------------------------------
    # HTTP
    # -------------------------------------------------
    def _request(self, params: dict) -> Any:
        query = {**params, "APIkey": self.api_key}
        if self._http is not None:
            r = self._http.get(self.base_url, params=query)
        else:
            with httpx.Client(timeout=self.timeout) as client:
                r = client.get(self.base_url, params=query)

        if r.status_code == 429 or r.status_code >= 500:
            raise _RetryableStatus(f"HTTP {r.status_code}")
        if r.status_code != 200:
            raise MatchSourceUnavailable(f"HTTP {r.status_code}")
        try:
            return r.json()
        except ValueError as e:
            raise MatchSourceUnavailable("response is not JSON") from e

    def _get_json(self, params: dict) -> Any:
        retrying = Retrying(
            stop=stop_after_attempt(self.retries),
            wait=wait_exponential(multiplier=self.backoff, max=4),
            retry=retry_if_exception_type((httpx.TransportError, _RetryableStatus)),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                return self._request(params)

    # -------------------------------------------------
    # Public API
    # -------------------------------------------------
    def fetch_matches_by_date(self, day: date) -> list[Match]:
        iso = day.isoformat()
        try:
            data = self._get_json({"action": "get_events", "from": iso, "to": iso})
        except (httpx.HTTPError, MatchSourceUnavailable) as e:
            logger.warning("Match fetch failed for %s: %s", iso, e)
            return []

        # the API reports errors (including "no event found") as a JSON object
        if not isinstance(data, list):
            if isinstance(data, dict) and data.get("error"):
                logger.info("Match source returned error for %s: %s", iso, data.get("message"))
            return []

        matches = [Match.from_api(raw) for raw in data if isinstance(raw, dict) and is_major_competition(raw)]
        logger.info("Fetched %d matches for %s (%d before filtering)", len(matches), iso, len(data))
        return matches

    def fetch_standings(self, league_id: str) -> list[dict]:
        try:
            data = self._get_json({"action": "get_standings", "league_id": league_id})
        except (httpx.HTTPError, MatchSourceUnavailable) as e:
            logger.warning("Standings fetch failed for league %s: %s", league_id, e)
            return []
        return data if isinstance(data, list) else []
