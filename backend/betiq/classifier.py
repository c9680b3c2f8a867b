# betiq/classifier.py
from __future__ import annotations

from enum import Enum

# Matches involving these clubs get the premium treatment.
# Containment, not equality: "Real Madrid CF" or "Man United U21" still match.
# A partial collision (e.g. "Inter" inside "Inter Miami") is classified
# premium too; that is a known limitation of the heuristic.
ELITE_TEAMS: tuple[str, ...] = (
    "Real Madrid",
    "Barcelona",
    "Man City",
    "Liverpool",
    "Man United",
    "Arsenal",
    "Bayern",
    "PSG",
    "Juventus",
    "Inter",
    "Milan",
    "Chelsea",
    "Dortmund",
    "Atletico",
)


class Classification(str, Enum):
    PREMIUM = "PREMIUM"
    STANDARD = "STANDARD"


def is_elite_team(name: str, elite: tuple[str, ...] = ELITE_TEAMS) -> bool:
    name = name or ""
    return any(team in name for team in elite)


def classify_teams(home_team: str, away_team: str, elite: tuple[str, ...] = ELITE_TEAMS) -> Classification:
    if is_elite_team(home_team, elite) or is_elite_team(away_team, elite):
        return Classification.PREMIUM
    return Classification.STANDARD


def classify(match, elite: tuple[str, ...] = ELITE_TEAMS) -> Classification:
    """Works on anything with home_team / away_team attributes."""
    return classify_teams(getattr(match, "home_team", ""), getattr(match, "away_team", ""), elite)
