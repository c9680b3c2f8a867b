# betiq/prompts.py
from __future__ import annotations

SYSTEM_PROMPT = (
    "You are an expert football analyst producing betting predictions. "
    "Return ONLY a valid JSON object, no markdown and no extra text."
)

RESPONSE_SHAPE = """{
  "predictions": [
    {"type": "1X2", "recommendation": "Victory for ...", "probability": 85, "confidence": "HIGH", "odds": 1.6},
    {"type": "O/U 2.5", "recommendation": "+2.5 Goals", "probability": 75, "confidence": "MEDIUM", "odds": 1.8},
    {"type": "BTTS", "recommendation": "Yes", "probability": 70, "confidence": "HIGH", "odds": 1.9}
  ],
  "analysis": "Short tactical analysis (max 2 sentences).",
  "vipInsight": {
    "exactScores": ["2-1", "1-0"],
    "keyFact": "Major injury in defense",
    "strategy": {"safe": "DNB", "value": "Home +1.5", "aggressive": "Exact Score 2-1"},
    "detailedStats": {"homeForm": "WWDLW", "awayForm": "LDWWL", "h2h": "3W 1D 1L"}
  }
}"""

LANGUAGE_NAMES = {"FR": "French", "EN": "English"}


def analysis_prompt(home_team: str, away_team: str, league: str, language: str) -> str:
    lang_name = LANGUAGE_NAMES.get(language, "French")
    return (
        f"Match: {home_team} vs {away_team} ({league}).\n"
        "Analyse this football match:\n"
        "1. PREDICTIONS: 1X2, Over/Under 2.5, Both Teams To Score (BTTS).\n"
        "2. VIP: give 2 precise, realistic exact scores and one key fact.\n"
        f"3. TACTICS: one short paragraph of tactical analysis written in {lang_name}.\n"
        "Probabilities are percentages between 0 and 100; confidence is LOW, MEDIUM or HIGH; "
        "odds are decimal odds.\n"
        f"Structure:\n{RESPONSE_SHAPE}"
    )
