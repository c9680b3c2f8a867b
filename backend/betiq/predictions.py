# betiq/predictions.py
"""
AI prediction bundles for a single match.

The generator never raises: any upstream problem (no key, network, quota,
malformed JSON) is logged and a static fallback bundle with is_fallback=True
is returned instead.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx
import openai
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from betiq import models
from betiq.config import Settings
from betiq.prompts import SYSTEM_PROMPT, analysis_prompt
from betiq.schemas import PredictionBundle

logger = logging.getLogger(__name__)

CONFIDENCE_LEVELS = ("LOW", "MEDIUM", "HIGH")

FALLBACK_TEXT = {
    "FR": {
        "recommendation": "À définir",
        "analysis": "Les serveurs d'analyse sont surchargés. Veuillez patienter.",
        "key_fact": "Analyse en attente",
    },
    "EN": {
        "recommendation": "To be determined",
        "analysis": "Our analysis servers are busy. Please try again shortly.",
        "key_fact": "Analysis pending",
    },
}


class GenerationFailed(Exception):
    pass


def fallback_bundle(language: str) -> PredictionBundle:
    text = FALLBACK_TEXT.get(language, FALLBACK_TEXT["FR"])
    return PredictionBundle(
        predictions=[
            {
                "bet_type": "1X2",
                "recommendation": text["recommendation"],
                "probability": 50,
                "confidence": "MEDIUM",
                "odds": 1.80,
            }
        ],
        analysis=text["analysis"],
        vip_insight={
            "exact_scores": [],
            "key_fact": text["key_fact"],
            "strategy": {"safe": "N/A", "value": "N/A", "aggressive": "N/A"},
        },
        language=language if language in FALLBACK_TEXT else "FR",
        is_fallback=True,
    )


def extract_json(text: Optional[str]) -> Optional[dict]:
    """Pulls the outermost JSON object out of a reply that may be fenced or chatty."""
    if not text:
        return None
    cleaned = text.replace("```json", "").replace("```", "").strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    candidate = cleaned[start:end + 1] if start != -1 and end > start else cleaned
    try:
        data = json.loads(candidate)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _number(value: Any, default: Optional[float] = None) -> Optional[float]:
    if value is None:
        return default
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _normalize_prediction(raw: dict) -> dict:
    confidence = str(raw.get("confidence") or "MEDIUM").strip().upper()
    probability = _number(raw.get("probability"), 0.0)
    return {
        "bet_type": str(raw.get("type") or raw.get("bet_type") or "1X2"),
        "recommendation": str(raw.get("recommendation") or ""),
        "probability": min(100.0, max(0.0, probability)),
        "confidence": confidence if confidence in CONFIDENCE_LEVELS else "MEDIUM",
        "odds": _number(raw.get("odds")),
    }


def _score_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(s) for s in value]
    raise GenerationFailed("exactScores is not a list")


def _normalize_insight(raw: Any) -> Optional[dict]:
    if not isinstance(raw, dict):
        return None
    strategy = raw.get("strategy") if isinstance(raw.get("strategy"), dict) else {}
    stats = raw.get("detailedStats", raw.get("detailed_stats"))
    scores = raw.get("exactScores", raw.get("exact_scores"))
    return {
        "exact_scores": _score_list(scores),
        "key_fact": str(raw.get("keyFact") or raw.get("key_fact") or ""),
        "strategy": {k: str(strategy.get(k) or "-") for k in ("safe", "value", "aggressive")},
        "detailed_stats": stats if isinstance(stats, dict) else None,
    }


def parse_bundle(data: dict, language: str) -> PredictionBundle:
    """Model JSON (camelCase, loosely typed) -> PredictionBundle."""
    raw_predictions = data.get("predictions") or data.get("prediction")
    if isinstance(raw_predictions, dict):
        raw_predictions = [raw_predictions]
    if not isinstance(raw_predictions, list) or not raw_predictions:
        raise GenerationFailed("response has no predictions")

    try:
        return PredictionBundle(
            predictions=[_normalize_prediction(p) for p in raw_predictions if isinstance(p, dict)],
            analysis=str(data.get("analysis") or ""),
            vip_insight=_normalize_insight(data.get("vipInsight", data.get("vip_insight"))),
            language=language,
            is_fallback=False,
        )
    except ValidationError as e:
        raise GenerationFailed("response does not match the bundle schema") from e


class PredictionGenerator:
    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: str = "",
        base_url: Optional[str] = None,
        timeout: float = 20.0,
        max_retries: int = 2,
        client: Any = None,
    ) -> None:
        self.model = model
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "PredictionGenerator":
        return cls(
            model=settings.llm_model,
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
            timeout=settings.llm_timeout,
            max_retries=settings.llm_max_retries,
        )

    def _get_client(self):
        if self._client is None:
            if not self.api_key:
                raise GenerationFailed("LLM_API_KEY is not configured")
            self._client = openai.OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=self.max_retries,
            )
        return self._client

    def _generate(self, match, language: str) -> PredictionBundle:
        client = self._get_client()
        prompt = analysis_prompt(match.home_team, match.away_team, match.league, language)
        try:
            resp = client.chat.completions.create(
                model=self.model,
                temperature=0.4,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except (openai.OpenAIError, httpx.HTTPError) as e:
            raise GenerationFailed(f"LLM request failed: {e}") from e

        try:
            text = resp.choices[0].message.content
        except (AttributeError, IndexError) as e:
            raise GenerationFailed("LLM response has no content") from e

        data = extract_json(text)
        if data is None:
            raise GenerationFailed("LLM response is not JSON")
        return parse_bundle(data, language)

    def generate(self, match, language: str) -> PredictionBundle:
        try:
            return self._generate(match, language)
        except GenerationFailed as e:
            logger.warning("Prediction fallback for match %s: %s", getattr(match, "id", "?"), e)
            return fallback_bundle(language)
        except (TypeError, AttributeError, ValueError) as e:
            logger.warning("Prediction fallback for match %s: malformed reply (%r)", getattr(match, "id", "?"), e)
            return fallback_bundle(language)


# -------------------------------------------------
# Cache (fresh results only, per match + language)
# -------------------------------------------------
def get_cached_bundle(db: Session, match_id: str, language: str) -> Optional[PredictionBundle]:
    row = db.scalar(
        select(models.PredictionCache).where(
            models.PredictionCache.match_id == match_id,
            models.PredictionCache.language == language,
        )
    )
    if row is None:
        return None
    try:
        return PredictionBundle.model_validate_json(row.payload)
    except ValidationError:
        logger.warning("Dropping unreadable cached prediction for match %s", match_id)
        return None


def cache_bundle(db: Session, match_id: str, bundle: PredictionBundle) -> None:
    if bundle.is_fallback:
        return
    db.add(
        models.PredictionCache(
            match_id=match_id,
            language=bundle.language,
            payload=bundle.model_dump_json(),
        )
    )
    try:
        db.commit()
    except IntegrityError:
        # another request cached the same match first
        db.rollback()


def get_or_generate(db: Session, generator: PredictionGenerator, match, language: str) -> PredictionBundle:
    cached = get_cached_bundle(db, match.id, language)
    if cached is not None:
        return cached
    bundle = generator.generate(match, language)
    cache_bundle(db, match.id, bundle)
    return bundle


def redact_for_access(bundle: PredictionBundle, can_view_premium: bool) -> PredictionBundle:
    """Non-VIP viewers get predictions and analysis but no VIP insight block."""
    if can_view_premium:
        return bundle
    return bundle.model_copy(update={"vip_insight": None})
