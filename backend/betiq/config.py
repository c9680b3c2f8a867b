# betiq/config.py
"""
Central place for runtime settings.

Everything is read from environment variables (a .env file is loaded once at
startup by betiq.main). Access codes are treated as immutable configuration:
they are loaded once and never modified by requests.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_CODE = "20202020"
DEFAULT_VIP_CODES: tuple[str, ...] = tuple(f"BETIQ-{n}" for n in range(1, 101))

DEFAULT_VIP_DURATION_DAYS = 30
DEFAULT_CHECKOUT_URL = "https://lgckygmt.mychariow.shop/prd_2owkyx/checkout"

SUPPORTED_LANGUAGES = ("FR", "EN")


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int) -> int:
    try:
        return int(_env(name, str(default)))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(_env(name, str(default)))
    except ValueError:
        return default


def normalize_code(raw: Optional[str]) -> str:
    """Access codes compare after trimming and uppercasing, nothing more."""
    return (raw or "").strip().upper()


def build_code_set(codes: Iterable[str]) -> frozenset[str]:
    """
    Normalizes the configured ordinary codes into a set.

    Duplicates are harmless but usually mean the code list was generated
    badly, so they get a warning.
    """
    normalized = [normalize_code(c) for c in codes]
    normalized = [c for c in normalized if c]
    code_set = frozenset(normalized)
    dupes = len(normalized) - len(code_set)
    if dupes:
        logger.warning("Access code list contains %d duplicate entries", dupes)
    return code_set


def _load_vip_codes() -> frozenset[str]:
    path = _env("VIP_CODES_FILE")
    if path:
        lines = Path(path).read_text(encoding="utf-8").splitlines()
        return build_code_set(lines)

    raw = _env("VIP_CODES")
    if raw:
        return build_code_set(raw.split(","))

    return build_code_set(DEFAULT_VIP_CODES)


def _language(value: str) -> str:
    lang = value.upper()
    return lang if lang in SUPPORTED_LANGUAGES else "FR"


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./betiq.db"

    secret_key: str = "CHANGE_ME_TO_SOMETHING_RANDOM_AND_LONG"
    access_token_expire_minutes: int = 1440

    vip_admin_code: str = DEFAULT_ADMIN_CODE
    vip_codes: frozenset[str] = field(default_factory=lambda: build_code_set(DEFAULT_VIP_CODES))
    vip_duration_days: int = DEFAULT_VIP_DURATION_DAYS

    upgrade_url: str = "/settings"
    login_url: str = "/login"
    checkout_url: str = DEFAULT_CHECKOUT_URL

    football_api_base: str = "https://apiv3.apifootball.com/"
    football_api_key: str = ""
    football_api_timeout: float = 10.0
    football_api_retries: int = 3

    llm_api_key: str = ""
    llm_base_url: Optional[str] = None
    llm_model: str = "gpt-4o-mini"
    llm_timeout: float = 20.0
    llm_max_retries: int = 2

    default_language: str = "FR"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=_env("DATABASE_URL", cls.database_url),
            secret_key=_env("SECRET_KEY", cls.secret_key),
            access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MINUTES", cls.access_token_expire_minutes),
            vip_admin_code=normalize_code(_env("VIP_ADMIN_CODE", DEFAULT_ADMIN_CODE)),
            vip_codes=_load_vip_codes(),
            vip_duration_days=_env_int("VIP_DURATION_DAYS", DEFAULT_VIP_DURATION_DAYS),
            upgrade_url=_env("UPGRADE_URL", cls.upgrade_url),
            login_url=_env("LOGIN_URL", cls.login_url),
            checkout_url=_env("CHECKOUT_URL", DEFAULT_CHECKOUT_URL),
            football_api_base=_env("FOOTBALL_API_BASE", cls.football_api_base),
            football_api_key=_env("FOOTBALL_API_KEY"),
            football_api_timeout=_env_float("FOOTBALL_API_TIMEOUT", cls.football_api_timeout),
            football_api_retries=max(1, _env_int("FOOTBALL_API_RETRIES", cls.football_api_retries)),
            llm_api_key=_env("LLM_API_KEY") or _env("OPENAI_API_KEY"),
            llm_base_url=_env("LLM_BASE_URL") or None,
            llm_model=_env("LLM_MODEL", cls.llm_model),
            llm_timeout=_env_float("LLM_TIMEOUT", cls.llm_timeout),
            llm_max_retries=max(0, _env_int("LLM_MAX_RETRIES", cls.llm_max_retries)),
            default_language=_language(_env("DEFAULT_LANGUAGE", "FR")),
            log_level=_env("LOG_LEVEL", cls.log_level).upper(),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
