from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict

import yaml
from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    env: str
    log_level: str
    cache_ttl_seconds: int

    database_url: str

    llm_provider: str
    llm_model: str
    llm_temperature: float

    default_age: int
    default_retirement_age: int
    default_investment_return: float
    projection_years: int
    safe_withdrawal_rate: float

    statement_workers: int


def _deep_get(d: Dict[str, Any], path: str, default=None):
    cur = d
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


def load_settings(config_path: str = "config.yaml") -> Settings:
    """
    Loads config.yaml + overrides from .env/environment variables.
    """
    load_dotenv()  # loads .env into env vars

    cfg: Dict[str, Any] = {}
    if os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}

    # Empty env vars count as "not set" so a blank DATABASE_URL in a shell
    # doesn't override config.yaml.
    def _env_or_cfg(key: str, cfg_path: str, default):
        v = os.getenv(key)
        if v is None:
            return _deep_get(cfg, cfg_path, default)
        v = v.strip()
        return _deep_get(cfg, cfg_path, default) if v == "" else v

    env = _env_or_cfg("APP_ENV", "app.env", "dev")
    log_level = _env_or_cfg("LOG_LEVEL", "app.log_level", "INFO")
    cache_ttl_seconds = int(_env_or_cfg("CACHE_TTL_SECONDS", "app.cache_ttl_seconds", 3600))

    database_url = _env_or_cfg("DATABASE_URL", "database.url", "sqlite:///finance.db")

    llm_provider = _env_or_cfg("LLM_PROVIDER", "llm.provider", "gemini")
    llm_model = _env_or_cfg("LLM_MODEL", "llm.model", "gemini-2.5-flash")
    llm_temperature = float(_env_or_cfg("LLM_TEMPERATURE", "llm.temperature", 0.4))

    # Normalize common aliases so config and code are consistent.
    if isinstance(llm_provider, str):
        lp = llm_provider.strip().lower()
        if lp in ("google", "googleai", "google-genai", "genai"):
            llm_provider = "gemini"
        else:
            llm_provider = lp

    default_age = int(_env_or_cfg("DEFAULT_AGE", "planning.default_age", 35))
    default_retirement_age = int(_env_or_cfg("DEFAULT_RETIREMENT_AGE", "planning.default_retirement_age", 65))
    default_investment_return = float(
        _env_or_cfg("DEFAULT_INVESTMENT_RETURN", "planning.default_investment_return", 7.0)
    )
    projection_years = int(_env_or_cfg("PROJECTION_YEARS", "planning.projection_years", 30))
    safe_withdrawal_rate = float(_env_or_cfg("SAFE_WITHDRAWAL_RATE", "planning.safe_withdrawal_rate", 0.04))

    statement_workers = int(_env_or_cfg("STATEMENT_WORKERS", "statements.max_workers", 2))

    return Settings(
        env=env,
        log_level=log_level,
        cache_ttl_seconds=cache_ttl_seconds,
        database_url=database_url,
        llm_provider=llm_provider,
        llm_model=llm_model,
        llm_temperature=llm_temperature,
        default_age=default_age,
        default_retirement_age=default_retirement_age,
        default_investment_return=default_investment_return,
        projection_years=projection_years,
        safe_withdrawal_rate=safe_withdrawal_rate,
        statement_workers=statement_workers,
    )


# Optional convenience singleton
SETTINGS = load_settings()
