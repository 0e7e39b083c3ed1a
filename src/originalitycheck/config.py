"""Environment-based configuration for the pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .exceptions import ConfigError


@dataclass(frozen=True)
class Settings:
    openai_api_key: str | None
    openai_base_url: str
    openai_model: str
    openai_timeout_sec: int

    semantic_scholar_base_url: str
    semantic_scholar_api_key: str | None
    arxiv_base_url: str
    literature_timeout_sec: int

    network_trust_env: bool

    output_dir: Path
    poll_interval_sec: float
    poll_timeout_sec: int
    log_level: str

    @property
    def text_understanding_enabled(self) -> bool:
        return bool(self.openai_api_key)


_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _read_env(*keys: str, default: str | None = None) -> str | None:
    for key in keys:
        value = os.getenv(key)
        if value is not None and value != "":
            return value
    return default


def _read_bool(*keys: str, default: bool) -> bool:
    raw = _read_env(*keys)
    if raw is None:
        return default
    return raw.strip().lower() not in _FALSE_VALUES


def _read_int(*keys: str, default: int) -> int:
    raw = _read_env(*keys)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid integer for {keys[0]}: {raw}") from exc


def _read_float(*keys: str, default: float) -> float:
    raw = _read_env(*keys)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid float for {keys[0]}: {raw}") from exc


def load_settings(dotenv_path: str | Path | None = None) -> Settings:
    """Load project settings from .env and OS env vars.

    A missing OpenAI key is not an error: every text-understanding stage
    then falls back to its neutral result.
    """

    load_dotenv(dotenv_path=dotenv_path, override=False)

    poll_interval_sec = _read_float("POLL_INTERVAL_SEC", default=2.0)
    if poll_interval_sec <= 0:
        raise ConfigError(f"POLL_INTERVAL_SEC must be positive: {poll_interval_sec}")

    return Settings(
        openai_api_key=_read_env("OPENAI_API_KEY", "API_KEY"),
        openai_base_url=(
            _read_env(
                "OPENAI_BASE_URL", "BASE_URL", default="https://api.openai.com/v1"
            )
            or "https://api.openai.com/v1"
        ).rstrip("/"),
        openai_model=_read_env("OPENAI_MODEL", default="gpt-4.1-mini")
        or "gpt-4.1-mini",
        openai_timeout_sec=_read_int("OPENAI_TIMEOUT_SEC", default=120),
        semantic_scholar_base_url=(
            _read_env(
                "SEMANTIC_SCHOLAR_BASE_URL",
                default="https://api.semanticscholar.org/graph/v1",
            )
            or "https://api.semanticscholar.org/graph/v1"
        ).rstrip("/"),
        semantic_scholar_api_key=_read_env("SEMANTIC_SCHOLAR_API_KEY"),
        arxiv_base_url=(
            _read_env("ARXIV_BASE_URL", default="http://export.arxiv.org")
            or "http://export.arxiv.org"
        ).rstrip("/"),
        literature_timeout_sec=_read_int("LITERATURE_TIMEOUT_SEC", default=30),
        network_trust_env=_read_bool("NETWORK_TRUST_ENV", default=False),
        output_dir=Path(
            _read_env("OUTPUT_DIR", default="outputs/analyses") or "outputs/analyses"
        ),
        poll_interval_sec=poll_interval_sec,
        poll_timeout_sec=_read_int("POLL_TIMEOUT_SEC", default=600),
        log_level=(_read_env("LOG_LEVEL", default="INFO") or "INFO").upper(),
    )
