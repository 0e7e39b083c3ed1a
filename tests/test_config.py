from pathlib import Path

import pytest

from originalitycheck.config import load_settings
from originalitycheck.exceptions import ConfigError


ENV_KEYS = [
    "OPENAI_API_KEY",
    "API_KEY",
    "OPENAI_BASE_URL",
    "BASE_URL",
    "OPENAI_MODEL",
    "OPENAI_TIMEOUT_SEC",
    "SEMANTIC_SCHOLAR_BASE_URL",
    "SEMANTIC_SCHOLAR_API_KEY",
    "ARXIV_BASE_URL",
    "LITERATURE_TIMEOUT_SEC",
    "NETWORK_TRUST_ENV",
    "OUTPUT_DIR",
    "POLL_INTERVAL_SEC",
    "POLL_TIMEOUT_SEC",
    "LOG_LEVEL",
]


def clear_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_load_settings_from_dotenv_with_aliases(tmp_path, monkeypatch):
    clear_env(monkeypatch)

    dotenv = tmp_path / ".env"
    dotenv.write_text(
        "\n".join(
            [
                "API_KEY=test-openai-key",
                "BASE_URL=https://openai.example.com/v1/",
                "OPENAI_MODEL=test-model",
                "SEMANTIC_SCHOLAR_BASE_URL=https://s2.example.com/graph/v1/",
                "SEMANTIC_SCHOLAR_API_KEY=s2-key",
                "ARXIV_BASE_URL=https://arxiv.example.com",
                "LITERATURE_TIMEOUT_SEC=5",
                "NETWORK_TRUST_ENV=true",
                "OUTPUT_DIR=custom_outputs",
                "POLL_INTERVAL_SEC=0.5",
                "LOG_LEVEL=debug",
            ]
        ),
        encoding="utf-8",
    )

    settings = load_settings(dotenv_path=dotenv)

    assert settings.openai_api_key == "test-openai-key"
    assert settings.openai_base_url == "https://openai.example.com/v1"
    assert settings.openai_model == "test-model"
    assert settings.semantic_scholar_base_url == "https://s2.example.com/graph/v1"
    assert settings.semantic_scholar_api_key == "s2-key"
    assert settings.arxiv_base_url == "https://arxiv.example.com"
    assert settings.literature_timeout_sec == 5
    assert settings.network_trust_env is True
    assert settings.output_dir == Path("custom_outputs")
    assert settings.poll_interval_sec == 0.5
    assert settings.log_level == "DEBUG"
    assert settings.text_understanding_enabled is True


def test_load_settings_defaults_without_api_key(tmp_path, monkeypatch):
    clear_env(monkeypatch)

    settings = load_settings(dotenv_path=tmp_path / "missing.env")

    assert settings.openai_api_key is None
    assert settings.text_understanding_enabled is False
    assert settings.openai_base_url == "https://api.openai.com/v1"
    assert settings.openai_model == "gpt-4.1-mini"
    assert settings.semantic_scholar_base_url == "https://api.semanticscholar.org/graph/v1"
    assert settings.arxiv_base_url == "http://export.arxiv.org"
    assert settings.network_trust_env is False
    assert settings.output_dir == Path("outputs/analyses")
    assert settings.poll_interval_sec == 2.0
    assert settings.poll_timeout_sec == 600


def test_load_settings_rejects_invalid_numbers(tmp_path, monkeypatch):
    clear_env(monkeypatch)
    monkeypatch.setenv("OPENAI_TIMEOUT_SEC", "soon")

    with pytest.raises(ConfigError, match="OPENAI_TIMEOUT_SEC"):
        load_settings(dotenv_path=tmp_path / "missing.env")


def test_load_settings_rejects_non_positive_poll_interval(tmp_path, monkeypatch):
    clear_env(monkeypatch)
    monkeypatch.setenv("POLL_INTERVAL_SEC", "0")

    with pytest.raises(ConfigError):
        load_settings(dotenv_path=tmp_path / "missing.env")
