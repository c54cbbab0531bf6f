"""
Tests for `api/settings.py`.
"""

from __future__ import annotations

import pytest

import api.settings as settings_module
from api.settings import load_settings
from services.printful_client import DEFAULT_TIMEOUT_SECONDS, PRINTFUL_API_BASE

_VARS = [
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "STRIPE_SECRET_KEY",
    "STRIPE_WEBHOOK_SECRET",
    "PRINTFUL_API_KEY",
    "PRINTFUL_API_BASE",
    "PRINTFUL_TIMEOUT_SECONDS",
    "ADMIN_API_KEY",
    "PUBLIC_BASE_URL",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in _VARS:
        # setenv first so teardown also removes values load_dotenv adds.
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    # Keep a developer's real .env out of these tests.
    monkeypatch.setattr(settings_module, "_ENV_PATH", tmp_path / ".env")


def test_defaults_without_environment() -> None:
    settings = load_settings()

    assert settings.supabase_url is None
    assert settings.stripe_webhook_secret is None
    assert settings.printful_api_base == PRINTFUL_API_BASE
    assert settings.printful_timeout_seconds == DEFAULT_TIMEOUT_SECONDS
    assert settings.log_level == "INFO"


def test_values_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_abc")
    monkeypatch.setenv("PRINTFUL_TIMEOUT_SECONDS", "12.5")
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://shop.example.com")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.stripe_webhook_secret == "whsec_abc"
    assert settings.printful_timeout_seconds == 12.5
    assert settings.public_base_url == "https://shop.example.com"
    assert settings.log_level == "DEBUG"


def test_values_from_env_file(tmp_path) -> None:
    (tmp_path / ".env").write_text("ADMIN_API_KEY=from-file\n")

    assert load_settings().admin_api_key == "from-file"


def test_invalid_timeout_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("PRINTFUL_TIMEOUT_SECONDS", "soon")

    with pytest.raises(RuntimeError, match="PRINTFUL_TIMEOUT_SECONDS"):
        load_settings()
