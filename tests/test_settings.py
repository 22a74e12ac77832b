"""Configuration settings behaviour tests."""

from __future__ import annotations

import pytest

from animeshelf.config import Settings


def test_defaults_match_catalog_contract() -> None:
    """Default page sizes and endpoints follow the remote catalog contract."""

    settings = Settings(_env_file=None)

    assert settings.catalog_base_url == "https://api.jikan.moe/v4"
    assert settings.trending_limit == 10
    assert settings.search_limit == 20
    assert 10.0 <= settings.catalog_timeout_seconds <= 15.0
    assert settings.database_url.startswith("sqlite+aiosqlite://")


def test_catalog_url_trailing_slash_is_stripped() -> None:
    settings = Settings(_env_file=None, CATALOG_API_URL="https://mirror.example.com/v4/")

    assert settings.catalog_base_url == "https://mirror.example.com/v4"


def test_log_level_is_case_insensitive() -> None:
    settings = Settings(_env_file=None, LOG_LEVEL="debug")

    assert settings.log_level == "DEBUG"


def test_unknown_log_level_raises() -> None:
    with pytest.raises(ValueError, match="Unknown log level configured"):
        Settings(_env_file=None, LOG_LEVEL="chatty")


def test_timeout_must_stay_bounded() -> None:
    """Requests should never be configured to hang indefinitely."""

    with pytest.raises(ValueError):
        Settings(_env_file=None, CATALOG_TIMEOUT=0)
