from __future__ import annotations

from zoneinfo import ZoneInfo

from taskplanner.core.config import Settings


def test_environment_profiles_apply_defaults() -> None:
    dev = Settings(environment="development")
    assert dev.environment == "development"
    assert dev.log_level == "DEBUG"
    assert dev.reload is True
    assert dev.cache_enabled is True

    test_profile = Settings(environment="test")
    assert test_profile.environment == "test"
    assert test_profile.log_level == "WARNING"
    assert test_profile.reload is False
    assert test_profile.cache_enabled is False
    assert test_profile.bcrypt_rounds == 4

    production = Settings(environment="production")
    assert production.cookie_secure is True
    assert production.log_level == "INFO"


def test_environment_aliases_are_normalised() -> None:
    assert Settings(environment="DEV").environment == "development"
    assert Settings(environment="prod").environment == "production"
    assert Settings(environment="staging").environment == "development"


def test_environment_profile_respects_explicit_overrides(monkeypatch) -> None:
    monkeypatch.setenv("PLANNER_LOG_LEVEL", "error")
    overridden = Settings(environment="test")
    assert overridden.log_level == "ERROR"

    monkeypatch.delenv("PLANNER_LOG_LEVEL", raising=False)
    monkeypatch.setenv("PLANNER_CACHE_ENABLED", "true")
    assert Settings(environment="test").cache_enabled is True


def test_timezone_and_scalar_validation(monkeypatch) -> None:
    monkeypatch.setenv("PLANNER_TIMEZONE", "Europe/Berlin")
    settings = Settings(environment="test")
    assert settings.tzinfo == ZoneInfo("Europe/Berlin")

    fallback = Settings(
        environment="test",
        timezone="Mars/Olympus",
        bcrypt_rounds=99,
        job_retry_backoff_seconds="1, 2, nope, 3",
    )
    assert fallback.timezone == "UTC"
    assert fallback.bcrypt_rounds == 31
    assert fallback.job_retry_backoff_seconds == [1, 2, 3]
