"""
Tests for configuration validation
"""
import pytest
from pydantic import ValidationError
from app.core.config import Settings


def make_settings(**overrides):
    values = {"DATABASE_URL": "postgresql://test", "JWT_SECRET_KEY": "test-key"}
    values.update(overrides)
    return Settings(**values)


def test_prod_settings_rejects_wildcard_origins():
    """Production requires explicit CORS origins"""
    settings = make_settings(JWT_SECRET_KEY="a" * 32, APP_ENV="prod", ALLOWED_ORIGINS="*")
    with pytest.raises(ValueError, match="ALLOWED_ORIGINS"):
        settings.validate_production()


def test_prod_settings_rejects_short_jwt_secret():
    settings = make_settings(JWT_SECRET_KEY="short", APP_ENV="prod", ALLOWED_ORIGINS="https://example.com")
    with pytest.raises(ValueError, match="JWT_SECRET_KEY"):
        settings.validate_production()


def test_local_settings_allows_wildcard_origins():
    settings = make_settings(APP_ENV="local", ALLOWED_ORIGINS="*")
    settings.validate_production()
    assert settings.get_allowed_origins_list() == ["*"]


def test_origins_list_is_split_and_trimmed():
    settings = make_settings(ALLOWED_ORIGINS="https://a.example, https://b.example ,")
    assert settings.get_allowed_origins_list() == ["https://a.example", "https://b.example"]


def test_invalid_app_env_rejected():
    with pytest.raises(ValidationError):
        make_settings(APP_ENV="production")


def test_invalid_timezone_rejected():
    with pytest.raises(ValidationError):
        make_settings(APP_TIMEZONE="Mars/Olympus_Mons")


def test_attendance_defaults():
    settings = make_settings()
    assert settings.LATE_GRACE_MINUTES == 0
    assert settings.GEOFENCE_ACCURACY_BUFFER is False
    assert settings.FACE_VERIFICATION_ENABLED is False
    assert settings.FACE_MATCH_THRESHOLD == 0.45
    assert settings.get_timezone().key == "Asia/Ho_Chi_Minh"


def test_negative_grace_rejected():
    with pytest.raises(ValidationError):
        make_settings(LATE_GRACE_MINUTES=-1)
