"""Configuration loading — required values fail fast."""

import pytest

from mercadito.config import load_settings
from mercadito.errors import StartupError
from mercadito.main import build_app


@pytest.fixture()
def clean_env(monkeypatch, tmp_path):
    for var in ("MONGO_URL", "SESSION_SECRET", "PORT", "ENVIRONMENT", "LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    # no stray .env file gets picked up
    monkeypatch.chdir(tmp_path)
    return monkeypatch


def test_defaults_from_env(clean_env):
    clean_env.setenv("MONGO_URL", "mongodb://db:27017")
    clean_env.setenv("SESSION_SECRET", "s3cret")
    settings = load_settings()
    assert settings.port == 8080
    assert settings.session_ttl_seconds == 3600
    assert settings.mongo_db == "ecommerce"
    assert settings.log_level == "debug"


def test_port_and_level_overrides(clean_env):
    clean_env.setenv("MONGO_URL", "mongodb://db:27017")
    clean_env.setenv("SESSION_SECRET", "s3cret")
    clean_env.setenv("PORT", "9090")
    clean_env.setenv("ENVIRONMENT", "production")
    settings = load_settings()
    assert settings.port == 9090
    assert settings.log_level == "info"
    assert not settings.is_development


def test_missing_mongo_url_is_startup_error(clean_env):
    clean_env.setenv("SESSION_SECRET", "s3cret")
    with pytest.raises(StartupError, match="MONGO_URL"):
        load_settings()


def test_missing_session_secret_is_startup_error(clean_env):
    clean_env.setenv("MONGO_URL", "mongodb://db:27017")
    with pytest.raises(StartupError, match="SESSION_SECRET"):
        load_settings()


def test_build_app_refuses_to_start_without_config(clean_env):
    with pytest.raises(StartupError):
        build_app()


def test_dotenv_file_is_read(clean_env, tmp_path):
    (tmp_path / ".env").write_text("MONGO_URL=mongodb://from-file\nSESSION_SECRET=abc\n")
    settings = load_settings()
    assert settings.mongo_url == "mongodb://from-file"


def test_log_level_is_case_insensitive(clean_env):
    clean_env.setenv("MONGO_URL", "mongodb://db:27017")
    clean_env.setenv("SESSION_SECRET", "s3cret")
    clean_env.setenv("LOG_LEVEL", "HTTP")
    assert load_settings().log_level == "http"


def test_unknown_log_level_is_startup_error(clean_env):
    clean_env.setenv("MONGO_URL", "mongodb://db:27017")
    clean_env.setenv("SESSION_SECRET", "s3cret")
    clean_env.setenv("LOG_LEVEL", "loud")
    with pytest.raises(StartupError, match="LOG_LEVEL"):
        load_settings()
