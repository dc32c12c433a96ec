"""Environment-driven configuration and logging setup."""

from __future__ import annotations

import logging

import pytest

from app.config import DEFAULT_SECRET_KEY, AppConfig, load_config, setup_logging


def test_defaults(monkeypatch):
    for name in (
        "PLANTCARE_ENV",
        "PLANTCARE_DATABASE_PATH",
        "PLANTCARE_HTTP_TIMEOUT",
        "PLANTCARE_DEBUG",
        "PLANTCARE_TRUST_USER_HEADER",
    ):
        monkeypatch.delenv(name, raising=False)

    config = AppConfig()

    assert config.environment == "development"
    assert config.database_path == "database/plantcare.db"
    assert config.http_timeout_seconds == 10
    assert config.DEBUG is False
    assert config.seed_species is True
    assert config.trust_user_header is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PLANTCARE_DATABASE_PATH", "/data/plants.db")
    monkeypatch.setenv("PLANTCARE_DEBUG", "yes")
    monkeypatch.setenv("PLANTCARE_SEED_SPECIES", "0")
    monkeypatch.setenv("PLANTCARE_HTTP_TIMEOUT", "30")
    monkeypatch.setenv("PLANTCARE_TRUST_USER_HEADER", "true")

    config = AppConfig()

    assert config.database_path == "/data/plants.db"
    assert config.DEBUG is True
    assert config.seed_species is False
    assert config.http_timeout_seconds == 30
    assert config.as_flask_config()["TRUST_USER_HEADER"] is True


def test_invalid_integer_env(monkeypatch):
    monkeypatch.setenv("PLANTCARE_HTTP_TIMEOUT", "soon")

    with pytest.raises(ValueError, match="PLANTCARE_HTTP_TIMEOUT"):
        AppConfig()


def test_production_requires_secret(monkeypatch):
    monkeypatch.setenv("PLANTCARE_ENV", "production")
    monkeypatch.delenv("PLANTCARE_SECRET_KEY", raising=False)

    with pytest.raises(RuntimeError, match="default secret key"):
        AppConfig()

    monkeypatch.setenv("PLANTCARE_SECRET_KEY", "s3cret")
    assert AppConfig().as_flask_config()["SECRET_KEY"] == "s3cret"


def test_load_config_overrides_are_validated(monkeypatch):
    monkeypatch.delenv("PLANTCARE_ENV", raising=False)

    assert load_config(database_path=":memory:").database_path == ":memory:"
    with pytest.raises(ValueError, match="Unknown configuration option"):
        load_config(no_such_option=True)
    with pytest.raises(ValueError):
        load_config(http_timeout_seconds=0)
    with pytest.raises(RuntimeError):
        load_config(environment="production", secret_key=DEFAULT_SECRET_KEY)


def test_setup_logging_is_idempotent(tmp_path):
    root = logging.getLogger()
    saved = list(root.handlers)
    for handler in saved:
        if handler.name in {"plantcare_console", "plantcare_file"}:
            root.removeHandler(handler)
    try:
        setup_logging(log_dir=str(tmp_path))
        setup_logging(debug=True, log_dir=str(tmp_path))

        ours = [h for h in root.handlers if h.name in {"plantcare_console", "plantcare_file"}]
        assert sorted(h.name for h in ours) == ["plantcare_console", "plantcare_file"]
        assert all(h.level == logging.DEBUG for h in ours)
        assert (tmp_path / "plantcare.log").exists()
        assert logging.getLogger("urllib3").level == logging.WARNING
    finally:
        for handler in list(root.handlers):
            if handler.name in {"plantcare_console", "plantcare_file"}:
                handler.close()
                root.removeHandler(handler)
        for handler in saved:
            if handler not in root.handlers:
                root.addHandler(handler)
