"""
Configuration for PlantCare Watering
====================================
Runtime settings for the watering scheduler server and the device-local CLI.
Values come from ``PLANTCARE_*`` environment variables with development
defaults. Sets up the logging configuration as well.
"""

import os
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Any

DEFAULT_SECRET_KEY = "PlantCareDevSecretKey"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer.") from None


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    environment: str = field(default_factory=lambda: os.getenv("PLANTCARE_ENV", "development"))
    secret_key: str = field(default_factory=lambda: os.getenv("PLANTCARE_SECRET_KEY", DEFAULT_SECRET_KEY))
    database_path: str = field(default_factory=lambda: os.getenv("PLANTCARE_DATABASE_PATH", "database/plantcare.db"))
    seed_species: bool = field(default_factory=lambda: _env_bool("PLANTCARE_SEED_SPECIES", True))

    # Device-local (guest mode) storage directory
    local_store_dir: str = field(default_factory=lambda: os.getenv("PLANTCARE_LOCAL_STORE_DIR", "var"))

    # Server the device migrates guest data to
    server_url: str = field(default_factory=lambda: os.getenv("PLANTCARE_SERVER_URL", "http://localhost:5000"))
    http_timeout_seconds: int = field(default_factory=lambda: _env_int("PLANTCARE_HTTP_TIMEOUT", 10))

    # Take the caller identity from X-User-Id when no session exists; only
    # safe behind a gateway that authenticates devices and sets the header
    trust_user_header: bool = field(default_factory=lambda: _env_bool("PLANTCARE_TRUST_USER_HEADER", False))

    DEBUG: bool = field(default_factory=lambda: _env_bool("PLANTCARE_DEBUG", False))
    audit_log_path: str = field(default_factory=lambda: os.getenv("PLANTCARE_AUDIT_LOG_PATH", "logs/audit.log"))
    log_level: str = field(default_factory=lambda: os.getenv("PLANTCARE_LOG_LEVEL", "INFO"))

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        # SECURITY: Fail fast if using default secret key in production
        if self.environment == "production" and self.secret_key == DEFAULT_SECRET_KEY:
            raise RuntimeError(
                "SECURITY ERROR: Cannot use default secret key in production!\n"
                "Set PLANTCARE_SECRET_KEY environment variable to a secure random value.\n"
                'Generate one with: python -c "import secrets; print(secrets.token_hex(32))"'
            )
        if self.http_timeout_seconds <= 0:
            raise ValueError("PLANTCARE_HTTP_TIMEOUT must be a positive number of seconds.")

    def as_flask_config(self) -> dict[str, Any]:
        """Render configuration values for Flask application."""
        secret = self.secret_key or os.getenv("FLASK_SECRET_KEY", "")
        if not secret:
            raise RuntimeError(
                "Missing PLANTCARE_SECRET_KEY or FLASK_SECRET_KEY environment variable. "
                "Production systems must set an explicit secret key."
            )

        return {
            "ENV": self.environment,
            "SECRET_KEY": secret,
            "DATABASE_PATH": self.database_path,
            "AUDIT_LOG_PATH": self.audit_log_path,
            "TRUST_USER_HEADER": self.trust_user_header,
            "DEBUG": self.DEBUG,
        }


def setup_logging(debug: bool = False, log_dir: str = "logs") -> None:
    """Setup logging configuration."""
    import logging
    import sys
    from logging.handlers import RotatingFileHandler

    log_level = logging.DEBUG if debug else logging.INFO

    # Root logger
    root = logging.getLogger()
    root.setLevel(log_level)

    # Keep existing handlers but avoid adding duplicates when create_app is called multiple times
    has_console = any(getattr(h, "name", "") == "plantcare_console" for h in root.handlers)
    has_file = any(getattr(h, "name", "") == "plantcare_file" for h in root.handlers)
    added_handler = False

    # Console handler (force UTF-8 to avoid UnicodeEncodeError on Windows terminals)
    stream = sys.stderr
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "plantcare_console"
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    # File handler
    if not has_file:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, "plantcare.log"),
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = "plantcare_file"
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    # Ensure handler levels follow the desired log level
    for handler in root.handlers:
        if getattr(handler, "name", "") in {"plantcare_console", "plantcare_file"}:
            handler.setLevel(log_level)

    if added_handler:
        root.info("Logging initialized at level: %s", logging.getLevelName(log_level))

    if _env_bool("PLANTCARE_SILENCE_WERKZEUG", True):
        logging.getLogger("werkzeug").setLevel(logging.WARNING)
    # urllib3 logs every connection at DEBUG during guest-data migration
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def load_config(**overrides: Any) -> AppConfig:
    """Helper for callers to load and validate configuration."""
    config = AppConfig()
    for key, value in overrides.items():
        if not hasattr(config, key):
            raise ValueError(f"Unknown configuration option: {key}")
        setattr(config, key, value)
    if overrides:
        # Re-run validation against the overridden values
        config.__post_init__()
    return config
