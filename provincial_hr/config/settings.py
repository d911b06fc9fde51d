"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

ENVIRONMENTS = {"development", "production", "test"}


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read /run/secrets/{secret_name}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


@dataclass
class AppConfig:
    """Application configuration container."""
    # Mode
    environment: str

    # Flask
    secret_key: str
    secret_key_fallbacks: list[str] = field(default_factory=list)
    session_cookie_secure: bool = True
    session_type: str = "filesystem"
    session_file_dir: str = ""
    session_lifetime_seconds: int = 86400
    trusted_proxy_ips: str = "127.0.0.1/32,::1/128"
    csrf_protection: bool = True

    # Document store
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db_name: str = "provincial_hr"

    # Authentication
    bcrypt_rounds: int = 12
    login_rate_limit_window_seconds: int = 900
    login_rate_limit_max_attempts: int = 5

    # Audit
    audit_log_dir: str = ".runtime/audit"
    audit_log_signing_key: str = ""

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def rate_limit_enabled(self) -> bool:
        """Login throttling is skipped in local development."""
        return not self.is_development


def _env_bool(var_name: str, default: bool) -> bool:
    value = os.environ.get(var_name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(var_name: str, default: int, minimum: int = 0) -> int:
    value = os.environ.get(var_name)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be an integer (got {value!r}).")
    if parsed < minimum:
        raise RuntimeError(f"Environment variable {var_name} must be >= {minimum} (got {parsed}).")
    return parsed


def _get_or_default(var_name: str, dev_default: Optional[str] = None, required: bool = True, development: bool = False) -> str:
    """Get environment variable or fall back to the development default."""
    value = os.environ.get(var_name)
    if value:
        return value

    if development and dev_default is not None:
        print(f"[dev-mode] Using default for {var_name}")
        return dev_default

    if not required:
        return ""

    raise RuntimeError(f"Environment variable {var_name} is required outside development mode.")


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    environment = os.environ.get("APP_ENV", "production").strip().lower()
    if environment not in ENVIRONMENTS:
        raise RuntimeError(
            f"APP_ENV must be one of {', '.join(sorted(ENVIRONMENTS))} (got {environment!r})."
        )
    development = environment == "development"
    relaxed = environment in {"development", "test"}

    # Flask secret key
    secret_key = _load_secret_from_file("flask_secret_key", "FLASK_SECRET_KEY")
    if not secret_key:
        if relaxed:
            secret_key = secrets.token_urlsafe(48)
            print(f"[{environment}] Generated temporary FLASK_SECRET_KEY")
        else:
            raise RuntimeError("FLASK_SECRET_KEY not found in /run/secrets or environment")

    secret_key_fallbacks = [
        key.strip()
        for key in os.environ.get("FLASK_SECRET_KEY_FALLBACKS", "").split(",")
        if key.strip()
    ]

    session_cookie_secure = _env_bool("FLASK_SESSION_COOKIE_SECURE", not development)
    session_type = os.environ.get("FLASK_SESSION_TYPE", "filesystem").strip().lower()
    if session_type not in {"filesystem", "mongodb"}:
        raise RuntimeError(f"FLASK_SESSION_TYPE must be 'filesystem' or 'mongodb' (got {session_type!r}).")
    session_file_dir = os.environ.get("FLASK_SESSION_DIR", "")
    session_lifetime_seconds = _env_int("SESSION_LIFETIME_SECONDS", 86400, minimum=60)

    # Trusted proxies
    trusted_proxy_ips = os.environ.get("TRUSTED_PROXY_IPS")
    if not trusted_proxy_ips:
        if relaxed:
            trusted_proxy_ips = "127.0.0.1/32,::1/128"
        else:
            raise RuntimeError("TRUSTED_PROXY_IPS is required outside development mode.")

    csrf_protection = _env_bool("CSRF_PROTECTION", True)

    # Document store
    mongo_uri = _load_secret_from_file("mongo_uri", "MONGO_URI") or _get_or_default(
        "MONGO_URI",
        dev_default="mongodb://localhost:27017",
        development=relaxed,
    )
    mongo_db_name = os.environ.get("MONGO_DB_NAME", "provincial_hr").strip() or "provincial_hr"

    # Authentication
    bcrypt_rounds = _env_int("BCRYPT_ROUNDS", 12, minimum=4)
    login_rate_limit_window_seconds = _env_int("LOGIN_RATE_LIMIT_WINDOW_SECONDS", 900, minimum=1)
    login_rate_limit_max_attempts = _env_int("LOGIN_RATE_LIMIT_MAX_ATTEMPTS", 5, minimum=1)

    # Audit
    audit_log_dir = os.environ.get("AUDIT_LOG_DIR", ".runtime/audit")
    audit_log_signing_key = _load_secret_from_file("audit_log_signing_key", "AUDIT_LOG_SIGNING_KEY") or ""

    print(f"[settings] Mode={environment.upper()}; db={mongo_db_name}; session={session_type}")
    if development:
        print("[settings] WARNING: Development mode - login throttling disabled.")

    return AppConfig(
        environment=environment,
        secret_key=secret_key,
        secret_key_fallbacks=secret_key_fallbacks,
        session_cookie_secure=session_cookie_secure,
        session_type=session_type,
        session_file_dir=session_file_dir,
        session_lifetime_seconds=session_lifetime_seconds,
        trusted_proxy_ips=trusted_proxy_ips,
        csrf_protection=csrf_protection,
        mongo_uri=mongo_uri,
        mongo_db_name=mongo_db_name,
        bcrypt_rounds=bcrypt_rounds,
        login_rate_limit_window_seconds=login_rate_limit_window_seconds,
        login_rate_limit_max_attempts=login_rate_limit_max_attempts,
        audit_log_dir=audit_log_dir,
        audit_log_signing_key=audit_log_signing_key,
    )
