"""Gunicorn configuration file.

Run with:
    gunicorn -c gunicorn.conf.py "provincial_hr.flask_app:create_app()"

Secret loading priority matches provincial_hr.config.settings:
1. /run/secrets (Docker secrets mount)
2. Environment variables
"""
import os
from pathlib import Path

bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:5000")
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "30"))
# Let ProxyFix see the proxy's X-Forwarded-* headers
forwarded_allow_ips = os.environ.get("FORWARDED_ALLOW_IPS", "127.0.0.1")

REQUIRED_SETTINGS = {
    "FLASK_SECRET_KEY": "flask_secret_key",
    "MONGO_URI": "mongo_uri",
}


def _has_setting(env_name: str, secret_name: str) -> bool:
    secret_file = Path("/run/secrets") / secret_name
    if secret_file.is_file() and secret_file.read_text().strip():
        return True
    return bool(os.environ.get(env_name, "").strip())


def post_fork(server, worker):
    """
    Called just after a worker has been forked.

    Warns early when a required secret is neither mounted nor exported; the
    application itself refuses to start without them outside development.
    """
    environment = os.environ.get("APP_ENV", "production").lower()
    missing = [env for env, secret in REQUIRED_SETTINGS.items() if not _has_setting(env, secret)]
    if not missing:
        worker.log.info("Required secrets present (/run/secrets or environment)")
        return
    if environment == "development":
        worker.log.warning(f"Development mode: using defaults for {', '.join(missing)}")
        return
    worker.log.error(f"Missing required settings: {', '.join(missing)}")
