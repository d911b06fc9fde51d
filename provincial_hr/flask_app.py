"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with all blueprints, middleware, and configuration.

Gunicorn entry point: ``provincial_hr.flask_app:create_app()``
"""
from __future__ import annotations
import hmac
import ipaddress
import os
import secrets
from datetime import timedelta
from pathlib import Path
from tempfile import gettempdir
from typing import Optional

from flask import Flask, abort, g, request, session
from flask_session import Session
from pymongo.errors import PyMongoError
from werkzeug.middleware.proxy_fix import ProxyFix

from provincial_hr.config import AppConfig, load_settings
from provincial_hr.core.audit import AUDITED_METHODS, safe_log_mutation
from provincial_hr.core.store import DocumentStore, connect
from provincial_hr.core.throttle import LoginThrottle

CSRF_SESSION_KEY = "_csrf_token"
CSRF_HEADER = "X-CSRF-Token"
# No session exists yet when logging in
CSRF_EXEMPT_PATHS = {"/auth/login"}
SESSION_COLLECTION = "sessions"
MAX_CONTENT_LENGTH = 1 * 1024 * 1024


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(settings: Optional[AppConfig] = None, store: Optional[DocumentStore] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        settings: Preloaded configuration (defaults to load_settings())
        store: Document store to use (defaults to a pymongo connection from settings)
    """
    cfg = settings or load_settings()
    if store is None:
        store = connect(cfg.mongo_uri, cfg.mongo_db_name)

    app = Flask(__name__)
    app.config.setdefault(
        "OPENAPI_SPEC_PATH",
        str(Path(app.root_path).parent / "openapi" / "provincial_hr_openapi.yaml"),
    )

    # Store config for easy access in routes
    app.config["APP_CONFIG"] = cfg
    app.config["MAX_CONTENT_LENGTH"] = MAX_CONTENT_LENGTH
    app.config["TESTING"] = cfg.environment == "test"

    # Flask session configuration
    app.config["SECRET_KEY"] = cfg.secret_key
    if cfg.secret_key_fallbacks:
        app.config["SECRET_KEY_FALLBACKS"] = cfg.secret_key_fallbacks

    app.config["SESSION_TYPE"] = cfg.session_type
    if cfg.session_type == "filesystem":
        session_dir = cfg.session_file_dir or os.path.join(gettempdir(), "provincial_hr_flask_session")
        os.makedirs(session_dir, exist_ok=True)
        app.config["SESSION_FILE_DIR"] = session_dir
    else:
        app.config["SESSION_MONGODB"] = store.client
        app.config["SESSION_MONGODB_DB"] = cfg.mongo_db_name
        app.config["SESSION_MONGODB_COLLECT"] = SESSION_COLLECTION

    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    app.config["SESSION_COOKIE_SECURE"] = cfg.session_cookie_secure
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(seconds=cfg.session_lifetime_seconds)

    # Initialize session
    Session(app)

    # Trust X-Forwarded-* headers from proxy (nginx)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore

    # Parse trusted proxy networks
    trusted_proxy_networks = []
    for entry in cfg.trusted_proxy_ips.split(","):
        entry = entry.strip()
        if not entry:
            continue
        try:
            trusted_proxy_networks.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            app.logger.warning(f"Ignoring invalid TRUSTED_PROXY_IPS entry: {entry!r}")

    app.config["TRUSTED_PROXY_NETWORKS"] = trusted_proxy_networks

    # Shared services
    try:
        store.ensure_indexes()
    except PyMongoError as exc:
        app.logger.warning(f"Could not ensure indexes at startup: {exc}")
    app.extensions["document_store"] = store
    app.extensions["login_throttle"] = LoginThrottle(
        max_attempts=cfg.login_rate_limit_max_attempts,
        window_seconds=cfg.login_rate_limit_window_seconds,
    )

    # Register blueprints
    from provincial_hr.api import auth, docs, employees, errors, global_settings, health, provinces

    app.register_blueprint(auth.bp)
    app.register_blueprint(provinces.bp)
    app.register_blueprint(employees.bp)
    app.register_blueprint(global_settings.bp)
    app.register_blueprint(health.bp)
    app.register_blueprint(docs.bp)

    # Register error handlers
    errors.register_error_handlers(app)

    # Register middleware/before_request handlers
    _register_middleware(app, cfg, trusted_proxy_networks)

    # Log startup info
    print(f"[flask_app] Mode={cfg.environment.upper()}")
    if cfg.is_development:
        print("[flask_app] WARNING: Development mode - do not deploy with these settings")

    return app


def _register_middleware(app: Flask, cfg: AppConfig, trusted_proxy_networks: list):
    """Register before_request / after_request middleware."""

    @app.before_request
    def enforce_proxy_headers() -> None:
        """Validate proxy headers from trusted sources only."""
        forwarded = any(request.headers.get(name) for name in ("X-Forwarded-For", "X-Forwarded-Proto", "X-Forwarded-Host"))
        original_remote = request.environ.get("werkzeug.proxy_fix.orig", {}).get("REMOTE_ADDR")
        if forwarded and original_remote:
            try:
                address = ipaddress.ip_address(original_remote)
                if not any(address in network for network in trusted_proxy_networks):
                    abort(400, description="Untrusted proxy")
            except ValueError:
                abort(400, description="Invalid proxy address")

        forwarded_proto = request.headers.get("X-Forwarded-Proto")
        if forwarded_proto and forwarded_proto != "https":
            abort(400, description="Invalid forwarded protocol")

        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for and "," in forwarded_for:
            abort(400, description="Multiple forwarded clients not permitted")

    @app.before_request
    def enforce_csrf() -> None:
        """Validate the CSRF header for state-changing requests."""
        if not cfg.csrf_protection:
            return
        if request.method not in AUDITED_METHODS:
            return
        if request.path in CSRF_EXEMPT_PATHS:
            return

        submitted_token = request.headers.get(CSRF_HEADER, "")
        session_token = session.get(CSRF_SESSION_KEY, "")

        if not session_token or not submitted_token or not hmac.compare_digest(session_token, submitted_token):
            abort(403, description="CSRF validation failed")

    @app.after_request
    def expose_csrf_token(response):
        """Hand the session's CSRF token to the client on every response."""
        if cfg.csrf_protection:
            response.headers[CSRF_HEADER] = _generate_csrf_token()
        return response

    @app.after_request
    def audit_mutation(response):
        """Append an audit event for every mutating request."""
        if request.method not in AUDITED_METHODS:
            return response
        identity = g.get("identity")
        safe_log_mutation(
            cfg.audit_log_dir,
            method=request.method,
            path=request.path,
            status_code=response.status_code,
            user_id=identity.id if identity else None,
            role=identity.role.value if identity else None,
            province_id=identity.province_id if identity else None,
            ip=request.remote_addr,
            resource_id=g.get("audit_resource_id"),
            signing_key=cfg.audit_log_signing_key,
        )
        return response


# ─────────────────────────────────────────────────────────────────────────────
# Helper Functions
# ─────────────────────────────────────────────────────────────────────────────
def _generate_csrf_token() -> str:
    """Generate or retrieve CSRF token for current session."""
    token = session.get(CSRF_SESSION_KEY)
    if not token:
        token = secrets.token_urlsafe(32)
        session[CSRF_SESSION_KEY] = token
    return token
