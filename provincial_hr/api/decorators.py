"""
Flask decorators for authentication and authorization.

The session is resolved into an Identity once per request and placed on
``g.identity``; route bodies hand that value to the core services explicitly.
"""

import logging
from functools import wraps
from typing import Optional

from flask import current_app, g, request, session

from provincial_hr.core.errors import TooManyRequests
from provincial_hr.core.rbac import Identity, Role, require_any_role, require_role, resolve_identity
from provincial_hr.core.store import DocumentStore
from provincial_hr.core.throttle import LoginThrottle

logger = logging.getLogger(__name__)


def current_identity() -> Optional[Identity]:
    """Identity for the current request (resolved lazily, never mutates the session)."""
    if "identity" not in g:
        g.identity = resolve_identity(session)
    return g.identity


def get_store() -> DocumentStore:
    return current_app.extensions["document_store"]


def client_ip() -> str:
    """Client address after ProxyFix has applied the trusted X-Forwarded-For."""
    return request.remote_addr or "unknown"


def login_required(fn):
    """Require any authenticated role (401 otherwise)."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        g.identity = require_any_role(current_identity())
        return fn(*args, **kwargs)
    return wrapper


def role_required(role: Role):
    """
    Require an exact role: 401 without a session, 403 for any other role.

    Example:
        @bp.route("/provinces")
        @role_required(Role.GLOBAL_ADMIN)
        def list_provinces():
            ...
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            g.identity = require_role(current_identity(), role)
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def login_throttled(fn):
    """Reject login attempts from callers over the failure limit (429).

    The wrapped view records failures and resets on success through
    ``g.login_throttle_key``; the limiter is skipped in development.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        cfg = current_app.config["APP_CONFIG"]
        throttle: LoginThrottle = current_app.extensions["login_throttle"]
        key = client_ip()
        if cfg.rate_limit_enabled:
            retry_after = throttle.retry_after(key)
            if retry_after:
                logger.warning(f"Login throttled for {key} (retry in {retry_after}s)")
                raise TooManyRequests(retry_after=retry_after)
        g.login_throttle_key = key if cfg.rate_limit_enabled else None
        return fn(*args, **kwargs)
    return wrapper
