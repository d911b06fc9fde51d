"""Authentication routes: username/password login bound to a server-side session."""
from __future__ import annotations
import logging

from flask import Blueprint, current_app, g, request, session

from provincial_hr.core import auth_service
from provincial_hr.core.errors import InternalError, InvalidCredentials
from provincial_hr.core.rbac import bind_session, clear_session

from .decorators import client_ip, get_store, login_required, login_throttled
from .responses import success_response

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__, url_prefix="/auth")


# ─────────────────────────────────────────────────────────────────────────────
# Routes
# ─────────────────────────────────────────────────────────────────────────────
@bp.route("/login", methods=["POST"])
@login_throttled
def login():
    """Validate credentials and start a session.

    Returns only {role, provinceId?}; the session id travels in the
    HTTP-only cookie.
    """
    cfg = current_app.config["APP_CONFIG"]
    throttle = current_app.extensions["login_throttle"]
    payload = request.get_json(silent=True) or {}
    throttle_key = g.get("login_throttle_key")

    try:
        identity = auth_service.login(
            get_store(),
            payload.get("username"),
            payload.get("password"),
            rounds=cfg.bcrypt_rounds,
        )
    except InvalidCredentials:
        if throttle_key:
            throttle.record_failure(throttle_key)
        logger.warning(f"Failed login from {client_ip()}")
        raise

    if throttle_key:
        throttle.reset(throttle_key)

    bind_session(session, identity)
    # New sid for the authenticated session; the pre-login record is dropped
    current_app.session_interface.regenerate(session)
    session.permanent = True
    g.identity = identity
    return success_response(identity.to_public_dict(), message="Login successful")


@bp.route("/logout", methods=["POST"])
def logout():
    """Destroy the server-side session."""
    try:
        clear_session(session)
    except (OSError, RuntimeError) as exc:
        logger.error(f"Failed to clear session: {exc}", exc_info=True)
        raise InternalError("Could not log out")
    return success_response(message="Logged out successfully")


@bp.route("/me", methods=["GET"])
@login_required
def me():
    return success_response(g.identity.to_public_dict())
