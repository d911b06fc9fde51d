"""Health check endpoints."""
import logging

from flask import Blueprint
from pymongo.errors import PyMongoError

from .decorators import get_store

logger = logging.getLogger(__name__)

bp = Blueprint("health", __name__)


@bp.route("/health")
def health_check():
    """Liveness: the process is serving requests."""
    return ("ok", 200, {"Content-Type": "text/plain"})


@bp.route("/ready")
def readiness_check():
    """Readiness: the document store answers a ping."""
    try:
        get_store().ping()
    except PyMongoError as exc:
        logger.warning(f"Readiness check failed: {exc}")
        return ("not ready", 503, {"Content-Type": "text/plain"})
    return ("ready", 200, {"Content-Type": "text/plain"})
