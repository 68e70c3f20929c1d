"""
Store ordering API — Blueprint, auth and shared helpers.

Endpoints live in src/api/modules/routes_*.py and attach to `bp`:
  routes_catalog  — sheet proxy, machine items, login, cart totals, health
  routes_orders   — save-order, history, admin status / shipping updates
  routes_parts    — parts orders, purchase-order documents
  routes_mail     — direct email endpoints
"""
import functools
import hmac
import logging
import time

from flask import Blueprint, Response, g, jsonify, request

from src.core.secrets import get_key, is_development

log = logging.getLogger("dashboard")

bp = Blueprint("dashboard", __name__)


# ── Request-level structured logging ────────────────────────────────────────

@bp.before_app_request
def _log_request_start():
    g._start_time = time.time()


@bp.after_app_request
def _log_request_end(response):
    start = g.get("_start_time")
    if start is not None:
        duration_ms = round((time.time() - start) * 1000, 1)
        # Skip health spam
        if request.path != "/api/health":
            log.info("%s %s → %d (%.0fms)",
                     request.method, request.path, response.status_code, duration_ms,
                     extra={"route": request.path, "method": request.method,
                            "status": response.status_code, "duration_ms": duration_ms})
    return response


# ═══════════════════════════════════════════════════════════════════════
# Admin protection (enabled when ADMIN_PASS is set)
# ═══════════════════════════════════════════════════════════════════════

def check_auth(username, password):
    expected_pass = get_key("admin_pass")
    return (hmac.compare_digest(username or "", get_key("admin_user"))
            and hmac.compare_digest(password or "", expected_pass))


def admin_required(f):
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if get_key("admin_pass"):
            auth = request.authorization
            if not auth or not check_auth(auth.username, auth.password):
                return Response(
                    "Admin login required",
                    401, {"WWW-Authenticate": 'Basic realm="SPLASH\'N\'GO! Admin"'})
        return f(*args, **kwargs)
    return decorated


# ═══════════════════════════════════════════════════════════════════════
# Response helpers
# ═══════════════════════════════════════════════════════════════════════

def json_body() -> dict:
    return request.get_json(silent=True) or {}


def json_error(message: str, status: int, **extra):
    body = {"error": message}
    body.update(extra)
    return jsonify(body), status


def result_error(result: dict):
    """Service-layer {"ok": False, "error", "status"} → JSON error response."""
    return json_error(result["error"], result.get("status", 400))


def upstream_error(message: str, exc: Exception, with_stack: bool = False, **extra):
    """500 for Sheets/SMTP failures. Stack trace only in development."""
    log.exception("%s: %s", message, exc)
    body = {"details": str(exc)}
    if with_stack and is_development():
        import traceback
        body["stack"] = traceback.format_exc()
    body.update(extra)
    return json_error(message, 500, **body)


# Route modules register on import
from src.api.modules import routes_catalog, routes_orders, routes_parts, routes_mail  # noqa: E402,F401
