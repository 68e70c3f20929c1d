"""
secrets.py — Centralized configuration & credential registry

Single source of truth for every environment variable the ordering backend
reads. Modules call get_key("smtp_host") instead of reading os.environ.

Env vars:
  SHEET_ID                             — Google Sheets spreadsheet ID
  GOOGLE_APPLICATION_CREDENTIALS       — service-account key file path
  GOOGLE_APPLICATION_CREDENTIALS_JSON  — service-account key as inline JSON
  SMTP_HOST / SMTP_PORT / SMTP_SECURE  — outbound mail server
  SMTP_USER / SMTP_PASSWORD            — SMTP login
  SMTP_FROM                            — From header for every email
  NEXT_PUBLIC_VERCEL_URL               — public host (https:// is prepended)
  NEXT_PUBLIC_BASE_URL                 — explicit public base URL
  NOTIFY_ASYNC                         — "false" sends mail inline
  ADMIN_USER / ADMIN_PASS              — optional Basic Auth for admin routes

Security:
  - Values are never logged in full (masked to first 8 chars)
  - Health endpoint shows which keys are set (not values)
"""

import os
import logging

log = logging.getLogger("secrets")

# ─── Definitions ─────────────────────────────────────────────────────────────

_REGISTRY = {
    # Spreadsheet
    "sheet_id": {
        "env": "SHEET_ID",
        "required": True,
        "desc": "Spreadsheet holding catalog, stores and order history",
        "used_by": ["sheets"],
    },
    "google_credentials_file": {
        "env": "GOOGLE_APPLICATION_CREDENTIALS",
        "required": False,
        "desc": "Service-account key file path",
        "used_by": ["sheets"],
    },
    "google_credentials_json": {
        "env": "GOOGLE_APPLICATION_CREDENTIALS_JSON",
        "required": False,
        "desc": "Service-account key as inline JSON (wins over the file)",
        "used_by": ["sheets"],
        "sensitive": True,
    },
    # Mail
    "smtp_host": {
        "env": "SMTP_HOST",
        "required": False,
        "desc": "SMTP server host",
        "used_by": ["notify"],
        "default": "smtp.gmail.com",
    },
    "smtp_port": {
        "env": "SMTP_PORT",
        "required": False,
        "desc": "SMTP server port",
        "used_by": ["notify"],
        "default": "587",
    },
    "smtp_secure": {
        "env": "SMTP_SECURE",
        "required": False,
        "desc": "true = implicit TLS (port 465), otherwise STARTTLS",
        "used_by": ["notify"],
        "default": "false",
    },
    "smtp_user": {
        "env": "SMTP_USER",
        "required": False,
        "desc": "SMTP login user",
        "used_by": ["notify"],
    },
    "smtp_password": {
        "env": "SMTP_PASSWORD",
        "required": False,
        "desc": "SMTP login password",
        "used_by": ["notify"],
        "sensitive": True,
    },
    "smtp_from": {
        "env": "SMTP_FROM",
        "required": False,
        "desc": "From header for outgoing mail",
        "used_by": ["notify"],
        "default": "\"SPLASH'N'GO!\" <noreply@splashngo.example.com>",
    },
    "notify_async": {
        "env": "NOTIFY_ASYNC",
        "required": False,
        "desc": "Send notification mail on a background thread",
        "used_by": ["notify"],
        "default": "true",
    },
    # Public URLs
    "vercel_url": {
        "env": "NEXT_PUBLIC_VERCEL_URL",
        "required": False,
        "desc": "Deployment host name",
        "used_by": ["notify"],
    },
    "base_url": {
        "env": "NEXT_PUBLIC_BASE_URL",
        "required": False,
        "desc": "Explicit public base URL",
        "used_by": ["notify"],
    },
    # App
    "secret_key": {
        "env": "SECRET_KEY",
        "required": False,
        "desc": "Flask session secret",
        "used_by": ["app"],
        "default": "splashngo-orders-dev",
        "sensitive": True,
    },
    "app_env": {
        "env": "APP_ENV",
        "required": False,
        "desc": "development | production (error stacks only when development)",
        "used_by": ["app", "dashboard"],
    },
    "admin_user": {
        "env": "ADMIN_USER",
        "required": False,
        "desc": "Admin Basic Auth user",
        "used_by": ["dashboard"],
        "default": "admin",
    },
    "admin_pass": {
        "env": "ADMIN_PASS",
        "required": False,
        "desc": "Admin Basic Auth password (unset = admin routes open)",
        "used_by": ["dashboard"],
        "sensitive": True,
    },
}


# ─── Public API ──────────────────────────────────────────────────────────────

def get_key(name: str) -> str:
    """Get a config value by registry name. Returns empty string if not set."""
    entry = _REGISTRY.get(name)
    if not entry:
        log.warning("Unknown config key requested: %s", name)
        return ""

    val = os.environ.get(entry["env"], "")
    if not val and "default" in entry:
        val = entry["default"]
    return val


def get_flag(name: str) -> bool:
    """Boolean view of a registry value ("true"/"1"/"yes"/"on")."""
    return get_key(name).strip().lower() in ("true", "1", "yes", "on")


def get_int(name: str, default: int = 0) -> int:
    try:
        return int(get_key(name))
    except ValueError:
        log.warning("Config %s is not an integer, using %d", name, default)
        return default


def public_base_url() -> str:
    """Base URL for links in emails. Vercel host → explicit URL → localhost."""
    vercel = get_key("vercel_url")
    if vercel:
        return f"https://{vercel}"
    base = get_key("base_url")
    if base:
        return base.rstrip("/")
    return "http://localhost:3000"


def is_development() -> bool:
    return get_key("app_env").lower() == "development"


def mask(value: str) -> str:
    """Mask a secret for safe logging. Shows first 8 chars."""
    if not value:
        return "(not set)"
    if len(value) <= 12:
        return value[:4] + "****"
    return value[:8] + "****" + f"({len(value)} chars)"


def validate_all() -> dict:
    """Validate all settings. Returns status report."""
    results = {}
    warnings = []
    for name, entry in _REGISTRY.items():
        val = get_key(name)
        is_set = bool(val)
        results[name] = {
            "set": is_set,
            "env": entry["env"],
            "desc": entry["desc"],
            "masked": mask(val) if not entry.get("sensitive") else ("✅ set" if is_set else "❌ not set"),
            "required": entry.get("required", False),
            "used_by": entry["used_by"],
        }
        if entry.get("required") and not is_set:
            warnings.append(f"REQUIRED setting missing: {entry['env']} ({entry['desc']})")

    if not (get_key("google_credentials_file") or get_key("google_credentials_json")):
        warnings.append("No Google credentials: set GOOGLE_APPLICATION_CREDENTIALS or "
                        "GOOGLE_APPLICATION_CREDENTIALS_JSON")

    return {
        "settings": results,
        "total": len(results),
        "set": sum(1 for r in results.values() if r["set"]),
        "missing": sum(1 for r in results.values() if not r["set"]),
        "warnings": warnings,
    }


def startup_check():
    """Run on startup. Logs warnings for missing critical settings."""
    report = validate_all()
    log.info("Config: %d/%d settings present", report["set"], report["total"])
    for w in report["warnings"]:
        log.warning("CONFIG: %s", w)
    return report
