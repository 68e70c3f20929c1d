"""
Logging setup for the ordering backend.

Console output is colored text locally and JSON lines when APP_ENV=production.
A rotating JSON file (orders.log) is written alongside when LOG_DIR is writable.
Call setup_logging() once from create_app().
"""
import json
import logging
import logging.handlers
import os
from datetime import datetime, timezone

LOG_DIR = os.environ.get("LOG_DIR", os.path.join(os.path.dirname(__file__), "data", "logs"))
LOG_FILE = "orders.log"

# Passed via extra= by the request logger, order pipelines and traces
EXTRA_FIELDS = ("route", "method", "status", "duration_ms", "order_number",
                "store", "sheet", "items", "workflow", "trace_id")

QUIET_LOGGERS = ("urllib3", "werkzeug", "googleapiclient.discovery_cache", "reportlab")


class JSONFormatter(logging.Formatter):
    """One JSON object per line; Japanese text is kept unescaped."""

    def format(self, record):
        entry = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc)
                          .isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update({k: getattr(record, k) for k in EXTRA_FIELDS if hasattr(record, k)})
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


class HumanFormatter(logging.Formatter):
    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record):
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        order = getattr(record, "order_number", None)
        tag = f" [{order}]" if order else ""
        text = f"{ts} {record.levelname[0]} {record.name}{tag}: {record.getMessage()}"
        if record.exc_info and record.exc_info[0]:
            text += "\n" + self.formatException(record.exc_info)
        return f"{self.LEVEL_COLORS.get(record.levelno, '')}{text}{self.RESET}"


def _file_handler(log_dir):
    try:
        os.makedirs(log_dir, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, LOG_FILE), maxBytes=5_000_000, backupCount=5, encoding="utf-8")
    except OSError:
        return None
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(level=None, json_logs=None, log_dir=None):
    """
    Args:
        level: log level name (default LOG_LEVEL env, else INFO)
        json_logs: JSON console output (default: APP_ENV=production)
        log_dir: directory for orders.log (default LOG_DIR)
    """
    level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    if json_logs is None:
        json_logs = os.environ.get("APP_ENV", "").lower() == "production"

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setFormatter(JSONFormatter() if json_logs else HumanFormatter())
    root.addHandler(console)

    fh = _file_handler(log_dir or LOG_DIR)
    if fh is not None:
        root.addHandler(fh)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("orders_app").info(
        "Logging initialized (level=%s, json=%s, file=%s)", level, json_logs, fh is not None)
