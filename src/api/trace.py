"""
trace.py — Step log for the order pipelines

Each save-order / parts-order run gets a Trace: an ordered list of steps
with timings and the final outcome. The last 200 runs stay in memory for
the admin trace endpoints; the outcome is also logged with the order number
so it can be found in orders.log.

    t = Trace("save_order", store="SPLASH'N'GO!新前橋店")
    t.step("Routed", regular=3, hirock=1)
    t.warn("Total mismatch", client=1000, server=1100)
    t.ok("Saved")                       # status stays "warn"

    GET /api/admin/traces               — recent runs (?workflow=, ?status=, ?limit=)
    GET /api/admin/traces/<id>          — one run
"""

import logging
import threading
import time
import uuid
from collections import OrderedDict
from datetime import datetime
from zoneinfo import ZoneInfo

log = logging.getLogger("trace")

MAX_TRACES = 200
JST = ZoneInfo("Asia/Tokyo")

RUNNING, OK, WARN, FAIL = "running", "ok", "warn", "fail"

_lock = threading.Lock()
_store = OrderedDict()   # id → Trace, oldest first


def _remember(trace):
    with _lock:
        _store[trace.id] = trace
        while len(_store) > MAX_TRACES:
            _store.popitem(last=False)


class Trace:

    def __init__(self, workflow: str, **context):
        self.id = f"tr_{uuid.uuid4().hex[:8]}"
        self.workflow = workflow
        self.context = context
        self.steps = []
        self.status = RUNNING
        self.started_at = datetime.now(JST).isoformat(timespec="seconds")
        self.finished_at = None
        self.duration_ms = None
        self._t0 = time.monotonic()
        _remember(self)

    def _elapsed_ms(self) -> int:
        return round((time.monotonic() - self._t0) * 1000)

    def step(self, message: str, **data):
        entry = {"t": self._elapsed_ms(), "msg": message}
        if data:
            entry["data"] = data
        self.steps.append(entry)
        return self

    def warn(self, message: str, **data):
        """Non-fatal problem; the run can still finish ok but reports warn."""
        self.step(f"WARN: {message}", **data)
        if self.status != FAIL:
            self.status = WARN
        return self

    def ok(self, message: str = "Complete", **data):
        self.step(message, **data)
        if self.status == RUNNING:
            self.status = OK
        return self._finish()

    def fail(self, message: str, **data):
        self.step(f"FAIL: {message}", **data)
        self.status = FAIL
        return self._finish()

    def _finish(self):
        self.finished_at = datetime.now(JST).isoformat(timespec="seconds")
        self.duration_ms = self._elapsed_ms()
        level = logging.WARNING if self.status == FAIL else logging.INFO
        log.log(level, "%s %s: %s (%dms)", self.workflow, self.status,
                self.steps[-1]["msg"], self.duration_ms,
                extra={"workflow": self.workflow, "trace_id": self.id,
                       "order_number": self.context.get("order_number"),
                       "store": self.context.get("store"),
                       "duration_ms": self.duration_ms})
        return self

    @property
    def summary(self) -> str:
        ctx = " ".join(str(self.context[k]) for k in ("order_number", "store") if self.context.get(k))
        last = self.steps[-1]["msg"] if self.steps else "-"
        return f"[{self.status}] {self.workflow} {ctx} → {last}".replace("  ", " ")

    def to_dict(self):
        return {
            "id": self.id,
            "workflow": self.workflow,
            "status": self.status,
            "context": dict(self.context),
            "steps": list(self.steps),
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "duration_ms": self.duration_ms,
            "summary": self.summary,
        }


def get_traces(workflow=None, status=None, limit=50):
    """Newest first."""
    with _lock:
        traces = list(reversed(_store.values()))
    picked = [t for t in traces
              if (not workflow or t.workflow == workflow) and (not status or t.status == status)]
    return [t.to_dict() for t in picked[:limit]]


def get_trace(trace_id: str):
    with _lock:
        t = _store.get(trace_id)
    return t.to_dict() if t else None


def clear_traces():
    with _lock:
        _store.clear()
