"""Tests for workflow traces."""
from src.api import trace as trace_mod
from src.api.trace import Trace, get_trace, get_traces


class TestTrace:

    def test_lifecycle(self):
        t = Trace("save_order", store="新前橋店")
        t.step("Routed", regular=1)
        t.ok("Saved")
        d = t.to_dict()
        assert d["status"] == "ok"
        assert [s["msg"] for s in d["steps"]] == ["Routed", "Saved"]
        assert d["steps"][0]["data"] == {"regular": 1}
        assert d["duration_ms"] is not None
        assert d["summary"] == "[ok] save_order 新前橋店 → Saved"

    def test_warning_survives_ok(self):
        t = Trace("save_order")
        t.warn("Total mismatch")
        t.ok()
        assert t.status == "warn"

    def test_fail(self):
        t = Trace("parts_order").fail("Append failed", error="quota")
        assert t.status == "fail"
        assert t.steps[-1]["msg"] == "FAIL: Append failed"

    def test_filters_newest_first(self):
        a = Trace("save_order").ok()
        Trace("parts_order").ok()
        c = Trace("save_order").fail("x")
        assert [t["id"] for t in get_traces(workflow="save_order")] == [c.id, a.id]
        assert [t["id"] for t in get_traces(status="fail")] == [c.id]
        assert len(get_traces(limit=1)) == 1

    def test_lookup(self):
        t = Trace("save_order")
        assert get_trace(t.id)["id"] == t.id
        assert get_trace("tr_missing") is None

    def test_rotation_drops_index(self):
        first = Trace("save_order")
        for _ in range(trace_mod.MAX_TRACES):
            Trace("save_order")
        assert get_trace(first.id) is None
        assert len(get_traces(limit=1000)) == trace_mod.MAX_TRACES
