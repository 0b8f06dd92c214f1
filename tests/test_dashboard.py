"""
tests/test_dashboard.py
Flask API tests driven through the test client; probes are faked.
Run: pytest tests/test_dashboard.py -v
"""

import sys
import os
import time
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

import dashboard.app as dashboard_app
from dashboard.app import ScanService, create_app
from tests.helpers import FakeProber

IFACES = [{"name": "eth0", "ip": "192.168.10.23", "netmask": "255.255.255.0"}]


def _make_client(prober, **kwargs):
    service = ScanService(prober=prober, **kwargs)
    app = create_app(service=service)
    app.config["TESTING"] = True
    return service, app.test_client()


@pytest.fixture
def fast():
    service, client = _make_client(FakeProber(open_pairs={("10.0.0.1", 22)}))
    yield client
    service.close()


@pytest.fixture
def slow():
    service, client = _make_client(FakeProber(delay=0.05))
    yield client
    service.close()


def _wait_terminal(client, session=None, timeout: float = 5.0):
    url = f"/api/events?session={session}" if session else "/api/events"
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        events = client.get(url).get_json()["events"]
        terminal = [e for e in events if e["event"] in ("scan-complete", "scan-stopped")]
        if terminal:
            return events, terminal
        time.sleep(0.02)
    raise AssertionError("no terminal event before timeout")


# ─── Network info ─────────────────────────────────────────────────────────────

class TestNetworkInfo:

    def test_local_ip(self, fast, monkeypatch):
        monkeypatch.setattr(dashboard_app, "local_interfaces", lambda: IFACES)
        assert fast.get("/api/local-ip").get_json() == IFACES

    def test_default_range(self, fast, monkeypatch):
        monkeypatch.setattr(dashboard_app, "local_interfaces", lambda: IFACES)
        body = fast.get("/api/default-range").get_json()
        assert body == {
            "interface": "eth0",
            "start": "192.168.10.1",
            "end": "192.168.10.254",
            "count": 254,
        }

    def test_default_range_without_interfaces(self, fast, monkeypatch):
        monkeypatch.setattr(dashboard_app, "local_interfaces", lambda: [])
        assert fast.get("/api/default-range").status_code == 404


# ─── Scan lifecycle ───────────────────────────────────────────────────────────

class TestScanApi:

    def test_health(self, fast):
        body = fast.get("/health").get_json()
        assert body == {"status": "ok", "scanning": False}

    def test_unknown_route_is_json_404(self, fast):
        r = fast.get("/nope")
        assert r.status_code == 404
        assert r.get_json() == {"error": "not found"}

    def test_status_before_any_scan(self, fast):
        assert fast.get("/api/scan").status_code == 404

    def test_non_object_body(self, fast):
        r = fast.post("/api/scan", json=["10.0.0.1"])
        assert r.status_code == 400

    def test_malformed_host(self, fast):
        r = fast.post("/api/scan", json={"hosts": ["10.0.0.300"], "ports": [80]})
        assert r.status_code == 400
        assert "error" in r.get_json()

    def test_no_valid_ports(self, fast):
        r = fast.post("/api/scan", json={"hosts": ["10.0.0.1"], "ports": [0]})
        assert r.status_code == 400

    def test_scan_runs_to_completion(self, fast):
        r = fast.post("/api/scan", json={"hosts": ["10.0.0.1"], "ports": [22, 80]})
        assert r.status_code == 202
        assert r.get_json()["ports"] == 2

        events, terminal = _wait_terminal(fast)
        assert [e["event"] for e in terminal] == ["scan-complete"]
        results = [e for e in events if e["event"] == "scan-result"]
        assert [(e["host"], e["port"], e["status"]) for e in results] == [("10.0.0.1", 22, "open")]
        seqs = [e["seq"] for e in events]
        assert seqs == sorted(seqs)

        assert fast.get("/api/scan").get_json()["stage"] == "completed"

    def test_events_since(self, fast):
        fast.post("/api/scan", json={"hosts": ["10.0.0.1"], "ports": [22]})
        events, _ = _wait_terminal(fast)
        last = events[-1]["seq"]
        body = fast.get(f"/api/events?since={last}").get_json()
        assert body["events"] == []
        assert body["last"] == last

    def test_second_start_conflicts(self, slow):
        payload = {"hosts": ["10.0.0.1"], "ports": list(range(1, 2001))}
        assert slow.post("/api/scan", json=payload).status_code == 202
        assert slow.get("/health").get_json()["scanning"] is True
        assert slow.post("/api/scan", json=payload).status_code == 409

        r = slow.post("/api/scan/stop")
        assert r.status_code == 200
        assert r.get_json()["session"]["cancelled"] is True
        _, terminal = _wait_terminal(slow)
        assert [e["event"] for e in terminal] == ["scan-stopped"]

    def test_stop_without_session(self, fast):
        r = fast.post("/api/scan/stop")
        assert r.status_code == 200
        assert r.get_json() == {"session": None}

    def test_disconnect_stops_and_allows_restart(self, slow):
        payload = {"hosts": ["10.0.0.1"], "ports": list(range(1, 2001))}
        slow.post("/api/scan", json=payload)
        assert slow.post("/api/disconnect").get_json() == {"disconnected": True}
        _, terminal = _wait_terminal(slow)
        assert [e["event"] for e in terminal] == ["scan-stopped"]

        r = slow.post("/api/scan", json={"hosts": ["10.0.0.2"], "ports": [80]})
        assert r.status_code == 202

    def test_restart_right_after_disconnect_keeps_streams_apart(self, slow):
        old = slow.post("/api/scan", json={"hosts": ["10.0.0.1"], "ports": list(range(1, 2001))})
        slow.post("/api/disconnect")
        new = slow.post("/api/scan", json={"hosts": ["10.0.0.2"], "ports": [80]})
        assert new.status_code == 202
        old_id, new_id = old.get_json()["id"], new.get_json()["id"]
        assert old_id != new_id

        events, terminal = _wait_terminal(slow, session=new_id)
        assert [e["event"] for e in terminal] == ["scan-complete"]
        assert {e["session"] for e in events} == {new_id}

        _, old_terminal = _wait_terminal(slow, session=old_id)
        assert [e["event"] for e in old_terminal] == ["scan-stopped"]

    def test_oldest_seq_exposes_dropped_events(self):
        service, client = _make_client(FakeProber(), max_events=3)
        try:
            client.post("/api/scan", json={"hosts": ["10.0.0.1"], "ports": list(range(1, 201))})
            _wait_terminal(client)
            body = client.get("/api/events?since=0").get_json()
            assert len(body["events"]) == 3
            assert body["oldest"] == body["last"] - 2
            assert body["oldest"] > 1
        finally:
            service.close()


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
