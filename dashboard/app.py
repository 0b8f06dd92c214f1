"""
dashboard/app.py
Flask front door for a browser UI.

  GET  /api/local-ip        local IPv4 interfaces [{name, ip, netmask}]
  GET  /api/default-range   interior of the first interface's subnet
  POST /api/scan            start-scan payload → 202 / 400 / 409
  POST /api/scan/stop       stop-scan
  POST /api/disconnect      consumer leaves (implicit stop)
  GET  /api/scan            current session snapshot
  GET  /api/events?since=N[&session=ID]
                            events with seq > N, optionally of one session
  GET  /health

Scans run on a dedicated asyncio loop in a background thread; request
handlers hand work to it with run_coroutine_threadsafe. Stacktraces are
never exposed to the client.

Layering: dashboard -> core, utils (core never imports dashboard)
"""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Callable, Optional

from flask import Flask, abort, jsonify, request
from werkzeug.exceptions import HTTPException

from core.address_range import SubnetCalculator
from core.channel import START_SCAN, STOP_SCAN, ScanChannel
from core.errors import AlreadyRunning, ScanError
from core.events import EventLog
from core.prober import Prober
from utils.constants import ScanProfile
from utils.logger import get_logger
from utils.network import local_interfaces

log = get_logger("dashboard")

_CALL_TIMEOUT_S = 5.0


# -- Scan service -------------------------------------------------------------

class ScanService:
    """
    One consumer channel driven from Flask's worker threads.

    After a disconnect the next start opens a fresh channel, so a page
    reload behaves like a new consumer.
    """

    def __init__(
        self,
        prober: Optional[Prober] = None,
        profile: ScanProfile | str | None = None,
        max_events: int = 10_000,
    ):
        self.events = EventLog(max_events=max_events)
        self._prober = prober
        self._profile = profile
        self._lock = threading.Lock()
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_forever, name="lansweep-loop", daemon=True
        )
        self._thread.start()
        self._channel = self._new_channel()

    def _new_channel(self) -> ScanChannel:
        return ScanChannel(self.events, prober=self._prober, profile=self._profile)

    def _call(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Run ``fn`` on the scan loop and return its result."""
        async def _invoke():
            return fn(*args)
        future = asyncio.run_coroutine_threadsafe(_invoke(), self._loop)
        return future.result(timeout=_CALL_TIMEOUT_S)

    def start(self, payload: dict) -> dict:
        with self._lock:
            if not self._channel.connected:
                self._channel = self._new_channel()
            session = self._call(self._channel.handle, START_SCAN, payload)
        return session.snapshot()

    def stop(self) -> Optional[dict]:
        with self._lock:
            if not self._channel.connected:
                return None
            session = self._call(self._channel.handle, STOP_SCAN)
        return session.snapshot() if session else None

    def disconnect(self) -> None:
        with self._lock:
            self._call(self._channel.disconnect)

    @property
    def running(self) -> bool:
        return self._channel.controller.running

    def status(self) -> Optional[dict]:
        session = self._channel.controller.session
        return session.snapshot() if session else None

    def close(self) -> None:
        self.disconnect()
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=_CALL_TIMEOUT_S)


def default_range() -> Optional[dict]:
    """Suggest the interior of the first local subnet, if any."""
    interfaces = local_interfaces()
    if not interfaces:
        return None
    iface = interfaces[0]
    rng = SubnetCalculator.interior(iface["ip"], iface["netmask"])
    return {
        "interface": iface["name"],
        "start":     rng.first,
        "end":       rng.last,
        "count":     len(rng),
    }


# -- Factory ------------------------------------------------------------------

def create_app(cfg: Optional[dict] = None, service: Optional[ScanService] = None) -> Flask:
    """
    Application factory.

    cfg keys:
      host  str
      port  int
    """
    cfg = cfg or {}
    app = Flask(__name__)
    app.config["DEBUG"]                = False   # HARD -- no env override
    app.config["PROPAGATE_EXCEPTIONS"] = False
    app.config["TRAP_HTTP_EXCEPTIONS"] = False

    service = service or ScanService(profile=cfg.get("profile"))
    app.extensions["lansweep"] = service

    # Error handlers (no stacktrace leakage)
    @app.errorhandler(404)
    def _e404(e):
        return jsonify({"error": "not found"}), 404

    @app.errorhandler(Exception)
    def _unhandled(e):
        if isinstance(e, HTTPException):
            return jsonify({"error": e.description}), e.code
        app.logger.exception("Unhandled exception")
        return jsonify({"error": "internal server error"}), 500

    # Routes
    @app.route("/api/local-ip")
    def api_local_ip():
        return jsonify(local_interfaces())

    @app.route("/api/default-range")
    def api_default_range():
        rng = default_range()
        if rng is None:
            abort(404)
        return jsonify(rng)

    @app.route("/api/scan", methods=["POST"])
    def api_start_scan():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"error": "expected a JSON object"}), 400
        try:
            snapshot = service.start(payload)
        except AlreadyRunning as exc:
            return jsonify({"error": str(exc)}), 409
        except ScanError as exc:
            return jsonify({"error": str(exc)}), 400
        return jsonify(snapshot), 202

    @app.route("/api/scan", methods=["GET"])
    def api_scan_status():
        snapshot = service.status()
        if snapshot is None:
            abort(404)
        return jsonify(snapshot)

    @app.route("/api/scan/stop", methods=["POST"])
    def api_stop_scan():
        return jsonify({"session": service.stop()})

    @app.route("/api/disconnect", methods=["POST"])
    def api_disconnect():
        service.disconnect()
        return jsonify({"disconnected": True})

    @app.route("/api/events")
    def api_events():
        since = request.args.get("since", 0, type=int)
        session = request.args.get("session") or None
        # oldest > since + 1 means the buffer dropped events the client never saw
        return jsonify({
            "events": service.events.since(since, session=session),
            "last":   service.events.last_seq,
            "oldest": service.events.oldest_seq,
        })

    @app.route("/health")
    def health():
        return jsonify({"status": "ok", "scanning": service.running})

    return app


# -- Server runner ------------------------------------------------------------

def run_dashboard(cfg: dict) -> None:
    app = create_app(cfg)
    host = cfg.get("host", "127.0.0.1")
    port = cfg.get("port", 5000)
    log.info(f"[*] Dashboard at http://{host}:{port}")
    try:
        app.run(host=host, port=port, debug=False, use_reloader=False)
    finally:
        app.extensions["lansweep"].close()
