"""
core/channel.py
Binds one consumer's inbound messages to its own SessionController.

Inbound:  start-scan{hosts, ports, options:{hostDiscovery}} | stop-scan{}
          + disconnect (implicit stop)
Outbound: whatever the controller emits, through the channel's sink

The transport (socket, HTTP polling, CLI) lives outside; it only calls
``handle`` / ``disconnect`` and forwards what arrives at ``emit``.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from core.errors import ScanError
from core.events import EventSink, ScanEvent
from core.models import ScanRequest, ScanSession
from core.prober import Prober
from core.session import SessionController
from utils.constants import ScanProfile
from utils.logger import get_logger

log = get_logger("core.channel")

START_SCAN = "start-scan"
STOP_SCAN  = "stop-scan"


class ScanChannel:

    def __init__(
        self,
        emit: EventSink,
        prober: Optional[Prober] = None,
        profile: ScanProfile | str | None = None,
    ):
        self._emit = emit
        self.controller = SessionController(emit=emit, prober=prober, profile=profile)
        self.connected = True

    def handle(self, name: str, payload: Optional[Mapping[str, Any]] = None) -> Optional[ScanSession]:
        """
        Dispatch one inbound message.

        A rejected start-scan (bad input, session already running) is
        reported to the consumer as a log event and re-raised so the
        transport can map it to its own error reply.
        """
        if not self.connected:
            raise ConnectionError("channel is disconnected")
        if name == START_SCAN:
            return self.start(payload or {})
        if name == STOP_SCAN:
            self.controller.stop()
            return self.controller.session
        log.warning(f"Ignoring unknown message {name!r}")
        return None

    def start(self, payload: Mapping[str, Any]) -> ScanSession:
        try:
            request = ScanRequest.from_message(payload)
            return self.controller.start(request)
        except ScanError as exc:
            log.warning(f"[-] Scan rejected: {exc}")
            self._emit(ScanEvent.log(f"Scan rejected: {exc}"))
            raise

    def disconnect(self) -> None:
        """Consumer went away: stop its session, accept no more messages."""
        if self.connected:
            self.connected = False
            self.controller.stop()
            log.info("Consumer disconnected")

    async def wait(self) -> Optional[ScanSession]:
        return await self.controller.wait()
