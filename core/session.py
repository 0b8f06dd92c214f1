"""
core/session.py
Session lifecycle: one ScanSession per controller, Discovery → Scan.

    controller = SessionController(emit=print_event)
    session = controller.start(ScanRequest.build(hosts, ports, True))
    ...
    controller.stop()            # cooperative, idempotent
    await controller.wait()

Exactly one terminal event (scan-complete or scan-stopped) is emitted per
session; the session's own stage guards against duplicates. Every event a
session emits carries its id, so a shared sink can tell sessions apart.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional

from core.discovery import DiscoveryStage
from core.errors import AlreadyRunning
from core.events import EventSink, ScanEvent, null_sink
from core.models import ScanRequest, ScanSession
from core.prober import Prober
from core.scanner_engine import ScanStage, ScanStats
from core.timing import get_profile
from utils.constants import ScanProfile
from utils.logger import get_logger

log = get_logger("core.session")


class SessionController:
    """
    Owns at most one active ScanSession.

    ``start`` must be called from within a running event loop; the session
    runs as a task on that loop.
    """

    def __init__(
        self,
        emit: Optional[EventSink] = None,
        prober: Optional[Prober] = None,
        profile: ScanProfile | str | None = None,
    ):
        self._emit = emit or null_sink
        if isinstance(profile, ScanProfile):
            self._profile = profile
        else:
            self._profile = get_profile(profile) if profile else get_profile()
        self._prober = prober or Prober(grace_s=self._profile.grace_s)
        self._session: Optional[ScanSession] = None
        self._task: Optional[asyncio.Task] = None
        self.stats: Optional[ScanStats] = None

    # ── Public API ────────────────────────────────────────────────────────────

    @property
    def session(self) -> Optional[ScanSession]:
        return self._session

    @property
    def profile(self) -> ScanProfile:
        return self._profile

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, request: ScanRequest) -> ScanSession:
        if self.running:
            raise AlreadyRunning(
                f"Session {self._session.id} is still {self._session.stage.value}"
            )
        session = ScanSession.from_request(request)
        self._session = session
        self.stats = None
        self._task = asyncio.ensure_future(self._run(session))
        log.info(
            f"[*] Session {session.id}: {len(session.targets)} hosts, "
            f"{len(session.ports)} ports, discovery={'on' if session.host_discovery else 'off'}"
        )
        return session

    async def wait(self) -> Optional[ScanSession]:
        """Wait for the active run; re-raises an unexpected failure."""
        if self._task is not None:
            await self._task
        return self._session

    async def run(self, request: ScanRequest) -> ScanSession:
        session = self.start(request)
        await self.wait()
        return session

    def stop(self) -> bool:
        """
        Request cooperative cancellation. Safe to call repeatedly or after
        the session finished; returns True only when it set the flag.
        """
        if self._session is None:
            return False
        changed = self._session.cancel()
        if changed:
            log.info(f"[!] Session {self._session.id}: stop requested")
        return changed

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def _sink_for(self, session: ScanSession) -> EventSink:
        """Tag every event of ``session`` with its id before it leaves."""
        def emit(event: ScanEvent) -> None:
            self._emit(event.for_session(session.id))
        return emit

    async def _run(self, session: ScanSession) -> None:
        emit = self._sink_for(session)
        try:
            hosts = await self._discover(session, emit)

            if session.cancelled:
                self._finish(session, emit, stopped=True)
                return
            if not hosts or not session.ports:
                emit(ScanEvent.log("No active hosts to scan."))
                self._finish(session, emit, stopped=False)
                return

            stage = ScanStage(self._prober, emit, self._profile)
            self.stats = await stage.run(session, hosts)
            self._finish(session, emit, stopped=session.cancelled)
        except asyncio.CancelledError:
            session.cancel()
            self._finish(session, emit, stopped=True)
            raise
        except Exception:
            log.exception(f"Session {session.id} failed")
            self._finish(session, emit, stopped=True)
            raise

    async def _discover(self, session: ScanSession, emit: EventSink) -> List[str]:
        if session.cancelled:
            return []
        stage = DiscoveryStage(self._prober, emit, self._profile)
        return await stage.run(session)

    def _finish(self, session: ScanSession, emit: EventSink, stopped: bool) -> None:
        if not session.finish(stopped):
            return
        if stopped:
            emit(ScanEvent.scan_stopped(session.scanned, session.total))
        else:
            emit(ScanEvent.scan_complete(session.scanned, session.total))
        log.info(f"[✓] Session {session.id} {session.stage.value}")
