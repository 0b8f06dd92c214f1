"""
core/scanner_engine.py
Port scan stage: exhaustive TCP-connect probing of hosts × ports.

  • Flat, ordered target queue (host-major)
  • Fixed worker pool; each worker claims the next target from a shared
    cursor and re-checks the cancellation flag once per claim
  • Open ports reported as they are found
  • Progress every N completed probes and always on the last one
  • No imports of dashboard (clean layering)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import List, Optional, Sequence

from core.events import EventSink, ScanEvent
from core.models import ScanSession
from core.prober import Prober, ProbeOutcome, ProbeTarget
from core.timing import RateMeter
from utils.constants import ScanProfile, SessionStage
from utils.logger import get_logger

log = get_logger("core.scanner")


# ─── Data Classes ─────────────────────────────────────────────────────────────

@dataclass
class ScanStats:
    hosts:       int = 0
    ports:       int = 0
    scanned:     int = 0
    open:        int = 0
    elapsed_s:   float = 0.0
    rate_per_s:  float = 0.0


# ─── Target queue ─────────────────────────────────────────────────────────────

class TargetQueue:
    """
    Shared cursor over the flat target list.

    ``claim`` never awaits, so on a single event loop no two workers can
    obtain the same target.
    """

    def __init__(self, hosts: Sequence[str], ports: Sequence[int]):
        self._targets: List[ProbeTarget] = [
            ProbeTarget(h, p) for h in hosts for p in ports
        ]
        self._next = 0

    def __len__(self) -> int:
        return len(self._targets)

    def claim(self) -> Optional[ProbeTarget]:
        if self._next >= len(self._targets):
            return None
        target = self._targets[self._next]
        self._next += 1
        return target

    @property
    def claimed(self) -> int:
        return self._next


# ─── Scan stage ───────────────────────────────────────────────────────────────

class ScanStage:
    """
    Probe every (host, port) pair of the session under a bounded pool.

    The stage leaves the terminal transition to the SessionController;
    ``run`` returns once every worker has drained.
    """

    PHASE = "scanning"

    def __init__(self, prober: Prober, emit: EventSink, profile: ScanProfile):
        self._prober = prober
        self._emit = emit
        self._profile = profile
        self.stats = ScanStats()

    async def run(self, session: ScanSession, hosts: Sequence[str]) -> ScanStats:
        queue = TargetQueue(hosts, session.ports)
        total = len(queue)
        session.begin(SessionStage.SCANNING, total=total)

        self.stats = ScanStats(hosts=len(hosts), ports=len(session.ports))
        rate = RateMeter()
        workers = min(self._profile.scan_workers, total)

        self._emit(ScanEvent.log(
            f"Scanning ports on {len(hosts)} hosts ({total} probes)..."
        ))
        log.info(f"[*] Scan: {len(hosts)} hosts × {len(session.ports)} ports, {workers} workers")

        async def worker() -> None:
            while not session.cancelled:
                target = queue.claim()
                if target is None:
                    break
                outcome = await self._prober.probe(target, self._profile.probe_timeout_s)
                rate.update()
                self._record(session, outcome)

        await asyncio.gather(*(worker() for _ in range(workers)))

        self.stats.scanned    = session.scanned
        self.stats.elapsed_s  = rate.elapsed_s
        self.stats.rate_per_s = rate.overall_rate()
        log.info(
            f"[✓] Scan: {self.stats.open} open / {session.scanned} probed "
            f"in {self.stats.elapsed_s:.2f}s ({self.stats.rate_per_s:.0f}/s)"
        )
        return self.stats

    def _record(self, session: ScanSession, outcome: ProbeOutcome) -> None:
        if outcome.reachable:
            self.stats.open += 1
            self._emit(ScanEvent.scan_result(outcome.target.host, outcome.target.port))

        scanned = session.advance()
        if scanned % self._profile.progress_every == 0 or scanned == session.total:
            self._emit(ScanEvent.progress(self.PHASE, scanned, session.total))
