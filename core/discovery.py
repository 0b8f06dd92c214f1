"""
core/discovery.py
Host discovery: cheap multi-port liveness check before the full scan.

Hosts are checked in fixed-size batches. Every probe of a batch runs
concurrently and the next batch starts only after the current one has
fully resolved; the batch boundary is where cancellation is observed and
where progress is reported.
"""

from __future__ import annotations

import asyncio
from typing import List, Sequence

from core.events import EventSink, ScanEvent
from core.models import ScanSession
from core.prober import Prober, ProbeTarget
from utils.constants import DISCOVERY_PORTS, ScanProfile, SessionStage
from utils.logger import get_logger

log = get_logger("core.discovery")


class DiscoveryStage:
    """
    A host is "up" when any of DISCOVERY_PORTS accepts a connection.

    Note that a refused connection does not count: RST and silent drop
    are not told apart anywhere in the prober.
    """

    PHASE = "discovery"

    def __init__(
        self,
        prober: Prober,
        emit: EventSink,
        profile: ScanProfile,
        ports: Sequence[int] = DISCOVERY_PORTS,
    ):
        self._prober = prober
        self._emit = emit
        self._profile = profile
        self._ports = tuple(ports)

    @staticmethod
    def applies(session: ScanSession) -> bool:
        return session.host_discovery and len(session.targets) > 1

    async def run(self, session: ScanSession) -> List[str]:
        """Return the up hosts of ``session.targets`` in their original order."""
        hosts = session.targets
        if not self.applies(session):
            return list(hosts)

        total = len(hosts)
        batch_size = self._profile.discovery_batch_size
        session.begin(SessionStage.DISCOVERING, total=total)
        self._emit(ScanEvent.log(f"Running host discovery on {total} addresses..."))
        log.info(f"[*] Discovery: {total} hosts in batches of {batch_size}")

        active: List[str] = []
        for i in range(0, total, batch_size):
            if session.cancelled:
                log.info(f"[!] Discovery cancelled after {session.scanned}/{total} hosts")
                break
            batch = hosts[i:i + batch_size]
            verdicts = await asyncio.gather(*(self._check(h) for h in batch))
            active.extend(h for h, up in zip(batch, verdicts) if up)

            session.advance(len(batch))
            self._emit(ScanEvent.progress(self.PHASE, session.scanned, total))
            log.debug(f"Discovery batch {i // batch_size + 1}: {sum(verdicts)} up")

        self._emit(ScanEvent.log(
            f"Host discovery finished. {len(active)} active hosts found."
        ))
        log.info(f"[+] Discovery: {len(active)}/{total} hosts up")
        session.active_hosts = active
        return active

    async def _check(self, host: str) -> bool:
        up = await self.is_host_up(host)
        if up:
            self._emit(ScanEvent.host_found(host))
        return up

    async def is_host_up(self, host: str) -> bool:
        """Fire all probe ports concurrently; True on the first open one."""
        timeout = self._profile.discovery_timeout_s
        tasks = [
            asyncio.ensure_future(self._prober.probe(ProbeTarget(host, p), timeout))
            for p in self._ports
        ]
        try:
            for coro in asyncio.as_completed(tasks):
                outcome = await coro
                if outcome.reachable:
                    return True
        finally:
            # Remaining probes are moot once one port answered.
            for t in tasks:
                t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        return False
