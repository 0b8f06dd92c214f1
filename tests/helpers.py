"""
tests/helpers.py
In-memory prober for stage and session tests (no network access).
"""

import asyncio

from core.prober import ProbeOutcome


class FakeProber:
    """
    Reports (host, port) pairs in ``open_pairs`` as reachable.

    Records every probed target and the peak number of concurrent probes.
    """

    def __init__(self, open_pairs=(), delay: float = 0.0):
        self.open = set(open_pairs)
        self.delay = delay
        self.calls = []
        self.timeouts = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def probe(self, target, timeout):
        self.calls.append(target)
        self.timeouts.append(timeout)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        return ProbeOutcome(target=target, reachable=(target.host, target.port) in self.open)

    @property
    def probed_hosts(self):
        return {t.host for t in self.calls}
