"""
core/prober.py
Single TCP-connect reachability probe.

  • asyncio.open_connection — non-blocking, no raw sockets needed
  • First-writer-wins verdict: the outcome future is settled exactly once
  • Secondary deadline at timeout + grace forces a verdict even when the
    transport never reports back
  • Connection released on every exit path
  • No retries: refused, timed out, reset, unreachable and any other
    connector failure all read as "not reachable"
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Set, Tuple

from utils.logger import get_logger

log = get_logger("core.prober")

DEFAULT_GRACE_S = 0.5

Connector = Callable[[str, int], Awaitable[Tuple[asyncio.StreamReader, asyncio.StreamWriter]]]


# ─── Data Classes ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ProbeTarget:
    host: str
    port: int


@dataclass(frozen=True)
class ProbeOutcome:
    target:      ProbeTarget
    reachable:   bool
    observed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ─── Prober ───────────────────────────────────────────────────────────────────

class Prober:
    """
    One connect attempt per call, one outcome per attempt.

    ``connector`` defaults to ``asyncio.open_connection`` and can be swapped
    for any coroutine with the same ``(host, port) -> (reader, writer)``
    shape.
    """

    def __init__(
        self,
        connector: Optional[Connector] = None,
        grace_s: float = DEFAULT_GRACE_S,
    ):
        self._connect: Connector = connector or asyncio.open_connection
        self._grace = grace_s
        # Attempts abandoned by the secondary deadline; held so they are not
        # garbage-collected before their cleanup runs.
        self._abandoned: Set[asyncio.Task] = set()

    async def probe(self, target: ProbeTarget, timeout: float) -> ProbeOutcome:
        loop = asyncio.get_running_loop()
        verdict: asyncio.Future = loop.create_future()

        def settle(reachable: bool) -> None:
            if not verdict.done():
                verdict.set_result(reachable)

        attempt = loop.create_task(self._attempt(target, timeout, settle))
        guard = loop.call_later(timeout + self._grace, settle, False)
        try:
            reachable = await verdict
        finally:
            guard.cancel()
            if not attempt.done():
                attempt.cancel()
                self._abandoned.add(attempt)
                attempt.add_done_callback(self._abandoned.discard)

        if reachable:
            log.debug(f"{target.host}:{target.port} open")
        return ProbeOutcome(target=target, reachable=reachable)

    async def _attempt(
        self,
        target: ProbeTarget,
        timeout: float,
        settle: Callable[[bool], None],
    ) -> None:
        writer: Optional[asyncio.StreamWriter] = None
        try:
            _, writer = await asyncio.wait_for(
                self._connect(target.host, target.port),
                timeout=timeout,
            )
            settle(True)
        except asyncio.TimeoutError:
            settle(False)
        except OSError:
            # ConnectionRefusedError, ConnectionResetError, unreachable, ...
            settle(False)
        except Exception as exc:
            log.debug(f"{target.host}:{target.port} connector failed: {exc!r}")
            settle(False)
        finally:
            if writer is not None:
                await _release(writer)

    @property
    def abandoned(self) -> int:
        """Attempts still winding down after a forced verdict."""
        return len(self._abandoned)


async def _release(writer: asyncio.StreamWriter) -> None:
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass


__all__ = ["Prober", "ProbeTarget", "ProbeOutcome", "Connector", "DEFAULT_GRACE_S"]
