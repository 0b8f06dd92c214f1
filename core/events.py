"""
core/events.py
Outbound event model shared by the stages, the controller and the channel.

Every event renders to a transport-neutral dict via ``to_message()``:
  {"event": "progress", "phase": "scanning", "current": 50, "total": 120}
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class EventType(str, Enum):
    LOG           = "log"
    HOST_FOUND    = "host-found"
    PROGRESS      = "progress"
    SCAN_RESULT   = "scan-result"
    SCAN_COMPLETE = "scan-complete"
    SCAN_STOPPED  = "scan-stopped"

    @property
    def terminal(self) -> bool:
        return self in (EventType.SCAN_COMPLETE, EventType.SCAN_STOPPED)


@dataclass(frozen=True)
class ScanEvent:
    type:    EventType
    payload: Dict[str, Any] = field(default_factory=dict)
    session: Optional[str] = None

    def to_message(self) -> Dict[str, Any]:
        message = {"event": self.type.value, **self.payload}
        if self.session is not None:
            message["session"] = self.session
        return message

    def for_session(self, session_id: str) -> "ScanEvent":
        return replace(self, session=session_id)

    # ── Constructors ──────────────────────────────────────────────────────────

    @classmethod
    def log(cls, message: str) -> "ScanEvent":
        return cls(EventType.LOG, {"message": message})

    @classmethod
    def host_found(cls, host: str) -> "ScanEvent":
        return cls(EventType.HOST_FOUND, {"host": host})

    @classmethod
    def progress(cls, phase: str, current: int, total: int) -> "ScanEvent":
        return cls(EventType.PROGRESS, {"phase": phase, "current": current, "total": total})

    @classmethod
    def scan_result(cls, host: str, port: int) -> "ScanEvent":
        return cls(EventType.SCAN_RESULT, {"host": host, "port": port, "status": "open"})

    @classmethod
    def scan_complete(cls, scanned: int, total: int) -> "ScanEvent":
        return cls(EventType.SCAN_COMPLETE, {"scanned": scanned, "total": total})

    @classmethod
    def scan_stopped(cls, scanned: int, total: int) -> "ScanEvent":
        return cls(EventType.SCAN_STOPPED, {"scanned": scanned, "total": total})


EventSink = Callable[[ScanEvent], None]


def null_sink(_: ScanEvent) -> None:
    pass


class EventLog:
    """
    Thread-safe, sequence-numbered event buffer.

    Usable directly as an EventSink; readers poll with ``since(seq)``.
    The buffer keeps at most ``max_events`` entries, dropping the oldest;
    a reader whose cursor is below ``oldest_seq - 1`` has missed events.
    """

    def __init__(self, max_events: int = 10_000):
        self._lock = threading.Lock()
        self._events: List[tuple[int, ScanEvent]] = []
        self._seq = 0
        self._max = max_events

    def __call__(self, event: ScanEvent) -> None:
        with self._lock:
            self._seq += 1
            self._events.append((self._seq, event))
            if len(self._events) > self._max:
                del self._events[: len(self._events) - self._max]

    def since(self, seq: int = 0, session: Optional[str] = None) -> List[Dict[str, Any]]:
        """Events after ``seq``, optionally only those of one session."""
        with self._lock:
            return [
                {"seq": s, **e.to_message()}
                for s, e in self._events
                if s > seq and (session is None or e.session == session)
            ]

    @property
    def events(self) -> List[ScanEvent]:
        with self._lock:
            return [e for _, e in self._events]

    @property
    def last_seq(self) -> int:
        with self._lock:
            return self._seq

    @property
    def oldest_seq(self) -> int:
        """Sequence number of the oldest event still held, 0 when empty."""
        with self._lock:
            return self._events[0][0] if self._events else 0

    def of_type(self, kind: EventType) -> List[ScanEvent]:
        return [e for e in self.events if e.type is kind]
