"""
core/models.py
Scan request and session state.

A ScanSession is owned by exactly one SessionController for its lifetime;
stages receive it by reference and only touch it through the methods here.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from core.address_range import format_address, parse_address
from core.errors import MalformedAddress
from core.port_parser import validate_ports
from utils.constants import STAGE_TRANSITIONS, SessionStage


# ─── Request ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScanRequest:
    hosts:          List[str]
    ports:          List[int]
    host_discovery: bool = False

    @classmethod
    def build(cls, hosts, ports, host_discovery: bool = False) -> "ScanRequest":
        """
        Validate and normalise raw input.

        Raises MalformedAddress for an unparseable host and EmptyPortSet
        when no valid port remains. Duplicate hosts keep their first
        position.
        """
        if isinstance(hosts, str) or not hasattr(hosts, "__iter__"):
            raise MalformedAddress("hosts must be a list of IPv4 addresses")
        normalised: List[str] = []
        seen = set()
        for host in hosts:
            value = parse_address(host)
            if value not in seen:
                seen.add(value)
                normalised.append(format_address(value))
        return cls(
            hosts=normalised,
            ports=validate_ports(ports),
            host_discovery=bool(host_discovery),
        )

    @classmethod
    def from_message(cls, payload: Mapping[str, Any]) -> "ScanRequest":
        """Build from a ``start-scan`` payload: {hosts, ports, options:{hostDiscovery}}."""
        options = payload.get("options") or {}
        return cls.build(
            payload.get("hosts") or [],
            payload.get("ports") or [],
            host_discovery=options.get("hostDiscovery", False),
        )


# ─── Session ──────────────────────────────────────────────────────────────────

@dataclass
class ScanSession:
    targets:        List[str]
    ports:          List[int]
    host_discovery: bool = False
    id:             str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    stage:          SessionStage = SessionStage.IDLE
    cancelled:      bool = False
    scanned:        int = 0
    total:          int = 0
    active_hosts:   Optional[List[str]] = None

    @classmethod
    def from_request(cls, request: ScanRequest) -> "ScanSession":
        return cls(
            targets=list(request.hosts),
            ports=list(request.ports),
            host_discovery=request.host_discovery,
        )

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def cancel(self) -> bool:
        """Set the cancellation flag. Returns False if already set or finished."""
        if self.cancelled or self.stage.terminal:
            return False
        self.cancelled = True
        return True

    def begin(self, stage: SessionStage, total: int = 0) -> None:
        """Move to ``stage`` and fix its work total."""
        self._transition(stage)
        self.total = total
        self.scanned = 0

    def finish(self, stopped: bool) -> bool:
        """
        Enter the terminal stage. Returns False if the session already
        finished, so callers emit the terminal event at most once.
        """
        if self.stage.terminal:
            return False
        self._transition(SessionStage.STOPPED if stopped else SessionStage.COMPLETED)
        return True

    def advance(self, amount: int = 1) -> int:
        if self.scanned + amount > self.total:
            raise RuntimeError(
                f"progress overflow: {self.scanned}+{amount} > {self.total}"
            )
        self.scanned += amount
        return self.scanned

    def _transition(self, stage: SessionStage) -> None:
        if stage not in STAGE_TRANSITIONS[self.stage]:
            raise RuntimeError(
                f"Illegal stage transition {self.stage.value} -> {stage.value}"
            )
        self.stage = stage

    # ── Views ─────────────────────────────────────────────────────────────────

    def snapshot(self) -> dict:
        return {
            "id":        self.id,
            "stage":     self.stage.value,
            "cancelled": self.cancelled,
            "scanned":   self.scanned,
            "total":     self.total,
            "hosts":     len(self.targets),
            "ports":     len(self.ports),
        }
