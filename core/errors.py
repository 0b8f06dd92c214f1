"""
core/errors.py
Exception taxonomy for request construction and session control.

Transient probe failures are not represented here: they fold into
``ProbeOutcome.reachable = False`` and never surface as exceptions.
"""

from __future__ import annotations

from typing import List


class ScanError(Exception):
    """Base class for every user-facing LanSweep error."""


class MalformedAddress(ScanError, ValueError):
    """Raised when an address or netmask cannot be parsed."""


class RangeTooLarge(ScanError):
    """
    Advisory: the requested range holds more addresses than the limit.

    Carries the true address count and the truncated alternative so the
    caller can decide to proceed with ``truncated`` or abort.
    """

    def __init__(self, count: int, truncated: List[str]):
        self.count = count
        self.truncated = truncated
        super().__init__(
            f"Range spans {count} addresses, exceeds limit {len(truncated)}"
        )


class PortParseError(ScanError, ValueError):
    """Raised when a port selection cannot be resolved."""


class EmptyPortSet(PortParseError):
    """Raised when a port selection resolves to zero valid ports."""


class AlreadyRunning(ScanError, RuntimeError):
    """Raised when a scan is started while another one is active."""
