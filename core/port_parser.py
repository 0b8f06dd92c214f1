"""
core/port_parser.py
Port selection resolver.

Accepts:
  WellKnown            → curated list of commonly probed ports
  FullRange            → all ports (1-65535); callers gate this behind
                         an explicit acknowledgment
  Custom "22,80-82"    → merged & sorted, deduped

Custom specs are lenient: malformed tokens ("abc", "-5", "100-50") are
skipped and out-of-range values dropped, never fatal. Only an empty
result is an error (EmptyPortSet).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Set

from core.errors import EmptyPortSet, PortParseError
from utils.constants import PORT_MIN, PORT_MAX, WELL_KNOWN_PORTS
from utils.logger import get_logger

log = get_logger("core.port_parser")


# ─── Selection ────────────────────────────────────────────────────────────────

class PortMode(str, Enum):
    WELL_KNOWN = "well-known"
    FULL_RANGE = "all"
    CUSTOM     = "custom"


_MODE_ALIASES = {
    "well-known": PortMode.WELL_KNOWN,
    "wellknown":  PortMode.WELL_KNOWN,
    "common":     PortMode.WELL_KNOWN,
    "all":        PortMode.FULL_RANGE,
    "full":       PortMode.FULL_RANGE,
    "-":          PortMode.FULL_RANGE,
}


@dataclass(frozen=True)
class PortSelection:
    mode: PortMode
    spec: str = ""

    @classmethod
    def well_known(cls) -> "PortSelection":
        return cls(PortMode.WELL_KNOWN)

    @classmethod
    def full_range(cls) -> "PortSelection":
        return cls(PortMode.FULL_RANGE)

    @classmethod
    def custom(cls, spec: str) -> "PortSelection":
        return cls(PortMode.CUSTOM, spec)

    @classmethod
    def from_text(cls, text: str) -> "PortSelection":
        """Keyword (well-known / common / all / full / -) or a custom spec."""
        mode = _MODE_ALIASES.get(text.strip().lower())
        if mode is None:
            return cls.custom(text)
        return cls(mode)

    @property
    def is_full_range(self) -> bool:
        return self.mode is PortMode.FULL_RANGE


# ─── Resolver ─────────────────────────────────────────────────────────────────

class PortParser:
    """
    Resolve a PortSelection into a sorted, deduplicated port list.

    Tokens dropped from the last custom spec are kept in ``skipped`` so a
    front end can tell the user what was ignored.
    """

    _SINGLE_RE = re.compile(r"^\d+$")
    _RANGE_RE  = re.compile(r"^(\d+)\s*-\s*(\d+)$")

    def __init__(self):
        self.skipped: List[str] = []

    # ── Public API ────────────────────────────────────────────────────────────

    def resolve(self, selection: PortSelection) -> List[int]:
        if selection.mode is PortMode.WELL_KNOWN:
            return sorted(set(WELL_KNOWN_PORTS))
        if selection.mode is PortMode.FULL_RANGE:
            return list(range(PORT_MIN, PORT_MAX + 1))
        return self.parse(selection.spec)

    def parse(self, spec: str) -> List[int]:
        """
        Parse a comma-separated custom spec → sorted deduplicated list.

        Raises EmptyPortSet if no valid port remains.
        """
        if not isinstance(spec, str):
            raise PortParseError(f"Expected string, got {type(spec).__name__}")

        self.skipped = []
        ports: Set[int] = set()
        for part in spec.split(","):
            part = part.strip()
            if not part:
                continue
            parsed = self._parse_token(part)
            if not parsed:
                self.skipped.append(part)
            ports.update(parsed)

        if self.skipped:
            log.debug(f"Skipped port tokens: {', '.join(self.skipped)}")
        if not ports:
            raise EmptyPortSet(f"No valid ports parsed from: {spec!r}")

        return sorted(ports)

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _parse_token(self, token: str) -> List[int]:
        if self._SINGLE_RE.match(token):
            port = int(token)
            return [port] if PORT_MIN <= port <= PORT_MAX else []

        m = self._RANGE_RE.match(token)
        if m:
            start, end = int(m.group(1)), int(m.group(2))
            if start > end:
                return []
            # Clip to the valid interval; values outside it are dropped
            return list(range(max(start, PORT_MIN), min(end, PORT_MAX) + 1))

        return []


def validate_ports(ports) -> List[int]:
    """
    Validate an explicit port list (e.g. from an inbound message).

    Non-integers and out-of-range values are dropped; duplicates removed.
    """
    valid: Set[int] = set()
    for p in ports or []:
        if isinstance(p, bool):
            continue
        if isinstance(p, str) and p.strip().isdigit():
            p = int(p)
        if isinstance(p, int) and PORT_MIN <= p <= PORT_MAX:
            valid.add(p)
    if not valid:
        raise EmptyPortSet("No valid ports in request")
    return sorted(valid)


# ── Module-level convenience ──────────────────────────────────────────────────

def resolve_ports(selection: PortSelection) -> List[int]:
    return PortParser().resolve(selection)


def parse_ports(spec: str) -> List[int]:
    return PortParser().parse(spec)
