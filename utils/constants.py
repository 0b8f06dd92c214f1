"""
LanSweep Constants & Enums
Session stages, scan profiles and the curated port lists
"""

from enum import Enum
from dataclasses import dataclass


# ─── Session Stages ───────────────────────────────────────────────────────────
class SessionStage(str, Enum):
    IDLE        = "idle"
    DISCOVERING = "discovering"
    SCANNING    = "scanning"
    COMPLETED   = "completed"
    STOPPED     = "stopped"

    @property
    def terminal(self) -> bool:
        return self in (SessionStage.COMPLETED, SessionStage.STOPPED)


# Forward-only lifecycle; stages may be skipped but never revisited.
STAGE_TRANSITIONS = {
    SessionStage.IDLE:        {SessionStage.DISCOVERING, SessionStage.SCANNING,
                               SessionStage.COMPLETED, SessionStage.STOPPED},
    SessionStage.DISCOVERING: {SessionStage.SCANNING,
                               SessionStage.COMPLETED, SessionStage.STOPPED},
    SessionStage.SCANNING:    {SessionStage.COMPLETED, SessionStage.STOPPED},
    SessionStage.COMPLETED:   set(),
    SessionStage.STOPPED:     set(),
}


# ─── Scan Profiles ────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class ScanProfile:
    """Concurrency and timeout knobs for one session."""
    name: str
    scan_workers: int              # size of the port-scan worker pool
    probe_timeout_ms: float        # per-connect timeout in the scan stage
    discovery_batch_size: int      # hosts checked concurrently per batch
    discovery_timeout_ms: float    # per-connect timeout during discovery
    progress_every: int            # emit scan progress every N probes
    grace_ms: float                # hard cap on top of any probe timeout

    @property
    def probe_timeout_s(self) -> float:
        return self.probe_timeout_ms / 1000.0

    @property
    def discovery_timeout_s(self) -> float:
        return self.discovery_timeout_ms / 1000.0

    @property
    def grace_s(self) -> float:
        return self.grace_ms / 1000.0


SCAN_PROFILES = {
    "polite":     ScanProfile("polite",     scan_workers=50,  probe_timeout_ms=1500,
                              discovery_batch_size=20, discovery_timeout_ms=1500,
                              progress_every=50, grace_ms=500),

    "normal":     ScanProfile("normal",     scan_workers=200, probe_timeout_ms=800,
                              discovery_batch_size=50, discovery_timeout_ms=1000,
                              progress_every=50, grace_ms=500),

    "aggressive": ScanProfile("aggressive", scan_workers=500, probe_timeout_ms=400,
                              discovery_batch_size=100, discovery_timeout_ms=600,
                              progress_every=100, grace_ms=500),
}

DEFAULT_PROFILE = "normal"

# ─── Ports ────────────────────────────────────────────────────────────────────
PORT_MIN = 1
PORT_MAX = 65535

WELL_KNOWN_PORTS = (
    21, 22, 23, 25, 53, 80, 110, 111, 135, 139, 143, 443, 445, 993, 995,
    1433, 1723, 3306, 3389, 5432, 5900, 6379, 8000, 8080, 8443, 8888, 9200, 27017,
)

# Probed during host discovery; any accepted connection marks the host up.
DISCOVERY_PORTS = (80, 443, 22, 135, 445, 3389, 8080)

# ─── Address Ranges ───────────────────────────────────────────────────────────
MAX_RANGE_ADDRESSES = 2048
IPV4_MAX = 0xFFFFFFFF

# ─── Layering Contract (enforced by tests/test_layering.py) ──────────────────
# core      → may import: utils
# utils     → may import: stdlib + third-party only
# dashboard → may import: core, utils
# NEVER: core or utils import dashboard
