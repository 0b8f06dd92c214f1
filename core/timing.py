"""
core/timing.py
Scan profile resolution and throughput measurement.

Profiles bundle every concurrency / timeout knob of a session
(see utils/constants.py). ``get_profile`` accepts a preset name plus
per-field overrides, which is how config.yaml values reach the engine:

    scan:
      profile: normal
      scan_workers: 100
      probe_timeout_ms: 1200
"""

from __future__ import annotations

import dataclasses
import threading
import time
from typing import Any, Mapping, Optional

from utils.constants import ScanProfile, SCAN_PROFILES, DEFAULT_PROFILE


# ─── Scan Rate Meter ──────────────────────────────────────────────────────────

class RateMeter:
    """
    Counts completed probes and reports the lifetime average rate.
    Thread-safe.
    """

    def __init__(self):
        self._lock  = threading.Lock()
        self._total = 0.0
        self._start = time.monotonic()

    def update(self, amount: float = 1.0) -> None:
        with self._lock:
            self._total += amount

    def overall_rate(self) -> float:
        elapsed = time.monotonic() - self._start
        if elapsed <= 0:
            return 0.0
        with self._lock:
            return self._total / elapsed

    @property
    def elapsed_s(self) -> float:
        return time.monotonic() - self._start

    @property
    def total(self) -> float:
        with self._lock:
            return self._total


# ─── Profile factory ──────────────────────────────────────────────────────────

_POSITIVE_INT   = {"scan_workers", "discovery_batch_size", "progress_every"}
_POSITIVE_FLOAT = {"probe_timeout_ms", "discovery_timeout_ms"}


def get_profile(
    name: str = DEFAULT_PROFILE,
    overrides: Optional[Mapping[str, Any]] = None,
) -> ScanProfile:
    """
    Get a scan profile by name, optionally overriding individual fields.
    Accepts: polite, normal, aggressive
    Unknown override keys are rejected so config typos surface early.
    """
    key = (name or DEFAULT_PROFILE).lower()
    if key not in SCAN_PROFILES:
        raise ValueError(
            f"Unknown scan profile {name!r}. "
            f"Choose from: {list(SCAN_PROFILES)}"
        )
    profile = SCAN_PROFILES[key]
    if not overrides:
        return profile

    fields = {f.name for f in dataclasses.fields(ScanProfile)} - {"name"}
    changes = {}
    for field_name, value in overrides.items():
        if field_name not in fields:
            raise ValueError(f"Unknown profile setting {field_name!r}")
        if field_name in _POSITIVE_INT:
            value = int(value)
        else:
            value = float(value)
        if value <= 0 and (field_name in _POSITIVE_INT or field_name in _POSITIVE_FLOAT):
            raise ValueError(f"{field_name} must be > 0, got {value}")
        if value < 0:
            raise ValueError(f"{field_name} must be >= 0, got {value}")
        changes[field_name] = value
    return dataclasses.replace(profile, **changes)


def profile_from_config(cfg: Mapping[str, Any]) -> ScanProfile:
    """Build a profile from the ``scan:`` section of config.yaml."""
    section = dict(cfg.get("scan") or {})
    name = section.pop("profile", DEFAULT_PROFILE)
    return get_profile(name, section)
