"""
core/address_range.py
IPv4 range expansion and subnet arithmetic.

Accepts:
  "192.168.1.1" .. "192.168.1.254"   → ordered inclusive list
  "10.0.0.0/24"                        → interior hosts 10.0.0.1 .. 10.0.0.254
  ("192.168.1.10", "255.255.255.0")    → SubnetInfo(network, broadcast, interior)

Addresses are handled internally as unsigned 32-bit integers,
most-significant octet first.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Iterator, List, Union

from core.errors import MalformedAddress, RangeTooLarge
from utils.constants import IPV4_MAX, MAX_RANGE_ADDRESSES

Address = Union[str, int]


# ─── Conversions ──────────────────────────────────────────────────────────────

def parse_address(value: Address) -> int:
    """Dotted decimal (or int) → unsigned 32-bit integer."""
    if isinstance(value, int) and not isinstance(value, bool):
        if 0 <= value <= IPV4_MAX:
            return value
        raise MalformedAddress(f"Address {value} outside the IPv4 space")
    if not isinstance(value, str):
        raise MalformedAddress(f"Expected string, got {type(value).__name__}")
    try:
        return int(ipaddress.IPv4Address(value.strip()))
    except ValueError as exc:
        raise MalformedAddress(f"Invalid IPv4 address: {value!r}") from exc


def format_address(value: int) -> str:
    return str(ipaddress.IPv4Address(value))


# ─── Data Classes ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AddressRange:
    """Inclusive range; empty when start > end."""
    start: int
    end:   int

    @classmethod
    def between(cls, start: Address, end: Address) -> "AddressRange":
        return cls(parse_address(start), parse_address(end))

    def __len__(self) -> int:
        return max(0, self.end - self.start + 1)

    def __iter__(self) -> Iterator[str]:
        for value in range(self.start, self.end + 1):
            yield format_address(value)

    @property
    def first(self) -> str:
        return format_address(self.start)

    @property
    def last(self) -> str:
        return format_address(self.end)


@dataclass(frozen=True)
class SubnetInfo:
    network:   str
    broadcast: str
    interior:  AddressRange


# ─── Expander ─────────────────────────────────────────────────────────────────

class AddressRangeExpander:
    """
    Turn a start/end pair into a bounded, ordered list of dotted addresses.

    Ranges above ``limit`` raise RangeTooLarge (carrying the true count and
    the first ``limit`` addresses) unless the caller already opted into
    truncation with ``truncate=True``.
    """

    def __init__(self, limit: int = MAX_RANGE_ADDRESSES):
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        self.limit = limit

    def expand(self, start: Address, end: Address, truncate: bool = False) -> List[str]:
        return self.expand_range(AddressRange.between(start, end), truncate)

    def expand_range(self, rng: AddressRange, truncate: bool = False) -> List[str]:
        count = len(rng)
        if count <= self.limit:
            return list(rng)

        truncated = list(AddressRange(rng.start, rng.start + self.limit - 1))
        if truncate:
            return truncated
        raise RangeTooLarge(count, truncated)

    def expand_cidr(self, cidr: str, truncate: bool = False) -> List[str]:
        """Interior hosts of a CIDR block (network and broadcast excluded)."""
        try:
            net = ipaddress.IPv4Network(cidr.strip(), strict=False)
        except ValueError as exc:
            raise MalformedAddress(f"Invalid CIDR: {cidr!r}") from exc
        info = SubnetCalculator.calculate(str(net.network_address), str(net.netmask))
        return self.expand_range(info.interior, truncate)


# ─── Subnet Calculator ────────────────────────────────────────────────────────

class SubnetCalculator:
    """network = address & mask, broadcast = network | ~mask."""

    @staticmethod
    def calculate(address: Address, netmask: Address) -> SubnetInfo:
        ip   = parse_address(address)
        mask = parse_address(netmask)

        network   = ip & mask
        broadcast = network | (~mask & IPV4_MAX)

        # /31 and /32 leave no interior; clamp so the range is just empty
        interior = AddressRange(min(network + 1, IPV4_MAX), max(broadcast - 1, 0))
        return SubnetInfo(
            network=format_address(network),
            broadcast=format_address(broadcast),
            interior=interior,
        )

    @staticmethod
    def interior(address: Address, netmask: Address) -> AddressRange:
        return SubnetCalculator.calculate(address, netmask).interior


# ── Module-level convenience ──────────────────────────────────────────────────

_default_expander = AddressRangeExpander()


def expand_range(start: Address, end: Address, truncate: bool = False) -> List[str]:
    return _default_expander.expand(start, end, truncate)


def calculate_subnet(address: Address, netmask: Address) -> SubnetInfo:
    return SubnetCalculator.calculate(address, netmask)
