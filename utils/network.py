"""
utils/network.py
Read-only view of the local IPv4 interfaces (used to prefill a default range).
"""

import socket
from typing import Dict, List

import psutil


def local_interfaces() -> List[Dict[str, str]]:
    """
    Return ``[{name, ip, netmask}]`` for every non-loopback IPv4 address.

    Interfaces without a netmask (some point-to-point links) are skipped.
    """
    result: List[Dict[str, str]] = []
    for name, addrs in psutil.net_if_addrs().items():
        for addr in addrs:
            if addr.family != socket.AF_INET:
                continue
            if addr.address.startswith("127.") or not addr.netmask:
                continue
            result.append({"name": name, "ip": addr.address, "netmask": addr.netmask})
    return result


__all__ = ["local_interfaces"]
