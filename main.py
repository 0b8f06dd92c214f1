#!/usr/bin/env python3
"""
LanSweep v1.0 — Concurrent LAN Reachability Scanner
main.py — CLI entry point

Usage:
  python3 main.py --range 192.168.1.1-192.168.1.254
  python3 main.py --range 192.168.1.0/24 --ports 22,80-90 --discovery
  python3 main.py --subnet 192.168.1.10/255.255.255.0 --profile aggressive
  python3 main.py --local --discovery
  python3 main.py --range 10.0.0.5 --ports all --all-ports-ok
  python3 main.py --interfaces
  python3 main.py --dashboard --host 127.0.0.1 --dash-port 5000
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import Dict, List, Optional

# Try uvloop for 2-4× speed on Linux/macOS
try:
    import uvloop
    asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
except ImportError:
    pass

import yaml

from core.address_range import AddressRangeExpander, SubnetCalculator, parse_address, format_address
from core.errors import RangeTooLarge, ScanError
from core.events import EventType, ScanEvent
from core.models import ScanRequest, ScanSession
from core.port_parser import PortParser, PortSelection
from core.scanner_engine import ScanStats
from core.session import SessionController
from core.timing import profile_from_config, get_profile
from utils.constants import SCAN_PROFILES, ScanProfile, SessionStage
from utils.logger import get_logger, set_level
from utils.network import local_interfaces

log = get_logger("lansweep")

BANNER = r"""
  ╔════════════════════════════════════════════════╗
  ║   L A N S W E E P                              ║
  ║   Reachability Scanner  ·  Async Worker Pool   ║
  ╚════════════════════════════════════════════════╝"""


def _load_config(path: str) -> dict:
    try:
        with open(path) as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        return {}


def _confirm(question: str) -> bool:
    try:
        answer = input(f"  [?] {question} (yes/no): ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


# ─── Target resolution ────────────────────────────────────────────────────────

def parse_target(text: str, expander: AddressRangeExpander, truncate: bool = False) -> List[str]:
    """
    Expand a target expression into addresses.

      10.0.0.7                       single address
      10.0.0.1-10.0.0.50             inclusive range
      10.0.0.1-50                    shorthand for the last octet
      10.0.0.0/24                    CIDR (interior hosts)
      10.0.0.9/255.255.255.0         address + netmask (interior hosts)
    """
    text = text.strip()
    if "/" in text:
        address, mask = text.split("/", 1)
        if "." in mask:
            info = SubnetCalculator.calculate(address, mask)
            return expander.expand_range(info.interior, truncate)
        return expander.expand_cidr(text, truncate)

    if "-" in text:
        start, end = (part.strip() for part in text.split("-", 1))
        if end.isdigit():
            end = start.rsplit(".", 1)[0] + "." + end
        return expander.expand(start, end, truncate)

    return [format_address(parse_address(text))]


def local_target() -> Optional[str]:
    """First local interface as an address/netmask target, if any."""
    interfaces = local_interfaces()
    if not interfaces:
        return None
    iface = interfaces[0]
    log.info(f"Interface: {iface['name']}  {iface['ip']}/{iface['netmask']}")
    return f"{iface['ip']}/{iface['netmask']}"


def resolve_hosts(text: str, truncate: bool) -> List[str]:
    expander = AddressRangeExpander()
    try:
        return parse_target(text, expander, truncate)
    except RangeTooLarge as exc:
        if _confirm(f"Range holds {exc.count} addresses. "
                    f"Continue with the first {len(exc.truncated)}?"):
            return exc.truncated
        raise


def resolve_port_list(spec: str, all_ports_ok: bool) -> List[int]:
    selection = PortSelection.from_text(spec)
    if selection.is_full_range and not all_ports_ok:
        if not _confirm("Scan all 65535 ports per host? This can take very long."):
            raise ScanError("Full port range not acknowledged (use --all-ports-ok)")
    parser = PortParser()
    ports = parser.resolve(selection)
    if parser.skipped:
        log.warning(f"Ignored port tokens: {', '.join(parser.skipped)}")
    return ports


# ─── Event reporter ───────────────────────────────────────────────────────────

class CliReporter:
    """EventSink that narrates a session on the console."""

    def __init__(self, quiet: bool = False):
        self.quiet = quiet
        self.open_ports: Dict[str, List[int]] = {}
        self.hosts_up: List[str] = []
        self._last_pct: Dict[str, int] = {}

    def __call__(self, event: ScanEvent) -> None:
        p = event.payload
        if event.type is EventType.SCAN_RESULT:
            self.open_ports.setdefault(p["host"], []).append(p["port"])
            log.info(f"[+] {p['host']}:{p['port']} open")
        elif event.type is EventType.HOST_FOUND:
            self.hosts_up.append(p["host"])
            log.info(f"[+] {p['host']} is up")
        elif event.type is EventType.PROGRESS:
            self._progress(p["phase"], p["current"], p["total"])
        elif event.type is EventType.LOG:
            if not self.quiet:
                log.info(p["message"])
        elif event.type.terminal:
            log.info(f"[*] {event.type.value} ({p['scanned']}/{p['total']})")

    def _progress(self, phase: str, current: int, total: int) -> None:
        if self.quiet or total <= 0:
            return
        pct = current * 100 // total
        # One line per 10% step keeps large scans readable
        if pct // 10 != self._last_pct.get(phase, -1) // 10 or current == total:
            self._last_pct[phase] = pct
            log.info(f"    {phase:<9} {current}/{total}  ({pct}%)")

    def print_summary(self, session: ScanSession, stats: Optional[ScanStats]) -> None:
        status = "STOPPED" if session.stage is SessionStage.STOPPED else "COMPLETE"
        n_open = sum(len(v) for v in self.open_ports.values())
        print(f"\n{'═'*60}")
        print(f"  SESSION {session.id} {status}")
        print(f"{'─'*60}")
        print(f"  Targets      : {len(session.targets)} hosts × {len(session.ports)} ports")
        if session.host_discovery:
            print(f"  Hosts up     : {len(self.hosts_up)}")
        print(f"  Open ports   : {n_open}")
        if stats is not None:
            print(f"  Probes       : {stats.scanned}")
            print(f"  Duration     : {stats.elapsed_s:.2f}s")
            print(f"  Rate         : {stats.rate_per_s:.0f} probes/sec")
        print(f"{'═'*60}\n")

        for host in sorted(self.open_ports, key=parse_address):
            ports = sorted(self.open_ports[host])
            print(f"  ┌─ {host}")
            print(f"  │  {', '.join(str(p) for p in ports)}")
        if self.open_ports:
            print()


# ─── Core scan runner ─────────────────────────────────────────────────────────

async def _run_scan(
    hosts: List[str],
    ports: List[int],
    discovery: bool,
    profile: ScanProfile,
    quiet: bool,
) -> ScanSession:
    reporter = CliReporter(quiet=quiet)
    controller = SessionController(emit=reporter, profile=profile)
    request = ScanRequest.build(hosts, ports, host_discovery=discovery)

    log.info(f"Targets  : {len(request.hosts)} hosts")
    log.info(f"Ports    : {len(request.ports)}")
    log.info(f"Profile  : {profile.name}  ({profile.scan_workers} workers, "
             f"{profile.probe_timeout_ms:.0f}ms timeout)")
    log.info(f"Discovery: {'yes' if discovery else 'no'}")

    # First Ctrl-C stops cooperatively; in-flight probes finish
    loop = asyncio.get_running_loop()
    handler_installed = False
    try:
        loop.add_signal_handler(signal.SIGINT, controller.stop)
        handler_installed = True
    except (NotImplementedError, RuntimeError):
        pass

    try:
        session = await controller.run(request)
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)

    reporter.print_summary(session, controller.stats)
    return session


def show_interfaces() -> None:
    interfaces = local_interfaces()
    if not interfaces:
        print("  No IPv4 interfaces found")
        return
    print(f"\n  {'NAME':<16} {'ADDRESS':<16} {'NETMASK':<16} SUGGESTED RANGE")
    print("  " + "─" * 72)
    for iface in interfaces:
        rng = SubnetCalculator.interior(iface["ip"], iface["netmask"])
        span = f"{rng.first} - {rng.last}" if len(rng) else "—"
        print(f"  {iface['name']:<16} {iface['ip']:<16} {iface['netmask']:<16} {span}")
    print()


# ─── CLI ─────────────────────────────────────────────────────────────────────

def build_cli() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="lansweep",
        description="LanSweep v1.0 — Concurrent LAN Reachability Scanner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Targets:      10.0.0.7  |  10.0.0.1-10.0.0.50  |  10.0.0.1-50
              10.0.0.0/24  |  10.0.0.9/255.255.255.0
Port specs:   well-known  |  all  |  22,80-90,443
Profiles:     polite  normal  aggressive

Examples:
  %(prog)s --range 192.168.1.0/24 --discovery
  %(prog)s --range 192.168.1.10-20 --ports 22,80,443
  %(prog)s --local --profile aggressive
  %(prog)s --interfaces
  %(prog)s --dashboard --host 127.0.0.1
""",
    )
    g = ap.add_argument_group
    s = g("Scan")
    s.add_argument("--range",        metavar="TARGET",  help="Address, range or subnet to scan; "
                        "subnets yield interior hosts only, so /31 and /32 are empty")
    s.add_argument("--subnet",       metavar="IP/MASK", help="Alias of --range for address/netmask input")
    s.add_argument("--local",        action="store_true", help="Scan the first local interface's subnet")
    s.add_argument("--ports",        metavar="SPEC",    default="well-known",
                   help="Port selection (default: well-known)")
    s.add_argument("--discovery",    action="store_true", help="Run host discovery before scanning")
    s.add_argument("--profile",      metavar="PROFILE", choices=sorted(SCAN_PROFILES),
                   help="Concurrency/timeout preset (default: from config, else normal)")
    s.add_argument("--truncate",     action="store_true",
                   help="Silently keep the first 2048 addresses of larger ranges")
    s.add_argument("--all-ports-ok", action="store_true",
                   help="Acknowledge the cost of --ports all without prompting")

    n = g("Network")
    n.add_argument("--interfaces",   action="store_true", help="List local IPv4 interfaces")

    d = g("Dashboard")
    d.add_argument("--dashboard",    action="store_true", help="Start web dashboard")
    d.add_argument("--host",         default=None)
    d.add_argument("--dash-port",    type=int, default=None, metavar="PORT")

    ap.add_argument("--config",      default="config.yaml", metavar="FILE")
    ap.add_argument("--quiet",       action="store_true", help="Suppress progress output")
    ap.add_argument("--verbose",     action="store_true", help="Debug logging")
    ap.add_argument("--no-logo",     action="store_true", help="Hide ASCII banner")
    ap.add_argument("--version",     action="version",   version="LanSweep 1.0")
    return ap


def _resolve_profile(cfg: dict, name: Optional[str]) -> ScanProfile:
    profile = profile_from_config(cfg)
    if name:
        overrides = {k: v for k, v in (cfg.get("scan") or {}).items() if k != "profile"}
        profile = get_profile(name, overrides)
    return profile


def main() -> None:
    ap = build_cli()
    if len(sys.argv) == 1:
        ap.print_help(); sys.exit(0)
    args = ap.parse_args()

    if args.verbose:
        set_level(logging.DEBUG)
    if not args.no_logo:
        print(BANNER)

    cfg = _load_config(args.config)

    try:
        profile = _resolve_profile(cfg, args.profile)

        if args.interfaces:
            show_interfaces()

        elif args.dashboard:
            dash_cfg = {
                **(cfg.get("dashboard") or {}),
                "profile": profile,
            }
            if args.host:
                dash_cfg["host"] = args.host
            if args.dash_port:
                dash_cfg["port"] = args.dash_port
            from dashboard.app import run_dashboard
            run_dashboard(dash_cfg)

        else:
            target = args.range or args.subnet
            if args.local:
                target = local_target()
                if target is None:
                    log.error("No local IPv4 interface found"); sys.exit(1)
            if not target:
                log.error("--range, --subnet or --local required"); sys.exit(1)

            hosts = resolve_hosts(target, args.truncate)
            if not hosts:
                log.warning("Range is empty, nothing to scan")
                return
            ports = resolve_port_list(args.ports, args.all_ports_ok)

            session = asyncio.run(_run_scan(hosts, ports, args.discovery, profile, args.quiet))
            if session.stage is SessionStage.STOPPED:
                sys.exit(130)

    except (ScanError, ValueError) as exc:
        log.error(f"{exc}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n  [!] Interrupted by user")
        sys.exit(0)


if __name__ == "__main__":
    main()
