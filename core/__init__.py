"""
LanSweep Core — Public API

from core import SessionController, ScanRequest, PortSelection, resolve_ports
"""
from core.errors        import (ScanError, MalformedAddress, RangeTooLarge,
                                PortParseError, EmptyPortSet, AlreadyRunning)
from core.address_range import (AddressRange, AddressRangeExpander, SubnetCalculator,
                                SubnetInfo, expand_range, calculate_subnet,
                                parse_address, format_address)
from core.port_parser   import PortMode, PortSelection, PortParser, resolve_ports, parse_ports
from core.prober        import Prober, ProbeTarget, ProbeOutcome
from core.events        import EventType, ScanEvent, EventLog, EventSink
from core.models        import ScanRequest, ScanSession
from core.discovery     import DiscoveryStage
from core.scanner_engine import ScanStage, ScanStats, TargetQueue
from core.session       import SessionController
from core.channel       import ScanChannel
from core.timing        import get_profile, profile_from_config, RateMeter

__all__ = [
    "ScanError", "MalformedAddress", "RangeTooLarge",
    "PortParseError", "EmptyPortSet", "AlreadyRunning",
    "AddressRange", "AddressRangeExpander", "SubnetCalculator", "SubnetInfo",
    "expand_range", "calculate_subnet", "parse_address", "format_address",
    "PortMode", "PortSelection", "PortParser", "resolve_ports", "parse_ports",
    "Prober", "ProbeTarget", "ProbeOutcome",
    "EventType", "ScanEvent", "EventLog", "EventSink",
    "ScanRequest", "ScanSession",
    "DiscoveryStage", "ScanStage", "ScanStats", "TargetQueue",
    "SessionController", "ScanChannel",
    "get_profile", "profile_from_config", "RateMeter",
]
