"""
tests/test_cli.py
Unit tests for main.py: target expressions, port lists and the console reporter.
Run: pytest tests/test_cli.py -v
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

import main
from core.address_range import AddressRangeExpander
from core.errors import MalformedAddress, RangeTooLarge, ScanError
from core.events import ScanEvent
from core.models import ScanSession
from utils.constants import PORT_MAX


@pytest.fixture
def expander():
    return AddressRangeExpander()


# ─── Target expressions ───────────────────────────────────────────────────────

class TestParseTarget:

    def test_last_octet_shorthand(self, expander):
        assert main.parse_target("10.0.0.1-5", expander) == [
            "10.0.0.1", "10.0.0.2", "10.0.0.3", "10.0.0.4", "10.0.0.5",
        ]

    def test_shorthand_upper_bound(self, expander):
        hosts = main.parse_target("10.0.0.1-50", expander)
        assert len(hosts) == 50
        assert hosts[-1] == "10.0.0.50"

    def test_full_range(self, expander):
        assert main.parse_target("10.0.0.254 - 10.0.1.1", expander) == [
            "10.0.0.254", "10.0.0.255", "10.0.1.0", "10.0.1.1",
        ]

    def test_cidr(self, expander):
        hosts = main.parse_target("192.168.5.0/24", expander)
        assert len(hosts) == 254
        assert hosts[0] == "192.168.5.1"
        assert hosts[-1] == "192.168.5.254"

    def test_address_with_dotted_mask(self, expander):
        assert main.parse_target("192.168.5.9/255.255.255.252", expander) == [
            "192.168.5.9", "192.168.5.10",
        ]

    def test_single_address(self, expander):
        assert main.parse_target(" 10.0.0.7 ", expander) == ["10.0.0.7"]

    def test_single_host_cidr_is_empty(self, expander):
        assert main.parse_target("10.0.0.5/32", expander) == []

    def test_malformed(self, expander):
        with pytest.raises(MalformedAddress):
            main.parse_target("10.0.0.x", expander)

    def test_too_large_raises(self, expander):
        with pytest.raises(RangeTooLarge) as info:
            main.parse_target("10.0.0.0/16", expander)
        assert info.value.count == 65534

    def test_too_large_truncated(self, expander):
        hosts = main.parse_target("10.0.0.0/16", expander, truncate=True)
        assert len(hosts) == 2048
        assert hosts[0] == "10.0.0.1"


class TestResolveHosts:

    def test_confirmed_truncation(self, monkeypatch):
        monkeypatch.setattr(main, "_confirm", lambda question: True)
        hosts = main.resolve_hosts("10.0.0.1-10.0.15.255", truncate=False)
        assert len(hosts) == 2048

    def test_declined_truncation(self, monkeypatch):
        monkeypatch.setattr(main, "_confirm", lambda question: False)
        with pytest.raises(RangeTooLarge):
            main.resolve_hosts("10.0.0.1-10.0.15.255", truncate=False)

    def test_truncate_flag_skips_prompt(self, monkeypatch):
        def fail(question):
            raise AssertionError("prompted")
        monkeypatch.setattr(main, "_confirm", fail)
        assert len(main.resolve_hosts("10.0.0.0/20", truncate=True)) == 2048


# ─── Port lists ───────────────────────────────────────────────────────────────

class TestResolvePortList:

    def test_all_ports_acknowledged(self):
        ports = main.resolve_port_list("all", all_ports_ok=True)
        assert len(ports) == PORT_MAX
        assert ports[0] == 1
        assert ports[-1] == PORT_MAX

    def test_all_ports_declined(self, monkeypatch):
        monkeypatch.setattr(main, "_confirm", lambda question: False)
        with pytest.raises(ScanError):
            main.resolve_port_list("all", all_ports_ok=False)

    def test_custom_skips_bad_tokens(self):
        assert main.resolve_port_list("22,abc,80-82,90-85", all_ports_ok=False) == [22, 80, 81, 82]

    def test_well_known(self):
        ports = main.resolve_port_list("well-known", all_ports_ok=False)
        assert 22 in ports and 443 in ports
        assert ports == sorted(set(ports))


# ─── Reporter ─────────────────────────────────────────────────────────────────

class TestCliReporter:

    def test_collects_open_ports_and_hosts(self):
        reporter = main.CliReporter(quiet=True)
        reporter(ScanEvent.host_found("10.0.0.2"))
        reporter(ScanEvent.scan_result("10.0.0.2", 443))
        reporter(ScanEvent.scan_result("10.0.0.2", 22))
        reporter(ScanEvent.scan_result("10.0.0.10", 80))
        reporter(ScanEvent.progress("scanning", 3, 10))
        reporter(ScanEvent.scan_complete(10, 10))

        assert reporter.hosts_up == ["10.0.0.2"]
        assert reporter.open_ports == {"10.0.0.2": [443, 22], "10.0.0.10": [80]}

    def test_summary(self, capsys):
        reporter = main.CliReporter(quiet=True)
        reporter(ScanEvent.scan_result("10.0.0.10", 80))
        reporter(ScanEvent.scan_result("10.0.0.2", 443))
        reporter(ScanEvent.scan_result("10.0.0.2", 22))
        session = ScanSession(targets=["10.0.0.2", "10.0.0.10"], ports=[22, 80, 443])
        session.finish(stopped=False)

        reporter.print_summary(session, None)
        out = capsys.readouterr().out
        assert "COMPLETE" in out
        assert "Open ports   : 3" in out
        assert "22, 443" in out
        # hosts listed in numeric, not lexical, order
        assert out.index("10.0.0.2\n") < out.index("10.0.0.10\n")


# ─── Argument parsing ─────────────────────────────────────────────────────────

class TestBuildCli:

    def test_defaults(self):
        args = main.build_cli().parse_args(["--range", "10.0.0.1-5"])
        assert args.range == "10.0.0.1-5"
        assert args.ports == "well-known"
        assert args.discovery is False
        assert args.profile is None

    def test_range_help_mentions_empty_host_subnets(self):
        action = next(a for a in main.build_cli()._actions if "--range" in a.option_strings)
        assert "/32" in action.help

    def test_unknown_profile_rejected(self):
        with pytest.raises(SystemExit):
            main.build_cli().parse_args(["--profile", "ludicrous"])

    def test_profile_flag_keeps_config_overrides(self):
        cfg = {"scan": {"profile": "polite", "scan_workers": 9}}
        profile = main._resolve_profile(cfg, "aggressive")
        assert profile.name == "aggressive"
        assert profile.scan_workers == 9

    def test_profile_from_config(self):
        assert main._resolve_profile({"scan": {"profile": "polite"}}, None).name == "polite"


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
