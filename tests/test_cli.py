import io
import os
import sys

import pytest
from rich.console import Console


PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from netscan import cli  # noqa: E402
from netscan.scanner import HostResult, ScanReport  # noqa: E402


def _run(args, monkeypatch=None, report=None):
    output = io.StringIO()
    console = Console(file=output, width=120, color_system=None)

    if monkeypatch is not None:
        class FakeScanner:
            instances = []

            def __init__(self, config, progress_callback=None):
                self.config = config
                self.progress_callback = progress_callback
                FakeScanner.instances.append(self)

            async def scan(self, target, ports):
                self.target = target
                self.ports = ports
                await self.progress_callback(1, 1, "done")
                return report

        monkeypatch.setattr(cli, "PortScanner", FakeScanner)

    code = cli.NetscanCLI(console=console).run(args)
    return code, output.getvalue()


@pytest.mark.parametrize("ports", ["22-20", "70000", "ssh", "1-2-3"])
def test_bad_port_spec_is_an_input_error(ports: str) -> None:
    code, output = _run(["--address", "127.0.0.1", "--ports", ports])
    assert code == cli.EXIT_INPUT_ERROR
    assert "ERROR: Invalid port" in output


@pytest.mark.parametrize("address", ["192.168.1.0/64", "invalid/24", "192.168.1.0/24/32", "999.1.1.1"])
def test_bad_target_is_an_input_error(address: str) -> None:
    code, output = _run(["--address", address, "--ports", "80"])
    assert code == cli.EXIT_INPUT_ERROR
    assert "ERROR" in output


def test_bad_worker_count_is_an_input_error() -> None:
    code, output = _run(["--address", "127.0.0.1", "--workers", "0"])
    assert code == cli.EXIT_INPUT_ERROR
    assert "workers" in output


def test_empty_report_prints_no_hosts_found(monkeypatch) -> None:
    code, output = _run(["-a", "10.0.0.0/30", "-p", "80"], monkeypatch, ScanReport(target="10.0.0.0/30"))
    assert code == cli.EXIT_OK
    assert "No hosts found." in output


def test_results_are_listed_per_host(monkeypatch) -> None:
    report = ScanReport(
        target="10.0.0.0/30",
        hosts=[
            HostResult("10.0.0.1", {22: "SSH-2.0-OpenSSH_8.9", 80: "nginx/1.18"}),
            HostResult("10.0.0.2", {443: "[bracketed] banner"}),
        ],
    )
    code, output = _run(["-a", "10.0.0.0/30", "-p", "22,80,443", "--no-ping"], monkeypatch, report)

    assert code == cli.EXIT_OK
    assert "Open Ports" in output
    assert "10.0.0.1" in output
    assert "22 -> SSH-2.0-OpenSSH_8.9" in output
    assert "80 -> nginx/1.18" in output
    assert "443 -> [bracketed] banner" in output
    assert output.index("10.0.0.1") < output.index("10.0.0.2")


def test_options_flow_into_scan_config(monkeypatch) -> None:
    _run(
        ["-a", "10.0.0.1", "--no-ping", "--no-banner", "-w", "3", "-t", "0.5", "--ping-method", "icmp"],
        monkeypatch,
        ScanReport(target="10.0.0.1"),
    )
    scanner = cli.PortScanner.instances[-1]
    assert scanner.target == "10.0.0.1"
    assert scanner.ports == list(range(1, 1025))
    assert scanner.config.workers == 3
    assert scanner.config.connect_timeout == 0.5
    assert scanner.config.ping_method == "icmp"
    assert not scanner.config.check_reachability
    assert not scanner.config.grab_banners


def test_address_is_required() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.NetscanCLI(console=Console(file=io.StringIO())).run([])
    assert excinfo.value.code == 2


def test_header_shows_banner_art(monkeypatch) -> None:
    code, output = _run(["-a", "10.0.0.1", "-p", "80"], monkeypatch, ScanReport(target="10.0.0.1"))
    assert code == cli.EXIT_OK
    first_art_line = cli.BANNER.strip().splitlines()[0]
    assert first_art_line in output
    assert output.index(first_art_line) < output.index("Target IP: 10.0.0.1")
