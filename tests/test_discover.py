import logging
import os
import sys

import pytest


PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from netscan import discover  # noqa: E402
from netscan.discover import ReachabilityProbe  # noqa: E402


class FakeProcess:
    def __init__(self, returncode: int):
        self.returncode = returncode

    async def wait(self) -> int:
        return self.returncode

    def kill(self) -> None:
        pass


def _fake_ping(monkeypatch, returncodes):
    calls = []
    codes = iter(returncodes)

    async def fake_exec(*args, **kwargs):
        calls.append(args)
        return FakeProcess(next(codes))

    monkeypatch.setattr(discover.asyncio, "create_subprocess_exec", fake_exec)
    return calls


@pytest.mark.asyncio
async def test_reachable_on_first_reply(monkeypatch) -> None:
    calls = _fake_ping(monkeypatch, [0])
    assert await ReachabilityProbe(timeout=1.0).is_reachable("192.168.1.1")
    assert calls == [("ping", "-c", "1", "-W", "1", "192.168.1.1")]


@pytest.mark.asyncio
async def test_retries_until_reply(monkeypatch) -> None:
    calls = _fake_ping(monkeypatch, [1, 1, 0])
    assert await ReachabilityProbe(retries=2).is_reachable("10.0.0.1")
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_unreachable_after_all_attempts(monkeypatch) -> None:
    calls = _fake_ping(monkeypatch, [1, 1, 1, 1])
    assert not await ReachabilityProbe(retries=2).is_reachable("10.0.0.1")
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_ipv6_uses_ping6_flag(monkeypatch) -> None:
    calls = _fake_ping(monkeypatch, [0])
    assert await ReachabilityProbe(timeout=2.5).is_reachable("::1")
    assert calls == [("ping", "-6", "-c", "1", "-W", "3", "::1")]


@pytest.mark.asyncio
async def test_malformed_address_is_unreachable(monkeypatch) -> None:
    calls = _fake_ping(monkeypatch, [0])
    assert not await ReachabilityProbe().is_reachable("not-an-ip")
    assert not await ReachabilityProbe().is_reachable("192.168.1.0/24")
    assert calls == []


@pytest.mark.asyncio
async def test_missing_ping_binary_is_unreachable() -> None:
    probe = ReachabilityProbe(retries=0, ping_binary="/nonexistent/bin/ping")
    assert not await probe.is_reachable("127.0.0.1")


@pytest.mark.asyncio
async def test_icmp_method_reply(monkeypatch) -> None:
    sent = []

    def fake_sr1(packet, timeout=None, verbose=None):
        sent.append(packet)
        return object()

    monkeypatch.setattr(discover, "sr1", fake_sr1)
    assert await ReachabilityProbe(method="icmp").is_reachable("10.1.1.10")
    assert len(sent) == 1


@pytest.mark.asyncio
async def test_icmp_method_no_reply(monkeypatch) -> None:
    monkeypatch.setattr(discover, "sr1", lambda packet, timeout=None, verbose=None: None)
    assert not await ReachabilityProbe(method="icmp", retries=1).is_reachable("10.1.1.10")


@pytest.mark.asyncio
async def test_icmp_method_without_privileges(monkeypatch) -> None:
    def fake_sr1(packet, timeout=None, verbose=None):
        raise PermissionError("Operation not permitted")

    monkeypatch.setattr(discover, "sr1", fake_sr1)
    assert not await ReachabilityProbe(method="icmp", retries=0).is_reachable("10.1.1.10")


def test_unknown_method_is_rejected() -> None:
    with pytest.raises(ValueError):
        ReachabilityProbe(method="arp")


def test_icmp_method_quiets_scapy_runtime_warnings() -> None:
    scapy_logger = logging.getLogger("scapy.runtime")
    previous = scapy_logger.level
    try:
        scapy_logger.setLevel(logging.WARNING)
        ReachabilityProbe(method="icmp")
        assert scapy_logger.level == logging.ERROR
    finally:
        scapy_logger.setLevel(previous)
