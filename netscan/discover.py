"""
Host Discovery Module

Provides the reachability gate used before port scanning:
- ICMP echo through the system ping binary (no privileges needed)
- ICMP echo through raw Scapy packets (needs raw-socket privileges)

Hosts that drop ICMP but still accept TCP connections are reported as
unreachable and skipped; disable the gate (``--no-ping``) to scan them.
"""

import asyncio
import ipaddress
import logging
import math
from typing import Optional

from scapy.layers.inet import IP, ICMP
from scapy.layers.inet6 import IPv6, ICMPv6EchoRequest
from scapy.sendrecv import sr1

logger = logging.getLogger(__name__)

PING_METHODS = ("ping", "icmp")


class ReachabilityProbe:
    """Best-effort ICMP liveness check."""

    def __init__(self, timeout: float = 1.0, retries: int = 2, method: str = "ping",
                 ping_binary: str = "ping"):
        if method not in PING_METHODS:
            raise ValueError(f"Unknown ping method: {method}")
        self.timeout = timeout
        self.retries = retries
        self.method = method
        self.ping_binary = ping_binary
        if method == "icmp":
            # sr1 warns about MAC resolution on scapy.runtime even with verbose=0
            logging.getLogger("scapy.runtime").setLevel(logging.ERROR)

    async def is_reachable(self, address: str, timeout: Optional[float] = None) -> bool:
        """Return True if ``address`` answers any of the echo attempts."""
        timeout = self.timeout if timeout is None else timeout
        try:
            ip = ipaddress.ip_address(address)
        except ValueError:
            logger.debug(f"Not pinging malformed address {address!r}")
            return False

        attempts = 1 + max(0, self.retries)
        for attempt in range(attempts):
            if self.method == "icmp":
                alive = await self._icmp_echo(ip, timeout)
            else:
                alive = await self._system_ping(ip, timeout)
            if alive:
                logger.debug(f"{address} is reachable (attempt {attempt + 1}/{attempts})")
                return True

        logger.debug(f"{address} did not answer {attempts} echo request(s)")
        return False

    async def _system_ping(self, ip, timeout: float) -> bool:
        """Send one echo request with the ping binary."""
        # ping -W takes whole seconds on older iputils
        wait = str(max(1, math.ceil(timeout)))
        args = [self.ping_binary, "-c", "1", "-W", wait, str(ip)]
        if ip.version == 6:
            args.insert(1, "-6")

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL
            )
        except OSError as e:
            logger.warning(f"Could not run {self.ping_binary}: {e}")
            return False

        try:
            returncode = await asyncio.wait_for(process.wait(), timeout=timeout + 2)
        except asyncio.TimeoutError:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()
            return False

        return returncode == 0

    async def _icmp_echo(self, ip, timeout: float) -> bool:
        """Send one echo request as a raw Scapy packet."""
        if ip.version == 6:
            packet = IPv6(dst=str(ip)) / ICMPv6EchoRequest()
        else:
            packet = IP(dst=str(ip)) / ICMP()

        loop = asyncio.get_running_loop()
        try:
            response = await loop.run_in_executor(
                None,
                lambda: sr1(packet, timeout=timeout, verbose=0)
            )
        except PermissionError:
            logger.warning("Raw ICMP needs root privileges; treating host as unreachable")
            return False
        except OSError as e:
            logger.debug(f"ICMP echo to {ip} failed: {e}")
            return False

        return response is not None
