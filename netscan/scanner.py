"""
Port Scanner Module

Runs the scan pipeline:
- Target expansion (single address or IPv4 CIDR block)
- Optional ICMP reachability gate
- Concurrent TCP connect probing on a bounded worker pool
- Optional banner grabbing on open ports
- Per-host aggregation in address order
"""

import asyncio
import logging
import os
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Awaitable, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .banner_grabber import NO_SERVICE_INFO, BannerGrabber
from .discover import PING_METHODS, ReachabilityProbe
from .ports import DEFAULT_PORT_RANGE, MAX_PORT, MIN_PORT
from .probe import PortProbe
from .targets import CidrError, expand

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], Awaitable[None]]

_STOP = object()


def default_workers() -> int:
    return (os.cpu_count() or 1) * 8


@dataclass
class ScanConfig:
    """Configuration for a scan."""
    connect_timeout: float = 3.0
    ping_timeout: float = 1.0
    ping_retries: int = 2
    ping_method: str = "ping"
    check_reachability: bool = True
    grab_banners: bool = True
    banner_read_size: int = 1024
    banner_timeout: float = 2.0
    workers: int = field(default_factory=default_workers)
    default_ports: Tuple[int, int] = DEFAULT_PORT_RANGE

    def __post_init__(self):
        if self.workers < 1:
            raise ValueError("workers must be >= 1")
        if self.connect_timeout <= 0 or self.ping_timeout <= 0 or self.banner_timeout <= 0:
            raise ValueError("timeouts must be positive")
        if self.ping_retries < 0:
            raise ValueError("ping_retries must be >= 0")
        if self.ping_method not in PING_METHODS:
            raise ValueError(f"ping_method must be one of {', '.join(PING_METHODS)}")
        if self.banner_read_size < 1:
            raise ValueError("banner_read_size must be >= 1")
        start, end = self.default_ports
        if not MIN_PORT <= start <= end <= MAX_PORT:
            raise ValueError(f"default_ports must lie within {MIN_PORT}-{MAX_PORT}")


@dataclass(frozen=True)
class HostResult:
    """Open ports of one live host, mapped to their banners."""
    address: str
    open_ports: Mapping[int, str]

    def __post_init__(self):
        # read-only view over a private copy
        object.__setattr__(self, "open_ports", MappingProxyType(dict(self.open_ports)))


@dataclass
class ScanReport:
    """Live hosts with open ports, in address order."""
    target: str
    hosts: List[HostResult] = field(default_factory=list)
    hosts_scanned: int = 0
    hosts_reachable: int = 0
    ports_scanned: int = 0
    duration: float = 0.0

    def __iter__(self) -> Iterator[HostResult]:
        return iter(self.hosts)

    def __len__(self) -> int:
        return len(self.hosts)

    @property
    def open_port_count(self) -> int:
        return sum(len(host.open_ports) for host in self.hosts)


class PortScanner:
    """Scan orchestrator: expands a target, gates hosts and probes ports."""

    def __init__(self, config: Optional[ScanConfig] = None,
                 progress_callback: Optional[ProgressCallback] = None,
                 reachability_probe: Optional[ReachabilityProbe] = None,
                 port_probe: Optional[PortProbe] = None,
                 banner_grabber: Optional[BannerGrabber] = None):
        self.config = config or ScanConfig()
        self.progress_callback = progress_callback
        self.reachability_probe = reachability_probe or ReachabilityProbe(
            timeout=self.config.ping_timeout,
            retries=self.config.ping_retries,
            method=self.config.ping_method
        )
        self.port_probe = port_probe or PortProbe(
            timeout=self.config.connect_timeout,
            read_timeout=self.config.banner_timeout
        )
        self.banner_grabber = banner_grabber or BannerGrabber(read_size=self.config.banner_read_size)

    async def scan(self, target: str, ports: List[int]) -> ScanReport:
        """Scan ``target`` on ``ports`` and return the hosts with open ports."""
        start_time = time.monotonic()
        report = ScanReport(target=target)

        try:
            addresses = expand(target)
        except CidrError as e:
            logger.warning(f"Rejected target {target!r}: {e}")
            return report

        ports = list(dict.fromkeys(ports))
        report.hosts_scanned = len(addresses)
        logger.info(f"Starting scan of {len(addresses)} host(s) on {len(ports)} port(s) "
                    f"with {self.config.workers} workers")

        # Phase 1: reachability gate
        if self.config.check_reachability:
            live = await self._filter_reachable(addresses)
        else:
            live = addresses
        report.hosts_reachable = len(live)
        logger.info(f"{len(live)} of {len(addresses)} host(s) reachable")

        # Phase 2: port probing; one slot per host, filled by port
        slots: Dict[str, Dict[int, str]] = {address: {} for address in live}
        total = len(live) * len(ports)
        completed = 0

        async def probe_port(address: str, port: int):
            nonlocal completed
            banner = await self._probe_port(address, port)
            if banner is not None:
                slots[address][port] = banner
            completed += 1
            await self._report_progress(completed, total, f"Probed {address}:{port}")

        jobs = ((address, port) for address in live for port in ports)
        await self._run_pool(jobs, probe_port)
        report.ports_scanned = total

        # Phase 3: aggregate in expansion order
        for address in live:
            open_ports = slots[address]
            if open_ports:
                report.hosts.append(HostResult(address, dict(sorted(open_ports.items()))))

        report.duration = time.monotonic() - start_time
        logger.info(f"Scan completed in {report.duration:.2f}s. Scanned {total} ports, "
                    f"found {report.open_port_count} open ports on {len(report.hosts)} host(s)")
        return report

    async def _filter_reachable(self, addresses: List[str]) -> List[str]:
        """Return the reachable addresses, keeping their original order."""
        reachable = [False] * len(addresses)
        checked = 0

        async def gate(index: int, address: str):
            nonlocal checked
            reachable[index] = await self.reachability_probe.is_reachable(address)
            checked += 1
            await self._report_progress(checked, len(addresses), f"Pinged {address}")

        await self._run_pool(enumerate(addresses), gate)
        return [address for address, alive in zip(addresses, reachable) if alive]

    async def _probe_port(self, address: str, port: int) -> Optional[str]:
        """Banner of an open port, or None if the port is closed/filtered."""
        connection = await self.port_probe.probe(address, port)
        if connection is None:
            return None

        logger.debug(f"{address}:{port} is open")
        if not self.config.grab_banners:
            await connection.close()
            return NO_SERVICE_INFO
        return await self.banner_grabber.grab(connection)

    async def _run_pool(self, jobs: Iterable[Tuple], handler: Callable[..., Awaitable[None]]):
        """Feed ``jobs`` through a bounded queue to ``config.workers`` worker tasks."""
        workers = self.config.workers
        queue: asyncio.Queue = asyncio.Queue(maxsize=workers * 4)

        async def producer():
            for job in jobs:
                await queue.put(job)
            for _ in range(workers):
                await queue.put(_STOP)

        async def worker():
            while True:
                job = await queue.get()
                if job is _STOP:
                    return
                await handler(*job)

        try:
            async with asyncio.TaskGroup() as group:
                group.create_task(producer())
                for _ in range(workers):
                    group.create_task(worker())
        except ExceptionGroup as eg:
            # siblings are already cancelled; surface the first failure as-is
            raise eg.exceptions[0]

    async def _report_progress(self, completed: int, total: int, message: str):
        if self.progress_callback:
            await self.progress_callback(completed, total, message)


def scan(target: str, ports: List[int], config: Optional[ScanConfig] = None) -> ScanReport:
    """Blocking helper around ``PortScanner.scan``."""
    return asyncio.run(PortScanner(config).scan(target, ports))
