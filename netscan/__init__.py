"""
netscan - Discover live hosts in a network range and enumerate their open TCP ports.

This package provides modules for:
- CIDR / address target expansion
- ICMP reachability checks
- TCP connect port probing
- Banner grabbing
- Concurrent scan orchestration
"""

__version__ = "1.0.0"

from .targets import expand, CidrError, InvalidAddress, InvalidCidrFormat, InvalidCidrAddress, InvalidCidrSize
from .ports import parse_ports, PortSpecError
from .discover import ReachabilityProbe
from .probe import PortProbe, OpenConnection
from .banner_grabber import BannerGrabber, parse_server, NO_SERVICE_INFO
from .scanner import PortScanner, ScanConfig, HostResult, ScanReport, scan

__all__ = [
    "expand",
    "CidrError",
    "InvalidAddress",
    "InvalidCidrFormat",
    "InvalidCidrAddress",
    "InvalidCidrSize",
    "parse_ports",
    "PortSpecError",
    "ReachabilityProbe",
    "PortProbe",
    "OpenConnection",
    "BannerGrabber",
    "parse_server",
    "NO_SERVICE_INFO",
    "PortScanner",
    "ScanConfig",
    "HostResult",
    "ScanReport",
    "scan",
]
