"""
Port Specification Parsing

Accepted forms:
- Single port: "80"
- Comma separated list: "22,80,443" (items may also be ranges: "1-10,80")
- Inclusive range: "20-25"
- Empty / missing: the default range
"""

import logging
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

MIN_PORT = 1
MAX_PORT = 65535
DEFAULT_PORT_RANGE: Tuple[int, int] = (1, 1024)


class PortSpecError(ValueError):
    """Raised for a port specification that cannot be parsed."""


def _parse_port(value: str, spec: str) -> int:
    text = value.strip()
    if not (text.isascii() and text.isdigit()):
        raise PortSpecError(f"Invalid port format: {spec!r}")
    port = int(text)
    if not MIN_PORT <= port <= MAX_PORT:
        raise PortSpecError(f"Invalid port value: {port} (must be {MIN_PORT}-{MAX_PORT})")
    return port


def _parse_range(item: str, spec: str) -> List[int]:
    bounds = item.split("-")
    if len(bounds) != 2:
        raise PortSpecError(f"Invalid port format: {spec!r}")
    start = _parse_port(bounds[0], spec)
    end = _parse_port(bounds[1], spec)
    if start > end:
        raise PortSpecError(f"Invalid port format: range start {start} is greater than end {end}")
    return list(range(start, end + 1))


def _dedupe(ports: List[int]) -> List[int]:
    return list(dict.fromkeys(ports))


def parse_ports(spec: Optional[str], default_range: Tuple[int, int] = DEFAULT_PORT_RANGE) -> List[int]:
    """Parse a port specification into an ordered, de-duplicated list of ports."""
    if spec is None or not spec.strip():
        start, end = default_range
        return list(range(start, end + 1))

    spec = spec.strip()

    if "," in spec:
        ports: List[int] = []
        for item in spec.split(","):
            if "-" in item:
                ports.extend(_parse_range(item, spec))
            else:
                ports.append(_parse_port(item, spec))
        return _dedupe(ports)

    if "-" in spec:
        return _parse_range(spec, spec)

    return [_parse_port(spec, spec)]


def describe_ports(ports: List[int]) -> str:
    """Short human readable form of a port list, used in scan headers."""
    if not ports:
        return "none"
    if len(ports) > 1 and ports == list(range(ports[0], ports[-1] + 1)):
        return f"{ports[0]}-{ports[-1]}"
    if len(ports) <= 10:
        return ",".join(str(p) for p in ports)
    return f"{len(ports)} ports"
