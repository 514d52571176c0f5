"""
Target Expansion Module

Turns a scan target into the concrete addresses it denotes:
- Single IPv4/IPv6 literals
- IPv4 CIDR blocks (network and broadcast addresses included)
"""

import ipaddress
import logging
from typing import List

logger = logging.getLogger(__name__)

_HOST_BITS = 32
_ALL_ONES = 0xFFFFFFFF


class CidrError(ValueError):
    """Base class for target validation failures."""


class InvalidAddress(CidrError):
    """A target without a prefix is not a valid IP literal."""


class InvalidCidrFormat(CidrError):
    """A CIDR target is empty or does not split into address and prefix."""


class InvalidCidrAddress(CidrError):
    """The address half of a CIDR target is not an IPv4 literal."""


class InvalidCidrSize(CidrError):
    """The prefix half of a CIDR target is not an integer in [1, 32]."""


def is_valid_ip(address: str) -> bool:
    """Return True if ``address`` is an IPv4 or IPv6 literal."""
    try:
        ipaddress.ip_address(address)
    except ValueError:
        return False
    return True


def is_valid_cidr_size(prefix: str) -> bool:
    """Return True if ``prefix`` is a plain decimal integer in [1, 32]."""
    if not prefix or not (prefix.isascii() and prefix.isdigit()):
        return False
    return 1 <= int(prefix) <= _HOST_BITS


def _split_cidr(cidr: str):
    if not cidr:
        raise InvalidCidrFormat("ERROR: Invalid CIDR format")

    parts = cidr.split("/")
    if len(parts) != 2:
        raise InvalidCidrFormat("ERROR: Invalid CIDR format")

    address, prefix = parts
    try:
        network = ipaddress.IPv4Address(address)
    except ValueError:
        raise InvalidCidrAddress("ERROR: Invalid IP of CIDR address") from None

    if not is_valid_cidr_size(prefix):
        raise InvalidCidrSize("ERROR: Invalid size of CIDR address")

    return int(network), int(prefix)


def cidr_bounds(cidr: str):
    """Return the (network, broadcast) integers of an IPv4 CIDR block."""
    addr, prefix_len = _split_cidr(cidr)
    mask = ~((1 << (_HOST_BITS - prefix_len)) - 1) & _ALL_ONES
    network_addr = addr & mask
    broadcast_addr = network_addr | (~mask & _ALL_ONES)
    return network_addr, broadcast_addr


def expand_cidr(cidr: str) -> List[str]:
    """
    Expand an IPv4 CIDR block into every address it covers.

    The result is in ascending numeric order and includes the network and
    broadcast addresses; callers that only want usable hosts filter those out
    themselves.
    """
    network_addr, broadcast_addr = cidr_bounds(cidr)
    return [
        str(ipaddress.IPv4Address(value))
        for value in range(network_addr, broadcast_addr + 1)
    ]


def expand(target: str) -> List[str]:
    """Expand a single address or a CIDR block into a list of addresses."""
    if "/" not in target:
        if not target:
            raise InvalidCidrFormat("ERROR: Invalid CIDR format")
        if not is_valid_ip(target):
            raise InvalidAddress(f"ERROR: Invalid IP address: {target}")
        return [target]

    addresses = expand_cidr(target)
    logger.debug(f"Expanded {target} to {len(addresses)} addresses")
    return addresses


def count_addresses(target: str) -> int:
    """Number of addresses ``expand(target)`` would return, without building them."""
    if "/" not in target:
        return len(expand(target))
    network_addr, broadcast_addr = cidr_bounds(target)
    return broadcast_addr - network_addr + 1
