"""Local network interface lookup"""

import socket
from typing import List
import logging

import psutil

logger = logging.getLogger(__name__)


def local_ipv4_addresses() -> List[str]:
    """Non-loopback IPv4 addresses of this host, sorted"""
    addresses = set()

    try:
        interfaces = psutil.net_if_addrs()
    except OSError as e:
        logger.warning(f"Could not enumerate network interfaces: {e}")
        return []

    for name, addrs in interfaces.items():
        for addr in addrs:
            if addr.family != socket.AF_INET:
                continue
            if addr.address.startswith("127."):
                continue
            addresses.add(addr.address)

    return sorted(addresses)
