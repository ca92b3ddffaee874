"""Discovery broadcaster - finds receivers on the local network"""

import asyncio
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple
import logging

from ..config import BROADCAST_ADDRESS, DISCOVERY_PORT, DISCOVERY_TIMEOUT
from ..errors import DiscoveryError
from ..network.protocol import encode_discovery_request, parse_discovery_reply

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReceiverDevice:
    """A receiver that answered a discovery request"""
    name: str
    ip_address: str
    port: int

    def __str__(self):
        return f"{self.name} ({self.ip_address})"


class CollectorProtocol(asyncio.DatagramProtocol):
    """Turns every valid reply into a ReceiverDevice, duplicates included"""

    def __init__(self):
        super().__init__()
        self.devices: List[ReceiverDevice] = []

    def datagram_received(self, data: bytes, addr: Tuple):
        reply = parse_discovery_reply(data)
        if reply is None:
            return
        self.devices.append(ReceiverDevice(reply.device_name, addr[0], reply.tcp_port))

    def error_received(self, exc: Exception):
        logger.debug(f"Discovery socket error: {exc}")


async def search_devices(timeout: float = DISCOVERY_TIMEOUT,
                         broadcast_address: str = BROADCAST_ADDRESS,
                         discovery_port: int = DISCOVERY_PORT,
                         local_host: str = "0.0.0.0",
                         log: Optional[Callable[[str], None]] = None) -> List[ReceiverDevice]:
    """
    Run one discovery round.

    Sends a single request and collects replies until `timeout` seconds
    have passed. An empty list means nobody answered.
    """
    log = log or logger.info
    loop = asyncio.get_running_loop()

    try:
        transport, protocol = await loop.create_datagram_endpoint(
            CollectorProtocol,
            local_addr=(local_host, 0),
            allow_broadcast=True
        )
    except OSError as e:
        log(f"Error during device discovery: {e}")
        raise DiscoveryError(f"Cannot open discovery socket: {e}") from e

    try:
        log("Sending discovery broadcast...")
        transport.sendto(encode_discovery_request(), (broadcast_address, discovery_port))
        await asyncio.sleep(timeout)
    finally:
        transport.close()

    devices = list(protocol.devices)
    for device in devices:
        log(f"Found receiver: {device}")
    log(f"Discovery completed. Found {len(devices)} receiver(s).")
    return devices
