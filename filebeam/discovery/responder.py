"""Discovery responder - answers discovery requests on behalf of a receiver"""

import asyncio
from typing import Callable, Optional, Tuple
import logging

from ..config import DISCOVERY_PORT
from ..errors import DiscoveryError
from ..network.protocol import DiscoveryReply, is_discovery_request

logger = logging.getLogger(__name__)


class ResponderProtocol(asyncio.DatagramProtocol):
    """Replies to every datagram that carries exactly the request token"""

    def __init__(self, reply: DiscoveryReply, log: Callable[[str], None]):
        super().__init__()
        self.reply = reply
        self.log = log
        self.transport: Optional[asyncio.DatagramTransport] = None
        self.closed = asyncio.get_running_loop().create_future()

    def connection_made(self, transport):
        self.transport = transport

    def datagram_received(self, data: bytes, addr: Tuple):
        if not is_discovery_request(data):
            logger.debug(f"Ignoring datagram from {addr[0]}")
            return

        self.log(f"Discovery request from: {addr[0]}")
        self.transport.sendto(self.reply.encode(), addr)
        self.log(f"Sent availability response to: {addr[0]}")

    def error_received(self, exc: Exception):
        logger.debug(f"Discovery responder socket error: {exc}")

    def connection_lost(self, exc: Optional[Exception]):
        if not self.closed.done():
            self.closed.set_result(None)


class DiscoveryResponder:
    """UDP endpoint advertising one receiver's TCP port"""

    def __init__(self, device_name: str, tcp_port: int,
                 log: Optional[Callable[[str], None]] = None):
        self.device_name = device_name
        self.tcp_port = tcp_port
        self._log = log or logger.info
        self._protocol: Optional[ResponderProtocol] = None
        self._transport: Optional[asyncio.DatagramTransport] = None
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._transport is not None

    @property
    def port(self) -> Optional[int]:
        if not self._transport:
            return None
        return self._transport.get_extra_info('sockname')[1]

    async def start(self, port: int = DISCOVERY_PORT, host: str = "0.0.0.0"):
        """Bind the discovery socket, replacing a previous one"""
        async with self._lock:
            if self._transport is not None:
                await self._close()

            loop = asyncio.get_running_loop()
            reply = DiscoveryReply(self.device_name, self.tcp_port)
            try:
                transport, protocol = await loop.create_datagram_endpoint(
                    lambda: ResponderProtocol(reply, self._log),
                    local_addr=(host, port)
                )
            except OSError as e:
                self._log(f"Error starting discovery service: {e}")
                raise DiscoveryError(f"Cannot bind discovery port {port}: {e}") from e

            self._transport, self._protocol = transport, protocol

        self._log(f"Discovery service started on port {self.port}")

    async def stop(self):
        """Close the socket and wait until it is released; idempotent"""
        async with self._lock:
            if self._transport is None:
                return
            await self._close()

        self._log("Discovery service stopped")

    async def _close(self):
        transport, protocol = self._transport, self._protocol
        self._transport = self._protocol = None
        transport.close()
        await protocol.closed
