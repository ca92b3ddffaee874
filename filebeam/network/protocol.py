"""Wire formats for the transfer header and discovery datagrams"""

import struct
from dataclasses import dataclass
from typing import Optional
import logging

from ..errors import FramingError

logger = logging.getLogger(__name__)

# Discovery tokens
DISCOVERY_REQUEST = "FILEBEAM_DISCOVERY"
DISCOVERY_RESPONSE_PREFIX = "RECEIVER_AVAILABLE|"
REPLY_SEPARATOR = "|"

# Header layout: u16 name length, UTF-8 name, u64 file size (big-endian)
NAME_LENGTH = struct.Struct('>H')
FILE_SIZE = struct.Struct('>Q')
MAX_NAME_BYTES = 0xFFFF
MAX_FILE_SIZE = 0xFFFFFFFFFFFFFFFF


@dataclass(frozen=True)
class TransferHeader:
    """File name and exact payload length sent before any payload byte"""
    file_name: str
    file_size: int

    def pack(self) -> bytes:
        """Encode header for the TCP stream"""
        name_bytes = self.file_name.encode('utf-8')
        if len(name_bytes) > MAX_NAME_BYTES:
            raise ValueError(
                f"File name is {len(name_bytes)} bytes, limit is {MAX_NAME_BYTES}"
            )
        if not 0 <= self.file_size <= MAX_FILE_SIZE:
            raise ValueError(f"File size out of range: {self.file_size}")

        return NAME_LENGTH.pack(len(name_bytes)) + name_bytes + FILE_SIZE.pack(self.file_size)


def decode_name(raw: bytes) -> str:
    try:
        return raw.decode('utf-8')
    except UnicodeDecodeError as e:
        raise FramingError(f"File name is not valid UTF-8: {e}") from e


@dataclass(frozen=True)
class DiscoveryReply:
    """Answer a responder sends to a discovery request"""
    device_name: str
    tcp_port: int

    def encode(self) -> bytes:
        name = self.device_name.replace(REPLY_SEPARATOR, "_")
        return f"{DISCOVERY_RESPONSE_PREFIX}{name}{REPLY_SEPARATOR}{self.tcp_port}".encode('utf-8')


def encode_discovery_request() -> bytes:
    return DISCOVERY_REQUEST.encode('utf-8')


def is_discovery_request(data: bytes) -> bool:
    """True only for a datagram carrying exactly the request token"""
    return data == DISCOVERY_REQUEST.encode('utf-8')


def parse_discovery_reply(data: bytes) -> Optional[DiscoveryReply]:
    """
    Parse a reply datagram.
    Anything malformed yields None so one bad datagram never
    disturbs a discovery round.
    """
    try:
        text = data.decode('utf-8')
    except UnicodeDecodeError:
        logger.debug("Dropping discovery reply with invalid UTF-8")
        return None

    if not text.startswith(DISCOVERY_RESPONSE_PREFIX):
        logger.debug(f"Dropping datagram without reply prefix: {text[:32]!r}")
        return None

    parts = text.split(REPLY_SEPARATOR)
    if len(parts) < 3:
        logger.debug(f"Dropping reply with too few fields: {text!r}")
        return None

    try:
        port = int(parts[2])
    except ValueError:
        logger.debug(f"Dropping reply with non-numeric port: {text!r}")
        return None

    if not 1 <= port <= 65535:
        logger.debug(f"Dropping reply with port out of range: {port}")
        return None

    return DiscoveryReply(device_name=parts[1], tcp_port=port)
