from .protocol import (
    TransferHeader,
    DiscoveryReply,
    DISCOVERY_REQUEST,
    DISCOVERY_RESPONSE_PREFIX,
    encode_discovery_request,
    is_discovery_request,
    parse_discovery_reply,
)
from .transport import TransferStream
from .interfaces import local_ipv4_addresses

__all__ = [
    'TransferHeader',
    'DiscoveryReply',
    'DISCOVERY_REQUEST',
    'DISCOVERY_RESPONSE_PREFIX',
    'encode_discovery_request',
    'is_discovery_request',
    'parse_discovery_reply',
    'TransferStream',
    'local_ipv4_addresses',
]
