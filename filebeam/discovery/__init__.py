from .broadcaster import ReceiverDevice, CollectorProtocol, search_devices
from .responder import DiscoveryResponder, ResponderProtocol
from .peer_discovery import PeerDiscovery

__all__ = [
    'ReceiverDevice',
    'CollectorProtocol',
    'search_devices',
    'DiscoveryResponder',
    'ResponderProtocol',
    'PeerDiscovery'
]
