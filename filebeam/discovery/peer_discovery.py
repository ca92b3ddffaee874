"""Discovery facade combining the responder and broadcaster roles"""

from typing import List, Optional
import logging

from ..config import FileBeamConfig
from ..errors import DiscoveryError
from ..transfer.progress import TransferObserver
from .broadcaster import ReceiverDevice, search_devices
from .responder import DiscoveryResponder

logger = logging.getLogger(__name__)


class PeerDiscovery:
    """Answers discovery requests while receiving and searches for receivers while sending"""

    def __init__(self, config: Optional[FileBeamConfig] = None,
                 observer: Optional[TransferObserver] = None):
        self.config = config or FileBeamConfig()
        self.observer = observer or TransferObserver()
        self._responder: Optional[DiscoveryResponder] = None

    def _log(self, message: str, level: int = logging.INFO):
        logger.log(level, message)
        self.observer.on_log(message)

    @property
    def responder(self) -> Optional[DiscoveryResponder]:
        return self._responder

    async def start_responder(self, tcp_port: int, host: str = "0.0.0.0",
                              port: Optional[int] = None) -> bool:
        """
        Advertise a receiver listening on tcp_port.
        Returns False when the discovery port cannot be bound; the
        receiver keeps working, it just cannot be found by broadcast.
        """
        await self.stop()

        responder = DiscoveryResponder(self.config.device_name, tcp_port, log=self._log)
        try:
            await responder.start(
                self.config.discovery_port if port is None else port, host
            )
        except DiscoveryError as e:
            self._log(f"Discovery disabled: {e}", logging.WARNING)
            return False

        self._responder = responder
        return True

    async def stop(self):
        if self._responder is None:
            return
        responder, self._responder = self._responder, None
        await responder.stop()

    async def search_devices(self, broadcast_address: Optional[str] = None,
                             local_host: str = "0.0.0.0") -> List[ReceiverDevice]:
        self._log("Searching for receiver devices...")
        return await search_devices(
            timeout=self.config.discovery_timeout,
            broadcast_address=broadcast_address or self.config.broadcast_address,
            discovery_port=self.config.discovery_port,
            local_host=local_host,
            log=self._log
        )
