"""Progress reporting towards the user interface"""

from typing import Optional
import logging

from ..config import PROGRESS_UPDATE_PERCENTAGE, PROGRESS_UPDATE_BYTES
from ..history import TransferRecord

logger = logging.getLogger(__name__)


class TransferObserver:
    """
    Sink for session events.
    Subclasses override what they need; every method is called from
    the event loop running the session.
    """

    def on_log(self, message: str):
        pass

    def on_progress(self, percent: int):
        pass

    def on_transfer_complete(self, record: TransferRecord):
        pass


class ProgressTracker:
    """
    Throttles progress updates for one session.

    An update is emitted when the percentage moved by at least `step`
    points or at least `byte_threshold` bytes went through since the
    previous update. Percentages never decrease.
    """

    def __init__(self, total_bytes: int, observer: Optional[TransferObserver] = None,
                 step: int = PROGRESS_UPDATE_PERCENTAGE,
                 byte_threshold: int = PROGRESS_UPDATE_BYTES):
        self.total_bytes = total_bytes
        self.observer = observer or TransferObserver()
        self.step = step
        self.byte_threshold = byte_threshold

        self.transferred = 0
        self.last_percent = 0
        self.last_bytes = 0

    @property
    def percent(self) -> int:
        if self.total_bytes <= 0:
            return 100
        return min(100, self.transferred * 100 // self.total_bytes)

    def advance(self, nbytes: int):
        """Account for nbytes moved and emit an update if due"""
        self.transferred += nbytes
        percent = self.percent

        if (percent - self.last_percent >= self.step or
                self.transferred - self.last_bytes >= self.byte_threshold):
            self._emit(percent)

    def finish(self):
        """Make sure the final update is exactly 100"""
        if self.last_percent != 100:
            self._emit(100)

    def reset(self):
        """Return the observer to its idle state"""
        self.observer.on_progress(0)

    def _emit(self, percent: int):
        self.last_percent = percent
        self.last_bytes = self.transferred
        self.observer.on_progress(percent)
        logger.debug(f"Progress: {percent}%")
