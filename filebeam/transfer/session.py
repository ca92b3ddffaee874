"""State of a single file transfer"""

import threading
from pathlib import Path
from typing import Optional, Tuple
from dataclasses import dataclass, field

from ..errors import TransferCancelled
from ..history import Direction, TransferRecord


@dataclass(eq=False)
class TransferSession:
    """One file moving over one TCP connection, owned by the task running it"""
    direction: Direction
    file_path: Path
    total_bytes: int
    peer: Optional[Tuple] = None
    bytes_transferred: int = 0
    cancel_event: threading.Event = field(default_factory=threading.Event)

    @property
    def file_name(self) -> str:
        return self.file_path.name

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    @property
    def complete(self) -> bool:
        return self.bytes_transferred == self.total_bytes

    def cancel(self):
        """Request a stop at the next chunk boundary; safe from any thread"""
        self.cancel_event.set()

    def raise_if_cancelled(self):
        if self.cancel_event.is_set():
            raise TransferCancelled(f"Transfer of {self.file_name} cancelled")

    def to_record(self) -> TransferRecord:
        return TransferRecord(
            file_name=self.file_name,
            file_size=self.total_bytes,
            direction=self.direction
        )
