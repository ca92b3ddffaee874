"""
history/history.py - Completed transfer records
Persists one record per successful transfer as JSON
"""

import json
import time
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List
from dataclasses import dataclass, field, asdict
import logging

logger = logging.getLogger(__name__)


class Direction(Enum):
    """Which side of the connection this host was on"""
    SENT = "SENT"
    RECEIVED = "RECEIVED"


@dataclass
class TransferRecord:
    """One completed transfer"""
    file_name: str
    file_size: int
    direction: Direction
    timestamp: float = field(default_factory=time.time)

    @property
    def formatted_timestamp(self) -> str:
        return datetime.fromtimestamp(self.timestamp).strftime("%Y-%m-%d %H:%M:%S")

    @property
    def formatted_size(self) -> str:
        size = self.file_size
        if size < 1024:
            return f"{size} B"
        elif size < 1024 ** 2:
            return f"{size / 1024:.2f} KB"
        elif size < 1024 ** 3:
            return f"{size / 1024 ** 2:.2f} MB"
        return f"{size / 1024 ** 3:.2f} GB"

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['direction'] = self.direction.value
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'TransferRecord':
        return cls(
            file_name=data['file_name'],
            file_size=int(data['file_size']),
            direction=Direction(data['direction']),
            timestamp=float(data['timestamp'])
        )

    def __str__(self):
        return (f"{self.file_name} | {self.formatted_timestamp} | "
                f"{self.formatted_size} | {self.direction.value.capitalize()}")


class TransferHistory:
    """
    Ordered list of completed transfers backed by a JSON file
    Listeners are called with the full list after every change
    """

    def __init__(self, history_file: Path):
        self.history_file = Path(history_file)
        self._records: List[TransferRecord] = self._load_records()
        self._listeners: List[Callable[[List[TransferRecord]], None]] = []

    def _load_records(self) -> List[TransferRecord]:
        """Load records from disk"""
        if not self.history_file.exists():
            return []

        try:
            with open(self.history_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load transfer history: {e}")
            return []

        records = []
        for entry in data if isinstance(data, list) else []:
            try:
                records.append(TransferRecord.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed history entry {entry!r}: {e}")
        return records

    def _save_records(self):
        """Save records to disk"""
        data = [r.to_dict() for r in self._records]
        try:
            self.history_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.history_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            logger.error(f"Failed to save transfer history: {e}")

    def add_record(self, record: TransferRecord):
        self._records.append(record)
        self._save_records()
        self._notify()
        logger.debug(f"Recorded transfer: {record}")

    def records(self) -> List[TransferRecord]:
        return list(self._records)

    def clear(self):
        self._records.clear()
        self._save_records()
        self._notify()

    def add_listener(self, listener: Callable[[List[TransferRecord]], None]):
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[List[TransferRecord]], None]):
        self._listeners.remove(listener)

    def _notify(self):
        snapshot = self.records()
        for listener in self._listeners:
            listener(snapshot)
