"""Pytest configuration and fixtures"""

import pytest
import asyncio
import os
import tempfile
import shutil
from pathlib import Path

from filebeam.config import FileBeamConfig
from filebeam.transfer.progress import TransferObserver


class RecordingObserver(TransferObserver):
    """Keeps every event a session reports"""

    def __init__(self):
        self.logs = []
        self.progress = []
        self.records = []
        self.completed = asyncio.Event()

    def on_log(self, message):
        self.logs.append(message)

    def on_progress(self, percent):
        self.progress.append(percent)

    def on_transfer_complete(self, record):
        self.records.append(record)
        self.completed.set()

    def logged(self, fragment):
        return any(fragment in message for message in self.logs)


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def temp_save_dir():
    """Create temporary directory for received files"""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def config(temp_dir, temp_save_dir):
    """Loopback-friendly configuration with a short poll interval"""
    return FileBeamConfig(
        save_directory=temp_save_dir,
        history_file=temp_dir / "history.json",
        poll_interval=0.05,
        discovery_timeout=0.5,
        device_name="test-receiver"
    )


@pytest.fixture
def make_observer():
    return RecordingObserver


@pytest.fixture
def make_file(temp_dir):
    """Write a file of random bytes and return its path"""
    def _make(name, size):
        path = temp_dir / name
        path.write_bytes(os.urandom(size))
        return path
    return _make


@pytest.fixture
def wait_until():
    """Poll a condition from inside the event loop"""
    async def _wait(predicate, timeout=5.0, interval=0.01):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("Condition not met before timeout")
            await asyncio.sleep(interval)
    return _wait
