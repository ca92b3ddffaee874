"""Test listener lifecycle"""

import asyncio

import pytest

from filebeam.errors import ListenerError
from filebeam.server.receiver import FileReceiver, ListenerState

LOCALHOST = "127.0.0.1"


class TestListenerState:
    """STOPPED -> LISTENING -> STOPPED"""

    @pytest.mark.asyncio
    async def test_start_and_stop(self, config, make_observer):
        observer = make_observer()
        receiver = FileReceiver(config.save_directory, config, observer)
        assert receiver.state is ListenerState.STOPPED

        await receiver.start(0, LOCALHOST)
        assert receiver.state is ListenerState.LISTENING
        assert receiver.port > 0

        await receiver.stop()
        assert receiver.state is ListenerState.STOPPED
        assert receiver.port is None
        assert observer.logged("Receiver stopped.")

    @pytest.mark.asyncio
    async def test_socket_closed_after_stop(self, config):
        receiver = FileReceiver(config.save_directory, config)
        await receiver.start(0, LOCALHOST)
        port = receiver.port
        await receiver.stop()

        with pytest.raises(OSError):
            await asyncio.open_connection(LOCALHOST, port)

    @pytest.mark.asyncio
    async def test_start_twice_fails(self, config):
        receiver = FileReceiver(config.save_directory, config)
        await receiver.start(0, LOCALHOST)

        try:
            with pytest.raises(ListenerError):
                await receiver.start(0, LOCALHOST)
            assert receiver.is_running
        finally:
            await receiver.stop()

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, config):
        receiver = FileReceiver(config.save_directory, config)

        await receiver.stop()
        await receiver.start(0, LOCALHOST)
        await receiver.stop()
        await receiver.stop()

        assert receiver.state is ListenerState.STOPPED

    @pytest.mark.asyncio
    async def test_bind_failure_leaves_stopped(self, config, make_observer):
        first = FileReceiver(config.save_directory, config)
        await first.start(0, LOCALHOST)

        observer = make_observer()
        second = FileReceiver(config.save_directory, config, observer)
        try:
            with pytest.raises(ListenerError):
                await second.start(first.port, LOCALHOST)
            assert second.state is ListenerState.STOPPED
            assert observer.logged("Error starting receiver")
        finally:
            await first.stop()

    @pytest.mark.asyncio
    async def test_restart(self, config):
        receiver = FileReceiver(config.save_directory, config)

        await receiver.start(0, LOCALHOST)
        await receiver.stop()
        await receiver.start(0, LOCALHOST)

        assert receiver.is_running
        await receiver.stop()

    @pytest.mark.asyncio
    async def test_serve_forever_returns_after_stop(self, config):
        receiver = FileReceiver(config.save_directory, config)
        await receiver.start(0, LOCALHOST)

        serving = asyncio.create_task(receiver.serve_forever())
        await asyncio.sleep(0.1)
        assert not serving.done()

        await receiver.stop()
        await asyncio.wait_for(serving, timeout=2)

    @pytest.mark.asyncio
    async def test_serve_forever_follows_restart(self, config):
        receiver = FileReceiver(config.save_directory, config)

        # nothing to wait for before the first start
        await asyncio.wait_for(receiver.serve_forever(), timeout=1)

        await receiver.start(0, LOCALHOST)
        await receiver.stop()
        await receiver.start(0, LOCALHOST)

        serving = asyncio.create_task(receiver.serve_forever())
        await asyncio.sleep(0.1)
        assert not serving.done()

        await receiver.stop()
        await asyncio.wait_for(serving, timeout=2)

    def test_creates_save_directory(self, config, temp_dir):
        target = temp_dir / "nested" / "inbox"
        FileReceiver(target, config)
        assert target.is_dir()
