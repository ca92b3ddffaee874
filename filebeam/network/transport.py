"""Stream transport for one transfer connection"""

import asyncio
from typing import Optional, Tuple
import logging

from ..errors import FramingError, TransferCancelled
from .protocol import TransferHeader, NAME_LENGTH, FILE_SIZE, decode_name

logger = logging.getLogger(__name__)


class TransferStream:
    """Header and payload I/O over an asyncio stream pair"""

    def __init__(self, reader: Optional[asyncio.StreamReader] = None,
                 writer: Optional[asyncio.StreamWriter] = None):
        self.reader = reader
        self.writer = writer

    @property
    def peer(self) -> Optional[Tuple]:
        if not self.writer:
            return None
        return self.writer.get_extra_info('peername')

    async def send_header(self, header: TransferHeader):
        """Write the header ahead of any payload byte"""
        if not self.writer:
            raise ValueError("No writer stream set")

        self.writer.write(header.pack())
        await self.writer.drain()

    async def send_chunk(self, chunk: bytes):
        """Queue one payload chunk, waiting if the socket buffer is full"""
        self.writer.write(chunk)
        await self.writer.drain()

    async def flush(self):
        await self.writer.drain()

    async def recv_header(self, cancel_event=None, poll_interval: Optional[float] = None,
                          timeout: Optional[float] = None) -> TransferHeader:
        """
        Read one complete header; a short read is a framing error.
        With a timeout, a peer that stays silent that long is a framing
        error too. With a cancel_event the wait is checked every
        poll_interval and raises TransferCancelled once it is set.
        """
        if not self.reader:
            raise ValueError("No reader stream set")

        if cancel_event is None and timeout is None:
            return await self._read_header()

        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        reading = asyncio.ensure_future(self._read_header())

        try:
            while True:
                if cancel_event is not None and cancel_event.is_set():
                    raise TransferCancelled("Waiting for header cancelled")

                wait = poll_interval if cancel_event is not None else None
                if deadline is not None:
                    remaining = deadline - loop.time()
                    if remaining <= 0:
                        raise FramingError(f"No header received within {timeout:g}s")
                    wait = remaining if wait is None else min(wait, remaining)

                done, _ = await asyncio.wait({reading}, timeout=wait)
                if done:
                    return reading.result()
        finally:
            reading.cancel()

    async def _read_header(self) -> TransferHeader:
        try:
            length_bytes = await self.reader.readexactly(NAME_LENGTH.size)
            (name_len,) = NAME_LENGTH.unpack(length_bytes)

            name = decode_name(await self.reader.readexactly(name_len))

            size_bytes = await self.reader.readexactly(FILE_SIZE.size)
            (file_size,) = FILE_SIZE.unpack(size_bytes)

        except asyncio.IncompleteReadError as e:
            raise FramingError(
                f"Peer closed connection mid-header ({len(e.partial)} of {e.expected} bytes)"
            ) from e

        return TransferHeader(name, file_size)

    async def recv_chunk(self, max_bytes: int, cancel_event=None,
                         poll_interval: Optional[float] = None) -> bytes:
        """
        Read up to max_bytes.
        With a cancel_event the read is bounded by poll_interval so the
        flag is re-checked even when the peer goes quiet.
        """
        if cancel_event is None or poll_interval is None:
            return await self.reader.read(max_bytes)

        while True:
            if cancel_event.is_set():
                raise TransferCancelled("File transfer cancelled")
            try:
                return await asyncio.wait_for(self.reader.read(max_bytes), timeout=poll_interval)
            except asyncio.TimeoutError:
                continue

    async def close(self):
        """Close the connection, ignoring a peer that already went away"""
        if not self.writer:
            return

        self.writer.close()
        try:
            await self.writer.wait_closed()
        except (ConnectionError, OSError) as e:
            logger.debug(f"Error while closing stream: {e}")
