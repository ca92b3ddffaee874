"""FileBeam sender - pushes one file per TCP connection"""

import asyncio
from pathlib import Path
from typing import Optional, Set, Union
import logging

import aiofiles

from ..config import FileBeamConfig
from ..errors import ConnectError, TransferCancelled, TransferError
from ..history import Direction, TransferHistory, TransferRecord
from ..network.protocol import TransferHeader, MAX_NAME_BYTES
from ..network.transport import TransferStream
from ..transfer.progress import ProgressTracker, TransferObserver
from ..transfer.session import TransferSession

logger = logging.getLogger(__name__)


class FileSender:
    """Sends files to a receiver listening on a TCP port"""

    def __init__(self, config: Optional[FileBeamConfig] = None,
                 observer: Optional[TransferObserver] = None,
                 history: Optional[TransferHistory] = None):
        self.config = config or FileBeamConfig()
        self.observer = observer or TransferObserver()
        self.history = history
        self._sessions: Set[TransferSession] = set()

    def _log(self, message: str, level: int = logging.INFO):
        logger.log(level, message)
        self.observer.on_log(message)

    @property
    def active_sessions(self):
        return list(self._sessions)

    def cancel(self):
        """Cancel every transfer this sender is running"""
        for session in list(self._sessions):
            session.cancel()

    def _prepare(self, file_path: Union[str, Path], port: int) -> TransferSession:
        """Validate the request before any socket is opened"""
        path = Path(file_path)
        if not path.is_file():
            raise TransferError(f"Not a readable regular file: {path}")

        if not 1 <= port <= 65535:
            raise ValueError(f"Port must be in 1..65535, got {port}")

        if len(path.name.encode('utf-8')) > MAX_NAME_BYTES:
            raise TransferError(f"File name too long to send: {path.name[:40]}...")

        return TransferSession(
            direction=Direction.SENT,
            file_path=path,
            total_bytes=path.stat().st_size
        )

    async def send_file(self, file_path: Union[str, Path], host: str,
                        port: int) -> TransferRecord:
        """
        Send one file to host:port.

        Returns the completed transfer record. Raises ConnectError when
        the receiver cannot be reached, TransferError on I/O failure and
        TransferCancelled after cancel(). Nothing is retried.
        """
        session = self._prepare(file_path, port)
        session.peer = (host, port)
        tracker = ProgressTracker(
            session.total_bytes, self.observer,
            step=self.config.progress_step,
            byte_threshold=self.config.progress_bytes
        )

        self._sessions.add(session)
        try:
            await self._run_session(session, tracker)
        finally:
            self._sessions.discard(session)
            tracker.reset()

        record = session.to_record()
        if self.history is not None:
            self.history.add_record(record)
        self.observer.on_transfer_complete(record)
        return record

    async def _run_session(self, session: TransferSession, tracker: ProgressTracker):
        host, port = session.peer
        self._log(f"Connecting to {host}:{port}...")

        try:
            reader, writer = await asyncio.open_connection(host, port)
        except OSError as e:
            self._log(f"Error connecting to {host}:{port}: {e}", logging.ERROR)
            raise ConnectError(f"Cannot connect to {host}:{port}: {e}") from e

        stream = TransferStream(reader, writer)
        self._log("Connected successfully!")

        try:
            await stream.send_header(TransferHeader(session.file_name, session.total_bytes))
            self._log(f"Sending file: {session.file_name}")
            self._log(f"File size: {session.total_bytes} bytes")

            async with aiofiles.open(session.file_path, 'rb') as f:
                while chunk := await f.read(self.config.chunk_size):
                    session.raise_if_cancelled()
                    if session.bytes_transferred + len(chunk) > session.total_bytes:
                        raise TransferError(f"{session.file_name} grew while being sent")

                    await stream.send_chunk(chunk)
                    session.bytes_transferred += len(chunk)
                    tracker.advance(len(chunk))

            if not session.complete:
                raise TransferError(
                    f"{session.file_name} shrank while being sent "
                    f"({session.bytes_transferred} of {session.total_bytes} bytes)"
                )

            await stream.flush()
            tracker.finish()
            self._log("File sent successfully!")

        except TransferCancelled:
            self._log(f"Sending {session.file_name} cancelled")
            raise
        except (OSError, TransferError) as e:
            self._log(f"Error sending file: {e}", logging.ERROR)
            if isinstance(e, TransferError):
                raise
            raise TransferError(str(e)) from e
        finally:
            await stream.close()
