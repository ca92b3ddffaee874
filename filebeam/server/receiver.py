"""FileBeam receiver - accepts connections and saves incoming files"""

import asyncio
import threading
from enum import Enum
from pathlib import Path
from typing import Optional, Set
import logging

import aiofiles

from ..config import FileBeamConfig
from ..errors import FramingError, ListenerError, TransferCancelled, TransferError
from ..history import Direction, TransferHistory, TransferRecord
from ..network.protocol import TransferHeader
from ..network.transport import TransferStream
from ..transfer.progress import ProgressTracker, TransferObserver
from ..transfer.session import TransferSession

logger = logging.getLogger(__name__)


class ListenerState(Enum):
    STOPPED = "Stopped"
    LISTENING = "Listening"


class FileReceiver:
    """
    Owns the listening socket and runs one receive session at a time.

    Connections arriving while a session is in progress wait for it to
    finish. A failed or cancelled session never stops the listener.
    """

    def __init__(self, save_directory: Optional[Path] = None,
                 config: Optional[FileBeamConfig] = None,
                 observer: Optional[TransferObserver] = None,
                 history: Optional[TransferHistory] = None):
        self.config = config or FileBeamConfig()
        self.save_directory = Path(save_directory or self.config.save_directory)
        self.observer = observer or TransferObserver()
        self.history = history

        self.save_directory.mkdir(parents=True, exist_ok=True)

        self._state = ListenerState.STOPPED
        self._server: Optional[asyncio.AbstractServer] = None
        self._state_lock = asyncio.Lock()
        self._session_lock = asyncio.Lock()
        self._connections: Set[asyncio.Task] = set()
        self._session: Optional[TransferSession] = None
        # cancel flag of a connection still waiting for its header
        self._pending: Optional[threading.Event] = None
        self._stopped = asyncio.Event()
        self._stopped.set()

    def _log(self, message: str, level: int = logging.INFO):
        logger.log(level, message)
        self.observer.on_log(message)

    @property
    def state(self) -> ListenerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is ListenerState.LISTENING

    @property
    def port(self) -> Optional[int]:
        """Port actually bound, useful when started on port 0"""
        if not self._server or not self._server.sockets:
            return None
        return self._server.sockets[0].getsockname()[1]

    @property
    def current_session(self) -> Optional[TransferSession]:
        return self._session

    async def start(self, port: Optional[int] = None, host: str = "0.0.0.0"):
        """Bind the listening socket; raises ListenerError on failure"""
        port = self.config.transfer_port if port is None else port

        async with self._state_lock:
            if self._state is ListenerState.LISTENING:
                self._log("Receiver is already running.", logging.WARNING)
                raise ListenerError("Receiver is already running")

            try:
                self._server = await asyncio.start_server(
                    self._handle_connection, host, port
                )
            except OSError as e:
                self._log(f"Error starting receiver: {e}", logging.ERROR)
                raise ListenerError(f"Cannot listen on {host}:{port}: {e}") from e

            self._state = ListenerState.LISTENING
            self._stopped.clear()

        self._log(f"File receiver started. Listening on port {self.port}")

    async def stop(self):
        """
        Close the listening socket and end every connection.
        Returns once nothing is left running; a no-op when stopped.
        """
        async with self._state_lock:
            if self._state is ListenerState.STOPPED:
                return

            self._log("Stopping receiver...")
            self._state = ListenerState.STOPPED

            server, self._server = self._server, None
            server.close()

            if self._session:
                self._session.cancel()

            tasks = list(self._connections)
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

            await server.wait_closed()
            self._stopped.set()

        self._log("Receiver stopped.")

    def cancel_transfer(self) -> bool:
        """
        Cancel the session in progress, keeping the listener up.
        A connection still waiting for its header counts as in progress.
        """
        if self._session is not None:
            self._session.cancel()
            return True
        if self._pending is not None:
            self._pending.set()
            return True
        return False

    async def serve_forever(self):
        """Wait until stop() is called"""
        await self._stopped.wait()

    async def _handle_connection(self, reader: asyncio.StreamReader,
                                 writer: asyncio.StreamWriter):
        task = asyncio.current_task()
        self._connections.add(task)
        stream = TransferStream(reader, writer)

        try:
            async with self._session_lock:
                if self.is_running:
                    await self._receive(stream)
        except asyncio.CancelledError:
            logger.debug(f"Connection from {stream.peer} dropped on shutdown")
        finally:
            self._connections.discard(task)
            await stream.close()

    def _resolve_destination(self, file_name: str) -> Path:
        """Keep only the final path component of the sender-supplied name"""
        name = Path(file_name.replace("\\", "/")).name
        if name in ("", ".", "..") or "\x00" in name:
            raise FramingError(f"Unusable file name in header: {file_name!r}")
        return self.save_directory / name

    async def _receive(self, stream: TransferStream):
        """Run one receive session to completion or failure"""
        peer = stream.peer
        self._log(f"Connection established with: {peer[0] if peer else 'unknown'}")

        cancel_event = threading.Event()
        self._pending = cancel_event
        try:
            header = await stream.recv_header(
                cancel_event, self.config.poll_interval, self.config.header_timeout
            )
            destination = self._resolve_destination(header.file_name)
        except FramingError as e:
            self._log(f"Rejected connection from {peer}: {e}", logging.ERROR)
            return
        except TransferCancelled:
            self._log(f"Connection from {peer} cancelled before its header arrived")
            return
        finally:
            self._pending = None

        session = TransferSession(
            direction=Direction.RECEIVED,
            file_path=destination,
            total_bytes=header.file_size,
            peer=peer,
            cancel_event=cancel_event
        )
        tracker = ProgressTracker(
            session.total_bytes, self.observer,
            step=self.config.progress_step,
            byte_threshold=self.config.progress_bytes
        )

        self._log(f"Receiving file: {header.file_name}")
        self._log(f"File size: {header.file_size} bytes")

        self._session = session
        try:
            await self._copy_payload(stream, session, tracker)
        except TransferCancelled:
            self._log(f"Transfer of {session.file_name} cancelled")
            return
        except (OSError, TransferError) as e:
            self._log(f"Error receiving file: {e}", logging.ERROR)
            return
        finally:
            self._session = None
            tracker.reset()

        self._log("File received successfully!")
        self._log(f"Saved to: {destination}")
        self._record(session.to_record())

    async def _copy_payload(self, stream: TransferStream, session: TransferSession,
                            tracker: ProgressTracker):
        """Write exactly total_bytes from the socket into the destination file"""
        async with aiofiles.open(session.file_path, 'wb') as f:
            while session.bytes_transferred < session.total_bytes:
                session.raise_if_cancelled()

                wanted = min(self.config.chunk_size,
                             session.total_bytes - session.bytes_transferred)
                chunk = await stream.recv_chunk(
                    wanted, session.cancel_event, self.config.poll_interval
                )
                if not chunk:
                    raise TransferError(
                        f"Connection closed after {session.bytes_transferred} "
                        f"of {session.total_bytes} bytes"
                    )

                await f.write(chunk)
                session.bytes_transferred += len(chunk)
                tracker.advance(len(chunk))

        tracker.finish()

    def _record(self, record: TransferRecord):
        if self.history is not None:
            self.history.add_record(record)
        self.observer.on_transfer_complete(record)
