"""Null-terminated message transport over a pair of pipe descriptors."""

import logging
import os
import queue
import select
import threading
from collections.abc import Iterator

from chromepipe.errors import TransportClosed

log = logging.getLogger(__name__)

FRAME_TERMINATOR = b"\0"
READ_CHUNK_SIZE = 65536
# How often the reader wakes up to notice close() or the peer exiting.
POLL_INTERVAL_SECONDS = 0.1

_EOF = object()


def split_frames(buffer: bytes) -> tuple[list[bytes], bytes]:
    """Split accumulated bytes into complete frames and the unterminated rest."""
    *frames, rest = buffer.split(FRAME_TERMINATOR)
    return frames, rest


class PipeTransport:
    """Duplex byte channel to a subprocess.

    Owns ``write_fd`` (our end of the browser's input pipe) and ``read_fd``
    (our end of its output pipe). Inbound bytes are read on a background
    thread and handed out by :meth:`chunks` in arrival order.
    """

    def __init__(self, write_fd: int, read_fd: int) -> None:
        self._write_fd: int | None = write_fd
        self._read_fd = read_fd
        self._write_lock = threading.Lock()
        self._closed = threading.Event()
        self._peer_exited = threading.Event()
        self._inbox: queue.Queue = queue.Queue()
        self._reader = threading.Thread(
            target=self._read_loop, daemon=True, name=f"chromepipe-reader-{read_fd}"
        )
        self._reader.start()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def send(self, message: bytes) -> None:
        """Write ``message`` followed by a null terminator as one frame."""
        frame = bytes(message) + FRAME_TERMINATOR
        with self._write_lock:
            if self._write_fd is None or self._peer_exited.is_set():
                raise TransportClosed("transport is closed")
            view = memoryview(frame)
            try:
                while view:
                    written = os.write(self._write_fd, view)
                    view = view[written:]
            except OSError as e:
                raise TransportClosed(f"write failed: {e}") from e
        log.debug("sent %d byte frame", len(frame))

    def chunks(self) -> Iterator[bytes]:
        """Yield inbound byte chunks until the peer exits or the transport closes.

        After the peer exits, whatever it already wrote is still yielded; the
        stream then ends even if a leftover child keeps the pipe open.
        """
        while True:
            item = self._inbox.get()
            if item is _EOF:
                # Leave the marker for any other consumer.
                self._inbox.put(_EOF)
                return
            yield item

    def mark_peer_exited(self) -> None:
        """Reject further sends and let the reader drain and stop.

        Called once the subprocess has exited.
        """
        with self._write_lock:
            self._peer_exited.set()
            self._close_writer()

    def close(self) -> None:
        """Release both descriptors. Does not terminate the subprocess."""
        if self._closed.is_set():
            return
        self._closed.set()
        with self._write_lock:
            self._close_writer()
        if threading.current_thread() is not self._reader:
            self._reader.join()

    def _close_writer(self) -> None:
        if self._write_fd is not None:
            try:
                os.close(self._write_fd)
            except OSError as e:
                log.debug("closing write pipe failed: %s", e)
            self._write_fd = None

    def _wait_readable(self) -> bool:
        if os.name != "posix":
            return True
        rfds, _, _ = select.select([self._read_fd], [], [], POLL_INTERVAL_SECONDS)
        return bool(rfds)

    def _read_loop(self) -> None:
        try:
            while not self._closed.is_set():
                # Sampled before polling so bytes written ahead of the exit are read.
                draining = self._peer_exited.is_set()
                try:
                    if not self._wait_readable():
                        if draining:
                            break
                        continue
                    data = os.read(self._read_fd, READ_CHUNK_SIZE)
                except OSError as e:
                    log.warning("read pipe failed: %s", e)
                    break
                if not data:
                    break
                self._inbox.put(data)
        finally:
            os.close(self._read_fd)
            self._inbox.put(_EOF)
            log.debug("reader for fd %d finished", self._read_fd)
