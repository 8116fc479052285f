"""
The connection to the peer.

The protocol only needs a reliable, ordered, bidirectional pipe of text frames:
* events in: open, one frame per delivery, close, error (ChannelListener)
* out: fire-and-forget send (no acknowledgment, no return value contract)

Two implementations:
* LoopbackChannel: in-process pair with synchronous delivery (local play / tests)
* TcpChannel: length-prefixed JSON frames over a TCP socket, read and written on background threads
"""

import logging
import queue
import socket
import struct
import threading
from typing import Any, Callable, Optional, Protocol, Self

from draughtslink.core.exceptions import ChannelClosedError, ChannelError

log = logging.getLogger(__name__)

# 4 byte big-endian length, then the UTF-8 encoded frame
HEADER = struct.Struct(">I")
MAX_FRAME_SIZE = 1 << 20
# how long close() waits for queued frames to go out
DRAIN_TIMEOUT_S = 1.0


class ChannelListener(Protocol):
    """What the session has to implement to be driven by a channel"""

    def on_open(self) -> None: ...
    def on_message(self, frame: str) -> None: ...
    def on_close(self) -> None: ...
    def on_error(self, error: ChannelError) -> None: ...


class Channel(Protocol):
    """Contract the session relies on (can implement for WebRTC / websockets etc. later)"""

    def bind(self, listener: ChannelListener) -> None:
        """Register the receiver of the channel events."""
        ...

    def send(self, frame: str) -> None:
        """Fire-and-forget."""
        ...

    def close(self) -> None:
        """Close the connection. The peer is notified through its own close event."""
        ...


def _deliver(handler: Callable[..., None], *args: Any) -> None:
    """Hand one event to the listener. A failing listener is logged, the channel keeps running."""
    try:
        handler(*args)
    except Exception:
        log.exception("Channel listener failed in %s", getattr(handler, "__name__", handler))


class LoopbackChannel:
    """Both ends of an in-process connection. A frame sent on one end is delivered immediately on the other."""

    def __init__(self) -> None:
        self._listener: Optional[ChannelListener] = None
        self._peer: Optional[LoopbackChannel] = None
        self._open = False
        self.sent: list[str] = []

    @classmethod
    def pair(cls) -> tuple[Self, Self]:
        first, second = cls(), cls()
        first._peer = second
        second._peer = first
        return first, second

    @property
    def is_open(self) -> bool:
        return self._open

    def bind(self, listener: ChannelListener) -> None:
        self._listener = listener

    def open(self) -> None:
        """Establish the connection: both ends receive their open event (this end first)."""
        if self._peer is None:
            raise ChannelError("Use LoopbackChannel.pair() to create connected ends.")
        self._open = True
        self._peer._open = True
        for end in (self, self._peer):
            if end._listener is not None:
                _deliver(end._listener.on_open)

    def send(self, frame: str) -> None:
        if not self._open or self._peer is None:
            log.warning("Dropping frame on closed loopback channel: %s", frame)
            return
        self.sent.append(frame)
        if self._peer._listener is not None:
            _deliver(self._peer._listener.on_message, frame)

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        peer = self._peer
        if peer is not None and peer._open:
            peer._open = False
            if peer._listener is not None:
                peer._listener.on_close()

    def fail(self, reason: str) -> None:
        """Simulate a transport failure on this end. Its listener is expected to close() the channel."""
        if self._listener is not None:
            self._listener.on_error(ChannelError(reason))


class TcpChannel:
    """
    Simple TCP-based connection.
    Protocol: length-prefixed JSON frames.

    Two background threads after start():
    * the reader, the only place inbound events come from
    * the writer, draining the outbox so that send() never waits on the socket
    Start it after a listener was bound.
    """

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock
        self._listener: Optional[ChannelListener] = None
        self._outbox: queue.Queue[Optional[bytes]] = queue.Queue()
        self._closed = threading.Event()
        self._reader: Optional[threading.Thread] = None
        self._writer: Optional[threading.Thread] = None

    @classmethod
    def host(
        cls, port: int, address: str = "", timeout: Optional[float] = None
    ) -> Self:
        """Wait for a single peer to connect. The accepting side plays First."""
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            server.bind((address, port))
            server.listen(1)
            server.settimeout(timeout)
            log.info("Waiting for opponent on port %d", port)
            try:
                conn, peer_address = server.accept()
            except OSError as exc:
                raise ChannelError(f"No opponent connected: {exc}") from exc
            conn.settimeout(None)
            log.info("Opponent connected from %s", peer_address[0])
            return cls(conn)
        finally:
            server.close()

    @classmethod
    def connect(cls, address: str, port: int, timeout: float = 10.0) -> Self:
        """Join a hosted game. The initiating side plays Second."""
        try:
            sock = socket.create_connection((address, port), timeout=timeout)
        except OSError as exc:
            raise ChannelError(f"Cannot connect to {address}:{port}: {exc}") from exc
        sock.settimeout(None)
        log.info("Connected to %s:%d", address, port)
        return cls(sock)

    def bind(self, listener: ChannelListener) -> None:
        self._listener = listener

    def start(self) -> None:
        if self._listener is None:
            raise ChannelError("Bind a listener before starting the channel.")
        self._writer = threading.Thread(
            target=self._write_loop, name="tcp-channel-writer", daemon=True
        )
        self._reader = threading.Thread(
            target=self._read_loop, name="tcp-channel-reader", daemon=True
        )
        self._writer.start()
        self._reader.start()

    def send(self, frame: str) -> None:
        """Queue the frame for the writer thread and return right away."""
        if self._closed.is_set():
            log.warning("Dropping frame on closed channel: %s", frame)
            return
        payload = frame.encode("utf-8")
        self._outbox.put(HEADER.pack(len(payload)) + payload)

    def close(self) -> None:
        """Frames queued so far still go out (up to DRAIN_TIMEOUT_S), then the socket is shut down."""
        if self._closed.is_set():
            return
        self._closed.set()
        self._outbox.put(None)
        writer = self._writer
        if writer is not None and writer is not threading.current_thread():
            writer.join(DRAIN_TIMEOUT_S)
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # already disconnected on the other end
            pass
        self._sock.close()

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the background threads to finish"""
        for thread in (self._reader, self._writer):
            if thread is not None:
                thread.join(timeout)

    # -- writer thread --
    def _write_loop(self) -> None:
        while True:
            data = self._outbox.get()
            if data is None:
                return
            try:
                self._sock.sendall(data)
            except OSError as exc:
                log.error("Sending to peer failed: %s", exc)
                self._report_error(ChannelError(f"Send failed: {exc}"))
                return

    # -- reader thread --
    def _read_loop(self) -> None:
        assert self._listener is not None
        _deliver(self._listener.on_open)
        try:
            while True:
                frame = self._read_frame()
                if frame is None:
                    break
                _deliver(self._listener.on_message, frame)
        except ChannelError as exc:
            self._report_error(exc)
            return
        except OSError as exc:
            self._report_error(ChannelError(f"Connection lost: {exc}"))
            return

        # clean end of stream: the peer hung up
        if not self._closed.is_set():
            self.close()
            _deliver(self._listener.on_close)

    def _read_frame(self) -> Optional[str]:
        header = self._recv_exact(HEADER.size)
        if header is None:
            return None
        (length,) = HEADER.unpack(header)
        if length > MAX_FRAME_SIZE:
            raise ChannelError(f"Frame of {length} bytes exceeds {MAX_FRAME_SIZE}.")
        payload = self._recv_exact(length)
        if payload is None:
            raise ChannelClosedError("Connection closed in the middle of a frame.")
        return payload.decode("utf-8", errors="replace")

    def _recv_exact(self, size: int) -> Optional[bytes]:
        """None on a clean end of stream before the first byte"""
        chunks: list[bytes] = []
        remaining = size
        while remaining > 0:
            chunk = self._sock.recv(remaining)
            if not chunk:
                if remaining == size:
                    return None
                raise ChannelClosedError("Connection closed in the middle of a frame.")
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def _report_error(self, error: ChannelError) -> None:
        # our own close() also ends the reader with an OSError: nothing to report then
        if self._closed.is_set():
            return
        self.close()
        if self._listener is not None:
            _deliver(self._listener.on_error, error)
