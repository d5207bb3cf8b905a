import contextlib
import selectors
import socket
import time
from typing import Self
import structlog
from deadline_rw import NO_DEADLINE, Deadline
from deadline_rw.config import DEFAULT_BUFFER_SIZE

log = structlog.get_logger()


class DeadlineExceeded(TimeoutError):
    def __init__(self, direction: str, written: int = 0):
        super().__init__(f"{direction} deadline exceeded")
        self.direction = direction
        # bytes already handed to the socket before the deadline hit
        self.written = written


class ConnectionClosedError(ConnectionError):
    pass


class SocketConn:
    """Gives a connected socket absolute, per-direction deadlines.

    The socket is switched to non-blocking mode and every wait for readiness
    is measured against the deadline of its own direction, so one thread can
    read while another writes without their timeouts interfering.
    """

    def __init__(self, sock: socket.socket):
        sock.setblocking(False)
        self.sock = sock
        self.read_deadline: Deadline = NO_DEADLINE
        self.write_deadline: Deadline = NO_DEADLINE

    @classmethod
    def pair(cls) -> tuple[Self, Self]:
        """Two adapters over the ends of a ``socket.socketpair()``."""
        a, b = socket.socketpair()
        return cls(a), cls(b)

    def set_read_deadline(self, deadline: Deadline, /) -> None:
        self.read_deadline = deadline

    def set_write_deadline(self, deadline: Deadline, /) -> None:
        self.write_deadline = deadline

    def _check_open(self):
        if self.sock.fileno() == -1:
            raise ConnectionClosedError("socket is closed")

    def _expired(self, direction: str, written: int = 0) -> DeadlineExceeded:
        log.debug("deadline_exceeded", direction=direction, written=written, fd=self.sock.fileno())
        return DeadlineExceeded(direction, written)

    def _wait(self, event: int, deadline: Deadline, direction: str, written: int = 0):
        """Blocks until the socket is ready for ``event`` or ``deadline`` passes."""
        timeout = None
        if deadline is not NO_DEADLINE:
            timeout = deadline - time.monotonic()
            if timeout <= 0:
                raise self._expired(direction, written)
        with selectors.DefaultSelector() as selector:
            selector.register(self.sock, event)
            if not selector.select(timeout):
                raise self._expired(direction, written)

    def _past(self, deadline: Deadline) -> bool:
        return deadline is not NO_DEADLINE and time.monotonic() >= deadline

    def read(self, size: int = -1, /) -> bytes:
        self._check_open()
        if size < 0:
            size = DEFAULT_BUFFER_SIZE
        if size == 0:
            return b""
        while True:
            if self._past(self.read_deadline):
                raise self._expired("read")
            try:
                return self.sock.recv(size)
            except (BlockingIOError, InterruptedError):
                self._wait(selectors.EVENT_READ, self.read_deadline, "read")

    def write(self, data: bytes, /) -> int:
        """Sends all of ``data`` or raises."""
        self._check_open()
        view = memoryview(data)
        sent = 0
        while sent < len(view):
            if self._past(self.write_deadline):
                raise self._expired("write", sent)
            try:
                sent += self.sock.send(view[sent:])
            except (BlockingIOError, InterruptedError):
                self._wait(selectors.EVENT_WRITE, self.write_deadline, "write", sent)
        return sent

    def close(self):
        """Shuts the socket down, waking any call blocked on it, then closes it."""
        with contextlib.suppress(OSError):
            self.sock.shutdown(socket.SHUT_RDWR)
        self.sock.close()
