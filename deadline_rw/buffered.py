import io
import time
from datetime import timedelta
from typing import Self
from deadline_rw import Conn
from deadline_rw.config import DEFAULT_BUFFER_SIZE, Clock, TimeoutConfig, within_deadline


class _ConnIO(io.RawIOBase):
    """Raw stream view of a Conn, so the io buffers can sit on top of it."""

    def __init__(self, conn: Conn):
        self.conn = conn

    def readable(self) -> bool:
        return True

    def writable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        data = self.conn.read(len(buffer))
        n = len(data)
        buffer[:n] = data
        return n

    def write(self, data) -> int:
        try:
            return self.conn.write(bytes(data))
        except TimeoutError as e:
            # Report what already went out; the next attempt raises again.
            written = getattr(e, "written", 0)
            if written:
                return written
            raise


class BufferedTimeoutConn:
    """Buffered reader/writer over a borrowed connection.

    Deadlines are only armed where the buffers touch the connection: around
    a read (which may refill the read buffer) and around ``flush``. ``write``
    only copies into the write buffer and is never bounded.
    """

    def __init__(
        self,
        conn: Conn,
        read_timeout: timedelta | float | None = None,
        write_timeout: timedelta | float | None = None,
        *,
        read_buffer_size: int = DEFAULT_BUFFER_SIZE,
        write_buffer_size: int = DEFAULT_BUFFER_SIZE,
        clock: Clock = time.monotonic,
    ):
        self.conn = conn
        self.config = TimeoutConfig(
            read_timeout=read_timeout,
            write_timeout=write_timeout,
            read_buffer_size=read_buffer_size,
            write_buffer_size=write_buffer_size,
        )
        self.clock = clock
        raw = _ConnIO(conn)
        self._reader = io.BufferedReader(raw, self.config.read_buffer_size)
        self._writer = io.BufferedWriter(raw, self.config.write_buffer_size)

    @classmethod
    def from_config(cls, conn: Conn, config: TimeoutConfig, *, clock: Clock = time.monotonic) -> Self:
        return cls(conn, **config.model_dump(), clock=clock)

    def _take(self, size: int) -> bytes:
        if size == 0:
            return b""
        # peek() does at most one read on the connection to refill the buffer
        if not self._reader.peek(1):
            return b""
        return self._reader.read1(size)

    def read(self, size: int = -1, /) -> bytes:
        return within_deadline(
            self.conn.set_read_deadline,
            self.config.read_timeout,
            self.clock,
            lambda: self._take(size),
        )

    def readinto(self, buffer: bytearray | memoryview, /) -> int:
        data = self.read(len(buffer))
        n = len(data)
        buffer[:n] = data
        return n

    def write(self, data: bytes, /) -> int:
        return self._writer.write(data)

    def flush(self) -> None:
        within_deadline(
            self.conn.set_write_deadline,
            self.config.write_timeout,
            self.clock,
            self._writer.flush,
        )
