import time
from datetime import timedelta
from typing import Self
from deadline_rw import Conn
from deadline_rw.config import DEFAULT_BUFFER_SIZE, Clock, TimeoutConfig, within_deadline


class DirectTimeoutConn:
    """Unbuffered counterpart of BufferedTimeoutConn.

    Every read and write is one call on the connection, each bounded by its
    own deadline. ``flush`` does nothing.
    """

    def __init__(
        self,
        conn: Conn,
        read_timeout: timedelta | float | None = None,
        write_timeout: timedelta | float | None = None,
        *,
        clock: Clock = time.monotonic,
    ):
        self.conn = conn
        self.config = TimeoutConfig(read_timeout=read_timeout, write_timeout=write_timeout)
        self.clock = clock

    @classmethod
    def from_config(cls, conn: Conn, config: TimeoutConfig, *, clock: Clock = time.monotonic) -> Self:
        return cls(conn, config.read_timeout, config.write_timeout, clock=clock)

    def read(self, size: int = -1, /) -> bytes:
        if size < 0:
            size = DEFAULT_BUFFER_SIZE
        return within_deadline(
            self.conn.set_read_deadline,
            self.config.read_timeout,
            self.clock,
            lambda: self.conn.read(size),
        )

    def readinto(self, buffer: bytearray | memoryview, /) -> int:
        data = self.read(len(buffer))
        n = len(data)
        buffer[:n] = data
        return n

    def write(self, data: bytes, /) -> int:
        return within_deadline(
            self.conn.set_write_deadline,
            self.config.write_timeout,
            self.clock,
            lambda: self.conn.write(data),
        )

    def flush(self) -> None:
        pass
