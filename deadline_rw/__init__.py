from pydantic import BaseModel as Schema
from typing import Protocol


class Writer(Protocol):
    def write(self, data: bytes, /) -> int: ...
    def flush(self) -> None: ...


class Reader(Protocol):
    def read(self, size: int = -1, /) -> bytes: ...
    def readinto(self, buffer: bytearray | memoryview, /) -> int: ...


class RW(Writer, Reader): ...


# Absolute time on the time.monotonic() clock, or None for "no deadline".
type Deadline = float | None

NO_DEADLINE: Deadline = None


class Conn(Protocol):
    """What the timeout wrappers need from the connection they borrow."""

    def read(self, size: int, /) -> bytes: ...
    def write(self, data: bytes, /) -> int: ...
    def set_read_deadline(self, deadline: Deadline, /) -> None: ...
    def set_write_deadline(self, deadline: Deadline, /) -> None: ...
