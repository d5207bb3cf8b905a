from __future__ import annotations

import pytest

from deadline_rw import NO_DEADLINE, Deadline
from deadline_rw.sock import SocketConn

NOW = 100.0


class FakeConn:
    """In-memory Conn that records every deadline set on it."""

    def __init__(self, incoming: bytes = b"") -> None:
        self.incoming = bytearray(incoming)
        self.sent = bytearray()
        self.read_deadline: Deadline = NO_DEADLINE
        self.write_deadline: Deadline = NO_DEADLINE
        self.read_deadline_calls: list[Deadline] = []
        self.write_deadline_calls: list[Deadline] = []
        # deadline in force when each read/write reached the connection
        self.read_sizes: list[int] = []
        self.deadlines_seen_by_read: list[Deadline] = []
        self.deadlines_seen_by_write: list[Deadline] = []
        self.read_error: Exception | None = None
        self.write_error: Exception | None = None

    def read(self, size: int, /) -> bytes:
        self.read_sizes.append(size)
        self.deadlines_seen_by_read.append(self.read_deadline)
        if self.read_error is not None:
            raise self.read_error
        data = bytes(self.incoming[:size])
        del self.incoming[:size]
        return data

    def write(self, data: bytes, /) -> int:
        self.deadlines_seen_by_write.append(self.write_deadline)
        if self.write_error is not None:
            raise self.write_error
        self.sent.extend(data)
        return len(data)

    def set_read_deadline(self, deadline: Deadline, /) -> None:
        self.read_deadline = deadline
        self.read_deadline_calls.append(deadline)

    def set_write_deadline(self, deadline: Deadline, /) -> None:
        self.write_deadline = deadline
        self.write_deadline_calls.append(deadline)


def clock() -> float:
    return NOW


@pytest.fixture
def fake_conn() -> FakeConn:
    return FakeConn()


@pytest.fixture
def socket_pair():
    left, right = SocketConn.pair()
    yield left, right
    left.close()
    right.close()
