from datetime import timedelta
from typing import Callable
from pydantic import ConfigDict, PositiveInt, field_validator
from deadline_rw import NO_DEADLINE, Deadline, Schema

DEFAULT_BUFFER_SIZE = 4096

type Clock = Callable[[], float]


class TimeoutConfig(Schema):
    """Per-direction timeouts for a wrapped connection.

    ``None`` disables deadline enforcement for that direction. A zero
    duration means the same thing and is stored as ``None``.
    """

    model_config = ConfigDict(frozen=True)

    read_timeout: timedelta | None = None
    write_timeout: timedelta | None = None
    read_buffer_size: PositiveInt = DEFAULT_BUFFER_SIZE
    write_buffer_size: PositiveInt = DEFAULT_BUFFER_SIZE

    @field_validator("read_timeout", "write_timeout")
    @classmethod
    def zero_disables(cls, value: timedelta | None) -> timedelta | None:
        if value is None or value == timedelta(0):
            return None
        if value < timedelta(0):
            raise ValueError("timeout must not be negative")
        return value


def deadline_after(timeout: timedelta, clock: Clock) -> float:
    return clock() + timeout.total_seconds()


def within_deadline[T](
    set_deadline: Callable[[Deadline], None],
    timeout: timedelta | None,
    clock: Clock,
    call: Callable[[], T],
) -> T:
    """Run ``call`` with a deadline armed on one direction of a connection.

    The deadline is cleared only when ``call`` returns. If it raises, the
    deadline stays armed on the connection until the next call re-arms or
    clears it.
    """
    if timeout is None:
        return call()
    set_deadline(deadline_after(timeout, clock))
    result = call()
    set_deadline(NO_DEADLINE)
    return result
