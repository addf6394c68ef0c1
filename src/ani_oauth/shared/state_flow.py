"""
Observable value holder with a single writer and any number of readers.

Readers either sample `value` or iterate `updates()`, which yields the current
value and then every later value. Updates are conflated: a slow reader skips
intermediate values and always resumes at the latest one. Setting a value never
awaits, so readers cannot block the writer.
"""

from collections.abc import AsyncIterator
from typing import Generic, Protocol, TypeVar

import anyio

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class ReadOnlyStateFlow(Protocol[T_co]):
    """Read-only view handed out to observers."""

    @property
    def value(self) -> T_co: ...

    def updates(self) -> AsyncIterator[T_co]: ...


class StateFlow(Generic[T]):
    def __init__(self, initial: T):
        self._value = initial
        self._version = 0
        # Created lazily: anyio.Event needs a running event loop.
        self._changed: anyio.Event | None = None

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        self._value = new_value
        self._version += 1
        if self._changed is not None:
            changed, self._changed = self._changed, None
            changed.set()

    async def updates(self) -> AsyncIterator[T]:
        """Yield the current value, then each new value as it is set."""
        seen = self._version
        yield self._value
        while True:
            if self._version == seen:
                if self._changed is None:
                    self._changed = anyio.Event()
                await self._changed.wait()
            seen = self._version
            yield self._value
