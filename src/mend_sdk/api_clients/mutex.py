"""FIFO async mutex used to serialize re-authentication."""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")


def _release(signal: "asyncio.Future[None]") -> None:
    if not signal.done():
        signal.set_result(None)


class Mutex:
    """Chain-of-futures lock running critical sections one at a time.

    Each ``lock`` call queues behind the release signal of the call issued
    before it, so critical sections run in call order. The signal is set in
    a ``finally`` block, so a failing section still lets the next one run.
    Not reentrant: calling ``lock`` from inside a critical section on the
    same instance deadlocks.
    """

    def __init__(self) -> None:
        self._tail: Optional["asyncio.Future[None]"] = None

    @property
    def locked(self) -> bool:
        return self._tail is not None and not self._tail.done()

    async def lock(self, critical_section: Callable[[], Awaitable[T]]) -> T:
        """Run ``critical_section`` exclusively and return its result."""
        previous = self._tail
        signal: "asyncio.Future[None]" = asyncio.get_running_loop().create_future()
        self._tail = signal

        if previous is not None and not previous.done():
            try:
                await asyncio.shield(previous)
            except asyncio.CancelledError:
                # keep the chain intact for the callers queued behind us
                previous.add_done_callback(lambda _: _release(signal))
                raise

        try:
            return await critical_section()
        finally:
            _release(signal)
            if self._tail is signal:
                self._tail = None
