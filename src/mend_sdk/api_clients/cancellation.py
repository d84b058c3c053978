"""Cancellation tokens for SDK requests.

A ``CancellationToken`` is handed to any SDK coroutine as its last
argument. Firing it aborts the in-flight HTTP call the token is attached to.
Per-attempt timeouts and caller cancellation are fanned into one derived
token by ``cancel_scope``.
"""

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Iterator, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

CANCELLED = "cancelled"
TIMEOUT = "timeout"


class OperationCancelled(Exception):
    """Raised by ``run_cancellable`` when its token fires first."""

    def __init__(self, reason: str):
        super().__init__(f"Operation aborted ({reason})")
        self.reason = reason


class CancellationToken:
    """One-shot cancellation signal shared by reference."""

    def __init__(self) -> None:
        self._reason: Optional[str] = None
        self._callbacks: List[Callable[[str], None]] = []
        self._waiters: List[asyncio.Future] = []

    @property
    def cancelled(self) -> bool:
        return self._reason is not None

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: str = CANCELLED) -> None:
        """Fire the token. Later calls are ignored."""
        if self._reason is not None:
            return
        self._reason = reason
        for waiter in self._waiters:
            if not waiter.done():
                waiter.set_result(reason)
        self._waiters.clear()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(reason)

    def add_callback(self, callback: Callable[[str], None]) -> Callable[[], None]:
        """Register ``callback(reason)``; returns a function that unregisters it.

        If the token already fired, the callback runs immediately.
        """
        if self._reason is not None:
            callback(self._reason)
            return lambda: None
        self._callbacks.append(callback)

        def remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return remove

    async def wait(self) -> str:
        """Suspend until the token fires and return the reason."""
        if self._reason is not None:
            return self._reason
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            return await waiter
        finally:
            if waiter in self._waiters:
                self._waiters.remove(waiter)


@contextmanager
def cancel_scope(
    timeout: Optional[float] = None,
    parent: Optional[CancellationToken] = None,
) -> Iterator[CancellationToken]:
    """Derive a token that fires on the earlier of ``timeout`` or ``parent``.

    The timer and the parent link are torn down when the scope exits, so a
    derived token never outlives the attempt it was made for.
    """
    token = CancellationToken()
    unlink: Callable[[], None] = lambda: None
    if parent is not None:
        unlink = parent.add_callback(token.cancel)

    timer: Optional[asyncio.TimerHandle] = None
    if timeout and not token.cancelled:
        timer = asyncio.get_running_loop().call_later(timeout, token.cancel, TIMEOUT)

    try:
        yield token
    finally:
        if timer is not None:
            timer.cancel()
        unlink()


async def run_cancellable(
    awaitable: Awaitable[T], token: Optional[CancellationToken] = None
) -> T:
    """Await ``awaitable`` unless ``token`` fires first.

    Raises:
        OperationCancelled: If the token fired before the awaitable finished.
    """
    if token is None:
        return await awaitable

    if token.cancelled:
        _discard(awaitable)
        raise OperationCancelled(token.reason or CANCELLED)

    work = asyncio.ensure_future(awaitable)
    watcher = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait(
            {work, watcher}, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        work.cancel()
        watcher.cancel()
        raise

    if work in done:
        watcher.cancel()
        return work.result()

    work.cancel()
    try:
        await work
    except asyncio.CancelledError:
        pass
    except Exception as e:
        logger.debug(f"Aborted operation finished with {e!r}")
    raise OperationCancelled(watcher.result())


def _discard(awaitable: Any) -> None:
    # close never-started coroutines so they do not warn on collection
    close = getattr(awaitable, "close", None)
    if callable(close):
        close()
