"""
Readiness gate for deferring cache operations until a restore completes.
"""

from __future__ import annotations

import asyncio
from collections import deque


class ReadinessGate:
    """Defers callers until the gate is opened.

    Callers that arrive while the gate is closed are queued and released
    in FIFO order by open(). Until every released caller has resumed, the
    gate is draining: new callers queue behind them and are released as
    the next batch. There are no locks: all waiters live on the same
    event loop.
    """

    def __init__(self) -> None:
        self._ready = False
        self._pending: deque[asyncio.Future[None]] = deque()
        self._released: set[asyncio.Future[None]] = set()

    @property
    def ready(self) -> bool:
        """Whether the gate has been opened."""
        return self._ready

    @property
    def draining(self) -> bool:
        """Whether released callers have yet to resume."""
        return bool(self._released)

    @property
    def pending_count(self) -> int:
        """Number of callers still waiting on the gate."""
        return sum(1 for fut in self._pending if not fut.done())

    async def wait(self, enabled: bool = True) -> None:
        """Wait until the gate opens and earlier callers have resumed.

        Returns without suspending if gating is disabled, or if the gate
        is open and not draining.

        Args:
            enabled: Whether gating applies to this call at all.
        """
        if not enabled or (self._ready and not self._released):
            return
        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._pending.append(fut)
        try:
            await fut
        finally:
            if fut in self._released:
                self._released.discard(fut)
                if not self._released:
                    self._release()

    def open(self) -> int:
        """Open the gate and release queued callers in arrival order.

        Released callers resume only once the code calling open() yields
        to the event loop.

        Returns:
            Number of callers released.
        """
        self._ready = True
        if self._released:
            # Draining: the current batch releases the queue when it is done
            return 0
        return self._release()

    def _release(self) -> int:
        released = 0
        while self._pending:
            fut = self._pending.popleft()
            if fut.done():
                continue
            fut.set_result(None)
            self._released.add(fut)
            released += 1
        return released
