from __future__ import annotations

import asyncio


class CallGate:
    """Single-slot gate for outbound gateway calls.

    Holds the slot for the whole call, so at most one call is in flight,
    and waits until ``min_interval`` seconds have passed since the previous
    call finished before letting the next one through. Every caller must
    share the same instance.
    """

    def __init__(self, min_interval: float = 1.0) -> None:
        self._min_interval = max(0.0, float(min_interval))
        self._last_finished: float | None = None
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> CallGate:
        await self._lock.acquire()
        try:
            if self._last_finished is not None:
                loop = asyncio.get_running_loop()
                wait = self._min_interval - (loop.time() - self._last_finished)
                if wait > 0:
                    await asyncio.sleep(wait)
        except BaseException:
            self._lock.release()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self._last_finished = asyncio.get_running_loop().time()
        self._lock.release()
