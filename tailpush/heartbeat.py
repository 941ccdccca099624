import asyncio
from typing import Optional


class HeartbeatStopped(Exception):
    pass


def _wake(fut: asyncio.Future):
    if not fut.done():
        fut.set_result(None)


class Heartbeat:
    """固定周期的心跳定时器，与数据活动无关；错过的周期直接跳过"""

    def __init__(self, period: float):
        if period <= 0:
            raise ValueError("心跳周期必须大于 0")
        self.period = period
        self.count = 0
        self._next: Optional[float] = None
        self._stopped = False
        self._waiter: Optional[asyncio.Future] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def stopped(self) -> bool:
        return self._stopped

    async def tick(self) -> int:
        if self._stopped:
            raise HeartbeatStopped()
        loop = asyncio.get_running_loop()
        if self._next is None:
            self._next = loop.time() + self.period
        self._waiter = loop.create_future()
        self._timer = loop.call_at(self._next, _wake, self._waiter)
        try:
            await self._waiter
        finally:
            self._timer.cancel()
            self._timer = self._waiter = None
        if self._stopped:
            raise HeartbeatStopped()
        now = loop.time()
        while self._next <= now:
            self._next += self.period
        self.count += 1
        return self.count

    def stop(self):
        self._stopped = True
        if self._timer is not None:
            self._timer.cancel()
        if self._waiter is not None and not self._waiter.done():
            self._waiter.cancel()
