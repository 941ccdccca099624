import asyncio
from typing import Optional
from .logger import get_logger
log = get_logger("shutdown")


class Shutdown:
    """会话级一次性终止信号，只有第一次 fire 生效"""

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    def fire(self, reason: str) -> bool:
        if self._event.is_set():
            log.debug("终止信号已触发过，忽略：%s", reason)
            return False
        self.reason = reason
        self._event.set()
        log.info("会话终止：%s", reason)
        return True

    def is_set(self) -> bool:
        return self._event.is_set()

    async def wait(self):
        await self._event.wait()
