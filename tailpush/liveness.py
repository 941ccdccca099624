import asyncio
from websockets.exceptions import ConnectionClosed
from .logger import get_logger
log = get_logger("liveness")


class LivenessMonitor:
    """
    读循环：客户端消息读出后丢弃，只靠 pong 刷新读超时。
    超时、协议错误或对端关闭都会结束循环并关闭连接。
    """

    def __init__(self, connection, pong_wait: float):
        self.connection = connection
        self.pong_wait = pong_wait
        self.acks = 0
        self._timeout = None

    def acknowledge(self):
        self.acks += 1
        if self._timeout is not None:
            self._timeout.reschedule(asyncio.get_running_loop().time() + self.pong_wait)

    def track(self, pong_waiter):
        fut = asyncio.ensure_future(pong_waiter)
        fut.add_done_callback(self._on_pong)
        return fut

    def _on_pong(self, fut: asyncio.Future):
        if fut.cancelled() or fut.exception() is not None:
            return
        self.acknowledge()

    async def run(self):
        expired = False
        try:
            async with asyncio.timeout(self.pong_wait) as self._timeout:
                async for message in self.connection:
                    log.debug("忽略客户端消息：%d 字节", len(message))
            log.info("客户端已关闭连接")
        except TimeoutError:
            expired = True
            log.warning("%.1f 秒内未收到 pong，判定客户端失联", self.pong_wait)
        except ConnectionClosed as e:
            log.info("连接异常断开：%s", e)
        finally:
            self._timeout = None
            if expired:
                self.connection.transport.abort()
            else:
                await self.connection.close()
