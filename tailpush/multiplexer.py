import asyncio
from websockets.exceptions import ConnectionClosed
from .heartbeat import Heartbeat
from .liveness import LivenessMonitor
from .logger import get_logger
from .shutdown import Shutdown
log = get_logger("multiplexer")


class Multiplexer:
    """
    连接的唯一写方：数据行、心跳、终止信号三路合并成一个有序的写序列，
    每次写都有 write_wait 的期限。
    """

    def __init__(self, connection, queue: asyncio.Queue, heartbeat: Heartbeat,
                 shutdown: Shutdown, liveness: LivenessMonitor, write_wait: float):
        self.connection = connection
        self.queue = queue
        self.heartbeat = heartbeat
        self.shutdown = shutdown
        self.liveness = liveness
        self.write_wait = write_wait
        self.lines_sent = 0
        self.pings_sent = 0

    async def run(self):
        get_line = tick = None
        stop = asyncio.ensure_future(self.shutdown.wait())
        try:
            while True:
                if get_line is None:
                    get_line = asyncio.ensure_future(self.queue.get())
                if tick is None:
                    tick = asyncio.ensure_future(self.heartbeat.tick())
                done, _ = await asyncio.wait({get_line, tick, stop},
                                             return_when=asyncio.FIRST_COMPLETED)
                if get_line in done:
                    line, get_line = get_line.result(), None
                    await self._send_line(line)
                if stop in done:
                    if get_line is not None:
                        get_line.cancel()
                        get_line = None
                    await self._flush()
                    await self._write(self.connection.close())
                    log.info("已发送关闭帧")
                    return
                if tick in done:
                    tick = None
                    await self._ping()
        except (ConnectionClosed, TimeoutError) as e:
            reason = str(e) or "写超时"
            log.info("写入失败，结束会话：%s", reason)
            self.shutdown.fire(f"写入失败: {reason}")
            self.connection.transport.abort()
        finally:
            self.heartbeat.stop()
            for task in (get_line, tick, stop):
                if task is not None:
                    task.cancel()

    async def _write(self, coro):
        async with asyncio.timeout(self.write_wait):
            return await coro

    async def _send_line(self, line: bytes):
        await self._write(self.connection.send(line.decode("utf-8", errors="replace")))
        self.lines_sent += 1

    async def _ping(self):
        pong = await self._write(self.connection.ping())
        self.liveness.track(pong)
        self.pings_sent += 1
        log.debug("已发送 ping #%d", self.pings_sent)

    async def _flush(self):
        # 终止前把已入队的行（包括错误哨兵行）发完
        while True:
            try:
                line = self.queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            await self._send_line(line)
