"""
每个 WebSocket 连接对应一个会话：
读文件、写连接、读连接三个活动并发运行，任一端 I/O 失败都只终止一次。
"""
import asyncio
import enum
import re
from datetime import datetime, timedelta
from typing import Optional

import pytz

from .config import Config
from .heartbeat import Heartbeat
from .liveness import LivenessMonitor
from .logger import get_logger
from .multiplexer import Multiplexer
from .shutdown import Shutdown
from .source import LineSource
from .watcher import FileChangeNotifier

log = get_logger("session")

EPOCH = datetime(1970, 1, 1, tzinfo=pytz.utc)
_HEX = re.compile(r"[+-]?[0-9a-fA-F]+")


def parse_resume_hint(value: Optional[str]) -> datetime:
    """十六进制纳秒时间戳；缺失或无法解析时返回 epoch"""
    if not value or not _HEX.fullmatch(value):
        return EPOCH
    ns = int(value, 16)
    if not -(2 ** 63) <= ns < 2 ** 63:
        return EPOCH
    return EPOCH + timedelta(microseconds=ns // 1000)


class SessionState(enum.Enum):
    OPEN = "open"
    STREAMING = "streaming"
    CLOSING = "closing"
    CLOSED = "closed"


class Session:
    def __init__(self, connection, config: Config, resume_hint: datetime = EPOCH):
        self.connection = connection
        self.config = config
        self.resume_hint = resume_hint
        self.shutdown = Shutdown()
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=config.queue_size)
        self.heartbeat = Heartbeat(config.ping_period)
        self.liveness = LivenessMonitor(connection, config.pong_wait)
        self.multiplexer = Multiplexer(connection, self.queue, self.heartbeat,
                                       self.shutdown, self.liveness, config.write_wait)
        self.source: Optional[LineSource] = None
        self.notifier: Optional[FileChangeNotifier] = None
        self._started = False
        self._closed = False

    @property
    def state(self) -> SessionState:
        if self._closed:
            return SessionState.CLOSED
        if self.shutdown.is_set():
            return SessionState.CLOSING
        if self._started:
            return SessionState.STREAMING
        return SessionState.OPEN

    async def run(self):
        cfg = self.config
        self.notifier = FileChangeNotifier()
        self.source = LineSource(cfg.files, self.queue, self.shutdown,
                                 switch_after=cfg.switch_after,
                                 poll_interval=cfg.poll_interval,
                                 start_at_end=cfg.start_at_end,
                                 notifier=self.notifier)
        log.info("会话开始，lastMod=%s", self.resume_hint.isoformat())
        self._started = True
        source_task = asyncio.create_task(self.source.run(), name="tailpush-source")
        # 读取方无论因何退出，都要结束会话
        source_task.add_done_callback(self._on_source_done)
        writer_task = asyncio.create_task(self.multiplexer.run(), name="tailpush-writer")
        try:
            await self.liveness.run()
        finally:
            self.shutdown.fire("连接已关闭")
            source_task.cancel()
            results = await asyncio.gather(source_task, writer_task, return_exceptions=True)
            for r in results:
                if isinstance(r, Exception):
                    log.error("会话任务异常退出", exc_info=r)
            self.heartbeat.stop()
            self.notifier.stop()
            self._closed = True
            log.info("会话结束：%s（已发送 %d 行，%d 次 ping）", self.shutdown.reason,
                     self.multiplexer.lines_sent, self.multiplexer.pings_sent)

    def _on_source_done(self, task: asyncio.Task):
        if task.cancelled():
            self.shutdown.fire("读取任务已取消")
        elif task.exception() is not None:
            self.shutdown.fire(f"读取任务异常退出: {task.exception()!r}")
        else:
            self.shutdown.fire("读取任务已结束")
