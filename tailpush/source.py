import asyncio
from typing import BinaryIO, List, Optional
from .logger import get_logger
from .shutdown import Shutdown
log = get_logger("source")

SENTINEL = b"Interval error happens, TERMINATE"


class SourceError(OSError):
    pass


class SourceOpenError(SourceError):
    pass


class SourceReadError(SourceError):
    pass


class LineSource:
    """
    持续读取文件新增的完整行并放入有界队列。
    句柄只属于当前会话；切换到第二个文件只发生在两次读取之间。
    """

    def __init__(self, paths: List[str], queue: asyncio.Queue, shutdown: Shutdown,
                 switch_after: float = 20.0, poll_interval: float = 0.2,
                 start_at_end: bool = True, notifier=None):
        if not paths:
            raise ValueError("至少需要一个文件")
        self.paths = [str(p) for p in paths]
        self.queue = queue
        self.shutdown = shutdown
        self.switch_after = switch_after
        self.poll_interval = poll_interval
        self.start_at_end = start_at_end
        self.notifier = notifier
        self.path: Optional[str] = None
        self._handle: Optional[BinaryIO] = None
        self._pending: Optional[BinaryIO] = None

    @property
    def closed(self) -> bool:
        return all(h is None or h.closed for h in (self._handle, self._pending))

    async def run(self):
        try:
            self._install(self._open(self.paths[0], self.start_at_end), self.paths[0])
            if len(self.paths) > 1:
                self._pending = self._open_next(self.paths[1])
            await self._pump()
        except SourceError as e:
            log.error("源文件不可用，终止会话：%s", e)
            await self.queue.put(SENTINEL)
            self.shutdown.fire(str(e))
        finally:
            self._close()

    async def _pump(self):
        loop = asyncio.get_running_loop()
        switch_at = loop.time() + self.switch_after if self._pending is not None else None
        partial = b""
        while True:
            if switch_at is not None and loop.time() >= switch_at:
                switch_at = None
                self._switch()
                partial = b""
            chunk = self._readline()
            if chunk:
                partial += chunk
                if partial.endswith(b"\n"):
                    line, partial = partial, b""
                    await self.queue.put(line)
                    await asyncio.sleep(0)
                continue
            # 暂无新数据，不算错误
            log.debug("等待新数据：%s", self.path, extra={"sample": f"idle:{self.path}"})
            timeout = self.poll_interval
            if switch_at is not None:
                timeout = max(0.0, min(timeout, switch_at - loop.time()))
            await self._idle(timeout)

    def _readline(self) -> bytes:
        try:
            return self._handle.readline()
        except (OSError, ValueError) as e:
            raise SourceReadError(f"读取 {self.path} 失败: {e}") from e

    async def _idle(self, timeout: float):
        if self.notifier is not None:
            await self.notifier.wait(timeout)
        else:
            await asyncio.sleep(timeout)

    def _open(self, path: str, at_end: bool) -> BinaryIO:
        handle = None
        try:
            handle = open(path, "rb")
            if at_end:
                handle.seek(0, 2)
        except OSError as e:
            if handle is not None:
                handle.close()
            raise SourceOpenError(f"无法打开 {path}: {e}") from e
        return handle

    def _open_next(self, path: str) -> Optional[BinaryIO]:
        # 第二个文件在开始时就打开，从头读起，切换前写入的行也会送出
        try:
            return self._open(path, False)
        except SourceOpenError as e:
            log.error("第二个文件不可用，不做切换：%s", e)
            return None

    def _install(self, handle: BinaryIO, path: str):
        self._handle, self.path = handle, path
        if self.notifier is not None:
            try:
                self.notifier.watch(path)
            except OSError as e:
                log.warning("无法监听文件变更，改为轮询：%s", e)
                self.notifier = None
        log.info("开始监控文件：%s", path)

    def _switch(self):
        old, handle = self._handle, self._pending
        self._pending = None
        self._install(handle, self.paths[1])
        old.close()
        log.info("已切换源文件：%s", self.path)

    def _close(self):
        for handle in (self._handle, self._pending):
            if handle is not None and not handle.closed:
                handle.close()
        log.debug("已关闭文件：%s", self.path)
