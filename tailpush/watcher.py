import asyncio
from pathlib import Path
from typing import Optional
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler
from .logger import get_logger
log = get_logger("watcher")


class FileHandler(FileSystemEventHandler):
    def __init__(self, path: Path, wake):
        super().__init__()
        self.path = path
        self.wake = wake

    def _handle(self, event):
        if event.is_directory:
            return
        paths = {Path(event.src_path)}
        if getattr(event, "dest_path", None):
            paths.add(Path(event.dest_path))
        if self.path in paths:
            self.wake()

    def on_created(self, event): self._handle(event)
    def on_modified(self, event): self._handle(event)
    def on_moved(self, event): self._handle(event)


class FileChangeNotifier:
    """把 watchdog 线程里的文件变更送回事件循环，唤醒等待新数据的读取方"""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop or asyncio.get_running_loop()
        self.changed = asyncio.Event()
        self._observer: Optional[Observer] = None
        self._watch = None

    def watch(self, path):
        path = Path(path).resolve()
        if self._observer is None:
            self._observer = Observer()
            self._observer.start()
        elif self._watch is not None:
            self._observer.unschedule(self._watch)
        self._watch = self._observer.schedule(FileHandler(path, self._wake),
                                              str(path.parent), recursive=False)
        log.debug("监听文件变更：%s", path)

    def _wake(self):
        try:
            self.loop.call_soon_threadsafe(self.changed.set)
        except RuntimeError:
            # 事件循环已关闭，会话已经结束
            pass

    async def wait(self, timeout: float):
        """等到文件有变更或超时，以先到者为准"""
        try:
            await asyncio.wait_for(self.changed.wait(), timeout)
        except TimeoutError:
            pass
        self.changed.clear()

    def stop(self):
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=1)
        self._observer = None
        self._watch = None
