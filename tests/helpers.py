import asyncio
from unittest.mock import Mock

from websockets.exceptions import ConnectionClosedError

from tailpush.config import Config

_ABORT = object()


class FakeConnection:
    """In-memory stand-in for a server-side websocket connection."""

    def __init__(self, auto_pong: bool = True, send_delay: float = 0.0):
        self.frames = []
        self.incoming: asyncio.Queue = asyncio.Queue()
        self.closed = False
        self.auto_pong = auto_pong
        self.send_delay = send_delay
        self.transport = Mock()
        self.transport.abort.side_effect = self._abort

    def _abort(self):
        self.closed = True
        self.incoming.put_nowait(_ABORT)

    def _check(self):
        if self.closed:
            raise ConnectionClosedError(None, None)

    async def send(self, message):
        self._check()
        if self.send_delay:
            await asyncio.sleep(self.send_delay)
        self.frames.append(("text", message))

    async def ping(self):
        self._check()
        self.frames.append(("ping", None))
        fut = asyncio.get_running_loop().create_future()
        if self.auto_pong:
            fut.set_result(0.0)
        return fut

    async def close(self):
        if not self.closed:
            self.frames.append(("close", None))
            self.closed = True
            self.incoming.put_nowait(None)

    def drop(self):
        """The peer vanishes without a close handshake."""
        self._abort()

    def __aiter__(self):
        return self._messages()

    async def _messages(self):
        while True:
            msg = await self.incoming.get()
            if msg is None:
                return
            if msg is _ABORT:
                raise ConnectionClosedError(None, None)
            yield msg

    def texts(self):
        return [m for kind, m in self.frames if kind == "text"]

    def kinds(self):
        return [kind for kind, _ in self.frames]


def make_config(files, **overrides) -> Config:
    cfg = Config({
        "server": {"host": "127.0.0.1", "port": 0},
        "tail": {"files": [str(f) for f in files], "poll_interval": 0.01},
        "liveness": {"write_wait": 0.5, "pong_wait": 1.0, "ping_period": 0.5},
        "log": {"dir": None},
    })
    for name, value in overrides.items():
        setattr(cfg, name, value)
    return cfg


async def eventually(predicate, timeout: float = 2.0, interval: float = 0.01):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(interval)


def append(path, text: str):
    with open(path, "a", encoding="utf-8") as f:
        f.write(text)
