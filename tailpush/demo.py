import asyncio
from typing import List
from .logger import get_logger
log = get_logger("demo")

TEXTS = ("hello a\n", "hello b\n")


async def append_forever(paths: List[str], period: float):
    """演示用：定时向每个文件追加一行"""
    handles = [open(p, "a", encoding="utf-8") for p in paths]
    log.info("演示写入已启动，每 %.1f 秒追加一行：%s", period, ", ".join(paths))
    try:
        while True:
            await asyncio.sleep(period)
            for f, text in zip(handles, TEXTS):
                f.write(text)
                f.flush()
    finally:
        for f in handles:
            f.close()
