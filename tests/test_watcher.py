"""Tests for the watchdog-backed change notifier."""

import asyncio

import pytest

from helpers import append
from tailpush.watcher import FileChangeNotifier


class TestFileChangeNotifier:

    @pytest.mark.asyncio
    async def test_append_wakes_waiter(self, tmp_path):
        path = tmp_path / "a.log"
        path.write_text("")
        notifier = FileChangeNotifier()
        notifier.watch(path)
        loop = asyncio.get_running_loop()
        try:
            await asyncio.sleep(0.1)
            start = loop.time()
            append(path, "x\n")
            await notifier.wait(5)
            assert loop.time() - start < 5
        finally:
            notifier.stop()

    def test_wake_after_loop_closed(self):
        loop = asyncio.new_event_loop()
        notifier = FileChangeNotifier(loop)
        loop.close()

        notifier._wake()

        assert not notifier.changed.is_set()

    def test_stop_without_watch(self):
        loop = asyncio.new_event_loop()
        try:
            FileChangeNotifier(loop).stop()
        finally:
            loop.close()
