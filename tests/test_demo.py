"""Tests for the demo appender."""

import asyncio

import pytest

from tailpush.demo import append_forever


class TestDemoWriter:

    @pytest.mark.asyncio
    async def test_appends_to_each_file(self, tmp_path):
        first, second = tmp_path / "a.log", tmp_path / "b.log"
        task = asyncio.create_task(append_forever([str(first), str(second)], 0.02))

        await asyncio.sleep(0.1)
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

        assert first.read_text().startswith("hello a\nhello a\n")
        assert set(second.read_text().splitlines()) == {"hello b"}
