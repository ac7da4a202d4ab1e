"""Tests for jukebox/playback/capacitor.py — one producer, independent readers."""

import asyncio

import pytest

from jukebox.playback import Capacitor


async def _drain(reader):
    return b"".join([chunk async for chunk in reader])


class TestCapacitor:
    @pytest.mark.asyncio
    async def test_two_readers_get_everything(self):
        cap = Capacitor()
        a, b = cap.create_reader(), cap.create_reader()
        await cap.write(b"hello ")
        await cap.write(b"world")
        await cap.close()
        assert await _drain(a) == b"hello world"
        assert await _drain(b) == b"hello world"

    @pytest.mark.asyncio
    async def test_idle_reader_does_not_stall_writer_or_other_reader(self):
        cap = Capacitor()
        cap.create_reader()  # never read
        active = cap.create_reader()
        for _ in range(100):
            await cap.write(b"x" * 1000)
        assert await active.read(-1) == b"x" * 100_000
        assert cap.size == 100_000

    @pytest.mark.asyncio
    async def test_reader_waits_for_later_data(self):
        cap = Capacitor()
        reader = cap.create_reader()
        pending = asyncio.create_task(reader.read(10))
        await asyncio.sleep(0.01)
        assert not pending.done()
        await cap.write(b"late")
        assert await asyncio.wait_for(pending, 1) == b"late"

    @pytest.mark.asyncio
    async def test_read_respects_size(self):
        cap = Capacitor()
        reader = cap.create_reader()
        await cap.write(b"abcdef")
        assert await reader.read(4) == b"abcd"
        assert await reader.read(4) == b"ef"

    @pytest.mark.asyncio
    async def test_eof_after_close(self):
        cap = Capacitor()
        reader = cap.create_reader()
        await cap.close()
        assert await reader.read() == b""

    @pytest.mark.asyncio
    async def test_failure_raised_after_buffered_data(self):
        cap = Capacitor()
        reader = cap.create_reader()
        await cap.write(b"some")
        await cap.fail(ConnectionResetError("boom"))
        assert await reader.read() == b"some"
        with pytest.raises(ConnectionResetError):
            await reader.read()

    @pytest.mark.asyncio
    async def test_write_after_close_rejected(self):
        cap = Capacitor()
        await cap.close()
        with pytest.raises(ValueError):
            await cap.write(b"x")

    @pytest.mark.asyncio
    async def test_file_released_when_done_and_readers_closed(self):
        cap = Capacitor()
        reader = cap.create_reader()
        await cap.write(b"abc")
        await cap.close()
        assert not cap._file.closed
        await _drain(reader)
        assert cap._file.closed
        with pytest.raises(ValueError):
            cap.create_reader()
