#!/usr/bin/env python3
"""
Live tail of one log file over one websocket connection.

Each viewer connection gets its own ``TailSession``: its own file handle,
read position and partial-line buffer.  The session polls the file size
every ``poll_interval`` seconds and, whenever the file grew, reads up to
the current end, sending each complete line as a single text frame.  A
trailing fragment without ``\\n`` is held back until its terminator shows
up.  Only a failing read flushes it early.

A second task drains whatever the viewer sends; the viewer is not
supposed to send anything, so the drain mostly serves to notice the
connection going away.
"""
import asyncio
import os
from typing import List, Optional

from websockets.exceptions import ConnectionClosed

from .logger import get_logger

log = get_logger("tail")

READ_BUFFER_SIZE = 2048


class LineAssembler:
    """Joins reads that end mid-line back into whole lines."""

    def __init__(self):
        self._partial = b""

    @property
    def pending(self) -> bytes:
        return self._partial

    def feed(self, data: bytes) -> List[bytes]:
        """Return the lines completed by ``data``, without their terminators."""
        *lines, rest = (self._partial + data).split(b"\n")
        self._partial = rest
        return [_strip_cr(line) for line in lines]

    def flush(self) -> bytes:
        rest, self._partial = self._partial, b""
        return rest


def _strip_cr(line: bytes) -> bytes:
    return line[:-1] if line.endswith(b"\r") else line


class TailSession:
    def __init__(self, path: str, connection, poll_interval: float,
                 read_buffer_size: int = READ_BUFFER_SIZE, tag: Optional[str] = None):
        self.path = path
        self.connection = connection
        self.poll_interval = poll_interval
        self.read_buffer_size = read_buffer_size
        self.tag = tag or f"[{path}]"
        self._lines = LineAssembler()
        self._last_size = 0
        self._eof = True

    async def run(self) -> None:
        try:
            f = open(self.path, "rb", buffering=self.read_buffer_size)
        except OSError as e:
            log.error("%s File error: %s", self.tag, e)
            await self.connection.close(1011, "cannot open source")
            return
        with f:
            stream = asyncio.create_task(self._stream(f))
            drain = asyncio.create_task(self._drain())
            try:
                await asyncio.wait({stream, drain}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for task in (stream, drain):
                    task.cancel()
                results = await asyncio.gather(stream, drain, return_exceptions=True)
                await self.connection.close()
                for result in results:
                    if isinstance(result, Exception):
                        log.error("%s Session failed", self.tag, exc_info=result)
        log.info("%s Session closed", self.tag)

    async def _stream(self, f) -> None:
        while True:
            try:
                size = os.stat(self.path).st_size
            except OSError as e:
                log.error("%s Stat error: %s", self.tag, e)
                return
            if size > self._last_size:
                self._last_size = size
                self._eof = False
            while not self._eof:
                try:
                    chunk = f.readline()
                except OSError as e:
                    log.error("%s Reader error: %s", self.tag, e)
                    last = self._lines.flush()
                    if last:
                        await self._send(last)
                    return
                lines = self._lines.feed(chunk)
                if not lines:
                    # nothing or an unterminated fragment: wait for growth
                    self._eof = True
                    break
                for line in lines:
                    if not await self._send(line):
                        return
            await asyncio.sleep(self.poll_interval)

    async def _send(self, line: bytes) -> bool:
        try:
            await self.connection.send(line.decode("utf-8", errors="replace"))
        except ConnectionClosed as e:
            log.info("%s Write error: %s", self.tag, e)
            return False
        return True

    async def _drain(self) -> None:
        try:
            async for message in self.connection:
                log.warning("%s Unexpected read: %r", self.tag, message)
        except ConnectionClosed as e:
            log.info("%s Read error: %s", self.tag, e)
            return
        log.info("%s Viewer disconnected", self.tag)
