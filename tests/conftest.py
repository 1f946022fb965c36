"""Shared fixtures and fakes for the logyard tests."""
import asyncio
import logging
import time
from collections import deque

import pytest
from websockets.exceptions import ConnectionClosed

from logyard.config import Config


class FakeConnection:
    """Stands in for a websocket: records sent frames, yields queued inbound ones."""

    def __init__(self, inbound=()):
        self.sent = []
        self.inbound = deque(inbound)
        self.close_code = None
        self._closed = asyncio.Event()

    @property
    def closed(self):
        return self._closed.is_set()

    async def send(self, message):
        if self.closed:
            raise ConnectionClosed(None, None)
        self.sent.append(message)

    async def close(self, code=1000, reason=""):
        if not self.closed:
            self.close_code = code
            self._closed.set()

    def disconnect(self):
        self._closed.set()

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self.inbound:
            return self.inbound.popleft()
        await self._closed.wait()
        raise StopAsyncIteration


async def wait_until(predicate, timeout=3.0, interval=0.01):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(interval)


@pytest.fixture
def make_config(tmp_path):
    def make(**kwargs):
        kwargs.setdefault("home", str(tmp_path))
        kwargs.setdefault("capture_id", "test")
        return Config(**kwargs).validate().resolved()
    return make


@pytest.fixture(autouse=True)
def reset_logyard_logging():
    yield
    logger = logging.getLogger("logyard")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
