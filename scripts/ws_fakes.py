# In-memory stand-ins for WebSocket connections used by the test scripts

import asyncio
import logging
from urllib.parse import parse_qs, urlparse

from websockets.protocol import State


class FakeTransport:
    """Connection object returned by FakeConnector"""

    def __init__(self, frames=(), hold_open=False, close_error=None):
        self.frames = list(frames)
        self.hold_open = hold_open
        self.close_error = close_error
        self.state = State.OPEN
        self.sent = []
        self.close_calls = 0
        self._closed = asyncio.Event()

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for frame in self.frames:
            yield frame
        if self.hold_open:
            await self._closed.wait()
        self.state = State.CLOSED
        if self.close_error is not None:
            raise self.close_error

    async def send(self, data):
        self.sent.append(data)

    async def close(self):
        self.close_calls += 1
        self.state = State.CLOSED
        self._closed.set()


class FakeConnector:
    """
    Replaces websockets.connect

    Outcomes are consumed in order; an exception instance is raised, anything
    else is returned as the connection. Once exhausted every call fails.
    A dict maps access tokens to their own outcome lists.
    """

    def __init__(self, outcomes):
        self.outcomes = outcomes
        self.calls = []

    async def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if isinstance(self.outcomes, dict):
            token = parse_qs(urlparse(url).query)["accessToken"][0]
            queue = self.outcomes.setdefault(token, [])
        else:
            queue = self.outcomes
        outcome = queue.pop(0) if queue else OSError("connection refused")
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class RecordingSleep:
    """Backoff sleep that records the delay and returns immediately"""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)
        await asyncio.sleep(0)


class RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__(logging.DEBUG)
        self.records = []

    def emit(self, record):
        self.records.append(record)

    def messages(self, levelno=None):
        return [
            r.getMessage() for r in self.records
            if levelno is None or r.levelno == levelno
        ]


def make_logger(name):
    """Isolated logger plus the handler recording its output"""
    logger = logging.getLogger(f"tests.{name}")
    logger.handlers.clear()
    logger.propagate = False
    logger.setLevel(logging.DEBUG)
    handler = RecordingHandler()
    logger.addHandler(handler)
    return logger, handler


async def wait_until(condition, timeout=2.0):
    """Poll condition() until it holds or fail after timeout seconds"""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            raise AssertionError("condition not reached before timeout")
        await asyncio.sleep(0.005)
