# Heartbeat Manager - Keep Connection Alive
# Periodic application-level PING for one account connection

"""
Heartbeat Manager Module

Responsibilities:
- Run one periodic task per open connection
- Call the tick callback every `interval` seconds
- Stop idempotently (close and error paths both stop it)
"""

import asyncio
from typing import Awaitable, Callable, Optional

from ..utils.logger import setup_logger


class HeartbeatManager:
    """
    Manages the keepalive timer of one connection

    The tick callback decides whether a frame is actually sent (it checks
    that the transport is open) and returns True when it sent one.
    """

    def __init__(
        self,
        tick: Callable[[], Awaitable[bool]],
        interval: float = 10,
        logger=None,
    ):
        self.tick = tick
        self.interval = interval
        self.logger = logger or setup_logger("HeartbeatManager", "INFO")
        self._task: Optional[asyncio.Task] = None
        self.pings_sent = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """
        Start heartbeat loop

        Returns:
            True if a new timer was started, False if one is already running
        """
        if self.is_running:
            return False
        self._task = asyncio.create_task(self._run())
        return True

    def stop(self) -> bool:
        """
        Stop heartbeat loop (safe to call when not running)

        Returns:
            True if a running timer was cancelled
        """
        task, self._task = self._task, None
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def _run(self):
        try:
            while True:
                await asyncio.sleep(self.interval)
                if await self.tick():
                    self.pings_sent += 1
        except asyncio.CancelledError:
            self.logger.debug("Heartbeat loop cancelled")
            raise
