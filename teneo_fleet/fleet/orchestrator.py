# Fleet Orchestrator - Multi-Account Runner
# Starts one WebSocketClient per token and shuts them all down on signal

"""
Fleet Orchestrator Module

Responsibilities:
- Build one WebSocketClient per token (1-indexed, file order)
- Start every client without waiting for any of them to open
- Register SIGINT/SIGTERM handlers on the running loop
- On signal: stop keepalives, close open/pending sockets, exit 0
"""

import asyncio
import signal
from typing import List, Optional, Sequence

from ..connection.websocket_client import WebSocketClient
from ..utils.config import DEFAULT_CONFIG
from ..utils.helpers import format_account_prefix, format_message
from ..utils.logger import setup_logger

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class FleetOrchestrator:
    """
    Owns the fleet of account clients

    Fleet membership is fixed once start() has run.
    """

    def __init__(self, tokens: Sequence[str], config: Optional[dict] = None, **client_kwargs):
        """
        Initialize orchestrator

        Args:
            tokens: Access tokens in account order
            config: Full configuration dictionary
            client_kwargs: Extra WebSocketClient arguments (connector, sleep, logger)
        """
        self.tokens = list(tokens)
        self.config = config or DEFAULT_CONFIG
        self.client_kwargs = client_kwargs
        self.clients: List[WebSocketClient] = []
        self.logger = setup_logger("Fleet", "INFO")

        self._shutdown_event: Optional[asyncio.Event] = None
        self._signals_installed: List[int] = []
        self.closed_count = 0

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_event is not None and self._shutdown_event.is_set()

    def start(self) -> List[WebSocketClient]:
        """
        Create and start one client per token (must run inside the event loop)

        Returns:
            The fleet, in account order
        """
        if self.clients:
            return self.clients

        self._shutdown_event = asyncio.Event()
        self.logger.info(f"Starting {len(self.tokens)} WebSocket clients...")

        self.clients = [
            WebSocketClient.from_config(token, index, self.config, **self.client_kwargs)
            for index, token in enumerate(self.tokens, start=1)
        ]
        for client in self.clients:
            client.connect()

        return self.clients

    def install_signal_handlers(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        """Route SIGINT/SIGTERM to request_shutdown()"""
        loop = loop or asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.request_shutdown)
            except (NotImplementedError, RuntimeError):
                # Windows event loops: fall back to the plain signal module
                signal.signal(sig, lambda signum, frame: loop.call_soon_threadsafe(self.request_shutdown))
            self._signals_installed.append(sig)

    def remove_signal_handlers(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        loop = loop or asyncio.get_running_loop()
        for sig in self._signals_installed:
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError):
                signal.signal(sig, signal.SIG_DFL)
        self._signals_installed = []

    def request_shutdown(self) -> int:
        """
        Close the whole fleet (signal handler)

        Runs synchronously: every keepalive is stopped and every open or
        pending socket is asked to close before this returns. Repeated calls
        are ignored.

        Returns:
            Number of sockets asked to close
        """
        if self.shutdown_requested:
            return 0

        self.logger.warning("Terminating all connections...")
        closed = 0
        for client in self.clients:
            if client.has_transport:
                self.logger.warning(
                    format_message(format_account_prefix(client.account_index), "Closing connection")
                )
            if client.close():
                closed += 1

        self.closed_count = closed
        if self._shutdown_event is None:
            self._shutdown_event = asyncio.Event()
        self._shutdown_event.set()
        return closed

    async def wait_closed(self, timeout: Optional[float] = None):
        """Wait for every client to finish closing"""
        if timeout is None:
            timeout = self.config.get('shutdown', {}).get('close_timeout', 5.0)
        if not self.clients:
            return
        try:
            await asyncio.wait_for(
                asyncio.gather(*(client.wait_closed() for client in self.clients)),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            self.logger.warning(f"Connections still closing after {timeout}s - exiting anyway")

    async def run(self) -> int:
        """
        Run the fleet until a shutdown signal

        Returns:
            Process exit code (0)
        """
        self.start()
        self.install_signal_handlers()
        try:
            await self._shutdown_event.wait()
            await self.wait_closed()
        finally:
            self.remove_signal_handlers()
        self.logger.info(f"Fleet stopped ({self.closed_count} connections closed)")
        return 0
