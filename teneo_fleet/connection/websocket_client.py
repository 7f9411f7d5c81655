# WebSocket Client - Connection Management
# Autonomous per-account WebSocket client for the Teneo node endpoint

"""
WebSocket Client Module

Responsibilities:
- Establish the WebSocket connection for one access token
- Drive the lifecycle through the connection state machine
- Keepalive PING every ping_interval while open
- Log server status messages (connected / pulse)
- Auto-reconnect with bounded exponential backoff, then give up

All events of one client are handled by a single asyncio task, so message
handling never interleaves with that client's own close handling.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, Optional
from urllib.parse import urlencode

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK
from websockets.protocol import State

from .backoff import ReconnectPolicy
from .heartbeat_manager import HeartbeatManager
from .state_machine import (
    TRANSPORT_STATES,
    ConnectionEvent,
    ConnectionState,
    Effect,
    Transition,
    next_transition,
)
from ..processors.message_parser import (
    PING_FRAME,
    MessageParseError,
    MessageType,
    StatusMessage,
    parse_message,
)
from ..utils.config import DEFAULT_CONFIG
from ..utils.helpers import format_account_prefix, format_message, format_points, format_time
from ..utils.logger import log_success, setup_logger

DEFAULT_WS = DEFAULT_CONFIG['websocket']

EVENT_LABELS = {
    MessageType.CONNECTED: "Connected at",
    MessageType.PULSE: "Server pulse at",
}


class WebSocketClient:
    """
    WebSocket client for one Teneo account

    Features:
    - Token passed as `accessToken` query parameter
    - Application keepalive ({"type": "PING"})
    - Bounded reconnect with exponential backoff
    - Fire-and-forget: connect() schedules the lifecycle task and returns
    """

    def __init__(
        self,
        token: str,
        account_index: int,
        url: str = DEFAULT_WS['url'],
        version: str = DEFAULT_WS['version'],
        headers: Optional[Dict[str, str]] = None,
        origin: Optional[str] = DEFAULT_WS['origin'],
        user_agent: Optional[str] = DEFAULT_WS['user_agent'],
        ping_interval: float = DEFAULT_WS['ping_interval'],
        open_timeout: float = DEFAULT_WS['open_timeout'],
        close_timeout: float = DEFAULT_WS['close_timeout'],
        policy: Optional[ReconnectPolicy] = None,
        connector: Callable[..., Awaitable[Any]] = websockets.connect,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        logger=None,
    ):
        """
        Initialize WebSocket client

        Args:
            token: Access token (immutable for the client's lifetime)
            account_index: 1-based account position, used for log lines
            url: WebSocket endpoint
            version: Protocol version query parameter
            headers: Extra request headers
            origin: Origin header
            user_agent: User-Agent header
            ping_interval: Keepalive interval in seconds
            open_timeout: Opening handshake timeout in seconds
            close_timeout: Closing handshake timeout in seconds
            policy: Reconnect limits
            connector: Coroutine function opening the socket
            sleep: Coroutine function used for backoff delays
            logger: Logger (defaults to the shared "WebSocketClient" logger)
        """
        self.token = token
        self.account_index = account_index
        self.url = url
        self.version = version
        self.headers = dict(DEFAULT_WS['headers'] if headers is None else headers)
        self.origin = origin
        self.user_agent = user_agent
        self.open_timeout = open_timeout
        self.close_timeout = close_timeout
        self.policy = policy or ReconnectPolicy()

        self._connector = connector
        self._sleep = sleep

        # Connection state
        self.connection = None
        self.state = ConnectionState.IDLE
        self.reconnect_attempts = 0
        self.connect_attempts = 0

        # Tasks
        self._task: Optional[asyncio.Task] = None
        self._close_task: Optional[asyncio.Task] = None

        self.logger = logger or setup_logger("WebSocketClient", "INFO")
        self.prefix = format_account_prefix(account_index)
        self.heartbeat = HeartbeatManager(self._send_ping, ping_interval, self.logger)

    @classmethod
    def from_config(cls, token: str, account_index: int, config: dict, **kwargs) -> "WebSocketClient":
        """Build a client from the full configuration dictionary"""
        ws = config.get('websocket', {})
        return cls(
            token,
            account_index,
            url=ws.get('url', DEFAULT_WS['url']),
            version=ws.get('version', DEFAULT_WS['version']),
            headers=ws.get('headers'),
            origin=ws.get('origin', DEFAULT_WS['origin']),
            user_agent=ws.get('user_agent', DEFAULT_WS['user_agent']),
            ping_interval=ws.get('ping_interval', DEFAULT_WS['ping_interval']),
            open_timeout=ws.get('open_timeout', DEFAULT_WS['open_timeout']),
            close_timeout=ws.get('close_timeout', DEFAULT_WS['close_timeout']),
            policy=ReconnectPolicy.from_config(config.get('reconnect', {})),
            **kwargs,
        )

    @property
    def ws_url(self) -> str:
        query = urlencode({"accessToken": self.token, "version": self.version})
        return f"{self.url}?{query}"

    def connect(self) -> bool:
        """
        Start the connection lifecycle in the background

        Returns:
            True if the lifecycle task was started, False if it is already
            running or the client is in a terminal state
        """
        if self._task is not None and not self._task.done():
            self.logger.debug(self._line("Connect ignored: lifecycle already running"))
            return False
        if self.state not in (ConnectionState.IDLE, ConnectionState.BACKOFF):
            return False
        self._task = asyncio.create_task(self._run(), name=f"account-{self.account_index:02d}")
        return True

    def close(self) -> bool:
        """
        Shut the client down (no reconnect afterwards)

        Stops the keepalive, cancels the lifecycle task and requests the
        socket to close. The close handshake runs in the background; await
        wait_closed() to let it finish.

        Returns:
            True if an open or pending transport was asked to close
        """
        transition = self._apply(ConnectionEvent.SHUTDOWN)
        connection, self.connection = self.connection, None

        if self._task is not None and not self._task.done():
            self._task.cancel()

        if Effect.CLOSE_TRANSPORT not in transition.effects:
            return False
        if connection is not None:
            self._close_task = asyncio.create_task(self._close_transport(connection))
        return True

    async def wait_closed(self):
        """Wait for the lifecycle task and the close handshake to finish"""
        for task in (self._task, self._close_task):
            if task is None:
                continue
            try:
                await task
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
            except Exception as e:
                self.logger.warning(self._line(f"Error while closing: {e}"))

    @property
    def has_transport(self) -> bool:
        """True while a socket is open or being opened"""
        return self.state in TRANSPORT_STATES

    def is_open(self) -> bool:
        return (
            self.state is ConnectionState.OPEN
            and self.connection is not None
            and self.connection.state is State.OPEN
        )

    def _line(self, message: str) -> str:
        return format_message(self.prefix, message)

    def _apply(self, event: ConnectionEvent) -> Transition:
        """Feed an event to the state machine and execute its effects"""
        transition = next_transition(self.state, self.reconnect_attempts, event, self.policy)
        self.state = transition.state
        self.reconnect_attempts = transition.reconnect_attempts

        for effect in transition.effects:
            if effect is Effect.START_KEEPALIVE:
                self.heartbeat.start()
            elif effect is Effect.STOP_KEEPALIVE:
                self.heartbeat.stop()
            elif effect is Effect.SCHEDULE_RECONNECT:
                self.logger.warning(self._line(f"Reconnecting in {transition.delay:g} seconds..."))
            elif effect is Effect.GIVE_UP:
                self.logger.error(self._line("Max reconnection attempts reached. Check connection."))

        return transition

    async def _run(self):
        """Lifecycle task: connect, serve, back off, repeat"""
        while True:
            transition = self._apply(ConnectionEvent.CONNECT)
            if Effect.OPEN_TRANSPORT not in transition.effects:
                return

            self.connect_attempts += 1
            try:
                self.connection = await self._connector(
                    self.ws_url,
                    additional_headers=self.headers,
                    origin=self.origin,
                    user_agent_header=self.user_agent,
                    open_timeout=self.open_timeout,
                    close_timeout=self.close_timeout,
                    ping_interval=None,  # Application keepalive only
                )
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.logger.error(self._line(f"Connection error: {e}"))
                transition = self._apply(ConnectionEvent.CONNECT_FAILED)
            else:
                self._apply(ConnectionEvent.OPENED)
                log_success(self.logger, self._line("Connected to WebSocket server"))
                event = await self._receive_loop()
                self.connection = None
                transition = self._apply(event)

            if transition.state is not ConnectionState.BACKOFF:
                return
            await self._sleep(transition.delay)

    async def _receive_loop(self) -> ConnectionEvent:
        """
        Read frames until the socket goes away

        Returns:
            TRANSPORT_CLOSED for a clean close, TRANSPORT_ERROR otherwise
        """
        try:
            async for raw in self.connection:
                self.handle_message(raw)
        except ConnectionClosedOK:
            pass
        except ConnectionClosed as e:
            self.logger.error(self._line(f"WebSocket error: {e}"))
            return ConnectionEvent.TRANSPORT_ERROR
        except OSError as e:
            self.logger.error(self._line(f"WebSocket error: {e}"))
            return ConnectionEvent.TRANSPORT_ERROR

        self.logger.warning(self._line("Connection closed"))
        return ConnectionEvent.TRANSPORT_CLOSED

    def handle_message(self, raw) -> Optional[StatusMessage]:
        """
        Handle one received frame

        Args:
            raw: Raw frame from the socket

        Returns:
            The parsed status message, or None if ignored or malformed
        """
        try:
            message = parse_message(raw)
        except MessageParseError as e:
            self.logger.error(self._line(f"Error parsing message: {e}"))
            return None

        if message is None:
            return None

        label = EVENT_LABELS[message.message_type]
        self.logger.info(self._line(
            f"{label} {format_time(message.date)} | "
            f"Points Today: {format_points(message.points_today)} | "
            f"Total Points: {format_points(message.points_total)}"
        ))
        return message

    async def _send_ping(self) -> bool:
        """Keepalive tick: send PING if the socket is open"""
        if not self.is_open():
            return False
        try:
            await self.connection.send(json.dumps(PING_FRAME))
        except (ConnectionClosed, OSError):
            # The receive loop reports the close
            return False
        self.logger.info(self._line(f"Ping sent at {format_time()}"))
        return True

    async def _close_transport(self, connection):
        try:
            await connection.close()
        except (ConnectionClosed, OSError) as e:
            self.logger.warning(self._line(f"Error closing connection: {e}"))
