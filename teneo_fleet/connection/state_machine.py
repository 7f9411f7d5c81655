# Connection State Machine - Lifecycle Transitions
# Pure (state, event) -> transition function for one account connection

"""
Connection State Machine Module

Responsibilities:
- Define connection states and lifecycle events
- Compute the next state, reconnect counter and side effects for an event
- Keep side effects as data; WebSocketClient executes them

Lifecycle:
    IDLE -> CONNECTING -> OPEN -> BACKOFF -> CONNECTING -> ... -> GAVE_UP
    any state -> CLOSED on SHUTDOWN

Events that do not apply to the current state produce an empty transition
(same state, same counter, no effects).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .backoff import ReconnectPolicy


class ConnectionState(Enum):
    """WebSocket connection states"""
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    BACKOFF = "backoff"
    GAVE_UP = "gave_up"
    CLOSED = "closed"


class ConnectionEvent(Enum):
    """Lifecycle events fed into the state machine"""
    CONNECT = "connect"
    OPENED = "opened"
    CONNECT_FAILED = "connect_failed"
    TRANSPORT_CLOSED = "transport_closed"
    TRANSPORT_ERROR = "transport_error"
    SHUTDOWN = "shutdown"


class Effect(Enum):
    """Side effects requested by a transition"""
    OPEN_TRANSPORT = "open_transport"
    START_KEEPALIVE = "start_keepalive"
    STOP_KEEPALIVE = "stop_keepalive"
    SCHEDULE_RECONNECT = "schedule_reconnect"
    GIVE_UP = "give_up"
    CLOSE_TRANSPORT = "close_transport"


@dataclass(frozen=True)
class Transition:
    """Result of applying one event"""
    state: ConnectionState
    reconnect_attempts: int
    effects: Tuple[Effect, ...] = ()
    delay: Optional[float] = None  # seconds, set with SCHEDULE_RECONNECT


# States in which the connection holds an open or pending transport
TRANSPORT_STATES = frozenset({ConnectionState.CONNECTING, ConnectionState.OPEN})


def _backoff(attempts: int, policy: ReconnectPolicy, effects: Tuple[Effect, ...]) -> Transition:
    if policy.can_retry(attempts):
        attempts += 1
        return Transition(
            ConnectionState.BACKOFF,
            attempts,
            effects + (Effect.SCHEDULE_RECONNECT,),
            policy.delay_for(attempts),
        )
    return Transition(ConnectionState.GAVE_UP, attempts, effects + (Effect.GIVE_UP,))


def next_transition(
    state: ConnectionState,
    attempts: int,
    event: ConnectionEvent,
    policy: ReconnectPolicy,
) -> Transition:
    """
    Compute the transition for an event

    Args:
        state: Current state
        attempts: Current reconnect attempt counter
        event: Incoming lifecycle event
        policy: Reconnect limits

    Returns:
        Transition with the new state, counter and ordered side effects
    """
    unchanged = Transition(state, attempts)

    if event is ConnectionEvent.SHUTDOWN:
        if state is ConnectionState.CLOSED:
            return unchanged
        if state in TRANSPORT_STATES:
            return Transition(
                ConnectionState.CLOSED,
                attempts,
                (Effect.STOP_KEEPALIVE, Effect.CLOSE_TRANSPORT),
            )
        return Transition(ConnectionState.CLOSED, attempts)

    if event is ConnectionEvent.CONNECT:
        if state in (ConnectionState.IDLE, ConnectionState.BACKOFF):
            return Transition(ConnectionState.CONNECTING, attempts, (Effect.OPEN_TRANSPORT,))
        return unchanged

    if event is ConnectionEvent.OPENED:
        if state is ConnectionState.CONNECTING:
            return Transition(ConnectionState.OPEN, 0, (Effect.START_KEEPALIVE,))
        return unchanged

    if event is ConnectionEvent.CONNECT_FAILED:
        if state is ConnectionState.CONNECTING:
            return _backoff(attempts, policy, ())
        return unchanged

    if event in (ConnectionEvent.TRANSPORT_CLOSED, ConnectionEvent.TRANSPORT_ERROR):
        if state in TRANSPORT_STATES:
            return _backoff(attempts, policy, (Effect.STOP_KEEPALIVE,))
        return unchanged

    return unchanged
