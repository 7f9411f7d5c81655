#!/usr/bin/env python3
# Test Connection State Machine
# Usage: python scripts/test_state_machine.py

"""
State Machine Test Script

Tests:
1. ReconnectPolicy delays and limits
2. Lifecycle transitions and their side effects
3. Events ignored in states they do not apply to
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from teneo_fleet.connection.backoff import ReconnectPolicy
from teneo_fleet.connection.state_machine import (
    ConnectionEvent,
    ConnectionState,
    Effect,
    next_transition,
)

POLICY = ReconnectPolicy()


def test_policy_delay_sequence():
    delays = [POLICY.delay_for(attempt) for attempt in range(1, 6)]
    assert delays == [2.0, 4.0, 8.0, 16.0, 30.0]


def test_policy_caps_delay():
    assert POLICY.delay_for(20) == 30.0


def test_policy_from_config():
    policy = ReconnectPolicy.from_config({'max_attempts': 3, 'base_delay': 0.5, 'max_delay': 4})
    assert policy == ReconnectPolicy(3, 0.5, 4.0)
    assert [policy.delay_for(a) for a in (1, 2, 3)] == [1.0, 2.0, 4.0]


@pytest.mark.parametrize("kwargs", [
    {'max_attempts': -1},
    {'base_delay': 0},
    {'base_delay': 10, 'max_delay': 5},
])
def test_policy_rejects_bad_values(kwargs):
    with pytest.raises(ValueError):
        ReconnectPolicy(**kwargs)


def test_connect_from_idle_opens_transport():
    t = next_transition(ConnectionState.IDLE, 0, ConnectionEvent.CONNECT, POLICY)
    assert t.state is ConnectionState.CONNECTING
    assert t.effects == (Effect.OPEN_TRANSPORT,)


def test_opened_resets_attempts_and_starts_keepalive():
    t = next_transition(ConnectionState.CONNECTING, 4, ConnectionEvent.OPENED, POLICY)
    assert t.state is ConnectionState.OPEN
    assert t.reconnect_attempts == 0
    assert t.effects == (Effect.START_KEEPALIVE,)


def test_connect_failure_backs_off():
    t = next_transition(ConnectionState.CONNECTING, 0, ConnectionEvent.CONNECT_FAILED, POLICY)
    assert t.state is ConnectionState.BACKOFF
    assert t.reconnect_attempts == 1
    assert t.effects == (Effect.SCHEDULE_RECONNECT,)
    assert t.delay == 2.0


@pytest.mark.parametrize("event", [ConnectionEvent.TRANSPORT_CLOSED, ConnectionEvent.TRANSPORT_ERROR])
def test_close_and_error_stop_keepalive_then_back_off(event):
    t = next_transition(ConnectionState.OPEN, 0, event, POLICY)
    assert t.state is ConnectionState.BACKOFF
    assert t.effects == (Effect.STOP_KEEPALIVE, Effect.SCHEDULE_RECONNECT)
    assert t.reconnect_attempts == 1


def test_exhausted_attempts_give_up():
    t = next_transition(ConnectionState.OPEN, 5, ConnectionEvent.TRANSPORT_ERROR, POLICY)
    assert t.state is ConnectionState.GAVE_UP
    assert t.reconnect_attempts == 5
    assert t.effects == (Effect.STOP_KEEPALIVE, Effect.GIVE_UP)
    assert t.delay is None


def test_full_failure_run_reaches_gave_up():
    state, attempts, delays = ConnectionState.IDLE, 0, []
    for _ in range(10):
        t = next_transition(state, attempts, ConnectionEvent.CONNECT, POLICY)
        if Effect.OPEN_TRANSPORT not in t.effects:
            break
        t = next_transition(t.state, t.reconnect_attempts, ConnectionEvent.CONNECT_FAILED, POLICY)
        state, attempts = t.state, t.reconnect_attempts
        if t.delay is not None:
            delays.append(t.delay)
    assert state is ConnectionState.GAVE_UP
    assert delays == [2.0, 4.0, 8.0, 16.0, 30.0]


def test_gave_up_ignores_connect():
    t = next_transition(ConnectionState.GAVE_UP, 5, ConnectionEvent.CONNECT, POLICY)
    assert t.state is ConnectionState.GAVE_UP
    assert t.effects == ()


@pytest.mark.parametrize("state", [ConnectionState.OPEN, ConnectionState.CONNECTING])
def test_shutdown_with_transport_closes_it(state):
    t = next_transition(state, 2, ConnectionEvent.SHUTDOWN, POLICY)
    assert t.state is ConnectionState.CLOSED
    assert t.effects == (Effect.STOP_KEEPALIVE, Effect.CLOSE_TRANSPORT)


@pytest.mark.parametrize("state", [ConnectionState.IDLE, ConnectionState.BACKOFF, ConnectionState.GAVE_UP])
def test_shutdown_without_transport_has_no_effects(state):
    t = next_transition(state, 1, ConnectionEvent.SHUTDOWN, POLICY)
    assert t.state is ConnectionState.CLOSED
    assert t.effects == ()


def test_closed_is_terminal():
    for event in ConnectionEvent:
        t = next_transition(ConnectionState.CLOSED, 0, event, POLICY)
        assert t.state is ConnectionState.CLOSED
        assert t.effects == ()


def test_stray_close_in_backoff_is_ignored():
    t = next_transition(ConnectionState.BACKOFF, 2, ConnectionEvent.TRANSPORT_CLOSED, POLICY)
    assert (t.state, t.reconnect_attempts, t.effects) == (ConnectionState.BACKOFF, 2, ())


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
