# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
"""Connection states of a DeviceSession and the backoff used when reconnecting"""
import enum
import random
from typing import Iterator
from . import constant


class ConnectionState(enum.Enum):
    DISCONNECTED = "disconnected"
    PROVISIONING = "provisioning"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAULTED = "faulted"


# Transitions a DeviceSession is allowed to make
_transitions = {
    ConnectionState.DISCONNECTED: {
        ConnectionState.PROVISIONING,
        ConnectionState.CONNECTING,
        ConnectionState.FAULTED,
    },
    ConnectionState.PROVISIONING: {ConnectionState.DISCONNECTED, ConnectionState.FAULTED},
    ConnectionState.CONNECTING: {
        ConnectionState.CONNECTED,
        ConnectionState.DISCONNECTED,
        ConnectionState.FAULTED,
    },
    ConnectionState.CONNECTED: {ConnectionState.CONNECTING, ConnectionState.DISCONNECTED},
    ConnectionState.FAULTED: {ConnectionState.PROVISIONING, ConnectionState.CONNECTING},
}


def is_valid_transition(current: ConnectionState, new: ConnectionState) -> bool:
    return new is current or new in _transitions[current]


class ReconnectPolicy:
    """Exponential backoff with optional jitter for reconnection attempts"""

    def __init__(
        self,
        *,
        initial_delay: float = constant.INITIAL_RECONNECT_DELAY,
        factor: float = constant.RECONNECT_BACKOFF_FACTOR,
        max_delay: float = constant.MAX_RECONNECT_DELAY,
        max_attempts: int = constant.MAX_RECONNECT_ATTEMPTS,
        jitter: bool = True,
    ) -> None:
        """
        :param float initial_delay: Seconds to wait before the first attempt
        :param float factor: Multiplier applied to the delay after every failed attempt
        :param float max_delay: Upper bound for a single delay
        :param int max_attempts: Number of attempts before giving up
        :param bool jitter: Randomize each delay by up to 25% in either direction

        :raises: ValueError if any of the values are out of range
        """
        if initial_delay < 0:
            raise ValueError("'initial_delay' cannot be negative")
        if factor < 1:
            raise ValueError("'factor' must be at least 1")
        if max_delay < initial_delay:
            raise ValueError("'max_delay' cannot be smaller than 'initial_delay'")
        if max_attempts < 1:
            raise ValueError("'max_attempts' must be at least 1")
        self.initial_delay = initial_delay
        self.factor = factor
        self.max_delay = max_delay
        self.max_attempts = max_attempts
        self.jitter = jitter

    def delays(self) -> Iterator[float]:
        """Yield the delay to wait before each attempt, one per attempt"""
        delay = self.initial_delay
        for _ in range(self.max_attempts):
            bounded = min(delay, self.max_delay)
            if self.jitter:
                spread = bounded * 0.25
                bounded = max(0.0, bounded + random.uniform(-spread, spread))
            yield bounded
            delay = delay * self.factor
