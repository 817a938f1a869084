"""
==============================================================================
Connectivity State Module
==============================================================================

Process-wide belief about whether the registry is reachable.

State Machine:
-------------

    ┌────────┐  network failure / repeated server errors  ┌─────────┐
    │ ONLINE │ ──────────────────────────────────────────▶ │ OFFLINE │
    └────────┘ ◀────────────────────────────────────────── └─────────┘
                   successful call / successful probe

Starts ONLINE. The state is a cached belief: it can be stale until the next
remote call or probe corrects it. Nothing is persisted.

==============================================================================
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, List


# Module logger
logger = logging.getLogger(__name__)


class ConnectivityStatus(str, enum.Enum):
    """Online/offline belief."""

    ONLINE = "online"
    OFFLINE = "offline"


ConnectivityListener = Callable[[ConnectivityStatus], None]


class ConnectivityState:
    """
    Tracks the online/offline belief and notifies listeners on change.

    Consecutive RemoteServerErrors are counted; reaching the threshold
    flips the state to OFFLINE. Any success resets the counter.

    Example:
        >>> state = ConnectivityState()
        >>> state.is_online
        True
        >>> state.mark_offline("timeout")
        >>> state.status
        <ConnectivityStatus.OFFLINE: 'offline'>
    """

    def __init__(self, server_error_threshold: int = 3) -> None:
        self._status = ConnectivityStatus.ONLINE
        self._server_error_threshold = server_error_threshold
        self._consecutive_server_errors = 0
        self._listeners: List[ConnectivityListener] = []

    @property
    def status(self) -> ConnectivityStatus:
        return self._status

    @property
    def is_online(self) -> bool:
        return self._status == ConnectivityStatus.ONLINE

    @property
    def consecutive_server_errors(self) -> int:
        return self._consecutive_server_errors

    def add_listener(self, listener: ConnectivityListener) -> None:
        """Register a callback invoked with the new status on every change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: ConnectivityListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def mark_online(self) -> None:
        """Record a successful remote call."""
        self._consecutive_server_errors = 0
        self._set(ConnectivityStatus.ONLINE, "registry reachable")

    def mark_offline(self, reason: str = "") -> None:
        """Record a network failure."""
        self._set(ConnectivityStatus.OFFLINE, reason or "registry unreachable")

    def record_server_error(self, upstream_status: int) -> bool:
        """
        Count a server error response.

        Returns:
            True if the error pushed the state to OFFLINE
        """
        self._consecutive_server_errors += 1
        logger.warning(
            f"Registry server error HTTP {upstream_status} "
            f"({self._consecutive_server_errors}/{self._server_error_threshold})"
        )

        if self._consecutive_server_errors >= self._server_error_threshold:
            self.mark_offline(
                f"{self._consecutive_server_errors} consecutive server errors"
            )
            return True

        return False

    def _set(self, status: ConnectivityStatus, reason: str) -> None:
        if status == self._status:
            return

        self._status = status

        if status == ConnectivityStatus.OFFLINE:
            logger.warning(f"📴 Offline: {reason}")
        else:
            logger.info(f"📶 Online: {reason}")

        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception as e:
                logger.error(f"Connectivity listener failed: {e}")

    def __repr__(self) -> str:
        return f"ConnectivityState(status={self._status.value!r})"
