"""Connectivity monitor.

Combines a "connected" signal with an independent, nullable "internet
reachable" signal into a tri-state status and notifies listeners on every
status transition::

    monitor = NetworkMonitor()
    unsubscribe = monitor.subscribe(lambda prev, cur: print(prev, "->", cur))
    monitor.update(is_connected=True, is_internet_reachable=None)  # unknown -> online

The monitor is passive: platform glue pushes signals in via :meth:`update`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from catchpoint.schemas import NetworkState, NetworkStatus

logger = logging.getLogger(__name__)

Listener = Callable[[NetworkStatus, NetworkStatus], None]


def derive_status(is_connected: bool | None, is_internet_reachable: bool | None) -> NetworkStatus:
    """Map raw connectivity signals to a status.

    ``online`` requires a connection and, when reachability is known, a
    reachable internet. Unknown reachability on a live connection counts as
    online.
    """
    if not is_connected:
        return NetworkStatus.OFFLINE
    if is_internet_reachable is False:
        return NetworkStatus.OFFLINE
    return NetworkStatus.ONLINE


class NetworkMonitor:
    """Observable tri-state connectivity."""

    def __init__(self) -> None:
        self._state = NetworkState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> NetworkState:
        return self._state

    @property
    def status(self) -> NetworkStatus:
        return self._state.status

    @property
    def is_online(self) -> bool:
        return self._state.status is NetworkStatus.ONLINE

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener(previous, current)``. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on_online(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register ``callback`` for every transition into ``online``."""

        def _listener(_previous: NetworkStatus, current: NetworkStatus) -> None:
            if current is NetworkStatus.ONLINE:
                callback()

        return self.subscribe(_listener)

    def update(
        self,
        is_connected: bool | None,
        is_internet_reachable: bool | None = None,
        connection_type: str = "unknown",
    ) -> NetworkState:
        """Push a new connectivity signal; emits if the derived status changed."""
        previous = self._state.status
        self._state = NetworkState(
            status=derive_status(is_connected, is_internet_reachable),
            is_connected=bool(is_connected),
            is_internet_reachable=is_internet_reachable,
            connection_type=connection_type,
        )
        if self._state.status is not previous:
            logger.info("Network %s -> %s", previous, self._state.status)
            self._emit(previous, self._state.status)
        return self._state

    def _emit(self, previous: NetworkStatus, current: NetworkStatus) -> None:
        for listener in list(self._listeners):
            try:
                listener(previous, current)
            except Exception:  # noqa: BLE001
                # One broken listener must not starve the others
                logger.exception("Network listener %r failed", listener)
