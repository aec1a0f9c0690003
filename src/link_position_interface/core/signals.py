"""
signals.py
Synchronous publish/subscribe channels used between the frame model,
the kinematics kit and the resolvers.

Every subscription is an explicit Connection handle. Handlers run on the
emitting thread, in subscription order, before emit() returns, so a
consumer always sees a notification before any later read of the state
that triggered it.
"""

from contextlib import contextmanager
from typing import Any, Callable, List, Optional


class Connection:
    """Handle for one subscription to a Signal."""

    def __init__(self, signal: Optional["Signal"], callback: Callable[..., Any]):
        self._signal = signal
        self._callback = callback
        self._blocked = False

    @property
    def connected(self) -> bool:
        return self._signal is not None

    @property
    def blocked(self) -> bool:
        return self._blocked

    def block(self) -> None:
        self._blocked = True

    def unblock(self) -> None:
        self._blocked = False

    def disconnect(self) -> None:
        if self._signal is not None:
            self._signal._remove(self)
            self._signal = None

    def _invoke(self, *args) -> Any:
        if self._blocked or self._signal is None:
            return None
        return self._callback(*args)


class Signal:
    """
    Typed notification channel owned by one entity.

    Example:
        sig_updated = Signal()
        connection = sig_updated.connect(lambda flags: print(flags))
        sig_updated.emit(UpdateFlag.POSITION_UPDATE)
        connection.disconnect()
    """

    def __init__(self):
        self._connections: List[Connection] = []

    def connect(self, callback: Callable[..., Any]) -> Connection:
        connection = Connection(self, callback)
        self._connections.append(connection)
        return connection

    def emit(self, *args) -> None:
        # Handlers connected during delivery only see the next emission
        for connection in list(self._connections):
            connection._invoke(*args)

    def __call__(self, *args) -> None:
        self.emit(*args)

    def num_connections(self) -> int:
        return len(self._connections)

    def disconnect_all(self) -> None:
        for connection in list(self._connections):
            connection.disconnect()

    def _remove(self, connection: Connection) -> None:
        try:
            self._connections.remove(connection)
        except ValueError:
            return


class ConnectionSet:
    """Group of connections released together on the subscriber's teardown."""

    def __init__(self):
        self._connections: List[Connection] = []

    def add(self, connection: Connection) -> Connection:
        self._connections.append(connection)
        return connection

    def __len__(self) -> int:
        return len(self._connections)

    def block(self) -> None:
        for connection in self._connections:
            connection.block()

    def unblock(self) -> None:
        for connection in self._connections:
            connection.unblock()

    @contextmanager
    def blocked(self):
        self.block()
        try:
            yield self
        finally:
            self.unblock()

    def disconnect(self) -> None:
        for connection in self._connections:
            connection.disconnect()
        self._connections.clear()


class ScopedConnection:
    """Holds at most one connection, disconnecting the previous one on reset."""

    def __init__(self, connection: Optional[Connection] = None):
        self._connection = connection

    def reset(self, connection: Optional[Connection] = None) -> None:
        if self._connection is not None:
            self._connection.disconnect()
        self._connection = connection

    @property
    def connected(self) -> bool:
        return self._connection is not None and self._connection.connected
