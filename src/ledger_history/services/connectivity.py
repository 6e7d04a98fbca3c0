"""Ledger server connectivity checks.

Every remote-touching operation first passes through ``ConnectivityGate``,
which treats the connection as live when a ledger close was heard within the
staleness window and otherwise reconnects and waits out the same window.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import time

import loguru
from loguru import logger

from ledger_history.core.config import DEFAULT_CONNECTION_TIMEOUT_SECONDS
from ledger_history.errors import NotConnectedError, source_query
from ledger_history.infra.clients.ledger import (
    REMOTE_SOURCE,
    ConnectionSignal,
    RemoteLedger,
    parse_complete_ledgers,
)


class ConnectivityLogger:
    """Handles all logging for connectivity checks."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        self._logger = logger_instance

    def reconnect_attempt(self, timeout_seconds: float) -> None:
        self._logger.bind(timeout=timeout_seconds).warning(
            "Ledger connection stale, reconnecting (waiting up to {}s)",
            timeout_seconds,
        )

    def reconnected(self, elapsed_seconds: float) -> None:
        self._logger.bind(elapsed=elapsed_seconds).info(
            "Ledger connection restored after {:.2f}s", elapsed_seconds
        )

    def reconnect_failed(self, timeout_seconds: float) -> None:
        self._logger.bind(timeout=timeout_seconds).error(
            "No ledger close heard within {}s, giving up", timeout_seconds
        )


class LedgerCloseMonitor:
    """ConnectionSignal driven by ledger close events.

    The owner of the ledger server connection calls ``record_ledger_closed``
    whenever a ledger close is heard; the connection counts as live while the
    most recent close is within ``staleness_seconds``.
    """

    def __init__(
        self,
        connect: Callable[[], None],
        *,
        staleness_seconds: float = DEFAULT_CONNECTION_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._connect = connect
        self._staleness_seconds = staleness_seconds
        self._clock = clock
        self._last_ledger_closed: float | None = None
        self._callbacks: list[Callable[[], None]] = []

    def record_ledger_closed(self) -> None:
        self._last_ledger_closed = self._clock()
        for callback in list(self._callbacks):
            callback()

    def is_connected(self) -> bool:
        if self._last_ledger_closed is None:
            return False
        return self._clock() - self._last_ledger_closed <= self._staleness_seconds

    def on_reconnected(self, callback: Callable[[], None]) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def connect(self) -> None:
        self._connect()


class ConnectivityGate:
    """Refuses to let callers past until the ledger connection is live."""

    def __init__(
        self,
        signal: ConnectionSignal,
        *,
        timeout_seconds: float = DEFAULT_CONNECTION_TIMEOUT_SECONDS,
        logger_instance: ConnectivityLogger | None = None,
    ) -> None:
        self._signal = signal
        self._timeout_seconds = timeout_seconds
        self._logger = logger_instance or ConnectivityLogger()

    async def ensure_connected(self) -> None:
        """Return once the connection is live.

        Raises:
            NotConnectedError: If no liveness signal arrives within the window
        """
        if self._signal.is_connected():
            return

        loop = asyncio.get_running_loop()
        heard = asyncio.Event()

        def on_reconnected() -> None:
            # Signals may fire from the connection's own thread
            loop.call_soon_threadsafe(heard.set)

        unsubscribe = self._signal.on_reconnected(on_reconnected)
        started = loop.time()
        deadline = started + self._timeout_seconds
        self._logger.reconnect_attempt(self._timeout_seconds)
        try:
            self._signal.connect()
            while not self._signal.is_connected():
                remaining = deadline - loop.time()
                if remaining <= 0:
                    self._fail()
                try:
                    await asyncio.wait_for(heard.wait(), remaining)
                except TimeoutError:
                    self._fail()
                heard.clear()
        finally:
            unsubscribe()

        self._logger.reconnected(loop.time() - started)

    def _fail(self) -> None:
        self._logger.reconnect_failed(self._timeout_seconds)
        raise NotConnectedError(
            "Cannot connect to the ledger server. No ledger close was heard "
            f"within {self._timeout_seconds:g} seconds, most likely the "
            "connection has been interrupted or the server is unresponsive."
        )


class ServerStatus:
    """Answers questions about what the connected ledger server holds."""

    def __init__(self, remote: RemoteLedger, gate: ConnectivityGate) -> None:
        self._remote = remote
        self._gate = gate

    async def complete_ledgers(self) -> list[tuple[int, int]]:
        await self._gate.ensure_connected()
        with source_query(REMOTE_SOURCE):
            payload = await self._remote.request_server_info()
        return parse_complete_ledgers(payload)

    async def has_ledger(self, ledger_index: int) -> bool:
        """Return True if ``ledger_index`` is inside the server's complete set."""
        ranges = await self.complete_ledgers()
        return any(low <= ledger_index <= high for low, high in ranges)
