from __future__ import annotations

from dataclasses import dataclass

from ledger_history.core.config import HistoryConfig
from ledger_history.infra.clients.ledger import ConnectionSignal, RemoteLedger
from ledger_history.infra.store import LocalRecordStore
from ledger_history.services.connectivity import ConnectivityGate, ServerStatus
from ledger_history.services.history import (
    AccountHistoryService,
    DualSourceFetcher,
    PaginationEngine,
    TransactionLookup,
)
from ledger_history.services.notifications import (
    NotificationNeighborResolver,
    NotificationService,
)


@dataclass(frozen=True, slots=True)
class HistoryServices:
    """Wired history and notification services sharing one connection."""

    history: AccountHistoryService
    notifications: NotificationService
    engine: PaginationEngine
    resolver: NotificationNeighborResolver
    gate: ConnectivityGate


def create_history_services(
    *,
    remote: RemoteLedger,
    store: LocalRecordStore,
    signal: ConnectionSignal,
    config: HistoryConfig | None = None,
) -> HistoryServices:
    """Wire the services around the shared ledger connection and local store."""
    config = config or HistoryConfig()
    gate = ConnectivityGate(signal, timeout_seconds=config.connection_timeout_seconds)
    engine = PaginationEngine(DualSourceFetcher(remote, store), gate, config=config)
    lookup = TransactionLookup(remote, store, gate)
    resolver = NotificationNeighborResolver(engine, store, config=config)

    return HistoryServices(
        history=AccountHistoryService(engine, lookup),
        notifications=NotificationService(lookup, ServerStatus(remote, gate), resolver),
        engine=engine,
        resolver=resolver,
        gate=gate,
    )
