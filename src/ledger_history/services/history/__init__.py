"""Account transaction history: fetch, merge, filter, order, and paginate."""

from __future__ import annotations

from ledger_history.services.history.fetcher import DualSourceFetcher, FetchResult
from ledger_history.services.history.lookup import (
    TransactionLookup,
    classify_identifier,
)
from ledger_history.services.history.paginator import (
    PageRequest,
    PaginationEngine,
    PaginationState,
)
from ledger_history.services.history.records import (
    Direction,
    FilterSpec,
    dedupe,
    filter_records,
    order,
)
from ledger_history.services.history.service import AccountHistoryService

__all__ = [
    "AccountHistoryService",
    "Direction",
    "DualSourceFetcher",
    "FetchResult",
    "FilterSpec",
    "PageRequest",
    "PaginationEngine",
    "PaginationState",
    "TransactionLookup",
    "classify_identifier",
    "dedupe",
    "filter_records",
    "order",
]
