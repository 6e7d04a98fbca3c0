from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ledger_history.core.tasks import run_together
from ledger_history.errors import source_query
from ledger_history.infra.clients.ledger import (
    REMOTE_SOURCE,
    AccountTxPage,
    RemoteLedger,
    parse_account_transactions,
)
from ledger_history.infra.store import LOCAL_SOURCE, LocalRecordStore
from ledger_history.models.transaction import LedgerTransaction
from ledger_history.services.history.logger import HistoryLogger


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Unmerged records from one round plus the remote continuation marker."""

    transactions: list[LedgerTransaction]
    marker: Any | None

    @property
    def exhausted(self) -> bool:
        return not self.marker


class DualSourceFetcher:
    """Queries the remote ledger and the local record store side by side."""

    def __init__(
        self,
        remote: RemoteLedger,
        store: LocalRecordStore,
        *,
        logger_instance: HistoryLogger | None = None,
    ) -> None:
        self._remote = remote
        self._store = store
        self._logger = logger_instance or HistoryLogger()

    async def fetch(
        self,
        *,
        account: str,
        limit: int,
        ledger_index_min: int = -1,
        ledger_index_max: int = -1,
        descending: bool = True,
        marker: Any | None = None,
        exclude_failed: bool = False,
        include_local: bool = True,
    ) -> FetchResult:
        """Fetch one batch of account history from both sources.

        Only validated ledger entries are kept. Local failures are skipped
        when ``exclude_failed`` is set or the caller already holds them
        (``include_local=False``). Records are neither deduplicated nor
        ordered here.

        Raises:
            SourceQueryFailedError: If either source fails; the other query is
                cancelled and no partial result is returned
        """
        remote_page, local = await run_together(
            self._query_remote(
                account=account,
                limit=limit,
                ledger_index_min=ledger_index_min,
                ledger_index_max=ledger_index_max,
                forward=not descending,
                marker=marker,
            ),
            self._query_local(
                account=account,
                ledger_index_min=ledger_index_min,
                ledger_index_max=ledger_index_max,
                skip=exclude_failed or not include_local,
            ),
        )

        self._logger.sources_fetched(
            account,
            len(remote_page.transactions),
            remote_page.discarded_count,
            len(local),
        )
        return FetchResult(
            transactions=remote_page.transactions + local,
            marker=remote_page.marker,
        )

    async def _query_remote(
        self,
        *,
        account: str,
        limit: int,
        ledger_index_min: int,
        ledger_index_max: int,
        forward: bool,
        marker: Any | None,
    ) -> AccountTxPage:
        with source_query(REMOTE_SOURCE):
            payload = await self._remote.request_account_transactions(
                account=account,
                ledger_index_min=ledger_index_min,
                ledger_index_max=ledger_index_max,
                limit=limit,
                forward=forward,
                marker=marker,
            )
        return parse_account_transactions(payload)

    async def _query_local(
        self,
        *,
        account: str,
        ledger_index_min: int,
        ledger_index_max: int,
        skip: bool,
    ) -> list[LedgerTransaction]:
        if skip:
            return []
        with source_query(LOCAL_SOURCE):
            return await self._store.get_failed_transactions(
                account=account,
                ledger_index_min=ledger_index_min,
                ledger_index_max=ledger_index_max,
            )
