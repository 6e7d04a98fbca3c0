from __future__ import annotations

from ledger_history.core.config import DEFAULT_RESULTS_PER_PAGE
from ledger_history.models.transaction import LedgerTransaction, TxType
from ledger_history.services.history.lookup import TransactionLookup
from ledger_history.services.history.paginator import PageRequest, PaginationEngine
from ledger_history.services.history.records import Direction, FilterSpec


class AccountHistoryService:
    """Entry point for account transaction and payment history queries."""

    def __init__(self, engine: PaginationEngine, lookup: TransactionLookup) -> None:
        self._engine = engine
        self._lookup = lookup

    async def get_account_transactions(
        self, request: PageRequest
    ) -> list[LedgerTransaction]:
        return await self._engine.paginate(request)

    async def get_transaction(
        self, account: str | None, identifier: str
    ) -> LedgerTransaction:
        return await self._lookup.get_transaction(account, identifier)

    async def get_payments(
        self,
        account: str,
        *,
        source_account: str | None = None,
        destination_account: str | None = None,
        direction: Direction | None = None,
        start_ledger: int = -1,
        end_ledger: int = -1,
        earliest_first: bool = False,
        exclude_failed: bool = False,
        results_per_page: int = DEFAULT_RESULTS_PER_PAGE,
        page: int = 1,
    ) -> list[LedgerTransaction]:
        """Return one page of the account's payments, newest first by default."""
        request = PageRequest.for_page(
            account,
            results_per_page=results_per_page,
            page=page,
            filter_spec=FilterSpec(
                exclude_failed=exclude_failed,
                types=frozenset({TxType.PAYMENT}),
                source_account=source_account,
                destination_account=destination_account,
                direction=direction,
            ),
            descending=not earliest_first,
            ledger_index_min=start_ledger,
            ledger_index_max=end_ledger,
        )
        return await self._engine.paginate(request)
