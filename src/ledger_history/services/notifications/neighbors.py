from __future__ import annotations

import asyncio
from dataclasses import dataclass

import loguru
from loguru import logger

from ledger_history.core.config import HistoryConfig
from ledger_history.core.tasks import run_together
from ledger_history.errors import (
    NeighborResolutionContractViolation,
    ResolutionTimeoutError,
    source_query,
)
from ledger_history.infra.store import LOCAL_SOURCE, LocalRecordStore
from ledger_history.models.transaction import LedgerTransaction
from ledger_history.services.history.paginator import PageRequest, PaginationEngine
from ledger_history.services.history.records import FilterSpec, dedupe, order


@dataclass(frozen=True, slots=True)
class NeighborLinks:
    """Identifiers of the transactions immediately before and after a base one.

    An identifier is the client resource identifier for locally recorded
    transactions and the hash otherwise.
    """

    previous_identifier: str | None = None
    previous_hash: str | None = None
    next_identifier: str | None = None
    next_hash: str | None = None


class NeighborLogger:
    """Handles all logging for neighbor resolution."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        self._logger = logger_instance

    def window_sized(self, account: str, ledger_index: int, siblings: int) -> None:
        self._logger.bind(
            account=account, ledger_index=ledger_index, siblings=siblings
        ).debug(
            "{} has {} known transactions in ledger {}, fetching {} each way",
            account,
            siblings,
            ledger_index,
            siblings + 1,
        )

    def window_widened(self, account: str, ledger_index: int, window_size: int) -> None:
        self._logger.bind(
            account=account, ledger_index=ledger_index, window=window_size
        ).debug(
            "Ledger {} holds more transactions for {} than recorded, widening to {}",
            ledger_index,
            account,
            window_size,
        )

    def resolved(self, account: str, window_size: int, position: int) -> None:
        self._logger.bind(
            account=account, window=window_size, position=position
        ).debug(
            "Located base transaction at {} of {} candidates for {}",
            position,
            window_size,
            account,
        )

    def base_missing(self, account: str, identifier: str | None) -> None:
        self._logger.bind(account=account, identifier=identifier).error(
            "Base transaction {} missing from its own neighbor window for {}",
            identifier,
            account,
        )


class NotificationNeighborResolver:
    """Derives previous/next links over an account's append-only history.

    The ledger stores no linkage between an account's transactions, so the
    neighbors are found by paging a few records either side of the base
    transaction's ledger and locating the base among them.
    """

    def __init__(
        self,
        engine: PaginationEngine,
        store: LocalRecordStore,
        *,
        config: HistoryConfig | None = None,
        logger_instance: NeighborLogger | None = None,
    ) -> None:
        self._engine = engine
        self._store = store
        self._config = config or HistoryConfig()
        self._logger = logger_instance or NeighborLogger()

    async def resolve_neighbors(
        self,
        account: str,
        base: LedgerTransaction,
        filter_spec: FilterSpec | None = None,
    ) -> NeighborLinks:
        """Find the transactions adjacent to ``base`` in ``account``'s history.

        ``filter_spec`` should match the filter under which ``base`` itself
        was listed so the links stay consistent with that listing.

        Raises:
            ValueError: If ``base`` has not been assigned a ledger index
            NeighborResolutionContractViolation: If ``base`` cannot be
                located in its own neighbor window
            ResolutionTimeoutError: If the configured request timeout elapses
        """
        if base.ledger_index is None:
            raise ValueError("Base transaction has no ledger index")

        timeout = self._config.request_timeout
        try:
            async with asyncio.timeout(timeout):
                window = await self._neighbor_window(
                    account, base, base.ledger_index, filter_spec or FilterSpec()
                )
        except TimeoutError as exc:
            raise ResolutionTimeoutError(
                f"Neighbor resolution for {account} timed out after {timeout}s"
            ) from exc

        position = _locate(window, base)
        if position is None:
            self._logger.base_missing(account, base.identifier)
            raise NeighborResolutionContractViolation(
                f"Transaction {base.hash or base.client_resource_id} is missing "
                f"from the neighbor window of {account}"
            )
        self._logger.resolved(account, len(window), position)

        links: dict[str, str | None] = {}
        if position > 0:
            previous = window[position - 1]
            links["previous_identifier"] = previous.identifier
            links["previous_hash"] = previous.hash
        if position + 1 < len(window):
            following = window[position + 1]
            links["next_identifier"] = following.identifier
            links["next_hash"] = following.hash
        return NeighborLinks(**links)

    async def _neighbor_window(
        self,
        account: str,
        base: LedgerTransaction,
        ledger_index: int,
        filter_spec: FilterSpec,
    ) -> list[LedgerTransaction]:
        with source_query(LOCAL_SOURCE):
            siblings = await self._store.get_sibling_count(account, ledger_index)
        self._logger.window_sized(account, ledger_index, siblings)

        # One extra covers every known sibling landing on the same side
        window_size = siblings + 1
        attempts = self._config.max_pagination_rounds
        for attempt in range(1, attempts + 1):
            earlier, later = await run_together(
                self._engine.paginate(
                    _side_request(
                        account,
                        filter_spec,
                        ledger_index,
                        window_size,
                        descending=True,
                    )
                ),
                self._engine.paginate(
                    _side_request(
                        account,
                        filter_spec,
                        ledger_index,
                        window_size,
                        descending=False,
                    )
                ),
            )
            settled = all(
                _leaves_ledger(side, ledger_index, window_size)
                for side in (earlier, later)
            )
            if settled or attempt == attempts:
                break
            # Ledger siblings the local store never recorded filled a side
            window_size *= 2
            self._logger.window_widened(account, ledger_index, window_size)

        # Both directions return the same copy of records in the base ledger
        candidates = list(dict.fromkeys([*earlier, *later]))
        if not base.hash:
            # Hashless records never dedupe, drop the base's own local copy
            candidates = [record for record in candidates if not base.matches(record)]
        # The listed copy of the base wins over the caller's copy
        window = dedupe([*candidates, base])
        # Records in one ledger share its close time, settle ties by position
        return order(sorted(window, key=_position_in_ledger))


def _side_request(
    account: str,
    filter_spec: FilterSpec,
    ledger_index: int,
    window_size: int,
    *,
    descending: bool,
) -> PageRequest:
    return PageRequest(
        account=account,
        filter_spec=filter_spec,
        min_results=window_size,
        max_results=window_size,
        descending=descending,
        ledger_index_min=-1 if descending else ledger_index,
        ledger_index_max=ledger_index if descending else -1,
    )


def _leaves_ledger(
    page: list[LedgerTransaction], ledger_index: int, window_size: int
) -> bool:
    """True once ``page`` holds a record beyond the base ledger or ran out."""
    return len(page) < window_size or page[-1].ledger_index != ledger_index


def _position_in_ledger(record: LedgerTransaction) -> tuple[bool, int, str]:
    return (
        record.transaction_index is None,
        record.transaction_index or 0,
        record.identifier or "",
    )


def _locate(window: list[LedgerTransaction], base: LedgerTransaction) -> int | None:
    for position, record in enumerate(window):
        if base.matches(record):
            return position
    return None
