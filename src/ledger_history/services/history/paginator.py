"""Cursor-driven pagination over merged ledger and local history.

Each round fetches one batch from both sources, merges it into the records
collected so far, re-filters and re-orders the whole set, and stops once the
caller's minimum is met, the remote history is exhausted, or the round cap is
reached. Rounds are an explicit loop over an immutable ``PaginationState``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from ledger_history.core.config import DEFAULT_RESULTS_PER_PAGE, HistoryConfig
from ledger_history.errors import ResolutionTimeoutError
from ledger_history.models.transaction import LedgerTransaction
from ledger_history.services.connectivity import ConnectivityGate
from ledger_history.services.history.fetcher import DualSourceFetcher, FetchResult
from ledger_history.services.history.logger import HistoryLogger
from ledger_history.services.history.records import (
    FilterSpec,
    dedupe,
    filter_records,
    order,
)


@dataclass(frozen=True, slots=True)
class PageRequest:
    """One page of account history as requested by a caller.

    ``ledger_index_min``/``ledger_index_max`` of ``-1`` leave that end of the
    ledger range open. ``min_results`` unset means a single round suffices.
    """

    account: str
    filter_spec: FilterSpec = field(default_factory=FilterSpec)
    min_results: int | None = None
    max_results: int = DEFAULT_RESULTS_PER_PAGE
    offset: int = 0
    descending: bool = True
    ledger_index_min: int = -1
    ledger_index_max: int = -1

    def __post_init__(self) -> None:
        if self.max_results < 1:
            msg = "max_results must be at least 1"
            raise ValueError(msg)
        if self.min_results is not None and self.min_results < 0:
            msg = "min_results must not be negative"
            raise ValueError(msg)
        if self.offset < 0:
            msg = "offset must not be negative"
            raise ValueError(msg)

    @classmethod
    def for_page(
        cls,
        account: str,
        *,
        results_per_page: int = DEFAULT_RESULTS_PER_PAGE,
        page: int = 1,
        **kwargs: Any,
    ) -> PageRequest:
        """Build a request for a 1-based page of ``results_per_page`` records."""
        if page < 1:
            msg = "page must be at least 1"
            raise ValueError(msg)
        return cls(
            account=account,
            min_results=results_per_page,
            max_results=results_per_page,
            offset=results_per_page * (page - 1),
            **kwargs,
        )

    @property
    def effective_min(self) -> int | None:
        """Minimum to satisfy; never above ``max_results`` since pages truncate."""
        if not self.min_results:
            return None
        return min(self.min_results, self.max_results)

    def fetch_limit(self, default_page_size: int) -> int:
        """Raw records to request per round.

        Type filters are expected to discard much of each batch, so restricted
        queries over-fetch.
        """
        if self.filter_spec.restricts_types:
            return 2 * max(self.max_results, default_page_size)
        return self.max_results


@dataclass(frozen=True, slots=True)
class PaginationState:
    """Accumulated result of the rounds run so far.

    ``held_local`` keeps local records the remote cursor has not reached yet
    and ``frontier`` is the furthest remote ledger index seen in paging order.
    """

    collected: tuple[LedgerTransaction, ...] = ()
    marker: Any | None = None
    rounds: int = 0
    exhausted: bool = False
    held_local: tuple[LedgerTransaction, ...] = ()
    frontier: int | None = None

    def matched_past_offset(self, request: PageRequest) -> int:
        return max(0, len(self.collected) - request.offset)

    def is_satisfied(self, request: PageRequest) -> bool:
        minimum = request.effective_min
        if minimum is None or self.exhausted:
            return True
        return self.matched_past_offset(request) >= minimum

    def window(self, request: PageRequest) -> list[LedgerTransaction]:
        end = request.offset + request.max_results
        return list(self.collected[request.offset : end])


def advance(
    state: PaginationState, result: FetchResult, request: PageRequest
) -> PaginationState:
    """Fold one round's fetch into the pagination state.

    The full accumulated set is re-deduplicated, re-filtered and re-ordered
    so correctness does not depend on the remote cursor being monotonic.
    Records past ``offset + max_results`` are dropped since new records can
    only push them further back.

    The local store is read in full while the remote cursor moves one batch
    at a time, so a local record joins the page only once the remote history
    has been read up to its ledger. Until then unread remote records could
    still sort ahead of it.
    """
    remote = [record for record in result.transactions if not record.from_local_store]
    local = [record for record in result.transactions if record.from_local_store]
    frontier = _advance_frontier(state.frontier, remote, request.descending)

    released: list[LedgerTransaction] = []
    held: list[LedgerTransaction] = []
    for record in [*state.held_local, *local]:
        if result.exhausted or _reached(record, frontier, request.descending):
            released.append(record)
        else:
            held.append(record)

    merged = dedupe([*state.collected, *remote, *released])
    matching = [
        record
        for record in filter_records(merged, request.filter_spec, request.account)
        # Unledgered records have no place in a globally ordered page
        if record.is_ordered
    ]
    ordered = order(matching, descending=request.descending)
    keep = request.offset + request.max_results

    return PaginationState(
        collected=tuple(ordered[:keep]),
        marker=result.marker,
        rounds=state.rounds + 1,
        exhausted=result.exhausted,
        held_local=tuple(held),
        frontier=frontier,
    )


def _advance_frontier(
    frontier: int | None, remote: list[LedgerTransaction], descending: bool
) -> int | None:
    indices = [r.ledger_index for r in remote if r.ledger_index is not None]
    if frontier is not None:
        indices.append(frontier)
    if not indices:
        return None
    return min(indices) if descending else max(indices)


def _reached(
    record: LedgerTransaction, frontier: int | None, descending: bool
) -> bool:
    if record.ledger_index is None:
        # Dropped as unordered once merged
        return True
    if frontier is None:
        return False
    if descending:
        return record.ledger_index >= frontier
    return record.ledger_index <= frontier


class PaginationEngine:
    """Pages through an account's merged history until a minimum is met."""

    def __init__(
        self,
        fetcher: DualSourceFetcher,
        gate: ConnectivityGate,
        *,
        config: HistoryConfig | None = None,
        logger_instance: HistoryLogger | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._gate = gate
        self._config = config or HistoryConfig()
        self._logger = logger_instance or HistoryLogger()

    async def paginate(self, request: PageRequest) -> list[LedgerTransaction]:
        """Return one ordered, filtered page of the account's history.

        Raises:
            NotConnectedError: If the ledger connection cannot be established
            SourceQueryFailedError: If either source fails in any round
            ResolutionTimeoutError: If the configured request timeout elapses;
                in-flight source queries are cancelled
        """
        timeout = self._config.request_timeout
        try:
            async with asyncio.timeout(timeout):
                state = await self._run(request)
        except TimeoutError as exc:
            self._logger.timed_out(request.account, timeout or 0)
            raise ResolutionTimeoutError(
                f"Account history for {request.account} timed out after {timeout}s"
            ) from exc

        page = state.window(request)
        self._logger.page_complete(request.account, len(page), state.rounds)
        return page

    async def _run(self, request: PageRequest) -> PaginationState:
        state = PaginationState()
        limit = request.fetch_limit(self._config.default_results_per_page)
        max_rounds = self._config.max_pagination_rounds

        while True:
            await self._gate.ensure_connected()
            self._logger.round_start(
                request.account, state.rounds + 1, limit, state.marker
            )

            result = await self._fetcher.fetch(
                account=request.account,
                limit=limit,
                ledger_index_min=request.ledger_index_min,
                ledger_index_max=request.ledger_index_max,
                descending=request.descending,
                marker=state.marker,
                exclude_failed=request.filter_spec.exclude_failed,
                # The local store has no cursor; its records arrive in round one
                include_local=state.rounds == 0,
            )
            state = advance(state, result, request)
            self._logger.round_complete(
                state.rounds,
                len(result.transactions),
                len(state.collected),
                state.exhausted,
            )

            if state.is_satisfied(request):
                return state
            if state.rounds >= max_rounds:
                self._logger.round_cap_reached(
                    request.account, state.rounds, len(state.collected)
                )
                return state
