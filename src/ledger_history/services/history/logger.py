"""Logging for account history pagination.

Keeps log formatting out of the fetch and pagination logic.
"""

from __future__ import annotations

from typing import Any

import loguru
from loguru import logger


class HistoryLogger:
    """Handles all logging for history fetching and pagination."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        """Initialize logger.

        Args:
            logger_instance: Logger instance to use (defaults to loguru.logger)
        """
        self._logger = logger_instance

    def sources_fetched(
        self,
        account: str,
        remote_count: int,
        discarded_count: int,
        local_count: int,
    ) -> None:
        self._logger.bind(
            account=account,
            remote=remote_count,
            discarded=discarded_count,
            local=local_count,
        ).debug(
            "Fetched {} validated ledger records ({} unvalidated dropped) "
            "and {} local failures for {}",
            remote_count,
            discarded_count,
            local_count,
            account,
        )

    def round_start(
        self, account: str, round_num: int, limit: int, marker: Any | None
    ) -> None:
        marker_label = "initial" if marker is None else str(marker)
        self._logger.bind(
            account=account, round=round_num, limit=limit, marker=marker_label
        ).debug(
            "History round {} for {} (limit {}, marker: {})",
            round_num,
            account,
            limit,
            marker_label,
        )

    def round_complete(
        self,
        round_num: int,
        fetched_count: int,
        collected_count: int,
        exhausted: bool,
    ) -> None:
        self._logger.bind(
            round=round_num,
            fetched=fetched_count,
            collected=collected_count,
            exhausted=exhausted,
        ).debug(
            "Round {} complete: {} fetched, {} collected{}",
            round_num,
            fetched_count,
            collected_count,
            " (history exhausted)" if exhausted else "",
        )

    def page_complete(self, account: str, returned_count: int, rounds: int) -> None:
        self._logger.bind(
            account=account, returned=returned_count, rounds=rounds
        ).info(
            "Returning {} transactions for {} after {} rounds",
            returned_count,
            account,
            rounds,
        )

    def round_cap_reached(self, account: str, rounds: int, collected: int) -> None:
        self._logger.bind(account=account, rounds=rounds, collected=collected).warning(
            "Stopped paging {} after {} rounds with {} matching transactions",
            account,
            rounds,
            collected,
        )

    def timed_out(self, account: str, timeout_seconds: float) -> None:
        self._logger.bind(account=account, timeout=timeout_seconds).error(
            "History request for {} timed out after {}s", account, timeout_seconds
        )
