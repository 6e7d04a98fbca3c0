"""Error hierarchy raised by the history and notification services."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager


class LedgerHistoryError(Exception):
    """Base error for ledger history failures."""


class NotConnectedError(LedgerHistoryError):
    """The ledger server connection is stale and could not be re-established."""


class SourceQueryFailedError(LedgerHistoryError):
    """A query against the remote ledger or the local record store failed."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source} query failed: {message}")
        self.source = source


class NeighborResolutionContractViolation(LedgerHistoryError):
    """The base transaction was absent from its own neighbor window."""


class TransactionNotFoundError(LedgerHistoryError):
    """No transaction matches the requested identifier."""


class TransactionNotRelatedError(LedgerHistoryError):
    """The requested transaction did not affect the given account."""


class LedgerGapError(LedgerHistoryError):
    """The server's complete ledger set does not contain the requested ledger."""


class ResolutionTimeoutError(LedgerHistoryError):
    """The overall resolution request exceeded its timeout."""


@contextmanager
def source_query(source: str) -> Iterator[None]:
    """Surface collaborator failures as ``SourceQueryFailedError``.

    History errors pass through untouched; anything else is wrapped with the
    original exception chained.
    """
    try:
        yield
    except LedgerHistoryError:
        raise
    except Exception as exc:
        raise SourceQueryFailedError(source, str(exc) or type(exc).__name__) from exc
