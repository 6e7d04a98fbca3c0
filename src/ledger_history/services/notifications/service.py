from __future__ import annotations

from dataclasses import dataclass

from ledger_history.errors import LedgerGapError
from ledger_history.models.transaction import LedgerTransaction
from ledger_history.services.connectivity import ServerStatus
from ledger_history.services.history.lookup import TransactionLookup
from ledger_history.services.history.records import FilterSpec
from ledger_history.services.notifications.neighbors import (
    NeighborLinks,
    NotificationNeighborResolver,
)


@dataclass(frozen=True, slots=True)
class NotificationContext:
    """A transaction seen from one account, linked to its neighbors."""

    account: str
    identifier: str
    transaction: LedgerTransaction
    links: NeighborLinks


class NotificationService:
    """Builds notification context for one transaction of an account."""

    def __init__(
        self,
        lookup: TransactionLookup,
        status: ServerStatus,
        resolver: NotificationNeighborResolver,
    ) -> None:
        self._lookup = lookup
        self._status = status
        self._resolver = resolver

    async def get_notification(
        self,
        account: str,
        identifier: str,
        filter_spec: FilterSpec | None = None,
    ) -> NotificationContext:
        """Look up a transaction and attach its previous/next links.

        Raises:
            TransactionNotFoundError: If the identifier matches nothing
            TransactionNotRelatedError: If the transaction does not involve
                ``account``
            LedgerGapError: If the ledger server lacks the history needed to
                determine the neighbors
        """
        transaction = await self._lookup.get_transaction(account, identifier)

        if transaction.ledger_index is None:
            raise LedgerGapError(
                "Cannot get notification. This transaction has not been "
                "written into a validated ledger yet"
            )
        if not await self._status.has_ledger(transaction.ledger_index):
            raise LedgerGapError(
                "Cannot get notification. This transaction is not in the ledger "
                "server's complete ledger set. Because there is a gap in its "
                "history it is not possible to determine the transactions that "
                "precede this one"
            )

        links = await self._resolver.resolve_neighbors(
            account, transaction, filter_spec
        )
        return NotificationContext(
            account=account,
            identifier=identifier,
            transaction=transaction,
            links=links,
        )
