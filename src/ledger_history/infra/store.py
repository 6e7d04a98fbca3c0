"""Local record store contract.

The local store captures transactions submitted through this service,
including ones that failed before reaching consensus and therefore never
appear in the remote ledger's account history.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ledger_history.models.transaction import LedgerTransaction

LOCAL_SOURCE = "local record store"


@dataclass(frozen=True, slots=True)
class StoredTransaction:
    """A local store hit for a hash or client resource identifier.

    ``transaction`` is set when the store's own copy is authoritative (failed
    or never-hashed submissions); otherwise only ``hash`` is known and the
    ledger copy should be requested.
    """

    hash: str | None
    client_resource_id: str | None
    transaction: LedgerTransaction | None = None


class LocalRecordStore(Protocol):
    async def get_failed_transactions(
        self,
        *,
        account: str,
        ledger_index_min: int = -1,
        ledger_index_max: int = -1,
    ) -> list[LedgerTransaction]:
        """Return failed submissions from ``account``; ``-1`` leaves a bound open."""
        ...

    async def get_sibling_count(self, account: str, ledger_index: int) -> int:
        """Count the account's known transactions in one ledger.

        Only transactions recorded locally are counted, so ledger entries
        submitted elsewhere (incoming payments, for one) are missing and the
        result is a lower bound.
        """
        ...

    async def get_transaction(
        self,
        *,
        account: str | None = None,
        hash: str | None = None,
        client_resource_id: str | None = None,
    ) -> StoredTransaction | None: ...
