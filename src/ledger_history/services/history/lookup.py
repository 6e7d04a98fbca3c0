from __future__ import annotations

import re

from ledger_history.errors import (
    TransactionNotFoundError,
    TransactionNotRelatedError,
    source_query,
)
from ledger_history.infra.clients.ledger import (
    REMOTE_SOURCE,
    RemoteLedger,
    parse_ledger_close_time,
    parse_transaction,
)
from ledger_history.infra.store import LOCAL_SOURCE, LocalRecordStore
from ledger_history.models.transaction import LedgerTransaction
from ledger_history.services.connectivity import ConnectivityGate

_HASH_RE = re.compile(r"^[0-9A-Fa-f]{64}$")
_RESOURCE_ID_RE = re.compile(r"^[\x20-\x7e]{1,255}$")


def classify_identifier(identifier: str | None) -> tuple[str | None, str | None]:
    """Split an identifier into ``(hash, client_resource_id)``.

    Client resource identifiers are printable ASCII; 256-bit hex strings are
    always read as hashes.

    Raises:
        ValueError: If the identifier is missing or neither form
    """
    if not identifier:
        raise ValueError("Missing parameter: identifier")
    if _HASH_RE.match(identifier):
        return identifier.upper(), None
    if _RESOURCE_ID_RE.match(identifier):
        return None, identifier
    raise ValueError(
        "Parameter not a valid transaction hash or client_resource_id: identifier"
    )


class TransactionLookup:
    """Resolves a single transaction by hash or client resource identifier."""

    def __init__(
        self,
        remote: RemoteLedger,
        store: LocalRecordStore,
        gate: ConnectivityGate,
    ) -> None:
        self._remote = remote
        self._store = store
        self._gate = gate

    async def get_transaction(
        self, account: str | None, identifier: str
    ) -> LedgerTransaction:
        """Find a transaction in the local store or on the ledger.

        Args:
            account: If set, the transaction must involve this account
            identifier: Transaction hash or client resource identifier

        Raises:
            ValueError: If the identifier is malformed
            NotConnectedError: If the ledger connection cannot be established
            TransactionNotFoundError: If neither source knows the transaction
            TransactionNotRelatedError: If it does not involve ``account``
        """
        tx_hash, client_resource_id = classify_identifier(identifier)
        await self._gate.ensure_connected()

        with source_query(LOCAL_SOURCE):
            stored = await self._store.get_transaction(
                account=account,
                hash=tx_hash,
                client_resource_id=client_resource_id,
            )

        transaction: LedgerTransaction | None
        if stored is not None and stored.transaction is not None:
            transaction = stored.transaction
        elif stored is not None and stored.hash:
            transaction = await self._request_remote(stored.hash)
        elif tx_hash:
            transaction = await self._request_remote(tx_hash)
        else:
            transaction = None

        if transaction is None:
            raise TransactionNotFoundError(f"Transaction not found: {identifier}")

        if account and not transaction.involves(account):
            raise TransactionNotRelatedError(
                "Transaction specified did not affect the given account"
            )

        resource_id = client_resource_id
        if resource_id is None and stored is not None:
            resource_id = stored.client_resource_id
        if resource_id and transaction.client_resource_id != resource_id:
            transaction = transaction.with_client_resource_id(resource_id)

        if transaction.timestamp is None and transaction.ledger_index is not None:
            transaction = await self._attach_close_time(
                transaction, transaction.ledger_index
            )

        return transaction

    async def _request_remote(self, tx_hash: str) -> LedgerTransaction | None:
        with source_query(REMOTE_SOURCE):
            payload = await self._remote.request_transaction(tx_hash)
        if payload is None:
            return None
        return parse_transaction(payload)

    async def _attach_close_time(
        self, transaction: LedgerTransaction, ledger_index: int
    ) -> LedgerTransaction:
        with source_query(REMOTE_SOURCE):
            payload = await self._remote.request_ledger(ledger_index)
        close_time = parse_ledger_close_time(payload)
        if close_time is None:
            return transaction
        return transaction.with_timestamp(close_time)
