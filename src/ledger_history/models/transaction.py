"""Canonical transaction record flowing through the history pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import enum

SUCCESS_RESULT = "tesSUCCESS"


class TxType(enum.Enum):
    """Transaction types exposed by the history resources."""

    PAYMENT = "payment"
    ORDER_CREATE = "offercreate"
    ORDER_CANCEL = "offercancel"
    TRUST_SET = "trustset"
    ACCOUNT_SET = "accountset"

    @classmethod
    def from_ledger(cls, raw: str) -> TxType:
        """Map a ledger ``TransactionType`` (e.g. ``"OfferCreate"``) to a TxType."""
        try:
            return cls(raw.lower())
        except ValueError:
            raise ValueError(f"Unsupported transaction type: {raw}") from None


NUM_TRANSACTION_TYPES = len(TxType)


class TxState(enum.Enum):
    VALIDATED = "validated"
    FAILED = "failed"
    PENDING = "pending"


class Origin(enum.Enum):
    """Which source a record was read from."""

    REMOTE = "remote"
    LOCAL = "local"


@dataclass(frozen=True, slots=True)
class LedgerTransaction:
    """A single account transaction from either the ledger or the local store.

    ``hash`` may be unset for a locally recorded transaction whose submission
    never completed; ``client_resource_id`` correlates such a record with the
    request that produced it. ``timestamp`` is the ledger close time in
    seconds and only breaks ties among records sharing ``ledger_index``.
    """

    tx_type: TxType
    source_account: str
    state: TxState
    origin: Origin
    hash: str | None = None
    client_resource_id: str | None = None
    ledger_index: int | None = None
    timestamp: int | None = None
    destination_account: str | None = None
    result: str | None = None
    # Position within the ledger, known only for ledger-sourced records
    transaction_index: int | None = field(default=None, compare=False)
    affected_accounts: tuple[str, ...] = field(default=(), compare=False)

    @property
    def from_local_store(self) -> bool:
        return self.origin is Origin.LOCAL

    @property
    def identifier(self) -> str | None:
        """Identifier exposed to clients: resource id for local records, else hash."""
        if self.from_local_store:
            return self.client_resource_id
        return self.hash

    @property
    def is_ordered(self) -> bool:
        return self.ledger_index is not None

    def is_successful(self) -> bool:
        if self.state is TxState.FAILED:
            return False
        return self.result is None or self.result == SUCCESS_RESULT

    def involves(self, account: str) -> bool:
        """Return True if ``account`` sent, received, or was touched by this tx."""
        if account in (self.source_account, self.destination_account):
            return True
        return account in self.affected_accounts

    def matches(self, other: LedgerTransaction) -> bool:
        """Return True if ``other`` denotes the same transaction as this one.

        Hash equality wins; when this record has no hash the client resource
        identifier is compared instead.
        """
        if self.hash:
            return other.hash == self.hash
        if self.client_resource_id:
            return other.client_resource_id == self.client_resource_id
        return False

    def with_client_resource_id(self, client_resource_id: str) -> LedgerTransaction:
        return replace(self, client_resource_id=client_resource_id)

    def with_timestamp(self, timestamp: int) -> LedgerTransaction:
        return replace(self, timestamp=timestamp)
