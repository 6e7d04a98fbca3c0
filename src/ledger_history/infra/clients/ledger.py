"""Remote ledger collaborator contracts and response parsing.

The wire protocol to the ledger server is owned by whatever client implements
``RemoteLedger``; this module only fixes the call shapes and turns the raw
JSON payloads those calls return into ``LedgerTransaction`` records.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
import re
from typing import Any, Protocol, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ledger_history.errors import SourceQueryFailedError
from ledger_history.models.transaction import (
    SUCCESS_RESULT,
    LedgerTransaction,
    Origin,
    TxState,
    TxType,
)

REMOTE_SOURCE = "remote ledger"

_SUPPORTED_TYPES = {tx_type.value for tx_type in TxType}
_LEDGER_RANGE_RE = re.compile(r"^(\d+)(?:-(\d+))?$")


class RemoteLedger(Protocol):
    """Query surface of the ledger server consumed by the history services."""

    async def request_account_transactions(
        self,
        *,
        account: str,
        ledger_index_min: int,
        ledger_index_max: int,
        limit: int,
        forward: bool,
        marker: Any | None = None,
    ) -> dict[str, Any]: ...

    async def request_transaction(self, tx_hash: str) -> dict[str, Any] | None: ...

    async def request_ledger(self, ledger_index: int) -> dict[str, Any]: ...

    async def request_server_info(self) -> dict[str, Any]: ...


class ConnectionSignal(Protocol):
    """Liveness view of the shared ledger server connection."""

    def is_connected(self) -> bool: ...

    def on_reconnected(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register ``callback`` and return a function that unregisters it."""
        ...

    def connect(self) -> None: ...


class LedgerBaseModel(BaseModel):
    """Shared base for ledger response models with a short parse alias."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @classmethod
    def parse(cls, data: Any) -> Self:
        return cls.model_validate(data)


class TransactionMeta(LedgerBaseModel):
    transaction_result: str | None = Field(default=None, alias="TransactionResult")
    transaction_index: int | None = Field(default=None, alias="TransactionIndex")
    affected_nodes: list[dict[str, Any]] = Field(
        default_factory=list, alias="AffectedNodes"
    )

    def affected_accounts(self) -> tuple[str, ...]:
        accounts: list[str] = []
        for wrapper in self.affected_nodes:
            for node in wrapper.values():
                if not isinstance(node, dict):
                    continue
                for fields_key in ("FinalFields", "NewFields", "PreviousFields"):
                    fields = node.get(fields_key) or {}
                    account = fields.get("Account")
                    if isinstance(account, str) and account not in accounts:
                        accounts.append(account)
        return tuple(accounts)


class TxJsonModel(LedgerBaseModel):
    account: str = Field(alias="Account")
    transaction_type: str = Field(alias="TransactionType")
    destination: str | None = Field(default=None, alias="Destination")
    hash: str | None = None
    ledger_index: int | None = None
    date: int | None = None
    # Single-transaction lookups inline meta and the validated flag
    meta: TransactionMeta | None = None
    validated: bool = False

    @property
    def is_supported(self) -> bool:
        return self.transaction_type.lower() in _SUPPORTED_TYPES

    def to_typed(self, *, meta: TransactionMeta | None = None) -> LedgerTransaction:
        meta = meta or self.meta
        result = meta.transaction_result if meta else None
        if result is None:
            state = TxState.PENDING
        elif result == SUCCESS_RESULT:
            state = TxState.VALIDATED
        else:
            state = TxState.FAILED

        return LedgerTransaction(
            tx_type=TxType.from_ledger(self.transaction_type),
            source_account=self.account,
            destination_account=self.destination,
            state=state,
            origin=Origin.REMOTE,
            hash=self.hash,
            ledger_index=self.ledger_index,
            timestamp=self.date,
            result=result,
            transaction_index=meta.transaction_index if meta else None,
            affected_accounts=meta.affected_accounts() if meta else (),
        )


class AccountTxEntry(LedgerBaseModel):
    tx: TxJsonModel
    meta: TransactionMeta | None = None
    validated: bool = False


class AccountTxResponse(LedgerBaseModel):
    transactions: list[AccountTxEntry] = Field(default_factory=list)
    marker: Any = None


class LedgerHeaderModel(LedgerBaseModel):
    ledger_index: int | None = None
    close_time: int | None = None


class LedgerResponse(LedgerBaseModel):
    ledger: LedgerHeaderModel


class ServerInfoModel(LedgerBaseModel):
    complete_ledgers: str = "empty"


class ServerInfoResponse(LedgerBaseModel):
    info: ServerInfoModel


@dataclass(frozen=True, slots=True)
class AccountTxPage:
    """Validated records from one account history call plus its continuation."""

    transactions: list[LedgerTransaction]
    marker: Any | None
    discarded_count: int = 0

    @property
    def exhausted(self) -> bool:
        return not self.marker


def _invalid_payload(exc: ValidationError) -> SourceQueryFailedError:
    return SourceQueryFailedError(
        REMOTE_SOURCE, f"malformed response ({exc.error_count()} errors)"
    )


def parse_account_transactions(payload: dict[str, Any]) -> AccountTxPage:
    """Keep validated entries of a supported type from an account history batch."""
    try:
        response = AccountTxResponse.parse(payload)
    except ValidationError as exc:
        raise _invalid_payload(exc) from exc

    transactions: list[LedgerTransaction] = []
    discarded = 0
    for entry in response.transactions:
        if not entry.validated or not entry.tx.is_supported:
            discarded += 1
            continue
        transactions.append(entry.tx.to_typed(meta=entry.meta))

    return AccountTxPage(
        transactions=transactions,
        marker=response.marker,
        discarded_count=discarded,
    )


def parse_transaction(payload: dict[str, Any]) -> LedgerTransaction | None:
    """Parse a single-transaction lookup; unsupported types yield None."""
    try:
        tx = TxJsonModel.parse(payload)
    except ValidationError as exc:
        raise _invalid_payload(exc) from exc

    if not tx.is_supported:
        return None
    record = tx.to_typed()
    if not tx.validated and record.state is TxState.VALIDATED:
        # Provisional success until the ledger holding it validates
        record = replace(record, state=TxState.PENDING)
    return record


def parse_ledger_close_time(payload: dict[str, Any]) -> int | None:
    try:
        return LedgerResponse.parse(payload).ledger.close_time
    except ValidationError as exc:
        raise _invalid_payload(exc) from exc


def parse_complete_ledgers(payload: dict[str, Any]) -> list[tuple[int, int]]:
    """Return the inclusive ledger ranges the server holds in full.

    ``complete_ledgers`` looks like ``"32570-6595042"``, may list several
    comma separated ranges or single ledgers, and is ``"empty"`` on a fresh
    server.
    """
    try:
        raw = ServerInfoResponse.parse(payload).info.complete_ledgers.strip()
    except ValidationError as exc:
        raise _invalid_payload(exc) from exc

    ranges: list[tuple[int, int]] = []
    if not raw or raw == "empty":
        return ranges
    for part in raw.split(","):
        match = _LEDGER_RANGE_RE.match(part.strip())
        if not match:
            raise SourceQueryFailedError(
                REMOTE_SOURCE, f"unparseable complete_ledgers: {raw}"
            )
        low = int(match.group(1))
        high = int(match.group(2) or low)
        ranges.append((low, high))
    return ranges
