"""Builders for raw ledger payloads and transaction records."""

from __future__ import annotations

from typing import Any

from ledger_history.models.transaction import (
    SUCCESS_RESULT,
    LedgerTransaction,
    Origin,
    TxState,
    TxType,
)

ACCOUNT = "rAccountXXXXXXXXXXXXXXXXXXXXXXXXXX"
COUNTERPARTY = "rCounterpartyYYYYYYYYYYYYYYYYYYYYY"
OTHER = "rOtherZZZZZZZZZZZZZZZZZZZZZZZZZZZZZ"

_LEDGER_TYPE_NAMES = {
    TxType.PAYMENT: "Payment",
    TxType.ORDER_CREATE: "OfferCreate",
    TxType.ORDER_CANCEL: "OfferCancel",
    TxType.TRUST_SET: "TrustSet",
    TxType.ACCOUNT_SET: "AccountSet",
}


def tx_hash(n: int) -> str:
    """Deterministic 64-hex transaction hash."""
    return f"{n:064X}"


def ledger_entry(
    hash: str,
    *,
    ledger_index: int,
    date: int,
    tx_type: TxType = TxType.PAYMENT,
    account: str = ACCOUNT,
    destination: str | None = COUNTERPARTY,
    result: str = SUCCESS_RESULT,
    validated: bool = True,
    transaction_index: int | None = None,
) -> dict[str, Any]:
    """Build one entry of an account history response."""
    tx: dict[str, Any] = {
        "Account": account,
        "TransactionType": _LEDGER_TYPE_NAMES[tx_type],
        "hash": hash,
        "ledger_index": ledger_index,
        "date": date,
    }
    if destination is not None:
        tx["Destination"] = destination
    meta: dict[str, Any] = {
        "TransactionResult": result,
        "AffectedNodes": [
            {"ModifiedNode": {"FinalFields": {"Account": account}}},
        ],
    }
    if transaction_index is not None:
        meta["TransactionIndex"] = transaction_index
    return {"tx": tx, "meta": meta, "validated": validated}


def remote_tx(
    hash: str,
    *,
    ledger_index: int,
    timestamp: int,
    tx_type: TxType = TxType.PAYMENT,
    source_account: str = ACCOUNT,
    destination_account: str | None = COUNTERPARTY,
    result: str = SUCCESS_RESULT,
) -> LedgerTransaction:
    return LedgerTransaction(
        tx_type=tx_type,
        source_account=source_account,
        destination_account=destination_account,
        state=TxState.VALIDATED if result == SUCCESS_RESULT else TxState.FAILED,
        origin=Origin.REMOTE,
        hash=hash,
        ledger_index=ledger_index,
        timestamp=timestamp,
        result=result,
    )


def local_failed_tx(
    client_resource_id: str,
    *,
    ledger_index: int | None,
    timestamp: int | None = None,
    hash: str | None = None,
    tx_type: TxType = TxType.PAYMENT,
    source_account: str = ACCOUNT,
    destination_account: str | None = COUNTERPARTY,
    result: str | None = "tecPATH_DRY",
) -> LedgerTransaction:
    return LedgerTransaction(
        tx_type=tx_type,
        source_account=source_account,
        destination_account=destination_account,
        state=TxState.FAILED,
        origin=Origin.LOCAL,
        hash=hash,
        client_resource_id=client_resource_id,
        ledger_index=ledger_index,
        timestamp=timestamp,
        result=result,
    )


def transaction_payload(
    hash: str,
    *,
    ledger_index: int | None = 100,
    date: int | None = None,
    account: str = ACCOUNT,
    destination: str | None = COUNTERPARTY,
    result: str = SUCCESS_RESULT,
    validated: bool = True,
) -> dict[str, Any]:
    """Build a single-transaction lookup response with inlined meta."""
    payload: dict[str, Any] = {
        "Account": account,
        "TransactionType": "Payment",
        "hash": hash,
        "ledger_index": ledger_index,
        "meta": {"TransactionResult": result},
        "validated": validated,
    }
    if destination is not None:
        payload["Destination"] = destination
    if date is not None:
        payload["date"] = date
    return payload
