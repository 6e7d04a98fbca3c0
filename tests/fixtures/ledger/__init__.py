"""Fake ledger collaborators and record builders shared across tests."""

from tests.fixtures.ledger.builders import (
    ACCOUNT,
    COUNTERPARTY,
    OTHER,
    ledger_entry,
    local_failed_tx,
    remote_tx,
    transaction_payload,
    tx_hash,
)
from tests.fixtures.ledger.fakes import (
    FakeConnectionSignal,
    FakeRecordStore,
    FakeRemoteLedger,
    ScriptedRemoteLedger,
    create_engine,
)

__all__ = [
    "ACCOUNT",
    "COUNTERPARTY",
    "OTHER",
    "FakeConnectionSignal",
    "FakeRecordStore",
    "FakeRemoteLedger",
    "ScriptedRemoteLedger",
    "create_engine",
    "ledger_entry",
    "local_failed_tx",
    "remote_tx",
    "transaction_payload",
    "tx_hash",
]
