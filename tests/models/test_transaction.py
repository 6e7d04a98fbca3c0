from __future__ import annotations

import pytest

from ledger_history.models.transaction import TxState, TxType
from tests.fixtures.ledger import (
    ACCOUNT,
    COUNTERPARTY,
    OTHER,
    local_failed_tx,
    remote_tx,
    tx_hash,
)


class TestTxType:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Payment", TxType.PAYMENT),
            ("OfferCreate", TxType.ORDER_CREATE),
            ("OfferCancel", TxType.ORDER_CANCEL),
            ("TrustSet", TxType.TRUST_SET),
            ("AccountSet", TxType.ACCOUNT_SET),
        ],
    )
    def test_from_ledger(self, raw: str, expected: TxType) -> None:
        assert TxType.from_ledger(raw) is expected

    def test_from_ledger_rejects_unknown_type(self) -> None:
        with pytest.raises(ValueError, match="EscrowCreate"):
            TxType.from_ledger("EscrowCreate")


class TestLedgerTransaction:
    def test_identifier_prefers_resource_id_for_local_records(self) -> None:
        # Input
        local = local_failed_tx("order-1", ledger_index=100, hash=tx_hash(1))
        remote = remote_tx(
            tx_hash(1), ledger_index=100, timestamp=1
        ).with_client_resource_id("order-1")

        # Assert
        assert local.identifier == "order-1"
        assert remote.identifier == tx_hash(1)

    def test_matches_by_hash(self) -> None:
        # Input
        local = local_failed_tx("order-1", ledger_index=None, hash=tx_hash(1))
        remote = remote_tx(tx_hash(1), ledger_index=100, timestamp=1)
        unrelated = remote_tx(tx_hash(2), ledger_index=100, timestamp=1)

        # Assert
        assert local.matches(remote)
        assert not remote.matches(unrelated)

    def test_hashless_matches_by_resource_id(self) -> None:
        # Input
        base = local_failed_tx("order-1", ledger_index=100)
        copy = local_failed_tx("order-1", ledger_index=100)
        other = local_failed_tx("order-2", ledger_index=100)

        # Assert
        assert base.matches(copy)
        assert not base.matches(other)

    def test_is_successful(self) -> None:
        assert remote_tx(tx_hash(1), ledger_index=1, timestamp=1).is_successful()
        assert not remote_tx(
            tx_hash(2), ledger_index=1, timestamp=1, result="tecNO_DST"
        ).is_successful()
        assert not local_failed_tx("x", ledger_index=None).is_successful()

    def test_involves(self) -> None:
        # Input
        record = remote_tx(
            tx_hash(1),
            ledger_index=1,
            timestamp=1,
            source_account=COUNTERPARTY,
            destination_account=OTHER,
        )

        # Assert
        assert record.involves(COUNTERPARTY)
        assert record.involves(OTHER)
        assert not record.involves(ACCOUNT)

    def test_with_timestamp_returns_copy(self) -> None:
        # Input
        record = local_failed_tx("x", ledger_index=100)

        # Act
        stamped = record.with_timestamp(42)

        # Assert
        assert stamped.timestamp == 42
        assert record.timestamp is None
        assert stamped.state is TxState.FAILED
