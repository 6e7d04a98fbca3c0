"""Tests for merge, filter, and ordering of transaction records."""

from __future__ import annotations

import pytest

from ledger_history.models.transaction import TxType
from ledger_history.services.history.records import (
    Direction,
    FilterSpec,
    dedupe,
    filter_records,
    order,
)
from tests.fixtures.ledger import (
    ACCOUNT,
    COUNTERPARTY,
    OTHER,
    local_failed_tx,
    remote_tx,
    tx_hash,
)


class TestDedupe:
    def test_remote_copy_replaces_local_copy(self) -> None:
        # Input
        local = local_failed_tx("order-1", ledger_index=None, hash=tx_hash(1))
        remote = remote_tx(tx_hash(1), ledger_index=100, timestamp=10)

        # Act
        merged = dedupe([local, remote])

        # Assert
        assert merged == [remote]

    def test_local_copy_does_not_replace_remote_copy(self) -> None:
        # Input
        remote = remote_tx(tx_hash(1), ledger_index=100, timestamp=10)
        local = local_failed_tx("order-1", ledger_index=None, hash=tx_hash(1))

        # Act
        merged = dedupe([remote, local])

        # Assert
        assert merged == [remote]

    def test_hashless_records_are_never_merged(self) -> None:
        # Input
        first = local_failed_tx("same-id", ledger_index=None)
        second = local_failed_tx("same-id", ledger_index=None)

        # Act
        merged = dedupe([first, second])

        # Assert
        assert len(merged) == 2

    def test_survivor_keeps_first_position(self) -> None:
        # Input
        a = remote_tx(tx_hash(1), ledger_index=100, timestamp=10)
        b = remote_tx(tx_hash(2), ledger_index=101, timestamp=11)
        a_again = remote_tx(tx_hash(1), ledger_index=100, timestamp=10)

        # Act
        merged = dedupe([a, b, a_again])

        # Assert
        assert [record.hash for record in merged] == [tx_hash(1), tx_hash(2)]

    def test_idempotent(self) -> None:
        # Input
        records = [
            local_failed_tx("x", ledger_index=105, hash=tx_hash(3)),
            remote_tx(tx_hash(1), ledger_index=100, timestamp=10),
            remote_tx(tx_hash(3), ledger_index=105, timestamp=30),
            local_failed_tx("y", ledger_index=None),
            remote_tx(tx_hash(1), ledger_index=100, timestamp=10),
        ]

        # Act
        once = dedupe(records)
        twice = dedupe(once)

        # Assert
        assert twice == once


class TestFilterRecords:
    def setup_method(self) -> None:
        self.outgoing_payment = remote_tx(
            tx_hash(1), ledger_index=100, timestamp=1, source_account=ACCOUNT
        )
        self.incoming_payment = remote_tx(
            tx_hash(2),
            ledger_index=101,
            timestamp=2,
            source_account=COUNTERPARTY,
            destination_account=ACCOUNT,
        )
        # ACCOUNT only relays value between two other accounts
        self.passthrough_payment = remote_tx(
            tx_hash(3),
            ledger_index=102,
            timestamp=3,
            source_account=COUNTERPARTY,
            destination_account=OTHER,
        )
        self.failed_order = local_failed_tx(
            "order-1",
            ledger_index=103,
            tx_type=TxType.ORDER_CREATE,
            destination_account=None,
        )
        self.records = [
            self.outgoing_payment,
            self.incoming_payment,
            self.passthrough_payment,
            self.failed_order,
        ]

    def test_empty_spec_passes_everything(self) -> None:
        assert filter_records(self.records, FilterSpec(), ACCOUNT) == self.records

    def test_exclude_failed(self) -> None:
        # Act
        result = filter_records(self.records, FilterSpec(exclude_failed=True), ACCOUNT)

        # Assert
        assert self.failed_order not in result
        assert len(result) == 3

    def test_exclude_failed_drops_unsuccessful_ledger_results(self) -> None:
        # Input
        claimed_fee = remote_tx(
            tx_hash(9), ledger_index=100, timestamp=1, result="tecUNFUNDED_PAYMENT"
        )

        # Act
        result = filter_records([claimed_fee], FilterSpec(exclude_failed=True), ACCOUNT)

        # Assert
        assert result == []

    def test_types(self) -> None:
        # Act
        result = filter_records(
            self.records,
            FilterSpec(types=frozenset({TxType.ORDER_CREATE})),
            ACCOUNT,
        )

        # Assert
        assert result == [self.failed_order]

    def test_empty_type_set_matches_nothing(self) -> None:
        result = filter_records(self.records, FilterSpec(types=frozenset()), ACCOUNT)

        assert result == []

    def test_source_and_destination_account(self) -> None:
        # Act
        by_source = filter_records(
            self.records, FilterSpec(source_account=COUNTERPARTY), ACCOUNT
        )
        by_destination = filter_records(
            self.records, FilterSpec(destination_account=OTHER), ACCOUNT
        )

        # Assert
        assert by_source == [self.incoming_payment, self.passthrough_payment]
        assert by_destination == [self.passthrough_payment]

    def test_outgoing_direction(self) -> None:
        # Act
        result = filter_records(
            self.records, FilterSpec(direction=Direction.OUTGOING), ACCOUNT
        )

        # Assert
        assert result == [self.outgoing_payment, self.failed_order]

    def test_incoming_direction(self) -> None:
        # Act
        result = filter_records(
            self.records, FilterSpec(direction=Direction.INCOMING), ACCOUNT
        )

        # Assert
        assert result == [self.incoming_payment]

    def test_passthrough_matches_neither_direction(self) -> None:
        for direction in Direction:
            result = filter_records(
                [self.passthrough_payment], FilterSpec(direction=direction), ACCOUNT
            )
            assert result == []

    @pytest.mark.parametrize(
        ("spec_a", "spec_b"),
        [
            (
                FilterSpec(exclude_failed=True),
                FilterSpec(types=frozenset({TxType.PAYMENT})),
            ),
            (
                FilterSpec(types=frozenset({TxType.PAYMENT, TxType.ORDER_CREATE})),
                FilterSpec(direction=Direction.OUTGOING),
            ),
            (
                FilterSpec(source_account=COUNTERPARTY),
                FilterSpec(types=frozenset({TxType.PAYMENT}), exclude_failed=True),
            ),
        ],
    )
    def test_sequential_filters_equal_merged_spec(
        self, spec_a: FilterSpec, spec_b: FilterSpec
    ) -> None:
        # Act
        sequential = filter_records(
            filter_records(self.records, spec_a, ACCOUNT), spec_b, ACCOUNT
        )
        combined = filter_records(self.records, spec_a.merge(spec_b), ACCOUNT)

        # Assert
        assert sequential == combined


class TestFilterSpec:
    def test_merge_intersects_types(self) -> None:
        # Input
        a = FilterSpec(types=frozenset({TxType.PAYMENT, TxType.TRUST_SET}))
        b = FilterSpec(types=frozenset({TxType.PAYMENT}))

        # Act
        merged = a.merge(b)

        # Assert
        assert merged.types == frozenset({TxType.PAYMENT})

    def test_merge_rejects_conflicting_accounts(self) -> None:
        with pytest.raises(ValueError, match="source_account"):
            FilterSpec(source_account=ACCOUNT).merge(
                FilterSpec(source_account=COUNTERPARTY)
            )

    def test_restricts_types(self) -> None:
        assert FilterSpec().restricts_types is False
        assert FilterSpec(types=frozenset(TxType)).restricts_types is False
        assert FilterSpec(types=frozenset({TxType.PAYMENT})).restricts_types is True


class TestOrder:
    def setup_method(self) -> None:
        self.t1 = remote_tx(tx_hash(1), ledger_index=100, timestamp=10)
        self.t2 = remote_tx(tx_hash(2), ledger_index=100, timestamp=20)
        self.t3 = remote_tx(tx_hash(3), ledger_index=105, timestamp=30)

    def test_ascending_by_ledger_then_timestamp(self) -> None:
        assert order([self.t3, self.t2, self.t1]) == [self.t1, self.t2, self.t3]

    def test_descending_is_reverse_without_ties(self) -> None:
        # Input
        records = [self.t2, self.t3, self.t1]

        # Act
        descending = order(records, descending=True)

        # Assert
        assert descending == list(reversed(order(records)))

    def test_idempotent(self) -> None:
        # Input
        records = [self.t3, self.t1, self.t2]

        # Act
        once = order(records)

        # Assert
        assert order(once) == once

    def test_ties_keep_input_order_in_both_directions(self) -> None:
        # Input
        tie_a = remote_tx(tx_hash(7), ledger_index=100, timestamp=10)
        tie_b = local_failed_tx("tie-b", ledger_index=100, timestamp=10)

        # Act
        ascending = order([tie_a, tie_b])
        descending = order([tie_a, tie_b], descending=True)

        # Assert
        assert ascending == [tie_a, tie_b]
        assert descending == [tie_a, tie_b]

    def test_unledgered_records_sort_last_ascending(self) -> None:
        # Input
        pending = local_failed_tx("pending", ledger_index=None)

        # Act
        result = order([pending, self.t1])

        # Assert
        assert result == [self.t1, pending]
