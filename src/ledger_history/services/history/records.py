"""Set operations over transaction records: merge, filter, and order.

These are pure functions over lists of ``LedgerTransaction``; the pagination
engine composes them once per round over the accumulated records.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
import enum
from typing import TypeVar

from ledger_history.models.transaction import (
    NUM_TRANSACTION_TYPES,
    LedgerTransaction,
    TxType,
)

T = TypeVar("T")


class Direction(enum.Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"


@dataclass(frozen=True, slots=True)
class FilterSpec:
    """Caller predicates applied to merged records.

    Every predicate is optional and all present predicates must hold.
    ``types=None`` accepts every type while an empty set accepts none.

    Direction is relative to the account under query: ``OUTGOING`` keeps
    records the account sent and ``INCOMING`` keeps records addressed to it.
    Passthrough payments, where the account is only an intermediary in a
    multi-hop payment, match neither direction.
    """

    exclude_failed: bool = False
    types: frozenset[TxType] | None = None
    source_account: str | None = None
    destination_account: str | None = None
    direction: Direction | None = None

    @property
    def restricts_types(self) -> bool:
        return self.types is not None and len(self.types) < NUM_TRANSACTION_TYPES

    def merge(self, other: FilterSpec) -> FilterSpec:
        """Return a spec that accepts exactly what both specs accept.

        Raises:
            ValueError: If the specs pin different values for the same field
        """
        if self.types is None:
            types = other.types
        elif other.types is None:
            types = self.types
        else:
            types = self.types & other.types

        return FilterSpec(
            exclude_failed=self.exclude_failed or other.exclude_failed,
            types=types,
            source_account=_merge_field(
                "source_account", self.source_account, other.source_account
            ),
            destination_account=_merge_field(
                "destination_account",
                self.destination_account,
                other.destination_account,
            ),
            direction=_merge_field("direction", self.direction, other.direction),
        )


def _merge_field(name: str, first: T | None, second: T | None) -> T | None:
    if first is None:
        return second
    if second is None or second == first:
        return first
    raise ValueError(f"Conflicting {name} filters: {first} and {second}")


def dedupe(records: Iterable[LedgerTransaction]) -> list[LedgerTransaction]:
    """Collapse records sharing a hash, preferring the remote copy.

    Records without a hash are never considered duplicates of each other.
    The surviving record keeps the position of the first one seen.
    """
    merged: list[LedgerTransaction] = []
    position_by_hash: dict[str, int] = {}

    for record in records:
        if not record.hash:
            merged.append(record)
            continue

        position = position_by_hash.get(record.hash)
        if position is None:
            position_by_hash[record.hash] = len(merged)
            merged.append(record)
        elif merged[position].from_local_store and not record.from_local_store:
            merged[position] = record

    return merged


def matches(record: LedgerTransaction, spec: FilterSpec, account: str) -> bool:
    if spec.exclude_failed and not record.is_successful():
        return False

    if spec.types is not None and record.tx_type not in spec.types:
        return False

    if spec.source_account and record.source_account != spec.source_account:
        return False

    if (
        spec.destination_account
        and record.destination_account != spec.destination_account
    ):
        return False

    if spec.direction is Direction.OUTGOING and record.source_account != account:
        return False

    if spec.direction is Direction.INCOMING and record.destination_account != account:
        return False

    return True


def filter_records(
    records: Iterable[LedgerTransaction], spec: FilterSpec, account: str
) -> list[LedgerTransaction]:
    return [record for record in records if matches(record, spec, account)]


def _ordering_key(record: LedgerTransaction) -> tuple[bool, int, int]:
    # Unledgered records sort after everything that has a ledger index
    return (
        record.ledger_index is None,
        record.ledger_index or 0,
        record.timestamp or 0,
    )


def order(
    records: Iterable[LedgerTransaction], *, descending: bool = False
) -> list[LedgerTransaction]:
    """Stable sort by ``(ledger_index, timestamp)``.

    Records with equal keys keep their input order in both directions.
    """
    return sorted(records, key=_ordering_key, reverse=descending)
