from __future__ import annotations

from datetime import datetime

from sqlalchemy import TIMESTAMP, Index, Integer, String, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ledger_history.models.transaction import (
    LedgerTransaction,
    Origin,
    TxState,
    TxType,
)


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


class OutgoingTransaction(Base):
    """Transaction submitted through this service, tracked through its lifecycle."""

    __tablename__ = "outgoing_transactions"
    __table_args__ = (
        Index(
            "ix_outgoing_transactions_account_ledger", "source_account", "ledger_index"
        ),
        Index(
            "ix_outgoing_transactions_resource", "source_account", "client_resource_id"
        ),
    )

    outgoing_transaction_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    source_account: Mapped[str] = mapped_column(String, nullable=False)
    destination_account: Mapped[str | None] = mapped_column(String, nullable=True)
    client_resource_id: Mapped[str | None] = mapped_column(String, nullable=True)
    hash: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    type: Mapped[str] = mapped_column(String, nullable=False)
    state: Mapped[str] = mapped_column(String, nullable=False)
    result: Mapped[str | None] = mapped_column(String, nullable=True)
    ledger_index: Mapped[int | None] = mapped_column(Integer, nullable=True)
    close_time: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP, nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    def to_typed(self) -> LedgerTransaction:
        return LedgerTransaction(
            tx_type=TxType(self.type),
            source_account=self.source_account,
            destination_account=self.destination_account,
            state=TxState(self.state),
            origin=Origin.LOCAL,
            hash=self.hash,
            client_resource_id=self.client_resource_id,
            ledger_index=self.ledger_index,
            timestamp=self.close_time,
            result=self.result,
        )

    @property
    def is_authoritative(self) -> bool:
        """The local copy stands in for the ledger when it failed or has no hash."""
        return self.state == TxState.FAILED.value or self.hash is None
