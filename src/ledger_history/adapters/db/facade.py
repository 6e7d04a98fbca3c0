from __future__ import annotations

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, func, or_, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ledger_history.adapters.db.models import Base, OutgoingTransaction
from ledger_history.infra.store import StoredTransaction
from ledger_history.models.transaction import LedgerTransaction, TxState


class RecordStoreDB:
    """SQLAlchemy-backed local record store.

    Implements ``LocalRecordStore``; the async methods run their queries on a
    worker thread so the event loop is never blocked.
    """

    def __init__(self, url: str) -> None:
        """Initialize database connection.

        Args:
            url: Database URL (e.g., "sqlite:///ledger_history.db")
        """
        self._url = url
        engine_kwargs: dict[str, Any] = {"echo": False}
        if url.startswith("sqlite"):
            # Queries run on worker threads
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in url:
                engine_kwargs["poolclass"] = StaticPool
        self._engine = create_engine(url, **engine_kwargs)
        self._session_factory = sessionmaker(bind=self._engine, class_=Session)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Context manager for database sessions."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_schema(self) -> None:
        Base.metadata.create_all(self._engine)

    def save_transaction(self, record: LedgerTransaction) -> int:
        """Insert or update a submission keyed by account and resource id.

        Returns:
            The outgoing_transaction_id of the stored row
        """
        with self.session() as session:
            row = None
            if record.client_resource_id is not None:
                row = session.scalars(
                    select(OutgoingTransaction).where(
                        OutgoingTransaction.source_account == record.source_account,
                        OutgoingTransaction.client_resource_id
                        == record.client_resource_id,
                        OutgoingTransaction.type == record.tx_type.value,
                    )
                ).first()
            if row is None:
                row = OutgoingTransaction(
                    source_account=record.source_account,
                    client_resource_id=record.client_resource_id,
                    type=record.tx_type.value,
                    state=record.state.value,
                )
                session.add(row)

            row.destination_account = record.destination_account
            row.hash = record.hash
            row.state = record.state.value
            row.result = record.result
            row.ledger_index = record.ledger_index
            row.close_time = record.timestamp
            session.flush()
            return row.outgoing_transaction_id

    def fetch_failed_transactions(
        self,
        *,
        account: str,
        ledger_index_min: int = -1,
        ledger_index_max: int = -1,
    ) -> list[LedgerTransaction]:
        stmt = select(OutgoingTransaction).where(
            OutgoingTransaction.source_account == account,
            OutgoingTransaction.state == TxState.FAILED.value,
        )
        # Unledgered failures have no index to bound, keep them
        if ledger_index_min >= 0:
            stmt = stmt.where(
                or_(
                    OutgoingTransaction.ledger_index.is_(None),
                    OutgoingTransaction.ledger_index >= ledger_index_min,
                )
            )
        if ledger_index_max >= 0:
            stmt = stmt.where(
                or_(
                    OutgoingTransaction.ledger_index.is_(None),
                    OutgoingTransaction.ledger_index <= ledger_index_max,
                )
            )
        stmt = stmt.order_by(OutgoingTransaction.outgoing_transaction_id)

        with self.session() as session:
            return [row.to_typed() for row in session.scalars(stmt)]

    def count_in_ledger(self, account: str, ledger_index: int) -> int:
        """Count locally recorded rows in one ledger; ledger-only entries are unseen."""
        stmt = (
            select(func.count())
            .select_from(OutgoingTransaction)
            .where(
                or_(
                    OutgoingTransaction.source_account == account,
                    OutgoingTransaction.destination_account == account,
                ),
                OutgoingTransaction.ledger_index == ledger_index,
            )
        )
        with self.session() as session:
            return int(session.scalar(stmt) or 0)

    def find_transaction(
        self,
        *,
        account: str | None = None,
        hash: str | None = None,
        client_resource_id: str | None = None,
    ) -> StoredTransaction | None:
        if hash is None and client_resource_id is None:
            return None

        stmt = select(OutgoingTransaction)
        if account is not None:
            stmt = stmt.where(OutgoingTransaction.source_account == account)
        if hash is not None:
            stmt = stmt.where(OutgoingTransaction.hash == hash)
        if client_resource_id is not None:
            stmt = stmt.where(
                OutgoingTransaction.client_resource_id == client_resource_id
            )
        stmt = stmt.order_by(OutgoingTransaction.outgoing_transaction_id.desc())

        with self.session() as session:
            row = session.scalars(stmt).first()
            if row is None:
                return None
            return StoredTransaction(
                hash=row.hash,
                client_resource_id=row.client_resource_id,
                transaction=row.to_typed() if row.is_authoritative else None,
            )

    async def get_failed_transactions(
        self,
        *,
        account: str,
        ledger_index_min: int = -1,
        ledger_index_max: int = -1,
    ) -> list[LedgerTransaction]:
        return await asyncio.to_thread(
            self.fetch_failed_transactions,
            account=account,
            ledger_index_min=ledger_index_min,
            ledger_index_max=ledger_index_max,
        )

    async def get_sibling_count(self, account: str, ledger_index: int) -> int:
        return await asyncio.to_thread(self.count_in_ledger, account, ledger_index)

    async def get_transaction(
        self,
        *,
        account: str | None = None,
        hash: str | None = None,
        client_resource_id: str | None = None,
    ) -> StoredTransaction | None:
        return await asyncio.to_thread(
            self.find_transaction,
            account=account,
            hash=hash,
            client_resource_id=client_resource_id,
        )
