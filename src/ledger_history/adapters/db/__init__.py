"""SQLAlchemy-backed local record store."""

from ledger_history.adapters.db.facade import RecordStoreDB
from ledger_history.adapters.db.models import Base, OutgoingTransaction

__all__ = ["Base", "OutgoingTransaction", "RecordStoreDB"]
