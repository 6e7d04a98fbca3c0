"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from ledger_history.adapters.db import RecordStoreDB


@pytest.fixture
def record_store(tmp_path: Path) -> RecordStoreDB:
    """SQLite-backed record store with an empty schema."""
    db = RecordStoreDB(f"sqlite:///{tmp_path / 'records.db'}")
    db.create_schema()
    return db
