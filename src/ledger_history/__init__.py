"""Paginated account transaction history over a remote ledger and local store."""

__version__ = "0.1.0"
