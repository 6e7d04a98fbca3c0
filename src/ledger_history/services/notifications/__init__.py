"""Notification views: a transaction plus links to its neighbors."""

from __future__ import annotations

from ledger_history.services.notifications.neighbors import (
    NeighborLinks,
    NeighborLogger,
    NotificationNeighborResolver,
)
from ledger_history.services.notifications.service import (
    NotificationContext,
    NotificationService,
)

__all__ = [
    "NeighborLinks",
    "NeighborLogger",
    "NotificationContext",
    "NotificationNeighborResolver",
    "NotificationService",
]
