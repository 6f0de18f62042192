"""Pending write operations awaiting a yes/no from the retailer.

Entries are keyed by `(tenant_id, role)` and expire after a TTL. The store
lives in process memory, so a pending operation is only visible to the
worker that created it.
"""

from __future__ import annotations

import datetime
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from app.core.logging import get_logger
from app.features.assistant.schemas import ActionName
from app.shared.models import utc_now

logger = get_logger(__name__)

PendingKey = tuple[int, str]


@dataclass(frozen=True)
class PendingOperation:
    """A write the assistant proposed and is waiting to have confirmed."""

    action: ActionName
    params: dict[str, Any] = field(default_factory=dict)
    message: str = ""


@dataclass(frozen=True)
class _Entry:
    operation: PendingOperation
    expires_at: datetime.datetime


class PendingOperationStore:
    """Keyed store of pending operations with TTL expiry."""

    def __init__(
        self,
        ttl: datetime.timedelta,
        clock: Callable[[], datetime.datetime] = utc_now,
    ) -> None:
        self.ttl = ttl
        self.clock = clock
        self._entries: dict[PendingKey, _Entry] = {}

    def put(self, key: PendingKey, operation: PendingOperation) -> None:
        """Store (or replace) the pending operation for a key."""
        self.purge_expired()
        self._entries[key] = _Entry(operation, self.clock() + self.ttl)
        logger.debug("assistant.pending_stored", tenant_id=key[0], role=key[1], action=operation.action)

    def get(self, key: PendingKey) -> PendingOperation | None:
        """Return the live operation for a key, evicting it if expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self.clock():
            del self._entries[key]
            logger.info("assistant.pending_expired", tenant_id=key[0], role=key[1])
            return None
        return entry.operation

    def pop(self, key: PendingKey) -> PendingOperation | None:
        """Remove and return the live operation for a key."""
        operation = self.get(key)
        self._entries.pop(key, None)
        return operation

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were dropped."""
        now = self.clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
