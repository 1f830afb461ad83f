"""In-process change notifications for committed writes.

Every ORM flush records ``(table, action, id)`` for the rows it touched on
the session; the records are published to subscribers only once the
session commits and dropped on rollback. Bulk statements that bypass the
unit of work register their change with ``record_change``.

Subscribers are asyncio queues, consumed by the ``/api/v1/events``
server-sent-event stream.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from typing import Literal

from sqlalchemy import event
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

ChangeAction = Literal["insert", "update", "delete"]

_PENDING_KEY = "pending_changes"
SUBSCRIBER_QUEUE_SIZE = 256


@dataclass(frozen=True)
class ChangeEvent:
    """One committed row change. ``id`` is None for table-wide changes."""

    table: str
    action: ChangeAction
    id: int | None = None

    def to_dict(self) -> dict:
        return asdict(self)


class ChangeFeed:
    """Fan-out of change events to any number of subscribers."""

    def __init__(self, queue_size: int = SUBSCRIBER_QUEUE_SIZE):
        self.queue_size = queue_size
        self._subscribers: set[asyncio.Queue[ChangeEvent]] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, change: ChangeEvent) -> None:
        """Deliver an event to every subscriber without blocking.

        A subscriber whose queue is full misses the event.
        """
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(change)
            except asyncio.QueueFull:
                logger.warning(f"Change feed subscriber is full, dropping {change}")

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[asyncio.Queue[ChangeEvent]]:
        """Register a queue for the duration of the ``async with`` block."""
        queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=self.queue_size)
        self._subscribers.add(queue)
        logger.debug(f"Change feed subscriber added ({self.subscriber_count} active)")
        try:
            yield queue
        finally:
            self._subscribers.discard(queue)
            logger.debug(f"Change feed subscriber removed ({self.subscriber_count} active)")


# Global feed instance
change_feed = ChangeFeed()


def record_change(session: Session, table: str, action: ChangeAction, id: int | None = None) -> None:
    """Queue a change on the session; it is published after commit."""
    session.info.setdefault(_PENDING_KEY, []).append(ChangeEvent(table, action, id))


def _row_id(obj) -> int | None:
    value = getattr(obj, "id", None)
    return value if isinstance(value, int) else None


@event.listens_for(Session, "after_flush")
def _collect_flushed_changes(session: Session, flush_context) -> None:
    for obj in session.new:
        record_change(session, obj.__tablename__, "insert", _row_id(obj))
    for obj in session.dirty:
        if session.is_modified(obj, include_collections=False):
            record_change(session, obj.__tablename__, "update", _row_id(obj))
    for obj in session.deleted:
        record_change(session, obj.__tablename__, "delete", _row_id(obj))


@event.listens_for(Session, "after_commit")
def _publish_committed_changes(session: Session) -> None:
    for change in session.info.pop(_PENDING_KEY, []):
        change_feed.publish(change)


@event.listens_for(Session, "after_rollback")
def _discard_rolled_back_changes(session: Session) -> None:
    session.info.pop(_PENDING_KEY, None)
