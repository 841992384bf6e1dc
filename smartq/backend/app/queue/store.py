# smartq/backend/app/queue/store.py
"""
Queue entry storage.

Two interchangeable backends:
  - InMemoryQueueStore: the reference behaviour, everything lost on restart.
  - SqlQueueStore: the same operations over the `queue_entries` table.

Stores only keep entries and hand out ordered views; the queue rules
(uniqueness, transitions, positions) live in QueueService.
"""
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..models.queue_entry import QueueEntryRecord
from .entry import QueueEntry, QueueStatus

# Lower rank wins when several entries share a phone number
_STATUS_RELEVANCE = {
    QueueStatus.WAITING: 0,
    QueueStatus.CALLED: 1,
    QueueStatus.REACHED: 2,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def most_relevant(entries: Iterable[QueueEntry]) -> Optional[QueueEntry]:
    """
    Waiting beats called beats reached; within the same status the most
    recent entry wins.
    """
    best: Optional[QueueEntry] = None
    for entry in entries:
        if best is None:
            best = entry
            continue
        rank, best_rank = _STATUS_RELEVANCE[entry.status], _STATUS_RELEVANCE[best.status]
        if rank < best_rank or (rank == best_rank and entry.sort_key() > best.sort_key()):
            best = entry
    return best


class QueueStore(ABC):
    @abstractmethod
    def append(self, name: str, phone: str) -> QueueEntry:
        """Assign the next id, capture the timestamp, store as waiting."""

    @abstractmethod
    def get(self, entry_id: int) -> Optional[QueueEntry]:
        ...

    @abstractmethod
    def list(self) -> List[QueueEntry]:
        """All stored entries ordered by (timestamp, id)."""

    @abstractmethod
    def remove(self, entry_id: int) -> bool:
        ...

    @abstractmethod
    def find_by_phone(self, phone: str) -> Optional[QueueEntry]:
        ...

    @abstractmethod
    def set_status(self, entry_id: int, status: QueueStatus) -> Optional[QueueEntry]:
        """Update status; moving to `called` stamps called_at."""


class InMemoryQueueStore(QueueStore):
    def __init__(self):
        self._entries: Dict[int, QueueEntry] = {}
        self._next_id = 1
        self._lock = threading.RLock()

    def append(self, name: str, phone: str) -> QueueEntry:
        with self._lock:
            entry = QueueEntry(
                id=self._next_id,
                name=name,
                phone=phone,
                timestamp=utcnow(),
            )
            self._next_id += 1
            self._entries[entry.id] = entry
            return replace(entry)

    def get(self, entry_id: int) -> Optional[QueueEntry]:
        with self._lock:
            entry = self._entries.get(entry_id)
            return replace(entry) if entry else None

    def list(self) -> List[QueueEntry]:
        with self._lock:
            entries = sorted(self._entries.values(), key=QueueEntry.sort_key)
            return [replace(e) for e in entries]

    def remove(self, entry_id: int) -> bool:
        with self._lock:
            return self._entries.pop(entry_id, None) is not None

    def find_by_phone(self, phone: str) -> Optional[QueueEntry]:
        with self._lock:
            entry = most_relevant(e for e in self._entries.values() if e.phone == phone)
            return replace(entry) if entry else None

    def set_status(self, entry_id: int, status: QueueStatus) -> Optional[QueueEntry]:
        with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None:
                return None
            entry.status = status
            if status == QueueStatus.CALLED:
                entry.called_at = utcnow()
            return replace(entry)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone=True columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_entry(row: QueueEntryRecord) -> QueueEntry:
    return QueueEntry(
        id=row.id,
        name=row.name,
        phone=row.phone,
        timestamp=_aware(row.timestamp),
        status=QueueStatus(row.status),
        called_at=_aware(row.called_at),
    )


class SqlQueueStore(QueueStore):
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def append(self, name: str, phone: str) -> QueueEntry:
        with self._session_factory() as db:
            row = QueueEntryRecord(
                name=name,
                phone=phone,
                timestamp=utcnow(),
                status=QueueStatus.WAITING.value,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return _to_entry(row)

    def get(self, entry_id: int) -> Optional[QueueEntry]:
        with self._session_factory() as db:
            row = db.get(QueueEntryRecord, entry_id)
            return _to_entry(row) if row else None

    def list(self) -> List[QueueEntry]:
        with self._session_factory() as db:
            rows = (
                db.query(QueueEntryRecord)
                .order_by(QueueEntryRecord.timestamp.asc(), QueueEntryRecord.id.asc())
                .all()
            )
            return [_to_entry(r) for r in rows]

    def remove(self, entry_id: int) -> bool:
        with self._session_factory() as db:
            row = db.get(QueueEntryRecord, entry_id)
            if row is None:
                return False
            db.delete(row)
            db.commit()
            return True

    def find_by_phone(self, phone: str) -> Optional[QueueEntry]:
        with self._session_factory() as db:
            rows = db.query(QueueEntryRecord).filter(QueueEntryRecord.phone == phone).all()
            return most_relevant(_to_entry(r) for r in rows)

    def set_status(self, entry_id: int, status: QueueStatus) -> Optional[QueueEntry]:
        with self._session_factory() as db:
            row = db.get(QueueEntryRecord, entry_id)
            if row is None:
                return None
            row.status = status.value
            if status == QueueStatus.CALLED:
                row.called_at = utcnow()
            db.commit()
            db.refresh(row)
            return _to_entry(row)
