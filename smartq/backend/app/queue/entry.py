# smartq/backend/app/queue/entry.py
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class QueueStatus(str, Enum):
    WAITING = "waiting"
    CALLED = "called"
    REACHED = "reached"


@dataclass
class QueueEntry:
    id: int
    name: str
    phone: str
    timestamp: datetime
    status: QueueStatus = QueueStatus.WAITING
    called_at: Optional[datetime] = None

    def sort_key(self):
        # FIFO by timestamp, ties broken by insertion order
        return (self.timestamp, self.id)
