# smartq/backend/app/schemas/queue.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from ..queue.entry import QueueStatus


class QueueJoin(BaseModel):
    # Format checks happen in QueueService so they map to ValidationError
    name: str
    phone: str


class QueueEntryRead(BaseModel):
    id: int
    name: str
    phone: str
    timestamp: datetime
    status: QueueStatus
    called_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PositionRead(BaseModel):
    position: int
    estimated_wait: int


class CustomerStatusRead(QueueEntryRead):
    # None once the customer has been called
    position: Optional[int] = None
    estimated_wait: Optional[int] = None


class CustomerActionRead(BaseModel):
    message: str
    customer: QueueEntryRead


class MessageRead(BaseModel):
    message: str
