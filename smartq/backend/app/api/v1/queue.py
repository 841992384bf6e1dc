# smartq/backend/app/api/v1/queue.py

from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends

from ...auth import get_current_user
from ...errors import ValidationError
from ...models.user import StaffUser
from ...notify.base import Notifier
from ...notify.dispatch import notify_called
from ...queue.entry import QueueStatus
from ...queue.service import QueueService
from ...schemas.queue import (
    CustomerActionRead,
    CustomerStatusRead,
    MessageRead,
    PositionRead,
    QueueEntryRead,
    QueueJoin,
)
from .deps import get_notifier, get_queue_service

router = APIRouter(prefix="/api", tags=["queue"])


@router.post("/queue", response_model=QueueEntryRead)
def join_queue(payload: QueueJoin, service: QueueService = Depends(get_queue_service)):
    return service.join(payload.name, payload.phone)


@router.get("/queue", response_model=List[QueueEntryRead])
def list_queue(
    status: Optional[QueueStatus] = None,
    service: QueueService = Depends(get_queue_service),
):
    """All entries still in the store, oldest first. `status` narrows the view."""
    return service.list(status)


@router.delete("/queue/{entry_id}", response_model=MessageRead)
def remove_from_queue(entry_id: str, service: QueueService = Depends(get_queue_service)):
    # Parsed by hand so a malformed id is a 400, not FastAPI's 422
    if not entry_id.isascii() or not entry_id.isdigit():
        raise ValidationError("Invalid ID")
    parsed_id = int(entry_id)
    service.remove(parsed_id)
    return {"message": "Customer removed from queue"}


@router.get("/queue/position/{phone}", response_model=PositionRead)
def queue_position(phone: str, service: QueueService = Depends(get_queue_service)):
    position = service.position(phone)
    return {"position": position, "estimated_wait": service.estimated_wait(position)}


@router.get("/queue/customer/{phone}", response_model=CustomerStatusRead)
def customer_status(phone: str, service: QueueService = Depends(get_queue_service)):
    entry, position = service.customer_status(phone)
    estimated_wait = service.estimated_wait(position) if position is not None else None
    return CustomerStatusRead(
        **asdict(entry), position=position, estimated_wait=estimated_wait
    )


@router.post("/queue/call-next", response_model=CustomerActionRead)
def call_next(
    background_tasks: BackgroundTasks,
    current_user: StaffUser = Depends(get_current_user),
    service: QueueService = Depends(get_queue_service),
    notifier: Notifier = Depends(get_notifier),
):
    entry = service.call_next()
    # Sent after the response; the transition above is already committed
    background_tasks.add_task(notify_called, notifier, entry)
    return {"message": f"{entry.name} has been called", "customer": entry}


@router.post("/customer/reached/{phone}", response_model=CustomerActionRead)
def confirm_reached(phone: str, service: QueueService = Depends(get_queue_service)):
    entry = service.confirm_reached(phone)
    return {"message": "Arrival confirmed", "customer": entry}
