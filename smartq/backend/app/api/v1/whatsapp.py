# smartq/backend/app/api/v1/whatsapp.py

from typing import Optional

from fastapi import APIRouter, Body, Depends

from ...auth import get_current_user, require_admin
from ...models.user import StaffUser
from ...notify.base import Notifier
from ...schemas.queue import MessageRead
from ...schemas.whatsapp import WhatsAppLoginRequest, WhatsAppStatusRead
from .deps import get_notifier

router = APIRouter(prefix="/api/whatsapp", tags=["whatsapp"])


@router.get("/status", response_model=WhatsAppStatusRead)
def whatsapp_status(
    current_user: StaffUser = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
):
    status = notifier.status()
    return WhatsAppStatusRead(
        connected=status.connected,
        session_exists=status.session_exists,
        qr_code=status.qr_code,
    )


@router.post("/login", response_model=MessageRead)
async def whatsapp_login(
    payload: Optional[WhatsAppLoginRequest] = Body(None),
    current_user: StaffUser = Depends(require_admin),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Ask the notifier to reconnect. A fresh pairing code, if any, is pushed
    to /ws/events as a "qr" event rather than returned here.
    """
    clear_session = payload.clear_session if payload else False
    await notifier.connect(clear_session=clear_session)
    return {"message": "WhatsApp reconnection initiated"}
