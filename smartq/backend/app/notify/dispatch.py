# smartq/backend/app/notify/dispatch.py
import asyncio
import logging

from .. import config
from ..errors import NotifierError
from ..queue.entry import QueueEntry
from ..queue.service import mask_phone
from .base import Notifier

logger = logging.getLogger(__name__)

CALLED_MESSAGE = (
    "Hi {name}, it's your turn at SmartQ! "
    "Please come to the counter now."
)


def called_message(entry: QueueEntry) -> str:
    return CALLED_MESSAGE.format(name=entry.name)


async def notify_called(
    notifier: Notifier,
    entry: QueueEntry,
    timeout: float = config.WHATSAPP_SEND_TIMEOUT,
) -> bool:
    """
    Best-effort "your turn" message. The status change has already been
    committed; failures are logged and never retried.
    """
    phone = mask_phone(entry.phone)
    if not notifier.is_ready():
        logger.warning("WhatsApp not connected, skipping notification for %s", phone)
        return False
    try:
        await asyncio.wait_for(notifier.send(entry.phone, called_message(entry)), timeout)
    except asyncio.TimeoutError:
        logger.warning("WhatsApp send to %s timed out after %.1fs", phone, timeout)
        return False
    except NotifierError as exc:
        logger.warning("WhatsApp send to %s failed: %s", phone, exc)
        return False
    except Exception:
        logger.exception("WhatsApp send to %s crashed", phone)
        return False
    logger.info("WhatsApp notification sent to %s", phone)
    return True
