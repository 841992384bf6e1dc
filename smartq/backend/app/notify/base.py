# smartq/backend/app/notify/base.py
"""
Notifier contract.

The pairing / session protocol lives outside this service; a notifier only
reports readiness, sends text and tells listeners when its state changes.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..errors import NotifierError

logger = logging.getLogger(__name__)

# (event, data) with event one of "qr", "connected", "disconnected"
StatusListener = Callable[[str, Dict[str, Any]], Awaitable[None]]


@dataclass(frozen=True)
class NotifierStatus:
    connected: bool
    session_exists: bool
    qr_code: Optional[str] = None


class Notifier(ABC):
    def __init__(self):
        self._listeners: List[StatusListener] = []

    def on_status_change(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    async def _emit(self, event: str, data: Optional[Dict[str, Any]] = None) -> None:
        for listener in list(self._listeners):
            try:
                await listener(event, data or {})
            except Exception:
                logger.exception("Status listener failed for event '%s'", event)

    @abstractmethod
    def is_ready(self) -> bool:
        ...

    @abstractmethod
    def status(self) -> NotifierStatus:
        ...

    @abstractmethod
    async def send(self, phone: str, text: str) -> None:
        """Deliver a text message. Raises NotifierError on failure."""

    @abstractmethod
    async def connect(self, clear_session: bool = False) -> None:
        """(Re)connect, optionally discarding the stored session first."""

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass


class DisabledNotifier(Notifier):
    """Used when no WhatsApp gateway is configured."""

    def is_ready(self) -> bool:
        return False

    def status(self) -> NotifierStatus:
        return NotifierStatus(connected=False, session_exists=False)

    async def send(self, phone: str, text: str) -> None:
        raise NotifierError("WhatsApp not configured")

    async def connect(self, clear_session: bool = False) -> None:
        raise NotifierError("WhatsApp not configured", status_code=503)
