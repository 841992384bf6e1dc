# smartq/backend/app/queue/service.py
"""
Queue state machine.

    waiting -> called -> reached
    any state -> removed (row deleted)

Every mutation runs under one lock so two concurrent "call next" requests
can never pick the same entry.
"""
import logging
import re
import threading
from typing import List, Optional, Tuple

from .. import config
from ..errors import (
    DuplicateError,
    EmptyQueueError,
    NotFoundError,
    NotYourTurnError,
    ValidationError,
)
from .entry import QueueEntry, QueueStatus
from .store import QueueStore

logger = logging.getLogger(__name__)

_PHONE_SEPARATORS = re.compile(r"[\s\-().]")


def normalize_phone(phone: Optional[str]) -> str:
    """Drop spaces, dashes, dots and parentheses; keep a leading '+'."""
    return _PHONE_SEPARATORS.sub("", phone or "")


def canonical_phone(phone: Optional[str]) -> str:
    """
    One spelling per number: separators dropped and a leading +91 / 91 removed
    when what remains is a full national number.
    """
    clean = normalize_phone(phone)
    digits = clean.lstrip("+")
    code = config.PHONE_COUNTRY_CODE
    if digits.startswith(code) and len(digits) == len(code) + config.NATIONAL_NUMBER_LENGTH:
        return digits[len(code):]
    if clean.startswith("+"):
        return digits
    return clean


def mask_phone(phone: str) -> str:
    if len(phone) <= 6:
        return phone
    return phone[:3] + "*" * (len(phone) - 6) + phone[-3:]


class QueueService:
    def __init__(
        self,
        store: QueueStore,
        phone_pattern: str = config.PHONE_PATTERN,
        avg_service_minutes: int = config.AVG_SERVICE_MINUTES,
    ):
        self.store = store
        self._phone_re = re.compile(phone_pattern)
        self.avg_service_minutes = avg_service_minutes
        self._lock = threading.Lock()

    # Validation

    def validate(self, name: Optional[str], phone: Optional[str]) -> Tuple[str, str]:
        clean_name = (name or "").strip()
        if not clean_name:
            raise ValidationError("Name is required")
        if len(clean_name) > config.NAME_MAX_LENGTH:
            raise ValidationError("Name is too long")

        clean_phone = normalize_phone(phone)
        if not self._phone_re.match(clean_phone):
            raise ValidationError("Invalid phone number")
        return clean_name, canonical_phone(clean_phone)

    # Views

    def list(self, status: Optional[QueueStatus] = None) -> List[QueueEntry]:
        entries = self.store.list()
        if status is not None:
            entries = [e for e in entries if e.status == status]
        return entries

    def waiting(self) -> List[QueueEntry]:
        return self.list(QueueStatus.WAITING)

    def position(self, phone: str) -> int:
        """1-based rank among waiting entries."""
        phone = canonical_phone(phone)
        for index, entry in enumerate(self.waiting(), start=1):
            if entry.phone == phone:
                return index
        raise NotFoundError("Phone number not found in queue")

    def estimated_wait(self, position: int) -> int:
        return max(position * self.avg_service_minutes, 0)

    def customer_status(self, phone: str) -> Tuple[QueueEntry, Optional[int]]:
        """The most relevant entry for a phone and its waiting position (None once called)."""
        entry = self.store.find_by_phone(canonical_phone(phone))
        if entry is None:
            raise NotFoundError("Customer not found")
        if entry.status != QueueStatus.WAITING:
            return entry, None
        return entry, self.position(entry.phone)

    # Transitions

    def join(self, name: Optional[str], phone: Optional[str]) -> QueueEntry:
        name, phone = self.validate(name, phone)
        with self._lock:
            existing = self.store.find_by_phone(phone)
            if existing is not None and existing.status == QueueStatus.WAITING:
                raise DuplicateError("Phone number is already waiting in the queue")
            entry = self.store.append(name, phone)
        logger.info("Joined queue: id=%s phone=%s", entry.id, mask_phone(phone))
        return entry

    def call_next(self) -> QueueEntry:
        with self._lock:
            waiting = self.waiting()
            if not waiting:
                raise EmptyQueueError("Queue is empty")
            entry = self.store.set_status(waiting[0].id, QueueStatus.CALLED)
        logger.info("Called customer: id=%s phone=%s", entry.id, mask_phone(entry.phone))
        return entry

    def confirm_reached(self, phone: str) -> QueueEntry:
        with self._lock:
            entry = self.store.find_by_phone(canonical_phone(phone))
            if entry is None:
                raise NotFoundError("Customer not found in queue")
            if entry.status == QueueStatus.WAITING:
                raise NotYourTurnError("It's not your turn yet")
            if entry.status == QueueStatus.REACHED:
                return entry
            entry = self.store.set_status(entry.id, QueueStatus.REACHED)
        logger.info("Customer reached: id=%s", entry.id)
        return entry

    def remove(self, entry_id: int) -> None:
        with self._lock:
            if not self.store.remove(entry_id):
                raise NotFoundError("Customer not found in queue")
        logger.info("Removed queue entry: id=%s", entry_id)
