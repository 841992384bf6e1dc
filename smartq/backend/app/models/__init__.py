# smartq/backend/app/models/__init__.py

from .user import StaffUser
from .queue_entry import QueueEntryRecord

__all__ = ["StaffUser", "QueueEntryRecord"]
