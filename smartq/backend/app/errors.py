# smartq/backend/app/errors.py
from typing import Optional


class SmartQError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(SmartQError):
    status_code = 400


class DuplicateError(SmartQError):
    status_code = 400


class NotFoundError(SmartQError):
    status_code = 404


class EmptyQueueError(SmartQError):
    status_code = 400


class NotYourTurnError(SmartQError):
    status_code = 400


class AuthError(SmartQError):
    """401 when credentials are missing, 403 when they are rejected."""

    status_code = 401


class NotifierError(SmartQError):
    """
    Notifier failure. From call-next it is only logged by the dispatcher;
    /api/whatsapp/login reports it with its 502 / 503 status.
    """
