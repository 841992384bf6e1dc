# smartq/backend/app/api/v1/deps.py
from fastapi import Request

from ...events import EventHub
from ...notify.base import Notifier
from ...queue.service import QueueService


def get_queue_service(request: Request) -> QueueService:
    return request.app.state.queue_service


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_event_hub(request: Request) -> EventHub:
    return request.app.state.events
