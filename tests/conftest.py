# tests/conftest.py
import os

# Must be set before the app modules read their configuration
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["QUEUE_BACKEND"] = "memory"
os.environ.pop("WHATSAPP_GATEWAY_URL", None)

import pytest
from fastapi.testclient import TestClient

from smartq.backend.app.db import Base, SessionLocal, engine
from smartq.backend.app.errors import NotifierError
from smartq.backend.app.main import create_app
from smartq.backend.app.models.queue_entry import QueueEntryRecord
from smartq.backend.app.notify.base import Notifier, NotifierStatus
from smartq.backend.app.queue.service import QueueService
from smartq.backend.app.queue.store import InMemoryQueueStore, SqlQueueStore


class FakeNotifier(Notifier):
    def __init__(self, ready=True, fail=False):
        super().__init__()
        self.ready = ready
        self.fail = fail
        self.sent = []
        self.connect_calls = []

    def is_ready(self):
        return self.ready

    def status(self):
        return NotifierStatus(connected=self.ready, session_exists=self.ready)

    async def send(self, phone, text):
        if self.fail:
            raise NotifierError("boom")
        self.sent.append((phone, text))

    async def connect(self, clear_session=False):
        self.connect_calls.append(clear_session)
        await self._emit("qr", {"qrCode": "fake-qr"})


@pytest.fixture
def sql_session_factory():
    Base.metadata.create_all(bind=engine)
    yield SessionLocal
    with SessionLocal() as db:
        db.query(QueueEntryRecord).delete()
        db.commit()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        return InMemoryQueueStore()
    return SqlQueueStore(request.getfixturevalue("sql_session_factory"))


@pytest.fixture
def service():
    return QueueService(InMemoryQueueStore())


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def app(notifier):
    return create_app(store=InMemoryQueueStore(), notifier=notifier)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def _login(client, path, username, password):
    resp = client.post(path, json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
def admin_headers(client):
    return _login(client, "/api/admin/login", "admin", "admin123")


@pytest.fixture
def barber_headers(client):
    return _login(client, "/api/barber/login", "barber", "barber123")
