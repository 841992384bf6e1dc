# smartq/backend/app/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import config
from .api.v1.auth import router as auth_router
from .api.v1.events import ws_router
from .api.v1.queue import router as queue_router
from .api.v1.whatsapp import router as whatsapp_router
from .auth import seed_staff_user
from .db import Base, SessionLocal, engine
from .errors import SmartQError
from .events import EventHub
from .models.user import ROLE_ADMIN, ROLE_BARBER
from .notify.base import Notifier
from .notify.whatsapp import build_notifier
from .queue.service import QueueService
from .queue.store import InMemoryQueueStore, QueueStore, SqlQueueStore

logger = logging.getLogger(__name__)


def build_store() -> QueueStore:
    if config.QUEUE_BACKEND == "sql":
        return SqlQueueStore(SessionLocal)
    if config.QUEUE_BACKEND != "memory":
        raise RuntimeError(f"Unknown QUEUE_BACKEND '{config.QUEUE_BACKEND}'")
    return InMemoryQueueStore()


def seed_initial_users() -> None:
    db = SessionLocal()
    try:
        seed_staff_user(db, config.ADMIN_USERNAME, config.ADMIN_PASSWORD, ROLE_ADMIN)
        seed_staff_user(db, config.BARBER_USERNAME, config.BARBER_PASSWORD, ROLE_BARBER)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if config.SECRET_KEY == config.DEFAULT_SECRET_KEY:
        logger.warning("SECRET_KEY not set, using the development default")
    Base.metadata.create_all(bind=engine)
    seed_initial_users()

    notifier: Notifier = app.state.notifier
    notifier.on_status_change(app.state.events.broadcast)
    await notifier.start()
    try:
        yield
    finally:
        await notifier.stop()


def create_app(
    store: Optional[QueueStore] = None,
    notifier: Optional[Notifier] = None,
) -> FastAPI:
    app = FastAPI(title="SmartQ Queue Manager", lifespan=lifespan)

    app.state.queue_service = QueueService(store if store is not None else build_store())
    app.state.notifier = notifier if notifier is not None else build_notifier()
    app.state.events = EventHub()

    app.include_router(queue_router)
    app.include_router(auth_router)
    app.include_router(whatsapp_router)
    app.include_router(ws_router)

    @app.exception_handler(SmartQError)
    async def smartq_error_handler(request: Request, exc: SmartQError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def invalid_request_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid data", "errors": jsonable_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


config.configure_logging()
app = create_app()
