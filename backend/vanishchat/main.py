# vanishchat/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from vanishchat.api import chat_ws, messages
from vanishchat.core.config import JANITOR_INTERVAL_SECONDS, SCAN_INTERVAL_SECONDS
from vanishchat.core.limiter import limiter
from vanishchat.core.message import MessageService
from vanishchat.core.message_logic import utcnow
from vanishchat.core.rate_tracker import RateTracker
from vanishchat.core.scheduler import RecurringTask
from vanishchat.infra.database import SessionLocal, check_connection, engine, init_db
from vanishchat.services.broadcast import BroadcastHub
from vanishchat.services.expiry_scanner import ExpiryScanner
from vanishchat.services.message_store import MessageStore
from vanishchat.utils.logger import setup_logger

logger = logging.getLogger(__name__)


def create_app(
    bind=engine,
    session_factory=SessionLocal,
    scan_interval: float = SCAN_INTERVAL_SECONDS,
    janitor_interval: float = JANITOR_INTERVAL_SECONDS,
    clock=utcnow,
    store_override: Optional[MessageStore] = None,
) -> FastAPI:
    setup_logger()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not check_connection(bind):
            raise RuntimeError("Database is unreachable; refusing to start")
        init_db(bind)

        hub = BroadcastHub()
        tracker = RateTracker()
        store = store_override or MessageStore(session_factory)
        scanner = ExpiryScanner(store, hub, interval=scan_interval, clock=clock)
        janitor = RecurringTask(
            "activity-janitor", janitor_interval, lambda: tracker.sweep(clock())
        )

        app.state.hub = hub
        app.state.tracker = tracker
        app.state.store = store
        app.state.scanner = scanner
        app.state.messages = MessageService(store, hub, tracker, clock=clock)

        scanner.start()
        janitor.start()
        logger.info("🚀 VanishChat ready")
        try:
            yield
        finally:
            await scanner.stop()
            await janitor.stop()
            await hub.close()
            logger.info("VanishChat stopped")

    app = FastAPI(
        title="VanishChat Backend",
        version="1.0.0",
        description="Ephemeral encrypted group chat with adaptive message lifetimes",
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Register routers
    app.include_router(messages.router, tags=["Messages"])
    app.include_router(chat_ws.router, tags=["Chat"])

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app


app = create_app()
