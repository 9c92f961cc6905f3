"""Shared fixtures: a throwaway SQLite database per test and fake channels/clocks."""

import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

# Must be set before vanishchat.infra.database builds its default engine
os.environ.setdefault(
    "DATABASE_URL", "sqlite:///" + os.path.join(tempfile.gettempdir(), "vanishchat-tests.db")
)

from sqlalchemy.orm import sessionmaker  # noqa: E402

from vanishchat.infra.database import build_engine, init_db  # noqa: E402
from vanishchat.services.broadcast import BroadcastHub  # noqa: E402
from vanishchat.services.message_store import MessageStore  # noqa: E402

T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


class FakeChannel:
    """Records every frame; raises on send once ``fail`` is set."""

    def __init__(self, name: str = "channel", fail: bool = False):
        self.name = name
        self.fail = fail
        self.sent: list = []

    async def send_json(self, data) -> None:
        if self.fail:
            raise ConnectionResetError(f"{self.name} is gone")
        self.sent.append(data)

    def __repr__(self):
        return f"FakeChannel({self.name})"


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'chat.db'}")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def store(session_factory):
    return MessageStore(session_factory)


@pytest.fixture
async def hub():
    h = BroadcastHub()
    yield h
    await h.close()


@pytest.fixture
def clock():
    return FakeClock()
