import itertools
import sys
from datetime import date, timedelta
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from campus_events.access_policy import Identity  # noqa: E402
from campus_events.database import build_session_factory, init_models  # noqa: E402
from campus_events.models import Event, User  # noqa: E402,F401

_user_seq = itertools.count(1)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'events.db'}")
    await init_models(engine)
    try:
        yield build_session_factory(engine)
    finally:
        await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(db):
    async def _make(role: str = "student", name: str | None = None) -> Identity:
        name = name or f"{role}{next(_user_seq)}"
        user = User(
            name=name,
            email=f"{name}@campus.example.edu",
            password_hash="not-used-in-test",
            role=role,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return Identity.from_user(user)

    return _make


@pytest.fixture
def event_payload():
    def _payload(**overrides) -> dict:
        data = {
            "title": "Robotics Club Kickoff",
            "description": "Meet the team and see this year's builds.",
            "category": "club",
            "date": (date.today() + timedelta(days=7)).isoformat(),
            "time": "18:00",
            "location": "Engineering Hall 101",
            "contact_email": "robotics@campus.example.edu",
        }
        data.update(overrides)
        return data

    return _payload
