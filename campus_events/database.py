# campus_events/database.py
# ------------------------------------------------------------
# Async engine, session factory and the FastAPI session dependency.
# ------------------------------------------------------------
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import AsyncIterator, Mapping, Optional

from dotenv import load_dotenv
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker

load_dotenv()

logger = logging.getLogger(__name__)

# Checked in order; the first one set wins.
URL_ENV_VARS = ("DATABASE_URL", "POSTGRES_URL")

# Backend name -> the async driver the service runs on.
ASYNC_DRIVERS = {
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}

# libpq ``sslmode`` -> asyncpg ``ssl``. "prefer" and "allow" keep driver defaults.
SSLMODE_TO_ASYNCPG = {
    "require": "true",
    "verify-ca": "true",
    "verify-full": "true",
    "disable": "false",
}


def default_database_url() -> str:
    root = Path(__file__).resolve().parents[1]
    return f"sqlite+aiosqlite:///{(root / 'campus_events.db').as_posix()}"


def _asyncpg_ssl(url: URL) -> URL:
    sslmode = url.query.get("sslmode")
    if sslmode is None:
        return url
    url = url.difference_update_query(["sslmode"])
    flag = SSLMODE_TO_ASYNCPG.get(str(sslmode).strip().lower())
    if flag is not None:
        url = url.update_query_dict({"ssl": flag})
    return url


def normalize_database_url(raw_url: Optional[str]) -> Optional[str]:
    """Point ``raw_url`` at the async driver for its backend."""
    if not raw_url:
        return raw_url
    try:
        url = make_url(raw_url)
    except ArgumentError:
        logger.warning("Could not parse the configured database URL; using it as given")
        return raw_url

    driver = ASYNC_DRIVERS.get(url.get_backend_name())
    if driver is not None and url.drivername != driver:
        url = url.set(drivername=driver)
    if url.drivername == "postgresql+asyncpg":
        url = _asyncpg_ssl(url)
    # str(url) would mask the password.
    return url.render_as_string(hide_password=False)


def database_url_from_env(env: Mapping[str, str]) -> Optional[str]:
    for name in URL_ENV_VARS:
        normalized = normalize_database_url(env.get(name))
        if normalized:
            return normalized
    return None


DATABASE_URL: str = database_url_from_env(os.environ) or default_database_url()
ECHO = os.getenv("SQLALCHEMY_ECHO", "0").lower() in {"1", "true", "yes"}

Base = declarative_base()


def build_session_factory(bind: AsyncEngine) -> sessionmaker:
    return sessionmaker(bind=bind, class_=AsyncSession, autoflush=False, expire_on_commit=False)


engine: AsyncEngine = create_async_engine(DATABASE_URL, echo=ECHO, pool_pre_ping=True)
SessionLocal = build_session_factory(engine)


async def get_db() -> AsyncIterator[AsyncSession]:
    async with SessionLocal() as session:
        yield session


async def init_models(bind: Optional[AsyncEngine] = None) -> None:
    """Create any missing tables on ``bind`` (the app engine by default)."""

    import campus_events.models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
