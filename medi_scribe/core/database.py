"""Database engine and async session factory."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncGenerator
from functools import lru_cache

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from medi_scribe.config import get_settings
from medi_scribe.core.models import Base, Doctor

logger = logging.getLogger(__name__)


def get_database_url() -> str:
    return get_settings().database_url


@lru_cache
def _get_engine():
    url = get_database_url()
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=False)
    return create_async_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        echo=False,
    )


@lru_cache
def _get_session_factory():
    return async_sessionmaker(_get_engine(), class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an async session."""
    async with _get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create all tables (dev only)."""
    engine = _get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await seed_first_doctor()


async def seed_first_doctor() -> None:
    """Create the first doctor account if configured and not yet present."""
    settings = get_settings()
    if not settings.first_admin_email or not settings.first_admin_password:
        return

    from medi_scribe.core.auth import hash_password

    async with _get_session_factory()() as session:
        result = await session.execute(
            select(Doctor).where(Doctor.email == settings.first_admin_email)
        )
        if result.scalar_one_or_none():
            return

        doctor = Doctor(
            full_name="Administrador",
            email=settings.first_admin_email,
            specialty=settings.default_specialty,
            password_hash=hash_password(settings.first_admin_password),
        )
        session.add(doctor)
        await session.commit()
        logger.info("Seeded doctor account: %s", settings.first_admin_email)


async def ping_database(session: AsyncSession) -> float:
    """Run a trivial query and return its latency in milliseconds."""
    start = time.perf_counter()
    await session.execute(text("SELECT 1"))
    return (time.perf_counter() - start) * 1000


async def close_db() -> None:
    """Release pooled connections on shutdown."""
    await _get_engine().dispose()
