from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings

_engine: Optional[AsyncEngine] = None
_SessionLocal: Optional[async_sessionmaker[AsyncSession]] = None


def _ensure_async_url(url: str) -> str:
	"""Ensure the SQLAlchemy URL uses an async driver.

	Handles common provider formats like:
	- postgresql://...
	- postgres://...
	- postgresql+psycopg://... (or +psycopg2)
	- sqlite:///... (local development)

	Returns the URL unchanged if it already names an async driver.
	"""
	if url.startswith("postgresql+asyncpg://") or url.startswith("sqlite+aiosqlite://"):
		return url

	# Normalize short scheme used by some providers (e.g. "postgres://")
	if url.startswith("postgres://"):
		return url.replace("postgres://", "postgresql+asyncpg://", 1)

	if url.startswith("postgresql://"):
		return url.replace("postgresql://", "postgresql+asyncpg://", 1)

	if url.startswith("postgresql+psycopg2://"):
		return url.replace("postgresql+psycopg2://", "postgresql+asyncpg://", 1)
	if url.startswith("postgresql+psycopg://"):
		return url.replace("postgresql+psycopg://", "postgresql+asyncpg://", 1)

	if url.startswith("sqlite://"):
		return url.replace("sqlite://", "sqlite+aiosqlite://", 1)

	return url


def init_engine_and_session(database_url: Optional[str] = None) -> async_sessionmaker[AsyncSession]:
	global _engine, _SessionLocal
	if _SessionLocal is not None:
		return _SessionLocal
	url = database_url or settings.DATABASE_URL
	if not url:
		raise RuntimeError("DATABASE_URL is not configured. Set it in the environment or .env file.")
	_engine = create_async_engine(_ensure_async_url(url), pool_pre_ping=True, future=True)
	_SessionLocal = async_sessionmaker(bind=_engine, expire_on_commit=False)
	return _SessionLocal


async def create_all() -> None:
	"""Create missing tables directly from the ORM metadata (development only)."""
	from app.models import Base

	init_engine_and_session()
	assert _engine is not None
	async with _engine.begin() as conn:
		await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
	global _engine, _SessionLocal
	if _engine is not None:
		await _engine.dispose()
	_engine = None
	_SessionLocal = None
