"""Database engine, session factory, and startup migration helpers."""

from __future__ import annotations

import asyncio
from pathlib import Path

from alembic.config import Config
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard import models as _models
from taskboard.core.logging import get_logger

# Import model modules so SQLModel metadata is fully registered at startup.
_MODEL_REGISTRY = _models

BACKEND_ROOT = Path(__file__).resolve().parents[2]
logger = get_logger(__name__)


def normalize_database_url(database_url: str) -> str:
    """Map bare driver names onto the async drivers the engine expects."""
    if "://" not in database_url:
        return database_url
    scheme, rest = database_url.split("://", 1)
    if scheme == "postgresql":
        return f"postgresql+psycopg://{rest}"
    if scheme == "sqlite":
        return f"sqlite+aiosqlite://{rest}"
    return database_url


def create_engine(database_url: str) -> AsyncEngine:
    """Create an async engine for *database_url*."""
    return create_async_engine(normalize_database_url(database_url), pool_pre_ping=True)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the session factory used by the SQL task store."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def _alembic_config(database_url: str) -> Config:
    alembic_ini = BACKEND_ROOT / "alembic.ini"

    alembic_cfg = Config(str(alembic_ini))
    alembic_cfg.set_main_option("script_location", str(BACKEND_ROOT / "migrations"))
    alembic_cfg.attributes["database_url"] = normalize_database_url(database_url)
    alembic_cfg.attributes["configure_logger"] = False
    return alembic_cfg


def run_migrations(database_url: str) -> None:
    """Apply Alembic migrations to the latest revision."""
    from alembic import command

    logger.info("db.migrations.running")
    command.upgrade(_alembic_config(database_url), "head")
    logger.info("db.migrations.complete")


async def init_db(engine: AsyncEngine, *, auto_migrate: bool = False) -> None:
    """Initialize database schema, running migrations when configured."""
    if auto_migrate:
        versions_dir = BACKEND_ROOT / "migrations" / "versions"
        if any(versions_dir.glob("*.py")):
            database_url = engine.url.render_as_string(hide_password=False)
            await asyncio.to_thread(run_migrations, database_url)
            return
        logger.warning("db.migrations.missing falling back to create_all")

    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)
