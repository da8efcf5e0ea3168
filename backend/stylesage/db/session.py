"""Schema Bootstrap — create tables on startup for local and single-node deployments.

Invariants:
    - create_schema is idempotent (create_all skips existing tables)
    - Production schema changes go through alembic; this only covers a fresh database

Design Decisions:
    - Separate from infrastructure/database.py: the session manager never touches DDL
"""

from sqlalchemy.ext.asyncio import AsyncEngine

from stylesage.db.base import Base


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables registered on Base.metadata."""
    import stylesage.models  # noqa: F401  (registers tables)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
