from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from wcag_audit.platform.config import settings
from wcag_audit.platform.db.base import Base

engine_options = {
    "echo": False,
    "future": True,
    "pool_pre_ping": True,
}
if not settings.DATABASE_URL.startswith("sqlite"):
    engine_options.update(
        pool_recycle=1800,
        pool_size=20,
        max_overflow=30,  # (burst capacity)
        pool_timeout=30,
    )

engine = create_async_engine(settings.DATABASE_URL, **engine_options)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, autoflush=False, autocommit=False)


async def get_db():
    async with SessionLocal() as session:
        yield session


async def create_tables():
    """Create missing tables; local and test runs only, deployments use alembic."""
    # Register models on the metadata
    from wcag_audit.features.auth.models.user import MagicLinkToken, User  # noqa: F401
    from wcag_audit.features.scan.models.scan import Scan  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
