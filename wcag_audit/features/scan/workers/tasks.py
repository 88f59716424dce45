import asyncio

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from wcag_audit.features.scan.services.orchestrator import ScanOrchestrator
from wcag_audit.platform.celery_app import celery_app
from wcag_audit.platform.config import settings
from wcag_audit.platform.logger import get_logger

logger = get_logger(__name__)


async def _run(scan_id: str, url: str):
    # Each task gets its own event loop, so pooled connections cannot be shared
    engine = create_async_engine(settings.DATABASE_URL, poolclass=NullPool)
    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
    try:
        orchestrator = ScanOrchestrator.from_settings(settings, session_factory=session_factory)
        return await orchestrator.run_audit(scan_id, url)
    finally:
        await engine.dispose()


@celery_app.task(name="wcag_audit.scan.run_accessibility_scan")
def run_accessibility_scan(scan_id: str, url: str):
    """Run the audit for a pending scan and store its terminal state."""
    logger.info(f"Worker picked up scan {scan_id}")
    status = asyncio.run(_run(scan_id, url))
    return {"scan_id": scan_id, "status": status.value if status else None}
