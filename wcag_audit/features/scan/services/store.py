from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import asc, desc, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wcag_audit.features.scan.models.scan import Scan, ScanStatus
from wcag_audit.platform.exceptions import ScanAlreadyFinalized, ScanNotFound, StoreUnavailable
from wcag_audit.platform.logger import get_logger

logger = get_logger(__name__)

MAX_VIOLATIONS = 20


class ScanRecordStore:
    """
    Persistence for scan records.

    Any database failure surfaces as StoreUnavailable. Terminal transitions
    are conditional on the row still being pending, so a finished scan is
    never rewritten.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _rollback(self):
        try:
            await self.db.rollback()
        except SQLAlchemyError as e:
            logger.error(f"Rollback failed: {e}")

    async def create(
        self,
        url: str,
        user_id: Optional[str] = None,
        audit_backend: Optional[str] = None,
    ) -> Scan:
        scan = Scan(url=url, user_id=user_id, audit_backend=audit_backend, status=ScanStatus.pending)
        try:
            self.db.add(scan)
            await self.db.commit()
            await self.db.refresh(scan)
        except SQLAlchemyError as e:
            await self._rollback()
            logger.error(f"Failed to create scan for {url}: {e}")
            raise StoreUnavailable() from e

        logger.info(f"Created pending scan {scan.id} for {url}")
        return scan

    async def get(self, scan_id: str) -> Optional[Scan]:
        try:
            query = select(Scan).where(Scan.id == scan_id).execution_options(populate_existing=True)
            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Failed to read scan {scan_id}: {e}")
            raise StoreUnavailable() from e

    async def update(
        self,
        scan_id: str,
        status: ScanStatus,
        score: Optional[int] = None,
        violations: Optional[List[dict]] = None,
    ) -> Scan:
        if status == ScanStatus.completed:
            if score is None or violations is None:
                raise ValueError("A completed scan needs both a score and a violations list")
            if not 0 <= score <= 100:
                raise ValueError(f"Score out of range: {score}")
            if len(violations) > MAX_VIOLATIONS:
                raise ValueError(f"At most {MAX_VIOLATIONS} violations can be stored")
        elif status == ScanStatus.failed:
            if score is not None or violations is not None:
                raise ValueError("A failed scan carries no score or violations")
        else:
            raise ValueError(f"Scans can only move to a terminal status, not {status}")

        stmt = (
            update(Scan)
            .where(Scan.id == scan_id, Scan.status == ScanStatus.pending)
            .values(
                status=status,
                score=score,
                violations=violations,
                completed_at=datetime.now(timezone.utc),
            )
        )
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self._rollback()
            logger.error(f"Failed to update scan {scan_id} to {status.value}: {e}")
            raise StoreUnavailable() from e

        if result.rowcount == 0:
            existing = await self.get(scan_id)
            if existing is None:
                raise ScanNotFound()
            logger.warning(f"Scan {scan_id} already in terminal state: {existing.status}")
            raise ScanAlreadyFinalized()

        scan = await self.get(scan_id)
        logger.info(f"Scan {scan_id} marked {status.value}")
        return scan

    async def mark_completed(self, scan_id: str, score: int, violations: List[dict]) -> Scan:
        return await self.update(scan_id, ScanStatus.completed, score=score, violations=violations)

    async def mark_failed(self, scan_id: str) -> Scan:
        return await self.update(scan_id, ScanStatus.failed)

    async def get_latest_by_url(self, url: str) -> Optional[Scan]:
        query = (
            select(Scan)
            .where(Scan.url == url)
            .order_by(desc(Scan.created_at), desc(Scan.id))
            .limit(1)
        )
        try:
            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Failed to read latest scan for {url}: {e}")
            raise StoreUnavailable() from e

    async def list_by_user(self, user_id: str, limit: int = 20, newest_first: bool = True) -> List[Scan]:
        order = (desc(Scan.created_at), desc(Scan.id)) if newest_first else (asc(Scan.created_at), asc(Scan.id))
        query = select(Scan).where(Scan.user_id == user_id).order_by(*order).limit(limit)
        try:
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch scans for user {user_id}: {e}")
            raise StoreUnavailable() from e

    async def count_since(self, user_id: str, since: datetime) -> int:
        query = select(func.count(Scan.id)).where(Scan.user_id == user_id, Scan.created_at >= since)
        try:
            result = await self.db.execute(query)
            return result.scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Failed to count scans for user {user_id}: {e}")
            raise StoreUnavailable() from e
