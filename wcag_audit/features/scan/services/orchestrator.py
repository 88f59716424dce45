"""
Scan Orchestrator

submit_scan: validate -> quota -> create pending record -> run or dispatch audit
run_audit:   audit -> score + violations -> completed | failed

run_audit never raises: whatever goes wrong during the audit ends as a
failed record, and a failure to persist that state is only logged.
"""
import asyncio
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from fastapi import BackgroundTasks

from wcag_audit.features.scan.models.scan import Scan, ScanStatus
from wcag_audit.features.scan.schemas.scan import Violation
from wcag_audit.features.scan.services.auditors import AuditError, AuditResult, Auditor, AuditTimeout, build_auditor
from wcag_audit.features.scan.services.auditors.base import MAX_NODES_PER_FINDING
from wcag_audit.features.scan.services.scoring import compute_score, normalize_impact
from wcag_audit.features.scan.services.store import ScanRecordStore
from wcag_audit.features.scan.services.translator import translate
from wcag_audit.platform.db.session import SessionLocal
from wcag_audit.platform.exceptions import InvalidInput, QuotaExceeded, ScanError, ScanFailed
from wcag_audit.platform.logger import get_logger
from wcag_audit.platform.utils.url_validator import validate_url

logger = get_logger(__name__)


def month_start(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return datetime(now.year, now.month, 1, tzinfo=timezone.utc)


class ScanOrchestrator:
    def __init__(
        self,
        auditor: Auditor,
        session_factory=SessionLocal,
        score_strategy: str = "direct",
        mode: str = "sync",
        dispatcher: str = "inline",
        audit_timeout: Optional[float] = None,
        monthly_quota: int = 5,
        enforce_quota: bool = True,
        max_violations: int = 20,
    ):
        self.auditor = auditor
        self.session_factory = session_factory
        self.score_strategy = score_strategy
        self.mode = mode
        self.dispatcher = dispatcher
        self.audit_timeout = audit_timeout
        self.monthly_quota = monthly_quota
        self.enforce_quota = enforce_quota
        self.max_violations = max_violations
        self._detached = set()

    @classmethod
    def from_settings(cls, settings, session_factory=SessionLocal, auditor: Optional[Auditor] = None):
        return cls(
            auditor=auditor or build_auditor(settings),
            session_factory=session_factory,
            score_strategy=settings.SCORE_STRATEGY,
            mode=settings.SCAN_MODE,
            dispatcher=settings.SCAN_DISPATCHER,
            audit_timeout=settings.audit_timeout_seconds,
            monthly_quota=settings.MONTHLY_SCAN_QUOTA,
            enforce_quota=settings.ENFORCE_MONTHLY_QUOTA,
            max_violations=settings.MAX_VIOLATIONS,
        )

    # ── Submission ──────────────────────────────

    async def submit_scan(
        self,
        url,
        user_id: Optional[str] = None,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> Scan:
        is_valid, url_str, error_message = validate_url(url)
        if not is_valid:
            logger.info(f"Rejected scan submission: {error_message}")
            raise InvalidInput(details=error_message)

        async with self.session_factory() as db:
            store = ScanRecordStore(db)
            if user_id and self.enforce_quota:
                await self._check_quota(store, user_id)
            scan = await store.create(url_str, user_id=user_id, audit_backend=self.auditor.name)

        if self.mode == "sync":
            status = await self.run_audit(scan.id, url_str)
            if status != ScanStatus.completed:
                raise ScanFailed()
            return scan

        self._dispatch(scan.id, url_str, background_tasks)
        return scan

    async def _check_quota(self, store: ScanRecordStore, user_id: str):
        used = await store.count_since(user_id, month_start())
        if used >= self.monthly_quota:
            logger.warning(f"Monthly quota reached for user {user_id} ({used}/{self.monthly_quota})")
            raise QuotaExceeded(details={"monthly_quota": self.monthly_quota, "scans_this_month": used})

    def _dispatch(self, scan_id: str, url: str, background_tasks: Optional[BackgroundTasks]):
        if self.dispatcher == "celery":
            from wcag_audit.features.scan.workers.tasks import run_accessibility_scan

            try:
                run_accessibility_scan.delay(scan_id, url)
            except Exception as e:
                logger.error(f"Could not queue scan {scan_id}: {e}")
                self._detach(self._persist_failure(scan_id))
                raise ScanFailed() from e
            logger.info(f"Queued scan {scan_id} on Celery")
        elif background_tasks is not None:
            background_tasks.add_task(self.run_audit, scan_id, url)
            logger.info(f"Scheduled scan {scan_id} as a background task")
        else:
            self._detach(self.run_audit(scan_id, url))
            logger.info(f"Detached scan {scan_id}")

    def _detach(self, coro):
        # Keep a reference so the task is not garbage collected mid-run
        task = asyncio.get_running_loop().create_task(coro)
        self._detached.add(task)
        task.add_done_callback(self._detached.discard)

    # ── Execution ───────────────────────────────

    async def run_audit(self, scan_id: str, url: str) -> Optional[ScanStatus]:
        """Audit url and write the terminal state of scan_id. Returns the persisted status."""
        logger.info(f"Starting {self.auditor.name} audit for scan {scan_id} ({url})")
        try:
            result = await self._audit(url)
            score, violations = self.build_outcome(result)
        except AuditError as e:
            logger.warning(f"Audit failed for scan {scan_id} ({type(e).__name__}): {e}")
            return await self._persist_failure(scan_id)
        except Exception as e:
            logger.error(f"Unexpected error while auditing scan {scan_id}: {e}", exc_info=True)
            return await self._persist_failure(scan_id)

        try:
            async with self.session_factory() as db:
                await ScanRecordStore(db).mark_completed(scan_id, score=score, violations=violations)
        except ScanError as e:
            logger.error(f"Could not store results of scan {scan_id}: {e.message}")
            return await self._persist_failure(scan_id)
        except Exception as e:
            logger.error(f"Could not store results of scan {scan_id}: {e}", exc_info=True)
            return await self._persist_failure(scan_id)

        logger.info(f"Scan {scan_id} completed: score={score}, violations={len(violations)}")
        return ScanStatus.completed

    async def _audit(self, url: str) -> AuditResult:
        if self.audit_timeout is None:
            return await self.auditor.audit(url, None)
        try:
            return await asyncio.wait_for(self.auditor.audit(url, self.audit_timeout), timeout=self.audit_timeout)
        except asyncio.TimeoutError as e:
            raise AuditTimeout(f"Audit exceeded {self.audit_timeout}s") from e

    async def _persist_failure(self, scan_id: str) -> Optional[ScanStatus]:
        try:
            async with self.session_factory() as db:
                await ScanRecordStore(db).mark_failed(scan_id)
        except ScanError as e:
            logger.error(f"Could not mark scan {scan_id} as failed: {e.message}")
            return None
        except Exception as e:
            logger.error(f"Could not mark scan {scan_id} as failed: {e}", exc_info=True)
            return None
        return ScanStatus.failed

    def build_outcome(self, result: AuditResult) -> Tuple[int, List[dict]]:
        violations = []
        for finding in result.findings[: self.max_violations]:
            message = translate(finding.code, finding.title, finding.description)
            violation = Violation(
                id=finding.code,
                impact=normalize_impact(finding.impact),
                description=message.title,
                help=message.help,
                nodes=finding.nodes[:MAX_NODES_PER_FINDING],
            )
            violations.append(violation.model_dump(mode="json"))

        impacts = result.impacts or [finding.impact for finding in result.findings]
        score = compute_score(self.score_strategy, result.category_score, impacts)
        return score, violations
