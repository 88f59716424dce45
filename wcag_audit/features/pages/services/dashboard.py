from typing import List

from wcag_audit.features.scan.models.scan import Scan, ScanStatus
from wcag_audit.features.scan.schemas.scan import DashboardOut, DashboardStats, ScanOut
from wcag_audit.features.scan.services.orchestrator import month_start
from wcag_audit.features.scan.services.store import ScanRecordStore


def remaining_quota(scans_this_month: int, monthly_quota: int) -> int:
    return max(0, monthly_quota - scans_this_month)


def compute_stats(scans: List[Scan]) -> DashboardStats:
    completed = [s for s in scans if s.status == ScanStatus.completed]
    scores = [s.score for s in completed if s.score is not None]
    return DashboardStats(
        total_scans=len(scans),
        completed_scans=len(completed),
        failed_scans=sum(1 for s in scans if s.status == ScanStatus.failed),
        pending_scans=sum(1 for s in scans if s.status == ScanStatus.pending),
        average_score=round(sum(scores) / len(scores)) if scores else None,
    )


async def build_dashboard(store: ScanRecordStore, user_id: str, monthly_quota: int, limit: int = 20) -> DashboardOut:
    scans = await store.list_by_user(user_id, limit=limit, newest_first=True)
    used = await store.count_since(user_id, month_start())
    return DashboardOut(
        scans=[ScanOut.from_scan(s) for s in scans],
        stats=compute_stats(scans),
        scans_this_month=used,
        monthly_quota=monthly_quota,
        remaining_scans=remaining_quota(used, monthly_quota),
    )
