from unittest.mock import AsyncMock, patch

from wcag_audit.features.scan.models.scan import ScanStatus
from wcag_audit.features.scan.workers.tasks import run_accessibility_scan
from wcag_audit.platform.celery_app import SCAN_QUEUE, celery_app


def test_task_is_routed_to_scan_queue():
    assert run_accessibility_scan.name == "wcag_audit.scan.run_accessibility_scan"
    routes = celery_app.conf.task_routes
    assert routes["wcag_audit.scan.run_accessibility_scan"] == {"queue": SCAN_QUEUE}


def test_task_delegates_to_run_audit():
    with patch(
        "wcag_audit.features.scan.workers.tasks.ScanOrchestrator.run_audit",
        new_callable=AsyncMock,
        return_value=ScanStatus.completed,
    ) as run_audit:
        result = run_accessibility_scan.run("scan-1", "https://example.com")

    run_audit.assert_awaited_once_with("scan-1", "https://example.com")
    assert result == {"scan_id": "scan-1", "status": "completed"}


def test_task_reports_unpersisted_outcome():
    with patch(
        "wcag_audit.features.scan.workers.tasks.ScanOrchestrator.run_audit",
        new_callable=AsyncMock,
        return_value=None,
    ):
        result = run_accessibility_scan.run("scan-2", "https://example.com")

    assert result["status"] is None
