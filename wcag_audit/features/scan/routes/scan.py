from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from wcag_audit.features.auth.models.user import User
from wcag_audit.features.auth.routes.auth import get_current_user, get_optional_user
from wcag_audit.features.pages.services.dashboard import build_dashboard
from wcag_audit.features.scan.dependencies import get_orchestrator
from wcag_audit.features.scan.schemas.scan import ScanOut, ScanRequest
from wcag_audit.features.scan.services.orchestrator import ScanOrchestrator
from wcag_audit.features.scan.services.store import ScanRecordStore
from wcag_audit.platform.config import settings
from wcag_audit.platform.db.session import get_db
from wcag_audit.platform.exceptions import InvalidInput, ScanNotFound
from wcag_audit.platform.logger import get_logger
from wcag_audit.platform.response import api_response
from wcag_audit.platform.utils.url_validator import validate_url

logger = get_logger(__name__)

# POST /scan keeps its historical top-level path and body shape
submit_router = APIRouter(tags=["scan"])
router = APIRouter(prefix="/scans", tags=["scan"])


@submit_router.post("/scan")
async def submit_scan(
    payload: ScanRequest,
    background_tasks: BackgroundTasks,
    orchestrator: ScanOrchestrator = Depends(get_orchestrator),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """
    Start an accessibility scan.

    In sync mode the response is sent once results are stored; in
    background mode right after the pending record is created.
    """
    user_id = current_user.id if current_user else None
    scan = await orchestrator.submit_scan(payload.url, user_id=user_id, background_tasks=background_tasks)

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"success": True, "scanId": scan.id},
    )


@router.get("/latest")
async def get_latest_scan(
    url: str = Query(..., description="Audited URL"),
    db: AsyncSession = Depends(get_db),
):
    is_valid, url_str, error_message = validate_url(url)
    if not is_valid:
        raise InvalidInput(details=error_message)

    scan = await ScanRecordStore(db).get_latest_by_url(url_str)
    if scan is None:
        raise ScanNotFound()

    return api_response(data=ScanOut.from_scan(scan), message="Scan retrieved")


@router.get("/{scan_id}")
async def get_scan(scan_id: str, db: AsyncSession = Depends(get_db)):
    scan = await ScanRecordStore(db).get(scan_id)
    if scan is None:
        raise ScanNotFound()

    return api_response(data=ScanOut.from_scan(scan), message="Scan retrieved")


@router.get("")
async def list_my_scans(
    limit: int = Query(settings.DASHBOARD_SCAN_LIMIT, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    scans = await ScanRecordStore(db).list_by_user(current_user.id, limit=limit)
    return api_response(data=[ScanOut.from_scan(s) for s in scans], message="Scans retrieved")


dashboard_router = APIRouter(tags=["dashboard"])


@dashboard_router.get("/dashboard")
async def get_dashboard(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    dashboard = await build_dashboard(
        ScanRecordStore(db),
        current_user.id,
        monthly_quota=settings.MONTHLY_SCAN_QUOTA,
        limit=settings.DASHBOARD_SCAN_LIMIT,
    )
    return api_response(data=dashboard, message="Dashboard retrieved")
