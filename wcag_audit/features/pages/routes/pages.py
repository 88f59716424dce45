import os
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from wcag_audit.features.auth.models.user import User
from wcag_audit.features.auth.routes.auth import get_optional_user
from wcag_audit.features.pages.services.dashboard import build_dashboard
from wcag_audit.features.scan.models.scan import ScanStatus
from wcag_audit.features.scan.services.store import ScanRecordStore
from wcag_audit.platform.config import settings
from wcag_audit.platform.db.session import get_db
from wcag_audit.platform.utils.url_validator import validate_url

router = APIRouter(tags=["pages"], include_in_schema=False)

template_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "../../../templates")
templates = Jinja2Templates(directory=template_dir)

PENDING_REFRESH_SECONDS = 3


def score_band(score: Optional[int]) -> str:
    if score is None:
        return "none"
    if score >= 80:
        return "good"
    if score >= 60:
        return "fair"
    return "poor"


templates.env.filters["score_band"] = score_band


def _render_scan(request: Request, scan, url: str):
    if scan is None:
        return templates.TemplateResponse(
            request,
            "results.html",
            {"state": "not_found", "url": url, "app_name": settings.APP_NAME},
            status_code=status.HTTP_404_NOT_FOUND,
        )

    context = {
        "state": scan.status.value,
        "url": scan.url,
        "scan": scan,
        "violations": scan.violations or [],
        "refresh_seconds": PENDING_REFRESH_SECONDS if scan.status == ScanStatus.pending else None,
        "app_name": settings.APP_NAME,
    }
    return templates.TemplateResponse(request, "results.html", context)


@router.get("/")
async def home(request: Request, current_user: Optional[User] = Depends(get_optional_user)):
    return templates.TemplateResponse(
        request,
        "index.html",
        {"user": current_user, "app_name": settings.APP_NAME},
    )


@router.get("/results")
async def results_by_url(
    request: Request,
    url: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    if not url:
        return templates.TemplateResponse(
            request,
            "results.html",
            {"state": "missing_url", "app_name": settings.APP_NAME},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    is_valid, url_str, _ = validate_url(url)
    scan = await ScanRecordStore(db).get_latest_by_url(url_str) if is_valid else None
    return _render_scan(request, scan, url)


@router.get("/results/{scan_id}")
async def results_by_id(request: Request, scan_id: str, db: AsyncSession = Depends(get_db)):
    scan = await ScanRecordStore(db).get(scan_id)
    return _render_scan(request, scan, url="")


@router.get("/dashboard")
async def dashboard(
    request: Request,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    if current_user is None:
        return RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)

    data = await build_dashboard(
        ScanRecordStore(db),
        current_user.id,
        monthly_quota=settings.MONTHLY_SCAN_QUOTA,
        limit=settings.DASHBOARD_SCAN_LIMIT,
    )
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {"user": current_user, "dashboard": data, "app_name": settings.APP_NAME},
    )


@router.get("/login")
async def login(request: Request):
    return templates.TemplateResponse(request, "login.html", {"app_name": settings.APP_NAME})
