from fastapi import APIRouter

from wcag_audit.features.scan.routes.scan import dashboard_router
from wcag_audit.features.scan.routes.scan import router as scan_router

api_router = APIRouter()

# JSON read side used by the results and dashboard pages
api_router.include_router(scan_router)
api_router.include_router(dashboard_router)
