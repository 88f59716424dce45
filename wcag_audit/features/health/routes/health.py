from fastapi import APIRouter, status

from wcag_audit.platform.config import settings
from wcag_audit.platform.response import api_response

router = APIRouter()


@router.get("/health", tags=["health"])
async def health_check():
    return api_response(
        data={"status": "ok", "service": settings.APP_NAME, "audit_backend": settings.AUDIT_BACKEND},
        message="Service is healthy",
        status_code=status.HTTP_200_OK,
    )
