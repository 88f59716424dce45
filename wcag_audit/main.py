from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wcag_audit.api_routers.v1 import api_router
from wcag_audit.features.auth.routes.auth import router as auth_router
from wcag_audit.features.health.routes.health import router as health_router
from wcag_audit.features.pages.routes.pages import router as pages_router
from wcag_audit.features.scan.routes.scan import submit_router
from wcag_audit.middlewares.rate_limit import RateLimitMiddleware
from wcag_audit.platform.config import settings
from wcag_audit.platform.db.session import create_tables
from wcag_audit.platform.exceptions import add_exception_handlers
from wcag_audit.platform.logger import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.AUTO_CREATE_TABLES:
        await create_tables()
    logger.info(
        f"{settings.APP_NAME} started: backend={settings.AUDIT_BACKEND}, "
        f"mode={settings.SCAN_MODE}, dispatcher={settings.SCAN_DISPATCHER}"
    )
    yield


app = FastAPI(
    title="WCAG Accessibility Scanner API",
    description="Scan a web page for WCAG accessibility violations",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RateLimitMiddleware)

add_exception_handlers(app)

app.include_router(pages_router)
app.include_router(submit_router)
app.include_router(auth_router)
app.include_router(health_router)
app.include_router(api_router, prefix="/api/v1")
