from functools import lru_cache

from wcag_audit.features.scan.services.orchestrator import ScanOrchestrator
from wcag_audit.platform.config import settings


@lru_cache
def get_orchestrator() -> ScanOrchestrator:
    """One orchestrator per process, wired from settings."""
    return ScanOrchestrator.from_settings(settings)
