"""
Accessibility auditors.

- remote.py: PageSpeed Insights (Lighthouse accessibility category) over HTTP
- headless.py: local headless Chrome driven by Selenium with axe-core injected
- factory.py: picks one from settings.AUDIT_BACKEND
"""
from wcag_audit.features.scan.services.auditors.base import (
    AuditError,
    AuditResult,
    Auditor,
    AuditTimeout,
    EngineError,
    LaunchError,
    NavigationTimeout,
    ParseError,
    RawFinding,
    UpstreamError,
)
from wcag_audit.features.scan.services.auditors.factory import build_auditor

__all__ = [
    "AuditError",
    "AuditResult",
    "Auditor",
    "AuditTimeout",
    "EngineError",
    "LaunchError",
    "NavigationTimeout",
    "ParseError",
    "RawFinding",
    "UpstreamError",
    "build_auditor",
]
