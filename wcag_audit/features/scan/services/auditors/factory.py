from wcag_audit.features.scan.services.auditors.base import Auditor
from wcag_audit.features.scan.services.auditors.headless import BrowserConfig, HeadlessBrowserAuditor
from wcag_audit.features.scan.services.auditors.remote import PageSpeedAuditor


def build_auditor(settings) -> Auditor:
    """Pick the audit backend configured for this deployment."""
    if settings.AUDIT_BACKEND == "remote":
        return PageSpeedAuditor(
            api_url=settings.PAGESPEED_API_URL,
            api_key=settings.PAGESPEED_API_KEY,
        )
    if settings.AUDIT_BACKEND == "headless":
        return HeadlessBrowserAuditor(
            config=BrowserConfig.from_settings(settings),
            axe_script_path=settings.AXE_SCRIPT_PATH,
            axe_script_url=settings.AXE_SCRIPT_URL,
        )
    raise ValueError(f"Unknown audit backend: {settings.AUDIT_BACKEND}")
