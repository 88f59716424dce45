import pytest
from pydantic import ValidationError

from wcag_audit.features.scan.services.auditors.factory import build_auditor
from wcag_audit.features.scan.services.auditors.headless import HeadlessBrowserAuditor
from wcag_audit.features.scan.services.auditors.remote import PageSpeedAuditor
from wcag_audit.platform.config import Settings


def make_settings(**overrides):
    base = {"SCORE_STRATEGY": None}
    base.update(overrides)
    return Settings(_env_file=None, **base)


class TestScanSettings:
    def test_remote_defaults_to_direct_score(self):
        settings = make_settings(AUDIT_BACKEND="remote")
        assert settings.SCORE_STRATEGY == "direct"
        assert settings.audit_timeout_seconds == 60

    def test_headless_defaults_to_weighted_score(self):
        settings = make_settings(AUDIT_BACKEND="headless")
        assert settings.SCORE_STRATEGY == "weighted"
        assert settings.audit_timeout_seconds is None

    def test_direct_score_needs_remote_backend(self):
        with pytest.raises(ValidationError):
            make_settings(AUDIT_BACKEND="headless", SCORE_STRATEGY="direct")

    def test_browser_mode_follows_environment(self):
        assert make_settings(ENVIRONMENT="production").BROWSER_MODE == "bundled-minimal"
        assert make_settings(ENVIRONMENT="local").BROWSER_MODE == "system-installed"
        assert make_settings(ENVIRONMENT="production", BROWSER_MODE="system-installed").BROWSER_MODE == "system-installed"


class TestBuildAuditor:
    def test_remote(self):
        auditor = build_auditor(make_settings(AUDIT_BACKEND="remote", PAGESPEED_API_KEY="k"))
        assert isinstance(auditor, PageSpeedAuditor)
        assert auditor.api_key == "k"

    def test_headless(self):
        auditor = build_auditor(make_settings(AUDIT_BACKEND="headless", ENVIRONMENT="production"))
        assert isinstance(auditor, HeadlessBrowserAuditor)
        assert auditor.config.mode == "bundled-minimal"
