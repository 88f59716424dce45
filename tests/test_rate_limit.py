from unittest.mock import patch

import pytest

from wcag_audit.platform.config import settings


@pytest.fixture
def limited(monkeypatch):
    """Small limit, in-memory store, test client not whitelisted."""
    monkeypatch.setattr(settings, "FORCE_IN_MEMORY_RATE_LIMITER", True)
    monkeypatch.setattr(settings, "WHITELIST_IPS", [])
    monkeypatch.setattr(settings, "RATE_LIMITS", {"/scan": 3, "/auth/magic-link": 2})


def test_scan_rate_limit(client, limited):
    for _ in range(3):
        res = client.post("/scan", json={"url": "https://example.com"})
        assert res.status_code != 429

    res = client.post("/scan", json={"url": "https://example.com"})
    assert res.status_code == 429
    assert "Retry-After" in res.headers
    assert res.json()["status"] == "error"


def test_reads_are_not_limited(client, limited):
    for _ in range(5):
        assert client.get("/api/v1/scans/latest", params={"url": "https://example.com"}).status_code != 429


def test_magic_link_rate_limit(client, limited):
    with patch("wcag_audit.features.auth.routes.auth.send_magic_link_email"):
        for i in range(2):
            res = client.post("/auth/magic-link", json={"email": f"user{i}@example.com"})
            assert res.status_code == 200

        res = client.post("/auth/magic-link", json={"email": "overflow@example.com"})
    assert res.status_code == 429
