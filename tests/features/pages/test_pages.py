from wcag_audit.features.pages.routes.pages import score_band
from wcag_audit.features.scan.models.scan import ScanStatus

VIOLATION = {
    "id": "image-alt",
    "impact": "critical",
    "description": "Images sans attribut alt",
    "help": "Problème : Des images n'ont pas d'attribut alt.",
    "nodes": [{"html": "<img src='logo.png'>", "target": "header > img"}],
}


class TestResultsPage:
    def test_missing_url(self, client):
        response = client.get("/results")
        assert response.status_code == 400
        assert "URL manquante" in response.text

    def test_unknown_url(self, client):
        response = client.get("/results", params={"url": "https://never.example.com"})
        assert response.status_code == 404
        assert "Aucun résultat" in response.text

    def test_pending_page_refreshes(self, client, seed_scan):
        seed_scan(url="https://example.com", status=ScanStatus.pending)

        response = client.get("/results", params={"url": "https://example.com"})

        assert response.status_code == 200
        assert "Analyse en cours" in response.text
        assert 'http-equiv="refresh"' in response.text

    def test_failed(self, client, seed_scan):
        seed_scan(url="https://example.com", status=ScanStatus.failed)
        response = client.get("/results", params={"url": "https://example.com"})
        assert "a échoué" in response.text

    def test_completed(self, client, seed_scan):
        seed_scan(url="https://example.com", status=ScanStatus.completed, score=72, violations=[VIOLATION])

        response = client.get("/results", params={"url": "https://example.com"})

        assert response.status_code == 200
        assert "72/100" in response.text
        assert "score-fair" in response.text
        assert "Images sans attribut alt" in response.text
        assert "header &gt; img" in response.text
        assert 'http-equiv="refresh"' not in response.text

    def test_by_id(self, client, seed_scan):
        scan = seed_scan(url="https://example.com", status=ScanStatus.completed, score=95, violations=[])
        response = client.get(f"/results/{scan.id}")
        assert "95/100" in response.text
        assert "Aucune erreur détectée" in response.text


class TestOtherPages:
    def test_home(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "Scanner d" in response.text
        assert "fetch('/scan'" in response.text

    def test_login(self, client):
        response = client.get("/login")
        assert response.status_code == 200
        assert "/auth/magic-link" in response.text

    def test_dashboard_redirects_when_anonymous(self, client):
        response = client.get("/dashboard", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/login"

    def test_dashboard(self, client, seed_scan, user, auth_headers):
        seed_scan(url="https://mon-site.fr", user_id=user.id, status=ScanStatus.completed, score=85, violations=[])

        response = client.get("/dashboard", headers=auth_headers)

        assert response.status_code == 200
        assert "https://mon-site.fr" in response.text
        assert "<strong>4</strong> scan(s) restant(s)" in response.text


def test_score_band():
    assert score_band(None) == "none"
    assert score_band(80) == "good"
    assert score_band(79) == "fair"
    assert score_band(60) == "fair"
    assert score_band(59) == "poor"
