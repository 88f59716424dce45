from datetime import datetime, timedelta, timezone
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

from sqlalchemy.orm import Session

from wcag_audit.features.auth.models.user import MagicLinkToken, User
from wcag_audit.features.auth.utils.security import hash_token

SEND = "wcag_audit.features.auth.routes.auth.send_magic_link_email"


def request_link(client, email="Marie@Example.com"):
    with patch(SEND) as mock_send:
        response = client.post("/auth/magic-link", json={"email": email})
    assert response.status_code == 200
    mock_send.assert_called_once()
    link = mock_send.call_args.kwargs["link"]
    return mock_send, parse_qs(urlparse(link).query)["token"][0]


class TestMagicLink:
    def test_request_creates_user_and_sends_email(self, client, sync_engine):
        mock_send, token = request_link(client)

        assert mock_send.call_args.kwargs["to_email"] == "marie@example.com"
        with Session(sync_engine) as session:
            user = session.query(User).filter_by(email="marie@example.com").one()
            stored = session.query(MagicLinkToken).filter_by(user_id=user.id).one()
            assert stored.token_hash == hash_token(token)
            assert stored.used_at is None

    def test_invalid_email(self, client):
        with patch(SEND) as mock_send:
            response = client.post("/auth/magic-link", json={"email": "not-an-email"})
        assert response.status_code == 422
        mock_send.assert_not_called()

    def test_callback_sets_cookie_and_redirects(self, client):
        _, token = request_link(client)

        response = client.get("/auth/callback", params={"token": token}, follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard"
        assert "access_token" in response.cookies

        me = client.get("/auth/me")
        assert me.status_code == 200
        assert me.json()["data"]["email"] == "marie@example.com"

    def test_callback_json(self, client):
        _, token = request_link(client)

        response = client.get("/auth/callback", params={"token": token}, headers={"Accept": "application/json"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["access_token"]
        assert data["token_type"] == "bearer"

    def test_link_is_single_use(self, client):
        _, token = request_link(client)
        client.get("/auth/callback", params={"token": token}, follow_redirects=False)

        again = client.get("/auth/callback", params={"token": token}, follow_redirects=False)
        assert again.status_code == 401

    def test_expired_link(self, client, sync_engine):
        _, token = request_link(client)
        with Session(sync_engine) as session:
            stored = session.query(MagicLinkToken).one()
            stored.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
            session.commit()

        response = client.get("/auth/callback", params={"token": token}, follow_redirects=False)
        assert response.status_code == 401

    def test_unknown_token(self, client):
        response = client.get("/auth/callback", params={"token": "nope"}, follow_redirects=False)
        assert response.status_code == 401

    def test_logout_clears_cookie(self, client):
        _, token = request_link(client)
        client.get("/auth/callback", params={"token": token}, follow_redirects=False)

        assert client.post("/auth/logout").status_code == 200
        assert client.get("/auth/me").status_code == 401


class TestCurrentUser:
    def test_bad_bearer_token(self, client):
        response = client.get("/auth/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401

    def test_bearer_token(self, client, auth_headers, user):
        response = client.get("/auth/me", headers=auth_headers)
        assert response.json()["data"]["id"] == user.id
