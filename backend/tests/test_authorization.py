"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Non-admin roles are denied admin operations (403)
- Public endpoints stay open
"""

import pytest


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("POST", "/api/auth/logout"),
            ("POST", "/api/ads"),
            ("GET", "/api/ads/mine"),
            ("PUT", "/api/ads/1"),
            ("DELETE", "/api/ads/1"),
            ("POST", "/api/payments"),
            ("GET", "/api/payments/mine"),
            ("GET", "/api/payments/ad/1"),
            ("GET", "/api/admin/payments/pending"),
            ("GET", "/api/admin/payments"),
            ("POST", "/api/admin/payments/1/approve"),
            ("POST", "/api/admin/payments/1/reject"),
            ("PATCH", "/api/admin/payments/1/note"),
            ("GET", "/api/admin/ads"),
            ("POST", "/api/admin/ads/1/approve"),
            ("POST", "/api/admin/ads/1/reject"),
            ("GET", "/api/admin/users"),
            ("PATCH", "/api/admin/users/1"),
            ("GET", "/api/admin/audit-logs"),
            ("GET", "/api/admin/stats"),
            ("POST", "/api/categories"),
            ("PUT", "/api/categories/1"),
            ("DELETE", "/api/categories/1"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Invalid or expired token"

    def test_wrong_scheme(self, client, db_session):
        resp = client.get("/api/auth/me", headers={"Authorization": "Basic abc"})
        assert resp.status_code == 401


# =============================================================================
# NON-ADMINS DENIED ADMIN OPERATIONS - 403
# =============================================================================


class TestNonAdminDenied:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/admin/payments/pending"),
            ("POST", "/api/admin/payments/1/approve"),
            ("POST", "/api/admin/payments/1/reject"),
            ("POST", "/api/admin/ads/1/approve"),
            ("GET", "/api/admin/users"),
            ("GET", "/api/admin/stats"),
            ("POST", "/api/categories"),
            ("DELETE", "/api/categories/1"),
        ],
    )
    def test_seller_denied(self, client, seller_headers, method, path):
        resp = getattr(client, method.lower())(path, headers=seller_headers)
        assert resp.status_code == 403
        assert resp.get_json()["required_roles"] == ["admin"]

    def test_buyer_denied(self, client, buyer_headers):
        assert client.get("/api/admin/payments/pending", headers=buyer_headers).status_code == 403


# =============================================================================
# PUBLIC ENDPOINTS
# =============================================================================


class TestPublicAccess:

    @pytest.mark.parametrize(
        "path",
        ["/api/health", "/api/ads", "/api/ads/packages", "/api/categories", "/api/payments/instructions"],
    )
    def test_open(self, client, db_session, path):
        assert client.get(path).status_code == 200

    def test_cors_for_configured_origin(self, client, db_session):
        resp = client.get("/api/ads", headers={"Origin": "http://localhost:3000"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"

        other = client.get("/api/ads", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in other.headers
