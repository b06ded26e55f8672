"""
Login, refresh and session endpoints.
"""

from datetime import timedelta

from core.auth import (build_token_claims, create_access_token,
                       create_refresh_token, verify_token)
from tests.factories import DEFAULT_PASSWORD, UserFactory


def login(client, email, password=DEFAULT_PASSWORD, tenant_slug=None):
    payload = {"email": email, "password": password}
    if tenant_slug:
        payload["tenant_slug"] = tenant_slug
    return client.post("/api/auth/login", json=payload)


class TestLogin:
    def test_login_returns_token_pair_and_tenant(self, client, tenant, admin_user):
        response = login(client, "ADMIN@burger.test")

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["role"] == "admin"
        assert body["user"]["last_login_at"] is not None
        assert body["tenant"]["slug"] == tenant.slug

        token_data = verify_token(body["access_token"])
        assert token_data.user_id == admin_user.id
        assert token_data.tenant_id == tenant.id
        assert verify_token(body["refresh_token"], token_type="refresh") is not None

    def test_wrong_password(self, client, admin_user):
        response = login(client, admin_user.email, "wrong-password")

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid credentials"

    def test_unknown_email_looks_like_wrong_password(self, client, tenant):
        response = login(client, "ghost@burger.test")

        assert response.status_code == 401
        assert response.json()["message"] == "Email or password is incorrect"

    def test_inactive_user(self, client, tenant):
        user = UserFactory(tenant=tenant, is_active=False)

        assert login(client, user.email).status_code == 401

    def test_inactive_tenant(self, client, db_session, tenant, admin_user):
        tenant.is_active = False
        db_session.commit()

        response = login(client, admin_user.email)

        assert response.status_code == 403
        assert response.json()["error"] == "Tenant inactive"

    def test_shared_email_requires_slug(self, client, tenant, other_tenant):
        UserFactory(tenant=tenant, email="owner@chain.test")
        UserFactory(tenant=other_tenant, email="owner@chain.test")

        response = login(client, "owner@chain.test")
        assert response.status_code == 400
        assert response.json()["error"] == "Tenant not specified"

        response = login(client, "owner@chain.test", tenant_slug=other_tenant.slug)
        assert response.status_code == 200
        assert response.json()["tenant"]["id"] == other_tenant.id

    def test_unknown_slug(self, client, admin_user):
        response = login(client, admin_user.email, tenant_slug="nowhere")

        assert response.status_code == 404

    def test_platform_admin_has_no_tenant(self, client, super_admin):
        response = login(client, super_admin.email)

        assert response.status_code == 200
        assert response.json()["tenant"] is None
        assert response.json()["user"]["tenant_id"] is None

    def test_missing_fields_are_400(self, client):
        response = client.post("/api/auth/login", json={"email": "not-an-email"})

        assert response.status_code == 400
        fields = {d["field"] for d in response.json()["details"]}
        assert {"email", "password"} <= fields


class TestTokens:
    def test_refresh_issues_new_pair(self, client, admin_user):
        refresh = create_refresh_token(build_token_claims(admin_user))

        response = client.post("/api/auth/refresh", json={"refresh_token": refresh})

        assert response.status_code == 200
        assert verify_token(response.json()["access_token"]).user_id == admin_user.id

    def test_access_token_cannot_refresh(self, client, admin_user):
        access = create_access_token(build_token_claims(admin_user))

        response = client.post("/api/auth/refresh", json={"refresh_token": access})

        assert response.status_code == 401

    def test_refresh_for_inactive_tenant(self, client, db_session, tenant, admin_user):
        refresh = create_refresh_token(build_token_claims(admin_user))
        tenant.is_active = False
        db_session.commit()

        response = client.post("/api/auth/refresh", json={"refresh_token": refresh})

        assert response.status_code == 403

    def test_expired_token_is_rejected(self, client, admin_user):
        expired = create_access_token(
            build_token_claims(admin_user), expires_delta=timedelta(seconds=-5)
        )

        assert verify_token(expired) is None
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired}"})
        assert response.status_code == 401

    def test_me_and_logout(self, client, tenant, manager_user, auth_headers):
        headers = auth_headers(manager_user)

        me = client.get("/api/auth/me", headers=headers)
        assert me.status_code == 200
        assert me.json()["user"]["email"] == manager_user.email
        assert me.json()["tenant"]["slug"] == tenant.slug

        response = client.post("/api/auth/logout", headers=headers)
        assert response.json()["message"] == "Logged out"

    def test_me_without_token(self, client):
        assert client.get("/api/auth/me").status_code == 401

    def test_deactivated_user_loses_access(self, client, db_session, cashier_user, auth_headers):
        headers = auth_headers(cashier_user)
        cashier_user.is_active = False
        db_session.commit()

        assert client.get("/api/auth/me", headers=headers).status_code == 401
