"""Login, password setup/change and member self-service (profile, data export, account deletion)."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from membership.core import hash_token
from membership.db.models import Booking
from tests.conftest import TEST_PASSWORD, auth_headers, make_member


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_and_me(self, client, db):
        await make_member(db, "Anna Schmidt", "anna@x.de")

        login = await client.post("/auth/login", json={"email": "ANNA@x.de", "password": TEST_PASSWORD})
        assert login.status_code == 200
        token = login.json()["access_token"]
        assert login.json()["token_type"] == "bearer"

        me = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["email"] == "anna@x.de"
        assert me.json()["roles"] == ["member"]

    @pytest.mark.asyncio
    async def test_wrong_password(self, client, db):
        await make_member(db, "Anna Schmidt", "anna@x.de")
        response = await client.post("/auth/login", json={"email": "anna@x.de", "password": "Falsch123"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_member_without_password(self, client, db):
        await make_member(db, "Neu Ohne", "neu@x.de", password=None)
        response = await client.post("/auth/login", json={"email": "neu@x.de", "password": "Irgendwas1"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_email(self, client):
        response = await client.post("/auth/login", json={"email": "nobody@x.de", "password": TEST_PASSWORD})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_login_is_rate_limited(self, client):
        statuses = [
            (await client.post("/auth/login", json={"email": "nobody@x.de", "password": "x"})).status_code
            for _ in range(11)
        ]
        assert statuses[:10] == [401] * 10
        assert statuses[10] == 429

    @pytest.mark.asyncio
    async def test_me_requires_valid_token(self, client):
        assert (await client.get("/auth/me")).status_code == 401
        response = await client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401


class TestChangePassword:
    @pytest.mark.asyncio
    async def test_change_password(self, client, db):
        member = await make_member(db, "Anna Schmidt", "anna@x.de")
        response = await client.post(
            "/auth/change-password",
            json={"current_password": TEST_PASSWORD, "new_password": "Geheim2025"},
            headers=auth_headers(member),
        )
        assert response.status_code == 204

        old = await client.post("/auth/login", json={"email": "anna@x.de", "password": TEST_PASSWORD})
        new = await client.post("/auth/login", json={"email": "anna@x.de", "password": "Geheim2025"})
        assert old.status_code == 401
        assert new.status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, client, db):
        member = await make_member(db, "Anna Schmidt", "anna@x.de")
        response = await client.post(
            "/auth/change-password",
            json={"current_password": "Falsch123", "new_password": "Geheim2025"},
            headers=auth_headers(member),
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("new_password", ["kurz1", "nurbuchstaben", "12345678", "a1" * 40])
    async def test_password_policy(self, client, db, new_password):
        member = await make_member(db, "Anna Schmidt", "anna@x.de")
        response = await client.post(
            "/auth/change-password",
            json={"current_password": TEST_PASSWORD, "new_password": new_password},
            headers=auth_headers(member),
        )
        assert response.status_code == 422


class TestSetupPassword:
    @pytest.mark.asyncio
    async def test_expired_token(self, client, db):
        member = await make_member(db, "Neu Ohne", "neu@x.de", password=None)
        member.password_setup_token_hash = hash_token("abgelaufen")
        member.password_setup_expires_at = datetime.now(timezone.utc) - timedelta(hours=1)
        await db.commit()

        response = await client.post("/auth/setup-password", json={"token": "abgelaufen", "password": "Neues1Passwort"})
        assert response.status_code == 400
        assert "expired" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_unknown_token(self, client):
        response = await client.post("/auth/setup-password", json={"token": "unbekannt", "password": "Neues1Passwort"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_valid_token_verifies_email(self, client, db):
        member = await make_member(db, "Neu Ohne", "neu@x.de", password=None)
        member.password_setup_token_hash = hash_token("gueltig")
        member.password_setup_expires_at = datetime.now(timezone.utc) + timedelta(hours=1)
        await db.commit()

        response = await client.post("/auth/setup-password", json={"token": " gueltig ", "password": "Neues1Passwort"})
        assert response.status_code == 200

        me = await client.get("/auth/me", headers={"Authorization": f"Bearer {response.json()['access_token']}"})
        assert me.json()["email_verified_at"] is not None


class TestDeleteAccount:
    @pytest.mark.asyncio
    async def test_wrong_password_keeps_account(self, client, db):
        member = await make_member(db, "Anna Schmidt", "anna@x.de")
        response = await client.request(
            "DELETE", "/auth/me", json={"password": "Falsch123"}, headers=auth_headers(member)
        )
        assert response.status_code == 400
        assert (await client.get("/auth/me", headers=auth_headers(member))).status_code == 200

    @pytest.mark.asyncio
    async def test_delete_own_account(self, client, db):
        member = await make_member(db, "Anna Schmidt", "anna@x.de")
        response = await client.request(
            "DELETE", "/auth/me", json={"password": TEST_PASSWORD}, headers=auth_headers(member)
        )
        assert response.status_code == 204
        assert (await client.get("/auth/me", headers=auth_headers(member))).status_code == 401


class TestUpdateProfile:
    @pytest.mark.asyncio
    async def test_change_name_and_email(self, client, db):
        member = await make_member(db, "Anna Schmidt", "anna@x.de")
        response = await client.patch(
            "/auth/me",
            json={"name": "  Anna Schmidt-Berg ", "email": "Anna.Berg@X.de"},
            headers=auth_headers(member),
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Anna Schmidt-Berg"
        assert response.json()["email"] == "anna.berg@x.de"
        login = await client.post("/auth/login", json={"email": "anna.berg@x.de", "password": TEST_PASSWORD})
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_omitted_fields_are_kept(self, client, db):
        member = await make_member(db, "Anna Schmidt", "anna@x.de", phone="030 1234567")
        response = await client.patch("/auth/me", json={"name": "Anna S."}, headers=auth_headers(member))

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "anna@x.de"
        assert data["phone"] == "030 1234567"

    @pytest.mark.asyncio
    async def test_email_of_another_member_is_rejected(self, client, db):
        member = await make_member(db, "Anna Schmidt", "anna@x.de")
        await make_member(db, "Bernd Müller", "bernd@z.de", deleted=True)
        response = await client.patch(
            "/auth/me", json={"email": "BERND@z.de"}, headers=auth_headers(member)
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Email already registered"

    @pytest.mark.asyncio
    async def test_own_email_in_other_case_is_accepted(self, client, db):
        member = await make_member(db, "Anna Schmidt", "anna@x.de")
        response = await client.patch("/auth/me", json={"email": "ANNA@x.de"}, headers=auth_headers(member))
        assert response.status_code == 200
        assert response.json()["email"] == "anna@x.de"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"name": "   "}, {"email": "not-an-email"}])
    async def test_invalid_values(self, client, db, body):
        member = await make_member(db, "Anna Schmidt", "anna@x.de")
        response = await client.patch("/auth/me", json=body, headers=auth_headers(member))
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        response = await client.patch("/auth/me", json={"name": "Niemand"})
        assert response.status_code == 401


class TestExportMyData:
    @pytest.mark.asyncio
    async def test_wrong_password(self, client, db):
        member = await make_member(db, "Anna Schmidt", "anna@x.de")
        response = await client.post(
            "/auth/me/export", json={"password": "Falsch123"}, headers=auth_headers(member)
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_export_own_profile_and_bookings(self, client, db):
        member = await make_member(db, "Anna Schmidt", "anna@x.de", phone="030 1234567", of_mg=True)
        other = await make_member(db, "Bernd Müller", "bernd@z.de")
        db.add_all(
            [
                Booking(member_id=member.id, expected_purpose="Mitgliedsbeitrag 2026, Anna Schmidt", expected_amount=Decimal("60.00")),
                Booking(member_id=other.id, expected_purpose="Mitgliedsbeitrag 2026, Bernd Müller", expected_amount=Decimal("30.00")),
            ]
        )
        await db.commit()

        response = await client.post(
            "/auth/me/export", json={"password": TEST_PASSWORD}, headers=auth_headers(member)
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert response.headers["content-disposition"].startswith(
            f'attachment; filename="user_{str(member.id)[:8]}_'
        )
        data = response.json()
        assert data["personal_data"]["name"] == "Anna Schmidt"
        assert data["personal_data"]["phone"] == "030 1234567"
        assert data["personal_data"]["of_mg"] is True
        assert data["account"]["id"] == str(member.id)
        assert data["account"]["roles"] == ["member"]
        assert [b["expected_purpose"] for b in data["bookings"]] == ["Mitgliedsbeitrag 2026, Anna Schmidt"]
        assert data["bookings"][0]["expected_amount"] == "60.00"
        assert "hashed_password" not in response.text
        assert "password_setup_token_hash" not in response.text
