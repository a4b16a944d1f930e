"""Sending email through the provider, the email log and the recipient list."""
from datetime import datetime, timedelta, timezone

import pytest

from membership.db.models import Email
from tests.conftest import auth_headers, make_member

MESSAGE = {"to": "Anna@X.de", "subject": "Jahreshauptversammlung", "content": "Einladung zur Versammlung."}


class TestSendEmail:
    @pytest.mark.asyncio
    async def test_not_configured(self, client, admin_headers):
        response = await client.post("/emails", json=MESSAGE, headers=admin_headers)
        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_send_and_record(self, client, admin, admin_headers, email_provider):
        response = await client.post("/emails", json=MESSAGE, headers=admin_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["to_address"] == "anna@x.de"
        assert data["from_address"] == email_provider.sender_address
        assert data["member_id"] == str(admin.id)

        [message] = email_provider.sent
        assert message.subject == "Jahreshauptversammlung"
        assert message.reply_to == admin.email

    @pytest.mark.asyncio
    async def test_provider_failure_records_nothing(self, client, admin_headers, email_provider):
        email_provider.fail = True
        response = await client.post("/emails", json=MESSAGE, headers=admin_headers)
        assert response.status_code == 502

        listing = await client.get("/emails", headers=admin_headers)
        assert listing.json()["total_elements"] == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {**MESSAGE, "to": "not-an-address"},
            {**MESSAGE, "subject": "   "},
            {**MESSAGE, "content": ""},
        ],
    )
    async def test_invalid_messages(self, client, admin_headers, email_provider, body):
        response = await client.post("/emails", json=body, headers=admin_headers)
        assert response.status_code == 422
        assert email_provider.sent == []

    @pytest.mark.asyncio
    async def test_requires_admin(self, client, db, email_provider):
        member = await make_member(db, "Anna Schmidt", "anna@x.de")
        response = await client.post("/emails", json=MESSAGE, headers=auth_headers(member))
        assert response.status_code == 403


class TestListEmails:
    @pytest.mark.asyncio
    async def test_newest_first_paged(self, client, db, admin, admin_headers):
        now = datetime.now(timezone.utc)
        db.add_all(
            [
                Email(
                    from_address="verein@bunkermuseum.example.org",
                    to_address=f"m{i}@x.de",
                    subject=f"Rundbrief {i}",
                    content="...",
                    member_id=admin.id if i % 2 else None,
                    created_at=now - timedelta(days=10 - i),
                )
                for i in range(5)
            ]
        )
        await db.commit()

        first = (await client.get("/emails", params={"size": 2}, headers=admin_headers)).json()
        last = (await client.get("/emails", params={"page": 2, "size": 2}, headers=admin_headers)).json()

        assert [e["subject"] for e in first["content"]] == ["Rundbrief 4", "Rundbrief 3"]
        assert [e["subject"] for e in last["content"]] == ["Rundbrief 0"]
        assert first["total_elements"] == 5
        assert first["total_pages"] == 3
        assert last["last"] is True

    @pytest.mark.asyncio
    async def test_invalid_page_size(self, client, admin_headers):
        response = await client.get("/emails", params={"size": 0}, headers=admin_headers)
        assert response.status_code == 400


class TestRecipients:
    @pytest.mark.asyncio
    async def test_active_members_by_name(self, client, db, admin, admin_headers):
        await make_member(db, "Bernd Müller", "bernd@z.de")
        await make_member(db, "Anna Schmidt", "anna@x.de", password=None)
        await make_member(db, "Clara Alt", "clara@x.de", deleted=True)

        response = await client.get("/emails/recipients", headers=admin_headers)

        assert response.status_code == 200
        assert [(m["name"], m["email"]) for m in response.json()] == [
            ("Anna Schmidt", "anna@x.de"),
            ("Bernd Müller", "bernd@z.de"),
            ("Museum Admin", "admin@bunkermuseum.example.org"),
        ]

    @pytest.mark.asyncio
    async def test_requires_admin(self, client, db):
        member = await make_member(db, "Anna Schmidt", "anna@x.de")
        response = await client.get("/emails/recipients", headers=auth_headers(member))
        assert response.status_code == 403
