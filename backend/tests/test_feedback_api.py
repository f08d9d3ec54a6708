"""
PawCare Backend — Feedback API Tests
======================================

What we test:
    ✅ Submission validation: required fields, rating range, email format
    ✅ The operator is notified of each submission
    ✅ The public feed only lists opted-in entries and never exposes emails
    ✅ The full list is admin-only
"""

import pytest

from conftest import OPERATOR_EMAIL, sent_kinds

FEEDBACK = {
    "name": "Ana",
    "email": "ana@x.com",
    "rating": 5,
    "category": "service",
    "message": "Rex loved his walk",
}


async def submit(client, **overrides):
    return await client.post("/api/feedback", json={**FEEDBACK, **overrides})


class TestSubmitFeedback:

    @pytest.mark.asyncio
    async def test_accepted(self, client, mock_sender):
        response = await submit(client, rating=3)

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Feedback submitted successfully"
        assert isinstance(body["data"]["id"], int)
        assert sent_kinds(mock_sender) == [("new_feedback", OPERATOR_EMAIL)]
        assert mock_sender.send.await_args_list[0].args[2]["rating"] == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rating", [0, 6, -1])
    async def test_rating_out_of_range(self, client, mock_sender, rating):
        response = await submit(client, rating=rating)
        assert response.status_code == 400
        assert response.json()["message"] == "Rating must be between 1 and 5"
        mock_sender.send.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["name", "email", "rating", "category", "message"])
    async def test_required_fields(self, client, missing):
        body = {k: v for k, v in FEEDBACK.items() if k != missing}
        response = await client.post("/api/feedback", json=body)
        assert response.status_code == 400
        assert response.json()["message"] == "All fields are required"

    @pytest.mark.asyncio
    async def test_invalid_email(self, client):
        response = await submit(client, email="ana-at-x")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid email address"

    @pytest.mark.asyncio
    async def test_non_numeric_rating(self, client):
        response = await submit(client, rating="great")
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"


class TestFeedbackListings:

    @pytest.mark.asyncio
    async def test_public_feed_hides_private_entries_and_emails(self, client):
        await submit(client, public=True, name="Ana")
        await submit(client, public=False, name="Bo", email="bo@x.com")

        response = await client.get("/api/feedback/public")
        assert response.status_code == 200
        entries = response.json()["data"]
        assert [e["name"] for e in entries] == ["Ana"]
        assert "email" not in entries[0]
        assert "public" not in entries[0]

    @pytest.mark.asyncio
    async def test_admin_list_has_everything(self, admin_client):
        await submit(admin_client, public=True)
        await submit(admin_client, name="Bo", email="bo@x.com")

        response = await admin_client.get("/api/feedback")
        entries = response.json()["data"]
        assert len(entries) == 2
        assert {e["email"] for e in entries} == {"ana@x.com", "bo@x.com"}
        assert {e["public"] for e in entries} == {True, False}

    @pytest.mark.asyncio
    async def test_admin_list_requires_login(self, client):
        response = await client.get("/api/feedback")
        assert response.status_code == 401
