"""
Unit Tests for the help bot
"""
import pytest

from educonnect.help_bot import FAQS, search_faqs, send_contact


class TestFaqSearch:

    def test_empty_query_lists_everything(self):
        assert search_faqs("") == FAQS

    def test_all_words_must_match(self):
        assert len(search_faqs("package")) > 1
        assert [f.question for f in search_faqs("switch package")] == ["Can I switch packages?"]

    def test_finds_password_recovery(self):
        results = search_faqs("password recover")

        assert [f.question for f in results] == ["If I forget my password, how do I recover my account?"]

    def test_short_words_ignored(self):
        assert search_faqs("is a") == FAQS

    def test_no_match(self):
        assert search_faqs("blockchain") == []


class TestContact:

    @pytest.mark.asyncio
    async def test_requires_all_fields(self, client, backend):
        result = await send_contact(client, "Ama", "", "Hello")

        assert result.ok is False
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_sends_form(self, client, backend):
        backend.on("POST", "/api/contact", json_body={"message": "We will be in touch"})

        result = await send_contact(client, " Ama ", "ama@example.com", "Question about fees")

        assert result.ok is True
        assert result.message == "We will be in touch"
        assert backend.json_of(backend.requests[0]) == {
            "name": "Ama", "email": "ama@example.com", "message": "Question about fees",
        }

    @pytest.mark.asyncio
    async def test_backend_failure(self, client, backend):
        backend.on("POST", "/api/contact", status=500, json_body={"message": "Mailer down"})

        result = await send_contact(client, "Ama", "ama@example.com", "Hi")

        assert result.ok is False
        assert result.message == "Failed to send message: Mailer down"
