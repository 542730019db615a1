"""
NoteApp: Anti-Forgery Token Tests
==================================

What:  Unit tests for token generation/validation, and HTTP tests showing
       that a POST without a valid token is rejected before any write.
"""

from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.requests import Request

from conftest import extract_csrf_token
from noteapp.config import settings
from noteapp.exceptions import CSRFError
from noteapp.security.csrf import (
    CSRF_FIELD_NAME,
    csrf_context,
    generate_csrf_token,
    validate_csrf_token,
)


def _request(session=None) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/notes/create",
        "headers": [],
        "session": {} if session is None else session,
    }
    return Request(scope)


class TestTokenLifecycle:

    def test_generate_stores_raw_token_in_session(self):
        request = _request()
        token = generate_csrf_token(request)

        assert CSRF_FIELD_NAME in request.session
        assert token != request.session[CSRF_FIELD_NAME]

    def test_generate_is_stable_within_a_request(self):
        request = _request()
        assert generate_csrf_token(request) == generate_csrf_token(request)

    def test_raw_token_reused_across_requests(self):
        session = {}
        generate_csrf_token(_request(session))
        first_raw = session[CSRF_FIELD_NAME]
        generate_csrf_token(_request(session))
        assert session[CSRF_FIELD_NAME] == first_raw

    def test_valid_token_passes(self):
        session = {}
        token = generate_csrf_token(_request(session))
        validate_csrf_token(_request(session), token)

    def test_missing_token(self):
        with pytest.raises(CSRFError) as exc_info:
            validate_csrf_token(_request({CSRF_FIELD_NAME: "abc"}), None)
        assert exc_info.value.reason == "missing"

    def test_session_without_token(self):
        token = generate_csrf_token(_request())
        with pytest.raises(CSRFError) as exc_info:
            validate_csrf_token(_request({}), token)
        assert exc_info.value.reason == "session_missing"

    def test_tampered_token(self):
        session = {}
        token = generate_csrf_token(_request(session))
        with pytest.raises(CSRFError) as exc_info:
            validate_csrf_token(_request(session), token[:-2] + "xx")
        assert exc_info.value.reason == "invalid"

    def test_token_from_another_session(self):
        other_token = generate_csrf_token(_request({}))
        session = {}
        generate_csrf_token(_request(session))
        with pytest.raises(CSRFError) as exc_info:
            validate_csrf_token(_request(session), other_token)
        assert exc_info.value.reason == "mismatch"

    def test_expired_token(self):
        session = {}
        token = generate_csrf_token(_request(session))
        with patch.object(settings, "csrf_time_limit", -1):
            with pytest.raises(CSRFError) as exc_info:
                validate_csrf_token(_request(session), token)
        assert exc_info.value.reason == "expired"

    def test_context_without_session_middleware(self):
        request = Request({"type": "http", "method": "GET", "path": "/", "headers": []})
        assert csrf_context(request) == {}


class TestCsrfProtectedRoutes:

    @pytest.mark.asyncio
    async def test_create_without_token_rejected(self, test_client, fetch_notes):
        response = await test_client.post(
            "/notes/create", data={"title": "Groceries", "content": "Milk"}
        )

        assert response.status_code == 400
        assert "Bad request" in response.text
        assert await fetch_notes() == []

    @pytest.mark.asyncio
    async def test_create_with_forged_token_rejected(self, test_client, csrf_token, fetch_notes):
        response = await test_client.post(
            "/notes/create",
            data={"csrf_token": csrf_token + "forged", "title": "Groceries", "content": "Milk"},
        )

        assert response.status_code == 400
        assert await fetch_notes() == []

    @pytest.mark.asyncio
    async def test_token_from_other_session_rejected(self, test_client, fetch_notes):
        from noteapp.main import app

        # An attacker's own session yields a perfectly valid token...
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as other:
            page = await other.get("/notes/create")
            attacker_token = extract_csrf_token(page.text)

        # ...that the victim's session must not accept
        await test_client.get("/notes/create")
        response = await test_client.post(
            "/notes/create",
            data={"csrf_token": attacker_token, "title": "Groceries", "content": "Milk"},
        )

        assert response.status_code == 400
        assert await fetch_notes() == []

    @pytest.mark.asyncio
    async def test_header_token_accepted(self, test_client, csrf_token, fetch_notes):
        response = await test_client.post(
            "/notes/create",
            data={"title": "Groceries", "content": "Milk"},
            headers={"X-CSRF-Token": csrf_token},
        )

        assert response.status_code == 302
        assert len(await fetch_notes()) == 1

    @pytest.mark.asyncio
    async def test_delete_without_token_keeps_note(self, test_client, seed_note, fetch_notes):
        note = await seed_note()

        response = await test_client.post(f"/notes/delete/{note.id}")

        assert response.status_code == 400
        assert [n.id for n in await fetch_notes()] == [note.id]

    @pytest.mark.asyncio
    async def test_edit_without_token_keeps_note(self, test_client, seed_note, fetch_notes):
        note = await seed_note()

        response = await test_client.post(
            f"/notes/edit/{note.id}",
            data={"id": str(note.id), "title": "Hacked", "content": "Gone"},
        )

        assert response.status_code == 400
        assert (await fetch_notes())[0].title == "Groceries"
