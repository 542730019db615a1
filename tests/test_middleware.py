"""
NoteApp: Middleware & Health Tests
===================================

What:  Request/trace id handling, access logging, and the health endpoint.
"""

import logging

import pytest

from noteapp.middleware.request_id import parse_traceparent


class TestParseTraceparent:

    def test_valid_header(self):
        value = "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"
        assert parse_traceparent(value) == value

    def test_uppercase_is_normalized(self):
        value = "00-4BF92F3577B34DA6A3CE929D0E0E4736-00F067AA0BA902B7-01"
        assert parse_traceparent(value) == value.lower()

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "not-a-trace",
            "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7",
            "00-00000000000000000000000000000000-00f067aa0ba902b7-01",
        ],
    )
    def test_invalid_headers(self, value):
        assert parse_traceparent(value) == ""


class TestRequestId:

    @pytest.mark.asyncio
    async def test_client_request_id_echoed(self, test_client):
        response = await test_client.get("/", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, test_client):
        response = await test_client.get("/")
        assert len(response.headers["X-Request-ID"]) == 8


class TestAccessLog:

    @pytest.mark.asyncio
    async def test_request_logged_with_id(self, test_client, caplog):
        with caplog.at_level(logging.INFO, logger="noteapp.access"):
            await test_client.get("/", headers={"X-Request-ID": "log-1"})

        messages = [r.getMessage() for r in caplog.records if r.name == "noteapp.access"]
        assert any("GET / 200" in m and "[log-1]" in m for m in messages)

    @pytest.mark.asyncio
    async def test_not_found_logged_as_warning(self, test_client, caplog):
        with caplog.at_level(logging.INFO, logger="noteapp.access"):
            await test_client.get("/notes/edit/999")

        records = [r for r in caplog.records if r.name == "noteapp.access"]
        assert records and records[-1].levelno == logging.WARNING


class TestHealth:

    @pytest.mark.asyncio
    async def test_health_ok(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_unknown_path_renders_not_found(self, test_client):
        response = await test_client.get("/no/such/page")

        assert response.status_code == 404
        assert "Not found" in response.text
