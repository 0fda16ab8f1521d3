"""Testes do client OAuth do Google com transporte httpx simulado."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from app.infra.calendar.google_oauth_client import GoogleOAuthClient
from config.settings.calendar import CalendarSettings
from config.settings.google_calendar import GOOGLE_TOKEN_URL, GOOGLE_USERINFO_URL
from utils.errors import AuthExchangeError, CalendarTimeoutError, GatewayError, RefreshError

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)

Handler = Callable[[httpx.Request], httpx.Response]


def _client(handler: Handler) -> tuple[GoogleOAuthClient, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def _record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(_record))
    settings = CalendarSettings(
        google_client_id="client-id",
        google_client_secret="client-secret",
        google_redirect_uri="https://api.example.com/api/calendar/google/callback",
    )
    return GoogleOAuthClient(http_client=http_client, settings=settings, clock=lambda: NOW), requests


def _form(request: httpx.Request) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(request.content.decode()).items()}


class TestAuthorizationUrl:
    def test_requests_offline_access_with_consent(self) -> None:
        client, _ = _client(lambda request: httpx.Response(200))

        url = urlparse(client.build_authorization_url("user-1"))
        params = {key: values[0] for key, values in parse_qs(url.query).items()}

        assert params["client_id"] == "client-id"
        assert params["state"] == "user-1"
        assert params["access_type"] == "offline"
        assert params["prompt"] == "consent"
        assert params["response_type"] == "code"
        assert "https://www.googleapis.com/auth/calendar" in params["scope"].split(" ")


class TestExchangeCode:
    @pytest.mark.asyncio
    async def test_exchange_returns_tokens_with_absolute_expiry(self) -> None:
        client, requests = _client(
            lambda request: httpx.Response(
                200,
                json={"access_token": "access-1", "refresh_token": "refresh-1", "expires_in": 3599},
            )
        )

        tokens = await client.exchange_code("code-123")

        assert tokens.access_token == "access-1"
        assert tokens.refresh_token == "refresh-1"
        assert tokens.expiry == NOW + timedelta(seconds=3599)
        assert str(requests[0].url) == GOOGLE_TOKEN_URL
        form = _form(requests[0])
        assert form["grant_type"] == "authorization_code"
        assert form["code"] == "code-123"
        assert form["client_secret"] == "client-secret"

    @pytest.mark.asyncio
    async def test_rejected_code(self) -> None:
        client, _ = _client(
            lambda request: httpx.Response(
                400,
                json={"error": "invalid_grant", "error_description": "Bad Request"},
            )
        )

        with pytest.raises(AuthExchangeError, match="Bad Request"):
            await client.exchange_code("code-123")

    @pytest.mark.asyncio
    async def test_missing_access_token(self) -> None:
        client, _ = _client(lambda request: httpx.Response(200, json={"expires_in": 3600}))

        with pytest.raises(AuthExchangeError):
            await client.exchange_code("code-123")


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_without_rotation(self) -> None:
        client, requests = _client(
            lambda request: httpx.Response(200, json={"access_token": "access-2", "expires_in": "bad"})
        )

        tokens = await client.refresh("refresh-1")

        assert tokens.access_token == "access-2"
        assert tokens.refresh_token is None
        # expires_in invalido cai no padrao de 1h
        assert tokens.expiry == NOW + timedelta(hours=1)
        form = _form(requests[0])
        assert form["grant_type"] == "refresh_token"
        assert form["refresh_token"] == "refresh-1"

    @pytest.mark.asyncio
    async def test_revoked_refresh_token(self) -> None:
        client, _ = _client(
            lambda request: httpx.Response(400, json={"error": "invalid_grant"})
        )

        with pytest.raises(RefreshError, match="invalid_grant"):
            await client.refresh("refresh-1")

    @pytest.mark.asyncio
    async def test_timeout_is_not_a_refresh_rejection(self) -> None:
        def _timeout(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        client, _ = _client(_timeout)

        with pytest.raises(CalendarTimeoutError):
            await client.refresh("refresh-1")

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        client, _ = _client(lambda request: httpx.Response(200, content=b"<html>"))

        with pytest.raises(RefreshError):
            await client.refresh("refresh-1")


class TestAccountEmail:
    @pytest.mark.asyncio
    async def test_fetch_email_uses_bearer_token(self) -> None:
        client, requests = _client(
            lambda request: httpx.Response(200, json={"email": "dra@example.com"})
        )

        assert await client.fetch_account_email("access-1") == "dra@example.com"
        assert str(requests[0].url) == GOOGLE_USERINFO_URL
        assert requests[0].headers["Authorization"] == "Bearer access-1"

    @pytest.mark.asyncio
    async def test_missing_email_returns_none(self) -> None:
        client, _ = _client(lambda request: httpx.Response(200, json={"id": "123"}))

        assert await client.fetch_account_email("access-1") is None

    @pytest.mark.asyncio
    async def test_userinfo_failure(self) -> None:
        client, _ = _client(
            lambda request: httpx.Response(401, json={"error": {"message": "Invalid Credentials"}})
        )

        with pytest.raises(GatewayError, match="Invalid Credentials") as exc_info:
            await client.fetch_account_email("access-1")
        assert exc_info.value.status_code == 401
