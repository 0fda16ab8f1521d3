"""Client OAuth2 do Google (authorization code + refresh) via httpx."""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import httpx

from app.domain.calendar_integration import OAuthTokens
from app.observability import get_correlation_id, record_latency
from app.protocols.oauth_client import OAuthClientProtocol
from config.settings.google_calendar import (
    GOOGLE_AUTH_URL,
    GOOGLE_TOKEN_URL,
    GOOGLE_USERINFO_URL,
)
from utils.errors import AuthExchangeError, CalendarTimeoutError, GatewayError, RefreshError

if TYPE_CHECKING:
    from collections.abc import Callable

    from config.settings.calendar import CalendarSettings

logger = logging.getLogger(__name__)

_COMPONENT = "google_oauth_client"
_DEFAULT_EXPIRES_IN = 3600


def _coerce_expires_in_seconds(value: Any) -> int:
    if isinstance(value, bool):
        return _DEFAULT_EXPIRES_IN
    if isinstance(value, int | float):
        return int(value) if value > 0 else _DEFAULT_EXPIRES_IN
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip()) or _DEFAULT_EXPIRES_IN
    return _DEFAULT_EXPIRES_IN


def _safe_google_error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        description = payload.get("error_description")
        if isinstance(description, str) and description.strip():
            return " ".join(description.split())[:200]
        error_payload = payload.get("error")
        if isinstance(error_payload, dict):
            message = error_payload.get("message")
            if isinstance(message, str) and message.strip():
                return " ".join(message.split())[:200]
        if isinstance(error_payload, str) and error_payload.strip():
            return " ".join(error_payload.split())[:200]

    raw_text = response.text.strip()
    if raw_text:
        return " ".join(raw_text.split())[:200]
    return "Request failed without an error payload"


class GoogleOAuthClient(OAuthClientProtocol):
    """Fala com o endpoint de token e userinfo do Google.

    Nao guarda estado de token: persistencia e decisao de refresh ficam
    no TokenLifecycleManager.
    """

    __slots__ = ("_clock", "_http_client", "_settings")

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        settings: CalendarSettings,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._http_client = http_client
        self._settings = settings
        self._clock = clock or (lambda: datetime.now(UTC))

    def build_authorization_url(self, state: str) -> str:
        params = {
            "client_id": self._settings.google_client_id,
            "redirect_uri": self._settings.google_redirect_uri,
            "response_type": "code",
            "scope": " ".join(self._settings.google_scopes),
            # offline + consent garantem refresh_token inclusive em re-link
            "access_type": "offline",
            "prompt": "consent",
            "include_granted_scopes": "true",
            "state": state,
        }
        return str(httpx.URL(GOOGLE_AUTH_URL, params=params))

    async def exchange_code(self, code: str) -> OAuthTokens:
        response = await self._post_token(
            "exchange_code",
            {
                "code": code,
                "client_id": self._settings.google_client_id,
                "client_secret": self._settings.google_client_secret,
                "redirect_uri": self._settings.google_redirect_uri,
                "grant_type": "authorization_code",
            },
            error_type=AuthExchangeError,
        )
        return self._parse_tokens(response, error_type=AuthExchangeError)

    async def refresh(self, refresh_token: str) -> OAuthTokens:
        response = await self._post_token(
            "refresh",
            {
                "refresh_token": refresh_token,
                "client_id": self._settings.google_client_id,
                "client_secret": self._settings.google_client_secret,
                "grant_type": "refresh_token",
            },
            error_type=RefreshError,
        )
        return self._parse_tokens(response, error_type=RefreshError)

    async def fetch_account_email(self, access_token: str) -> str | None:
        started = time.perf_counter()
        try:
            response = await self._http_client.get(
                GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
                timeout=self._settings.request_timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            self._log_failure("fetch_account_email", "timeout")
            raise CalendarTimeoutError("Google userinfo excedeu o tempo limite") from exc
        except httpx.HTTPError as exc:
            self._log_failure("fetch_account_email", "error")
            raise GatewayError(f"Google userinfo request failed: {type(exc).__name__}") from exc
        finally:
            record_latency(_COMPONENT, "fetch_account_email", (time.perf_counter() - started) * 1000)

        if response.status_code < 200 or response.status_code >= 300:
            self._log_failure("fetch_account_email", "error", response.status_code)
            raise GatewayError(
                f"Google userinfo failed ({response.status_code}): "
                f"{_safe_google_error_message(response)}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError:
            return None
        email = payload.get("email") if isinstance(payload, dict) else None
        return email if isinstance(email, str) and email.strip() else None

    async def _post_token(
        self,
        action: str,
        data: dict[str, str],
        *,
        error_type: type[AuthExchangeError] | type[RefreshError],
    ) -> dict[str, Any]:
        started = time.perf_counter()
        try:
            response = await self._http_client.post(
                GOOGLE_TOKEN_URL,
                data=data,
                headers={"Accept": "application/json"},
                timeout=self._settings.request_timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            self._log_failure(action, "timeout")
            raise CalendarTimeoutError(
                f"Google OAuth token endpoint excedeu "
                f"{self._settings.request_timeout_seconds:g}s"
            ) from exc
        except httpx.HTTPError as exc:
            self._log_failure(action, "error")
            raise error_type(f"Google OAuth token request failed: {type(exc).__name__}") from exc
        finally:
            record_latency(_COMPONENT, action, (time.perf_counter() - started) * 1000)

        if response.status_code < 200 or response.status_code >= 300:
            self._log_failure(action, "rejected", response.status_code)
            raise error_type(
                f"Google OAuth token request failed ({response.status_code}): "
                f"{_safe_google_error_message(response)}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise error_type("Google OAuth token endpoint returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise error_type("Google OAuth token endpoint returned invalid JSON")
        return payload

    def _parse_tokens(
        self,
        payload: dict[str, Any],
        *,
        error_type: type[AuthExchangeError] | type[RefreshError],
    ) -> OAuthTokens:
        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token.strip():
            raise error_type("Google OAuth token response is missing a non-empty access_token")

        refresh_token = payload.get("refresh_token")
        expires_in = _coerce_expires_in_seconds(payload.get("expires_in"))
        return OAuthTokens(
            access_token=access_token.strip(),
            refresh_token=refresh_token if isinstance(refresh_token, str) and refresh_token else None,
            expiry=self._clock() + timedelta(seconds=expires_in),
        )

    def _log_failure(self, action: str, result: str, status_code: int | None = None) -> None:
        extra: dict[str, Any] = {
            "component": _COMPONENT,
            "action": action,
            "result": result,
            "correlation_id": get_correlation_id(),
        }
        if status_code is not None:
            extra["status_code"] = status_code
        logger.warning("google_oauth_request_failed", extra=extra)
