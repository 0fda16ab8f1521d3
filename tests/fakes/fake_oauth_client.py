"""Fake do provedor OAuth: tokens previsiveis e falhas configuraveis."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from app.domain.calendar_integration import OAuthTokens


@dataclass
class FakeOAuthClient:
    """Implementa OAuthClientProtocol sem IO.

    `refresh_error`/`exchange_error` levantam em toda chamada ate serem
    limpos; `email_error` afeta apenas fetch_account_email.
    """

    exchange_tokens: OAuthTokens | None = None
    refresh_tokens: OAuthTokens | None = None
    account_email: str | None = "dra@example.com"
    exchange_error: Exception | None = None
    refresh_error: Exception | None = None
    email_error: Exception | None = None
    calls: list[str] = field(default_factory=list)
    refreshed_with: list[str] = field(default_factory=list)

    def build_authorization_url(self, state: str) -> str:
        self.calls.append("build_authorization_url")
        return f"https://accounts.example.com/o/oauth2/auth?state={state}"

    async def exchange_code(self, code: str) -> OAuthTokens:
        self.calls.append("exchange_code")
        if self.exchange_error is not None:
            raise self.exchange_error
        assert self.exchange_tokens is not None
        return self.exchange_tokens

    async def refresh(self, refresh_token: str) -> OAuthTokens:
        self.calls.append("refresh")
        self.refreshed_with.append(refresh_token)
        if self.refresh_error is not None:
            raise self.refresh_error
        assert self.refresh_tokens is not None
        return self.refresh_tokens

    async def fetch_account_email(self, access_token: str) -> str | None:
        self.calls.append("fetch_account_email")
        if self.email_error is not None:
            raise self.email_error
        return self.account_email


def tokens(
    access_token: str,
    expiry: datetime | None,
    refresh_token: str | None = "refresh-token",
) -> OAuthTokens:
    return OAuthTokens(access_token=access_token, refresh_token=refresh_token, expiry=expiry)
