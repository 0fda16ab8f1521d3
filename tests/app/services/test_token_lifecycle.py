"""Testes do TokenLifecycleManager."""

from __future__ import annotations

from datetime import timedelta

import pytest

from fsm.states import IntegrationStatus
from tests.conftest import FIXED_NOW, USER_ID
from tests.fakes.fake_oauth_client import tokens
from utils.errors import (
    AuthExchangeError,
    CalendarTimeoutError,
    GatewayError,
    NotAuthenticatedError,
    RefreshError,
)


class TestAuthorization:
    """URL de consentimento e troca de code."""

    def test_authorization_url_carries_user_id_as_state(self, token_manager, oauth_client) -> None:
        url = token_manager.get_authorization_url(USER_ID)
        assert url.endswith(f"state={USER_ID}")
        assert oauth_client.calls == ["build_authorization_url"]

    def test_authorization_url_requires_user_id(self, token_manager) -> None:
        with pytest.raises(ValueError, match="user_id"):
            token_manager.get_authorization_url("")

    @pytest.mark.asyncio
    async def test_exchange_code_returns_complete_tokens(self, token_manager, oauth_client) -> None:
        oauth_client.exchange_tokens = tokens("access-1", FIXED_NOW + timedelta(hours=1))
        result = await token_manager.exchange_code("code-123")
        assert result.access_token == "access-1"
        assert result.refresh_token == "refresh-token"

    @pytest.mark.asyncio
    async def test_exchange_code_rejects_empty_code(self, token_manager, oauth_client) -> None:
        with pytest.raises(AuthExchangeError):
            await token_manager.exchange_code("")
        assert oauth_client.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "incomplete",
        [
            tokens("access-1", FIXED_NOW + timedelta(hours=1), refresh_token=None),
            tokens("access-1", None),
        ],
    )
    async def test_exchange_code_rejects_incomplete_response(
        self, token_manager, oauth_client, incomplete
    ) -> None:
        oauth_client.exchange_tokens = incomplete
        with pytest.raises(AuthExchangeError):
            await token_manager.exchange_code("code-123")

    @pytest.mark.asyncio
    async def test_exchange_error_propagates(self, token_manager, oauth_client) -> None:
        oauth_client.exchange_error = AuthExchangeError("invalid_grant")
        with pytest.raises(AuthExchangeError, match="invalid_grant"):
            await token_manager.exchange_code("code-123")


class TestSaveCredential:
    """Persistência da integração."""

    @pytest.mark.asyncio
    async def test_save_creates_active_integration(self, token_manager, integration_store) -> None:
        saved = await token_manager.save_credential(
            USER_ID,
            "access-1",
            "refresh-1",
            FIXED_NOW + timedelta(hours=1),
            email="dra@example.com",
            calendar_id="primary-cal",
            calendar_name="Agenda",
        )
        stored = await integration_store.get_active(USER_ID)

        assert stored is not None
        assert stored.id == saved.id
        assert stored.sync_status is IntegrationStatus.ACTIVE
        assert stored.email == "dra@example.com"
        assert stored.calendar_id == "primary-cal"

    @pytest.mark.asyncio
    async def test_second_save_replaces_previous_integration(
        self, token_manager, integration_store
    ) -> None:
        first = await token_manager.save_credential(
            USER_ID, "access-1", "refresh-1", FIXED_NOW + timedelta(hours=1)
        )
        second = await token_manager.save_credential(
            USER_ID, "access-2", "refresh-2", FIXED_NOW + timedelta(hours=1)
        )
        stored = await integration_store.get_active(USER_ID)

        assert first.id != second.id
        assert stored is not None
        assert stored.id == second.id
        assert stored.access_token == "access-2"

    @pytest.mark.asyncio
    async def test_reconnect_after_error_starts_active(
        self, token_manager, integration_store, make_integration
    ) -> None:
        await integration_store.replace(
            make_integration(sync_status=IntegrationStatus.ERROR, last_error="revogado")
        )
        await token_manager.save_credential(
            USER_ID, "access-2", "refresh-2", FIXED_NOW + timedelta(hours=1)
        )
        stored = await integration_store.get_active(USER_ID)

        assert stored is not None
        assert stored.sync_status is IntegrationStatus.ACTIVE
        assert stored.last_error is None


class TestValidCredential:
    """Access token válido sob demanda."""

    @pytest.mark.asyncio
    async def test_without_integration_raises_not_authenticated(self, token_manager) -> None:
        with pytest.raises(NotAuthenticatedError):
            await token_manager.get_valid_access_token(USER_ID)

    @pytest.mark.asyncio
    async def test_unexpired_token_is_returned_without_refresh(
        self, token_manager, integration_store, oauth_client, make_integration
    ) -> None:
        await integration_store.replace(make_integration())
        assert await token_manager.get_valid_access_token(USER_ID) == "access-valid"
        assert oauth_client.calls == []

    @pytest.mark.asyncio
    async def test_token_expiring_now_is_refreshed(
        self, token_manager, integration_store, oauth_client, make_integration
    ) -> None:
        await integration_store.replace(make_integration(token_expiry=FIXED_NOW))
        oauth_client.refresh_tokens = tokens(
            "access-new", FIXED_NOW + timedelta(hours=1), refresh_token=None
        )

        assert await token_manager.get_valid_access_token(USER_ID) == "access-new"
        assert oauth_client.refreshed_with == ["refresh-1"]

        stored = await integration_store.get_active(USER_ID)
        assert stored is not None
        assert stored.access_token == "access-new"
        assert stored.token_expiry == FIXED_NOW + timedelta(hours=1)
        # Refresh sem refresh_token preserva o armazenado
        assert stored.refresh_token == "refresh-1"

    @pytest.mark.asyncio
    async def test_rotated_refresh_token_is_persisted(
        self, token_manager, integration_store, oauth_client, make_integration
    ) -> None:
        await integration_store.replace(make_integration(token_expiry=FIXED_NOW - timedelta(minutes=5)))
        oauth_client.refresh_tokens = tokens(
            "access-new", FIXED_NOW + timedelta(hours=1), refresh_token="refresh-rotated"
        )
        await token_manager.get_valid_credential(USER_ID)

        stored = await integration_store.get_active(USER_ID)
        assert stored is not None
        assert stored.refresh_token == "refresh-rotated"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("expiry", [None, FIXED_NOW - timedelta(seconds=1)])
    async def test_missing_or_past_expiry_falls_back_to_one_hour(
        self, token_manager, integration_store, oauth_client, make_integration, expiry
    ) -> None:
        await integration_store.replace(make_integration(token_expiry=FIXED_NOW))
        oauth_client.refresh_tokens = tokens("access-new", expiry)

        credential = await token_manager.get_valid_credential(USER_ID)
        assert credential.token_expiry == FIXED_NOW + timedelta(hours=1)


class TestRefreshFailures:
    """Refresh rejeitado leva a ERROR; timeout não."""

    @pytest.mark.asyncio
    async def test_rejected_refresh_marks_error_and_fails_fast(
        self, token_manager, integration_store, oauth_client, make_integration
    ) -> None:
        await integration_store.replace(make_integration(token_expiry=FIXED_NOW))
        oauth_client.refresh_error = RefreshError("invalid_grant")

        with pytest.raises(RefreshError):
            await token_manager.get_valid_access_token(USER_ID)

        stored = await integration_store.get_active(USER_ID)
        assert stored is not None
        assert stored.sync_status is IntegrationStatus.ERROR
        assert stored.last_error is not None
        assert stored.last_error.startswith("Erro ao renovar token de acesso")

        # Segunda chamada falha sem nova ida ao provedor
        with pytest.raises(RefreshError):
            await token_manager.get_valid_access_token(USER_ID)
        assert oauth_client.calls.count("refresh") == 1

    @pytest.mark.asyncio
    async def test_other_provider_errors_become_refresh_error(
        self, token_manager, integration_store, oauth_client, make_integration
    ) -> None:
        await integration_store.replace(make_integration(token_expiry=FIXED_NOW))
        oauth_client.refresh_error = GatewayError("boom", status_code=500)

        with pytest.raises(RefreshError) as exc_info:
            await token_manager.get_valid_credential(USER_ID)
        assert isinstance(exc_info.value.__cause__, GatewayError)

    @pytest.mark.asyncio
    async def test_timeout_keeps_integration_active(
        self, token_manager, integration_store, oauth_client, make_integration
    ) -> None:
        await integration_store.replace(make_integration(token_expiry=FIXED_NOW))
        oauth_client.refresh_error = CalendarTimeoutError("token endpoint timeout")

        with pytest.raises(CalendarTimeoutError):
            await token_manager.get_valid_credential(USER_ID)

        stored = await integration_store.get_active(USER_ID)
        assert stored is not None
        assert stored.sync_status is IntegrationStatus.ACTIVE
        assert stored.access_token == "access-valid"

        # Proxima chamada tenta de novo
        oauth_client.refresh_error = None
        oauth_client.refresh_tokens = tokens("access-new", FIXED_NOW + timedelta(hours=1))
        assert await token_manager.get_valid_access_token(USER_ID) == "access-new"


class TestStatusAndDisconnect:
    """Visão de status e desconexão local."""

    @pytest.mark.asyncio
    async def test_status_when_disconnected(self, token_manager) -> None:
        status = await token_manager.get_integration_status(USER_ID)
        assert status.connected is False
        assert status.sync_status is None

    @pytest.mark.asyncio
    async def test_status_reflects_integration(
        self, token_manager, integration_store, make_integration
    ) -> None:
        await integration_store.replace(
            make_integration(email="dra@example.com", last_sync_at=FIXED_NOW)
        )
        status = await token_manager.get_integration_status(USER_ID)

        assert status.connected is True
        assert status.is_active is True
        assert status.sync_status is IntegrationStatus.ACTIVE
        assert status.email == "dra@example.com"
        assert status.calendar_name == "Agenda da clínica"
        assert status.last_sync_at == FIXED_NOW

    @pytest.mark.asyncio
    async def test_disconnect_deactivates_and_notifies_listeners(
        self, token_manager, integration_store, make_integration
    ) -> None:
        await integration_store.replace(make_integration())
        notified: list[str] = []

        async def _listener(user_id: str) -> None:
            notified.append(user_id)

        token_manager.add_disconnect_listener(_listener)

        assert await token_manager.disconnect(USER_ID) is True
        assert await integration_store.get_active(USER_ID) is None
        assert notified == [USER_ID]
        with pytest.raises(NotAuthenticatedError):
            await token_manager.get_valid_access_token(USER_ID)

    @pytest.mark.asyncio
    async def test_disconnect_without_integration_still_notifies(self, token_manager) -> None:
        notified: list[str] = []

        async def _listener(user_id: str) -> None:
            notified.append(user_id)

        token_manager.add_disconnect_listener(_listener)

        assert await token_manager.disconnect(USER_ID) is False
        assert notified == [USER_ID]

    @pytest.mark.asyncio
    async def test_disconnect_from_error_state(
        self, token_manager, integration_store, make_integration
    ) -> None:
        await integration_store.replace(make_integration(sync_status=IntegrationStatus.ERROR))
        assert await token_manager.disconnect(USER_ID) is True
        assert (await token_manager.get_integration_status(USER_ID)).connected is False
