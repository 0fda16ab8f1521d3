"""Configuração do pytest para o serviço de agenda da clínica."""

import sys
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

# Adiciona src/ (imports absolutos) e a raiz (tests.fakes) ao PYTHONPATH
root_path = Path(__file__).parent.parent
for path in (root_path, root_path / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from app.domain.appointment import (  # noqa: E402
    Appointment,
    AppointmentPatient,
    AppointmentUser,
)
from app.domain.calendar_integration import CalendarIntegration  # noqa: E402
from app.infra.stores.memory_stores import (  # noqa: E402
    MemoryAppointmentStore,
    MemoryCalendarIntegrationStore,
    MemorySyncLock,
)
from app.services.calendar_sync import SyncStateMachine  # noqa: E402
from app.services.token_lifecycle import TokenLifecycleManager  # noqa: E402
from config.settings.calendar import CalendarSettings  # noqa: E402
from tests.fakes.clock import FrozenClock  # noqa: E402
from tests.fakes.fake_calendar_gateway import FakeCalendarGateway  # noqa: E402
from tests.fakes.fake_oauth_client import FakeOAuthClient  # noqa: E402

FIXED_NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)
USER_ID = "user-1"


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(FIXED_NOW)


@pytest.fixture
def calendar_settings() -> CalendarSettings:
    return CalendarSettings(google_client_id="client-id", google_client_secret="client-secret")


@pytest.fixture
def make_appointment() -> Callable[..., Appointment]:
    """Factory de agendamento válido (consulta de 1h com paciente)."""

    def _make(**overrides: Any) -> Appointment:
        start = overrides.pop("start_time", datetime(2026, 3, 12, 13, 0, tzinfo=UTC))
        data: dict[str, Any] = {
            "id": "appt-1",
            "title": "Consulta - Maria Silva",
            "description": "Retorno dermatológico",
            "location": "Consultório 2",
            "start_time": start,
            "end_time": start + timedelta(hours=1) if start is not None else None,
            "user": AppointmentUser(id=USER_ID, name="Dra. Thayná Marra", email="dra@example.com"),
            "patient": AppointmentPatient(
                id="patient-1", full_name="Maria Silva", email="maria@example.com"
            ),
        }
        data.update(overrides)
        return Appointment(**data)

    return _make


@pytest.fixture
def make_integration() -> Callable[..., CalendarIntegration]:
    def _make(**overrides: Any) -> CalendarIntegration:
        data: dict[str, Any] = {
            "id": "integration-1",
            "user_id": USER_ID,
            "access_token": "access-valid",
            "refresh_token": "refresh-1",
            "token_expiry": FIXED_NOW + timedelta(hours=1),
            "calendar_id": "primary-cal",
            "calendar_name": "Agenda da clínica",
        }
        data.update(overrides)
        return CalendarIntegration(**data)

    return _make


@pytest.fixture
def integration_store() -> MemoryCalendarIntegrationStore:
    return MemoryCalendarIntegrationStore()


@pytest.fixture
def appointment_store() -> MemoryAppointmentStore:
    return MemoryAppointmentStore()


@pytest.fixture
def sync_lock() -> MemorySyncLock:
    return MemorySyncLock()


@pytest.fixture
def gateway() -> FakeCalendarGateway:
    return FakeCalendarGateway()


@pytest.fixture
def oauth_client() -> FakeOAuthClient:
    return FakeOAuthClient()


@pytest.fixture
def token_manager(
    oauth_client: FakeOAuthClient,
    integration_store: MemoryCalendarIntegrationStore,
    clock: FrozenClock,
) -> TokenLifecycleManager:
    return TokenLifecycleManager(
        oauth_client=oauth_client,
        integration_store=integration_store,
        clock=clock,
    )


@pytest.fixture
def sync_machine(
    token_manager: TokenLifecycleManager,
    gateway: FakeCalendarGateway,
    appointment_store: MemoryAppointmentStore,
    integration_store: MemoryCalendarIntegrationStore,
    sync_lock: MemorySyncLock,
    calendar_settings: CalendarSettings,
    clock: FrozenClock,
) -> SyncStateMachine:
    return SyncStateMachine(
        token_manager=token_manager,
        gateway=gateway,
        appointment_store=appointment_store,
        integration_store=integration_store,
        sync_lock=sync_lock,
        settings=calendar_settings,
        clock=clock,
    )
