"""Testes das settings de agenda, armazenamento e validação de startup."""

from __future__ import annotations

import pytest

from app.bootstrap import collect_settings_errors, validate_runtime_settings
from config.settings import (
    DEFAULT_GOOGLE_SCOPES,
    get_base_settings,
    get_calendar_settings,
    get_firestore_settings,
    get_storage_settings,
)
from config.settings.base.core import BaseSettings, _load_base_from_env
from config.settings.base.storage import StorageSettings, _load_storage_from_env
from config.settings.calendar import (
    CalendarSettings,
    ReminderSetting,
    _load_calendar_from_env,
    _parse_reminders,
    _parse_scopes,
)
from config.settings.infra.firestore import FirestoreSettings, _load_firestore_from_env

_ENV_KEYS = (
    "ENVIRONMENT",
    "LOG_LEVEL",
    "SERVICE_NAME",
    "GCP_PROJECT",
    "GOOGLE_CLOUD_PROJECT",
    "REDIS_URL",
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "GOOGLE_REDIRECT_URI",
    "GOOGLE_CALENDAR_SCOPES",
    "CALENDAR_UTC_OFFSET",
    "CALENDAR_REMINDERS",
    "CALENDAR_STORE_BACKEND",
    "SYNC_LOCK_BACKEND",
    "FIRESTORE_PROJECT_ID",
    "FIRESTORE_DATABASE",
    "FIRESTORE_COLLECTION_INTEGRATIONS",
    "FIRESTORE_COLLECTION_APPOINTMENTS",
)


def _clear_caches() -> None:
    for getter in (
        get_base_settings,
        get_calendar_settings,
        get_firestore_settings,
        get_storage_settings,
    ):
        getter.cache_clear()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    _clear_caches()
    yield
    _clear_caches()


class TestCalendarSettings:
    def test_defaults(self) -> None:
        settings = CalendarSettings()
        assert settings.google_scopes == DEFAULT_GOOGLE_SCOPES
        assert settings.calendar_timezone == "America/Sao_Paulo"
        assert settings.utc_offset_minutes == -180
        assert [r.minutes for r in settings.reminders] == [1440, 60]

    @pytest.mark.parametrize(
        ("offset", "expected"),
        [("+0000", 0), ("+0530", 330), ("-0300", -180), (" -0230 ", -150)],
    )
    def test_utc_offset_minutes(self, offset: str, expected: int) -> None:
        assert CalendarSettings(calendar_utc_offset=offset).utc_offset_minutes == expected

    def test_validation_errors_without_credentials(self) -> None:
        errors = CalendarSettings().validation_errors()
        assert "GOOGLE_CLIENT_ID nao configurado" in errors
        assert "GOOGLE_CLIENT_SECRET nao configurado" in errors

    def test_invalid_offset_is_reported(self) -> None:
        settings = CalendarSettings(
            google_client_id="id", google_client_secret="secret", calendar_utc_offset="-3"
        )
        assert settings.validation_errors() == ["CALENDAR_UTC_OFFSET invalido: -3"]

    def test_complete_settings_are_valid(self) -> None:
        settings = CalendarSettings(google_client_id="id", google_client_secret="secret")
        assert settings.validation_errors() == []


class TestParsers:
    def test_scopes_accept_space_or_comma(self) -> None:
        assert _parse_scopes("a, b c") == ("a", "b", "c")
        assert _parse_scopes(None) == DEFAULT_GOOGLE_SCOPES

    def test_reminders_parsed_in_order(self) -> None:
        assert _parse_reminders("popup:15, email:120") == (
            ReminderSetting(method="popup", minutes=15),
            ReminderSetting(method="email", minutes=120),
        )

    def test_malformed_reminders_are_ignored(self) -> None:
        assert _parse_reminders("popup:abc,email:0,:10,popup:30") == (
            ReminderSetting(method="popup", minutes=30),
        )

    def test_no_valid_reminder_falls_back_to_default(self) -> None:
        assert [r.minutes for r in _parse_reminders("lixo")] == [1440, 60]

    def test_load_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("GOOGLE_CLIENT_ID", "env-id")
        monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "env-secret")
        monkeypatch.setenv("GOOGLE_REDIRECT_URI", "  ")
        monkeypatch.setenv("CALENDAR_REMINDERS", "popup:10")

        settings = _load_calendar_from_env()

        assert settings.google_client_id == "env-id"
        assert settings.google_redirect_uri == CalendarSettings().google_redirect_uri
        assert settings.reminders == (ReminderSetting(method="popup", minutes=10),)


class TestStorageSettings:
    def test_development_defaults_to_memory(self) -> None:
        storage = _load_storage_from_env()
        assert storage.store_backend == "memory"
        assert storage.lock_backend == "memory"

    def test_deployed_defaults_to_firestore_and_redis(self, monkeypatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")
        storage = _load_storage_from_env()
        assert storage.store_backend == "firestore"
        assert storage.lock_backend == "redis"

    def test_unknown_backend_falls_back_to_memory(self, monkeypatch) -> None:
        monkeypatch.setenv("CALENDAR_STORE_BACKEND", "postgres")
        assert _load_storage_from_env().store_backend == "memory"

    def test_memory_forbidden_outside_development(self) -> None:
        errors = StorageSettings().validate(BaseSettings(environment="staging"))
        assert any("CALENDAR_STORE_BACKEND=memory" in error for error in errors)
        assert any("SYNC_LOCK_BACKEND=memory" in error for error in errors)

    def test_deployed_backends_require_project_and_redis(self) -> None:
        storage = StorageSettings(store_backend="firestore", lock_backend="redis")
        errors = storage.validate(BaseSettings(environment="production"))
        assert "SYNC_LOCK_BACKEND=redis requer REDIS_URL configurado" in errors
        assert "CALENDAR_STORE_BACKEND=firestore requer GCP_PROJECT configurado" in errors

    def test_valid_deployed_backends(self) -> None:
        storage = StorageSettings(store_backend="firestore", lock_backend="redis")
        base = BaseSettings(
            environment="production", gcp_project="proj", redis_url="redis://localhost"
        )
        assert storage.validate(base) == []


class TestStartupValidation:
    def test_errors_are_prefixed_by_domain(self) -> None:
        errors = collect_settings_errors()
        assert "calendar: GOOGLE_CLIENT_ID nao configurado" in errors
        assert not any(error.startswith("storage:") for error in errors)

    def test_firestore_errors_only_when_selected(self, monkeypatch) -> None:
        monkeypatch.setenv("CALENDAR_STORE_BACKEND", "firestore")
        errors = collect_settings_errors()
        assert "firestore: FIRESTORE_PROJECT_ID ou GCP_PROJECT deve estar configurado" in errors

    def test_development_only_warns(self) -> None:
        validate_runtime_settings()

    def test_production_fails_fast(self, monkeypatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")
        with pytest.raises(RuntimeError, match="Configuração inválida para production"):
            validate_runtime_settings()


class TestBaseSettings:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("prod", "production"), ("Stage", "staging"), ("qa", "development")],
    )
    def test_environment_aliases(self, monkeypatch, raw: str, expected: str) -> None:
        monkeypatch.setenv("ENVIRONMENT", raw)
        assert _load_base_from_env().environment == expected

    def test_prod_alias_selects_deployed_backends(self, monkeypatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "prod")
        assert _load_storage_from_env().store_backend == "firestore"

    def test_invalid_log_level_is_reported(self, monkeypatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "verbose")
        base = _load_base_from_env()
        assert base.log_level == "VERBOSE"
        assert base.validate() == ["LOG_LEVEL inválido: VERBOSE"]


class TestFirestoreSettings:
    def test_project_falls_back_to_gcp_project(self) -> None:
        settings = FirestoreSettings()
        assert settings.effective_project("gcp-proj") == "gcp-proj"
        assert settings.validate("gcp-proj") == []

    def test_explicit_project_wins(self) -> None:
        assert FirestoreSettings(project_id="fs-proj").effective_project("gcp") == "fs-proj"

    @pytest.mark.parametrize("name", ["a/b", "__reserved__", ""])
    def test_invalid_collection_names(self, name: str) -> None:
        errors = FirestoreSettings(collection_appointments=name).validate("proj")
        assert len(errors) == 1
        assert errors[0].startswith("FIRESTORE_COLLECTION_APPOINTMENTS")

    def test_collections_must_differ(self) -> None:
        settings = FirestoreSettings(collection_appointments="calendar_integrations")
        assert settings.validate("proj") == [
            "Collections de integrações e agendamentos devem ser distintas"
        ]

    def test_load_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("FIRESTORE_DATABASE", "agenda")
        monkeypatch.setenv("FIRESTORE_COLLECTION_APPOINTMENTS", " consultas ")
        settings = _load_firestore_from_env()
        assert settings.database == "agenda"
        assert settings.collection_appointments == "consultas"
