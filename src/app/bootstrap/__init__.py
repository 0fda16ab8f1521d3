"""Bootstrap do servico de agenda: logging, validacao de settings e wiring.

Composition root. As rotas obtem a fachada por `get_calendar_service`,
que monta OAuth, gateway, stores e lock conforme o ambiente:

    from app.bootstrap import initialize_app, get_calendar_service

    initialize_app()
    service = get_calendar_service()
"""

from __future__ import annotations

import logging
from functools import lru_cache

from app.observability import get_correlation_id
from config.logging import configure_logging
from config.logging.config import VALID_LOG_LEVELS
from config.settings import (
    get_base_settings,
    get_calendar_settings,
    get_firestore_settings,
    get_storage_settings,
)

SERVICE_NAME = "clinica_agenda"

logger = logging.getLogger(__name__)


def initialize_app() -> None:
    """Configura o logging JSON com correlation_id.

    LOG_LEVEL invalido nao impede o boot: cai em INFO e aparece como erro
    em `collect_settings_errors`.
    """
    base = get_base_settings()
    configure_logging(
        level=base.log_level if base.log_level in VALID_LOG_LEVELS else "INFO",
        service_name=base.service_name or SERVICE_NAME,
        correlation_id_getter=get_correlation_id,
    )


def collect_settings_errors() -> list[str]:
    """Erros de configuração agregados por domínio."""
    base = get_base_settings()
    storage = get_storage_settings()
    errors: list[str] = []

    errors.extend(f"base: {error}" for error in base.validate())
    errors.extend(f"calendar: {error}" for error in get_calendar_settings().validation_errors())
    errors.extend(f"storage: {error}" for error in storage.validate(base))

    if storage.store_backend == "firestore":
        firestore_errors = get_firestore_settings().validate(base.gcp_project)
        errors.extend(f"firestore: {error}" for error in firestore_errors)
    return errors


def validate_runtime_settings() -> None:
    """Valida settings no startup.

    Fora de development falha rápido; em development só registra alerta.
    """
    environment = get_base_settings().environment
    errors = collect_settings_errors()

    if not errors:
        logger.info(
            "settings_validated",
            extra={"component": "bootstrap", "result": "ok", "environment": environment},
        )
        return

    logger.warning(
        "settings_validation_failed",
        extra={
            "component": "bootstrap",
            "result": "failed",
            "environment": environment,
            "error_count": len(errors),
            "errors": errors,
        },
    )
    if environment != "development":
        details = "\n".join(f"- {error}" for error in errors)
        raise RuntimeError(f"Configuração inválida para {environment}:\n{details}")


# ──────────────────────────────────────────────────────────────────────────────
# Getters (lazy initialization com cache)
# ──────────────────────────────────────────────────────────────────────────────


@lru_cache(maxsize=1)
def get_integration_store():
    """Obtém store de CalendarIntegration (singleton)."""
    from app.bootstrap.dependencies import create_integration_store
    return create_integration_store()


@lru_cache(maxsize=1)
def get_appointment_store():
    """Obtém store de agendamentos (singleton)."""
    from app.bootstrap.dependencies import create_appointment_store
    return create_appointment_store()


@lru_cache(maxsize=1)
def get_sync_lock():
    """Obtém lock por agendamento (singleton)."""
    from app.bootstrap.dependencies import create_sync_lock
    return create_sync_lock()


@lru_cache(maxsize=1)
def get_calendar_service():
    """Obtém CalendarIntegrationService com todas as dependências (singleton).

    Returns:
        CalendarIntegrationService configurado conforme env
    """
    from app.bootstrap.dependencies_services import (
        create_calendar_gateway,
        create_calendar_service,
        create_oauth_client,
    )
    return create_calendar_service(
        oauth_client=create_oauth_client(),
        gateway=create_calendar_gateway(),
        integration_store=get_integration_store(),
        appointment_store=get_appointment_store(),
        sync_lock=get_sync_lock(),
    )
