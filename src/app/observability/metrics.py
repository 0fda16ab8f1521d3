"""Registro de métricas via structured logging.

As métricas são registradas como logs estruturados e podem ser agregadas
posteriormente (BigQuery, Cloud Logging, etc).

Métricas suportadas:
- Latência: tempos de chamadas ao gateway de calendário e ao OAuth
- Sync outcome: counter de sync/unsync por resultado
- Token refresh: counter de renovações por resultado

Uso:
    from app.observability.metrics import record_latency, record_sync_outcome

    start = time.perf_counter()
    # ... chamada remota ...
    latency_ms = (time.perf_counter() - start) * 1000
    record_latency("google_calendar", "create_event", latency_ms)

    record_sync_outcome("sync", "created")
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def record_latency(
    component: str,
    operation: str,
    latency_ms: float,
    correlation_id: str | None = None,
) -> None:
    """Registra latência de operação.

    Args:
        component: Nome do componente (ex: "google_calendar", "google_oauth")
        operation: Nome da operação (ex: "create_event", "refresh")
        latency_ms: Latência em milissegundos
        correlation_id: ID de correlação para rastreamento
    """
    extra: dict[str, object] = {
        "metric_type": "latency",
        "component": component,
        "operation": operation,
        "latency_ms": round(latency_ms, 2),
    }
    # Sem correlation_id explícito o filter usa o do contexto
    if correlation_id:
        extra["correlation_id"] = correlation_id
    logger.info("metric_latency", extra=extra)


def record_sync_outcome(
    operation: str,
    result: str,
    correlation_id: str | None = None,
    metadata: dict[str, str | float | int] | None = None,
) -> None:
    """Registra resultado de sync/unsync de um agendamento.

    Args:
        operation: "sync" ou "unsync"
        result: Resultado (ex: "created", "updated", "deleted", "noop", "failed")
        correlation_id: ID de correlação para rastreamento
        metadata: Metadados adicionais opcionais (sem PII)
    """
    extra: dict[str, object] = {
        "metric_type": "sync_outcome",
        "component": "calendar_sync",
        "operation": operation,
        "result": result,
    }
    if correlation_id:
        extra["correlation_id"] = correlation_id
    if metadata:
        extra.update(metadata)

    logger.info("metric_sync_outcome", extra=extra)


def record_token_refresh(
    result: str,
    correlation_id: str | None = None,
) -> None:
    """Registra renovação de access token.

    Args:
        result: "ok", "rejected" ou "timeout"
        correlation_id: ID de correlação para rastreamento
    """
    extra: dict[str, object] = {
        "metric_type": "token_refresh",
        "component": "token_lifecycle",
        "result": result,
    }
    if correlation_id:
        extra["correlation_id"] = correlation_id
    logger.info("metric_token_refresh", extra=extra)
