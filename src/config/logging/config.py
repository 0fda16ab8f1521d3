"""Configuracao do logging estruturado do servico.

Chamado uma unica vez pelo bootstrap. Os demais modulos usam
`logging.getLogger(__name__)` e registram eventos em snake_case com
`extra={"component", "action", "result", "correlation_id"}`.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, TYPE_CHECKING

from config.logging.filters import CorrelationIdFilter, SecretRedactionFilter
from config.logging.formatters import create_json_formatter

if TYPE_CHECKING:
    from collections.abc import Callable

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

DEFAULT_SERVICE_NAME = "clinica_agenda"

# Bibliotecas que logam URLs de requisicao (token endpoint incluso) em INFO
NOISY_LOGGERS: tuple[str, ...] = (
    "httpx",
    "httpcore",
    "googleapiclient.discovery",
    "googleapiclient.discovery_cache",
    "google.auth.transport",
)


def configure_logging(
    level: str = "INFO",
    service_name: str = DEFAULT_SERVICE_NAME,
    correlation_id_getter: Callable[[], str] | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Instala um unico handler JSON no root logger.

    Args:
        level: Nivel minimo (case insensitive).
        service_name: Valor do campo `service`.
        correlation_id_getter: Fonte do correlation_id do contexto atual.
        stream: Destino dos logs (padrao: stderr).

    Raises:
        ValueError: Nivel desconhecido.
    """
    level_upper = level.upper()
    if level_upper not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Nível de log inválido: {level}. "
            f"Válidos: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level_upper)
    handler.setFormatter(create_json_formatter())
    handler.addFilter(SecretRedactionFilter())
    handler.addFilter(CorrelationIdFilter(service_name, correlation_id_getter))

    root = logging.getLogger()
    root.setLevel(level_upper)
    root.handlers = [handler]

    # Nunca abaixo de WARNING, mesmo com LOG_LEVEL=DEBUG
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_fallback(
    logger: logging.Logger,
    component: str,
    reason: str | None = None,
    elapsed_ms: float | None = None,
) -> None:
    """Registra que uma etapa best-effort falhou e o fluxo seguiu.

    Ex.: e-mail da conta ou agenda primaria indisponiveis no callback
    OAuth.
    `reason` nao pode carregar PII nem tokens.
    """
    extra: dict[str, object] = {
        "fallback_used": True,
        "component": component,
    }
    if reason:
        extra["reason"] = reason
    if elapsed_ms is not None:
        extra["elapsed_ms"] = elapsed_ms

    logger.info(
        "fallback_applied component=%s",
        component,
        extra=extra,
    )
