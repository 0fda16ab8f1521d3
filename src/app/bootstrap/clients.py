"""Clientes de IO compartilhados pelo processo.

Cada factory e um singleton: o lifespan do app cria os clientes dos
backends configurados e os fecha no shutdown.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

import httpx

from config.settings import get_base_settings, get_calendar_settings, get_firestore_settings

if TYPE_CHECKING:
    from google.cloud.firestore import Client as FirestoreClient
    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)

# Lock de sync tem TTL proprio; o socket nao deve segurar a requisicao alem disso
_REDIS_SOCKET_TIMEOUT_SECONDS = 5.0


@lru_cache(maxsize=1)
def create_async_redis_client() -> AsyncRedis:
    """Redis do lock distribuido por agendamento.

    Raises:
        ValueError: REDIS_URL ausente.
    """
    from redis.asyncio import Redis as AsyncRedis

    redis_url = get_base_settings().redis_url
    if not redis_url:
        raise ValueError("REDIS_URL não configurado")

    client: AsyncRedis = AsyncRedis.from_url(
        redis_url,
        decode_responses=True,
        socket_timeout=_REDIS_SOCKET_TIMEOUT_SECONDS,
        socket_connect_timeout=_REDIS_SOCKET_TIMEOUT_SECONDS,
        health_check_interval=30,
    )
    logger.info("redis_client_created", extra={"component": "bootstrap", "purpose": "sync_lock"})
    return client


@lru_cache(maxsize=1)
def create_firestore_client() -> FirestoreClient:
    """Firestore de integracoes e agendamentos."""
    from google.cloud import firestore

    settings = get_firestore_settings()
    project_id = settings.effective_project(get_base_settings().gcp_project)
    client = firestore.Client(project=project_id or None, database=settings.database)
    logger.info(
        "firestore_client_created",
        extra={"component": "bootstrap", "project": project_id, "database": settings.database},
    )
    return client


@lru_cache(maxsize=1)
def create_http_client() -> httpx.AsyncClient:
    """httpx das chamadas OAuth (token endpoint e userinfo).

    Usa o mesmo limite de tempo do gateway de calendario.
    """
    timeout = get_calendar_settings().request_timeout_seconds
    client = httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        headers={"Accept": "application/json"},
    )
    logger.info("http_client_created", extra={"component": "bootstrap", "timeout_seconds": timeout})
    return client
