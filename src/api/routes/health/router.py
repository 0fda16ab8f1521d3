"""Liveness e readiness do servico de agenda (Cloud Run).

/ready so sonda os backends escolhidos em StorageSettings: com
armazenamento em memoria nao ha dependencia externa a checar.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any, Literal

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config.settings import get_calendar_settings, get_storage_settings

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_LABEL = "clinica-agenda"
SERVICE_VERSION = "1.0.0"

# Documento gravado no startup e lido pelo probe do Firestore
HEALTH_COLLECTION = "_health"
HEALTH_DOCUMENT = "check"

CheckStatus = Literal["ok", "degraded", "failed", "skipped"]


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    timestamp: str


@dataclass(frozen=True, slots=True)
class ProbeResult:
    status: CheckStatus
    latency_ms: float | None = None
    error: str | None = None


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness: o processo responde."""
    return HealthResponse(
        status="healthy",
        service=SERVICE_LABEL,
        version=SERVICE_VERSION,
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/ready")
async def readiness_check(request: Request) -> JSONResponse:
    """Readiness: lock de sync, store de agenda e credenciais OAuth.

    Credencial OAuth ausente e `degraded`: exportacao .ics continua
    funcionando, so o fluxo Google fica indisponivel.
    """
    storage = get_storage_settings()
    state = request.app.state

    sync_lock, calendar_store = await asyncio.gather(
        _probe(_ping_redis, getattr(state, "redis_client", None), timeout=2.0)
        if storage.lock_backend == "redis"
        else _skipped(),
        _probe(_read_health_doc, getattr(state, "firestore_client", None), timeout=3.0)
        if storage.store_backend == "firestore"
        else _skipped(),
    )
    checks = {
        "sync_lock": sync_lock,
        "calendar_store": calendar_store,
        "google_oauth": _check_oauth_credentials(),
    }
    ready = all(check.status != "failed" for check in checks.values())
    if not ready:
        logger.warning(
            "readiness_failed",
            extra={
                "component": "health",
                "result": "not_ready",
                "failed_checks": sorted(
                    name for name, check in checks.items() if check.status == "failed"
                ),
            },
        )

    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "not_ready",
            "checks": {name: asdict(check) for name, check in checks.items()},
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


async def _skipped() -> ProbeResult:
    return ProbeResult(status="skipped")


async def _probe(
    check: Callable[[Any], Awaitable[bool]],
    client: Any | None,
    *,
    timeout: float,
) -> ProbeResult:
    if client is None:
        return ProbeResult(status="failed", error="not_configured")
    started_at = time.perf_counter()
    try:
        healthy = await asyncio.wait_for(check(client), timeout=timeout)
    except TimeoutError:
        return ProbeResult(status="failed", error="timeout")
    except Exception as exc:
        return ProbeResult(status="failed", error=type(exc).__name__)
    latency_ms = round((time.perf_counter() - started_at) * 1000, 2)
    return ProbeResult(status="ok" if healthy else "degraded", latency_ms=latency_ms)


async def _ping_redis(redis_client: Any) -> bool:
    await redis_client.ping()
    return True


async def _read_health_doc(firestore_client: Any) -> bool:
    def _read() -> bool:
        doc = firestore_client.collection(HEALTH_COLLECTION).document(HEALTH_DOCUMENT).get()
        return bool(getattr(doc, "exists", False))

    return await asyncio.to_thread(_read)


def _check_oauth_credentials() -> ProbeResult:
    settings = get_calendar_settings()
    if settings.google_client_id and settings.google_client_secret:
        return ProbeResult(status="ok")
    return ProbeResult(status="degraded", error="oauth_client_not_configured")
