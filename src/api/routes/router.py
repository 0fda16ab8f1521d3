"""Router raiz da API: probes na raiz e integracao de agenda em /api/calendar."""

from __future__ import annotations

from fastapi import APIRouter

from api.routes.calendar import router as calendar_router
from api.routes.health.router import router as health_router

# Precisa casar com GOOGLE_REDIRECT_URI registrado no console Google
CALENDAR_PREFIX = "/api/calendar"


def create_api_router() -> APIRouter:
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(calendar_router, prefix=CALENDAR_PREFIX, tags=["calendar"])
    return api_router
