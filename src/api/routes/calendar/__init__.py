"""Rotas de integração de calendário."""

from api.routes.calendar.router import router

__all__ = ["router"]
