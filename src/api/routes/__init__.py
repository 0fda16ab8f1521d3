"""Rotas HTTP da API — adapters de entrada.

Responsabilidades:
- Definir endpoints HTTP (calendário, health)
- Validação inicial de request (headers, query params)
- Delegação para use_cases
- Respostas HTTP apropriadas

Estrutura:
- routes/calendar/: OAuth, sincronização e exportação .ics
- routes/health/: health checks e readiness

Agregação:
- router.py: registra todos os routers no app principal
"""

from __future__ import annotations

from api.routes.router import create_api_router

__all__ = ["create_api_router"]
