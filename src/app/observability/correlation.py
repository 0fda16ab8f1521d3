"""correlation_id por requisicao, propagado aos logs via ContextVar.

Cada rota de /api/calendar abre um `correlation_scope` com o header
`X-Correlation-Id` recebido; o CorrelationIdFilter le o valor do contexto,
inclusive dentro de tarefas asyncio criadas durante a requisicao.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token

CORRELATION_HEADER = "x-correlation-id"

# Valores de fora entram nos logs; rejeita quebras de linha e tamanhos abusivos
_ACCEPTED_ID = re.compile(r"[A-Za-z0-9._:-]{1,128}")

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    return _correlation_id.get()


def generate_correlation_id() -> str:
    return uuid.uuid4().hex


def set_correlation_id(correlation_id: str | None = None) -> Token[str]:
    """Define o id do contexto atual.

    Ausente ou fora do formato aceito, gera um novo.
    """
    if not correlation_id or not _ACCEPTED_ID.fullmatch(correlation_id):
        correlation_id = generate_correlation_id()
    return _correlation_id.set(correlation_id)


def reset_correlation_id(token: Token[str]) -> None:
    _correlation_id.reset(token)


@contextmanager
def correlation_scope(incoming: str | None = None) -> Iterator[str]:
    """Escopo de uma requisicao; restaura o id anterior ao sair."""
    token = set_correlation_id(incoming)
    try:
        yield _correlation_id.get()
    finally:
        reset_correlation_id(token)
