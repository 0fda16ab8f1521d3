"""Filters que enriquecem e higienizam records antes do formatter."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

REDACTED = "[redacted]"

# Chaves de `extra` que nunca podem sair em claro
SENSITIVE_KEYS = frozenset(
    {
        "access_token",
        "refresh_token",
        "client_secret",
        "code",
        "authorization",
        "id_token",
    }
)


class CorrelationIdFilter(logging.Filter):
    """Injeta correlation_id, service e component em cada record.

    correlation_id passado via `extra` tem precedencia sobre o getter.
    """

    def __init__(
        self,
        service_name: str,
        correlation_id_getter: Callable[[], str] | None = None,
    ) -> None:
        super().__init__()
        self._service_name = service_name
        self._get_correlation_id = correlation_id_getter or (lambda: "")

    def filter(self, record: logging.LogRecord) -> bool:
        existing = getattr(record, "correlation_id", None)
        record.correlation_id = existing or self._get_correlation_id()
        record.service = self._service_name
        if not hasattr(record, "component"):
            record.component = record.name.rsplit(".", 1)[-1]
        return True


class SecretRedactionFilter(logging.Filter):
    """Mascara tokens OAuth e segredos enviados por engano via `extra`."""

    def __init__(self, sensitive_keys: frozenset[str] = SENSITIVE_KEYS) -> None:
        super().__init__()
        self._sensitive_keys = sensitive_keys

    def filter(self, record: logging.LogRecord) -> bool:
        for key in self._sensitive_keys:
            if record.__dict__.get(key):
                setattr(record, key, REDACTED)
        return True
