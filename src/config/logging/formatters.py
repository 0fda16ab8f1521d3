"""Formatter JSON dos logs do servico de agenda.

Cada linha sai como um objeto JSON com timestamp UTC, nivel, logger,
evento (message), correlation_id, service e component.
"""

from __future__ import annotations

import time

from pythonjsonlogger.json import JsonFormatter

# Ordem em que os campos aparecem no JSON
REQUIRED_LOG_FIELDS: tuple[str, ...] = (
    "asctime",
    "levelname",
    "name",
    "message",
    "correlation_id",
    "service",
    "component",
)

FIELD_RENAME_MAP = {
    "asctime": "timestamp",
    "levelname": "level",
    "name": "logger",
}

LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def create_json_formatter() -> JsonFormatter:
    """Cria o formatter JSON padrao.

    Exemplo de output:
        {"timestamp": "2026-03-10T12:00:00Z", "level": "INFO",
         "logger": "app.services.calendar_sync",
         "message": "calendar_sync_succeeded", "correlation_id": "abc-123",
         "service": "clinica_agenda", "component": "calendar_sync"}
    """
    formatter = JsonFormatter(
        " ".join(f"%({field})s" for field in REQUIRED_LOG_FIELDS),
        datefmt=LOG_DATE_FORMAT,
        rename_fields=FIELD_RENAME_MAP,
    )
    formatter.converter = time.gmtime
    return formatter

