"""Logging estruturado JSON do servico de agenda.

Uso:
    from config.logging import configure_logging

    configure_logging(level="INFO", correlation_id_getter=get_correlation_id)
    logger = logging.getLogger(__name__)
    logger.info("calendar_sync_succeeded", extra={"component": "calendar_sync"})

Tokens OAuth passados por engano em `extra` saem mascarados.
"""

from config.logging.config import configure_logging, get_logger, log_fallback
from config.logging.filters import CorrelationIdFilter, SecretRedactionFilter
from config.logging.formatters import (
    FIELD_RENAME_MAP,
    REQUIRED_LOG_FIELDS,
    create_json_formatter,
)

__all__ = [
    "FIELD_RENAME_MAP",
    "REQUIRED_LOG_FIELDS",
    "CorrelationIdFilter",
    "SecretRedactionFilter",
    "configure_logging",
    "create_json_formatter",
    "get_logger",
    "log_fallback",
]
