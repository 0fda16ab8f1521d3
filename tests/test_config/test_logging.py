"""Testes do logging estruturado."""

from __future__ import annotations

import io
import json
import logging
from unittest.mock import MagicMock

import pytest

from config.logging import (
    CorrelationIdFilter,
    SecretRedactionFilter,
    configure_logging,
    create_json_formatter,
    log_fallback,
)
from config.logging.config import NOISY_LOGGERS
from config.logging.filters import REDACTED


def _record(name: str = "app.services.calendar_sync", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name=name,
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg="calendar_sync_succeeded",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.mark.usefixtures("restore_root_logger")
class TestConfigureLogging:
    @pytest.mark.parametrize(
        ("level", "expected"),
        [("INFO", logging.INFO), ("debug", logging.DEBUG), ("Warning", logging.WARNING)],
    )
    def test_level_is_case_insensitive(self, level: str, expected: int) -> None:
        configure_logging(level=level)
        assert logging.getLogger().level == expected

    def test_invalid_level_raises(self) -> None:
        with pytest.raises(ValueError, match="Nível de log inválido"):
            configure_logging(level="verbose")

    def test_replaces_existing_handlers(self) -> None:
        logging.getLogger().handlers = [logging.NullHandler(), logging.NullHandler()]
        configure_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_noisy_loggers_stay_at_warning(self) -> None:
        configure_logging(level="DEBUG")
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_emits_json_with_standard_fields(self) -> None:
        stream = io.StringIO()
        configure_logging(
            service_name="clinica_agenda",
            correlation_id_getter=lambda: "corr-1",
            stream=stream,
        )

        logging.getLogger("app.services.calendar_sync").info(
            "calendar_sync_succeeded",
            extra={"component": "calendar_sync", "action": "sync", "result": "created"},
        )
        payload = json.loads(stream.getvalue().strip())

        assert payload["message"] == "calendar_sync_succeeded"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "app.services.calendar_sync"
        assert payload["correlation_id"] == "corr-1"
        assert payload["service"] == "clinica_agenda"
        assert payload["component"] == "calendar_sync"
        assert payload["result"] == "created"
        assert payload["timestamp"].endswith("Z")

    def test_tokens_in_extra_are_masked(self) -> None:
        stream = io.StringIO()
        configure_logging(stream=stream)

        logging.getLogger("app.services.token_lifecycle").info(
            "token_refreshed", extra={"access_token": "ya29.secret", "action": "refresh"}
        )
        output = stream.getvalue()

        assert "ya29.secret" not in output
        assert json.loads(output.strip())["access_token"] == REDACTED


class TestCorrelationIdFilter:
    def test_injects_correlation_id_and_service(self) -> None:
        record = _record()
        assert CorrelationIdFilter("clinica_agenda", lambda: "corr-123").filter(record) is True
        assert record.correlation_id == "corr-123"
        assert record.service == "clinica_agenda"

    def test_explicit_correlation_id_wins(self) -> None:
        record = _record(correlation_id="explicit-id")
        CorrelationIdFilter("svc", lambda: "from-getter").filter(record)
        assert record.correlation_id == "explicit-id"

    def test_without_getter_uses_empty_string(self) -> None:
        record = _record()
        CorrelationIdFilter("svc").filter(record)
        assert record.correlation_id == ""

    def test_component_defaults_to_module_name(self) -> None:
        record = _record(name="app.infra.calendar.google_calendar_client")
        CorrelationIdFilter("svc").filter(record)
        assert record.component == "google_calendar_client"

    def test_explicit_component_is_kept(self) -> None:
        record = _record(component="calendar_sync")
        CorrelationIdFilter("svc").filter(record)
        assert record.component == "calendar_sync"


class TestSecretRedactionFilter:
    def test_masks_sensitive_keys(self) -> None:
        record = _record(refresh_token="1//rt", client_secret="shh", code="4/abc")
        SecretRedactionFilter().filter(record)
        assert record.refresh_token == REDACTED
        assert record.client_secret == REDACTED
        assert record.code == REDACTED

    def test_leaves_other_fields_untouched(self) -> None:
        record = _record(appointment_id="appt-1", access_token="")
        SecretRedactionFilter().filter(record)
        assert record.appointment_id == "appt-1"
        assert record.access_token == ""


class TestLogFallback:
    def test_lazy_template_and_extra(self) -> None:
        logger = MagicMock(spec=logging.Logger)
        log_fallback(logger, "calendar_oauth_callback", reason="userinfo_GatewayError")

        args, kwargs = logger.info.call_args
        assert args == ("fallback_applied component=%s", "calendar_oauth_callback")
        assert kwargs["extra"] == {
            "fallback_used": True,
            "component": "calendar_oauth_callback",
            "reason": "userinfo_GatewayError",
        }

    def test_elapsed_ms_is_optional(self) -> None:
        logger = MagicMock(spec=logging.Logger)
        log_fallback(logger, "calendar_oauth_callback", elapsed_ms=812.4)
        extra = logger.info.call_args[1]["extra"]
        assert extra["elapsed_ms"] == 812.4
        assert "reason" not in extra


def test_formatter_renames_standard_fields() -> None:
    record = _record(correlation_id="abc", service="svc", component="calendar_sync")
    payload = json.loads(create_json_formatter().format(record))
    assert {"timestamp", "level", "logger", "message"} <= payload.keys()
    assert "levelname" not in payload
