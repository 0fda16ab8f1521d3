"""Exceções utilitárias compartilhadas."""

from .calendar import (
    AppointmentNotFoundError,
    AuthExchangeError,
    CalendarError,
    CalendarTimeoutError,
    EmptyResultError,
    GatewayError,
    IntegrationNotFoundError,
    NotAuthenticatedError,
    NotFoundError,
    RefreshError,
    SerializationPreconditionError,
    SyncInProgressError,
)
from .exceptions import (
    FirestoreUnavailableError,
    InfrastructureError,
    RedisConnectionError,
)

__all__ = [
    "AppointmentNotFoundError",
    "AuthExchangeError",
    "CalendarError",
    "CalendarTimeoutError",
    "EmptyResultError",
    "FirestoreUnavailableError",
    "GatewayError",
    "InfrastructureError",
    "IntegrationNotFoundError",
    "NotAuthenticatedError",
    "NotFoundError",
    "RedisConnectionError",
    "RefreshError",
    "SerializationPreconditionError",
    "SyncInProgressError",
]
