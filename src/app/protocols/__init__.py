"""Protocolos e contratos do core da aplicação."""

from .calendar_gateway import CalendarGatewayProtocol
from .calendar_store import AppointmentStoreProtocol, CalendarIntegrationStoreProtocol
from .oauth_client import OAuthClientProtocol
from .sync_lock import SyncLockProtocol

__all__ = [
    "AppointmentStoreProtocol",
    "CalendarGatewayProtocol",
    "CalendarIntegrationStoreProtocol",
    "OAuthClientProtocol",
    "SyncLockProtocol",
]
