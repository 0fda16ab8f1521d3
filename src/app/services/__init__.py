"""Serviços de aplicação.

Unidades reutilizáveis de orquestração (sem IO direto).
Implementações concretas de IO ficam em app/infra/.
"""

from app.services.calendar_sync import SyncResult, SyncStateMachine
from app.services.ical_export import ExportResult, ICalendarExporter
from app.services.ical_serializer import ICalendarSerializer
from app.services.token_lifecycle import TokenLifecycleManager

__all__ = [
    "ExportResult",
    "ICalendarExporter",
    "ICalendarSerializer",
    "SyncResult",
    "SyncStateMachine",
    "TokenLifecycleManager",
]
