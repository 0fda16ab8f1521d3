"""Use cases de integracao de calendario."""

from .calendar_integration import CalendarIntegrationService

__all__ = ["CalendarIntegrationService"]
