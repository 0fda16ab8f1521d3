"""Constantes do provedor Google (OAuth2 e Calendar API v3).

Endpoints fixos ficam aqui; credenciais e escopos configuraveis vivem
em config/settings/calendar.py.
"""

from __future__ import annotations

GOOGLE_AUTH_URL: str = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL: str = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL: str = "https://www.googleapis.com/oauth2/v2/userinfo"

GOOGLE_CALENDAR_API_NAME: str = "calendar"
GOOGLE_CALENDAR_API_VERSION: str = "v3"

CALENDAR_SCOPE: str = "https://www.googleapis.com/auth/calendar"
USERINFO_EMAIL_SCOPE: str = "https://www.googleapis.com/auth/userinfo.email"

DEFAULT_GOOGLE_SCOPES: tuple[str, ...] = (CALENDAR_SCOPE, USERINFO_EMAIL_SCOPE)

# Calendario usado quando a integracao nao registrou um id especifico
PRIMARY_CALENDAR_ID: str = "primary"

__all__ = [
    "CALENDAR_SCOPE",
    "DEFAULT_GOOGLE_SCOPES",
    "GOOGLE_AUTH_URL",
    "GOOGLE_CALENDAR_API_NAME",
    "GOOGLE_CALENDAR_API_VERSION",
    "GOOGLE_TOKEN_URL",
    "GOOGLE_USERINFO_URL",
    "PRIMARY_CALENDAR_ID",
    "USERINFO_EMAIL_SCOPE",
]
