"""Settings do Firestore usado pelos stores de integracao e agendamento."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_DATABASE = "(default)"


def _collection_error(env_key: str, name: str) -> str | None:
    if not name:
        return f"{env_key} não pode ser vazio"
    if "/" in name or (name.startswith("__") and name.endswith("__")):
        return f"{env_key} inválido: {name}"
    return None


@dataclass(frozen=True)
class FirestoreSettings:
    """Projeto, database e collections do Firestore.

    Attributes:
        project_id: Projeto explicito; vazio usa GCP_PROJECT.
        database: Database id (multi-database do Firestore).
        collection_integrations: Um documento por (user_id, provider).
        collection_appointments: Agendamentos com os campos de sync.
    """

    project_id: str = ""
    database: str = DEFAULT_DATABASE
    collection_integrations: str = "calendar_integrations"
    collection_appointments: str = "appointments"

    def effective_project(self, gcp_project: str) -> str:
        return self.project_id or gcp_project

    def validate(self, gcp_project: str) -> list[str]:
        errors: list[str] = []
        if not self.effective_project(gcp_project):
            errors.append("FIRESTORE_PROJECT_ID ou GCP_PROJECT deve estar configurado")
        for env_key, name in (
            ("FIRESTORE_COLLECTION_INTEGRATIONS", self.collection_integrations),
            ("FIRESTORE_COLLECTION_APPOINTMENTS", self.collection_appointments),
        ):
            error = _collection_error(env_key, name)
            if error:
                errors.append(error)
        if self.collection_integrations == self.collection_appointments:
            errors.append("Collections de integrações e agendamentos devem ser distintas")
        return errors


def _load_firestore_from_env() -> FirestoreSettings:
    return FirestoreSettings(
        project_id=os.getenv("FIRESTORE_PROJECT_ID", ""),
        database=os.getenv("FIRESTORE_DATABASE", DEFAULT_DATABASE) or DEFAULT_DATABASE,
        collection_integrations=os.getenv(
            "FIRESTORE_COLLECTION_INTEGRATIONS", "calendar_integrations"
        ).strip(),
        collection_appointments=os.getenv(
            "FIRESTORE_COLLECTION_APPOINTMENTS", "appointments"
        ).strip(),
    )


@lru_cache(maxsize=1)
def get_firestore_settings() -> FirestoreSettings:
    """Retorna instância cacheada de FirestoreSettings."""
    return _load_firestore_from_env()
