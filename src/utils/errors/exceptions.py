"""Exceções para falhas recuperáveis de infraestrutura dos stores."""

from __future__ import annotations


class InfrastructureError(RuntimeError):
    """Base para falhas de infraestrutura transitórias."""


class RedisConnectionError(InfrastructureError):
    """Falha de conexão/timeout ao acessar Redis (lock de sincronização)."""


class FirestoreUnavailableError(InfrastructureError):
    """Falha ao ler ou gravar integrações e agendamentos no Firestore."""
