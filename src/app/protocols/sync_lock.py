"""Protocolo de exclusão mútua por agendamento.

Sync e unsync seguram o lock durante toda a sequência
ler-decidir-chamar-gravar, impedindo dois creates para o mesmo
agendamento.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager


class SyncLockProtocol(ABC):
    """Contrato de lock assíncrono chaveado."""

    @abstractmethod
    def hold(self, key: str) -> AbstractAsyncContextManager[None]:
        """Retorna context manager que detém o lock da chave.

        Raises:
            SyncInProgressError: Se o lock não puder ser obtido no prazo.
        """
