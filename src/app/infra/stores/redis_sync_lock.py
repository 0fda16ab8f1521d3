"""Redis Sync Lock — exclusão mútua por agendamento entre instâncias.

Usa SET NX EX com token aleatório para adquirir e compare-and-delete
(script Lua) para liberar, de modo que uma instância nunca remova o
lock que expirou e foi tomado por outra.

Contrato de Keys:
    As keys são ids opacos de agendamento. NUNCA passar PII como key.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from app.protocols.sync_lock import SyncLockProtocol
from utils.errors import RedisConnectionError, SyncInProgressError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)

# Prefixo para namespace de lock de sync
SYNC_LOCK_PREFIX = "calendar_sync_lock:"

_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class RedisSyncLock(SyncLockProtocol):
    """Lock distribuído por agendamento usando Redis (SET NX EX).

    Args:
        redis_client: Cliente Redis assíncrono
        ttl_seconds: Expiração do lock (deve cobrir a chamada remota mais lenta)
        wait_seconds: Espera máxima antes de SyncInProgressError
        poll_interval: Intervalo entre tentativas de aquisição
    """

    def __init__(
        self,
        redis_client: AsyncRedis[bytes],
        *,
        ttl_seconds: int = 120,
        wait_seconds: float = 35.0,
        poll_interval: float = 0.1,
    ) -> None:
        self._redis = redis_client
        self._ttl_seconds = ttl_seconds
        self._wait_seconds = wait_seconds
        self._poll_interval = poll_interval

    def _key(self, key: str) -> str:
        """Gera chave Redis com namespace."""
        return f"{SYNC_LOCK_PREFIX}{key}"

    async def _try_acquire(self, redis_key: str, token: str) -> bool:
        try:
            return bool(await self._redis.set(redis_key, token, nx=True, ex=self._ttl_seconds))
        except Exception as exc:
            raise RedisConnectionError("Falha ao adquirir lock de sync no Redis") from exc

    async def _release(self, redis_key: str, token: str) -> None:
        try:
            released = await self._redis.eval(_RELEASE_SCRIPT, 1, redis_key, token)
        except Exception:
            # Sem liberar, o lock expira sozinho após o TTL
            logger.warning(
                "sync_lock_release_failed",
                extra={"component": "redis_sync_lock", "action": "release", "result": "error"},
            )
            return
        if not released:
            logger.warning(
                "sync_lock_expired_before_release",
                extra={"component": "redis_sync_lock", "action": "release", "result": "expired"},
            )

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        redis_key = self._key(key)
        token = uuid.uuid4().hex
        deadline = time.monotonic() + self._wait_seconds

        while not await self._try_acquire(redis_key, token):
            if time.monotonic() >= deadline:
                logger.info(
                    "sync_lock_busy",
                    extra={"component": "redis_sync_lock", "action": "acquire", "result": "busy"},
                )
                raise SyncInProgressError(key)
            await asyncio.sleep(self._poll_interval)

        try:
            yield
        finally:
            await self._release(redis_key, token)
