"""Testes do RedisSyncLock com mock."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.infra.stores.redis_sync_lock import SYNC_LOCK_PREFIX, RedisSyncLock
from utils.errors import RedisConnectionError, SyncInProgressError


def _redis(*, acquired: bool | list[bool] = True, released: int = 1) -> MagicMock:
    mock_redis = MagicMock()
    if isinstance(acquired, list):
        mock_redis.set = AsyncMock(side_effect=acquired)
    else:
        mock_redis.set = AsyncMock(return_value=acquired)
    mock_redis.eval = AsyncMock(return_value=released)
    return mock_redis


class TestRedisSyncLock:
    """Testes do RedisSyncLock."""

    @pytest.mark.asyncio
    async def test_acquire_uses_set_nx_with_ttl(self) -> None:
        """Deve usar SET NX EX com token aleatório."""
        mock_redis = _redis()
        lock = RedisSyncLock(mock_redis, ttl_seconds=60)

        async with lock.hold("appt-1"):
            pass

        args, kwargs = mock_redis.set.call_args
        assert args[0] == f"{SYNC_LOCK_PREFIX}appt-1"
        assert kwargs == {"nx": True, "ex": 60}

    @pytest.mark.asyncio
    async def test_release_compares_token(self) -> None:
        """Liberação deve usar o mesmo token da aquisição."""
        mock_redis = _redis()
        lock = RedisSyncLock(mock_redis)

        async with lock.hold("appt-1"):
            pass

        token = mock_redis.set.call_args[0][1]
        eval_args = mock_redis.eval.call_args[0]
        assert eval_args[1:] == (1, f"{SYNC_LOCK_PREFIX}appt-1", token)

    @pytest.mark.asyncio
    async def test_retries_until_acquired(self) -> None:
        mock_redis = _redis(acquired=[False, False, True])
        lock = RedisSyncLock(mock_redis, wait_seconds=5, poll_interval=0)

        async with lock.hold("appt-1"):
            pass

        assert mock_redis.set.await_count == 3

    @pytest.mark.asyncio
    async def test_busy_lock_raises_sync_in_progress(self) -> None:
        """Sem aquisição dentro do prazo, SyncInProgressError."""
        mock_redis = _redis(acquired=False)
        lock = RedisSyncLock(mock_redis, wait_seconds=0, poll_interval=0)

        with pytest.raises(SyncInProgressError) as exc_info:
            async with lock.hold("appt-1"):
                pytest.fail("não deveria entrar no bloco")

        assert exc_info.value.key == "appt-1"
        mock_redis.eval.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_redis_failure_raises_connection_error(self) -> None:
        mock_redis = MagicMock()
        mock_redis.set = AsyncMock(side_effect=ConnectionError("down"))
        lock = RedisSyncLock(mock_redis)

        with pytest.raises(RedisConnectionError):
            async with lock.hold("appt-1"):
                pass

    @pytest.mark.asyncio
    async def test_release_failure_does_not_mask_block_result(self) -> None:
        """Falha ao liberar é logada; o lock expira pelo TTL."""
        mock_redis = _redis()
        mock_redis.eval = AsyncMock(side_effect=ConnectionError("down"))
        lock = RedisSyncLock(mock_redis)

        async with lock.hold("appt-1"):
            result = "done"

        assert result == "done"

    @pytest.mark.asyncio
    async def test_released_even_when_block_raises(self) -> None:
        mock_redis = _redis()
        lock = RedisSyncLock(mock_redis)

        with pytest.raises(ValueError):
            async with lock.hold("appt-1"):
                raise ValueError("boom")

        mock_redis.eval.assert_awaited_once()
