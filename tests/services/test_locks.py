"""Tests for the play ingestion lock service."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import LockError

from tiptune_plays.services import locks
from tiptune_plays.services.errors import PlayLockTimeoutError
from tiptune_plays.services.locks import PlayLockService


def test_lock_name_is_scoped_to_track_and_session() -> None:
    assert PlayLockService.lock_name("t1", "s1") == "playlock:t1:s1"


def test_local_lock_is_released_after_block() -> None:
    service = PlayLockService(timeout_seconds=0.1)
    with service.hold("t1", "s1"):
        pass
    with service.hold("t1", "s1"):
        pass
    assert "playlock:t1:s1" not in locks._LOCAL_LOCKS


def test_local_lock_times_out_when_held_elsewhere() -> None:
    service = PlayLockService(timeout_seconds=0.05)
    entered = threading.Event()
    release = threading.Event()

    def _holder() -> None:
        with service.hold("t1", "s1"):
            entered.set()
            release.wait(timeout=5)

    holder = threading.Thread(target=_holder)
    holder.start()
    try:
        assert entered.wait(timeout=5)
        with pytest.raises(PlayLockTimeoutError):
            with service.hold("t1", "s1"):
                pass
    finally:
        release.set()
        holder.join(timeout=5)


def test_local_locks_for_different_sessions_do_not_block() -> None:
    service = PlayLockService(timeout_seconds=0.05)
    with service.hold("t1", "s1"):
        with service.hold("t1", "s2"):
            pass


def _service_with_redis(redis_client: MagicMock) -> PlayLockService:
    service = PlayLockService(ttl_seconds=5, timeout_seconds=1)
    service._redis = redis_client
    return service


def test_redis_lock_is_acquired_and_released() -> None:
    redis_client = MagicMock()
    redis_lock = redis_client.lock.return_value
    redis_lock.acquire.return_value = True
    service = _service_with_redis(redis_client)

    with service.hold("t1", "s1"):
        redis_lock.release.assert_not_called()

    redis_client.lock.assert_called_once_with("playlock:t1:s1", timeout=5, blocking_timeout=1)
    redis_lock.release.assert_called_once()


def test_redis_lock_busy_raises_timeout() -> None:
    redis_client = MagicMock()
    redis_client.lock.return_value.acquire.return_value = False
    service = _service_with_redis(redis_client)

    with pytest.raises(PlayLockTimeoutError):
        with service.hold("t1", "s1"):
            pass


def test_expired_redis_lock_on_release_is_tolerated() -> None:
    redis_client = MagicMock()
    redis_lock = redis_client.lock.return_value
    redis_lock.acquire.return_value = True
    redis_lock.release.side_effect = LockError("Cannot release an unlocked lock")
    service = _service_with_redis(redis_client)

    with service.hold("t1", "s1"):
        pass


def test_unreachable_redis_falls_back_to_local_lock() -> None:
    redis_client = MagicMock()
    redis_client.lock.return_value.acquire.side_effect = RedisConnectionError("refused")
    service = _service_with_redis(redis_client)

    with service.hold("t1", "s1"):
        pass

    assert service._redis is None


def test_acquire_redis_returns_held_lock() -> None:
    redis_client = MagicMock()
    redis_client.lock.return_value.acquire.return_value = True
    service = _service_with_redis(redis_client)

    assert service._acquire_redis("playlock:t1:s1") is redis_client.lock.return_value


def test_acquire_redis_without_client_returns_none() -> None:
    assert PlayLockService()._acquire_redis("playlock:t1:s1") is None
