"""Advisory locks serialising play ingestion per (track, session)."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from functools import lru_cache
from threading import Lock

import redis
from redis.exceptions import LockError, RedisError
from redis.lock import Lock as RedisLock

from tiptune_plays.core.settings import settings
from tiptune_plays.services.errors import PlayLockTimeoutError

logger = logging.getLogger(__name__)


class PlayLockService:
    """Short-lived lock held across classify+persist for one session.

    Backed by Redis when ``REDIS_URL`` is configured; falls back to an
    in-process keyed lock when Redis is absent or unreachable, which only
    serialises callers inside the same worker process.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        *,
        ttl_seconds: float | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.ttl_seconds = ttl_seconds or settings.play_lock_ttl_seconds
        self.timeout_seconds = timeout_seconds or settings.play_lock_timeout_seconds
        self._redis: redis.Redis | None = None
        if redis_url:
            self._redis = redis.Redis.from_url(redis_url)

    @staticmethod
    def lock_name(track_id: str, session_id: str) -> str:
        return f"playlock:{track_id}:{session_id}"

    @contextmanager
    def hold(self, track_id: str, session_id: str) -> Iterator[None]:
        """Hold the lock for ``(track_id, session_id)`` for the block's duration.

        Raises:
            PlayLockTimeoutError: If the lock is not acquired in time.
        """
        name = self.lock_name(track_id, session_id)
        redis_lock = self._acquire_redis(name)
        if redis_lock is not None:
            try:
                yield
            finally:
                try:
                    redis_lock.release()
                except LockError:
                    # The TTL elapsed before release; another caller may hold it now.
                    logger.warning("Play lock %s expired before release", name)
            return

        with _local_lock(name, self.timeout_seconds):
            yield

    def _acquire_redis(self, name: str) -> RedisLock | None:
        if self._redis is None:
            return None
        lock = self._redis.lock(
            name,
            timeout=self.ttl_seconds,
            blocking_timeout=self.timeout_seconds,
        )
        try:
            acquired = lock.acquire()
        except RedisError as exc:
            logger.warning("Redis unavailable for play locks, using local locks: %s", exc)
            self._redis = None
            return None
        if not acquired:
            raise PlayLockTimeoutError(f"Timed out acquiring {name}")
        return lock


# name -> [lock, number of holders or waiters]
_LOCAL_LOCKS: dict[str, list] = {}
_LOCAL_GUARD = Lock()


@contextmanager
def _local_lock(name: str, timeout_seconds: float) -> Iterator[None]:
    with _LOCAL_GUARD:
        entry = _LOCAL_LOCKS.setdefault(name, [Lock(), 0])
        entry[1] += 1
    lock: Lock = entry[0]
    try:
        if not lock.acquire(timeout=timeout_seconds):
            raise PlayLockTimeoutError(f"Timed out acquiring {name}")
        try:
            yield
        finally:
            lock.release()
    finally:
        with _LOCAL_GUARD:
            entry[1] -= 1
            if entry[1] == 0:
                _LOCAL_LOCKS.pop(name, None)


@lru_cache(maxsize=1)
def get_lock_service() -> PlayLockService:
    """Return a lock service configured from settings."""
    return PlayLockService(settings.redis_url)
