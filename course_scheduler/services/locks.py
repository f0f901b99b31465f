"""Time-bounded exclusive leases over named resources.

A lease is an opaque token: whoever holds the token returned by ``acquire``
owns the resource until it releases it or ``ttl_ms`` elapses. Nothing here is
tied to an in-process mutex, so callers in different processes serialize on
the same key as long as they share the backend (Redis in production).

Example:
    leases = RedisLeaseService(redis.Redis.from_url(settings.REDIS_URL))
    slot = with_exclusive_lease(leases, "course-schedule:7", 5000, do_check_and_write)
"""

from __future__ import annotations

import logging
import random
import secrets
import threading
import time
from functools import lru_cache
from typing import Callable, NamedTuple, TypeVar

import redis

from course_scheduler.config import settings
from course_scheduler.errors import LockUnavailable

logger = logging.getLogger("app.locks")

T = TypeVar("T")

# delete the key only while it still holds our token
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class Lease(NamedTuple):
    resource: str
    value: str
    expires_at: float


class LeaseService:
    """Acquire/release with bounded retries and randomized backoff.

    Subclasses implement ``_try_acquire`` (one atomic set-if-absent attempt)
    and ``release``.
    """

    def __init__(self, retry_count: int = 10, retry_delay_ms: int = 100, retry_jitter_ms: int = 100):
        self.retry_count = retry_count
        self.retry_delay_ms = retry_delay_ms
        self.retry_jitter_ms = retry_jitter_ms

    def _try_acquire(self, resource: str, value: str, ttl_ms: int) -> bool:
        raise NotImplementedError

    def release(self, lease: Lease) -> None:
        raise NotImplementedError

    def _now(self) -> float:
        return time.time()

    def _backoff(self) -> float:
        return (self.retry_delay_ms + random.uniform(0, self.retry_jitter_ms)) / 1000

    def acquire(self, resource: str, ttl_ms: int) -> Lease:
        value = secrets.token_hex(16)
        attempts = self.retry_count + 1

        for attempt in range(1, attempts + 1):
            if self._try_acquire(resource, value, ttl_ms):
                logger.debug("lease acquired %s (attempt %d)", resource, attempt)
                return Lease(resource, value, self._now() + ttl_ms / 1000)
            if attempt < attempts:
                time.sleep(self._backoff())

        logger.warning("lease unavailable %s after %d attempts", resource, attempts)
        raise LockUnavailable(
            f"Could not acquire lock on {resource}, try again later",
            resource=resource,
        )


class RedisLeaseService(LeaseService):
    """SET NX PX to acquire, compare-and-delete script to release."""

    def __init__(self, client: redis.Redis, **kwargs):
        super().__init__(**kwargs)
        self.client = client
        self._release_script = client.register_script(RELEASE_SCRIPT)

    def _try_acquire(self, resource: str, value: str, ttl_ms: int) -> bool:
        try:
            return bool(self.client.set(resource, value, nx=True, px=ttl_ms))
        except redis.exceptions.RedisError as e:
            logger.warning("redis error acquiring %s: %s", resource, e)
            return False

    def release(self, lease: Lease) -> None:
        try:
            released = self._release_script(keys=[lease.resource], args=[lease.value])
        except redis.exceptions.RedisError as e:
            # the key still expires on its own after ttl
            logger.warning("redis error releasing %s: %s", lease.resource, e)
            return
        if not released:
            logger.warning("lease %s had already expired before release", lease.resource)


class InMemoryLeaseService(LeaseService):
    """Single-process backend with the same expiry semantics as Redis."""

    def __init__(self, clock: Callable[[], float] = time.monotonic, **kwargs):
        super().__init__(**kwargs)
        self._clock = clock
        self._guard = threading.Lock()
        self._held: dict[str, tuple[str, float]] = {}

    def _try_acquire(self, resource: str, value: str, ttl_ms: int) -> bool:
        now = self._clock()
        with self._guard:
            current = self._held.get(resource)
            if current is not None and current[1] > now:
                return False
            self._held[resource] = (value, now + ttl_ms / 1000)
            return True

    def release(self, lease: Lease) -> None:
        with self._guard:
            current = self._held.get(lease.resource)
            if current is not None and current[0] == lease.value:
                del self._held[lease.resource]
            else:
                logger.warning("lease %s had already expired before release", lease.resource)

    def _now(self) -> float:
        return self._clock()

    def is_held(self, resource: str) -> bool:
        with self._guard:
            current = self._held.get(resource)
            return current is not None and current[1] > self._clock()


def with_exclusive_lease(leases: LeaseService, resource: str, ttl_ms: int, action: Callable[[], T]) -> T:
    lease = leases.acquire(resource, ttl_ms)
    try:
        return action()
    finally:
        leases.release(lease)


def course_schedule_key(course_id: int) -> str:
    return f"course-schedule:{course_id}"


@lru_cache(maxsize=1)
def get_lease_service() -> LeaseService:
    retry = dict(
        retry_count=settings.LOCK_RETRY_COUNT,
        retry_delay_ms=settings.LOCK_RETRY_DELAY_MS,
        retry_jitter_ms=settings.LOCK_RETRY_JITTER_MS,
    )
    if settings.LOCK_BACKEND == "memory":
        logger.info("using in-memory lease service (single process only)")
        return InMemoryLeaseService(**retry)

    client = redis.Redis.from_url(settings.REDIS_URL)
    return RedisLeaseService(client, **retry)
