from __future__ import annotations

import logging
from functools import lru_cache
from typing import Callable, Protocol

from redis import Redis
from redis.exceptions import RedisError

from .config import settings

logger = logging.getLogger(__name__)


class PreferenceStore(Protocol):
    def get_string(self, key: str) -> str: ...

    def set_string(self, key: str, value: str) -> None: ...


@lru_cache(maxsize=1)
def get_redis_client() -> Redis:
    return Redis.from_url(settings.redis_url, decode_responses=True)


def reset_redis_client() -> None:
    get_redis_client.cache_clear()


class RedisPreferenceStore:
    """String preferences kept in Redis.

    Reads of a missing key, or any Redis failure, come back as ``""`` so the
    tracker falls back to its defaults. Failed writes are logged and dropped;
    the next terminal decision writes the key again.
    """

    def __init__(self, redis_factory: Callable[[], Redis] = get_redis_client):
        self._redis_factory = redis_factory

    def get_string(self, key: str) -> str:
        try:
            value = self._redis_factory().get(key)
        except RedisError as exc:
            logger.warning("preference read failed", extra={"key": key, "error": str(exc)})
            return ""
        if value is None:
            return ""
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        return str(value)

    def set_string(self, key: str, value: str) -> None:
        try:
            self._redis_factory().set(key, value)
        except RedisError as exc:
            logger.warning("preference write failed", extra={"key": key, "error": str(exc)})

    def ping(self) -> bool:
        try:
            return bool(self._redis_factory().ping())
        except RedisError:
            return False


class InMemoryPreferenceStore:
    def __init__(self, initial: dict[str, str] | None = None):
        self._values: dict[str, str] = dict(initial or {})

    def get_string(self, key: str) -> str:
        return self._values.get(key, "")

    def set_string(self, key: str, value: str) -> None:
        self._values[key] = value

    def ping(self) -> bool:
        return True

    def as_dict(self) -> dict[str, str]:
        return dict(self._values)


def build_preference_store() -> PreferenceStore:
    if settings.preference_backend == "memory":
        return InMemoryPreferenceStore()
    return RedisPreferenceStore()
