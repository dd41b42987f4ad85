# app/services/idempotency_service.py
import json
import uuid
from typing import Any

import redis
from redis.exceptions import RedisError

from app.utils.retry import redis_retry
from app.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class IdempotencyCache:
    """
    -odpowiedz checkoutu pod kluczem (user, Idempotency-Key), SET NX EX 24h
    -krotka dzierzawa (lease) na czas trwania checkoutu z tym kluczem
    -kazdy blad redisa = fail open, checkout idzie dalej jak przy cache miss
    """

    def __init__(self, client: redis.Redis, ttl_seconds: int = 24 * 60 * 60):
        self.redis = client
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _key(user_id: int, key: str) -> str:
        return f"idempotency:{user_id}:{key}"

    def get(self, user_id: int, key: str) -> dict[str, Any] | None:
        try:
            raw = self._get(self._key(user_id, key))
        except RedisError as e:
            logger.warning(f"Idempotency cache unavailable on get, failing open: {e}")
            return None

        if raw is None:
            return None

        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Corrupted idempotency record for user {user_id}, treating as miss")
            return None

    def put(self, user_id: int, key: str, response: dict[str, Any], ttl: int | None = None) -> bool:
        try:
            #NX: rekord zapisywany raz, nigdy nie nadpisywany
            stored = self._set(
                self._key(user_id, key),
                json.dumps(response),
                ttl or self.ttl_seconds,
            )
        except RedisError as e:
            logger.warning(f"Idempotency cache unavailable on put, response not cached: {e}")
            return False
        return bool(stored)

    def acquire_lease(self, user_id: int, key: str, ttl: int) -> str | None:
        """
        Zwraca token dzierzawy albo None gdy inny request trzyma ten klucz.
        Przy niedostepnym redisie zwraca token (fail open).
        """
        token = uuid.uuid4().hex
        try:
            acquired = self._set(f"{self._key(user_id, key)}:lease", token, ttl)
        except RedisError as e:
            logger.warning(f"Idempotency lease unavailable, failing open: {e}")
            return token
        return token if acquired else None

    def release_lease(self, user_id: int, key: str, token: str) -> None:
        try:
            self._release(f"{self._key(user_id, key)}:lease", token)
        except RedisError as e:
            # lease i tak wygasnie po ttl
            logger.warning(f"Failed to release idempotency lease: {e}")

    @redis_retry()
    def _get(self, name: str) -> str | None:
        return self.redis.get(name)

    @redis_retry()
    def _set(self, name: str, value: str, ttl: int) -> bool:
        return bool(self.redis.set(name=name, value=value, nx=True, ex=ttl))

    @redis_retry()
    def _release(self, name: str, token: str) -> bool:
        return bool(self.redis.eval(_RELEASE_LUA, 1, name, token))
