from __future__ import annotations

import json
from typing import Any

import redis


class RedisCache:
    """
    JSON TTL cache backed by Redis, used for government API responses.

    A fresh sync client is created per call so Celery workers and the API
    process never share a connection bound to a closed event loop. Redis
    failures degrade to a cache miss.
    """

    def __init__(self, url: str) -> None:
        self.url = url

    def _client(self) -> redis.Redis:
        return redis.from_url(
            str(self.url),
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5,
        )

    async def get(self, key: str) -> Any | None:
        client = self._client()
        try:
            val = client.get(key)
            if val is not None:
                return json.loads(val)
            return None
        except redis.RedisError:
            return None
        finally:
            client.close()

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        client = self._client()
        try:
            serialized = json.dumps(value)
            if ttl is not None:
                client.set(key, serialized, ex=ttl)
            else:
                client.set(key, serialized)
        except redis.RedisError:
            return None
        finally:
            client.close()
