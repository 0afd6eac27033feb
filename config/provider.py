"""
Runtime configuration lookup.

config/settings.py is fixed at process start. Some values (the estimated
job time shown to clients, the style catalog) should be changeable by an
operator without a redeploy, so lookups go through this provider:

    get("ESTIMATED_JOB_SECONDS")
        1. Redis cache        enhance:config:ESTIMATED_JOB_SECONDS  (TTL)
        2. app_config table   row with key = ESTIMATED_JOB_SECONDS
        3. settings           Settings.ESTIMATED_JOB_SECONDS
        4. None

Values found in steps 2-3 are written back to the cache. A Redis outage
only costs the cache: lookups fall through to the database. Settings
holding credentials (passwords, tokens) are never served.
"""

import json
import logging

from fastapi.concurrency import run_in_threadpool
from redis.asyncio import Redis
from redis.exceptions import RedisError

from config.settings import Settings, settings
from models.store import JobStore
from worker.errors import PersistenceError

logger = logging.getLogger(__name__)


class ConfigProvider:

    CACHE_PREFIX = "enhance:config:"
    STYLES_CACHE_KEY = "enhance:styles"
    DEFAULT_STYLES = ["soft grey", "white", "studio"]
    SECRET_MARKERS = ("PASSWORD", "TOKEN", "SECRET")

    def __init__(self, redis: Redis, store: JobStore, ttl: int = settings.CONFIG_CACHE_TTL_SECONDS):
        self._redis = redis
        self._store = store
        self._ttl = ttl

    async def get(self, key: str) -> str | None:
        cached = await self._cache_get(self.CACHE_PREFIX + key)
        if cached is not None:
            return cached

        try:
            value = await run_in_threadpool(self._store.get_config_value, key)
        except PersistenceError:
            logger.warning(f"Config table unavailable, falling back to settings for {key}")
            value = None

        if value is None:
            value = self._from_settings(key)
        if value is not None:
            await self._cache_set(self.CACHE_PREFIX + key, value)
        return value

    async def get_int(self, key: str, default: int) -> int:
        value = await self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning(f"Config value {key}={value!r} is not an integer, using {default}")
            return default

    async def set(self, key: str, value: str) -> None:
        await run_in_threadpool(self._store.set_config_value, key, value)
        await self._cache_set(self.CACHE_PREFIX + key, value)

    async def clear_cache(self) -> int:
        """Drop every cached config value and the style catalog. Returns keys removed."""
        try:
            keys = [key async for key in self._redis.scan_iter(match=self.CACHE_PREFIX + "*")]
            keys.append(self.STYLES_CACHE_KEY)
            return await self._redis.delete(*keys)
        except RedisError as e:
            logger.error(f"Could not clear config cache: {e}")
            raise

    async def background_styles(self) -> list[str]:
        cached = await self._cache_get(self.STYLES_CACHE_KEY)
        if cached is not None:
            return json.loads(cached)

        try:
            styles = await run_in_threadpool(self._store.list_background_styles)
        except PersistenceError:
            logger.warning("Style catalog unavailable, serving defaults")
            return list(self.DEFAULT_STYLES)

        styles = styles or list(self.DEFAULT_STYLES)
        await self._cache_set(self.STYLES_CACHE_KEY, json.dumps(styles))
        return styles

    def _from_settings(self, key: str) -> str | None:
        if key not in Settings.model_fields:
            return None
        if any(marker in key for marker in self.SECRET_MARKERS):
            return None
        return str(getattr(settings, key))

    async def _cache_get(self, key: str) -> str | None:
        try:
            raw = await self._redis.get(key)
        except RedisError as e:
            logger.warning(f"Redis get failed for {key}: {e}")
            return None
        if raw is None:
            return None
        return raw.decode() if isinstance(raw, bytes) else raw

    async def _cache_set(self, key: str, value: str) -> None:
        try:
            await self._redis.set(key, value, ex=self._ttl)
        except RedisError as e:
            logger.warning(f"Redis set failed for {key}: {e}")
