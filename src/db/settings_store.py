"""Per-site app settings persisted in Redis.

Keys (prefix from settings, default "payments"):
    {prefix}:{site_id}:preferred_gateway   → gateway id string
    {prefix}:{site_id}:cod_step_skipped    → "1" when skipped
"""

from __future__ import annotations

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.config import settings
from src.integrations.errors import SettingsStoreError

logger = logging.getLogger(__name__)

_PREFERRED_GATEWAY = "preferred_gateway"
_COD_STEP_SKIPPED = "cod_step_skipped"


class AppSettingsStore:
    """Redis-backed store for settings the merchant chose on this device."""

    def __init__(self, redis: aioredis.Redis, prefix: str | None = None) -> None:
        self._redis = redis
        self._prefix = prefix or settings.redis.settings_key_prefix

    def _key(self, site_id: int, name: str) -> str:
        return f"{self._prefix}:{site_id}:{name}"

    async def get_preferred_gateway(self, site_id: int) -> str | None:
        raw = await self._get(self._key(site_id, _PREFERRED_GATEWAY))
        return raw or None

    async def set_preferred_gateway(self, site_id: int, gateway_id: str) -> None:
        await self._set(self._key(site_id, _PREFERRED_GATEWAY), gateway_id)
        logger.info("Preferred gateway for site %s set to %s", site_id, gateway_id)

    async def forget_preferred_gateway(self, site_id: int) -> None:
        key = self._key(site_id, _PREFERRED_GATEWAY)
        try:
            await self._redis.delete(key)
        except RedisError as exc:
            msg = f"Could not delete {key}"
            raise SettingsStoreError(msg) from exc
        logger.info("Preferred gateway for site %s forgotten", site_id)

    async def get_cod_step_skipped(self, site_id: int) -> bool:
        return await self._get(self._key(site_id, _COD_STEP_SKIPPED)) == "1"

    async def set_cod_step_skipped(self, site_id: int, skipped: bool) -> None:
        await self._set(self._key(site_id, _COD_STEP_SKIPPED), "1" if skipped else "0")

    async def _get(self, key: str) -> str | None:
        try:
            raw = await self._redis.get(key)
        except RedisError as exc:
            msg = f"Could not read {key}"
            raise SettingsStoreError(msg) from exc
        if isinstance(raw, bytes):
            return raw.decode()
        return raw

    async def _set(self, key: str, value: str) -> None:
        try:
            await self._redis.set(key, value)
        except RedisError as exc:
            msg = f"Could not write {key}"
            raise SettingsStoreError(msg) from exc
