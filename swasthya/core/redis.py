import json
from typing import Iterable, Optional

import redis.asyncio as redis
from swasthya.core.config import settings

PENDING_SYNC_KEY = "sync:pending"
DISTRICT_DATA_KEY = "sync:district_data"

class RedisClient:
    def __init__(self):
        self.redis = redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)

    async def set_token(self, token: str, value: str, expire: int):
        await self.redis.set(f"token:{token}", value, ex=expire)

    async def get_token(self, token: str) -> str | None:
        return await self.redis.get(f"token:{token}")

    async def delete_token(self, token: str):
        await self.redis.delete(f"token:{token}")

    async def add_pending_sync(self, record_id: str):
        await self.redis.sadd(PENDING_SYNC_KEY, record_id)

    async def get_pending_sync(self) -> set[str]:
        return set(await self.redis.smembers(PENDING_SYNC_KEY))

    async def remove_pending_sync(self, record_ids: Iterable[str]):
        record_ids = list(record_ids)
        if record_ids:
            await self.redis.srem(PENDING_SYNC_KEY, *record_ids)

    async def set_district_data(self, data: dict):
        await self.redis.set(DISTRICT_DATA_KEY, json.dumps(data))

    async def get_district_data(self) -> Optional[dict]:
        raw = await self.redis.get(DISTRICT_DATA_KEY)
        return json.loads(raw) if raw else None

    async def close(self):
        await self.redis.close()

redis_client = RedisClient()
