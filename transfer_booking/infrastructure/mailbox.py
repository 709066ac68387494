"""
Single-read mailbox slots for draft handoff.

A slot holds at most one serialized payload.  ``put`` overwrites an
unread payload; ``take`` returns the payload and empties the slot in one
step, so two readers never both get it.

The Redis implementation does the read-and-delete in a Lua script
(atomic on the server) and lets unread payloads expire.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import redis.asyncio as aioredis

from transfer_booking.config import settings

_TAKE_LUA = """
local value = redis.call("get", KEYS[1])
if value then
    redis.call("del", KEYS[1])
end
return value
"""


class SingleSlotMailbox(ABC):
    @abstractmethod
    async def put(self, slot: str, payload: str) -> None: ...

    @abstractmethod
    async def take(self, slot: str) -> Optional[str]:
        """Return the slot's payload and clear it; None when empty."""


class InMemoryMailbox(SingleSlotMailbox):
    def __init__(self):
        self._slots: dict[str, str] = {}

    async def put(self, slot: str, payload: str) -> None:
        self._slots[slot] = payload

    async def take(self, slot: str) -> Optional[str]:
        return self._slots.pop(slot, None)


class RedisMailbox(SingleSlotMailbox):
    def __init__(
        self,
        client: aioredis.Redis,
        prefix: str = settings.handoff_key_prefix,
        ttl_seconds: int = settings.handoff_ttl_seconds,
    ):
        self.redis = client
        self.prefix = prefix
        self.ttl = ttl_seconds

    def key(self, slot: str) -> str:
        return f"{self.prefix}:{slot}"

    async def put(self, slot: str, payload: str) -> None:
        await self.redis.set(self.key(slot), payload, ex=self.ttl)

    async def take(self, slot: str) -> Optional[str]:
        value = await self.redis.eval(_TAKE_LUA, 1, self.key(slot))
        if isinstance(value, bytes):
            value = value.decode()
        return value
