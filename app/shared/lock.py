import asyncio
import os
import random
import socket
import time
import uuid
from typing import Optional

from loguru import logger


def default_owner_id() -> str:
    """Generate a default owner id (host:pid:uuid8)."""
    return f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex[:8]}"


# Atomically release: only delete if value==owner
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockManager:
    """Distributed lock on a Redis key (SET NX EX, owner-checked release).

    Usage:
        async with LockManager(redis_client, lock_prefix="lock:recording") as lock:
            if not await lock.acquire(live_class_id, blocking=False):
                ...
    """

    def __init__(
        self,
        redis_client,
        lock_prefix: str = "lock",
        default_ttl: int = 60,
        owner: Optional[str] = None,
        fence_prefix: str = "fence",
    ):
        self.redis_client = redis_client
        self.lock_prefix = lock_prefix
        self.fence_prefix = fence_prefix
        self.default_ttl = int(default_ttl)
        self.owner = owner or default_owner_id()

        self.lock_key: Optional[str] = None
        self.acquired: bool = False

        # Monotonic per-resource counter handed out on every successful acquire
        self.fencing_token: Optional[int] = None

    def _make_lock_key(self, *parts) -> str:
        return f"{self.lock_prefix}:{':'.join(str(part) for part in parts)}"

    async def _try_set(self, ttl: int) -> bool:
        return bool(await self.redis_client.set(self.lock_key, self.owner, nx=True, ex=ttl))

    async def acquire(
        self,
        *key_parts,
        ttl: Optional[int] = None,
        blocking: bool = True,
        blocking_timeout: Optional[float] = None,
        retry_interval: float = 0.2,
        jitter: float = 0.1,
    ) -> bool:
        """
        Try to acquire the lock for the resource named by `key_parts`.

        Args:
            ttl: Lock TTL in seconds (defaults to default_ttl)
            blocking: Wait until acquired or `blocking_timeout` elapses
            blocking_timeout: None waits forever; 0 behaves like blocking=False
            retry_interval: Base sleep between attempts
            jitter: Random extra sleep added to each attempt

        Returns:
            True if acquired, else False
        """
        self.lock_key = self._make_lock_key(*key_parts)
        ttl = int(ttl or self.default_ttl)
        self.fencing_token = None

        if not blocking or (blocking_timeout is not None and blocking_timeout <= 0):
            self.acquired = await self._try_set(ttl)
        else:
            deadline = None if blocking_timeout is None else time.monotonic() + blocking_timeout
            while True:
                if await self._try_set(ttl):
                    self.acquired = True
                    break

                if deadline is not None and time.monotonic() >= deadline:
                    self.acquired = False
                    break

                sleep_for = retry_interval + random.uniform(0, max(jitter, 0))
                if deadline is not None:
                    sleep_for = min(sleep_for, max(0.0, deadline - time.monotonic()))
                await asyncio.sleep(sleep_for)

        if not self.acquired:
            logger.warning("Failed to acquire lock: key={} owner={}", self.lock_key, self.owner)
            return False

        try:
            self.fencing_token = int(await self.redis_client.incr(f"{self.fence_prefix}:{self.lock_key}"))
        except Exception as e:
            logger.error("Failed to generate fencing token: key={} err={}", self.lock_key, e)
            await self.release()
            return False

        logger.debug("Acquired lock: key={} owner={} ttl={} token={}", self.lock_key, self.owner, ttl, self.fencing_token)
        return True

    async def release(self) -> bool:
        """Release the lock if we still own it."""
        if not self.lock_key or not self.acquired:
            return False

        try:
            res = await self.redis_client.eval(_RELEASE_LUA, 1, self.lock_key, self.owner)
        except Exception as e:
            logger.error("Error releasing lock: key={} owner={} error={}", self.lock_key, self.owner, e)
            return False

        self.acquired = False
        self.fencing_token = None
        if res != 1:
            logger.warning("Lock expired before release: key={} owner={}", self.lock_key, self.owner)
            return False

        logger.debug("Released lock: key={} owner={}", self.lock_key, self.owner)
        return True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.acquired:
            await self.release()

    def __bool__(self) -> bool:
        return self.acquired
