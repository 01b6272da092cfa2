import asyncio
import time

import redis.asyncio as redis

from shared.clients.lock.LockClientInterface import LockClientInterface, LockTimeoutError
from shared.clients.lock.models.LockHandle import LockHandle
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

KEY_PREFIX = "lock:"
POLL_INTERVAL_SECONDS = 0.1

# delete the key only while it still carries our token
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""

# renew the lease only while it still carries our token
EXTEND_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("pexpire", KEYS[1], ARGV[2])
else
    return 0
end
"""


class LockClientRedis(LockClientInterface):
    """Locks shared between processes through Redis leases (SET NX PX)."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._url = self.get_config_val("URL", default="redis://localhost:6379/0", val_type="string")
        self._redis: redis.Redis | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Redis"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="URL", val_type="string", default="redis://localhost:6379/0"),
        ]

    def _get_redis(self) -> redis.Redis:
        if self._redis is None:
            raise RuntimeError("Redis client not initialised. Call boot() before locking.")
        return self._redis

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def boot(self) -> None:
        self._redis = redis.from_url(self._url, socket_timeout=self.timeout, decode_responses=True)

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    async def do_healthcheck(self) -> bool:
        try:
            return bool(await self._get_redis().ping())
        except redis.RedisError as e:
            self.logging.warning("Healthcheck of lock client 'redis' failed: %s", e)
            return False

    ##########################################
    ################ LOCKING #################
    ##########################################

    async def acquire(self, key: str, timeout: float | None = None) -> LockHandle:
        timeout = self.timeout if timeout is None else timeout
        client = self._get_redis()
        handle = self._new_handle(key)
        ttl_ms = round(self.ttl_seconds * 1000)
        deadline = time.monotonic() + timeout
        while True:
            if await client.set(KEY_PREFIX + key, handle.token, nx=True, px=ttl_ms):
                return handle
            if time.monotonic() >= deadline:
                raise LockTimeoutError(key, timeout)
            await asyncio.sleep(POLL_INTERVAL_SECONDS)

    async def extend(self, handle: LockHandle) -> bool:
        extended = await self._get_redis().eval(
            EXTEND_SCRIPT, 1, KEY_PREFIX + handle.key, handle.token, round(self.ttl_seconds * 1000)
        )
        return bool(extended)

    async def release(self, handle: LockHandle) -> bool:
        released = await self._get_redis().eval(RELEASE_SCRIPT, 1, KEY_PREFIX + handle.key, handle.token)
        if not released:
            self.logging.warning("Lock '%s' was no longer held by this handle on release.", handle.key)
            return False
        return True
