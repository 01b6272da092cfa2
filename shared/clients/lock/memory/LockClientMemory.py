import asyncio
import time

from shared.clients.lock.LockClientInterface import LockClientInterface, LockTimeoutError
from shared.clients.lock.models.LockHandle import LockHandle
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class LockClientMemory(LockClientInterface):
    """In-process locks for a single worker process."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        # key -> (token, monotonic expiry)
        self._leases: dict[str, tuple[str, float]] = {}
        self._condition = asyncio.Condition()

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Memory"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return []

    def is_locked(self, key: str) -> bool:
        lease = self._leases.get(key)
        return lease is not None and lease[1] > time.monotonic()

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def boot(self) -> None:
        pass

    async def close(self) -> None:
        self._leases.clear()

    async def do_healthcheck(self) -> bool:
        return True

    ##########################################
    ################ LOCKING #################
    ##########################################

    async def acquire(self, key: str, timeout: float | None = None) -> LockHandle:
        timeout = self.timeout if timeout is None else timeout
        deadline = time.monotonic() + timeout
        async with self._condition:
            while True:
                now = time.monotonic()
                lease = self._leases.get(key)
                if lease is None or lease[1] <= now:
                    if lease is not None:
                        self.logging.warning("Lock '%s' expired while held, taking it over.", key)
                    handle = self._new_handle(key)
                    self._leases[key] = (handle.token, now + self.ttl_seconds)
                    return handle

                remaining = deadline - now
                if remaining <= 0:
                    raise LockTimeoutError(key, timeout)
                # wake up on release, or when the current lease runs out
                wait_for = min(remaining, lease[1] - now)
                try:
                    await asyncio.wait_for(self._condition.wait(), timeout=wait_for)
                except asyncio.TimeoutError:
                    pass

    async def extend(self, handle: LockHandle) -> bool:
        async with self._condition:
            lease = self._leases.get(handle.key)
            if lease is None or lease[0] != handle.token:
                return False
            self._leases[handle.key] = (handle.token, time.monotonic() + self.ttl_seconds)
            return True

    async def release(self, handle: LockHandle) -> bool:
        async with self._condition:
            lease = self._leases.get(handle.key)
            if lease is None or lease[0] != handle.token:
                self.logging.warning("Lock '%s' was no longer held by this handle on release.", handle.key)
                return False
            del self._leases[handle.key]
            self._condition.notify_all()
            return True
