import asyncio
from abc import abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator
import uuid

from shared.clients.ClientInterface import ClientInterface
from shared.clients.lock.models.LockHandle import LockHandle
from shared.helper.HelperConfig import HelperConfig


class LockTimeoutError(Exception):
    """Raised when a lock cannot be acquired within the given timeout."""

    def __init__(self, key: str, timeout: float):
        self.key = key
        self.timeout = timeout
        super().__init__(f"Could not acquire lock '{key}' within {timeout}s")


class LockClientInterface(ClientInterface):
    """Exclusive, lease based locks keyed by string.

    A lease expires after LOCK_TTL_SECONDS so a crashed holder cannot block
    a key forever.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.ttl_seconds = float(helper_config.get_number_val(f"{self.get_client_type().upper()}_TTL_SECONDS", default=30))
        if self.ttl_seconds <= 0:
            raise ValueError(f"{self.get_client_type().upper()}_TTL_SECONDS must be greater than 0.")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "lock"

    def _new_handle(self, key: str) -> LockHandle:
        return LockHandle(key=key, token=uuid.uuid4().hex, ttl=self.ttl_seconds)

    ##########################################
    ################ LOCKING #################
    ##########################################

    @abstractmethod
    async def acquire(self, key: str, timeout: float | None = None) -> LockHandle:
        """Wait until the lock for ``key`` is free and take it.

        Args:
            key (str): The resource key.
            timeout (float | None): Max seconds to wait. Defaults to LOCK_TIMEOUT.

        Returns:
            LockHandle: The handle needed to release the lock.

        Raises:
            LockTimeoutError: If the lock is still held when the timeout elapses.
        """
        pass

    @abstractmethod
    async def release(self, handle: LockHandle) -> bool:
        """Release a lock taken with acquire().

        Args:
            handle (LockHandle): The handle returned by acquire().

        Returns:
            bool: True if the lease was released, False if it had already
            expired or been taken over by another holder.
        """
        pass

    @abstractmethod
    async def extend(self, handle: LockHandle) -> bool:
        """Push the expiry of a held lease another LOCK_TTL_SECONDS into the future.

        Args:
            handle (LockHandle): The handle returned by acquire().

        Returns:
            bool: True if the lease was extended, False if it is no longer held by this handle.
        """
        pass

    async def _keep_alive(self, handle: LockHandle) -> None:
        # renew well before expiry so a slow holder keeps its lease
        interval = self.ttl_seconds / 3
        while True:
            await asyncio.sleep(interval)
            try:
                extended = await self.extend(handle)
            except Exception as e:
                self.logging.warning("Could not extend lock '%s', retrying: %s", handle.key, e)
                continue
            if not extended:
                self.logging.error("Lock '%s' was lost while still held.", handle.key)
                return

    @asynccontextmanager
    async def hold(self, key: str, timeout: float | None = None) -> AsyncIterator[LockHandle]:
        """Hold the lock for ``key`` for the duration of the ``async with`` block.

        The lease is renewed in the background while the block runs, so it
        only expires when the holder dies. The lock is released on every exit
        path, including errors and cancellation.

        Raises:
            LockTimeoutError: If the lock cannot be acquired in time.
        """
        handle = await self.acquire(key, timeout=timeout)
        refresher = asyncio.create_task(self._keep_alive(handle), name=f"lock-keep-alive-{key}")
        try:
            yield handle
        finally:
            refresher.cancel()
            await asyncio.gather(refresher, return_exceptions=True)
            await self.release(handle)
