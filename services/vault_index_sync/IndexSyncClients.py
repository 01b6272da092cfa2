from shared.clients.ClientInterface import ClientInterface
from shared.clients.ClientManager import ClientManager
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.lock.LockClientInterface import LockClientInterface
from shared.clients.vault.VaultClientInterface import VaultClientInterface
from shared.clients.vector.VectorClientInterface import VectorClientInterface
from shared.helper.HelperConfig import HelperConfig
from services.vault_index_sync.SyncService import SyncService


class IndexSyncClients:
    """
    The four collaborators of the index sync, resolved from configuration.

    Used by the one-shot runner and the API server to boot, check and
    close all clients in one place.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.vault_client: VaultClientInterface = ClientManager(helper_config, "vault", default_engine="filesystem").get_client()
        self.embed_client: EmbedClientInterface = ClientManager(helper_config, "embed").get_client()
        self.vector_client: VectorClientInterface = ClientManager(helper_config, "vector", default_engine="qdrant").get_client()
        self.lock_client: LockClientInterface = ClientManager(helper_config, "lock", default_engine="memory").get_client()

    def get_clients(self) -> list[ClientInterface]:
        return [self.vault_client, self.embed_client, self.vector_client, self.lock_client]

    async def boot(self) -> None:
        """Boot every client and run its healthcheck.

        Raises:
            RuntimeError: If a backend is not healthy after boot.
        """
        for client in self.get_clients():
            await client.boot()
            if not await client.do_healthcheck():
                raise RuntimeError(
                    f"{client.get_client_type().upper()} client '{client.get_engine_name()}' failed its healthcheck."
                )
            self.logging.debug("Booted %s client '%s'.", client.get_client_type(), client.get_engine_name())

    async def ensure_collection(self) -> None:
        """Create the vector collection sized for the configured embedding model, if missing."""
        vector_size = await self.embed_client.do_fetch_embedding_vector_size()
        await self.vector_client.do_ensure_collection(vector_size=vector_size, distance=self.embed_client.embed_distance)

    async def close(self) -> None:
        for client in self.get_clients():
            await client.close()

    def build_sync_service(self) -> SyncService:
        return SyncService(
            helper_config=self.helper_config,
            vault_client=self.vault_client,
            vector_client=self.vector_client,
            embed_client=self.embed_client,
            lock_client=self.lock_client,
        )
