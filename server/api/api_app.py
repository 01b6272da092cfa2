"""FastAPI application entry point for the vault index API."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator
import os

from fastapi import FastAPI

from server.api.routers.WebhookRouter import webhook_router
from services.vault_index_sync.IndexSyncClients import IndexSyncClients
from services.vault_index_sync.IndexSyncWorker import IndexSyncWorker
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging

app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown."""
    app.state.logging = setup_logging()
    app.state.config = HelperConfig(logger=app.state.logging)
    # fail fast when the webhook key is missing
    app.state.config.get_string_val("APP_API_KEY")

    clients = IndexSyncClients(helper_config=app.state.config)
    worker: IndexSyncWorker | None = None
    try:
        await clients.boot()
        await clients.ensure_collection()

        worker = IndexSyncWorker(helper_config=app.state.config, sync_service=clients.build_sync_service())
        app.state.worker = worker
        await worker.start()

        app.state.logging.info("Vault index API ready.")
        yield
    finally:
        if worker is not None:
            await worker.stop()
        await clients.close()
        app.state.logging.info("Vault index API shut down.")


app = FastAPI(
    title="Vault Index Bridge",
    description="Keeps a vector index in sync with a markdown vault.",
    version=app_version,
    lifespan=lifespan,
)

app.include_router(webhook_router)


def run() -> None:
    """Start the API server with uvicorn."""
    import uvicorn

    host = os.getenv("APP_HOST", "0.0.0.0")
    port = int(os.getenv("APP_PORT", "8000"))
    uvicorn.run(app, host=host, port=port)


# Server Start
if __name__ == "__main__":
    run()
