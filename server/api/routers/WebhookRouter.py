"""Webhook router for vault change notifications.

The vault watcher calls POST /webhook/note whenever a note is created,
updated or deleted. The handler queues the matching index job and
returns immediately; the index sync worker does the work.
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import NoteWebhookRequest
from server.models.responses import AcceptedResponse, HealthResponse
from shared.clients.vault.VaultClientInterface import VaultClientInterface

webhook_router = APIRouter()


@webhook_router.post(
    "/webhook/note",
    dependencies=[Depends(verify_api_key)],
    tags=["Webhook"],
    status_code=202,
    response_model=AcceptedResponse,
)
async def handle_note_webhook(body: NoteWebhookRequest, request: Request) -> AcceptedResponse:
    """Queue an index update or removal for a changed note.

    Args:
        body (NoteWebhookRequest): The change notification.
        request (Request): Provides the worker through app.state.

    Returns:
        AcceptedResponse: Acknowledgement with the queued job type.

    Raises:
        HTTPException: 422 if the path leaves the vault.
    """
    try:
        path = VaultClientInterface.normalize_path(body.path)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    request.app.state.logging.info("Webhook received: note %s '%s'", body.event, path)
    worker = request.app.state.worker
    if body.event == "deleted":
        await worker.queue_delete_note(path)
        return AcceptedResponse(job="delete-note", path=path)

    await worker.queue_single_note(path, body.content)
    return AcceptedResponse(job="single-note", path=path)


@webhook_router.post(
    "/sync/full",
    dependencies=[Depends(verify_api_key)],
    tags=["Webhook"],
    status_code=202,
    response_model=AcceptedResponse,
)
async def handle_full_sync(request: Request) -> AcceptedResponse:
    """Queue a full reconciliation of the vault."""
    await request.app.state.worker.queue_full_sync()
    return AcceptedResponse(job="full-sync")


@webhook_router.get("/healthz", tags=["Health"], response_model=HealthResponse)
async def healthz(request: Request) -> HealthResponse:
    return HealthResponse(status="ok", pending_jobs=request.app.state.worker.pending_jobs())
