"""Queue worker that drains index sync jobs.

Full syncs are queued at start and then every VECTOR_SYNC_INTERVAL_SECONDS.
Note change notifications arrive as single note or delete jobs. Failed jobs
are retried with exponential backoff; notes that failed inside a full sync
are re-queued as single note jobs.
"""

import asyncio

from services.vault_index_sync.SyncService import SyncService
from services.vault_index_sync.models.IndexSyncJob import IndexSyncJob
from shared.helper.HelperConfig import HelperConfig


class IndexSyncWorker:
    def __init__(self, helper_config: HelperConfig, sync_service: SyncService) -> None:
        self.logging = helper_config.get_logger()
        self._sync_service = sync_service
        self.concurrency = int(helper_config.get_number_val("SYNC_WORKER_CONCURRENCY", default=2))
        self.sync_interval = float(helper_config.get_number_val("VECTOR_SYNC_INTERVAL_SECONDS", default=300))
        self.max_attempts = int(helper_config.get_number_val("JOB_MAX_ATTEMPTS", default=3))
        self.retry_base_seconds = float(helper_config.get_number_val("JOB_RETRY_BASE_SECONDS", default=1))
        if self.concurrency <= 0:
            raise ValueError("SYNC_WORKER_CONCURRENCY must be greater than 0.")
        if self.max_attempts <= 0:
            raise ValueError("JOB_MAX_ATTEMPTS must be greater than 0.")

        self._queue: asyncio.Queue[IndexSyncJob] = asyncio.Queue()
        self._tasks: list[asyncio.Task] = []
        self._retry_tasks: set[asyncio.Task] = set()
        self._full_sync_queued = False

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def start(self, initial_full_sync: bool = True, schedule_full_sync: bool = True) -> None:
        """Start the worker tasks and the periodic full sync.

        Args:
            initial_full_sync (bool): Queue a full sync right away.
            schedule_full_sync (bool): Queue a full sync every sync interval.
        """
        for worker_id in range(self.concurrency):
            self._tasks.append(asyncio.create_task(self._worker_loop(worker_id), name=f"index-sync-worker-{worker_id}"))
        if schedule_full_sync and self.sync_interval > 0:
            self._tasks.append(asyncio.create_task(self._schedule_loop(), name="index-sync-scheduler"))
        if initial_full_sync:
            await self.queue_full_sync()
        self.logging.info(
            "Index sync worker started: %d workers, full sync every %ss.", self.concurrency, self.sync_interval,
        )

    async def stop(self) -> None:
        """Cancel all workers and pending retries."""
        tasks = self._tasks + list(self._retry_tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._retry_tasks.clear()
        self.logging.info("Index sync worker stopped.")

    async def drain(self) -> None:
        """Wait until the queue is empty and no retry is pending."""
        while True:
            await self._queue.join()
            pending = [task for task in self._retry_tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def pending_jobs(self) -> int:
        return self._queue.qsize()

    ##########################################
    ################ QUEUEING ################
    ##########################################

    async def queue_full_sync(self) -> bool:
        """Queue a full sync unless one is already waiting.

        Returns:
            bool: True if a job was queued.
        """
        if self._full_sync_queued:
            self.logging.debug("Full index sync already queued, skipping.")
            return False
        self._full_sync_queued = True
        await self._queue.put(IndexSyncJob(type="full-sync"))
        self.logging.info("Queued full index sync.")
        return True

    async def queue_single_note(self, path: str, content: str | None = None) -> None:
        await self._queue.put(IndexSyncJob(type="single-note", path=path, content=content))
        self.logging.debug("Queued index update for '%s'.", path)

    async def queue_delete_note(self, path: str) -> None:
        await self._queue.put(IndexSyncJob(type="delete-note", path=path))
        self.logging.debug("Queued index removal for '%s'.", path)

    ##########################################
    ############### PROCESSING ###############
    ##########################################

    async def _worker_loop(self, worker_id: int) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self.process(job)
            finally:
                self._queue.task_done()

    async def _schedule_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sync_interval)
            await self.queue_full_sync()

    async def process(self, job: IndexSyncJob) -> bool:
        """Run one job and schedule a retry when it fails.

        Args:
            job (IndexSyncJob): The job to run.

        Returns:
            bool: True if the job completed.
        """
        if job.type == "full-sync":
            self._full_sync_queued = False
        try:
            await self._run_job(job)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._on_failed(job, exc)
            return False
        self.logging.debug("Index sync job %s completed.", job.describe())
        return True

    async def _run_job(self, job: IndexSyncJob) -> None:
        if job.type == "full-sync":
            report = await self._sync_service.do_full_sync()
            for failure in report.failures:
                if failure.action == "delete":
                    await self.queue_delete_note(failure.path)
                else:
                    await self.queue_single_note(failure.path)
        elif job.type == "single-note":
            if not job.path:
                raise ValueError("single-note job without path.")
            await self._sync_service.do_incremental_sync(job.path, job.content)
        elif job.type == "delete-note":
            if not job.path:
                raise ValueError("delete-note job without path.")
            await self._sync_service.do_delete(job.path)
        else:
            raise ValueError(f"Unknown index sync job type '{job.type}'.")

    def _on_failed(self, job: IndexSyncJob, exc: Exception) -> None:
        if job.attempt >= self.max_attempts:
            self.logging.error(
                "Index sync job %s failed after %d attempts, giving up: %s", job.describe(), job.attempt, exc,
            )
            return

        delay = self.retry_base_seconds * (2 ** (job.attempt - 1))
        self.logging.warning(
            "Index sync job %s failed (attempt %d of %d), retrying in %.1fs: %s",
            job.describe(), job.attempt, self.max_attempts, delay, exc,
        )
        # a retry reads the current note, the notified content may be stale by now
        retry = job.model_copy(update={"attempt": job.attempt + 1, "content": None})
        task = asyncio.create_task(self._requeue_later(retry, delay))
        self._retry_tasks.add(task)
        task.add_done_callback(self._retry_tasks.discard)

    async def _requeue_later(self, job: IndexSyncJob, delay: float) -> None:
        await asyncio.sleep(delay)
        if job.type == "full-sync":
            if self._full_sync_queued:
                return
            self._full_sync_queued = True
        await self._queue.put(job)
