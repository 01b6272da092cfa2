"""Index sync runner entry point.

Mirrors the notes of the vault into the vector index. Runs one full
reconciliation and exits; a non-zero exit code signals notes that failed
and need another run.

Usage:
    python -m services.vault_index_sync.vault_index_sync
    vault-index-sync
"""

import asyncio
import sys

from services.vault_index_sync.IndexSyncClients import IndexSyncClients
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging


async def run() -> int:
    """Run the full synchronisation once.

    Returns:
        int: 0 on success, 1 if notes failed, 2 if the clients could not start.
    """
    logger = setup_logging()
    config = HelperConfig(logger=logger)

    try:
        clients = IndexSyncClients(helper_config=config)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    try:
        try:
            await clients.boot()
            await clients.ensure_collection()
        except Exception as e:
            logger.error("Error booting index sync clients: %s. Aborting.", e)
            return 2

        report = await clients.build_sync_service().do_full_sync()
        for failure in report.failures:
            logger.error("Failed to %s '%s': %s", failure.action, failure.path, failure.error)
        return 1 if report.has_failures else 0
    finally:
        await clients.close()


def main() -> None:
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
