import logging

from celery.signals import worker_process_init, worker_process_shutdown

from cipherdrop import celery_app
from cipherdrop.config import settings
from cipherdrop.database import Database
from cipherdrop.services.gateway import StorageGateway
from cipherdrop.services.reaper import RetentionReaper

logger = logging.getLogger(__name__)

# Database handle owned by the current worker process.
worker_state = {}


@worker_process_init.connect
def open_database(**kwargs):
    worker_state["database"] = Database(settings.DATABASE_URL)


@worker_process_shutdown.connect
def close_database(**kwargs):
    database = worker_state.pop("database", None)
    if database is not None:
        database.close()


@celery_app.task(name="cipherdrop.cleanup.cleanup_expired")
def cleanup_expired():
    database = worker_state.get("database")
    owned = database is None
    if owned:
        logger.info("No worker database handle, opening a temporary one")
        database = Database(settings.DATABASE_URL)
    try:
        reaper = RetentionReaper(StorageGateway(database), batch_size=settings.CLEANUP_BATCH_SIZE)
        result = reaper.sweep()
    finally:
        if owned:
            database.close()
    return {"links_deleted": result.links_deleted, "files_deleted": result.files_deleted}
