import logging
from dataclasses import dataclass
from datetime import datetime

from cipherdrop.config import settings
from cipherdrop.services.gateway import StorageGateway
from cipherdrop.timestamps import as_utc, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepResult:
    links_deleted: int = 0
    files_deleted: int = 0

    @property
    def is_noop(self) -> bool:
        return not (self.links_deleted or self.files_deleted)


class RetentionReaper:
    """Removes expired shared links and the files they were guarding.

    Safe to run repeatedly: deleting an id that is already gone is a no-op,
    so a sweep after a failed one converges on a clean store.
    """

    def __init__(self, gateway: StorageGateway, batch_size: int | None = None):
        self.gateway = gateway
        self.batch_size = batch_size or settings.CLEANUP_BATCH_SIZE

    def sweep(self, now: datetime | None = None) -> SweepResult:
        now = as_utc(now) if now is not None else utcnow()
        links_total = 0
        files_total = 0
        # Delete in batches to avoid long locks; loop until a short batch
        while True:
            expired = self.gateway.find_expired_links(now, self.batch_size)
            if not expired:
                break
            link_ids = [link_id for link_id, _ in expired]
            file_ids = {file_id for _, file_id in expired}
            links, files = self.gateway.delete_links_and_files(link_ids, file_ids)
            links_total += links
            files_total += files
            if len(expired) < self.batch_size:
                break
        while True:
            orphans = self.gateway.delete_orphan_files(self.batch_size)
            files_total += orphans
            if orphans < self.batch_size:
                break

        result = SweepResult(links_deleted=links_total, files_deleted=files_total)
        if result.is_noop:
            logger.info("No expired files or shared links to delete")
        else:
            logger.info(
                "Deleted %d expired shared links and %d files",
                result.links_deleted,
                result.files_deleted,
            )
        return result
