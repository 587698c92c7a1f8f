import logging
import uuid

from cipherdrop.errors import AccessDenied, SharedLinkNotFound
from cipherdrop.models import File, SharedLink
from cipherdrop.security import PasswordHasher
from cipherdrop.services.gateway import StorageGateway

logger = logging.getLogger(__name__)


class AccessEvaluator:
    """Decides whether a caller may retrieve the file behind a shared link.

    The recipient and expiry checks happen inside the gateway query, so an
    unknown link, an expired one and somebody else's all look the same to
    the caller. Only the link's own recipient can ever reach the password
    check and learn that the password was wrong.
    """

    def __init__(self, gateway: StorageGateway, hasher: PasswordHasher | None = None):
        self.gateway = gateway
        self.hasher = hasher or PasswordHasher()

    def seal_password(self, password: str) -> str:
        return self.hasher.hash(password)

    def authorize(self, shared_id: uuid.UUID, recipient_id: uuid.UUID, password: str) -> tuple[SharedLink, File]:
        link = self.gateway.fetch_shared_link(shared_id, recipient_id)
        if link is None:
            raise SharedLinkNotFound()

        if not self.hasher.verify(password, link.password):
            logger.info("Wrong access password for shared link %s", shared_id)
            raise AccessDenied()

        rec = self.gateway.fetch_file(link.file_id)
        if rec is None:
            # Reaped between the two lookups.
            raise SharedLinkNotFound()
        return link, rec
