import logging
import uuid
from datetime import datetime

from sqlalchemy import delete, exists, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import aliased

from cipherdrop.database import Database
from cipherdrop.errors import ConflictError, NotFoundError, TransactionFailure
from cipherdrop.models import File, ReceivedFileView, SentFileView, SharedLink, User
from cipherdrop.services.pagination import PageRequest, fetch_page
from cipherdrop.timestamps import as_utc, utcnow

logger = logging.getLogger(__name__)


class StorageGateway:
    """Every read and write of users, files and shared links goes through here."""

    def __init__(self, database: Database):
        self.database = database

    # Users

    def create_user(self, name: str, email: str, password_hash: str) -> User:
        user = User(name=name, email=email, password=password_hash)
        try:
            with self.database.transaction() as db:
                db.add(user)
        except IntegrityError as exc:
            logger.info("Rejected registration, email already in use")
            raise ConflictError() from exc
        logger.info("Created user %s", user.id)
        return user

    def find_user_by_id(self, user_id: uuid.UUID) -> User | None:
        with self.database.session() as db:
            return db.get(User, user_id)

    def find_user_by_name(self, name: str) -> User | None:
        with self.database.session() as db:
            return db.query(User).filter(User.name == name).first()

    def find_user_by_email(self, email: str) -> User | None:
        with self.database.session() as db:
            return db.query(User).filter(User.email == email).first()

    def _update_user(self, user_id: uuid.UUID, **fields) -> User:
        with self.database.transaction() as db:
            user = db.get(User, user_id)
            if user is None:
                raise NotFoundError(f"User {user_id} does not exist")
            for key, value in fields.items():
                setattr(user, key, value)
            user.updated_at = utcnow()
        return user

    def update_user_name(self, user_id: uuid.UUID, new_name: str) -> User:
        return self._update_user(user_id, name=new_name)

    def update_user_password(self, user_id: uuid.UUID, new_password_hash: str) -> User:
        return self._update_user(user_id, password=new_password_hash)

    def set_user_public_key(self, user_id: uuid.UUID, public_key: str) -> None:
        self._update_user(user_id, public_key=public_key)

    def search_users_by_email(self, requester_id: uuid.UUID, pattern: str) -> list[User]:
        """Users whose email is ``LIKE pattern``; the pattern carries its own wildcards.

        Only users with an enrolled public key can receive files, and a
        user never shows up in their own search.
        """
        with self.database.session() as db:
            return (
                db.query(User)
                .filter(
                    User.email.like(pattern),
                    User.public_key.is_not(None),
                    User.id != requester_id,
                )
                .order_by(User.email)
                .all()
            )

    # Files and shared links

    def store_encrypted_file(
        self,
        *,
        owner_id: uuid.UUID | None,
        file_name: str,
        file_size: int,
        recipient_id: uuid.UUID,
        access_password: str,
        expiration_date: datetime,
        encrypted_key: bytes,
        encrypted_payload: bytes,
        iv: bytes,
    ) -> SharedLink:
        """Insert a file and its shared link; both persist or neither does."""
        try:
            with self.database.transaction() as db:
                rec = File(
                    user_id=owner_id,
                    file_name=file_name,
                    file_size=file_size,
                    encrypted_key=encrypted_key,
                    encrypted_payload=encrypted_payload,
                    iv=iv,
                )
                db.add(rec)
                db.flush()
                link = SharedLink(
                    file_id=rec.id,
                    recipient_user_id=recipient_id,
                    password=access_password,
                    expiration_date=as_utc(expiration_date),
                )
                db.add(link)
                db.flush()
        except SQLAlchemyError as exc:
            logger.error("Storing file %r failed, rolled back: %s", file_name, exc)
            raise TransactionFailure() from exc
        logger.info("Stored file %s shared as %s", rec.id, link.id)
        return link

    def fetch_shared_link(self, shared_id: uuid.UUID, recipient_id: uuid.UUID) -> SharedLink | None:
        # Unknown id, wrong recipient and expiry all collapse into None.
        with self.database.session() as db:
            return (
                db.query(SharedLink)
                .filter(
                    SharedLink.id == shared_id,
                    SharedLink.recipient_user_id == recipient_id,
                    SharedLink.expiration_date > utcnow(),
                )
                .first()
            )

    def fetch_file(self, file_id: uuid.UUID) -> File | None:
        with self.database.session() as db:
            return db.get(File, file_id)

    def expire_shared_link(self, shared_id: uuid.UUID, when: datetime | None = None) -> None:
        """Move a link's expiration to ``when`` (default: now), e.g. to revoke it early."""
        with self.database.transaction() as db:
            link = db.get(SharedLink, shared_id)
            if link is None:
                raise NotFoundError(f"Shared link {shared_id} does not exist")
            link.expiration_date = as_utc(when) if when is not None else utcnow()

    # Listings

    def list_sent_files(self, owner_id: uuid.UUID, page: int, page_size: int) -> tuple[list[SentFileView], int]:
        request = PageRequest(page, page_size)
        recipient = aliased(User)
        stmt = (
            select(
                File.id,
                File.file_name,
                recipient.email,
                SharedLink.expiration_date,
                SharedLink.created_at,
            )
            .select_from(SharedLink)
            .join(File, SharedLink.file_id == File.id)
            .join(recipient, SharedLink.recipient_user_id == recipient.id)
            .where(File.user_id == owner_id)
            .order_by(SharedLink.created_at.desc(), SharedLink.id)
        )
        count_stmt = (
            select(func.count())
            .select_from(SharedLink)
            .join(File, SharedLink.file_id == File.id)
            .where(File.user_id == owner_id)
        )
        with self.database.session() as db:
            rows, total = fetch_page(db, stmt, count_stmt, request)
        files = [
            SentFileView(
                file_id=file_id,
                file_name=file_name,
                recipient_email=email,
                expiration_date=as_utc(expiration_date),
                created_at=as_utc(created_at),
            )
            for file_id, file_name, email, expiration_date, created_at in rows
        ]
        return files, total

    def list_received_files(self, recipient_id: uuid.UUID, page: int, page_size: int) -> tuple[list[ReceivedFileView], int]:
        request = PageRequest(page, page_size)
        sender = aliased(User)
        stmt = (
            select(
                SharedLink.id,
                File.id,
                File.file_name,
                sender.email,
                SharedLink.expiration_date,
                SharedLink.created_at,
            )
            .select_from(SharedLink)
            .join(File, SharedLink.file_id == File.id)
            # Files whose owner is gone are still listed, without a sender.
            .outerjoin(sender, File.user_id == sender.id)
            .where(SharedLink.recipient_user_id == recipient_id)
            .order_by(SharedLink.created_at.desc(), SharedLink.id)
        )
        count_stmt = (
            select(func.count())
            .select_from(SharedLink)
            .join(File, SharedLink.file_id == File.id)
            .where(SharedLink.recipient_user_id == recipient_id)
        )
        with self.database.session() as db:
            rows, total = fetch_page(db, stmt, count_stmt, request)
        files = [
            ReceivedFileView(
                shared_id=shared_id,
                file_id=file_id,
                file_name=file_name,
                sender_email=email,
                expiration_date=as_utc(expiration_date),
                created_at=as_utc(created_at),
            )
            for shared_id, file_id, file_name, email, expiration_date, created_at in rows
        ]
        return files, total

    # Retention

    def find_expired_links(self, now: datetime, limit: int) -> list[tuple[uuid.UUID, uuid.UUID]]:
        """``(link_id, file_id)`` pairs of links that expired before ``now``."""
        stmt = (
            select(SharedLink.id, SharedLink.file_id)
            .where(SharedLink.expiration_date < as_utc(now))
            .order_by(SharedLink.expiration_date)
            .limit(limit)
        )
        with self.database.session() as db:
            return [(link_id, file_id) for link_id, file_id in db.execute(stmt).all()]

    def delete_links_and_files(self, link_ids, file_ids) -> tuple[int, int]:
        """Delete the given links, then those of ``file_ids`` no link points at anymore.

        Links go first so an interruption can only leave an orphan file,
        never a link to a missing file. Both deletes share one transaction.
        """
        link_ids = list(link_ids)
        file_ids = list(file_ids)
        if not link_ids and not file_ids:
            return 0, 0
        try:
            with self.database.transaction() as db:
                res = db.execute(
                    delete(SharedLink)
                    .where(SharedLink.id.in_(link_ids))
                    .execution_options(synchronize_session=False)
                )
                links_deleted = res.rowcount or 0
                res = db.execute(
                    delete(File)
                    .where(File.id.in_(file_ids), _unreferenced_file())
                    .execution_options(synchronize_session=False)
                )
                files_deleted = res.rowcount or 0
        except SQLAlchemyError as exc:
            logger.error("Expired resource cleanup rolled back: %s", exc)
            raise TransactionFailure() from exc
        return links_deleted, files_deleted

    def delete_orphan_files(self, limit: int) -> int:
        """Delete up to ``limit`` files that no shared link references."""
        orphans = select(File.id).where(_unreferenced_file()).limit(limit)
        try:
            with self.database.transaction() as db:
                file_ids = list(db.execute(orphans).scalars())
                if not file_ids:
                    return 0
                res = db.execute(
                    delete(File)
                    .where(File.id.in_(file_ids), _unreferenced_file())
                    .execution_options(synchronize_session=False)
                )
                return res.rowcount or 0
        except SQLAlchemyError as exc:
            logger.error("Orphan file cleanup rolled back: %s", exc)
            raise TransactionFailure() from exc


def _unreferenced_file():
    return ~exists().where(SharedLink.file_id == File.id).correlate(File)
