from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import event
from sqlalchemy.exc import DatabaseError

from cipherdrop.errors import TransactionFailure
from cipherdrop.models import File, SharedLink
from cipherdrop.services.reaper import RetentionReaper


def test_sweep_on_empty_store_is_noop(gateway):
    result = RetentionReaper(gateway).sweep()

    assert result.is_noop


def test_sweep_removes_only_expired_pairs(gateway, make_user, share):
    owner = make_user()
    recipient = make_user()
    expired = share(owner, recipient, expires_in=timedelta(minutes=-1))
    live = share(owner, recipient, expires_in=timedelta(hours=1))

    result = RetentionReaper(gateway).sweep()

    assert result.links_deleted == 1
    assert result.files_deleted == 1
    assert gateway.fetch_file(expired.file_id) is None
    assert gateway.fetch_file(live.file_id) is not None
    assert gateway.fetch_shared_link(live.id, recipient.id) is not None


def test_second_sweep_changes_nothing(gateway, make_user, share, db_session):
    owner = make_user()
    recipient = make_user()
    share(owner, recipient, expires_in=timedelta(minutes=-1))
    share(owner, recipient, expires_in=timedelta(hours=1))
    reaper = RetentionReaper(gateway)

    reaper.sweep()
    second = reaper.sweep()

    assert second.is_noop
    assert db_session.query(SharedLink).count() == 1
    assert db_session.query(File).count() == 1


def test_sweep_works_through_multiple_batches(gateway, make_user, share, db_session):
    owner = make_user()
    recipient = make_user()
    for _ in range(5):
        share(owner, recipient, expires_in=timedelta(minutes=-1))

    result = RetentionReaper(gateway, batch_size=2).sweep()

    assert result.links_deleted == 5
    assert result.files_deleted == 5
    assert db_session.query(SharedLink).count() == 0
    assert db_session.query(File).count() == 0


def test_sweep_honors_explicit_now(gateway, make_user, share):
    owner = make_user()
    recipient = make_user()
    link = share(owner, recipient, expires_in=timedelta(hours=1))

    early = RetentionReaper(gateway).sweep(now=datetime.now(timezone.utc))
    assert early.is_noop

    later = RetentionReaper(gateway).sweep(now=datetime.now(timezone.utc) + timedelta(hours=2))
    assert later.links_deleted == 1
    assert gateway.fetch_file(link.file_id) is None


def test_file_still_shared_by_a_live_link_is_kept(gateway, make_user, share, database):
    owner = make_user()
    recipient = make_user()
    expired = share(owner, recipient, expires_in=timedelta(minutes=-1))
    with database.transaction() as db:
        db.add(
            SharedLink(
                file_id=expired.file_id,
                recipient_user_id=recipient.id,
                password="sealed",
                expiration_date=datetime.now(timezone.utc) + timedelta(hours=1),
            )
        )

    result = RetentionReaper(gateway).sweep()

    assert result.links_deleted == 1
    assert result.files_deleted == 0
    assert gateway.fetch_file(expired.file_id) is not None


def test_sweep_reclaims_orphan_files(gateway, make_user, database):
    owner = make_user()
    # Left behind by an interrupted run: a file with no link.
    with database.transaction() as db:
        db.add(
            File(
                user_id=owner.id,
                file_name="orphan.bin",
                file_size=1,
                encrypted_key=b"k",
                encrypted_payload=b"c",
                iv=b"i",
            )
        )

    result = RetentionReaper(gateway).sweep()

    assert result.links_deleted == 0
    assert result.files_deleted == 1


def test_report_scenario(gateway, evaluator, make_user):
    a = make_user(email="a@x.com", public_key=None)
    b = make_user(email="b@x.com", public_key="b-public-key")

    link = gateway.store_encrypted_file(
        owner_id=a.id,
        file_name="report.pdf",
        file_size=1024,
        recipient_id=b.id,
        access_password=evaluator.seal_password("secret1"),
        expiration_date=datetime.now(timezone.utc) + timedelta(hours=1),
        encrypted_key=b"wrapped-key",
        encrypted_payload=b"\x00" * 1024,
        iv=b"0123456789ab",
    )

    fetched = gateway.fetch_shared_link(link.id, b.id)
    assert fetched is not None
    _, rec = evaluator.authorize(link.id, b.id, "secret1")
    assert rec.file_name == "report.pdf"

    gateway.expire_shared_link(link.id, datetime.now(timezone.utc) - timedelta(minutes=1))
    RetentionReaper(gateway).sweep()

    assert gateway.fetch_shared_link(link.id, b.id) is None
    assert gateway.fetch_file(link.file_id) is None


def test_failed_file_delete_keeps_links(gateway, database, make_user, share, db_session):
    owner = make_user()
    recipient = make_user()
    expired = share(owner, recipient, expires_in=timedelta(minutes=-1))

    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().upper().startswith("DELETE FROM FILES"):
            raise DatabaseError(statement, parameters, Exception("disk I/O error"))

    event.listen(database.engine, "before_cursor_execute", before_cursor_execute)
    try:
        with pytest.raises(TransactionFailure):
            RetentionReaper(gateway).sweep()
    finally:
        event.remove(database.engine, "before_cursor_execute", before_cursor_execute)

    assert db_session.query(SharedLink).count() == 1
    assert db_session.query(File).count() == 1

    # The next sweep converges once the store recovers.
    result = RetentionReaper(gateway).sweep()
    assert result.links_deleted == 1
    assert result.files_deleted == 1
    assert gateway.fetch_file(expired.file_id) is None
