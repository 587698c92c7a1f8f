from datetime import timedelta

from cipherdrop import celery_app
from cipherdrop.cleanup import cleanup_expired, worker_state


def test_beat_schedule_runs_cleanup_task():
    entry = celery_app.conf.beat_schedule["cleanup-expired-shared-links"]

    assert entry["task"] == cleanup_expired.name


def test_cleanup_task_sweeps_with_worker_database(database, gateway, make_user, share, monkeypatch):
    monkeypatch.setitem(worker_state, "database", database)
    owner = make_user()
    recipient = make_user()
    share(owner, recipient, expires_in=timedelta(minutes=-1))
    live = share(owner, recipient)

    result = cleanup_expired()

    assert result == {"links_deleted": 1, "files_deleted": 1}
    assert gateway.fetch_file(live.file_id) is not None
