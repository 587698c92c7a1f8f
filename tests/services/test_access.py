from datetime import timedelta
import uuid

import pytest

from cipherdrop.errors import AccessDenied, SharedLinkNotFound


def test_seal_password_does_not_store_plaintext(evaluator):
    sealed = evaluator.seal_password("secret1")

    assert sealed != "secret1"
    assert evaluator.hasher.verify("secret1", sealed)


def test_authorize_returns_link_and_file(evaluator, make_user, share):
    owner = make_user()
    recipient = make_user()
    link = share(owner, recipient, file_name="notes.txt", password="secret1")

    got_link, rec = evaluator.authorize(link.id, recipient.id, "secret1")

    assert got_link.id == link.id
    assert rec.file_name == "notes.txt"
    assert rec.encrypted_payload == b"abc"


def test_authorize_hides_why_a_link_is_unavailable(evaluator, make_user, share):
    owner = make_user()
    recipient = make_user()
    stranger = make_user()
    live = share(owner, recipient, password="secret1")
    expired = share(owner, recipient, password="secret1", expires_in=timedelta(seconds=-1))

    messages = set()
    for shared_id, caller in [
        (uuid.uuid4(), recipient.id),
        (live.id, stranger.id),
        (expired.id, recipient.id),
    ]:
        with pytest.raises(SharedLinkNotFound) as excinfo:
            # The right password does not help a foreign or expired link.
            evaluator.authorize(shared_id, caller, "secret1")
        messages.add(excinfo.value.message)

    assert len(messages) == 1


def test_stranger_with_wrong_password_still_gets_not_found(evaluator, make_user, share):
    owner = make_user()
    recipient = make_user()
    stranger = make_user()
    link = share(owner, recipient, password="secret1")

    with pytest.raises(SharedLinkNotFound):
        evaluator.authorize(link.id, stranger.id, "wrong-password")


def test_recipient_with_wrong_password_is_denied(evaluator, make_user, share):
    owner = make_user()
    recipient = make_user()
    link = share(owner, recipient, password="secret1")

    with pytest.raises(AccessDenied):
        evaluator.authorize(link.id, recipient.id, "secret2")


def test_authorize_reports_missing_file_as_not_found(evaluator, gateway, make_user, share, monkeypatch):
    owner = make_user()
    recipient = make_user()
    link = share(owner, recipient, password="secret1")

    monkeypatch.setattr(gateway, "fetch_file", lambda file_id: None)

    with pytest.raises(SharedLinkNotFound):
        evaluator.authorize(link.id, recipient.id, "secret1")
