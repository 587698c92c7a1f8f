from datetime import datetime, timedelta, timezone
import itertools

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.pool import StaticPool

from cipherdrop.auth import create_access_token
from cipherdrop.database import Database
from cipherdrop.main import create_app
from cipherdrop.security import PasswordHasher
from cipherdrop.services.access import AccessEvaluator
from cipherdrop.services.gateway import StorageGateway


@pytest.fixture
def database():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    db = Database(engine=engine)
    db.create_all()
    yield db
    db.close()


@pytest.fixture
def db_session(database):
    with database.session() as session:
        yield session


@pytest.fixture
def gateway(database):
    return StorageGateway(database)


@pytest.fixture
def hasher():
    # Low iteration count keeps the suite fast.
    return PasswordHasher(iterations=1_000)


@pytest.fixture
def evaluator(gateway, hasher):
    return AccessEvaluator(gateway, hasher)


@pytest.fixture
def make_user(gateway, hasher):
    counter = itertools.count()

    def _make_user(email=None, name=None, password="password1", public_key="pk"):
        n = next(counter)
        user = gateway.create_user(
            name or f"user{n}",
            email or f"user{n}@example.com",
            hasher.hash(password),
        )
        if public_key is not None:
            gateway.set_user_public_key(user.id, public_key)
            user = gateway.find_user_by_id(user.id)
        return user

    return _make_user


@pytest.fixture
def share(gateway, hasher):
    """Store a file from ``owner`` to ``recipient`` and return its shared link."""

    def _share(owner, recipient, file_name="file.bin", password="secret1", expires_in=timedelta(hours=1)):
        return gateway.store_encrypted_file(
            owner_id=owner.id,
            file_name=file_name,
            file_size=3,
            recipient_id=recipient.id,
            access_password=hasher.hash(password),
            expiration_date=datetime.now(timezone.utc) + expires_in,
            encrypted_key=b"key",
            encrypted_payload=b"abc",
            iv=b"iv-iv-iv-iv-",
        )

    return _share


@pytest.fixture
def client(database, hasher):
    with TestClient(create_app(database=database, hasher=hasher)) as c:
        yield c


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _auth_headers
