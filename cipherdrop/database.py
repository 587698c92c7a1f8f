import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from cipherdrop.errors import BackendUnavailableError

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Owns the engine (and its connection pool) for the process.

    Built once at startup, handed to the gateway, disposed at shutdown.
    """

    def __init__(self, url: str | None = None, *, engine: Engine | None = None, **engine_kwargs):
        if engine is None:
            if url is None:
                raise ValueError("Database needs either a url or an engine")
            engine_kwargs.setdefault("pool_pre_ping", True)
            engine = create_engine(url, **engine_kwargs)
        self.engine = engine
        self.session_factory = sessionmaker(
            bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
        )

    def create_all(self) -> None:
        import cipherdrop.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def close(self) -> None:
        logger.info("Disposing database connection pool")
        self.engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Read-only unit of work; nothing is committed."""
        db = self.session_factory()
        try:
            yield db
        except OperationalError as exc:
            logger.warning("Database unavailable: %s", exc.orig)
            raise BackendUnavailableError() from exc
        finally:
            db.close()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Commit everything issued in the block, or roll all of it back."""
        db = self.session_factory()
        try:
            with db.begin():
                yield db
        except OperationalError as exc:
            logger.warning("Database unavailable, transaction rolled back: %s", exc.orig)
            raise BackendUnavailableError() from exc
        finally:
            db.close()
