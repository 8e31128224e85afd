from contextlib import contextmanager
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from models.base_model import Base
from models.account import Account
from models.refresh_token import RefreshToken

logger = logging.getLogger(__name__)

# Map model names for easy querying
classes = {
    "Account": Account,
    "RefreshToken": RefreshToken,
}


class DBStorage:
    """Owns the engine and the thread-scoped session for one application."""

    def __init__(self, url: str, echo: bool = False):
        """Initialize engine for the given database URL"""
        self.__session = None
        kwargs = {"echo": echo}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            # An in-memory database lives only as long as its connection
            if ":memory:" in url or "mode=memory" in url:
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_pre_ping"] = True
        self.__engine = create_engine(url, **kwargs)

        if self.__engine.url.get_backend_name() == "sqlite":
            # Enable SQLite foreign keys (needed for ON DELETE CASCADE)
            @event.listens_for(self.__engine, "connect")
            def _set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

    def reload(self):
        """Create tables and start session"""
        Base.metadata.create_all(self.__engine)
        session_factory = sessionmaker(bind=self.__engine, expire_on_commit=False)
        self.__session = scoped_session(session_factory)

    @contextmanager
    def transaction(self):
        """
        Unit of work: commit when the block finishes, roll back if it raises.
        Every multi-step auth mutation (rotation, password change) runs inside one.
        """
        session = self.__session()
        try:
            yield session
            session.commit()
        except Exception:
            logger.debug("Rolling back transaction")
            session.rollback()
            raise

    def count(self, cls=None):
        """Count objects"""
        if cls:
            return self.__session.query(cls).count()
        return sum(self.__session.query(model).count() for model in classes.values())

    def close(self):
        """Remove session (for API teardown)"""
        if self.__session is not None:
            self.__session.remove()

    def dispose(self):
        self.close()
        self.__engine.dispose()

    # expose the SQLAlchemy session for advanced querying (joins, filters, etc.)
    def get_session(self):
        return self.__session
