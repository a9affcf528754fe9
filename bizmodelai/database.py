"""
Database handle - engine and session factory with an explicit lifetime
"""
import logging
from contextlib import contextmanager
from typing import Generator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base shared by all models"""


class Database:
    """
    Owns the SQLAlchemy engine and session factory.

    Created once by the application lifespan (or a script), opened before
    use and closed on shutdown. Nothing here is module-global.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self.engine: Optional[Engine] = None
        self.session_factory: Optional[sessionmaker] = None

    def open(self) -> "Database":
        """Create the engine and make sure the tables exist"""
        if self.engine is not None:
            return self

        if self.url.startswith("sqlite") and (self.url == "sqlite://" or ":memory:" in self.url):
            # in-memory SQLite must share a single connection across threads
            self.engine = create_engine(
                self.url,
                echo=self.echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        elif self.url.startswith("sqlite"):
            self.engine = create_engine(
                self.url,
                echo=self.echo,
                connect_args={"check_same_thread": False, "timeout": 30},
            )
        else:
            self.engine = create_engine(
                self.url,
                echo=self.echo,
                pool_size=10,
                max_overflow=5,
                pool_recycle=300,
                pool_pre_ping=True,
            )

        self.session_factory = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )

        # Import models so they register on the metadata
        import bizmodelai.models  # noqa: F401
        Base.metadata.create_all(bind=self.engine)

        logger.info(f"Database ready: {list(Base.metadata.tables.keys())}")
        return self

    def close(self) -> None:
        """Dispose of the connection pool"""
        if self.engine is not None:
            self.engine.dispose()
            logger.info("Database connections closed")
        self.engine = None
        self.session_factory = None

    def new_session(self) -> Session:
        if self.session_factory is None:
            raise RuntimeError("Database is not open")
        return self.session_factory()

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Session that is always closed; rolled back if the block raises"""
        db = self.new_session()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def ping(self) -> bool:
        with self.session() as db:
            db.execute(text("SELECT 1"))
        return True


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions
    Usage:
    @router.get("/")
    async def endpoint(db: Session = Depends(get_db)):
        ...
    """
    database: Database = request.app.state.database
    with database.session() as db:
        yield db
