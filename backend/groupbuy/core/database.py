"""SQLModel database engine and session management."""
from sqlmodel import SQLModel, create_engine, Session
from groupbuy.core.config import settings

# Import models so SQLModel.metadata knows about all tables
import groupbuy.models.catalog  # noqa: F401
import groupbuy.models.order  # noqa: F401

engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False},
    echo=False,
)


def create_db_and_tables() -> None:
    """Create all tables defined in SQLModel models."""
    SQLModel.metadata.create_all(engine)


def get_session():
    """FastAPI dependency: yields a SQLModel session."""
    with Session(engine) as session:
        yield session
