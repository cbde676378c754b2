"""SQLModel database engine and session management."""
from sqlmodel import SQLModel, create_engine, Session
from lodge_ledger.core.config import settings

# Import models so SQLModel.metadata knows about all tables
import lodge_ledger.models.payment  # noqa: F401
import lodge_ledger.models.import_log  # noqa: F401

_connect_args = (
    {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
)

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_connect_args,
    echo=False,
)


def create_db_and_tables(bind=None) -> None:
    """Create all tables defined in SQLModel models."""
    SQLModel.metadata.create_all(bind or engine)


def get_session():
    """FastAPI dependency: yields a SQLModel session."""
    with Session(engine) as session:
        yield session
