from sqlmodel import create_engine, SQLModel, Session
from sqlalchemy.pool import StaticPool

from config import DATABASE_URL, SQL_ECHO


def _engine_options(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    options = {"connect_args": {"check_same_thread": False}}
    # In-memory databases live in one connection; share it across sessions.
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


# Create engine
engine = create_engine(DATABASE_URL, echo=SQL_ECHO, **_engine_options(DATABASE_URL))


def create_db_and_tables():
    """Create all tables in the database"""
    SQLModel.metadata.create_all(engine)


async def get_session():
    """Get database session - used as FastAPI dependency

    Async so the session is opened, used and closed on the event loop
    thread; requests then never touch a shared SQLite connection from
    two threads at once.
    """
    with Session(engine) as session:
        yield session
