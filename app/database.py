# app/database.py
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from app.core.config import get_settings

settings = get_settings()

# ---------------------------------------------------------
# Engine options depend on the backend:
#
# Postgres (Supabase pooler)
#   - sslmode=require   : enforce SSL when running in the cloud
#   - pool_size=1       : keep only 1 connection to the Supabase pooler
#   - max_overflow=0    : do not open extra connections beyond the pool
#   - pool_pre_ping=True: validate connections before using them
#
# SQLite (local dev / tests)
#   - check_same_thread=False: FastAPI runs sync routes in a threadpool
#   - in-memory URLs share one connection, otherwise every
#     connection would see its own empty database
# ---------------------------------------------------------


def _engine_options(db_url: str) -> tuple[str, dict]:
    if db_url.startswith("sqlite"):
        options: dict = {"connect_args": {"check_same_thread": False}}
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return db_url, options

    # Append sslmode=require if it is not already present
    if db_url.startswith("postgres") and "sslmode=" not in db_url:
        separator = "&" if "?" in db_url else "?"
        db_url = f"{db_url}{separator}sslmode=require"

    return db_url, {"pool_pre_ping": True, "pool_size": 1, "max_overflow": 0}


db_url, engine_options = _engine_options(settings.DATABASE_URL)

engine = create_engine(
    db_url,
    echo=False,        # set to True if you want to debug SQL queries
    **engine_options,
)


def create_db_and_tables() -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    FastAPI dependency that yields a SQLModel Session.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session
