# app/db.py

from sqlmodel import SQLModel, create_engine, Session

from app.config import settings


def build_engine(database_url: str, timeout: int = settings.DB_TIMEOUT_SECONDS):
    connect_args = {}
    if database_url.startswith("sqlite"):
        # required for SQLite + FastAPI; timeout bounds the wait on the write lock
        connect_args = {"check_same_thread": False, "timeout": timeout}
    return create_engine(
        database_url,
        echo=False,          # set to True to see SQL
        connect_args=connect_args,
    )


# Engine = connection to the database
engine = build_engine(settings.DATABASE_URL)


def init_db(bind=None):
    # importing models registers the tables on SQLModel.metadata
    from app import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
