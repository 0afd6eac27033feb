"""
SQLAlchemy engine and session factory.

Everything that touches the database goes through models/store.py, which
runs on worker threads and on FastAPI's threadpool, so a single sync
engine (psycopg2 driver) is enough. Each store call opens its own session
from SessionLocal and closes it before returning.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from config.settings import settings


class Base(DeclarativeBase):
    """Base class for all ORM models. SQLAlchemy uses this to track table metadata."""
    pass


# pool_pre_ping: the job store is long-lived and Postgres may recycle idle connections
engine = create_engine(settings.database_url, echo=False, pool_pre_ping=True)
SessionLocal = sessionmaker(engine, expire_on_commit=False)
