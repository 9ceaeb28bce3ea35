from __future__ import annotations
import logging
import uuid

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from .errors import StorageError
from .settings import settings


logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url or "sqlite:///./lessonhub.db"

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=_connect_args, future=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def new_id() -> str:
	return uuid.uuid4().hex


def get_db():
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()


def commit(db: Session) -> None:
	"""Commit the unit of work, rolling back and raising StorageError on failure.

	Writes are at-most-once: nothing here retries.
	"""
	try:
		db.commit()
	except SQLAlchemyError as exc:
		db.rollback()
		logger.error("Database commit failed: %s", exc)
		raise StorageError(str(exc)) from exc
