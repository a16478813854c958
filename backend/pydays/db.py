from __future__ import annotations
import logging
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from .settings import settings


logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./pydays.db"

Base = declarative_base()


class Database:
	"""Explicitly managed storage handle.

	Constructed once at process start, ``open()``-ed before use and
	``close()``-d at shutdown; callers get sessions from it instead of a
	lazily created global engine.
	"""

	def __init__(self, url: Optional[str] = None) -> None:
		self.url = url or settings.database_url or DEFAULT_DATABASE_URL
		self._engine: Optional[Engine] = None
		self._sessionmaker: Optional[sessionmaker] = None

	@property
	def engine(self) -> Engine:
		if self._engine is None:
			raise RuntimeError("Database is not open")
		return self._engine

	def open(self) -> "Database":
		if self._engine is not None:
			return self
		connect_args = {"check_same_thread": False} if self.url.startswith("sqlite") else {}
		engine_kwargs = {}
		if self.url in ("sqlite://", "sqlite:///:memory:"):
			# one shared connection, otherwise every session sees an empty database
			engine_kwargs["poolclass"] = StaticPool
		self._engine = create_engine(self.url, connect_args=connect_args, future=True, **engine_kwargs)
		self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, bind=self._engine, future=True)
		# Import models so their tables are registered on Base.metadata
		from . import models  # noqa: F401
		Base.metadata.create_all(bind=self._engine)
		logger.info("Database opened at %s", self._engine.url.render_as_string(hide_password=True))
		return self

	def close(self) -> None:
		if self._engine is not None:
			self._engine.dispose()
			logger.info("Database closed")
		self._engine = None
		self._sessionmaker = None

	def session(self) -> Session:
		if self._sessionmaker is None:
			raise RuntimeError("Database is not open")
		return self._sessionmaker()


def get_db(request: Request) -> Iterator[Session]:
	database: Database = request.app.state.database
	db = database.session()
	try:
		yield db
	finally:
		db.close()
