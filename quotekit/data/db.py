from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Generator, Optional, Union
from contextlib import contextmanager

from sqlmodel import SQLModel, Session, create_engine

from quotekit.core.paths import user_writable_dir

logger = logging.getLogger(__name__)

# Overrides the SQLite file location
DB_ENV = "QUOTEKIT_DB"

_ENGINE = None
_DB_PATH: Optional[Path] = None


def db_path() -> Path:
	"""Configured path, then QUOTEKIT_DB, then quotekit.db in the user-writable dir."""
	if _DB_PATH is not None:
		return _DB_PATH
	override = os.environ.get(DB_ENV)
	if override:
		return Path(override).expanduser()
	return user_writable_dir() / "quotekit.db"


def configure(path: Optional[Union[str, Path]]) -> None:
	"""Point the engine at another SQLite file; the next get_engine() reconnects."""
	global _DB_PATH, _ENGINE
	_DB_PATH = Path(path).expanduser() if path else None
	if _ENGINE is not None:
		_ENGINE.dispose()
	_ENGINE = None


def get_engine(echo: bool = False):
	"""Return a singleton SQLAlchemy engine for the SQLite DB."""
	global _ENGINE
	if _ENGINE is None:
		path = db_path()
		path.parent.mkdir(parents=True, exist_ok=True)
		# Use posix path for SQLAlchemy URL compatibility on Windows
		url = f"sqlite:///{path.as_posix()}"
		logger.debug("Opening database %s", path)
		_ENGINE = create_engine(url, echo=echo, connect_args={"check_same_thread": False})
	return _ENGINE


def create_db_and_tables(echo: bool = False) -> None:
	"""Create the SQLite database file and all SQLModel tables."""
	# Ensure models are imported so metadata has all tables
	import quotekit.data.models  # noqa: F401

	SQLModel.metadata.create_all(get_engine(echo=echo))


def get_session(echo: bool = False) -> Session:
	"""Create a new SQLModel Session bound to the engine.

	expire_on_commit=False so returned instances keep attribute values after commit.
	"""
	return Session(get_engine(echo=echo), expire_on_commit=False)


@contextmanager
def session_scope(echo: bool = False) -> Generator[Session, None, None]:
	"""Transactional session: commit on success, rollback on error.

	Usage:
		with session_scope() as s:
			... use s ...
	"""
	session = get_session(echo=echo)
	try:
		yield session
		session.commit()
	except Exception:
		session.rollback()
		raise
	finally:
		session.close()
