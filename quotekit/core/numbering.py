from __future__ import annotations

import re
from typing import Any

from sqlalchemy import text


def _exec(db_session: Any, sql: str, params: dict | None = None):
	return db_session.execute(text(sql), params or {})


def _ensure_table(db_session: Any) -> None:
	"""Create the sequences table if it doesn't exist (SQLite-safe)."""
	# Raw SQL keeps this independent of ORM models.
	_exec(
		db_session,
		"CREATE TABLE IF NOT EXISTS document_sequences ("
		" prefix TEXT PRIMARY KEY,"
		" last INTEGER NOT NULL"
		")",
	)


def _format(prefix: str, n: int, width: int = 4) -> str:
	return f"{prefix}{n:0{width}d}"


def parse_number(prefix: str, number: str) -> int | None:
	"""Numeric suffix of `number` when it is `prefix` followed by digits."""
	m = re.fullmatch(re.escape(prefix) + r"(\d+)", number or "")
	return int(m.group(1)) if m else None


def _last(db_session: Any, prefix: str) -> int | None:
	row = _exec(
		db_session,
		"SELECT last FROM document_sequences WHERE prefix = :p",
		{"p": prefix},
	).fetchone()
	return int(row[0]) if row and row[0] is not None else None


def next_number(prefix: str, db_session: Any) -> str:
	"""
	Return the next sequential number like 'QT-0001', persisted in DB.

	Expects a SQLAlchemy/SQLModel Session or Connection; commits when it can.
	"""
	_ensure_table(db_session)

	updated = _exec(
		db_session,
		"UPDATE document_sequences SET last = last + 1 WHERE prefix = :p",
		{"p": prefix},
	)
	if updated.rowcount == 0:
		_exec(
			db_session,
			"INSERT INTO document_sequences(prefix, last) VALUES (:p, :val)",
			{"p": prefix, "val": 1},
		)
		current = 1
	else:
		current = _last(db_session, prefix) or 1

	if hasattr(db_session, "commit"):
		db_session.commit()
	return _format(prefix, current)


def peek_next_number(prefix: str, db_session: Any) -> str:
	"""
	Return the next number without mutating the sequence.

	Falls back to the highest stored document number with this prefix when
	the sequence has no row yet.
	"""
	_ensure_table(db_session)

	last = _last(db_session, prefix)
	if last is not None:
		return _format(prefix, last + 1)

	rows = _exec(
		db_session,
		"SELECT number FROM document WHERE number LIKE (:p || '%')",
		{"p": prefix},
	).fetchall()
	found = [n for n in (parse_number(prefix, r[0]) for r in rows) if n is not None]
	return _format(prefix, max(found, default=0) + 1)


def bump_sequence_to_at_least(prefix: str, n: int, db_session: Any) -> None:
	"""
	Ensure the stored sequence for `prefix` is at least `n`.
	Used after saving a manually numbered document so the next one does not collide.
	"""
	_ensure_table(db_session)

	last = _last(db_session, prefix)
	if last is None:
		_exec(
			db_session,
			"INSERT INTO document_sequences(prefix, last) VALUES (:p, :val)",
			{"p": prefix, "val": int(n)},
		)
	elif last < n:
		_exec(
			db_session,
			"UPDATE document_sequences SET last = :val WHERE prefix = :p",
			{"p": prefix, "val": int(n)},
		)
	else:
		return
	if hasattr(db_session, "commit"):
		db_session.commit()
