"""Append-only SQLite ledger of every file mutation PixeLens performs.

The database lives at ``{project_root}/.pixelens/edit_history.db`` unless
configured otherwise. Rows are never updated or deleted here; retention
is left to whoever owns the file.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from contextlib import closing
from pathlib import Path

from pixelens.core.models import EditRecord

logger = logging.getLogger(__name__)

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS edits (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    file_path TEXT,
    original_content TEXT,
    modified_content TEXT,
    timestamp INTEGER
);
"""


class LedgerError(Exception):
    """The ledger could not be read or written."""


class EditLedger:
    """Thread-safe, single-writer edit history.

    Usage::

        ledger = EditLedger(project / ".pixelens" / "edit_history.db")
        record = ledger.append(path, before, after)
        history = ledger.list()
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._lock = threading.Lock()
        self._init_db()

    @property
    def path(self) -> Path:
        return self._db_path

    # ------------------------------------------------------------------
    # Database bootstrap
    # ------------------------------------------------------------------

    def _init_db(self) -> None:
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            with closing(self._connect()) as conn, conn:
                conn.executescript(_SCHEMA_SQL)
        except (OSError, sqlite3.Error) as e:
            raise LedgerError(f"Cannot open edit history at {self._db_path}: {e}") from e

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=10)
        conn.row_factory = sqlite3.Row
        return conn

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def append(
        self,
        file_path: Path,
        original_content: str,
        modified_content: str,
        timestamp_ms: int | None = None,
    ) -> EditRecord:
        """Record one mutation. Timestamps are kept strictly increasing."""
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)

        with self._lock:
            try:
                with closing(self._connect()) as conn, conn:
                    row = conn.execute("SELECT MAX(timestamp) AS ts FROM edits").fetchone()
                    last = row["ts"] if row and row["ts"] is not None else None
                    if last is not None and timestamp_ms <= last:
                        timestamp_ms = last + 1
                    cur = conn.execute(
                        "INSERT INTO edits (file_path, original_content, modified_content, timestamp) "
                        "VALUES (?, ?, ?, ?)",
                        (str(file_path), original_content, modified_content, timestamp_ms),
                    )
                    edit_id = cur.lastrowid
            except sqlite3.Error as e:
                raise LedgerError(f"Failed to record edit of {file_path}: {e}") from e

        logger.debug("Recorded edit %s for %s", edit_id, file_path)
        return EditRecord(
            id=edit_id,
            file_path=Path(file_path),
            original_content=original_content,
            modified_content=modified_content,
            timestamp_ms=timestamp_ms,
        )

    def list(self) -> list[EditRecord]:
        """All records, oldest first."""
        rows = self._query("SELECT * FROM edits ORDER BY id ASC")
        return [_row_to_record(row) for row in rows]

    def get(self, edit_id: int) -> EditRecord | None:
        rows = self._query("SELECT * FROM edits WHERE id = ?", (edit_id,))
        return _row_to_record(rows[0]) if rows else None

    def count(self) -> int:
        rows = self._query("SELECT COUNT(*) AS cnt FROM edits")
        return rows[0]["cnt"] if rows else 0

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            try:
                with closing(self._connect()) as conn:
                    return conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise LedgerError(f"Failed to read edit history: {e}") from e


def _row_to_record(row: sqlite3.Row) -> EditRecord:
    return EditRecord(
        id=row["id"],
        file_path=Path(row["file_path"]),
        original_content=row["original_content"],
        modified_content=row["modified_content"],
        timestamp_ms=row["timestamp"],
    )
