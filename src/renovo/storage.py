"""SQLite storage for named rule presets and the operation history.

A :class:`Storage` is an explicit handle: construct it with a database path,
pass it to whoever needs it, and close it (or use it as a context manager).
There is no module-level connection.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Sequence

from .io_utils import ensure_dir
from .rules import RenameRule, rule_from_dict, rule_to_dict

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS presets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    rules TEXT NOT NULL,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE IF NOT EXISTS history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    operation_type TEXT NOT NULL,
    details TEXT NOT NULL,
    timestamp DATETIME DEFAULT CURRENT_TIMESTAMP
);
"""


@dataclass
class Preset:
    name: str
    rules: List[RenameRule]
    created_at: str


@dataclass
class HistoryEntry:
    id: int
    operation_type: str
    details: Dict[str, Any]
    timestamp: str


class Storage:
    """Preset and history store backed by one SQLite file.

    Parameters
    ----------
    db_path
        Database file. Its parent directory is created if missing. Use
        ``":memory:"`` for a throwaway store.
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = db_path
        if str(db_path) != ":memory:":
            ensure_dir(Path(db_path).parent)
        self._conn = sqlite3.connect(str(db_path))
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        logger.debug("Opened storage at %s", db_path)

    def __enter__(self) -> "Storage":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.debug("Closed storage at %s", self.db_path)

    @property
    def closed(self) -> bool:
        return self._conn is None

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        if self._conn is None:
            raise RuntimeError("Storage is closed")
        with self._conn:
            yield self._conn

    # --- Presets ---

    def save_preset(self, name: str, rules: Sequence[RenameRule]) -> None:
        """Store a rule chain under ``name``, replacing any existing preset."""

        if not name.strip():
            raise ValueError("Preset name cannot be empty")
        payload = json.dumps([rule_to_dict(r) for r in rules])
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO presets (name, rules) VALUES (?, ?) "
                "ON CONFLICT(name) DO UPDATE SET rules = excluded.rules",
                (name, payload),
            )

    def get_preset(self, name: str) -> List[RenameRule]:
        """Return the rule chain stored under ``name``.

        Raises
        ------
        KeyError
            No preset has that name.
        """

        with self._transaction() as conn:
            row = conn.execute(
                "SELECT rules FROM presets WHERE name = ?", (name,)
            ).fetchone()
        if row is None:
            raise KeyError(name)
        return [rule_from_dict(item) for item in json.loads(row["rules"])]

    def list_presets(self) -> List[Preset]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT name, rules, created_at FROM presets ORDER BY name"
            ).fetchall()
        return [
            Preset(
                name=row["name"],
                rules=[rule_from_dict(item) for item in json.loads(row["rules"])],
                created_at=row["created_at"],
            )
            for row in rows
        ]

    def delete_preset(self, name: str) -> bool:
        """Delete a preset. Returns False if it did not exist."""

        with self._transaction() as conn:
            cur = conn.execute("DELETE FROM presets WHERE name = ?", (name,))
        return cur.rowcount > 0

    # --- History ---

    def add_history(self, operation_type: str, details: Dict[str, Any]) -> int:
        """Append an entry to the operation history and return its id."""

        with self._transaction() as conn:
            cur = conn.execute(
                "INSERT INTO history (operation_type, details) VALUES (?, ?)",
                (operation_type, json.dumps(details, default=str)),
            )
        return int(cur.lastrowid)

    def list_history(self, limit: int = 50) -> List[HistoryEntry]:
        """Return up to ``limit`` history entries, newest first."""

        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT id, operation_type, details, timestamp FROM history "
                "ORDER BY id DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [
            HistoryEntry(
                id=row["id"],
                operation_type=row["operation_type"],
                details=json.loads(row["details"]),
                timestamp=row["timestamp"],
            )
            for row in rows
        ]
