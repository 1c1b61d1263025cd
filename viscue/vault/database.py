"""
Vault Database — sqlite3 relational store for configuration and entries.

Tables:
- configurations(key, value): ``username``, ``password`` (argon2 hash),
  ``encrypted_private_key`` (hex of the AES-GCM wrapped PEM)
- categories(id, name)
- passwords(id, category_id, name, email, username, password): ``email`` and
  ``password`` hold hex RSA-OAEP ciphertext

Security Note:
    Statement tracing logs SQL text only, never bound parameters.
"""
import sqlite3
import logging
from pathlib import Path
from typing import Any, Optional, Union
from collections.abc import Mapping

from ..exceptions import SQLError

logger = logging.getLogger("viscue.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS configurations (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS passwords (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    category_id INTEGER REFERENCES categories (id) ON DELETE SET NULL,
    name TEXT NOT NULL,
    email TEXT NOT NULL,
    username TEXT NOT NULL DEFAULT '',
    password TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_passwords_category ON passwords (category_id);
"""

_SELECT_CONFIGURATION = "SELECT value FROM configurations WHERE key = ?"

_INSERT_CONFIGURATION = """
INSERT INTO configurations (key, value) VALUES (:key, :value)
"""


class Transaction:
    """One explicit BEGIN ... COMMIT/ROLLBACK unit on a connection."""

    def __init__(self, db: "VaultDatabase"):
        self._db = db
        self.active = False

    def start(self) -> None:
        self._db.execute("BEGIN")
        self.active = True

    def execute_named(self, query: str, params: Mapping[str, Any]) -> sqlite3.Cursor:
        if not self.active:
            raise SQLError("transaction is not active")
        return self._db.execute_named(query, params)

    def commit(self) -> None:
        self._db.execute("COMMIT")
        self.active = False

    def rollback(self) -> None:
        if not self.active:
            return
        try:
            self._db.execute("ROLLBACK")
        finally:
            self.active = False


class VaultDatabase:
    """Thin sqlite3 wrapper exposing the calls the vault needs.

    The connection runs in autocommit mode; multi-statement units use
    ``begin()`` explicitly.
    """

    def __init__(self, path: Union[str, Path], sql_trace: bool = False):
        self.path = str(path)
        try:
            self._conn = sqlite3.connect(
                self.path, isolation_level=None, check_same_thread=False,
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys=ON;")
            self._conn.execute("PRAGMA secure_delete=ON;")
        except sqlite3.Error as err:
            raise SQLError(f"failed connecting to sqlite3: {err}") from err
        if sql_trace:
            self._conn.set_trace_callback(self._trace)

    @staticmethod
    def _trace(statement: str) -> None:
        logger.debug("database query: %s", " ".join(statement.split()))

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "VaultDatabase":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Statement execution
    # ------------------------------------------------------------------

    def execute(self, query: str, args: tuple = ()) -> sqlite3.Cursor:
        try:
            return self._conn.execute(query, args)
        except sqlite3.Error as err:
            raise SQLError(str(err)) from err

    def execute_named(self, query: str, params: Mapping[str, Any]) -> sqlite3.Cursor:
        """Execute with ``:name`` placeholders bound from ``params``."""
        try:
            return self._conn.execute(query, dict(params))
        except sqlite3.Error as err:
            raise SQLError(str(err)) from err

    def query_row(self, query: str, args: tuple = ()) -> Optional[sqlite3.Row]:
        return self.execute(query, args).fetchone()

    def query_all(self, query: str, args: tuple = ()) -> list[sqlite3.Row]:
        return self.execute(query, args).fetchall()

    def begin(self) -> Transaction:
        """Start a transaction the caller commits or rolls back itself."""
        tx = Transaction(self)
        tx.start()
        return tx

    # ------------------------------------------------------------------
    # Schema and configuration
    # ------------------------------------------------------------------

    def init_schema(self) -> None:
        """Create the vault tables if missing. Idempotent."""
        try:
            self._conn.executescript(SCHEMA)
        except sqlite3.Error as err:
            raise SQLError(f"failed creating schema: {err}") from err

    def get_configuration(self, key: str) -> Optional[str]:
        row = self.query_row(_SELECT_CONFIGURATION, (key,))
        return row["value"] if row is not None else None

    def is_initialized(self) -> bool:
        """True once an account has been provisioned in this vault."""
        return self.get_configuration("username") is not None

    @staticmethod
    def insert_configuration(tx: Transaction, key: str, value: str) -> None:
        tx.execute_named(_INSERT_CONFIGURATION, {"key": key, "value": value})
