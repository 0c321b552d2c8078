"""SQLite connection management for the article store."""

import atexit
import sqlite3
import threading
from pathlib import Path
from typing import List, Optional

from newsingest.utils.logging import get_logger

logger = get_logger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

# Connections still open at interpreter exit
_active_connections: List["DatabaseConnection"] = []

# Serializes writes across connections
_write_lock = threading.RLock()

_WRITE_PREFIXES = ("INSERT", "UPDATE", "DELETE", "CREATE", "DROP", "ALTER")


def _cleanup_all_connections() -> None:
    for conn in _active_connections[:]:
        try:
            conn.close()
        except sqlite3.Error as e:
            logger.warning("database_close_failed_on_exit", error=str(e))


atexit.register(_cleanup_all_connections)


class DatabaseConnection:
    """SQLite database connection manager."""

    def __init__(self, db_path: Path) -> None:
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file, or ":memory:"
        """
        self.db_path = db_path
        self._connection: Optional[sqlite3.Connection] = None

    @property
    def _is_memory(self) -> bool:
        return str(self.db_path) == ":memory:"

    def connect(self) -> sqlite3.Connection:
        """Get or create the database connection.

        New database files are initialized from schema.sql.

        Returns:
            SQLite connection object
        """
        if self._connection is None:
            needs_init = self._is_memory or not Path(self.db_path).exists()

            self._connection = sqlite3.connect(
                str(self.db_path),
                timeout=30.0,
                check_same_thread=False,
            )
            self._connection.execute("PRAGMA foreign_keys = ON")
            if not self._is_memory:
                self._connection.execute("PRAGMA journal_mode = WAL")
                self._connection.execute("PRAGMA synchronous = NORMAL")
            self._connection.execute("PRAGMA busy_timeout = 30000")
            self._connection.row_factory = sqlite3.Row

            if needs_init:
                self._initialize_schema()

            _active_connections.append(self)
            logger.debug("database_connected", path=str(self.db_path))

        return self._connection

    def _initialize_schema(self) -> None:
        if self._connection is None:
            return
        self._connection.executescript(SCHEMA_PATH.read_text(encoding="utf-8"))
        self._connection.commit()
        logger.info("database_schema_initialized", path=str(self.db_path))

    def close(self) -> None:
        """Close the connection, checkpointing the WAL first."""
        if self._connection:
            if not self._is_memory:
                try:
                    self._connection.execute("PRAGMA wal_checkpoint(TRUNCATE)")
                except sqlite3.Error as e:
                    logger.warning("wal_checkpoint_failed", error=str(e))

            self._connection.close()
            self._connection = None

            if self in _active_connections:
                _active_connections.remove(self)

            logger.debug("database_closed", path=str(self.db_path))

    def execute(self, query: str, params: tuple = ()) -> sqlite3.Cursor:
        """Execute a query. Writes are serialized.

        Args:
            query: SQL query string
            params: Query parameters

        Returns:
            Cursor object
        """
        conn = self.connect()
        if query.lstrip().upper().startswith(_WRITE_PREFIXES):
            with _write_lock:
                return conn.execute(query, params)
        return conn.execute(query, params)

    def commit(self) -> None:
        if self._connection:
            with _write_lock:
                self._connection.commit()

    def rollback(self) -> None:
        if self._connection:
            self._connection.rollback()


def init_database(db_path: Path) -> DatabaseConnection:
    """Open the database and make sure every table exists.

    The schema uses CREATE TABLE IF NOT EXISTS, so this is safe on an
    existing database.

    Args:
        db_path: Path to SQLite database file

    Returns:
        DatabaseConnection object
    """
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    db = DatabaseConnection(db_path)
    conn = db.connect()
    conn.executescript(SCHEMA_PATH.read_text(encoding="utf-8"))
    conn.commit()

    logger.info("database_initialized", path=str(db_path))

    return db
