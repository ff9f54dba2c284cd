import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from finance_tracker.logging_setup import get_logger

logger = get_logger(__name__)

Connection = sqlite3.Connection

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

# Seconds to wait on a locked database file before failing
BUSY_TIMEOUT = 5.0

class DatabaseConfig:
    """Location of the SQLite file; its parent directory is created on demand"""

    def __init__(self, db_path: Path | str = "data/transactions.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def connection_string(self) -> str:
        return str(self.db_path.absolute())

def configure_connection(conn: Connection) -> None:
    """Name-addressable rows and enforced constraints for every connection"""
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

class DatabaseManager:
    """
    Owns the single connection to the transactions database.

    The connection is opened lazily and the schema is applied the first
    time it is opened, so a fresh path is usable without running
    scripts/init_db.py first.

    Usage:
        with DatabaseManager(DatabaseConfig(path)) as db:
            with db.transaction() as conn:
                conn.execute("DELETE FROM transactions")
    """

    def __init__(self, config: DatabaseConfig, schema_path: Path = SCHEMA_PATH):
        self.config = config
        self.schema_path = schema_path
        self._connection: Optional[Connection] = None

    def get_connection(self) -> Connection:
        if self._connection is None:
            conn = sqlite3.connect(
                self.config.connection_string,
                timeout=BUSY_TIMEOUT,
                check_same_thread=False,
            )
            configure_connection(conn)
            execute_schema(conn, self.schema_path)
            logger.debug("Opened database %s", self.config.db_path)
            self._connection = conn
        return self._connection

    @contextmanager
    def transaction(self) -> Generator[Connection, None, None]:
        """
        Run the block as one database transaction.

        Commits when the block exits normally; any exception rolls back
        every statement of the block and is re-raised.
        """
        conn = self.get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def __enter__(self) -> "DatabaseManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

def execute_schema(conn: Connection, schema_path: Path = SCHEMA_PATH) -> None:
    """Apply a schema script; every statement in it must be idempotent"""
    conn.executescript(Path(schema_path).read_text())
    conn.commit()

def get_schema_version(conn: Connection) -> Optional[sqlite3.Row]:
    """Latest applied schema_version row, or None before the schema exists"""
    try:
        return conn.execute(
            "SELECT version, description FROM schema_version ORDER BY version DESC LIMIT 1"
        ).fetchone()
    except sqlite3.OperationalError:
        return None
