"""Database connection management.

Connection handling only. Models and stores own their SQL.
"""

import logging
import re
from contextlib import contextmanager
from pathlib import Path

try:
    from pysqlcipher3 import dbapi2 as sqlite3

    SQLCIPHER_AVAILABLE = True
except ImportError:
    import sqlite3

    SQLCIPHER_AVAILABLE = False

# Keep a reference to the driver's base error so it can be caught even when
# the sqlite3 module is patched in tests
SQLiteError = sqlite3.Error

logger = logging.getLogger(__name__)

# A table created by the initial migration, used to detect an initialized schema
SCHEMA_MARKER_TABLE = "investments"


class DatabaseError(Exception):
    """Base exception for database errors."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when database connection fails."""

    pass


def _sanitize_encryption_key(key: str) -> str:
    """Validate an SQLCipher key before it is interpolated into a PRAGMA.

    Raises:
        ValueError: If key contains characters other than letters, digits,
            underscore or hyphen
    """
    if not re.match(r"^[a-zA-Z0-9_-]+$", key):
        raise ValueError(
            "Encryption key contains invalid characters. "
            "Only alphanumeric, underscore, and hyphen allowed."
        )
    return key


class Database:
    """SQLite (optionally SQLCipher) connection manager for the portfolio store."""

    def __init__(self, db_path: str, encryption_key: str | None = None):
        """Initialize database connection settings.

        Args:
            db_path: Path to database file, or ":memory:"
            encryption_key: SQLCipher key (ignored when pysqlcipher3 is absent)

        Raises:
            DatabaseConnectionError: If the parent directory can't be created
        """
        self.db_path = db_path
        self.encryption_key = encryption_key
        self.encryption_enabled = encryption_key is not None and SQLCIPHER_AVAILABLE

        if encryption_key is not None and not SQLCIPHER_AVAILABLE:
            logger.warning(
                "DB_ENCRYPTION_KEY is set but pysqlcipher3 is not installed; "
                "database will not be encrypted"
            )

        try:
            if db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(
                f"Failed to create database directory for {db_path}: {e}",
                exc_info=True,
            )
            raise DatabaseConnectionError(
                f"Cannot create database directory: {e}"
            ) from e

    @classmethod
    def from_settings(cls, settings) -> "Database":
        return cls(db_path=settings.db_path, encryption_key=settings.db_encryption_key)

    @contextmanager
    def connection(self):
        """Context manager for database connections.

        Usage:
            with db.connection() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT * FROM investments")

        Raises:
            DatabaseConnectionError: If connection fails
        """
        try:
            conn = self._connect()
        except SQLiteError as e:
            logger.error(f"Failed to connect to database: {e}", exc_info=True)
            raise DatabaseConnectionError(f"Database connection failed: {e}") from e

        try:
            yield conn
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Database transaction rolled back: {e}", exc_info=True)
            raise
        finally:
            try:
                conn.close()
            except SQLiteError as e:
                logger.warning(f"Error closing database connection: {e}", exc_info=True)

    def is_initialized(self) -> bool:
        """Return True when the migrated schema is present."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
                (SCHEMA_MARKER_TABLE,),
            )
            return cursor.fetchone() is not None

    def _connect(self):
        """Create and configure a connection.

        Returns:
            Connection with WAL mode and foreign keys enabled

        Raises:
            sqlite3.Error: If connection or PRAGMA commands fail
            ValueError: If encryption key is invalid
        """
        sanitized_key = None
        if self.encryption_enabled:
            sanitized_key = _sanitize_encryption_key(self.encryption_key)

        conn = sqlite3.connect(
            self.db_path,
            check_same_thread=False,
            isolation_level=None,  # autocommit: each statement is its own transaction
        )

        try:
            if self.encryption_enabled:
                # The key must be set before any other statement touches the file
                conn.execute(f"PRAGMA key = '{sanitized_key}'")
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA foreign_keys=ON")
        except SQLiteError as e:
            conn.close()
            logger.error(f"Failed to configure database PRAGMAs: {e}", exc_info=True)
            raise

        return conn
