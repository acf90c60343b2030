"""
Casekeeper - Database Manager
=============================

The one SQLite connection shared by every case operation, plus the
transaction context all multi-statement writes run in.
"""

import sqlite3
import threading
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

from casekeeper.core.logger import logger
from casekeeper.core.config import get_config
from casekeeper.core.constants import DB_CONNECTION_TIMEOUT, SQLITE_BUSY_TIMEOUT
from casekeeper.core.errors import CaseError

from casekeeper.core.database.base import storage_errors
from casekeeper.core.database.schema import SchemaMixin
from casekeeper.core.database.counters import CountersMixin
from casekeeper.core.database.cases import CasesMixin
from casekeeper.core.database.edits import EditsMixin
from casekeeper.core.database.audit import AuditMixin
from casekeeper.core.database.stats import StatsMixin
from casekeeper.core.database.global_bans import GlobalBansMixin
from casekeeper.core.database.global_mutes import GlobalMutesMixin


PRAGMAS = (
    ("journal_mode", "WAL"),
    ("synchronous", "NORMAL"),
    ("temp_store", "MEMORY"),
    ("foreign_keys", "ON"),
    ("busy_timeout", str(SQLITE_BUSY_TIMEOUT)),
)


def _statement(query: str) -> str:
    """First keyword of a query, used to label storage errors."""
    parts = query.split(None, 1)
    return parts[0].upper() if parts else "?"


# =============================================================================
# Database Manager (Singleton)
# =============================================================================

class DatabaseManager(
    SchemaMixin,
    CountersMixin,
    CasesMixin,
    EditsMixin,
    AuditMixin,
    StatsMixin,
    GlobalBansMixin,
    GlobalMutesMixin,
):
    """
    Process-wide case database.

    DESIGN: One connection per process, opened in WAL mode so readers are
    not blocked by the writer. A lock serialises statements across
    threads; multi-statement work goes through transaction(). Any sqlite3
    error leaves this class as StorageFailure.
    """

    _instance: Optional["DatabaseManager"] = None
    _lock: threading.Lock = threading.Lock()

    def __new__(cls, db_path: Optional[Union[str, Path]] = None) -> "DatabaseManager":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    instance = super().__new__(cls)
                    instance._initialized = False
                    cls._instance = instance
        return cls._instance

    def __init__(self, db_path: Optional[Union[str, Path]] = None) -> None:
        """
        Open the database and create missing tables.

        Args:
            db_path: Database file. Defaults to the configured CASES_DB_PATH.
                Ignored once the singleton is initialized.
        """
        if self._initialized:
            return

        self.db_path = Path(db_path) if db_path else get_config().db_path
        self._db_lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = None

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connect()
        self._init_tables()
        self._initialized = True

        logger.tree("Case Database Ready", [
            ("Path", str(self.db_path)),
            ("Journal", "WAL"),
            ("Busy Timeout", f"{SQLITE_BUSY_TIMEOUT}ms"),
        ], emoji="🗄️")

    # =========================================================================
    # Connection Management
    # =========================================================================

    def _connect(self) -> None:
        """
        Open the connection and apply PRAGMAS.

        isolation_level=None: lone statements autocommit, and everything
        else runs under the explicit BEGIN IMMEDIATE of transaction().
        """
        with storage_errors("Database Connection", path=self.db_path):
            conn = sqlite3.connect(
                str(self.db_path),
                timeout=DB_CONNECTION_TIMEOUT,
                check_same_thread=False,
                isolation_level=None,
            )
            for name, value in PRAGMAS:
                conn.execute(f"PRAGMA {name}={value}")
            conn.row_factory = sqlite3.Row
            self._conn = conn

    def _live_connection(self) -> sqlite3.Connection:
        """Return the connection, reopening it if it was closed or broke."""
        if self._conn is not None:
            try:
                self._conn.execute("SELECT 1")
                return self._conn
            except sqlite3.Error:
                pass
        self._connect()
        return self._conn

    def _run(self, query: str, params: Tuple, fetch: Optional[str] = None) -> Any:
        with self._db_lock:
            conn = self._live_connection()
            with storage_errors("Database Query", statement=_statement(query)):
                cursor = conn.execute(query, params)
                if fetch == "one":
                    return cursor.fetchone()
                if fetch == "all":
                    return cursor.fetchall()
                return cursor

    def execute(self, query: str, params: Tuple = ()) -> sqlite3.Cursor:
        """Run one statement in autocommit mode."""
        return self._run(query, params)

    def fetchone(self, query: str, params: Tuple = ()) -> Optional[sqlite3.Row]:
        return self._run(query, params, fetch="one")

    def fetchall(self, query: str, params: Tuple = ()) -> List[sqlite3.Row]:
        return self._run(query, params, fetch="all")

    def close(self) -> None:
        with self._db_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.info("Case Database Closed", [("Path", str(self.db_path))])

    # =========================================================================
    # Transaction Support
    # =========================================================================

    class Transaction:
        """
        One BEGIN IMMEDIATE ... COMMIT unit.

        Usage:
            with db.transaction() as tx:
                case_id = db._allocate_case_id(tx, guild_id)
                db._insert_case(tx, {...})
            # Counter bump and insert commit together or not at all

        The write lock is taken at BEGIN, so a row read inside the block
        cannot change before the block writes it. The manager lock is held
        for the whole block.
        """

        def __init__(self, db: "DatabaseManager"):
            self._db = db
            self._conn: Optional[sqlite3.Connection] = None
            self.cursor: Optional[sqlite3.Cursor] = None

        def __enter__(self) -> "DatabaseManager.Transaction":
            lock = self._db._db_lock
            lock.acquire()
            try:
                self._conn = self._db._live_connection()
                with storage_errors("Begin Transaction"):
                    self._conn.execute("BEGIN IMMEDIATE")
                self.cursor = self._conn.cursor()
            except BaseException:
                lock.release()
                raise
            return self

        def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
            try:
                if exc_type is None:
                    self._commit()
                else:
                    self._conn.rollback()
                    # Guard rejections roll back routinely
                    if not isinstance(exc_val, CaseError):
                        logger.warning("Case Transaction Rolled Back", [
                            ("Type", exc_type.__name__),
                            ("Error", str(exc_val)[:100] or "-"),
                        ])
            finally:
                self._db._db_lock.release()
            return False

        def _commit(self) -> None:
            try:
                with storage_errors("Commit Transaction"):
                    self._conn.commit()
            except CaseError:
                self._conn.rollback()
                raise

        def execute(self, query: str, params: Tuple = ()) -> sqlite3.Cursor:
            with storage_errors("Database Query", statement=_statement(query)):
                self.cursor.execute(query, params)
            return self.cursor

        def fetchone(self) -> Optional[sqlite3.Row]:
            """Next row of the last statement."""
            return self.cursor.fetchone()

        def fetchall(self) -> List[sqlite3.Row]:
            """Remaining rows of the last statement."""
            return self.cursor.fetchall()

        @property
        def rowcount(self) -> int:
            return self.cursor.rowcount

        @property
        def lastrowid(self) -> Optional[int]:
            return self.cursor.lastrowid

    def transaction(self) -> "DatabaseManager.Transaction":
        """Start a write transaction (use as a context manager)."""
        return self.Transaction(self)


# =============================================================================
# Global Instance
# =============================================================================

def get_db() -> DatabaseManager:
    """Shared manager, opened on the configured path on first use."""
    return DatabaseManager()


def reset_db() -> None:
    """Close and forget the singleton so the next get_db() reconnects."""
    with DatabaseManager._lock:
        instance = DatabaseManager._instance
        if instance is not None and instance._initialized:
            instance.close()
        DatabaseManager._instance = None


__all__ = ["DatabaseManager", "get_db", "reset_db", "PRAGMAS"]
