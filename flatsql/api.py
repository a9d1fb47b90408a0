"""
Public API for the flatsql interpreter.
Ties together parsing, execution and persistence of the flat database file.
"""

from typing import List, Optional, Dict

from flatsql.codec import FileLock, load_file, save_file
from flatsql.config import settings
from flatsql.errors import ParseError, PersistenceError
from flatsql.executor import Executor, RunResult
from flatsql.sql.parser import parse
from flatsql.store import Database
from flatsql.log import get_logger


class FlatSQL:
    """
    Connection to a flat database file.

    The file is loaded when the connection opens. Every call to execute()
    parses the whole program first, applies the statements, and then writes
    the store back to the file.

    Usage:
        db = FlatSQL('database.txt')
        db.execute("CREATE TABLE users (id NUM, name TEXT)")
        db.execute("INSERT INTO users VALUES (1, 'Alice')")
        result = db.execute('SELECT * FROM users')
        db.close()

    Or with context manager:
        with FlatSQL('database.txt') as db:
            db.execute('SELECT * FROM users')
    """

    def __init__(self, filename: Optional[str] = None, use_lock: Optional[bool] = None):
        """
        Open or create a database.

        Args:
            filename: Path to the database file (default from settings)
            use_lock: Hold '<file>.lock' while open (default from settings)

        Raises:
            DatabaseLockedError: if another process has the file open
            PersistenceError: if the file exists but cannot be read
        """
        self.filename = filename or settings.DATABASE_FILE
        self.db = Database()
        self.executor = Executor(self.db)
        self.logger = get_logger("api")
        self.closed = False

        if use_lock is None:
            use_lock = settings.USE_LOCK
        self.lock = FileLock(self.filename) if use_lock else None
        if self.lock is not None:
            self.lock.acquire()

        try:
            if load_file(self.filename, self.db):
                self.load_notice = f"Database loaded from {self.filename}"
            else:
                self.load_notice = "Starting fresh (no existing database found)."
        except PersistenceError:
            self._release()
            raise
        self.logger.info(self.load_notice)

    def execute(self, sql: str) -> RunResult:
        """
        Run a program of ';'-separated statements.

        Args:
            sql: Program text, comments allowed

        Returns:
            RunResult describing executed statements and the error that
            stopped the run, if any. A parse error means nothing ran.
        """
        result = RunResult()
        try:
            statements = parse(sql)
        except ParseError as e:
            self.logger.error(f"Error parsing SQL: {e}")
            result.error = e
            return result

        self.executor.execute_all(statements, result)
        result.notices.append(self.save())
        return result

    def save(self) -> str:
        """Write the store to disk and return the notice for the front end."""
        try:
            save_file(self.filename, self.db)
        except PersistenceError as e:
            self.logger.error(str(e))
            return f"Error saving database: {e}"
        return f"Database saved to {self.filename}"

    def get_table_names(self) -> List[str]:
        """Get list of table names."""
        return self.db.get_table_names()

    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists. Names are stored upper-case."""
        return self.db.table_exists(table_name.upper())

    def get_schema(self, table_name: str) -> Dict[str, str]:
        """Column name -> declared type for one table."""
        return dict(self.db.get_table(table_name.upper()).schema)

    def close(self) -> None:
        """Close the database. The store was saved by the last execute()."""
        if self.closed:
            return
        self._release()
        self.closed = True
        self.logger.info(f"Closed database '{self.filename}'")

    def _release(self) -> None:
        if self.lock is not None:
            self.lock.release()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
        return False


def connect(filename: Optional[str] = None) -> FlatSQL:
    """
    Connect to a database (convenience function).

    Args:
        filename: Path to the database file

    Returns:
        FlatSQL instance
    """
    return FlatSQL(filename)


def run_script(sql: str, filename: Optional[str] = None) -> RunResult:
    """
    One complete run: load the file, execute the program, save the file.
    """
    with FlatSQL(filename) as db:
        result = db.execute(sql)
        result.preamble.append(db.load_notice)
        return result
