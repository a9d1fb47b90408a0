"""
Flat-file persistence for the table store.

File layout, one table after another:

    TABLE <name>
    SCHEMA <col>:<type>,<col>:<type>,...
    ROW <col>=<value>,<col>=<value>,...
    END

Nothing is escaped, so names and values containing ':', ',' or '=' do not
survive a reload, and a text that looks like a number comes back as a number.
"""

import os
from typing import Iterator

from flatsql.errors import PersistenceError, DatabaseLockedError
from flatsql.store import Database, Table
from flatsql.values import format_value, parse_stored
from flatsql.log import get_logger, log_store_load, log_store_save


logger = get_logger("codec")


def dump_lines(db: Database) -> Iterator[str]:
    """Yield the lines describing every table in the store."""
    for table in db.tables.values():
        yield f"TABLE {table.name}"
        yield "SCHEMA " + ",".join(f"{name}:{col_type}" for name, col_type in table.schema.items())
        for row in table.rows:
            yield "ROW " + ",".join(f"{name}={format_value(value)}" for name, value in row.items())
        yield "END"


def dumps(db: Database) -> str:
    """Serialize the store to text."""
    return "".join(line + "\n" for line in dump_lines(db))


def loads(text: str, db: Database) -> Database:
    """
    Replace the contents of the store with the tables described by text.

    Lines that carry no known marker are ignored. A SCHEMA or ROW line
    outside a table, or an entry without its separator, raises
    PersistenceError.
    """
    db.clear()
    current = None
    for line_number, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if line.startswith("TABLE "):
            current = Table(line[6:])
            db.tables[current.name] = current
        elif line == "END":
            current = None
        elif line.startswith("SCHEMA ") or line.startswith("ROW "):
            if current is None:
                raise PersistenceError(f"Line {line_number}: '{line.split()[0]}' outside of a table")
            if line.startswith("SCHEMA "):
                for name, col_type in _entries(line[7:], ":", line_number):
                    current.add_column(name, col_type)
            else:
                current.rows.append({
                    name: parse_stored(value)
                    for name, value in _entries(line[4:], "=", line_number)
                })
    return db


def _entries(body: str, separator: str, line_number: int):
    for part in body.split(","):
        if not part:
            continue
        name, found, value = part.partition(separator)
        if not found:
            raise PersistenceError(f"Line {line_number}: malformed entry '{part}'")
        yield name, value


def load_file(filename: str, db: Database) -> bool:
    """
    Load the store from a file.

    Returns:
        False if the file does not exist (the store is left empty)
    """
    db.clear()
    try:
        with open(filename, "r", encoding="utf-8") as f:
            text = f.read()
    except FileNotFoundError:
        logger.info(f"No database file at {filename}")
        return False
    except OSError as e:
        raise PersistenceError(f"Cannot read {filename}: {e}") from e

    loads(text, db)
    log_store_load(filename, len(db.tables))
    return True


def save_file(filename: str, db: Database) -> None:
    """Write the store to a file, replacing it only once fully written."""
    temp_name = f"{filename}.tmp"
    try:
        with open(temp_name, "w", encoding="utf-8") as f:
            f.write(dumps(db))
        os.replace(temp_name, filename)
    except OSError as e:
        _remove_quietly(temp_name)
        raise PersistenceError(f"Cannot write {filename}: {e}") from e
    log_store_save(filename, len(db.tables))


def _remove_quietly(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass


class FileLock:
    """
    Exclusive lock on a database file, held as '<file>.lock'.

    The lock file is created atomically and holds the owner's pid.
    """

    def __init__(self, filename: str):
        self.path = f"{filename}.lock"
        self.locked = False

    def acquire(self) -> None:
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            raise DatabaseLockedError(
                f"Database is in use by another process (remove {self.path} if it is stale)"
            ) from None
        except OSError as e:
            raise PersistenceError(f"Cannot create lock {self.path}: {e}") from e
        with os.fdopen(fd, "w") as f:
            f.write(str(os.getpid()))
        self.locked = True
        logger.debug(f"Acquired {self.path}")

    def release(self) -> None:
        if not self.locked:
            return
        _remove_quietly(self.path)
        self.locked = False
        logger.debug(f"Released {self.path}")

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False
