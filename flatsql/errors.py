"""
Error kinds raised by the interpreter.
Every exception carries an ErrorKind tag so front ends can report failures
without inspecting class names.
"""

from enum import Enum


class ErrorKind(Enum):
    """Category of an interpreter failure."""
    PARSE = 'ParseError'
    NOT_FOUND = 'NotFound'
    COLUMN_NOT_FOUND = 'ColumnNotFound'
    ARITY_MISMATCH = 'ArityMismatch'
    TYPE_ERROR = 'TypeError'
    PERSISTENCE = 'PersistenceError'


class FlatSQLError(Exception):
    """Base exception for all interpreter errors."""
    kind = ErrorKind.PARSE


class ParseError(FlatSQLError):
    """Raised when a statement does not follow the grammar."""
    kind = ErrorKind.PARSE


class ExecutionError(FlatSQLError):
    """Base exception for errors raised while applying a statement."""
    pass


class TableNotFoundError(ExecutionError):
    """Raised when a statement references a table that does not exist."""
    kind = ErrorKind.NOT_FOUND

    def __init__(self, table: str, role: str = 'Table'):
        super().__init__(f"{role} '{table}' not found.")
        self.table = table


class ColumnNotFoundError(ExecutionError):
    """Raised when UPDATE targets a column missing from the schema."""
    kind = ErrorKind.COLUMN_NOT_FOUND

    def __init__(self, column: str):
        super().__init__(f"Column '{column}' not found.")
        self.column = column


class ArityMismatchError(ExecutionError):
    """Raised when INSERT supplies the wrong number of values."""
    kind = ErrorKind.ARITY_MISMATCH

    def __init__(self, expected: int, got: int):
        super().__init__(f"Expected {expected} values, got {got}")
        self.expected = expected
        self.got = got


class QueryTypeError(ExecutionError):
    """Raised when a value is used with an operation its type does not support."""
    kind = ErrorKind.TYPE_ERROR


class PersistenceError(FlatSQLError):
    """Raised when the database file cannot be read, parsed or written."""
    kind = ErrorKind.PERSISTENCE


class DatabaseLockedError(PersistenceError):
    """Raised when another process holds the database file."""
    pass
