"""
flatsql - A small SQL interpreter over a flat text file.

Tokenizes and parses a restricted SQL dialect, executes it against an
in-memory table store, and persists the store to a line-oriented text file
between runs.
"""

from flatsql.api import FlatSQL, connect, run_script
from flatsql.executor import RunResult, StatementResult
from flatsql.errors import (
    ErrorKind, FlatSQLError, ParseError, ExecutionError, TableNotFoundError,
    ColumnNotFoundError, ArityMismatchError, QueryTypeError, PersistenceError,
    DatabaseLockedError,
)

__version__ = '0.1.0'
__license__ = 'MIT'

__all__ = [
    'FlatSQL',
    'connect',
    'run_script',
    'RunResult',
    'StatementResult',
    'ErrorKind',
    'FlatSQLError',
    'ParseError',
    'ExecutionError',
    'TableNotFoundError',
    'ColumnNotFoundError',
    'ArityMismatchError',
    'QueryTypeError',
    'PersistenceError',
    'DatabaseLockedError',
]
