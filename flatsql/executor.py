"""
Statement executor.
Applies parsed statements to the store and renders their outcome.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from flatsql.errors import ExecutionError, FlatSQLError, ErrorKind
from flatsql.sql.parser import (
    ASTNode, CreateTableStatement, InsertStatement, SelectStatement,
    DeleteStatement, UpdateStatement, AlterTableStatement, DropTableStatement,
)
from flatsql.store import Database, Row
from flatsql.values import format_value
from flatsql.log import get_logger, log_statement


@dataclass
class StatementResult:
    """Outcome of one executed statement."""
    statement: ASTNode
    message: str
    rows: Optional[List[Row]] = None

    @property
    def lines(self) -> List[str]:
        if self.rows is None:
            return [self.message]
        return [self.message] + [render_row(row) for row in self.rows]


@dataclass
class RunResult:
    """
    Outcome of one run over a batch of statements.

    results holds every statement that completed; error is the failure that
    stopped the run, if any. preamble and notices carry load and save
    messages printed before and after the statement output.
    """
    results: List[StatementResult] = field(default_factory=list)
    error: Optional[FlatSQLError] = None
    preamble: List[str] = field(default_factory=list)
    notices: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None

    @property
    def messages(self) -> List[str]:
        """Everything a front end prints, in order."""
        lines = list(self.preamble)
        for result in self.results:
            lines.extend(result.lines)
        if self.error is not None:
            lines.append(f"Error: {self.error}")
        lines.extend(self.notices)
        return lines

    @property
    def selections(self) -> List[StatementResult]:
        return [result for result in self.results if result.rows is not None]


def render_row(row: Row) -> str:
    """Render a row as '{A=1.0, B=x}'."""
    return "{" + ", ".join(f"{name}={format_value(value)}" for name, value in row.items()) + "}"


class Executor:
    """
    Dispatches statement nodes to the store.
    """

    def __init__(self, db: Database):
        self.db = db
        self.logger = get_logger("executor")

    def execute(self, statement: ASTNode) -> StatementResult:
        """
        Execute a single statement.

        Raises:
            ExecutionError: if the store rejects the statement
        """
        log_statement(type(statement).__name__, statement.table)
        table = statement.table

        if isinstance(statement, CreateTableStatement):
            if self.db.create_table(table, statement.columns):
                return StatementResult(statement, f"Created table '{table}'.")
            return StatementResult(statement, f"Table '{table}' already exists, skipping creation.")

        if isinstance(statement, InsertStatement):
            self.db.insert(table, statement.values)
            return StatementResult(statement, f"Inserted into '{table}'.")

        if isinstance(statement, SelectStatement):
            rows = self.db.select(
                table,
                join=statement.join,
                where=statement.where,
                group_by=statement.group_by,
                order_by=statement.order_by,
            )
            return StatementResult(statement, f"Results from '{table}':", rows)

        if isinstance(statement, DeleteStatement):
            count = self.db.delete(table, statement.where)
            return StatementResult(statement, f"Deleted {count} row(s) from '{table}'.")

        if isinstance(statement, UpdateStatement):
            count = self.db.update(table, statement.column, statement.value, statement.where)
            return StatementResult(statement, f"Updated {count} row(s) in '{table}'.")

        if isinstance(statement, AlterTableStatement):
            column = statement.column
            self.db.alter_table(table, column.name, column.type)
            return StatementResult(statement, f"Altered table '{table}' to add '{column.name}'.")

        if isinstance(statement, DropTableStatement):
            self.db.drop_table(table)
            return StatementResult(statement, f"Dropped table '{table}'.")

        raise TypeError(f"Unsupported statement: {statement!r}")

    def execute_all(self, statements: List[ASTNode], result: Optional[RunResult] = None) -> RunResult:
        """
        Execute statements in order, stopping at the first execution error.

        Statements applied before the failure keep their effects.
        """
        if result is None:
            result = RunResult()
        for statement in statements:
            try:
                result.results.append(self.execute(statement))
            except ExecutionError as e:
                self.logger.error(f"Error executing {type(statement).__name__}: {e}")
                result.error = e
                break
        return result
