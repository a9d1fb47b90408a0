"""
In-memory table store.
Holds every table's schema and rows and evaluates queries against them.
"""

from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Dict, List, Optional

from flatsql.errors import (
    TableNotFoundError, ColumnNotFoundError, ArityMismatchError,
)
from flatsql.sql.parser import ColumnDef, Condition, ConditionKind, JoinClause
from flatsql.values import Value, values_equal, like_matches, compare_values
from flatsql.log import get_logger


# A row maps column name to value. Missing keys are absent values.
Row = Dict[str, Value]

COUNT_COLUMN = 'COUNT'


@dataclass
class Table:
    """A named table: ordered column schema plus its rows."""
    name: str
    # Column name -> declared type, in declaration order
    schema: Dict[str, str] = field(default_factory=dict)
    rows: List[Row] = field(default_factory=list)

    @property
    def column_names(self) -> List[str]:
        return list(self.schema)

    def add_column(self, name: str, col_type: str) -> None:
        """Declare a column. Redeclaring keeps its position and replaces the type."""
        self.schema[name] = col_type


def row_matches(row: Row, condition: Optional[Condition]) -> bool:
    """
    Decide whether a row passes a WHERE condition.

    A row with no value for the tested column fails equality and LIKE.
    """
    if condition is None:
        return True
    value = row.get(condition.column)
    if condition.kind == ConditionKind.EQUALS:
        return values_equal(value, condition.value)
    if condition.kind == ConditionKind.LIKE:
        return like_matches(value, condition.value)
    if condition.kind == ConditionKind.IS_NULL:
        return value is None
    return value is not None


class Database:
    """
    Collection of named tables.

    Table operations raise TableNotFoundError for unknown tables; creating
    a table that exists is a no-op.
    """

    def __init__(self):
        self.tables: Dict[str, Table] = {}
        self.logger = get_logger("store")

    def clear(self) -> None:
        self.tables.clear()

    def get_table(self, name: str, role: str = 'Table') -> Table:
        try:
            return self.tables[name]
        except KeyError:
            raise TableNotFoundError(name, role) from None

    def table_exists(self, name: str) -> bool:
        return name in self.tables

    def get_table_names(self) -> List[str]:
        return list(self.tables)

    def create_table(self, name: str, columns: List[ColumnDef]) -> bool:
        """
        Create a table.

        Returns:
            False if the table already existed and was left untouched
        """
        if name in self.tables:
            self.logger.info(f"Table '{name}' already exists, skipping creation")
            return False
        table = Table(name)
        for column in columns:
            table.add_column(column.name, column.type)
        self.tables[name] = table
        self.logger.info(f"Created table '{name}' with columns {table.column_names}")
        return True

    def alter_table(self, name: str, column: str, col_type: str) -> None:
        """Add a column to a table. Existing rows are not backfilled."""
        self.get_table(name).add_column(column, col_type)
        self.logger.info(f"Added column '{column}' to table '{name}'")

    def drop_table(self, name: str) -> None:
        self.get_table(name)
        del self.tables[name]
        self.logger.info(f"Dropped table '{name}'")

    def insert(self, name: str, values: List[Value]) -> Row:
        """Append a row built by pairing values with columns in schema order."""
        table = self.get_table(name)
        if len(values) != len(table.schema):
            raise ArityMismatchError(len(table.schema), len(values))
        row = dict(zip(table.column_names, values))
        table.rows.append(row)
        self.logger.debug(f"Inserted {row} into '{name}'")
        return row

    def select(self, name: str, join: Optional[JoinClause] = None,
               where: Optional[Condition] = None, group_by: Optional[str] = None,
               order_by: Optional[str] = None) -> List[Row]:
        """
        Run a query: join, then filter, then group, then order.

        Returned rows are copies; the store is not modified.
        """
        table = self.get_table(name)
        if join is not None:
            rows = self.join_rows(table, self.get_table(join.table, 'Join table'), join)
        else:
            rows = [dict(row) for row in table.rows]

        rows = [row for row in rows if row_matches(row, where)]

        if group_by is not None:
            rows = self.group_rows(rows, group_by)

        if order_by is not None:
            rows.sort(key=cmp_to_key(
                lambda a, b: compare_values(a.get(order_by), b.get(order_by))
            ))

        self.logger.debug(f"Selected {len(rows)} row(s) from '{name}'")
        return rows

    @staticmethod
    def join_rows(base: Table, other: Table, join: JoinClause) -> List[Row]:
        """Nested-loop equi-join; the joined table's columns are prefixed with its name."""
        combined = []
        for base_row in base.rows:
            for other_row in other.rows:
                if values_equal(base_row.get(join.left_column), other_row.get(join.right_column)):
                    row = dict(base_row)
                    for column, value in other_row.items():
                        row[f"{other.name}.{column}"] = value
                    combined.append(row)
        return combined

    @staticmethod
    def group_rows(rows: List[Row], column: str) -> List[Row]:
        """Collapse rows into one COUNT row per distinct value, in first-seen order."""
        counts: Dict[Optional[Value], int] = {}
        for row in rows:
            key = row.get(column)
            counts[key] = counts.get(key, 0) + 1

        grouped = []
        for key, count in counts.items():
            aggregate: Row = {}
            if key is not None:
                aggregate[column] = key
            aggregate[COUNT_COLUMN] = float(count)
            grouped.append(aggregate)
        return grouped

    def delete(self, name: str, where: Optional[Condition] = None) -> int:
        """Remove matching rows (all rows without a condition) and return the count."""
        table = self.get_table(name)
        kept = [row for row in table.rows if not row_matches(row, where)]
        removed = len(table.rows) - len(kept)
        table.rows = kept
        self.logger.info(f"Deleted {removed} rows from '{name}'")
        return removed

    def update(self, name: str, column: str, value: Value,
               where: Optional[Condition] = None) -> int:
        """Overwrite one column in every matching row and return the count."""
        table = self.get_table(name)
        if column not in table.schema:
            raise ColumnNotFoundError(column)
        matching = [row for row in table.rows if row_matches(row, where)]
        for row in matching:
            row[column] = value
        self.logger.info(f"Updated {len(matching)} rows in '{name}'")
        return len(matching)
