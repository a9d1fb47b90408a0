"""
Tests for flatsql/store.py
"""

import pytest
from flatsql.errors import (
    TableNotFoundError, ColumnNotFoundError, ArityMismatchError, QueryTypeError,
)
from flatsql.sql.parser import ColumnDef, Condition, ConditionKind, JoinClause
from flatsql.store import Database, Table, row_matches


@pytest.fixture
def db():
    """Store with table T(A NUM, B TEXT) holding three rows."""
    database = Database()
    database.create_table('T', [ColumnDef('A', 'NUM'), ColumnDef('B', 'TEXT')])
    database.insert('T', [1.0, 'x'])
    database.insert('T', [2.0, 'x'])
    database.insert('T', [3.0, 'y'])
    return database


def eq(column, value):
    return Condition(column, ConditionKind.EQUALS, value)


class TestTable:
    def test_column_order(self):
        table = Table('T')
        table.add_column('Z', 'A')
        table.add_column('Y', 'B')
        assert table.column_names == ['Z', 'Y']

    def test_redeclare_keeps_position(self):
        table = Table('T')
        table.add_column('Z', 'A')
        table.add_column('Y', 'B')
        table.add_column('Z', 'C')
        assert list(table.schema.items()) == [('Z', 'C'), ('Y', 'B')]


class TestCreateAlterDrop:
    def test_create(self):
        database = Database()
        assert database.create_table('T', [ColumnDef('A', 'NUM')])
        assert database.table_exists('T')
        assert database.get_table_names() == ['T']

    def test_create_existing_is_noop(self, db):
        assert not db.create_table('T', [ColumnDef('A', 'NUM')])
        assert db.get_table('T').column_names == ['A', 'B']
        assert len(db.get_table('T').rows) == 3

    def test_alter_adds_column(self, db):
        db.alter_table('T', 'C', 'TEXT')
        assert db.get_table('T').column_names == ['A', 'B', 'C']

    def test_alter_does_not_backfill(self, db):
        db.alter_table('T', 'C', 'TEXT')
        assert all('C' not in row for row in db.get_table('T').rows)

    def test_alter_missing_table(self, db):
        with pytest.raises(TableNotFoundError, match="Table 'U' not found."):
            db.alter_table('U', 'C', 'TEXT')

    def test_drop(self, db):
        db.drop_table('T')
        assert not db.table_exists('T')

    def test_drop_missing_table(self):
        with pytest.raises(TableNotFoundError):
            Database().drop_table('T')


class TestInsert:
    def test_values_zip_in_schema_order(self, db):
        row = db.insert('T', [4.0, 'z'])
        assert list(row.items()) == [('A', 4.0), ('B', 'z')]

    def test_arity_mismatch(self, db):
        with pytest.raises(ArityMismatchError, match="Expected 2 values, got 1"):
            db.insert('T', [5.0])
        assert len(db.get_table('T').rows) == 3

    def test_arity_counts_altered_columns(self, db):
        db.alter_table('T', 'C', 'TEXT')
        with pytest.raises(ArityMismatchError):
            db.insert('T', [4.0, 'z'])
        db.insert('T', [4.0, 'z', 'w'])

    def test_missing_table(self):
        with pytest.raises(TableNotFoundError):
            Database().insert('T', [1.0])


class TestRowMatches:
    def test_no_condition(self):
        assert row_matches({}, None)

    def test_equality(self):
        assert row_matches({'A': 1.0}, eq('A', 1.0))
        assert not row_matches({'A': 2.0}, eq('A', 1.0))

    def test_equality_on_absent(self):
        assert not row_matches({}, eq('A', 1.0))

    def test_like(self):
        like = Condition('B', ConditionKind.LIKE, 'x%')
        assert row_matches({'B': 'xyz'}, like)
        assert not row_matches({}, like)

    def test_like_on_number(self):
        with pytest.raises(QueryTypeError):
            row_matches({'A': 1.0}, Condition('A', ConditionKind.LIKE, '%'))

    def test_null_checks(self):
        is_null = Condition('A', ConditionKind.IS_NULL)
        not_null = Condition('A', ConditionKind.IS_NOT_NULL)
        assert row_matches({}, is_null)
        assert not row_matches({'A': 1.0}, is_null)
        assert row_matches({'A': 1.0}, not_null)
        assert not row_matches({}, not_null)


class TestSelect:
    def test_select_all(self, db):
        assert db.select('T') == [
            {'A': 1.0, 'B': 'x'}, {'A': 2.0, 'B': 'x'}, {'A': 3.0, 'B': 'y'},
        ]

    def test_select_returns_copies(self, db):
        rows = db.select('T')
        rows[0]['A'] = 99.0
        assert db.get_table('T').rows[0]['A'] == 1.0

    def test_where(self, db):
        assert db.select('T', where=eq('A', 2.0)) == [{'A': 2.0, 'B': 'x'}]

    def test_where_text_does_not_match_number(self, db):
        assert db.select('T', where=eq('A', '2.0')) == []

    def test_group_by_first_seen_order(self, db):
        assert db.select('T', group_by='B') == [
            {'B': 'x', 'COUNT': 2.0}, {'B': 'y', 'COUNT': 1.0},
        ]

    def test_group_after_filter(self, db):
        rows = db.select('T', where=Condition('A', ConditionKind.IS_NOT_NULL), group_by='B')
        assert [row['COUNT'] for row in rows] == [2.0, 1.0]

    def test_group_absent_key(self, db):
        db.alter_table('T', 'C', 'TEXT')
        assert db.select('T', group_by='C') == [{'COUNT': 3.0}]

    def test_order_by_number(self):
        database = Database()
        database.create_table('N', [ColumnDef('V', 'NUM')])
        for value in (10.0, 9.0, 100.0):
            database.insert('N', [value])
        assert [row['V'] for row in database.select('N', order_by='V')] == [9.0, 10.0, 100.0]

    def test_order_by_text(self, db):
        db.insert('T', [0.0, 'a'])
        assert [row['B'] for row in db.select('T', order_by='B')] == ['a', 'x', 'x', 'y']

    def test_order_by_group_count(self, db):
        rows = db.select('T', group_by='B', order_by='COUNT')
        assert rows == [{'B': 'y', 'COUNT': 1.0}, {'B': 'x', 'COUNT': 2.0}]

    def test_order_by_absent_column(self, db):
        with pytest.raises(QueryTypeError):
            db.select('T', order_by='NOPE')

    def test_missing_table(self):
        with pytest.raises(TableNotFoundError):
            Database().select('T')


class TestJoin:
    @pytest.fixture
    def joined(self):
        database = Database()
        database.create_table('T', [ColumnDef('K', 'NUM'), ColumnDef('NAME', 'TEXT')])
        database.create_table('U', [ColumnDef('K', 'NUM'), ColumnDef('CITY', 'TEXT')])
        database.insert('T', [1.0, 'ann'])
        database.insert('T', [2.0, 'bob'])
        database.insert('U', [1.0, 'rome'])
        database.insert('U', [1.0, 'oslo'])
        database.insert('U', [3.0, 'lima'])
        return database

    def test_one_row_per_matching_pair(self, joined):
        rows = joined.select('T', join=JoinClause('U', 'K', 'K'))
        assert rows == [
            {'K': 1.0, 'NAME': 'ann', 'U.K': 1.0, 'U.CITY': 'rome'},
            {'K': 1.0, 'NAME': 'ann', 'U.K': 1.0, 'U.CITY': 'oslo'},
        ]

    def test_join_then_filter(self, joined):
        rows = joined.select('T', join=JoinClause('U', 'K', 'K'), where=eq('U.CITY', 'oslo'))
        assert len(rows) == 1

    def test_join_does_not_modify_source(self, joined):
        joined.select('T', join=JoinClause('U', 'K', 'K'))
        assert joined.get_table('T').rows[0] == {'K': 1.0, 'NAME': 'ann'}

    def test_absent_join_keys_never_match(self, joined):
        assert joined.select('T', join=JoinClause('U', 'NOPE', 'NOPE')) == []

    def test_missing_join_table(self, joined):
        with pytest.raises(TableNotFoundError, match="Join table 'V' not found."):
            joined.select('T', join=JoinClause('V', 'K', 'K'))


class TestDelete:
    def test_delete_where(self, db):
        assert db.delete('T', eq('B', 'x')) == 2
        assert db.get_table('T').rows == [{'A': 3.0, 'B': 'y'}]

    def test_delete_all(self, db):
        assert db.delete('T') == 3
        assert db.get_table('T').rows == []

    def test_delete_is_null_keeps_present_values(self, db):
        db.alter_table('T', 'C', 'TEXT')
        db.insert('T', [4.0, 'z', 'present'])
        assert db.delete('T', Condition('C', ConditionKind.IS_NULL)) == 3
        assert db.get_table('T').rows == [{'A': 4.0, 'B': 'z', 'C': 'present'}]

    def test_failed_like_leaves_rows(self, db):
        with pytest.raises(QueryTypeError):
            db.delete('T', Condition('A', ConditionKind.LIKE, '%'))
        assert len(db.get_table('T').rows) == 3

    def test_missing_table(self):
        with pytest.raises(TableNotFoundError):
            Database().delete('T')


class TestUpdate:
    def test_update_where(self, db):
        assert db.update('T', 'B', 'q', eq('A', 3.0)) == 1
        assert db.get_table('T').rows[2] == {'A': 3.0, 'B': 'q'}

    def test_update_all(self, db):
        assert db.update('T', 'A', 0.0) == 3

    def test_update_fills_added_column(self, db):
        db.alter_table('T', 'C', 'TEXT')
        db.update('T', 'C', 'new')
        assert all(row['C'] == 'new' for row in db.get_table('T').rows)

    def test_unknown_column(self, db):
        with pytest.raises(ColumnNotFoundError, match="Column 'Z' not found."):
            db.update('T', 'Z', 1.0)

    def test_missing_table(self):
        with pytest.raises(TableNotFoundError):
            Database().update('T', 'A', 1.0)
