"""
Tests for flatsql/codec.py
"""

import os
import pytest
from flatsql.codec import dumps, loads, load_file, save_file, FileLock
from flatsql.errors import PersistenceError, DatabaseLockedError
from flatsql.sql.parser import ColumnDef
from flatsql.store import Database


@pytest.fixture
def db():
    database = Database()
    database.create_table('USERS', [ColumnDef('ID', 'NUM'), ColumnDef('NAME', 'TEXT')])
    database.insert('USERS', [1.0, 'Alice'])
    database.insert('USERS', [2.5, 'Bob'])
    database.create_table('EMPTY', [ColumnDef('X', 'TEXT')])
    return database


class TestDump:
    def test_layout(self, db):
        assert dumps(db) == (
            "TABLE USERS\n"
            "SCHEMA ID:NUM,NAME:TEXT\n"
            "ROW ID=1.0,NAME=Alice\n"
            "ROW ID=2.5,NAME=Bob\n"
            "END\n"
            "TABLE EMPTY\n"
            "SCHEMA X:TEXT\n"
            "END\n"
        )

    def test_rows_missing_columns_omit_them(self, db):
        db.alter_table('USERS', 'EMAIL', 'TEXT')
        assert "ROW ID=1.0,NAME=Alice\n" in dumps(db)

    def test_empty_store(self):
        assert dumps(Database()) == ""


class TestLoad:
    def test_round_trip(self, db):
        restored = loads(dumps(db), Database())
        assert restored.get_table_names() == ['USERS', 'EMPTY']
        assert restored.get_table('USERS').schema == {'ID': 'NUM', 'NAME': 'TEXT'}
        assert restored.get_table('USERS').rows == db.get_table('USERS').rows
        assert restored.get_table('EMPTY').rows == []

    def test_load_clears_existing_state(self, db):
        loads("TABLE OTHER\nSCHEMA A:NUM\nEND\n", db)
        assert db.get_table_names() == ['OTHER']

    def test_numeric_text_comes_back_as_number(self):
        database = Database()
        database.create_table('T', [ColumnDef('CODE', 'TEXT')])
        database.insert('T', ['007'])
        restored = loads(dumps(database), Database())
        assert restored.get_table('T').rows == [{'CODE': 7.0}]

    def test_trailing_commas_accepted(self):
        database = loads("TABLE T\nSCHEMA A:NUM,B:TEXT,\nROW A=1.0,B=x,\nEND\n", Database())
        assert database.get_table('T').column_names == ['A', 'B']
        assert database.get_table('T').rows == [{'A': 1.0, 'B': 'x'}]

    def test_unknown_lines_ignored(self):
        database = loads("# note\nTABLE T\nSCHEMA A:NUM\nEND\n\n", Database())
        assert database.get_table_names() == ['T']

    def test_row_outside_table(self):
        with pytest.raises(PersistenceError, match="Line 1"):
            loads("ROW A=1.0\n", Database())

    def test_malformed_entry(self):
        with pytest.raises(PersistenceError, match="malformed entry"):
            loads("TABLE T\nSCHEMA A\nEND\n", Database())


class TestFiles:
    def test_save_and_load(self, db, tmp_path):
        path = str(tmp_path / "database.txt")
        save_file(path, db)
        restored = Database()
        assert load_file(path, restored)
        assert restored.get_table_names() == db.get_table_names()
        assert not os.path.exists(path + ".tmp")

    def test_load_missing_file(self, tmp_path):
        database = Database()
        database.create_table('T', [ColumnDef('A', 'NUM')])
        assert not load_file(str(tmp_path / "missing.txt"), database)
        assert database.get_table_names() == []

    def test_save_to_missing_directory(self, db, tmp_path):
        with pytest.raises(PersistenceError):
            save_file(str(tmp_path / "no" / "such" / "dir.txt"), db)

    def test_failed_replace_removes_temp_file(self, db, tmp_path, monkeypatch):
        path = str(tmp_path / "database.txt")

        def fail_replace(src, dst):
            raise PermissionError("read-only")

        monkeypatch.setattr(os, "replace", fail_replace)
        with pytest.raises(PersistenceError, match="read-only"):
            save_file(path, db)
        assert not os.path.exists(path + ".tmp")
        assert not os.path.exists(path)


class TestFileLock:
    def test_acquire_and_release(self, tmp_path):
        path = str(tmp_path / "database.txt")
        lock = FileLock(path)
        lock.acquire()
        assert os.path.exists(path + ".lock")
        lock.release()
        assert not os.path.exists(path + ".lock")

    def test_second_lock_fails(self, tmp_path):
        path = str(tmp_path / "database.txt")
        with FileLock(path):
            with pytest.raises(DatabaseLockedError):
                FileLock(path).acquire()

    def test_release_without_acquire(self, tmp_path):
        FileLock(str(tmp_path / "database.txt")).release()
