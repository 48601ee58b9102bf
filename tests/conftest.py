import sqlite3

import pytest

from querydesk import QueryExecutor


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:")
    connection.executescript("""
        CREATE TABLE people (id INTEGER PRIMARY KEY, name TEXT, age INTEGER);
        INSERT INTO people (id, name, age) VALUES (1, 'Alice', 34);
        INSERT INTO people (id, name, age) VALUES (2, 'Bob', NULL);
        INSERT INTO people (id, name, age) VALUES (3, 'Carol', 27);
        CREATE TABLE numbers (n INTEGER);
    """)
    connection.executemany("INSERT INTO numbers (n) VALUES (?)", [(i,) for i in range(1, 24)])
    connection.commit()
    yield connection
    connection.close()


@pytest.fixture
def executor():
    return QueryExecutor()


class FailingCursor:
    description = None
    rowcount = -1

    def __init__(self, error):
        self.error = error
        self.closed = False

    def execute(self, sql, params=None):
        raise self.error

    def close(self):
        self.closed = True


class FailingConnection:
    """Connection whose statements always raise ``error``."""

    def __init__(self, error):
        self.error = error
        self.cursors = []
        self.rolled_back = 0

    def cursor(self):
        cursor = FailingCursor(self.error)
        self.cursors.append(cursor)
        return cursor

    def commit(self):
        pass

    def rollback(self):
        self.rolled_back += 1


@pytest.fixture
def failing_connection():
    return FailingConnection(RuntimeError("boom"))
