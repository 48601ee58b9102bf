import re
import sys
import types

from querydesk.adapters import IBMiAdapter, SQLiteAdapter
from querydesk.executor import QueryExecutor, StatementKind, classify, split_statements


def test_classify_query_keywords():
    for sql in ["  SELECT 1", "show tables", "DESCRIBE t", "explain select 1",
                "With x AS (SELECT 1) SELECT * FROM x", "select(1)"]:
        assert classify(sql) is StatementKind.QUERY, sql


def test_classify_mutations_and_empty():
    assert classify("insert into t values (1)") is StatementKind.MUTATION
    assert classify("CALL proc()") is StatementKind.MUTATION
    assert classify("PRAGMA table_info(t)") is StatementKind.MUTATION
    assert classify("selected_things") is StatementKind.MUTATION
    assert classify("with_x = 1") is StatementKind.MUTATION
    assert classify("select1 FROM t") is StatementKind.MUTATION
    assert classify("   ") is StatementKind.EMPTY
    assert classify(None) is StatementKind.EMPTY


def test_execute_select(conn, executor):
    res = executor.execute(conn, "  SELECT id, name, age FROM people ORDER BY id")
    assert res.success
    assert res.is_tabular
    assert res.columns == ("id", "name", "age")
    assert res.rows == ((1, "Alice", 34), (2, "Bob", None), (3, "Carol", 27))
    assert res.row_count == 3
    assert re.fullmatch(r"3 row\(s\) in \d+ ms", res.message)
    assert res.execution_time_ms >= 0


def test_execute_select_with_no_rows(conn, executor):
    res = executor.execute(conn, "SELECT * FROM people WHERE id > 100")
    assert res.success
    assert res.is_tabular
    assert res.rows == ()
    assert res.columns == ("id", "name", "age")


def test_execute_keeps_duplicate_labels(conn, executor):
    res = executor.execute(conn, "SELECT 1 AS a, 2 AS a")
    assert res.columns == ("a", "a")
    assert res.rows == ((1, 2),)


def test_execute_insert(conn, executor):
    res = executor.execute(conn, "insert into people (id, name, age) values (4, 'Dan', 40)")
    assert res.success
    assert not res.is_tabular
    assert res.row_count == 1
    assert re.fullmatch(r"1 row\(s\) affected in \d+ ms", res.message)
    assert conn.execute("SELECT COUNT(*) FROM people").fetchone()[0] == 4


def test_execute_update_counts_rows(conn, executor):
    res = executor.execute(conn, "UPDATE people SET age = 1 WHERE age IS NOT NULL")
    assert res.row_count == 2


def test_execute_ddl_reports_zero(conn, executor):
    res = executor.execute(conn, "CREATE TABLE t (x INTEGER)")
    assert res.success
    assert res.row_count == 0


def test_row_returning_pragma_is_treated_as_mutation(conn, executor):
    res = executor.execute(conn, "PRAGMA table_info(people)")
    assert res.success
    assert not res.is_tabular


def test_execute_error(conn, executor):
    res = executor.execute(conn, "SELECT * FROM missing_table")
    assert not res.success
    assert res.message.startswith("SQL Error: ")
    assert "missing_table" in res.message
    assert re.search(r"\(took \d+ ms\)$", res.message)
    assert res.rows is None


def test_query_without_result_set_fails(conn, executor):
    res = executor.execute(conn, "WITH x AS (SELECT 9) INSERT INTO numbers (n) SELECT * FROM x")
    assert not res.success
    assert "did not return a result set" in res.message


def test_execute_without_connection(executor):
    res = executor.execute(None, "SELECT 1")
    assert not res.success
    assert res.message == "No database connection available"


def test_execute_empty_sql(conn, executor):
    res = executor.execute(conn, "   ")
    assert not res.success


def test_driver_exception_is_wrapped(failing_connection, executor):
    res = executor.execute(failing_connection, "SELECT 1")
    assert not res.success
    assert "boom" in res.message
    assert failing_connection.rolled_back == 1
    assert all(c.closed for c in failing_connection.cursors)


def test_execute_prepared_query(conn, executor):
    res = executor.execute_prepared(conn, "SELECT name FROM people WHERE age > ? ORDER BY id", [30])
    assert res.is_tabular
    assert res.rows == (("Alice",),)


def test_execute_prepared_insert(conn, executor):
    res = executor.execute_prepared(
        conn, "INSERT INTO people (id, name, age) VALUES (?, ?, ?)", [10, "Eve", None]
    )
    assert res.success
    assert not res.is_tabular
    assert res.row_count == 1
    assert conn.execute("SELECT age FROM people WHERE id = 10").fetchone() == (None,)


def test_execute_prepared_uses_driver_result_detection(conn, executor):
    res = executor.execute_prepared(conn, "PRAGMA table_info(people)", [])
    assert res.is_tabular
    assert [row[1] for row in res.rows] == ["id", "name", "age"]


def test_execute_prepared_wrong_parameter_count(conn, executor):
    res = executor.execute_prepared(conn, "SELECT * FROM people WHERE id = ?", [])
    assert not res.success


def test_execute_prepared_without_connection(executor):
    assert not executor.execute_prepared(None, "SELECT ?", [1]).success


def test_split_statements():
    assert split_statements("BAD SQL;;SELECT 1;") == ["BAD SQL", "SELECT 1"]
    assert split_statements(" ; ;") == []
    assert split_statements("SELECT 'a;b'") == ["SELECT 'a", "b'"]


def test_execute_multiple_continues_after_failure(conn, executor):
    results = executor.execute_multiple(conn, "BAD SQL;;SELECT 1;")
    assert len(results) == 2
    assert not results[0].success
    assert results[1].success
    assert results[1].is_tabular
    assert results[1].rows == ((1,),)


def test_execute_multiple_mixed(conn, executor):
    results = executor.execute_multiple(
        conn, "INSERT INTO numbers (n) VALUES (100); SELECT MAX(n) FROM numbers"
    )
    assert [r.success for r in results] == [True, True]
    assert results[0].row_count == 1
    assert results[1].rows == ((100,),)


def test_validate_valid_statement(conn, executor):
    res = executor.validate(conn, "SELECT * FROM people WHERE id = ?")
    assert res.success
    assert res.message == "SQL syntax is valid"


def test_validate_explain_statement(conn, executor):
    assert executor.validate(conn, "EXPLAIN SELECT 1").success
    assert executor.validate(conn, "EXPLAIN QUERY PLAN SELECT * FROM people WHERE id = ?").success


def test_validate_does_not_execute(conn, executor):
    res = executor.validate(conn, "DELETE FROM people")
    assert res.success
    assert conn.execute("SELECT COUNT(*) FROM people").fetchone()[0] == 3


def test_validate_syntax_error(conn, executor):
    res = executor.validate(conn, "SELEC * FROM people")
    assert not res.success
    assert res.message.startswith("SQL syntax error: ")


def test_validate_unsupported_adapter(failing_connection):
    res = QueryExecutor(adapter=IBMiAdapter()).validate(failing_connection, "SELECT 1")
    assert not res.success
    assert "not supported" in res.message


def test_validate_without_connection(executor):
    assert not executor.validate(None, "SELECT 1").success


def test_list_tables(conn, executor):
    res = executor.list_tables(conn)
    assert res.success
    assert res.is_tabular
    assert res.columns == ("TABLE_SCHEMA", "TABLE_NAME", "TABLE_TYPE")
    assert ("main", "people", "TABLE") in res.rows
    assert res.message.startswith("Tables list")


def test_list_tables_unknown_connection(failing_connection, executor):
    res = executor.list_tables(failing_connection)
    assert not res.success


def test_explicit_adapter_is_used(conn):
    executor = QueryExecutor(adapter=SQLiteAdapter())
    assert executor.execute_prepared(conn, "SELECT ?", ["x"]).rows == (("x",),)


def test_autocommit_off_leaves_transaction_open(conn):
    executor = QueryExecutor(autocommit=False)
    executor.execute(conn, "INSERT INTO numbers (n) VALUES (500)")
    assert conn.in_transaction
    conn.rollback()
    assert conn.execute("SELECT COUNT(*) FROM numbers WHERE n = 500").fetchone()[0] == 0


class WrappedConnection:
    """Connection from a driver module with no registered adapter."""

    def __init__(self, inner):
        self.inner = inner

    def cursor(self):
        return self.inner.cursor()

    def commit(self):
        self.inner.commit()

    def rollback(self):
        self.inner.rollback()


def test_execute_prepared_unregistered_qmark_driver(conn, executor):
    res = executor.execute_prepared(
        WrappedConnection(conn), "SELECT name FROM people WHERE id = ?", [2]
    )
    assert res.success
    assert res.rows == (("Bob",),)


class RecordingCursor:
    description = None
    rowcount = 1

    def __init__(self, statements):
        self.statements = statements

    def execute(self, sql, params=None):
        self.statements.append((sql, params))

    def close(self):
        pass


def test_execute_prepared_uses_driver_paramstyle(monkeypatch, executor):
    driver = types.ModuleType("fakedriver")
    driver.paramstyle = "pyformat"
    monkeypatch.setitem(sys.modules, "fakedriver", driver)

    statements = []

    class FakeConnection:
        def cursor(self):
            return RecordingCursor(statements)

        def commit(self):
            pass

        def rollback(self):
            pass

    FakeConnection.__module__ = "fakedriver.connection"

    res = executor.execute_prepared(FakeConnection(), "UPDATE t SET x = ? WHERE y LIKE 'a%'", [1])
    assert res.success
    assert res.row_count == 1
    assert statements == [("UPDATE t SET x = %s WHERE y LIKE 'a%%'", (1,))]
