"""
SQL execution for querydesk.

QueryExecutor turns SQL text plus an open DB-API connection into a
TabularResult. Statements are sorted into row-producing and mutating ones by
their leading keyword; this is a heuristic, not a parser, so a row-returning
statement that starts with another keyword (a procedure call, a PRAGMA) is
run as a mutation and its rows are discarded. ``execute_prepared`` asks the
driver instead and is not affected.

No method raises for database errors: every failure comes back as a failed
TabularResult carrying the driver's message and the elapsed time.
"""

import logging
import re
import time
from enum import Enum
from typing import Any, List, Optional, Sequence

from .adapters import adapter_for_connection, driver_paramstyle, translate_placeholders
from .errors import QueryDeskError, UnknownAdapterError
from .result import TabularResult

logger = logging.getLogger(__name__)

QUERY_KEYWORDS = frozenset(["select", "show", "describe", "explain", "with"])

NO_CONNECTION = "No database connection available"

_LEADING_WORD = re.compile(r"[a-z_0-9]+")


class StatementKind(Enum):
    QUERY = "query"
    MUTATION = "mutation"
    EMPTY = "empty"


def classify(sql: Optional[str]) -> StatementKind:
    """Classify SQL text by its first keyword."""
    text = (sql or "").strip().lower()
    if not text:
        return StatementKind.EMPTY
    match = _LEADING_WORD.match(text)
    if match and match.group(0) in QUERY_KEYWORDS:
        return StatementKind.QUERY
    return StatementKind.MUTATION


def split_statements(batch: Optional[str]) -> List[str]:
    """Split a batch on every ``;``, dropping blank fragments.

    The split is purely textual, so a semicolon inside a string literal or a
    comment ends the statement early.
    """
    return [s.strip() for s in (batch or "").split(";") if s.strip()]


def _elapsed_ms(start: float) -> int:
    return max(0, int(round((time.perf_counter() - start) * 1000)))


class QueryExecutor:
    """Executes SQL statements against a caller-owned connection."""

    def __init__(self, adapter=None, autocommit: bool = True):
        self.adapter = adapter
        self.autocommit = autocommit

    def _adapter_for(self, connection):
        if self.adapter is not None:
            return self.adapter
        return adapter_for_connection(connection)

    def _placeholders(self, connection, sql: str) -> str:
        try:
            return self._adapter_for(connection).translate_placeholders(sql)
        except UnknownAdapterError:
            # Unregistered drivers still declare a DB-API paramstyle
            paramstyle = driver_paramstyle(connection)
            logger.debug("No adapter for connection, using paramstyle %s", paramstyle)
            return translate_placeholders(sql, paramstyle)

    @staticmethod
    def _rollback(connection) -> None:
        try:
            connection.rollback()
        except Exception as e:
            logger.debug("Rollback failed: %s", e)

    def _commit(self, connection) -> None:
        if self.autocommit:
            connection.commit()

    def _failure(self, connection, error: Exception, start: float) -> TabularResult:
        elapsed = _elapsed_ms(start)
        logger.error("SQL error after %d ms: %s", elapsed, error)
        self._rollback(connection)
        return TabularResult.error(f"SQL Error: {error} (took {elapsed} ms)", elapsed)

    @staticmethod
    def _query_result(cursor, start: float, message: Optional[str] = None) -> TabularResult:
        columns = [col[0] for col in cursor.description]
        rows = cursor.fetchall()
        elapsed = _elapsed_ms(start)
        if message is None:
            message = f"{len(rows)} row(s) in {elapsed} ms"
        else:
            message = f"{message} ({elapsed} ms)"
        return TabularResult.query(message, columns, rows, elapsed)

    def _update_result(self, connection, cursor, start: float) -> TabularResult:
        affected = cursor.rowcount if cursor.rowcount >= 0 else 0
        self._commit(connection)
        elapsed = _elapsed_ms(start)
        return TabularResult.update(
            f"{affected} row(s) affected in {elapsed} ms", affected, elapsed
        )

    def execute(self, connection, sql: Optional[str]) -> TabularResult:
        """Execute one statement, routed by its leading keyword."""
        if connection is None:
            return TabularResult.error(NO_CONNECTION)

        kind = classify(sql)
        if kind is StatementKind.EMPTY:
            return TabularResult.error("No SQL statement provided")

        statement = sql.strip()
        logger.debug("Executing %s: %s", kind.value, statement)
        start = time.perf_counter()
        try:
            cursor = connection.cursor()
            try:
                cursor.execute(statement)
                if kind is StatementKind.QUERY:
                    if cursor.description is None:
                        raise QueryDeskError("Statement did not return a result set")
                    return self._query_result(cursor, start)
                return self._update_result(connection, cursor, start)
            finally:
                cursor.close()
        except Exception as e:
            return self._failure(connection, e, start)

    def execute_prepared(self, connection, sql: Optional[str],
                         parameters: Sequence[Any] = ()) -> TabularResult:
        """Execute a statement with ``?`` placeholders bound in order.

        Whether rows came back is read from the driver, so the keyword
        heuristic of ``execute`` plays no part here.
        """
        if connection is None:
            return TabularResult.error(NO_CONNECTION)
        if classify(sql) is StatementKind.EMPTY:
            return TabularResult.error("No SQL statement provided")

        start = time.perf_counter()
        try:
            statement = self._placeholders(connection, sql.strip())
            logger.debug("Executing prepared: %s with %d parameter(s)",
                         statement, len(parameters))
            cursor = connection.cursor()
            try:
                cursor.execute(statement, tuple(parameters))
                if cursor.description is not None:
                    return self._query_result(cursor, start)
                return self._update_result(connection, cursor, start)
            finally:
                cursor.close()
        except Exception as e:
            return self._failure(connection, e, start)

    def execute_multiple(self, connection, batch: Optional[str]) -> List[TabularResult]:
        """Execute each ``;``-separated statement in order.

        A failing statement does not stop the ones after it; each statement
        gets its own result.
        """
        return [self.execute(connection, statement) for statement in split_statements(batch)]

    def validate(self, connection, sql: Optional[str]) -> TabularResult:
        """Check syntax by preparing the statement without running it."""
        if connection is None:
            return TabularResult.error(NO_CONNECTION)
        if classify(sql) is StatementKind.EMPTY:
            return TabularResult.error("No SQL statement provided")

        start = time.perf_counter()
        try:
            self._adapter_for(connection).prepare(connection, sql.strip())
        except Exception as e:
            elapsed = _elapsed_ms(start)
            logger.info("Syntax check failed: %s", e)
            self._rollback(connection)
            return TabularResult.error(f"SQL syntax error: {e}", elapsed)
        return TabularResult(
            success=True, message="SQL syntax is valid", execution_time_ms=_elapsed_ms(start)
        )

    def list_tables(self, connection) -> TabularResult:
        """List tables through the adapter's catalog introspection."""
        if connection is None:
            return TabularResult.error(NO_CONNECTION)

        start = time.perf_counter()
        try:
            columns, rows = self._adapter_for(connection).list_tables(connection)
        except Exception as e:
            elapsed = _elapsed_ms(start)
            logger.error("Failed to get tables: %s", e)
            self._rollback(connection)
            return TabularResult.error(f"Failed to get tables: {e}", elapsed)
        elapsed = _elapsed_ms(start)
        return TabularResult.query(f"Tables list ({elapsed} ms)", columns, rows, elapsed)

    def run_query(self, connection, sql: str, message: str) -> TabularResult:
        """Run a catalog query known to return rows, labelling the result."""
        if connection is None:
            return TabularResult.error(NO_CONNECTION)

        start = time.perf_counter()
        try:
            cursor = connection.cursor()
            try:
                cursor.execute(sql)
                return self._query_result(cursor, start, message)
            finally:
                cursor.close()
        except Exception as e:
            return self._failure(connection, e, start)
