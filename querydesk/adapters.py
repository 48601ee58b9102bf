"""Database adapters for different database types."""

import sys
from abc import ABC, abstractmethod

from .errors import NotSupportedError, UnknownAdapterError


def find_outside_quotes(sql, char):
    """Return the positions of ``char`` that sit outside quoted literals."""
    positions = []
    quote = None
    for i, c in enumerate(sql):
        if quote:
            if c == quote:
                quote = None
        elif c in ("'", '"'):
            quote = c
        elif c == char:
            positions.append(i)
    return positions


def translate_placeholders(sql, paramstyle):
    """Rewrite ``?`` placeholders into a DB-API paramstyle."""
    if paramstyle == "qmark":
        return sql
    if paramstyle not in ("format", "pyformat"):
        raise NotSupportedError(f"Unsupported paramstyle: {paramstyle}")

    positions = find_outside_quotes(sql, "?")
    # Literal percent signs must be doubled once the driver formats the string
    parts = []
    last = 0
    for pos in positions:
        parts.append(sql[last:pos].replace("%", "%%"))
        parts.append("%s")
        last = pos + 1
    parts.append(sql[last:].replace("%", "%%"))
    return "".join(parts)


def quote_literal(value):
    return value.replace("'", "''")


class DBAdapter(ABC):
    """Base class for database adapters."""

    db_type = "base"
    display_name = "Base"
    driver_modules = ()  # Top-level modules whose connections this adapter handles
    paramstyle = "qmark"
    required_module = None  # Module name to import for this adapter
    install_hint = None  # pip install hint for missing dependency

    @classmethod
    def is_available(cls):
        """Check if the required module for this adapter is installed."""
        if cls.required_module is None:
            return True
        try:
            __import__(cls.required_module)
            return True
        except ImportError:
            return False

    def translate_placeholders(self, sql):
        """Rewrite ``?`` placeholders into the driver's paramstyle."""
        return translate_placeholders(sql, self.paramstyle)

    @abstractmethod
    def prepare(self, conn, sql):
        """Compile ``sql`` on the server without running it.

        Raises the driver's error when the statement is invalid.
        """
        pass

    @abstractmethod
    def get_tables_query(self):
        """Get SQL to retrieve list of tables."""
        pass

    @abstractmethod
    def get_columns_query(self, tables):
        """Get SQL to retrieve column metadata for given tables."""
        pass

    def list_tables(self, conn):
        """Read the table catalog. Returns (columns, rows)."""
        cursor = conn.cursor()
        try:
            cursor.execute(self.get_tables_query())
            columns = [col[0] for col in cursor.description]
            rows = cursor.fetchall()
        finally:
            cursor.close()
        return columns, rows

    def get_version_query(self):
        """Get the SQL to retrieve database version."""
        return "SELECT VERSION()"

    def get_version(self, conn):
        """Get the database version string."""
        try:
            cursor = conn.cursor()
            try:
                cursor.execute(self.get_version_query())
                row = cursor.fetchone()
            finally:
                cursor.close()
            if row:
                return str(row[0])
        except Exception:
            pass
        return None

    def is_valid(self, conn):
        """Check that the connection still answers a trivial query."""
        if conn is None:
            return False
        try:
            cursor = conn.cursor()
            try:
                cursor.execute(self.get_version_query())
                cursor.fetchone()
            finally:
                cursor.close()
            return True
        except Exception:
            return False


class SQLiteAdapter(DBAdapter):
    """Adapter for SQLite via the standard library."""

    db_type = "sqlite"
    display_name = "SQLite"
    driver_modules = ("sqlite3",)
    paramstyle = "qmark"
    required_module = "sqlite3"

    def prepare(self, conn, sql):
        """EXPLAIN compiles the statement into bytecode without executing it."""
        # Placeholders still need bindings; NULLs are never evaluated
        params = (None,) * len(find_outside_quotes(sql, "?"))
        if sql.split(None, 1)[0].lower() != "explain":
            sql = f"EXPLAIN {sql}"
        cursor = conn.cursor()
        try:
            cursor.execute(sql, params)
            cursor.fetchall()
        finally:
            cursor.close()

    def get_version_query(self):
        return "SELECT sqlite_version()"

    def get_tables_query(self):
        """Get tables from SQLite - returns schema, table_name, table_type."""
        return """
            SELECT 'main' AS TABLE_SCHEMA, name AS TABLE_NAME, UPPER(type) AS TABLE_TYPE
            FROM sqlite_master
            WHERE type IN ('table', 'view') AND name NOT LIKE 'sqlite_%'
            ORDER BY name
        """

    def get_columns_query(self, tables):
        if not tables:
            return None

        selects = []
        for table in tables:
            tbl = table.split('.', 1)[1] if '.' in table else table
            tbl = quote_literal(tbl)
            selects.append(f"""
                SELECT 'main' AS TABLE_SCHEMA, '{tbl}' AS TABLE_NAME, name AS COLUMN_NAME,
                       type AS DATA_TYPE, NULL AS LENGTH, NULL AS NUMERIC_SCALE
                FROM pragma_table_info('{tbl}')
            """)
        return " UNION ALL ".join(selects)


class IBMiAdapter(DBAdapter):
    """Adapter for IBM i (AS/400) via ODBC."""

    db_type = "ibmi"
    display_name = "IBM i"
    driver_modules = ("pyodbc",)
    paramstyle = "qmark"
    required_module = "pyodbc"
    install_hint = "pip install querydesk[ibmi]"

    def prepare(self, conn, sql):
        raise NotSupportedError("Syntax check is not supported for IBM i connections")

    def list_tables(self, conn):
        """Read tables through the ODBC catalog instead of QSYS2 views."""
        cursor = conn.cursor()
        try:
            cursor.tables(tableType="TABLE,VIEW")
            columns = [col[0] for col in cursor.description]
            rows = cursor.fetchall()
        finally:
            cursor.close()
        return columns, rows

    def get_version_query(self):
        """Get the SQL to retrieve IBM i version."""
        return "SELECT OS_VERSION || '.' || OS_RELEASE FROM SYSIBMADM.ENV_SYS_INFO"

    def get_columns_query(self, tables):
        if not tables:
            return None

        table_conditions = []
        for table in tables:
            if '.' in table:
                schema, tbl = quote_literal(table).split('.', 1)
                table_conditions.append(
                    f"(TABLE_SCHEMA = '{schema.upper()}' AND TABLE_NAME = '{tbl.upper()}')"
                )
            else:
                table_conditions.append(f"TABLE_NAME = '{quote_literal(table).upper()}'")

        where_clause = " OR ".join(table_conditions)
        return f"""
            SELECT TABLE_SCHEMA, TABLE_NAME, COLUMN_NAME, DATA_TYPE, LENGTH, NUMERIC_SCALE
            FROM QSYS2.SYSCOLUMNS
            WHERE {where_clause}
            ORDER BY TABLE_SCHEMA, TABLE_NAME, ORDINAL_POSITION
        """

    def get_tables_query(self):
        """Get tables from IBM i - returns schema, table_name, table_type."""
        return """
            SELECT TABLE_SCHEMA, TABLE_NAME, TABLE_TYPE
            FROM QSYS2.SYSTABLES
            WHERE TABLE_TYPE IN ('T', 'P', 'V')
            ORDER BY TABLE_SCHEMA, TABLE_NAME
        """


class MySQLAdapter(DBAdapter):
    """Adapter for MySQL."""

    db_type = "mysql"
    display_name = "MySQL"
    driver_modules = ("mysql",)
    paramstyle = "format"
    required_module = "mysql.connector"
    install_hint = "pip install querydesk[mysql]"

    def prepare(self, conn, sql):
        """Server-side PREPARE parses the statement; DEALLOCATE drops it again."""
        cursor = conn.cursor()
        try:
            cursor.execute("PREPARE querydesk_check FROM %s", (sql,))
            cursor.execute("DEALLOCATE PREPARE querydesk_check")
        finally:
            cursor.close()

    def get_columns_query(self, tables):
        if not tables:
            return None

        table_conditions = []
        for table in tables:
            if '.' in table:
                schema, tbl = quote_literal(table).split('.', 1)
                table_conditions.append(
                    f"(TABLE_SCHEMA = '{schema}' AND TABLE_NAME = '{tbl}')"
                )
            else:
                table_conditions.append(f"TABLE_NAME = '{quote_literal(table)}'")

        where_clause = " OR ".join(table_conditions)
        return f"""
            SELECT TABLE_SCHEMA, TABLE_NAME, COLUMN_NAME, DATA_TYPE,
                   CHARACTER_MAXIMUM_LENGTH AS LENGTH, NUMERIC_SCALE
            FROM INFORMATION_SCHEMA.COLUMNS
            WHERE {where_clause}
            ORDER BY TABLE_SCHEMA, TABLE_NAME, ORDINAL_POSITION
        """

    def get_tables_query(self):
        """Get tables from MySQL - returns schema, table_name, table_type."""
        return """
            SELECT TABLE_SCHEMA, TABLE_NAME, TABLE_TYPE
            FROM INFORMATION_SCHEMA.TABLES
            WHERE TABLE_SCHEMA NOT IN ('information_schema', 'mysql', 'performance_schema', 'sys')
            ORDER BY TABLE_SCHEMA, TABLE_NAME
        """


class PostgreSQLAdapter(DBAdapter):
    """Adapter for PostgreSQL."""

    db_type = "postgresql"
    display_name = "PostgreSQL"
    driver_modules = ("psycopg2",)
    paramstyle = "format"
    required_module = "psycopg2"
    install_hint = "pip install querydesk[postgresql]"

    def prepare(self, conn, sql):
        """PREPARE plans the statement without running it."""
        # PREPARE takes no bind parameters, so ? placeholders become $n
        positions = find_outside_quotes(sql, "?")
        parts = []
        last = 0
        for n, pos in enumerate(positions, 1):
            parts.append(sql[last:pos])
            parts.append(f"${n}")
            last = pos + 1
        parts.append(sql[last:])
        cursor = conn.cursor()
        try:
            cursor.execute(f"PREPARE querydesk_check AS {''.join(parts)}")
            cursor.execute("DEALLOCATE querydesk_check")
        finally:
            cursor.close()

    def get_version_query(self):
        return "SELECT version()"

    def get_version(self, conn):
        version_str = super().get_version(conn)
        if version_str and 'PostgreSQL' in version_str:
            # Extract just version number from full string
            parts = version_str.split()
            for i, p in enumerate(parts):
                if p == 'PostgreSQL' and i + 1 < len(parts):
                    return parts[i + 1].rstrip(',')
        return version_str[:30] if version_str else None

    def get_columns_query(self, tables):
        if not tables:
            return None

        table_conditions = []
        for table in tables:
            if '.' in table:
                schema, tbl = quote_literal(table).split('.', 1)
                table_conditions.append(
                    f"(table_schema = '{schema}' AND table_name = '{tbl}')"
                )
            else:
                table_conditions.append(f"table_name = '{quote_literal(table)}'")

        where_clause = " OR ".join(table_conditions)
        return f"""
            SELECT table_schema, table_name, column_name, data_type,
                   character_maximum_length AS length, numeric_scale
            FROM information_schema.columns
            WHERE {where_clause}
            ORDER BY table_schema, table_name, ordinal_position
        """

    def get_tables_query(self):
        """Get tables from PostgreSQL - returns schema, table_name, table_type."""
        return """
            SELECT table_schema, table_name, table_type
            FROM information_schema.tables
            WHERE table_schema NOT IN ('pg_catalog', 'information_schema')
            ORDER BY table_schema, table_name
        """


# Registry of available adapters
ADAPTERS = {
    'sqlite': SQLiteAdapter,
    'ibmi': IBMiAdapter,
    'mysql': MySQLAdapter,
    'postgresql': PostgreSQLAdapter,
}


def get_adapter(db_type):
    """Get an adapter instance by type."""
    adapter_class = ADAPTERS.get(db_type)
    if adapter_class:
        return adapter_class()
    raise UnknownAdapterError(f"Unknown database type: {db_type}")


def driver_module_name(conn):
    """Top-level module of the driver that created ``conn``."""
    return type(conn).__module__.split('.')[0]


def adapter_for_connection(conn):
    """Pick the adapter whose driver module created ``conn``."""
    module = driver_module_name(conn)
    for adapter_class in ADAPTERS.values():
        if module in adapter_class.driver_modules:
            return adapter_class()
    raise UnknownAdapterError(f"No adapter for connections from module '{module}'")


def driver_paramstyle(conn):
    """The DB-API ``paramstyle`` declared by the driver module behind ``conn``."""
    module = sys.modules.get(driver_module_name(conn))
    return getattr(module, "paramstyle", "qmark")


def get_unavailable_adapters():
    """Get list of adapters that are not available due to missing dependencies.

    Returns list of (db_type, display_name, install_hint).
    """
    return [
        (key, cls.display_name, cls.install_hint)
        for key, cls in ADAPTERS.items()
        if not cls.is_available()
    ]
