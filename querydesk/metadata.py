"""Catalog lookups for the connected database."""

import logging
import sys
import time

from .adapters import adapter_for_connection, driver_module_name
from .executor import NO_CONNECTION, QueryExecutor
from .result import TabularResult

logger = logging.getLogger(__name__)


class MetadataManager:
    """Tables, table structure and server details as TabularResults."""

    def __init__(self, connection, executor=None, adapter=None):
        self.connection = connection
        self.executor = executor or QueryExecutor(adapter=adapter)
        self.adapter = adapter or self.executor.adapter

    def _adapter(self):
        if self.adapter is None:
            self.adapter = adapter_for_connection(self.connection)
        return self.adapter

    def get_tables(self):
        return self.executor.list_tables(self.connection)

    def describe_table(self, table_name):
        """Column names and types for one table."""
        if self.connection is None:
            return TabularResult.error(NO_CONNECTION)
        table_name = (table_name or "").strip()
        if not table_name:
            return TabularResult.error("Table name required for describe command")

        try:
            sql = self._adapter().get_columns_query([table_name])
        except Exception as e:
            return TabularResult.error(f"Failed to describe table: {e}")
        return self.executor.run_query(self.connection, sql, f"Table structure: {table_name}")

    def get_database_info(self):
        """One-row summary of the server and the driver behind the connection."""
        if self.connection is None:
            return TabularResult.error(NO_CONNECTION)

        start = time.perf_counter()
        try:
            adapter = self._adapter()
            module_name = driver_module_name(self.connection)
            module = sys.modules.get(module_name)
            info = [
                ("Database Product", adapter.display_name),
                ("Database Version", adapter.get_version(self.connection)),
                ("Driver Name", module_name),
                ("Driver Version", getattr(module, "__version__", None)),
                ("Paramstyle", getattr(module, "paramstyle", adapter.paramstyle)),
                ("Connection Valid", adapter.is_valid(self.connection)),
            ]
        except Exception as e:
            logger.error("Failed to get database info: %s", e)
            return TabularResult.error(f"Failed to get database info: {e}")

        elapsed = max(0, int(round((time.perf_counter() - start) * 1000)))
        columns = [name for name, _ in info]
        row = [value for _, value in info]
        return TabularResult.query(f"Database information ({elapsed} ms)", columns, [row], elapsed)
