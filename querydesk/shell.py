"""
Interactive shell for querydesk.

Wires the executor, renderer, paginator and exporters together over a
connection the caller has already opened. The shell never opens or closes the
connection itself.
"""

import logging
import sys
from pathlib import Path
from typing import Callable, Optional, TextIO

from .adapters import adapter_for_connection, get_adapter, get_unavailable_adapters
from .commands import HELP_TEXT, CommandKind, parse
from .errors import QueryDeskError, UnknownAdapterError
from .executor import QueryExecutor
from .export import EXPORTERS, resolve_export_path
from .formatter import display, render, render_navigation
from .history import QueryHistory
from .metadata import MetadataManager
from .pagination import DEFAULT_PAGE_SIZE, is_pagination_command, navigation, paginate
from .result import TabularResult
from .settings import DEFAULTS

logger = logging.getLogger(__name__)

PROMPT = "querydesk> "
PAGING_PROMPT = "page [p/n/q]> "

EXPORT_EXTENSIONS = {
    CommandKind.EXPORT_CSV: "csv",
    CommandKind.EXPORT_TEXT: "txt",
    CommandKind.EXPORT_JSON: "json",
    CommandKind.EXPORT_EXCEL: "xlsx",
}


class Shell:
    """Read-eval-print loop over one open connection."""

    def __init__(self, connection, adapter=None, settings=None,
                 history: Optional[QueryHistory] = None,
                 out: Optional[TextIO] = None, err: Optional[TextIO] = None,
                 input_func: Callable[[str], str] = input):
        self.connection = connection
        self.settings = settings
        self.adapter = adapter if adapter is not None else self._configured_adapter()
        self.history = history if history is not None else QueryHistory()
        self.out = out or sys.stdout
        self.err = err or sys.stderr
        self.input_func = input_func

        self.page_size = self._setting_int("page_size", DEFAULT_PAGE_SIZE)
        self.export_dir = self._setting("export_dir") or ""
        autocommit = settings.get_bool("autocommit", True) if settings else True

        self.executor = QueryExecutor(adapter=self.adapter, autocommit=autocommit)
        self.metadata = MetadataManager(connection, self.executor, self.adapter)
        self.last_result: Optional[TabularResult] = None
        self.current_page: Optional[int] = None

    def _configured_adapter(self):
        """Adapter named by the db_type setting, if any."""
        db_type = self._setting("db_type")
        if not db_type:
            return None
        try:
            return get_adapter(db_type)
        except UnknownAdapterError as e:
            logger.warning("Ignoring db_type setting: %s", e)
            return None

    def _setting(self, key):
        if self.settings is None:
            return DEFAULTS.get(key)
        return self.settings.get_setting(key)

    def _setting_int(self, key, default):
        if self.settings is None:
            return default
        return self.settings.get_int(key, default)

    def _print(self, text: str = "") -> None:
        print(text, file=self.out)

    def _error(self, text: str) -> None:
        print(text, file=self.err)

    @property
    def paging(self) -> bool:
        return self.current_page is not None

    # Result display

    def show(self, result: TabularResult) -> None:
        """Display a result, entering paging mode when it spans several pages."""
        self.last_result = result
        self.current_page = None
        if result.success and result.is_tabular and result.row_count > self.page_size:
            self.current_page = 1
            self._show_page()
        else:
            display(result, self.out, self.err)

    def _show_page(self) -> None:
        nav = navigation(self.last_result, self.current_page, self.page_size)
        self.current_page = nav.page
        self._print(render(paginate(self.last_result, nav.page, self.page_size)))
        hint = render_navigation(nav)
        if hint:
            self._print(hint)

    def _handle_paging(self, key: str) -> None:
        key = key.strip().lower()
        nav = navigation(self.last_result, self.current_page, self.page_size)
        if key == "q":
            self.current_page = None
            return
        if key == "p":
            if not nav.has_previous:
                self._error("Already on the first page")
                return
            self.current_page -= 1
        elif key == "n":
            if not nav.has_next:
                self._error("Already on the last page")
                return
            self.current_page += 1
        self._show_page()

    # Command handlers

    def _run_sql(self, sql: str) -> None:
        self.history.add(sql)
        if ";" in sql:
            results = self.executor.execute_multiple(self.connection, sql)
            for result in results[:-1]:
                display(result, self.out, self.err)
            if results:
                self.show(results[-1])
            return
        self.show(self.executor.execute(self.connection, sql))

    def _export(self, kind: CommandKind, filename: str) -> None:
        if self.last_result is None:
            self._error("No result to export. Run a query first.")
            return
        if not self.last_result.success or not self.last_result.is_tabular:
            self._error(f"Cannot export: {self.last_result.message}")
            return
        extension = EXPORT_EXTENSIONS[kind]
        target = resolve_export_path(filename, extension)
        if self.export_dir and not target.is_absolute():
            target = Path(self.export_dir) / target
        if EXPORTERS[extension](self.last_result, target):
            self._print(f"Data exported to: {target}")
            self._print(f"{self.last_result.row_count} rows exported")
        else:
            self._error(f"Export to {target} failed")

    def _show_history(self, argument: str) -> None:
        count = int(argument) if argument.isdigit() else 0
        entries = self.history.recent(count)
        if not entries:
            self._print("No command history found.")
            return
        self._print(f"Command History (latest {len(entries)} commands):")
        for i, entry in enumerate(entries, 1):
            self._print(f"{i:3d}: {entry}")

    def _resolve_adapter(self):
        if self.adapter is None:
            self.adapter = adapter_for_connection(self.connection)
        return self.adapter

    def _show_status(self) -> None:
        if self.connection is None:
            self._print("Not connected to any database")
        else:
            try:
                adapter = self._resolve_adapter()
            except QueryDeskError as e:
                self._error(str(e))
            else:
                self._print(f"Connected to: {adapter.display_name}")
            self._print(f"Page size: {self.page_size}")
            if self.last_result is not None:
                self._print(f"Last result: {self.last_result.message}")

        missing = get_unavailable_adapters()
        if missing:
            self._print("Drivers not installed:")
            for _, display_name, install_hint in missing:
                self._print(f"  {display_name} ({install_hint})")

    def _test_connection(self) -> None:
        try:
            valid = self.connection is not None and self._resolve_adapter().is_valid(self.connection)
        except QueryDeskError as e:
            logger.warning("Connection test failed: %s", e)
            valid = False
        if valid:
            self._print("Connection is valid")
        else:
            self._error("Connection test failed")

    def _show_config(self) -> None:
        if self.settings is None:
            items = sorted(DEFAULTS.items())
        else:
            items = self.settings.display_settings()
        self._print("=== Current Configuration ===")
        for key, value in items:
            self._print(f"{key:<20}: {value}")
        self._print("=============================")

    def handle(self, line: str) -> bool:
        """Process one line of input. Returns False when the shell should exit."""
        if self.paging:
            if is_pagination_command(line):
                self._handle_paging(line)
                return True
            self.current_page = None

        command = parse(line)
        kind = command.kind

        if kind is CommandKind.EMPTY:
            return True
        if kind is CommandKind.EXIT:
            return False
        if kind is CommandKind.ERROR:
            self._error(command.argument)
        elif kind is CommandKind.SQL:
            self._run_sql(command.argument)
        elif kind is CommandKind.LIST_TABLES:
            self.show(self.metadata.get_tables())
        elif kind is CommandKind.DESCRIBE_TABLE:
            self.show(self.metadata.describe_table(command.argument))
        elif kind is CommandKind.DATABASE_INFO:
            self.show(self.metadata.get_database_info())
        elif kind is CommandKind.VALIDATE:
            result = self.executor.validate(self.connection, command.argument)
            if result.success:
                self._print(result.message)
            else:
                self._error(result.message)
        elif kind in EXPORT_EXTENSIONS:
            self._export(kind, command.argument)
        elif kind is CommandKind.HISTORY:
            self._show_history(command.argument)
        elif kind is CommandKind.CLEAR_HISTORY:
            self.history.clear()
            self._print("Command history cleared.")
        elif kind is CommandKind.HELP:
            self._print(HELP_TEXT)
        elif kind is CommandKind.STATUS:
            self._show_status()
        elif kind is CommandKind.TEST_CONNECTION:
            self._test_connection()
        elif kind is CommandKind.SHOW_CONFIG:
            self._show_config()
        return True

    def run(self) -> int:
        """Run the interactive loop until exit or end of input."""
        self._print("querydesk - type 'help' for commands, 'exit' to quit.")
        while True:
            try:
                line = self.input_func(PAGING_PROMPT if self.paging else PROMPT)
            except EOFError:
                self._print()
                return 0
            except KeyboardInterrupt:
                self._print()
                self.current_page = None
                continue

            if not self.handle(line):
                return 0
