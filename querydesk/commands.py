"""Parsing of shell input into SQL and meta-commands.

Meta-commands start with a backslash (``\\t``, ``\\d users``); a handful of
bare words (``exit``, ``help``) are built in; anything else is SQL.
"""

from dataclasses import dataclass
from enum import Enum


class CommandKind(Enum):
    SQL = "sql"
    LIST_TABLES = "list_tables"
    DESCRIBE_TABLE = "describe_table"
    DATABASE_INFO = "database_info"
    HISTORY = "history"
    CLEAR_HISTORY = "clear_history"
    EXPORT_CSV = "export_csv"
    EXPORT_TEXT = "export_text"
    EXPORT_JSON = "export_json"
    EXPORT_EXCEL = "export_excel"
    VALIDATE = "validate"
    HELP = "help"
    STATUS = "status"
    TEST_CONNECTION = "test_connection"
    SHOW_CONFIG = "show_config"
    EXIT = "exit"
    EMPTY = "empty"
    ERROR = "error"


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    argument: str = ""


META_COMMANDS = {
    "t": CommandKind.LIST_TABLES,
    "tables": CommandKind.LIST_TABLES,
    "d": CommandKind.DESCRIBE_TABLE,
    "desc": CommandKind.DESCRIBE_TABLE,
    "describe": CommandKind.DESCRIBE_TABLE,
    "info": CommandKind.DATABASE_INFO,
    "history": CommandKind.HISTORY,
    "clear_history": CommandKind.CLEAR_HISTORY,
    "export": CommandKind.EXPORT_CSV,
    "export_csv": CommandKind.EXPORT_CSV,
    "export_txt": CommandKind.EXPORT_TEXT,
    "export_json": CommandKind.EXPORT_JSON,
    "export_xlsx": CommandKind.EXPORT_EXCEL,
    "check": CommandKind.VALIDATE,
    "help": CommandKind.HELP,
    "q": CommandKind.EXIT,
    "quit": CommandKind.EXIT,
}

REQUIRED_ARGUMENTS = {
    CommandKind.DESCRIBE_TABLE: "Table name required for describe command",
    CommandKind.VALIDATE: "SQL statement required for check command",
}

BUILT_IN_COMMANDS = {
    "exit": CommandKind.EXIT,
    "quit": CommandKind.EXIT,
    "help": CommandKind.HELP,
    "status": CommandKind.STATUS,
    "test": CommandKind.TEST_CONNECTION,
    "config": CommandKind.SHOW_CONFIG,
}

HELP_TEXT = """\
Meta commands:
  \\t, \\tables              list tables
  \\d, \\describe <table>    show table structure
  \\info                    database and driver information
  \\check <sql>             check syntax without executing
  \\history [n]             show the last n commands
  \\clear_history           forget command history
  \\export [file]           export last result as CSV
  \\export_txt [file]       export last result as a text table
  \\export_json [file]      export last result as JSON
  \\export_xlsx [file]      export last result as an Excel workbook
Built-in commands:
  help, status, test, config, exit / quit
While paging: p (previous), n (next), q (quit paging)
Anything else is run as SQL; separate statements with ';'."""


def parse(text):
    """Parse one line of shell input into a Command."""
    if text is None or not text.strip():
        return Command(CommandKind.EMPTY)

    trimmed = text.strip()
    if trimmed.startswith("\\"):
        return _parse_meta_command(trimmed)

    built_in = BUILT_IN_COMMANDS.get(trimmed.lower())
    if built_in is not None:
        return Command(built_in)

    return Command(CommandKind.SQL, trimmed)


def _parse_meta_command(text):
    parts = text[1:].split(None, 1)
    if not parts:
        return Command(CommandKind.ERROR, "Empty meta command")
    name = parts[0].lower()
    argument = parts[1].strip() if len(parts) > 1 else ""

    kind = META_COMMANDS.get(name)
    if kind is None:
        return Command(CommandKind.ERROR, f"Unknown meta command: {name}")
    if kind in REQUIRED_ARGUMENTS and not argument:
        return Command(CommandKind.ERROR, REQUIRED_ARGUMENTS[kind])
    return Command(kind, argument)
