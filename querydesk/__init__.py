"""querydesk - run SQL against a DB-API connection and present the results."""

from .executor import QueryExecutor, StatementKind, classify
from .export import export_csv, export_excel, export_json, export_text
from .formatter import column_widths, render
from .pagination import DEFAULT_PAGE_SIZE, PageNavigation, navigation, paginate
from .result import TabularResult, cell_text

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "PageNavigation",
    "QueryExecutor",
    "StatementKind",
    "TabularResult",
    "cell_text",
    "classify",
    "column_widths",
    "export_csv",
    "export_excel",
    "export_json",
    "export_text",
    "navigation",
    "paginate",
    "render",
]
