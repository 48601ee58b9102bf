"""Fixed-width text rendering of query results."""

import logging
import sys
from typing import Any, List, Optional, Sequence, TextIO

from .result import TabularResult, cell_text

logger = logging.getLogger(__name__)

MIN_COLUMN_WIDTH = 4


def column_widths(columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> List[int]:
    """Compute display widths for each column position.

    A column is at least MIN_COLUMN_WIDTH wide and never narrower than its
    label or any of its cells. Cells are matched to columns by position, so
    repeated labels each keep their own width.
    """
    widths = [max(MIN_COLUMN_WIDTH, len(name)) for name in columns]
    for row in rows:
        for i, value in enumerate(row):
            widths[i] = max(widths[i], len(cell_text(value)))
    return widths


def result_widths(result: TabularResult) -> List[int]:
    """Column widths for a tabular result."""
    return column_widths(result.columns, result.rows or ())


def horizontal_line(widths: Sequence[int]) -> str:
    return "+" + "".join("-" * (w + 2) + "+" for w in widths)


def table_row(cells: Sequence[str], widths: Sequence[int]) -> str:
    return "|" + "".join(f" {cell.ljust(widths[i])} |" for i, cell in enumerate(cells))


def format_table(columns: Sequence[str], rows: Sequence[Sequence[Any]],
                 widths: Optional[Sequence[int]] = None) -> List[str]:
    """Build the bordered table lines for columns and rows."""
    if widths is None:
        widths = column_widths(columns, rows)
    border = horizontal_line(widths)
    lines = [border, table_row(list(columns), widths), border]
    for row in rows:
        lines.append(table_row([cell_text(v) for v in row], widths))
    lines.append(border)
    return lines


def render_fallback(result: TabularResult) -> str:
    """Plain dump of a result whose cells could not be laid out."""
    lines = [" | ".join(result.columns)]
    for row in result.rows or ():
        lines.append(" | ".join(_safe_text(v) for v in row))
    lines.append(f"{result.row_count} row(s) returned")
    lines.append(result.message)
    return "\n".join(lines)


def _safe_text(value: Any) -> str:
    try:
        return cell_text(value)
    except Exception:
        try:
            return repr(value)
        except Exception:
            return f"<{type(value).__name__}>"


def render(result: TabularResult) -> str:
    """Render any result as display text.

    Failures render as the error message, mutations as the message plus the
    affected count, and row sets as a bordered table followed by the row
    count and the message.
    """
    if not result.success:
        return f"Error: {result.message}"

    if not result.is_tabular:
        return f"{result.message}\n{result.row_count} row(s) affected"

    if not result.rows:
        return f"No data found.\n{result.message}"

    try:
        lines = format_table(result.columns, result.rows)
    except Exception as e:
        logger.warning("Falling back to plain rendering: %s", e)
        return render_fallback(result)

    lines.append(f"{result.row_count} row(s) returned")
    lines.append(result.message)
    return "\n".join(lines)


def render_navigation(nav) -> str:
    """Navigation hints for a paginated view; empty for a single page."""
    if nav.total_pages <= 1:
        return ""
    parts = []
    if nav.has_previous:
        parts.append("[P]revious page")
    if nav.has_next:
        parts.append("[N]ext page")
    parts.append("[Q]uit paging")
    return "Navigation: " + "  ".join(parts)


def display(result: TabularResult, out: Optional[TextIO] = None,
            err: Optional[TextIO] = None) -> None:
    """Write the rendering to ``out``, or the error message to ``err``."""
    out = out or sys.stdout
    err = err or sys.stderr
    if not result.success:
        print(result.message, file=err)
        return
    print(render(result), file=out)
