"""In-memory pagination over materialized results.

Paging never re-queries the database: a page is a new TabularResult holding a
contiguous slice of the original rows. The functions here hold no state, so
the caller keeps the current page number.
"""

from dataclasses import dataclass, replace

from .result import TabularResult

DEFAULT_PAGE_SIZE = 10
PAGINATION_COMMANDS = ("p", "n", "q")


@dataclass(frozen=True)
class PageNavigation:
    """Where a page sits within a result and which moves are possible."""

    page: int
    total_pages: int
    page_size: int
    first_row: int
    last_row: int
    total_rows: int

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def _normalize(total_rows: int, page: int, page_size: int):
    if page_size <= 0:
        page_size = DEFAULT_PAGE_SIZE
    total_pages = max(1, (total_rows + page_size - 1) // page_size)
    page = max(1, min(page, total_pages))
    return page, page_size, total_pages


def navigation(result: TabularResult, page: int, page_size: int) -> PageNavigation:
    """Describe the page ``page`` would land on, after clamping."""
    total_rows = result.row_count if result.is_tabular else 0
    page, page_size, total_pages = _normalize(total_rows, page, page_size)
    start = (page - 1) * page_size
    end = min(start + page_size, total_rows)
    return PageNavigation(
        page=page,
        total_pages=total_pages,
        page_size=page_size,
        first_row=start + 1 if end > start else 0,
        last_row=end,
        total_rows=total_rows,
    )


def paginate(result: TabularResult, page: int, page_size: int) -> TabularResult:
    """Return one page of a tabular result.

    Failed and non-tabular results come back unchanged. An empty row set is
    passed through with an informational message. Out-of-range page numbers
    are clamped to the first or last page.
    """
    if not result.success or not result.is_tabular:
        return result

    if result.row_count == 0:
        return replace(result, message="No data found.")

    nav = navigation(result, page, page_size)
    rows = result.rows[nav.first_row - 1:nav.last_row]
    return replace(
        result,
        success=True,
        rows=rows,
        row_count=len(rows),
        message=(
            f"Page {nav.page} of {nav.total_pages} "
            f"(rows {nav.first_row}-{nav.last_row} of {nav.total_rows})"
        ),
    )


def is_pagination_command(text) -> bool:
    """True for the paging keys p, n and q."""
    if text is None:
        return False
    return text.strip().lower() in PAGINATION_COMMANDS
