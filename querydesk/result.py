"""
Result value for querydesk.

A TabularResult is the single value produced for every executed statement:
a row set, a mutation outcome, or a failure. Rows are positional tuples that
line up with ``columns``; labels may repeat, so nothing looks cells up by name.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple


NULL_TEXT = "NULL"


def cell_text(value: Any) -> str:
    """Textual form of a cell value as shown in tables and text exports."""
    if value is None:
        return NULL_TEXT
    if isinstance(value, memoryview):
        value = value.tobytes()
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


@dataclass(frozen=True)
class TabularResult:
    """Outcome of one executed statement."""

    success: bool
    message: str
    columns: Tuple[str, ...] = ()
    rows: Optional[Tuple[Tuple[Any, ...], ...]] = None
    row_count: int = 0
    execution_time_ms: int = 0

    def __post_init__(self) -> None:
        if self.execution_time_ms < 0:
            raise ValueError("execution_time_ms must be >= 0")
        if not self.success:
            if self.rows is not None or self.columns or self.row_count:
                raise ValueError("a failed result carries no columns, rows or count")
            return
        if self.rows is not None:
            if len(self.rows) != self.row_count:
                raise ValueError(
                    f"row_count {self.row_count} does not match {len(self.rows)} rows"
                )
            width = len(self.columns)
            for row in self.rows:
                if len(row) != width:
                    raise ValueError(
                        f"row has {len(row)} values for {width} columns"
                    )

    @property
    def is_tabular(self) -> bool:
        """True when this result carries a row set, even an empty one."""
        return self.rows is not None

    @classmethod
    def query(cls, message: str, columns: Sequence[str], rows: Sequence[Sequence[Any]],
              execution_time_ms: int = 0) -> "TabularResult":
        """Build a row-producing result."""
        frozen_rows = tuple(tuple(row) for row in rows)
        return cls(
            success=True,
            message=message,
            columns=tuple(columns),
            rows=frozen_rows,
            row_count=len(frozen_rows),
            execution_time_ms=execution_time_ms,
        )

    @classmethod
    def update(cls, message: str, affected: int,
               execution_time_ms: int = 0) -> "TabularResult":
        """Build a mutation result carrying an affected-row count."""
        return cls(
            success=True,
            message=message,
            row_count=max(affected, 0),
            execution_time_ms=execution_time_ms,
        )

    @classmethod
    def error(cls, message: str, execution_time_ms: int = 0) -> "TabularResult":
        """Build a failed result."""
        return cls(success=False, message=message, execution_time_ms=execution_time_ms)
