"""Export query results to CSV, text, JSON and Excel files.

Every exporter returns True when the whole file was written and False
otherwise. Failed and non-tabular results are refused before any file is
opened.
"""

import csv
import json
import logging
import os
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .errors import ExportError
from .formatter import format_table
from .result import TabularResult, cell_text

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
GENERATED_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_export_path(path, extension: str, now: Optional[datetime] = None) -> Path:
    """Pick the output file name.

    A blank path becomes ``export_<yyyyMMdd_HHmmss>.<ext>``; the extension is
    appended when the name does not already end with it in any case.
    """
    suffix = "." + extension.lstrip(".").lower()
    name = str(path).strip() if path is not None else ""
    if not name:
        stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
        name = f"export_{stamp}{suffix}"
    if not name.lower().endswith(suffix):
        name += suffix
    return Path(name)


def _exportable(result: TabularResult) -> bool:
    if not result.success or not result.is_tabular:
        logger.warning("Cannot export: %s", result.message)
        return False
    return True


def _write(result: TabularResult, path, extension: str, writer) -> bool:
    if not _exportable(result):
        return False
    target = resolve_export_path(path, extension)
    try:
        writer(result, target)
    except Exception as e:
        logger.error("Export to %s failed: %s", target, e)
        return False
    logger.info("Exported %d row(s) to %s", result.row_count, target)
    return True


def _write_csv(result: TabularResult, target: Path) -> None:
    with open(target, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f, lineterminator=os.linesep)
        writer.writerow(result.columns)
        for row in result.rows:
            writer.writerow(["" if v is None else cell_text(v) for v in row])


def text_export_lines(result: TabularResult, generated: Optional[datetime] = None) -> List[str]:
    """Lines of the text export: header block followed by the bordered table."""
    generated = generated or datetime.now()
    lines = [
        "Database Export",
        f"Generated: {generated.strftime(GENERATED_FORMAT)}",
        f"Total Rows: {result.row_count}",
        "",
    ]
    lines.extend(format_table(result.columns, result.rows))
    return lines


def _write_text(result: TabularResult, target: Path) -> None:
    lines = text_export_lines(result)
    with open(target, "w", encoding="utf-8") as f:
        for line in lines:
            f.write(line + "\n")


def json_serializer(obj: Any) -> Any:
    """Convert values json cannot encode natively."""
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    elif isinstance(obj, Decimal):
        return float(obj)
    elif isinstance(obj, (bytes, bytearray, memoryview)):
        return cell_text(obj)
    return str(obj)


def unique_keys(columns: Sequence[str]) -> List[str]:
    """Column labels made unique for keyed formats (second ``id`` -> ``id_2``)."""
    seen: Dict[str, int] = {}
    keys = []
    for name in columns:
        count = seen.get(name, 0) + 1
        seen[name] = count
        keys.append(name if count == 1 else f"{name}_{count}")
    return keys


def _write_json(result: TabularResult, target: Path) -> None:
    keys = unique_keys(result.columns)
    data = [dict(zip(keys, row)) for row in result.rows]
    with open(target, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=json_serializer)


def _excel_value(value: Any) -> Any:
    if value is None or isinstance(value, (int, float, Decimal, str, datetime, date, time)):
        return value
    return cell_text(value)


def _write_excel(result: TabularResult, target: Path) -> None:
    try:
        import openpyxl
    except ImportError:
        raise ExportError("openpyxl not installed. Run: pip install openpyxl")

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Results"
    ws.append(list(result.columns))
    for row in result.rows:
        ws.append([_excel_value(v) for v in row])
    wb.save(target)


def export_csv(result: TabularResult, path="") -> bool:
    """Write the result as comma-separated values; NULL becomes an empty field."""
    return _write(result, path, "csv", _write_csv)


def export_text(result: TabularResult, path="") -> bool:
    """Write the result as a bordered text table with a header block."""
    return _write(result, path, "txt", _write_text)


def export_json(result: TabularResult, path="") -> bool:
    return _write(result, path, "json", _write_json)


def export_excel(result: TabularResult, path="") -> bool:
    return _write(result, path, "xlsx", _write_excel)


EXPORTERS = {
    "csv": export_csv,
    "txt": export_text,
    "json": export_json,
    "xlsx": export_excel,
}
