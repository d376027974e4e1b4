"""Import time entries from an Excel workbook."""

from __future__ import annotations

from datetime import datetime, time, timedelta
from pathlib import Path

from openpyxl import load_workbook

from utils import GRID_COLUMNS, GRID_DAYS


def format_cell(val) -> str:
    """Render a cell value as the text a spreadsheet copy would produce."""
    if val is None:
        return ""
    if isinstance(val, (datetime, time)):
        return val.strftime("%H:%M")
    if isinstance(val, timedelta):
        minutes = int(val.total_seconds() // 60)
        return f"{minutes // 60:02d}:{minutes % 60:02d}"
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    return str(val).strip()


def sheet_to_text(
    path: Path,
    sheet: str | None = None,
    min_row: int = 1,
    min_col: int = 1,
    max_col: int = GRID_COLUMNS,
) -> str:
    """Read a block of a worksheet as tab/newline separated text."""
    wb = load_workbook(path, data_only=True, read_only=True)
    try:
        ws = wb[sheet] if sheet else wb.active
        rows = ws.iter_rows(
            min_row=min_row,
            max_row=min_row + GRID_DAYS - 1,
            min_col=min_col,
            max_col=min_col + max_col - 1,
            values_only=True,
        )
        lines = ["\t".join(format_cell(v) for v in row) for row in rows]
    finally:
        wb.close()

    # Drop empty rows at the end of the sheet
    while lines and not lines[-1].strip():
        lines.pop()
    return "\n".join(lines)

