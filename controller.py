"""Grid selection, clipboard and navigation logic.

Everything here is free of UI code. The Textual app turns widget events into
the event objects below, runs them through :func:`reduce` and re-renders from
the returned :class:`AppState`. Clipboard access and focus changes go through
a :class:`ClipboardPort` so the logic can be tested with a fake.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Protocol

from models import DayGrid, PersonalInfo, Template
from utils import GRID_COLUMNS, GRID_DAYS

Cell = tuple[int, int]

READY_STATUS = "Ready - Paste from Excel supported (Ctrl+V)"

_LINE_BREAK = re.compile(r"\r?\n")


class ClipboardPort(Protocol):
    def read_clipboard_text(self) -> str: ...

    def write_clipboard_text(self, text: str) -> None: ...

    def focus_cell(self, day: int, col: int) -> None: ...


@dataclass(frozen=True)
class Selection:
    """Rectangular selection over (day, column) grid coordinates."""

    anchor: Cell | None = None
    end: Cell | None = None
    selecting: bool = False

    @property
    def state(self) -> str:
        if self.anchor is None or self.end is None:
            return "idle"
        return "selecting" if self.selecting else "selected"

    @property
    def active(self) -> bool:
        return self.anchor is not None and self.end is not None

    def bounds(self) -> tuple[int, int, int, int] | None:
        """Normalised (min_day, max_day, min_col, max_col), or None when idle."""
        if self.anchor is None or self.end is None:
            return None
        (d1, c1), (d2, c2) = self.anchor, self.end
        return min(d1, d2), max(d1, d2), min(c1, c2), max(c1, c2)

    def contains(self, day: int, col: int) -> bool:
        bounds = self.bounds()
        if bounds is None:
            return False
        min_day, max_day, min_col, max_col = bounds
        return min_day <= day <= max_day and min_col <= col <= max_col

    def cells(self) -> list[list[Cell]]:
        """Selected cells, row-major."""
        bounds = self.bounds()
        if bounds is None:
            return []
        min_day, max_day, min_col, max_col = bounds
        return [
            [(day, col) for col in range(min_col, max_col + 1)]
            for day in range(min_day, max_day + 1)
        ]


@dataclass(frozen=True)
class AppState:
    grid: DayGrid = field(default_factory=DayGrid)
    selection: Selection = field(default_factory=Selection)
    personal_info: PersonalInfo = field(default_factory=PersonalInfo)
    status: str = READY_STATUS


# --- Events ---


@dataclass(frozen=True)
class PointerDown:
    day: int
    col: int


@dataclass(frozen=True)
class PointerEnter:
    day: int
    col: int


@dataclass(frozen=True)
class PointerUp:
    pass


@dataclass(frozen=True)
class Escape:
    pass


@dataclass(frozen=True)
class ClickOutside:
    pass


@dataclass(frozen=True)
class SetCell:
    day: int
    col: int
    value: str


@dataclass(frozen=True)
class SetRemark:
    day: int
    value: str


@dataclass(frozen=True)
class PasteText:
    day: int
    col: int
    text: str


@dataclass(frozen=True)
class ClearAll:
    pass


@dataclass(frozen=True)
class SetPersonalInfo:
    field_name: str
    value: str


@dataclass(frozen=True)
class ApplyTemplate:
    template: Template


@dataclass(frozen=True)
class SetStatus:
    text: str


Event = (
    PointerDown | PointerEnter | PointerUp | Escape | ClickOutside | SetCell | SetRemark
    | PasteText | ClearAll | SetPersonalInfo | ApplyTemplate | SetStatus
)


def reduce(state: AppState, event: Event) -> AppState:
    """Apply one UI event to the state and return the new state."""
    selection = state.selection

    if isinstance(event, PointerDown):
        cell = (event.day, event.col)
        return replace(state, selection=Selection(anchor=cell, end=cell, selecting=True))

    if isinstance(event, PointerEnter):
        if selection.state != "selecting" or selection.end == (event.day, event.col):
            return state
        return replace(state, selection=replace(selection, end=(event.day, event.col)))

    if isinstance(event, PointerUp):
        if selection.state != "selecting":
            return state
        return replace(state, selection=replace(selection, selecting=False))

    if isinstance(event, (Escape, ClickOutside)):
        if not selection.active:
            return state
        return replace(state, selection=Selection())

    if isinstance(event, SetCell):
        return replace(state, grid=state.grid.set_cell(event.day, event.col, event.value))

    if isinstance(event, SetRemark):
        if not 1 <= event.day <= GRID_DAYS:
            return state
        return replace(state, grid=state.grid.set_remark(event.day, event.value))

    if isinstance(event, PasteText):
        if not is_block_paste(event.text):
            return state
        grid, rows = paste_block(state.grid, event.day, event.col, event.text)
        return replace(state, grid=grid, status=f"Pasted {rows} row(s) from clipboard")

    if isinstance(event, ClearAll):
        return replace(state, grid=DayGrid.empty(), selection=Selection(), status="Cleared")

    if isinstance(event, SetPersonalInfo):
        info = replace(state.personal_info, **{event.field_name: event.value})
        return replace(state, personal_info=info)

    if isinstance(event, ApplyTemplate):
        return replace(
            state,
            personal_info=state.personal_info.with_template(event.template),
            status=f"Template '{event.template.name}' loaded",
        )

    if isinstance(event, SetStatus):
        return replace(state, status=event.text)

    raise TypeError(f"Unknown event: {event!r}")


# --- Clipboard ---


def serialize_selection(grid: DayGrid, selection: Selection) -> str:
    """Selected cells as spreadsheet text: tab between cells, newline between rows."""
    return "\n".join(
        "\t".join(grid.cell_value(day, col) for day, col in row)
        for row in selection.cells()
    )


def copy_selection(state: AppState, clipboard: ClipboardPort) -> int:
    """Write the selected rectangle to the clipboard. Returns the number of cells copied."""
    rows = state.selection.cells()
    if not rows:
        return 0
    clipboard.write_clipboard_text(serialize_selection(state.grid, state.selection))
    return sum(len(row) for row in rows)


def is_block_paste(text: str) -> bool:
    """Only multi-cell text is handled by the grid; single values are typed normally."""
    return "\t" in text or "\n" in text


def paste_block(grid: DayGrid, day: int, col: int, text: str) -> tuple[DayGrid, int]:
    """Write tab/newline text into the grid starting at (day, col).

    Cells that land past day 31 or column 5 are dropped, not wrapped.
    Returns the new grid and the number of rows in the pasted text.
    """
    rows = _LINE_BREAK.split(text.strip("\r\n"))
    for row_offset, row in enumerate(rows):
        target_day = day + row_offset
        if target_day > GRID_DAYS:
            break
        for cell_offset, value in enumerate(row.split("\t")):
            target_col = col + cell_offset
            if target_col >= GRID_COLUMNS:
                break
            grid = grid.set_cell(target_day, target_col, value.strip())
    return grid, len(rows)


def paste_from_clipboard(state: AppState, day: int, col: int, clipboard: ClipboardPort) -> AppState:
    """Paste the clipboard's text at (day, col) if it is a block of cells."""
    return reduce(state, PasteText(day, col, clipboard.read_clipboard_text()))


# --- Keyboard navigation ---


def navigate(day: int, col: int, key: str, at_start: bool = True, at_end: bool = True) -> Cell | None:
    """Target cell for a navigation key, or None if the key does not move focus.

    Left/right only move when the text cursor is at the start/end of the cell.
    """
    if key in ("enter", "down"):
        target = (day + 1, col)
    elif key == "up":
        target = (day - 1, col)
    elif key == "right" and at_end:
        target = (day, col + 1)
    elif key == "left" and at_start:
        target = (day, col - 1)
    else:
        return None

    target_day, target_col = target
    if not 1 <= target_day <= GRID_DAYS or not 0 <= target_col < GRID_COLUMNS:
        return None
    return target


def move_focus(day: int, col: int, key: str, clipboard: ClipboardPort,
               at_start: bool = True, at_end: bool = True) -> bool:
    """Focus the neighbouring cell for a key. Returns True if focus moved."""
    target = navigate(day, col, key, at_start, at_end)
    if target is None:
        return False
    clipboard.focus_cell(*target)
    return True
