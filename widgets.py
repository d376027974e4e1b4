"""Custom widgets for the Stundenrapport application."""

from __future__ import annotations

from textual import events
from textual.widgets import Input, Static
from rich.text import Text

from controller import PointerDown, PointerEnter, is_block_paste
from utils import format_hours_minutes

WEEKDAYS = ["Mo", "Di", "Mi", "Do", "Fr", "Sa", "So"]

NAVIGATION_KEYS = ("enter", "down", "up", "left", "right")
COPY_KEYS = ("ctrl+c", "super+c")
PASTE_KEYS = ("ctrl+v", "super+v")


class TimeCell(Input):
    """One von/bis input of the grid, addressed by (day, col)."""

    def __init__(self, day: int, col: int, value: str = "", **kwargs):
        super().__init__(value=value, placeholder="HH:MM", **kwargs)
        self.day = day
        self.col = col

    def on_key(self, event: events.Key) -> None:
        """Grid copy/paste and moving between cells; other keys edit the text."""
        if event.key in COPY_KEYS and self.app.state.selection.active:  # type: ignore[attr-defined]
            self.app.action_copy_selection()  # type: ignore[attr-defined]
            event.prevent_default()
            event.stop()
            return

        if event.key in PASTE_KEYS and is_block_paste(self.app.read_clipboard_text()):  # type: ignore[attr-defined]
            self.app.action_paste_clipboard()  # type: ignore[attr-defined]
            event.prevent_default()
            event.stop()
            return

        if event.key not in NAVIGATION_KEYS:
            return

        at_start = self.cursor_position == 0
        at_end = self.cursor_position >= len(self.value)
        moved = self.app.move_from_cell(self.day, self.col, event.key, at_start, at_end)  # type: ignore[attr-defined]

        # Up/down/enter never fall through, even at the edge of the grid
        if moved or event.key in ("enter", "down", "up"):
            event.prevent_default()
            event.stop()

    def on_paste(self, event: events.Paste) -> None:
        """Multi-cell paste fills the grid; a single value is inserted as text."""
        if is_block_paste(event.text):
            self.app.paste_at(self.day, self.col, event.text)  # type: ignore[attr-defined]
            event.prevent_default()
            event.stop()

    def on_mouse_down(self, event: events.MouseDown) -> None:
        self.app.dispatch(PointerDown(self.day, self.col))  # type: ignore[attr-defined]
        # Keep the app from treating this as a click outside the grid
        event.stop()

    def on_enter(self, event: events.Enter) -> None:
        self.app.dispatch(PointerEnter(self.day, self.col))  # type: ignore[attr-defined]


class RemarkCell(Input):
    """Free-text remark of a day row."""

    def __init__(self, day: int, value: str = "", **kwargs):
        super().__init__(value=value, **kwargs)
        self.day = day


class DayLabel(Static):
    """Day number with weekday; days past the month end are dimmed, holidays marked."""

    def __init__(self, day: int, **kwargs):
        super().__init__(str(day), **kwargs)
        self.day = day

    def update_display(self, weekday: int | None, in_month: bool = True, holiday: str | None = None):
        text = Text()
        text.append(f"{self.day:>2}", style="bold" if in_month else "dim")
        if weekday is not None and in_month:
            style = "dim" if weekday >= 5 else ""
            text.append(f" {WEEKDAYS[weekday]}", style=style)
        if holiday:
            text.append("*", style="bold yellow")
        self.tooltip = holiday
        self.update(text)


class DayMinutes(Static):
    """Minutes worked on one day (blank when zero)."""

    def update_display(self, minutes: int):
        self.update(Text(str(minutes), style="green") if minutes > 0 else "")


class MonthSummary(Static):
    """Shows monthly totals: minutes, H:MM and completed hours."""

    def update_display(self, total_minutes: int, total_hours: int):
        text = Text()
        text.append("Total Stunden (Minuten) ", style="dim")
        text.append(f"{total_minutes:>6}", style="bold")
        text.append("     Stunden:Minuten ", style="dim")
        text.append(f"{format_hours_minutes(total_minutes):>7}", style="bold")
        text.append("     Stunden Dezimal ", style="dim")
        text.append(f"{total_hours:>4}", style="bold green")
        self.update(text)


class StatusLine(Static):
    """Single line of status text at the bottom of the screen."""

    def update_display(self, status: str):
        self.update(Text(status, style="italic"))
