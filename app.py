#!/usr/bin/env python3
"""Stundenrapport TUI application."""

from __future__ import annotations

from calendar import monthrange
from datetime import MAXYEAR, MINYEAR, date
from pathlib import Path

from textual import events, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.widgets import Button, Footer, Input, Label, Select, Static

import export
import storage
from controller import (
    AppState,
    ApplyTemplate,
    ClearAll,
    ClickOutside,
    Escape,
    PasteText,
    PointerUp,
    SetCell,
    SetPersonalInfo,
    SetRemark,
    SetStatus,
    copy_selection,
    move_focus,
    paste_from_clipboard,
    reduce,
)
from import_data import sheet_to_text
from models import DayGrid, PersonalInfo, Template
from screens import ConfirmScreen, ImportScreen, TemplateScreen
from utils import GRID_COLUMNS, GRID_DAYS, MONTHS, get_public_holidays
from widgets import DayLabel, DayMinutes, MonthSummary, RemarkCell, StatusLine, TimeCell

PERSONAL_FIELDS = [
    ("name", "Name"),
    ("vorname", "Vorname"),
    ("gebdat", "Geburtsdatum"),
    ("persnr", "Personalnr"),
    ("jahr", "Jahr"),
]


class StundenrapportApp(App):
    """Monthly time-sheet editor that fills the Stundenrapport PDF form."""

    CSS = """
    Screen {
        background: $surface;
    }

    #title {
        height: auto;
        background: $primary;
        color: $text;
        padding: 0 1;
        text-style: bold;
    }

    #personal-info {
        height: auto;
        padding: 0 1;
    }

    .field-group {
        width: 1fr;
        height: auto;
        margin: 0 1 0 0;
    }

    .field-label {
        height: 1;
        color: $text-muted;
    }

    #grid-header {
        height: 1;
        padding: 0 1;
        color: $text-muted;
        text-style: bold;
    }

    #grid {
        height: 1fr;
        padding: 0 1;
    }

    .day-row {
        height: 3;
    }

    .day-row.even {
        background: $boost;
    }

    DayLabel {
        width: 8;
        content-align: left middle;
        height: 3;
    }

    TimeCell {
        width: 11;
    }

    TimeCell.selected {
        background: $secondary;
    }

    DayMinutes {
        width: 7;
        height: 3;
        content-align: right middle;
        padding: 0 1;
    }

    RemarkCell {
        width: 1fr;
    }

    #month-summary {
        height: auto;
        padding: 1 2;
        color: $text;
    }

    #actions {
        height: auto;
        align: center middle;
    }

    #actions Button {
        margin: 0 2;
    }

    #status {
        height: 1;
        padding: 0 2;
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("ctrl+g", "generate_pdf", "PDF"),
        Binding("ctrl+l", "clear_all", "Clear"),
        Binding("ctrl+t", "templates", "Templates"),
        Binding("ctrl+o", "import_excel", "Import"),
        Binding("ctrl+c", "copy_selection", "Copy", show=False),
        Binding("ctrl+v", "paste_clipboard", "Paste", show=False),
        Binding("escape", "clear_selection", "Deselect", show=False),
    ]

    def __init__(self):
        super().__init__()
        storage.init_db()
        self.config = storage.get_config()
        self.state = AppState()

        # Last text copied from the grid, for ctrl+v inside the app
        self._grid_clipboard = ""

        # Export is running; blocks a second request
        self.is_generating = False

    def compose(self) -> ComposeResult:
        info = self.state.personal_info
        yield Static("Stundenrapport", id="title")

        with Horizontal(id="personal-info"):
            for field_name, label in PERSONAL_FIELDS:
                with Vertical(classes="field-group"):
                    yield Label(label, classes="field-label")
                    yield Input(value=getattr(info, field_name), id=f"info-{field_name}")
            with Vertical(classes="field-group"):
                yield Label("Monat", classes="field-label")
                yield Select(
                    [(f"{value} - {label}", value) for value, label in MONTHS],
                    value=info.monat,
                    allow_blank=False,
                    id="info-monat",
                )

        yield Static(self._grid_header(), id="grid-header")
        with VerticalScroll(id="grid"):
            for day in range(1, GRID_DAYS + 1):
                with Horizontal(classes="day-row even" if day % 2 == 0 else "day-row"):
                    yield DayLabel(day, id=f"day-{day}")
                    for col in range(GRID_COLUMNS):
                        yield TimeCell(day, col, id=f"cell-{day}-{col}")
                    yield DayMinutes(id=f"minutes-{day}")
                    yield RemarkCell(day, id=f"remark-{day}")

        yield MonthSummary(id="month-summary")
        with Horizontal(id="actions"):
            yield Button("Generate PDF", variant="primary", id="generate")
            yield Button("Clear All", id="clear")
            yield Button("Templates", id="templates")
        yield StatusLine(id="status")
        yield Footer()

    def _grid_header(self) -> str:
        cells = "".join(f"{name:^11}" for name in ["von", "bis"] * 3)
        return f"{'Tag':<8}{cells}{'Min.':>7}  Bemerkung"

    def on_mount(self):
        self._refresh_day_labels()
        self._refresh_display()
        self.query_one("#cell-1-0", TimeCell).focus()

    # --- State ---

    def dispatch(self, event) -> None:
        """Run an event through the reducer and redraw what changed."""
        self.state = reduce(self.state, event)
        self._refresh_display()

    def _refresh_display(self):
        grid = self.state.grid
        selection = self.state.selection

        for day in range(1, GRID_DAYS + 1):
            entry = grid.day(day)
            for col in range(GRID_COLUMNS):
                cell = self.query_one(f"#cell-{day}-{col}", TimeCell)
                value = grid.cell_value(day, col)
                if cell.value != value:
                    cell.value = value
                cell.set_class(selection.contains(day, col), "selected")

            remark = self.query_one(f"#remark-{day}", RemarkCell)
            if remark.value != entry.remark:
                remark.value = entry.remark
            self.query_one(f"#minutes-{day}", DayMinutes).update_display(grid.day_minutes(day))

        self.query_one("#month-summary", MonthSummary).update_display(
            grid.total_minutes, grid.total_hours
        )
        self.query_one("#status", StatusLine).update_display(self.state.status)

    def _refresh_personal_info(self):
        info = self.state.personal_info
        for field_name, _ in PERSONAL_FIELDS:
            widget = self.query_one(f"#info-{field_name}", Input)
            if widget.value != getattr(info, field_name):
                widget.value = getattr(info, field_name)

    def _month_days(self) -> tuple[int, int, int]:
        """(year, month, days_in_month) of the entered month.

        Year and month are 0 while Jahr/Monat do not form a valid date.
        """
        info = self.state.personal_info
        try:
            year, month = int(info.jahr), int(info.monat)
            days_in_month = monthrange(year, month)[1]
        except ValueError:
            return 0, 0, GRID_DAYS
        # monthrange accepts years that date() rejects
        if not MINYEAR <= year <= MAXYEAR:
            return 0, 0, GRID_DAYS
        return year, month, days_in_month

    def _refresh_day_labels(self):
        """Show weekdays and public holidays for the selected month."""
        year, month, days_in_month = self._month_days()
        holidays = get_public_holidays(year, month, self.config.holiday_country) if year else {}
        for day in range(1, GRID_DAYS + 1):
            label = self.query_one(f"#day-{day}", DayLabel)
            in_month = day <= days_in_month
            weekday = date(year, month, day).weekday() if year and in_month else None
            label.update_display(weekday, in_month, holidays.get(day))

    # --- Widget events ---

    def on_input_changed(self, event: Input.Changed) -> None:
        widget = event.input
        if isinstance(widget, TimeCell):
            if self.state.grid.cell_value(widget.day, widget.col) != event.value:
                self.dispatch(SetCell(widget.day, widget.col, event.value))
        elif isinstance(widget, RemarkCell):
            if self.state.grid.day(widget.day).remark != event.value:
                self.dispatch(SetRemark(widget.day, event.value))
        elif widget.id and widget.id.startswith("info-"):
            field_name = widget.id.removeprefix("info-")
            if getattr(self.state.personal_info, field_name) != event.value:
                self.state = reduce(self.state, SetPersonalInfo(field_name, event.value))
                if field_name == "jahr":
                    self._refresh_day_labels()

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id == "info-monat":
            self.state = reduce(self.state, SetPersonalInfo("monat", str(event.value)))
            self._refresh_day_labels()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "generate":
            self.action_generate_pdf()
        elif button_id == "clear":
            self.action_clear_all()
        elif button_id == "templates":
            self.action_templates()

    def on_mouse_down(self, event: events.MouseDown) -> None:
        """A click that reaches the app did not start on a grid cell."""
        if self.state.selection.active:
            self.dispatch(ClickOutside())

    def on_mouse_up(self, event: events.MouseUp) -> None:
        if self.state.selection.state == "selecting":
            self.dispatch(PointerUp())

    # --- Clipboard port ---

    def read_clipboard_text(self) -> str:
        return self._grid_clipboard

    def write_clipboard_text(self, text: str) -> None:
        self._grid_clipboard = text
        self.copy_to_clipboard(text)

    def focus_cell(self, day: int, col: int) -> None:
        self.query_one(f"#cell-{day}-{col}", TimeCell).focus()

    # --- Grid actions ---

    def move_from_cell(self, day: int, col: int, key: str, at_start: bool = True, at_end: bool = True) -> bool:
        return move_focus(day, col, key, self, at_start, at_end)

    def paste_at(self, day: int, col: int, text: str) -> None:
        self.dispatch(PasteText(day, col, text))

    def _focused_cell(self) -> tuple[int, int] | None:
        focused = self.focused
        if isinstance(focused, TimeCell):
            return focused.day, focused.col
        return None

    def action_copy_selection(self) -> None:
        count = copy_selection(self.state, self)
        if not count:
            return
        self.dispatch(SetStatus(f"Copied {count} cell(s)"))
        self.notify(f"Copied {count} cell(s)")

    def action_paste_clipboard(self) -> None:
        target = self._focused_cell()
        if not target:
            return
        if not self._grid_clipboard:
            self.notify("Clipboard is empty")
            return
        self.state = paste_from_clipboard(self.state, target[0], target[1], self)
        self._refresh_display()

    def action_clear_selection(self) -> None:
        self.dispatch(Escape())

    def action_clear_all(self) -> None:
        def do_clear(confirmed: bool | None) -> None:
            if confirmed:
                self.dispatch(ClearAll())

        self.push_screen(ConfirmScreen("Clear all entries?", "Clear"), do_clear)

    def action_templates(self) -> None:
        self.push_screen(TemplateScreen(self.state.personal_info), self._on_template_selected)

    def _on_template_selected(self, template: Template | None) -> None:
        if template:
            self.dispatch(ApplyTemplate(template))
            self._refresh_personal_info()

    def action_import_excel(self) -> None:
        day, col = self._focused_cell() or (1, 0)
        self.push_screen(ImportScreen(day, col), lambda result: self._on_import(result, day, col))

    def _on_import(self, result: tuple[Path, str | None, int] | None, day: int, col: int) -> None:
        if not result:
            return
        path, sheet, first_row = result
        try:
            text = sheet_to_text(path, sheet=sheet, min_row=first_row, max_col=GRID_COLUMNS - col)
        except (OSError, KeyError, ValueError) as exc:
            self.log.error(f"Import of {path} failed: {exc}")
            self.notify(f"Import failed: {exc}", severity="error")
            return
        if not text:
            self.notify("Nothing to import", severity="warning")
            return
        # Trailing newline makes a one-cell sheet a block paste too
        self.dispatch(PasteText(day, col, text + "\n"))

    # --- Export ---

    def action_generate_pdf(self) -> None:
        if self.is_generating:
            return
        self.is_generating = True
        self.query_one("#generate", Button).disabled = True
        self.dispatch(SetStatus("Generating PDF..."))
        self._generate_pdf(self.state.personal_info, self.state.grid)

    @work(thread=True, exclusive=True)
    def _generate_pdf(self, info: PersonalInfo, grid: DayGrid) -> None:
        try:
            path = export.generate_report(self.config, info, grid)
        except export.ExportError as exc:
            self.call_from_thread(self._on_generate_failed, exc)
        else:
            self.call_from_thread(self._on_generate_done, path, grid)

    def _on_generate_done(self, path: Path, grid: DayGrid) -> None:
        self._finish_generate(
            f"PDF generated: {grid.total_minutes} minutes, {grid.total_hours} hours"
        )
        self.notify(f"Saved {path}")

    def _on_generate_failed(self, exc: Exception) -> None:
        self.log.error(f"Error generating PDF: {exc}")
        self._finish_generate("Error generating PDF")
        self.notify(str(exc), title="Error generating PDF", severity="error")

    def _finish_generate(self, status: str) -> None:
        self.is_generating = False
        self.query_one("#generate", Button).disabled = False
        self.dispatch(SetStatus(status))


def main():
    import sys
    args = sys.argv[1:]
    if args and args[0] == "--db-info":
        from datetime import datetime
        db_path = storage.DB_PATH
        print(f"Database: {db_path}")
        if db_path.exists():
            mtime = datetime.fromtimestamp(db_path.stat().st_mtime)
            size = db_path.stat().st_size
            print(f"Modified: {mtime.strftime('%Y-%m-%d %H:%M:%S')}")
            print(f"Size: {size:,} bytes")
        else:
            print("Status: Does not exist (will be created on first run)")
        return

    if args and args[0] in ("--config", "--template", "--output-dir", "--holidays"):
        storage.init_db()
        config = storage.get_config()
        if len(args) == 2 and args[0] != "--config":
            value = args[1]
            if args[0] == "--template":
                config.template_pdf = str(Path(value).expanduser().resolve())
            elif args[0] == "--output-dir":
                config.output_dir = str(Path(value).expanduser().resolve())
            else:
                config.holiday_country = value.upper()
            storage.save_config(config)
        print(f"Template PDF: {config.template_pdf}")
        print(f"Output dir:   {config.output_dir}")
        print(f"Holidays:     {config.holiday_country}")
        return

    app = StundenrapportApp()
    app.run()


if __name__ == "__main__":
    main()
