"""Modal screens for the Stundenrapport application."""

from __future__ import annotations

from pathlib import Path

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.coordinate import Coordinate
from textual.widgets import Button, DataTable, Input, Label
from textual.screen import ModalScreen

from models import PersonalInfo, Template
import storage


class ConfirmScreen(ModalScreen[bool]):
    """Asks before entries or templates are thrown away.

    The confirm button is labelled with the action ("Clear", "Delete") and has
    focus first, so Enter confirms and escape cancels.
    """

    CSS = """
    ConfirmScreen {
        align: center middle;
    }

    #confirm-box {
        width: 56;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: round $error;
    }

    #confirm-message {
        width: 100%;
        text-style: bold;
    }

    #confirm-hint {
        color: $text-muted;
    }

    #confirm-actions {
        height: auto;
        margin-top: 1;
        align: right middle;
    }

    #confirm-actions Button {
        margin-left: 2;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, message: str, confirm_label: str = "OK"):
        super().__init__()
        self.message = message
        self.confirm_label = confirm_label

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-box"):
            yield Label(self.message, id="confirm-message")
            yield Label("This cannot be undone.", id="confirm-hint")
            with Horizontal(id="confirm-actions"):
                yield Button(f"{self.confirm_label} [Enter]", variant="error", id="confirm-ok")
                yield Button("Cancel [Esc]", id="confirm-cancel")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.dismiss(event.button.id == "confirm-ok")

    def action_cancel(self) -> None:
        self.dismiss(False)


class TemplateScreen(ModalScreen[Template | None]):
    """Save, load and delete personal-info templates.

    Dismisses with the template to load, or None when closed.
    """

    CSS = """
    TemplateScreen {
        align: center middle;
    }

    #templates-dialog {
        width: 80;
        height: 24;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #templates-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    #template-name {
        width: 100%;
        margin-bottom: 1;
    }

    #templates-table {
        height: 1fr;
    }

    #templates-footer {
        width: 100%;
        height: auto;
        margin-top: 1;
        align: center middle;
    }

    #templates-footer Button {
        width: auto;
        min-width: 10;
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("escape", "close", "Close"),
        Binding("ctrl+s", "save_template", "Save"),
        Binding("ctrl+d", "delete_template", "Delete"),
    ]

    def __init__(self, personal_info: PersonalInfo):
        super().__init__()
        self.personal_info = personal_info

    def compose(self) -> ComposeResult:
        with Vertical(id="templates-dialog"):
            yield Label("Templates", id="templates-title")
            yield Input(placeholder="Template name", id="template-name")
            yield DataTable(id="templates-table")

            with Horizontal(id="templates-footer"):
                yield Button("Save [^S]", variant="primary", id="btn-save")
                yield Button("Load [Enter]", id="btn-load")
                yield Button("Delete [^D]", id="btn-delete")
                yield Button("Close [Esc]", id="btn-close")

    def on_mount(self) -> None:
        """Set up the table and load data."""
        table = self.query_one("#templates-table", DataTable)
        table.cursor_type = "row"
        table.add_column("Name", width=24)
        table.add_column("Person", width=30)
        table.add_column("Saved", width=16)
        self._refresh_table()
        self.query_one("#template-name", Input).focus()

    def _refresh_table(self) -> None:
        table = self.query_one("#templates-table", DataTable)
        table.clear()
        for template in storage.get_templates():
            info = template.personal_info
            person = f"{info.get('vorname', '')} {info.get('name', '')}".strip()
            saved = template.saved_at.strftime("%d.%m.%Y %H:%M") if template.saved_at else ""
            table.add_row(template.name, person[:30], saved, key=template.name)

    def _get_selected_name(self) -> str | None:
        table = self.query_one("#templates-table", DataTable)
        if table.row_count == 0:
            return None
        row_key = table.coordinate_to_cell_key(Coordinate(table.cursor_row, 0)).row_key
        return str(row_key.value) if row_key else None

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "template-name":
            self.action_save_template()

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Enter on a row loads that template."""
        if event.control.id == "templates-table":
            self.action_load_template()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "btn-save":
            self.action_save_template()
        elif button_id == "btn-load":
            self.action_load_template()
        elif button_id == "btn-delete":
            self.action_delete_template()
        elif button_id == "btn-close":
            self.action_close()

    def action_close(self) -> None:
        self.dismiss(None)

    def action_save_template(self) -> None:
        name = self.query_one("#template-name", Input).value.strip()
        if not name:
            self.app.notify("Template name is required", severity="error")
            return

        storage.save_template(Template(name=name, personal_info=self.personal_info.template_data()))
        self.app.notify(f"Template '{name}' saved")
        self._refresh_table()

    def action_load_template(self) -> None:
        name = self._get_selected_name()
        if not name:
            self.app.notify("No template selected", severity="warning")
            return
        template = storage.get_template(name)
        if template:
            self.dismiss(template)

    def action_delete_template(self) -> None:
        name = self._get_selected_name()
        if not name:
            self.app.notify("No template selected", severity="warning")
            return

        self.app.push_screen(
            ConfirmScreen(f"Delete template '{name}'?", "Delete"),
            self._on_delete_confirmed
        )

    def _on_delete_confirmed(self, confirmed: bool | None) -> None:
        if confirmed:
            name = self._get_selected_name()
            if name and storage.delete_template(name):
                self.app.notify(f"Template '{name}' deleted")
                self._refresh_table()


class ImportScreen(ModalScreen[tuple[Path, str | None, int] | None]):
    """Ask for a workbook to import into the grid.

    Dismisses with (path, sheet, first_row), or None when cancelled.
    """

    CSS = """
    ImportScreen {
        align: center middle;
    }

    #import-dialog {
        width: 70;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #import-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    .field-group {
        width: 100%;
        height: auto;
        margin-bottom: 1;
    }

    .field-label {
        height: 1;
        color: $text-muted;
    }

    #import-buttons {
        width: 100%;
        height: auto;
        margin-top: 1;
        align: center middle;
    }

    #import-buttons Button {
        width: auto;
        min-width: 12;
        margin: 0 2;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    FIELD_ORDER = ["import-path", "import-sheet", "import-row"]

    def __init__(self, day: int = 1, col: int = 0):
        super().__init__()
        self.day = day
        self.col = col

    def compose(self) -> ComposeResult:
        with Vertical(id="import-dialog"):
            yield Label(f"Import Excel at day {self.day}, column {self.col + 1}", id="import-title")

            with Vertical(classes="field-group"):
                yield Label("Workbook (.xlsx)", classes="field-label")
                yield Input(placeholder="~/Zeiten.xlsx", id="import-path")
            with Vertical(classes="field-group"):
                yield Label("Sheet (blank = active)", classes="field-label")
                yield Input(placeholder="", id="import-sheet")
            with Vertical(classes="field-group"):
                yield Label("First row", classes="field-label")
                yield Input(value="1", id="import-row")

            with Horizontal(id="import-buttons"):
                yield Button("Import", variant="primary", id="import")
                yield Button("Cancel", variant="default", id="cancel")

    def on_mount(self) -> None:
        self.query_one("#import-path", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Move to next field on Enter, or import if on last field."""
        current_id = event.input.id
        if current_id in self.FIELD_ORDER:
            current_idx = self.FIELD_ORDER.index(current_id)
            if current_idx < len(self.FIELD_ORDER) - 1:
                next_id = self.FIELD_ORDER[current_idx + 1]
                self.query_one(f"#{next_id}", Input).focus()
            else:
                self._submit()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "cancel":
            self.dismiss(None)
        elif event.button.id == "import":
            self._submit()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def _submit(self) -> None:
        path_val = self.query_one("#import-path", Input).value.strip()
        if not path_val:
            self.app.notify("Workbook path is required", severity="error")
            return
        path = Path(path_val).expanduser()
        if not path.is_file():
            self.app.notify(f"File not found: {path}", severity="error")
            return

        row_val = self.query_one("#import-row", Input).value.strip() or "1"
        if not row_val.isdigit() or int(row_val) < 1:
            self.app.notify("First row must be a positive number", severity="error")
            return

        sheet = self.query_one("#import-sheet", Input).value.strip() or None
        self.dismiss((path, sheet, int(row_val)))
