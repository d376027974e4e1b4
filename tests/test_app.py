"""Tests for the app module."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from controller import (
    AppState,
    PointerDown,
    PointerEnter,
    PointerUp,
    Selection,
    SetCell,
    SetPersonalInfo,
    reduce,
)


@pytest.fixture
def app(clean_db):
    """An app instance that is never run; redraws are stubbed out."""
    from app import StundenrapportApp

    with patch.object(StundenrapportApp, 'run'):
        app = StundenrapportApp()
        with patch.object(app, '_refresh_display'):
            yield app


class TestAppInit:
    """Tests for StundenrapportApp initialisation."""

    def test_initial_state(self, app):
        assert app.state == AppState()
        assert app.state.grid.total_minutes == 0
        assert app.is_generating is False
        assert app.read_clipboard_text() == ""

    def test_loads_config(self, app):
        assert app.config.template_pdf == "Stundenrapport.pdf"
        assert app.config.holiday_country == "CH"

    def test_grid_header(self, app):
        header = app._grid_header()
        assert header.startswith("Tag")
        assert header.count("von") == 3
        assert header.count("bis") == 3
        assert header.endswith("Bemerkung")


class TestDispatch:
    """Tests for running events through the reducer."""

    def test_updates_state_and_redraws(self, app):
        app.dispatch(SetCell(1, 0, "08:00"))
        app.dispatch(SetCell(1, 1, "12:00"))

        assert app.state.grid.day_minutes(1) == 240
        assert app._refresh_display.call_count == 2

    def test_drag_selection(self, app):
        app.dispatch(PointerDown(3, 1))
        app.dispatch(PointerEnter(5, 2))
        app.dispatch(PointerUp())

        assert app.state.selection == Selection(anchor=(3, 1), end=(5, 2), selecting=False)


class TestMouse:
    """Tests for app-level pointer events."""

    def test_release_anywhere_ends_drag(self, app):
        app.dispatch(PointerDown(3, 1))
        app.dispatch(PointerEnter(4, 2))

        app.on_mouse_up(MagicMock())

        assert app.state.selection.state == "selected"
        assert app.state.selection.end == (4, 2)

    def test_release_without_drag_is_ignored(self, app):
        app.on_mouse_up(MagicMock())
        app._refresh_display.assert_not_called()

    def test_click_outside_grid_clears_selection(self, app):
        app.state = AppState(selection=Selection((3, 1), (4, 2)))

        app.on_mouse_down(MagicMock())

        assert app.state.selection.state == "idle"
        app._refresh_display.assert_called_once()

    def test_click_outside_without_selection(self, app):
        app.on_mouse_down(MagicMock())
        app._refresh_display.assert_not_called()


class TestDayLabels:
    """Tests for weekday and holiday labels of the entered month."""

    def test_month_days(self, app):
        app.state = reduce(app.state, SetPersonalInfo("jahr", "2024"))
        app.state = reduce(app.state, SetPersonalInfo("monat", "2"))
        assert app._month_days() == (2024, 2, 29)

    @pytest.mark.parametrize("jahr", ["", "20x6", "0", "-1", "10000", "123456789"])
    def test_unusable_year(self, app, jahr):
        """Years that date() cannot represent fall back to plain day numbers."""
        app.state = reduce(app.state, SetPersonalInfo("jahr", jahr))
        assert app._month_days() == (0, 0, 31)

    def test_refresh_with_out_of_range_year(self, app):
        app.state = reduce(app.state, SetPersonalInfo("jahr", "10000"))
        label = MagicMock()

        with patch.object(app, 'query_one', return_value=label):
            app._refresh_day_labels()

        assert label.update_display.call_count == 31
        label.update_display.assert_called_with(None, True, None)

    def test_refresh_marks_holidays_and_short_month(self, app):
        app.state = reduce(app.state, SetPersonalInfo("jahr", "2026"))
        app.state = reduce(app.state, SetPersonalInfo("monat", "2"))
        labels = {f"#day-{day}": MagicMock() for day in range(1, 32)}

        with patch.object(app, 'query_one', side_effect=lambda selector, _type: labels[selector]), \
                patch("app.get_public_holidays", return_value={14: "Valentinstag"}) as holidays:
            app._refresh_day_labels()

        holidays.assert_called_once_with(2026, 2, "CH")
        # 1 Feb 2026 is a Sunday
        labels["#day-1"].update_display.assert_called_once_with(6, True, None)
        labels["#day-14"].update_display.assert_called_once_with(5, True, "Valentinstag")
        labels["#day-29"].update_display.assert_called_once_with(None, False, None)


class TestClipboard:
    """Tests for copy and paste through the app."""

    def test_write_clipboard_text(self, app):
        with patch.object(app, 'copy_to_clipboard') as copy:
            app.write_clipboard_text("08:00\t12:00")

        copy.assert_called_once_with("08:00\t12:00")
        assert app.read_clipboard_text() == "08:00\t12:00"

    def test_copy_selection(self, app, sample_grid):
        app.state = AppState(grid=sample_grid, selection=Selection((1, 0), (2, 1)))

        with patch.object(app, 'copy_to_clipboard'), patch.object(app, 'notify') as notify:
            app.action_copy_selection()

        assert app.read_clipboard_text() == "08:00\t12:00\n22:00\t06:00"
        assert app.state.status == "Copied 4 cell(s)"
        notify.assert_called_once_with("Copied 4 cell(s)")

    def test_copy_without_selection_does_nothing(self, app):
        with patch.object(app, 'copy_to_clipboard') as copy, patch.object(app, 'notify') as notify:
            app.action_copy_selection()

        copy.assert_not_called()
        notify.assert_not_called()
        assert app.read_clipboard_text() == ""

    def test_paste_clipboard_at_focused_cell(self, app):
        app._grid_clipboard = "08:00\t12:00\n09:00\t17:00"

        with patch.object(app, '_focused_cell', return_value=(10, 2)):
            app.action_paste_clipboard()

        assert app.state.grid.cell_value(10, 2) == "08:00"
        assert app.state.grid.cell_value(11, 3) == "17:00"
        assert app.state.status == "Pasted 2 row(s) from clipboard"

    def test_paste_empty_clipboard(self, app):
        with patch.object(app, '_focused_cell', return_value=(1, 0)), \
                patch.object(app, 'notify') as notify:
            app.action_paste_clipboard()

        notify.assert_called_once_with("Clipboard is empty")
        assert app.state.grid.total_minutes == 0

    def test_paste_without_focused_cell(self, app):
        app._grid_clipboard = "08:00\t12:00"

        with patch.object(app, '_focused_cell', return_value=None):
            app.action_paste_clipboard()

        assert app.state.grid.cell_value(1, 0) == ""

    def test_paste_at(self, app):
        app.paste_at(31, 4, "07:00\t11:00\t12:00\n08:00")

        assert app.state.grid.cell_value(31, 4) == "07:00"
        assert app.state.grid.cell_value(31, 5) == "11:00"


class TestNavigation:
    """Tests for moving focus between cells."""

    def test_move_focuses_neighbour(self, app):
        with patch.object(app, 'focus_cell') as focus:
            assert app.move_from_cell(4, 2, "enter") is True

        focus.assert_called_once_with(5, 2)

    def test_no_move_past_last_day(self, app):
        with patch.object(app, 'focus_cell') as focus:
            assert app.move_from_cell(31, 0, "down") is False

        focus.assert_not_called()


class TestTemplates:
    """Tests for applying a template."""

    def test_template_selected(self, app, sample_template):
        with patch.object(app, '_refresh_personal_info') as refresh:
            app._on_template_selected(sample_template)

        refresh.assert_called_once()
        assert app.state.personal_info.name == "Muster"
        assert app.state.personal_info.persnr == "4711"
        assert app.state.status == "Template 'Anna' loaded"

    def test_dialog_closed(self, app):
        before = app.state
        app._on_template_selected(None)
        assert app.state == before


class TestImport:
    """Tests for importing a workbook into the grid."""

    def test_import_pastes_at_target(self, app):
        with patch("app.sheet_to_text", return_value="08:00\t12:00") as sheet_to_text:
            app._on_import((Path("times.xlsx"), None, 2), 5, 0)

        sheet_to_text.assert_called_once_with(Path("times.xlsx"), sheet=None, min_row=2, max_col=6)
        assert app.state.grid.cell_value(5, 0) == "08:00"
        assert app.state.grid.cell_value(5, 1) == "12:00"

    def test_single_cell_sheet(self, app):
        """A one-cell sheet still fills the target cell."""
        with patch("app.sheet_to_text", return_value="08:00"):
            app._on_import((Path("times.xlsx"), None, 1), 3, 4)

        assert app.state.grid.cell_value(3, 4) == "08:00"

    def test_columns_limited_by_target(self, app):
        with patch("app.sheet_to_text", return_value="08:00") as sheet_to_text:
            app._on_import((Path("times.xlsx"), "März", 1), 1, 4)

        assert sheet_to_text.call_args.kwargs == {"sheet": "März", "min_row": 1, "max_col": 2}

    def test_import_failure_notifies(self, app):
        with patch("app.sheet_to_text", side_effect=KeyError("Worksheet Foo does not exist.")), \
                patch.object(app, 'notify') as notify:
            app._on_import((Path("times.xlsx"), "Foo", 1), 1, 0)

        assert notify.call_args.kwargs["severity"] == "error"
        assert app.state.grid.total_minutes == 0

    def test_empty_sheet(self, app):
        with patch("app.sheet_to_text", return_value=""), patch.object(app, 'notify') as notify:
            app._on_import((Path("times.xlsx"), None, 1), 1, 0)

        notify.assert_called_once_with("Nothing to import", severity="warning")

    def test_cancelled(self, app):
        with patch("app.sheet_to_text") as sheet_to_text:
            app._on_import(None, 1, 0)

        sheet_to_text.assert_not_called()


class TestGeneratePdf:
    """Tests for the PDF export action."""

    def test_second_request_ignored_while_generating(self, app):
        app.is_generating = True

        with patch.object(app, '_generate_pdf') as generate:
            app.action_generate_pdf()

        generate.assert_not_called()
        app._refresh_display.assert_not_called()


class TestMain:
    """Tests for the command line entry point."""

    def test_db_info(self, capsys):
        from app import main

        with patch("sys.argv", ["stundenrapport", "--db-info"]):
            main()

        assert "Database:" in capsys.readouterr().out

    def test_show_config(self, clean_db, capsys):
        from app import main

        with patch("sys.argv", ["stundenrapport", "--config"]):
            main()

        out = capsys.readouterr().out
        assert "Template PDF: Stundenrapport.pdf" in out
        assert "Holidays:     CH" in out

    def test_set_holiday_country(self, clean_db, capsys):
        import storage
        from app import main

        with patch("sys.argv", ["stundenrapport", "--holidays", "de"]):
            main()

        assert storage.get_config().holiday_country == "DE"
        assert "Holidays:     DE" in capsys.readouterr().out

    def test_set_output_dir(self, clean_db, tmp_path, capsys):
        import storage
        from app import main

        with patch("sys.argv", ["stundenrapport", "--output-dir", str(tmp_path)]):
            main()

        assert storage.get_config().output_dir == str(tmp_path.resolve())
