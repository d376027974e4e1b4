"""Shared fixtures for tests."""

from __future__ import annotations

import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Generator

import pytest

# Set up test database before importing storage
_test_db_fd, _test_db_path = tempfile.mkstemp(suffix=".db")
os.environ["STUNDENRAPPORT_DB"] = _test_db_path


@pytest.fixture(scope="session", autouse=True)
def setup_test_db() -> Generator[Path, None, None]:
    """Set up a test database for the entire test session."""
    import storage

    # Reinitialise storage module with test db path
    storage.DB_PATH = Path(_test_db_path)
    storage.init_db()

    yield Path(_test_db_path)

    # Cleanup
    os.close(_test_db_fd)
    os.unlink(_test_db_path)


@pytest.fixture
def clean_db(setup_test_db: Path) -> Generator[None, None, None]:
    """Clean database tables before each test."""
    import storage

    conn = storage.get_connection()
    conn.execute("DELETE FROM kv")
    conn.execute("DELETE FROM config")
    conn.commit()
    conn.close()

    yield


@pytest.fixture
def sample_grid():
    """A grid with a regular day, a split day, an overnight shift and a remark."""
    from models import DayGrid

    grid = DayGrid.empty()
    # Day 1: 08:00-12:00, 13:00-17:30 = 240 + 270
    grid = grid.set_cell(1, 0, "08:00").set_cell(1, 1, "12:00")
    grid = grid.set_cell(1, 2, "13:00").set_cell(1, 3, "17:30")
    # Day 2: 22:00-06:00 overnight = 480
    grid = grid.set_cell(2, 0, "22:00").set_cell(2, 1, "06:00")
    # Day 3: invalid start, only a remark counts
    grid = grid.set_cell(3, 0, "8h").set_cell(3, 1, "12:00")
    grid = grid.set_remark(3, "Ferien")
    return grid


@pytest.fixture
def sample_personal_info():
    """Create a sample PersonalInfo for testing."""
    from models import PersonalInfo

    return PersonalInfo(
        name="Muster",
        vorname="Anna",
        gebdat="01.02.1990",
        persnr="4711",
        jahr="2026",
        monat="3",
    )


@pytest.fixture
def sample_template():
    """Create a sample Template for testing."""
    from models import Template

    return Template(
        name="Anna",
        personal_info={"name": "Muster", "vorname": "Anna", "gebdat": "01.02.1990", "persnr": "4711"},
        saved_at=datetime(2026, 3, 1, 9, 30),
    )


@pytest.fixture
def sample_config(tmp_path: Path):
    """Create a sample Config pointing at a temporary output directory."""
    from models import Config

    return Config(
        template_pdf=str(tmp_path / "Stundenrapport.pdf"),
        output_dir=str(tmp_path / "out"),
        holiday_country="CH",
    )


class FakeClipboard:
    """In-memory clipboard/focus port for controller tests."""

    def __init__(self, text: str = ""):
        self.text = text
        self.writes: list[str] = []
        self.focused: tuple[int, int] | None = None

    def read_clipboard_text(self) -> str:
        return self.text

    def write_clipboard_text(self, text: str) -> None:
        self.text = text
        self.writes.append(text)

    def focus_cell(self, day: int, col: int) -> None:
        self.focused = (day, col)


@pytest.fixture
def clipboard() -> FakeClipboard:
    return FakeClipboard()
