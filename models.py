from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime

from utils import GRID_DAYS, SLOTS_PER_DAY, calculate_minutes, cell_position

TEMPLATE_FIELDS = ("name", "vorname", "gebdat", "persnr")


@dataclass(frozen=True)
class TimeSlot:
    von: str = ""
    bis: str = ""

    @property
    def minutes(self) -> int:
        """Elapsed minutes of this interval (0 if either side is unset)."""
        return calculate_minutes(self.von, self.bis)


def _empty_slots() -> tuple[TimeSlot, ...]:
    return tuple(TimeSlot() for _ in range(SLOTS_PER_DAY))


@dataclass(frozen=True)
class DayEntry:
    slots: tuple[TimeSlot, ...] = field(default_factory=_empty_slots)
    remark: str = ""

    @property
    def minutes(self) -> int:
        return sum(slot.minutes for slot in self.slots)

    @property
    def is_blank(self) -> bool:
        return not self.remark and all(not s.von and not s.bis for s in self.slots)


def _empty_days() -> tuple[DayEntry, ...]:
    return tuple(DayEntry() for _ in range(GRID_DAYS))


@dataclass(frozen=True)
class DayGrid:
    """The 31 day rows of a month. Every update returns a new grid."""

    days: tuple[DayEntry, ...] = field(default_factory=_empty_days)

    @classmethod
    def empty(cls) -> DayGrid:
        return cls()

    def day(self, day: int) -> DayEntry:
        return self.days[day - 1]

    def day_minutes(self, day: int) -> int:
        return self.day(day).minutes

    @property
    def total_minutes(self) -> int:
        return sum(self.day_minutes(d) for d in range(1, GRID_DAYS + 1))

    @property
    def total_hours(self) -> int:
        """Completed hours of the month (floor, not rounded)."""
        return self.total_minutes // 60

    @property
    def remainder_minutes(self) -> int:
        return self.total_minutes % 60

    def cell_value(self, day: int, col: int) -> str:
        pos = cell_position(col)
        if pos is None or not 1 <= day <= GRID_DAYS:
            return ""
        slot_index, field_name = pos
        return getattr(self.day(day).slots[slot_index], field_name)

    def set_slot_field(self, day: int, slot_index: int, field_name: str, value: str) -> DayGrid:
        entry = self.day(day)
        slots = tuple(
            replace(slot, **{field_name: value}) if i == slot_index else slot
            for i, slot in enumerate(entry.slots)
        )
        return self._with_day(day, replace(entry, slots=slots))

    def set_cell(self, day: int, col: int, value: str) -> DayGrid:
        """Set the value at a grid coordinate; out-of-range coordinates are ignored."""
        pos = cell_position(col)
        if pos is None or not 1 <= day <= GRID_DAYS:
            return self
        return self.set_slot_field(day, pos[0], pos[1], value)

    def set_remark(self, day: int, value: str) -> DayGrid:
        return self._with_day(day, replace(self.day(day), remark=value))

    def _with_day(self, day: int, entry: DayEntry) -> DayGrid:
        days = list(self.days)
        days[day - 1] = entry
        return DayGrid(days=tuple(days))


@dataclass(frozen=True)
class PersonalInfo:
    name: str = ""
    vorname: str = ""
    gebdat: str = ""
    persnr: str = ""
    jahr: str = field(default_factory=lambda: str(date.today().year))
    monat: str = field(default_factory=lambda: str(date.today().month))

    def template_data(self) -> dict[str, str]:
        """The fields that a template stores (no year/month)."""
        return {name: getattr(self, name) for name in TEMPLATE_FIELDS}

    def with_template(self, template: Template) -> PersonalInfo:
        data = {k: v for k, v in template.personal_info.items() if k in TEMPLATE_FIELDS}
        return replace(self, **data)


@dataclass(frozen=True)
class Template:
    name: str
    personal_info: dict[str, str]
    saved_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "personalInfo": {k: self.personal_info.get(k, "") for k in TEMPLATE_FIELDS},
            "savedAt": self.saved_at.isoformat() if self.saved_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Template:
        saved_at = data.get("savedAt")
        info = data.get("personalInfo") or {}
        return cls(
            name=data["name"],
            personal_info={k: str(info.get(k, "")) for k in TEMPLATE_FIELDS},
            saved_at=datetime.fromisoformat(saved_at) if saved_at else None,
        )


@dataclass
class Config:
    template_pdf: str = "Stundenrapport.pdf"
    output_dir: str = "."
    holiday_country: str = "CH"
