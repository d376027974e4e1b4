"""Fill the Stundenrapport PDF form.

The form's field names are fixed by the PDF template:

    allg.name, allg.vorname, allg.gebdat, allg.persnr, allg.jahr, allg.monat
    tab.ein_{slot}.{day}, tab.aus_{slot}.{day}    slot 1..3, day 1..31
    tab.totall_dd.{day}, tab.bemerkung.{day}
    tab.totall_mm, totall_dez
    allg.datum.ma, allg.datum.vg                 signature dates, left editable

Values are set by fully qualified name. Names the template does not contain
are skipped, so a partial template still produces a PDF.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from io import BytesIO
from pathlib import Path

from pypdf import PdfReader, PdfWriter
from pypdf.generic import (
    ArrayObject,
    DictionaryObject,
    NameObject,
    NumberObject,
    TextStringObject,
)

from models import Config, DayGrid, PersonalInfo
from utils import GRID_DAYS, SLOTS_PER_DAY, export_filename, month_label

logger = logging.getLogger(__name__)

MONTH_FIELD = "allg.monat"
EDITABLE_FIELDS = frozenset({"allg.datum.ma", "allg.datum.vg"})
READ_ONLY_FLAG = 1


class ExportError(Exception):
    """Raised when the PDF report cannot be generated."""


def build_field_values(info: PersonalInfo, grid: DayGrid) -> dict[str, str]:
    """Map form field names to the values to fill in."""
    values = {
        "allg.name": info.name,
        "allg.vorname": info.vorname,
        "allg.gebdat": info.gebdat,
        "allg.persnr": info.persnr,
        "allg.jahr": info.jahr,
    }

    for day in range(1, GRID_DAYS + 1):
        entry = grid.day(day)
        for slot in range(SLOTS_PER_DAY):
            von, bis = entry.slots[slot].von, entry.slots[slot].bis
            if von:
                values[f"tab.ein_{slot + 1}.{day}"] = von
            if bis:
                values[f"tab.aus_{slot + 1}.{day}"] = bis

        day_minutes = grid.day_minutes(day)
        if day_minutes > 0:
            values[f"tab.totall_dd.{day}"] = str(day_minutes)

        if entry.remark:
            values[f"tab.bemerkung.{day}"] = entry.remark

    values["tab.totall_mm"] = str(grid.total_minutes)
    values["totall_dez"] = str(grid.total_hours)
    return values


def iter_form_fields(fields: ArrayObject, parent: str = "") -> Iterator[tuple[str, DictionaryObject]]:
    """Yield (qualified_name, field_dict) for every terminal form field."""
    for ref in fields:
        node = ref.get_object()
        partial = node.get("/T")
        if partial is None:
            continue
        name = f"{parent}.{partial}" if parent else str(partial)
        kids = [k for k in node.get("/Kids", ArrayObject()).get_object() if "/T" in k.get_object()]
        if kids:
            yield from iter_form_fields(ArrayObject(kids), name)
        else:
            yield name, node


def _dropdown_option(node: DictionaryObject, label: str) -> str | None:
    """Export value of the first option whose text contains the label."""
    for option in node.get("/Opt", ArrayObject()).get_object():
        option = option.get_object()
        if isinstance(option, ArrayObject):
            export_value, display = str(option[0]), str(option[-1])
        else:
            export_value = display = str(option)
        if label in display:
            return export_value
    return None


def fill_form(template: bytes, values: dict[str, str], month: str | None = None) -> bytes:
    """Fill a PDF form and lock every field except the signature dates.

    ``month`` is the label to look for among the options of the month dropdown.
    """
    writer = PdfWriter(clone_from=PdfReader(BytesIO(template)))

    acro_form = writer.root_object.get("/AcroForm")
    if acro_form is None:
        logger.warning("Template has no form fields, nothing filled")
    else:
        acro_form = acro_form.get_object()
        fields = dict(iter_form_fields(acro_form.get("/Fields", ArrayObject()).get_object()))

        for name, value in values.items():
            node = fields.get(name)
            if node is None:
                logger.debug("Field %s not in template, skipped", name)
                continue
            node[NameObject("/V")] = TextStringObject(value)

        if month:
            node = fields.get(MONTH_FIELD)
            option = _dropdown_option(node, month) if node is not None else None
            if option is not None:
                node[NameObject("/V")] = TextStringObject(option)
            else:
                logger.debug("No option for %s in %s, skipped", month, MONTH_FIELD)

        for name, node in fields.items():
            if name in EDITABLE_FIELDS:
                continue
            flags = int(node.get("/Ff", 0))
            node[NameObject("/Ff")] = NumberObject(flags | READ_ONLY_FLAG)

        writer.set_need_appearances_writer(True)

    output = BytesIO()
    writer.write(output)
    return output.getvalue()


def generate_report(config: Config, info: PersonalInfo, grid: DayGrid) -> Path:
    """Fill the configured template and write the report. Returns the output path."""
    try:
        template = Path(config.template_pdf).read_bytes()
        pdf = fill_form(template, build_field_values(info, grid), month_label(info.monat))
        output_dir = Path(config.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        path = output_dir / export_filename(info.jahr, info.monat)
        path.write_bytes(pdf)
    except Exception as exc:
        raise ExportError(str(exc)) from exc
    return path
