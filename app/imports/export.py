import csv
import io
import json
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import StrEnum
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from app.imports.models import ExportFormat


class DateFormat(StrEnum):
    iso = "iso"
    date_only = "date-only"
    datetime = "datetime"


class BooleanFormat(StrEnum):
    yes_no = "yes-no"
    true_false = "true-false"
    one_zero = "1-0"
    active_inactive = "active-inactive"


_BOOLEAN_LABELS = {
    BooleanFormat.yes_no: ("Yes", "No"),
    BooleanFormat.true_false: ("true", "false"),
    BooleanFormat.one_zero: ("1", "0"),
    BooleanFormat.active_inactive: ("Active", "Inactive"),
}


def _format_date(value: date, fmt: DateFormat) -> str:
    if fmt == DateFormat.date_only:
        return value.strftime("%Y-%m-%d")
    if fmt == DateFormat.datetime:
        return value.strftime("%m/%d/%Y, %H:%M:%S")
    return value.isoformat()


def format_value(
    value: Any,
    *,
    date_format: DateFormat = DateFormat.iso,
    boolean_format: BooleanFormat = BooleanFormat.yes_no,
    array_join: str = ", ",
    null_value: str = "",
) -> Any:
    if value is None:
        return null_value
    if isinstance(value, bool):
        yes, no = _BOOLEAN_LABELS[BooleanFormat(boolean_format)]
        return yes if value else no
    if isinstance(value, datetime | date):
        return _format_date(value, DateFormat(date_format))
    if isinstance(value, list | tuple):
        if not value:
            return null_value
        return array_join.join("" if v is None else str(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value)
    return value


def format_export_data(
    rows: Iterable[Mapping[str, Any]],
    *,
    columns: Sequence[str] | None = None,
    date_format: DateFormat = DateFormat.iso,
    boolean_format: BooleanFormat = BooleanFormat.yes_no,
    array_join: str = ", ",
    null_value: str = "",
    custom_formatters: Mapping[str, Callable[[Any], str]] | None = None,
) -> list[dict[str, Any]]:
    """Apply consistent export formatting to every selected column of every row."""
    formatters = custom_formatters or {}
    formatted: list[dict[str, Any]] = []

    for row in rows:
        out: dict[str, Any] = {}
        for column in columns or list(row.keys()):
            value = row.get(column)
            if column in formatters:
                out[column] = formatters[column](value)
            else:
                out[column] = format_value(
                    value,
                    date_format=date_format,
                    boolean_format=boolean_format,
                    array_join=array_join,
                    null_value=null_value,
                )
        formatted.append(out)

    return formatted


def generate_csv(
    rows: Iterable[Mapping[str, Any]],
    columns: Sequence[str],
    *,
    headers: Sequence[str] | None = None,
    delimiter: str = ",",
    array_separator: str = "; ",
    include_headers: bool = True,
) -> str:
    if not columns:
        raise ValueError("columns must be a non-empty sequence")

    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=delimiter, lineterminator="\n")

    if include_headers:
        writer.writerow(headers or columns)

    for row in rows:
        values = []
        for column in columns:
            value = row.get(column)
            if value is None:
                values.append("")
            elif isinstance(value, list | tuple):
                values.append(array_separator.join("" if v is None else str(v) for v in value))
            elif isinstance(value, dict):
                values.append(json.dumps(value))
            else:
                values.append(value)
        writer.writerow(values)

    return buffer.getvalue().rstrip("\n")


def export_filename(base: str, extension: str = "csv", include_timestamp: bool = True) -> str:
    if not include_timestamp:
        return f"{base}.{extension}"
    stamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
    return f"{base}_{stamp}.{extension}"


HEADER_FILL = PatternFill(fill_type="solid", fgColor="FFE0E0E0")

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def format_column_header(column: str) -> str:
    """``date_of_birth`` -> ``Date Of Birth``."""
    return " ".join(word.capitalize() for word in column.split("_"))


def _excel_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, list | tuple):
        return ", ".join("" if v is None else str(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value)
    if isinstance(value, datetime) and value.tzinfo is not None:
        # openpyxl refuses timezone-aware datetimes
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


def generate_excel(
    rows: Iterable[Mapping[str, Any]],
    columns: Sequence[str],
    *,
    sheet_name: str = "Sheet1",
    column_width: float | Mapping[str, float] = 15,
    include_headers: bool = True,
    freeze_header: bool = True,
    auto_filter: bool = True,
) -> bytes:
    """Render rows into a single-sheet XLSX workbook and return the file bytes."""
    if not columns:
        raise ValueError("columns must be a non-empty sequence")

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_name

    for position, column in enumerate(columns, start=1):
        if isinstance(column_width, Mapping):
            width = column_width.get(column, 15)
        else:
            width = column_width
        sheet.column_dimensions[get_column_letter(position)].width = width

    if include_headers:
        sheet.append([format_column_header(column) for column in columns])
        for cell in sheet[1]:
            cell.font = Font(bold=True)
            cell.fill = HEADER_FILL
            cell.alignment = Alignment(vertical="center", horizontal="left")

    written = 0
    for row in rows:
        sheet.append([_excel_value(row.get(column)) for column in columns])
        written += 1

    if include_headers and freeze_header:
        sheet.freeze_panes = "A2"
    if include_headers and auto_filter and written:
        sheet.auto_filter.ref = f"A1:{get_column_letter(len(columns))}{written + 1}"

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@dataclass(frozen=True)
class ExportFile:
    content: bytes
    media_type: str
    filename: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Content-Disposition": f'attachment; filename="{self.filename}"'}


def render_export(
    rows: Sequence[Mapping[str, Any]],
    columns: Sequence[str],
    export_format: ExportFormat,
    *,
    base_filename: str,
    sheet_name: str = "Sheet1",
) -> ExportFile:
    filename = export_filename(base_filename, str(export_format))
    if export_format == ExportFormat.xlsx:
        content = generate_excel(rows, columns, sheet_name=sheet_name)
        return ExportFile(content, XLSX_MEDIA_TYPE, filename)
    return ExportFile(generate_csv(rows, columns).encode("utf-8"), "text/csv", filename)
