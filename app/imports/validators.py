"""Lenient parsers for spreadsheet-style import values.

Uploaded CSV cells arrive as strings; these helpers turn them into the types
the row schemas expect before pydantic validation runs.
"""

import re
from datetime import date, datetime
from typing import Annotated, Any

from pydantic import BeforeValidator

TRUE_VALUES = {"true", "yes", "1", "active"}
FALSE_VALUES = {"false", "no", "0", "inactive"}

_DMY_PATTERN = re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$")
_ISO_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_number(value: Any) -> Any:
    """'1,234.56' -> 1234.56, '' -> None. Unparseable strings pass through to fail validation."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value
    if isinstance(value, str):
        trimmed = value.strip()
        if trimmed == "" or trimmed.lower() == "null":
            return None
        try:
            return float(trimmed.replace(",", ""))
        except ValueError:
            return value
    return value


def parse_boolean(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value == 1
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "":
            return None
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
    return value


def parse_date(value: Any) -> Any:
    """Normalise YYYY-MM-DD, DD/MM/YYYY and DD-MM-YYYY to an ISO date string."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        return value

    cleaned = value.strip()
    if not cleaned:
        return None
    match = _DMY_PATTERN.match(cleaned)
    if match:
        day, month, year = match.groups()
        cleaned = f"{year}-{int(month):02d}-{int(day):02d}"

    try:
        if _ISO_PATTERN.match(cleaned):
            return date.fromisoformat(cleaned).isoformat()
        return datetime.fromisoformat(cleaned).date().isoformat()
    except ValueError:
        raise ValueError(f"Unrecognized date format: '{value}'") from None


def parse_tags(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, list | tuple):
        return [str(v).strip() for v in value if str(v).strip()]
    if isinstance(value, str):
        return [t.strip() for t in value.split(",") if t.strip()]
    return value


def empty_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def case_insensitive(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower() or None
    return value


FlexibleFloat = Annotated[float | None, BeforeValidator(parse_number)]
FlexibleBool = Annotated[bool | None, BeforeValidator(parse_boolean)]
FlexibleDate = Annotated[str | None, BeforeValidator(parse_date)]
TagList = Annotated[list[str] | None, BeforeValidator(parse_tags)]
OptionalText = Annotated[str | None, BeforeValidator(empty_to_none)]
