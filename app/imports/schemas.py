from datetime import date, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.imports.models import ExportDateField, ExportFormat, ExportScope, ImportErrorKind


class RowOutcome(BaseModel):
    """What a per-row import function reports back."""

    success: bool
    error: str | None = None
    record_id: str | None = None
    skipped: bool = False
    field: str | None = None


class ImportRowError(BaseModel):
    row: int = Field(ge=1)
    error: str
    data: Any = None
    field: str | None = None
    kind: ImportErrorKind = ImportErrorKind.failure


class ImportResult(BaseModel):
    success: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[ImportRowError] = Field(default_factory=list)
    created_ids: list[str] = Field(default_factory=list)
    updated_ids: list[str] = Field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.success + self.failed + self.skipped

    @property
    def failures(self) -> list[ImportRowError]:
        return [e for e in self.errors if e.kind is ImportErrorKind.failure]

    @property
    def skips(self) -> list[ImportRowError]:
        return [e for e in self.errors if e.kind is ImportErrorKind.skipped]


class ExportDateRange(BaseModel):
    """Inclusive calendar-day window on a timestamp column."""

    model_config = ConfigDict(populate_by_name=True)

    start: date | None = Field(default=None, alias="from")
    end: date | None = Field(default=None, alias="to")
    field: ExportDateField = ExportDateField.created_at

    @model_validator(mode="after")
    def _ordered(self) -> "ExportDateRange":
        if self.start and self.end and self.start > self.end:
            raise ValueError("'from' must not be after 'to'")
        return self

    @property
    def lower_bound(self) -> str | None:
        return self.start.isoformat() if self.start else None

    @property
    def upper_bound(self) -> str | None:
        """Exclusive bound: the day after ``end``, so the whole ``end`` day is included."""
        return (self.end + timedelta(days=1)).isoformat() if self.end else None


class BaseExportRequest(BaseModel):
    """Options shared by every export endpoint; features extend it with their own filters."""

    scope: ExportScope = ExportScope.all
    format: ExportFormat = ExportFormat.csv
    selected_ids: list[str] = Field(default_factory=list)
    selected_columns: list[str] = Field(min_length=1)
    date_range: ExportDateRange | None = None

    @model_validator(mode="after")
    def _selection_has_ids(self) -> "BaseExportRequest":
        if self.scope == ExportScope.selected and not self.selected_ids:
            raise ValueError("selected_ids is required when scope is 'selected'")
        return self
