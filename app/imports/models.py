from enum import StrEnum


class ImportMode(StrEnum):
    create = "create"
    update = "update"
    upsert = "upsert"


class ImportErrorKind(StrEnum):
    failure = "failure"
    skipped = "skipped"


class ExportFormat(StrEnum):
    csv = "csv"
    xlsx = "xlsx"


class ExportScope(StrEnum):
    all = "all"
    selected = "selected"


class ExportDateField(StrEnum):
    created_at = "created_at"
    updated_at = "updated_at"
