from app.imports.aggregator import (
    batch_process_import,
    create_import_result,
    format_import_summary,
    get_import_error_summary,
    process_import_result,
    record_failure,
    record_skipped,
    record_success,
)
from app.imports.models import ImportErrorKind, ImportMode
from app.imports.schemas import ImportResult, ImportRowError, RowOutcome

__all__ = [
    "ImportErrorKind",
    "ImportMode",
    "ImportResult",
    "ImportRowError",
    "RowOutcome",
    "batch_process_import",
    "create_import_result",
    "format_import_summary",
    "get_import_error_summary",
    "process_import_result",
    "record_failure",
    "record_skipped",
    "record_success",
]
