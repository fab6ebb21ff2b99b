"""Result aggregation for batch import operations.

Rows are imported in fixed-size chunks: rows inside a chunk run concurrently,
chunks run one after another. Every row outcome is folded into a single
``ImportResult`` so a caller always gets a complete report, even when some
rows fail or raise.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, TypeVar

import structlog

from app.imports.models import ImportErrorKind, ImportMode
from app.imports.schemas import ImportResult, ImportRowError, RowOutcome

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 100
DUPLICATE_MARKER = "already exists"

ImportFn = Callable[[T, ImportMode, int], Awaitable[RowOutcome | Mapping[str, Any]]]
ProgressFn = Callable[[int, int], Awaitable[None] | None]


def create_import_result() -> ImportResult:
    return ImportResult()


def record_success(result: ImportResult, mode: ImportMode, record_id: str | None = None) -> None:
    result.success += 1

    if record_id:
        if mode in (ImportMode.create, ImportMode.upsert):
            result.created_ids.append(record_id)
        elif mode == ImportMode.update:
            result.updated_ids.append(record_id)


def record_failure(
    result: ImportResult,
    row: int,
    error: str,
    data: Any = None,
    field: str | None = None,
) -> None:
    result.failed += 1
    result.errors.append(
        ImportRowError(row=row, error=error, data=data, field=field, kind=ImportErrorKind.failure)
    )


def record_skipped(result: ImportResult, row: int, reason: str, data: Any = None) -> None:
    result.skipped += 1
    result.errors.append(
        ImportRowError(row=row, error=reason, data=data, kind=ImportErrorKind.skipped)
    )


def _is_duplicate(error: str | None) -> bool:
    # Kept for importers that report duplicates only through the message text.
    return bool(error) and DUPLICATE_MARKER in error.lower()


def process_import_result(
    result: ImportResult,
    row: int,
    outcome: RowOutcome,
    mode: ImportMode,
    data: Any = None,
) -> None:
    """Classify one row's outcome as success, skip or failure."""
    if outcome.success:
        record_success(result, mode, outcome.record_id)
    elif outcome.skipped or _is_duplicate(outcome.error):
        record_skipped(result, row, outcome.error or "Already exists", data)
    else:
        record_failure(result, row, outcome.error or "Unknown error", data, outcome.field)


async def _run_row(import_fn: ImportFn, row: Any, mode: ImportMode, index: int) -> RowOutcome:
    outcome = import_fn(row, mode, index)
    if inspect.isawaitable(outcome):
        outcome = await outcome
    if isinstance(outcome, RowOutcome):
        return outcome
    return RowOutcome.model_validate(outcome)


async def _notify(on_progress: ProgressFn, processed: int, total: int) -> None:
    ret = on_progress(processed, total)
    if inspect.isawaitable(ret):
        await ret


async def batch_process_import(
    data: Sequence[T],
    import_fn: ImportFn,
    mode: ImportMode,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    on_progress: ProgressFn | None = None,
) -> ImportResult:
    """Run ``import_fn`` over ``data`` in chunks of ``batch_size`` and fold the outcomes.

    ``import_fn`` is called as ``import_fn(row, mode, index)`` with the row's
    0-based position in ``data``. Reported row numbers are 1-based. A row whose
    import raises is recorded as a failure with an ``"Unexpected error: "``
    prefix; it never aborts its siblings or later chunks.

    ``on_progress(processed, total)`` is called after each chunk settles and
    may be a plain function or a coroutine function.
    """
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size < 1:
        raise ValueError(f"batch_size must be a positive integer, got {batch_size!r}")

    result = create_import_result()
    total = len(data)

    for start in range(0, total, batch_size):
        batch = data[start : start + batch_size]

        settled = await asyncio.gather(
            *(_run_row(import_fn, row, mode, start + offset) for offset, row in enumerate(batch)),
            return_exceptions=True,
        )

        for offset, outcome in enumerate(settled):
            row_number = start + offset + 1
            if isinstance(outcome, BaseException):
                record_failure(result, row_number, f"Unexpected error: {outcome}", batch[offset])
            else:
                process_import_result(result, row_number, outcome, mode, batch[offset])

        processed = min(start + batch_size, total)
        logger.debug(
            "import_batch_processed",
            mode=str(mode),
            processed=processed,
            total=total,
        )

        if on_progress is not None:
            await _notify(on_progress, processed, total)

    logger.info(
        "import_completed",
        mode=str(mode),
        total=total,
        success=result.success,
        failed=result.failed,
        skipped=result.skipped,
    )
    return result


def format_import_summary(result: ImportResult) -> str:
    parts: list[str] = []

    if result.success > 0:
        noun = "record" if result.success == 1 else "records"
        parts.append(f"Successfully imported {result.success} {noun}")

    if result.failed > 0:
        parts.append(f"Failed: {result.failed}")

    if result.skipped > 0:
        parts.append(f"Skipped: {result.skipped}")

    return ". ".join(parts) or "No records processed"


def get_import_error_summary(result: ImportResult, max_errors: int = 10) -> list[str]:
    """Render the first ``max_errors`` error entries as readable lines."""
    lines: list[str] = []
    for err in result.errors[:max_errors]:
        line = f"Row {err.row}: {err.error}"
        if err.field:
            line += f" (field: {err.field})"
        lines.append(line)
    return lines
