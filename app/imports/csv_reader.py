import csv
import io

import structlog

logger = structlog.get_logger()


def decode_content(file_content: bytes) -> str:
    """Decode bytes to string with encoding fallback."""
    try:
        return file_content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return file_content.decode("latin-1")


def normalize_header(header: str) -> str:
    return "_".join(header.strip().lower().split())


def read_csv_rows(file_content: bytes, filename: str) -> list[dict[str, str]]:
    """Parse an uploaded CSV into one dict per non-blank row, keyed by normalised header."""
    reader = csv.DictReader(io.StringIO(decode_content(file_content)))

    if reader.fieldnames is None:
        logger.warning("csv_no_headers", filename=filename)
        return []

    headers = [normalize_header(h) if h else "" for h in reader.fieldnames]
    reader.fieldnames = headers

    rows: list[dict[str, str]] = []
    for raw in reader:
        row = {k: (v or "").strip() for k, v in raw.items() if k and isinstance(v, str | None)}
        if not any(row.values()):
            continue
        rows.append(row)

    logger.info("csv_rows_read", filename=filename, columns=headers, rows=len(rows))
    return rows
