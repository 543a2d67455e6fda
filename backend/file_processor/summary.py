# backend/file_processor/summary.py
from datetime import datetime, timezone
from .ingest import ParsedTable, SourceFormat
from .schemas import ProcessingSummary
from .validation import extension_of


def utc_timestamp(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_size(num_bytes: int) -> str:
    return f"{num_bytes / 1024:.2f} KB"


def file_type_tag(filename: str) -> str:
    return extension_of(filename)[1:].upper()


def build_summary(
    file_name: str,
    size: int,
    source_format: SourceFormat,
    table: ParsedTable,
    processed_at: str | None = None,
) -> ProcessingSummary:
    """
    Derive the processing summary for a parsed upload.

    CSV: row count and the first row's keys (empty list when there are no rows).
    Workbook: sheet count, sheet names in workbook order, and the total row count.
    """
    base = {
        "file_name": file_name,
        "file_size": format_size(size),
        "file_type": file_type_tag(file_name),
        "processed_at": processed_at or utc_timestamp(),
    }
    if source_format is SourceFormat.CSV:
        return ProcessingSummary(
            **base,
            row_count=len(table),
            columns=list(table[0].keys()) if table else [],
        )
    sheet_names = list(table.keys())
    return ProcessingSummary(
        **base,
        sheet_count=len(sheet_names),
        sheet_names=sheet_names,
        total_rows=sum(len(rows) for rows in table.values()),
    )
