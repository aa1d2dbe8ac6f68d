"""
Import reporting.

Summary counts for the validate and results screens, and the error file an
operator downloads to fix and resubmit failed rows.
"""

from io import StringIO
from typing import Optional
import csv
import structlog

from models.place_import import (
    ImportResults,
    ImportSummary,
    ParsedRow,
    ValidationSummary,
)
from services.batch_import_service import select_eligible

logger = structlog.get_logger(__name__)

ERROR_FILE_NAME = "import-errors.csv"
ERROR_FILE_HEADER = ["Row Number", "Errors"]


def build_error_csv(
    error_rows: list[ParsedRow],
    source_columns: Optional[list[str]] = None,
) -> Optional[str]:
    """
    Render error rows as CSV text.

    Columns are row number, the row's errors joined with "; ", then every
    source column in file order. All cells are quoted with inner quotes
    doubled; lines are joined with "\\n".

    Args:
        error_rows: Rows to export
        source_columns: Header of the uploaded file; defaults to the keys
                        of the first row's raw data

    Returns:
        CSV text, or None when there are no error rows
    """
    if not error_rows:
        return None

    columns = source_columns if source_columns is not None else list(error_rows[0].raw_data)

    buffer = StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(ERROR_FILE_HEADER + columns)
    for row in error_rows:
        writer.writerow(
            [row.row_number, "; ".join(row.errors)]
            + [row.raw_data.get(col, "") for col in columns]
        )

    content = buffer.getvalue()
    if content.endswith("\n"):
        content = content[:-1]

    logger.info("error_report_built", row_count=len(error_rows), column_count=len(columns))
    return content


def summarize_results(results: ImportResults) -> ImportSummary:
    """Counts shown after an import attempt."""
    return ImportSummary(
        imported=results.imported_count,
        skipped_duplicates=results.skipped_duplicates,
        errored=len(results.error_rows),
        cancelled=results.cancelled_count,
        failed_batches=len(results.failed_batches),
    )


def summarize_validation(rows: list[ParsedRow], skip_duplicates: bool) -> ValidationSummary:
    """Counts shown on the validate screen before importing."""
    valid = sum(1 for r in rows if r.is_valid)
    return ValidationSummary(
        total=len(rows),
        valid=valid,
        invalid=len(rows) - valid,
        duplicates=sum(1 for r in rows if r.is_duplicate),
        to_import=len(select_eligible(rows, skip_duplicates)),
    )
