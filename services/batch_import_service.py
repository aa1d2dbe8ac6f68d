"""
Batched writes of validated place rows.

Eligible rows are written in fixed-size batches, one batch at a time. A
failed batch marks its rows as errored and the run carries on with the next
batch, so one bad request never hides the outcome of the rest.

Re-running an import after a partial failure can insert rows twice; callers
must run duplicate detection against a fresh snapshot before retrying.
"""

from typing import Callable, Optional
import structlog

from config import settings
from exceptions import AppError, EntranceSlotOverflowError
from models.place_import import FailedBatch, ImportResults, ParsedRow
from services.place_repository import PlaceRepository
from services.value_transformer import build_place_record

logger = structlog.get_logger(__name__)

CANCELLED_MESSAGE = "Import cancelled before this row was written"


def select_eligible(rows: list[ParsedRow], skip_duplicates: bool) -> list[ParsedRow]:
    """Rows to write: valid, and not a duplicate when duplicates are skipped."""
    return [
        r for r in rows
        if r.is_valid and not (skip_duplicates and r.is_duplicate)
    ]


class BatchImporter:
    """
    Writes parsed rows to the place store in sequential batches.
    """

    def __init__(
        self,
        repository: PlaceRepository,
        batch_size: Optional[int] = None,
        default_country: Optional[str] = None,
    ):
        self.repository = repository
        self.batch_size = batch_size or settings.import_batch_size
        self.default_country = default_country or settings.default_country

    def run(
        self,
        rows: list[ParsedRow],
        skip_duplicates: bool,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> ImportResults:
        """
        Import rows and report what happened to each.

        Args:
            rows: Every parsed row of the run, valid or not
            skip_duplicates: Leave out rows flagged as duplicates
            should_cancel: Checked before each batch; once it returns True
                           no further batches are sent. The batch already
                           in flight always completes.

        Returns:
            ImportResults; error_rows lists invalid rows first, then rows
            lost at write time, in row order within each group
        """
        results = ImportResults()

        invalid_rows = [r for r in rows if not r.is_valid]
        results.skipped_duplicates = sum(
            1 for r in rows if r.is_valid and skip_duplicates and r.is_duplicate
        )
        eligible = select_eligible(rows, skip_duplicates)

        logger.info(
            "batch_import_started",
            total_rows=len(rows),
            eligible=len(eligible),
            invalid=len(invalid_rows),
            skipped_duplicates=results.skipped_duplicates,
            batch_size=self.batch_size,
        )

        write_failures: list[ParsedRow] = []
        prepared: list[tuple[ParsedRow, dict]] = []
        for row in eligible:
            try:
                prepared.append((row, build_place_record(row.mapped_data, self.default_country)))
            except EntranceSlotOverflowError as e:
                row.errors.append(e.message)
                write_failures.append(row)

        batches = [
            prepared[i:i + self.batch_size]
            for i in range(0, len(prepared), self.batch_size)
        ]

        for batch_index, batch in enumerate(batches):
            if should_cancel is not None and should_cancel():
                remaining = [row for pending in batches[batch_index:] for row, _ in pending]
                for row in remaining:
                    row.errors.append(CANCELLED_MESSAGE)
                write_failures.extend(remaining)
                results.cancelled_count = len(remaining)
                logger.warning(
                    "batch_import_cancelled",
                    batch_index=batch_index,
                    rows_not_written=len(remaining),
                )
                break

            batch_rows = [row for row, _ in batch]
            records = [record for _, record in batch]

            try:
                inserted_ids = self.repository.insert_batch(records)
            except Exception as e:
                message = e.message if isinstance(e, AppError) else str(e)
                for row in batch_rows:
                    row.errors.append(message)
                write_failures.extend(batch_rows)
                results.failed_batches.append(FailedBatch(
                    batch_index=batch_index,
                    row_numbers=[r.row_number for r in batch_rows],
                    message=message,
                ))
                logger.error(
                    "import_batch_failed",
                    batch_index=batch_index,
                    first_row=batch_rows[0].row_number,
                    last_row=batch_rows[-1].row_number,
                    error=message,
                )
                continue

            if len(inserted_ids) != len(records):
                logger.warning(
                    "import_batch_partially_acknowledged",
                    batch_index=batch_index,
                    requested=len(records),
                    acknowledged=len(inserted_ids),
                )
            results.imported_count += len(inserted_ids)
            results.inserted_ids.extend(inserted_ids)

            logger.debug(
                "import_batch_written",
                batch_index=batch_index,
                inserted=len(inserted_ids),
            )

        write_failures.sort(key=lambda r: r.row_number)
        results.error_rows = invalid_rows + write_failures

        logger.info(
            "batch_import_complete",
            imported=results.imported_count,
            skipped_duplicates=results.skipped_duplicates,
            errored=len(results.error_rows),
            failed_batches=len(results.failed_batches),
            cancelled=results.cancelled_count,
        )
        return results
