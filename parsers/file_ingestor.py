"""
File ingestor for operator place uploads.

Reads a delimited text file or the first sheet of a workbook into a header
list and string-keyed rows. Column layout is arbitrary; mapping onto the
place schema happens later.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from io import BytesIO
from pathlib import Path
from typing import Any, Optional, Union
import math
import structlog

import pandas as pd

from exceptions import FileParseError
from models.place_import import RawRow

logger = structlog.get_logger(__name__)

SPREADSHEET_EXTENSIONS = (".xlsx", ".xlsm")
DELIMITED_EXTENSIONS = (".csv", ".txt", ".tsv")
LEGACY_SPREADSHEET_EXTENSIONS = (".xls",)

FileInput = Union[str, Path, bytes, BytesIO]


@dataclass
class ParsedFile:
    """Result of reading an uploaded file."""
    file_name: str
    file_type: str  # "csv" or "xlsx"
    columns: list[str] = field(default_factory=list)
    rows: list[RawRow] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def parse_import_file(
    file: FileInput,
    filename: Optional[str] = None,
) -> ParsedFile:
    """
    Parse an uploaded place file.

    Args:
        file: File path (str/Path), raw bytes, or file-like object (BytesIO)
        filename: Original file name; required to pick the format when
                  `file` is bytes or a stream

    Returns:
        ParsedFile with unique non-empty headers and non-blank rows

    Raises:
        FileParseError: If the file cannot be read, has an unsupported
                        extension, or a workbook has fewer than 2 rows
    """
    if filename is None and isinstance(file, (str, Path)):
        filename = Path(file).name
    filename = filename or "upload.csv"
    extension = Path(filename).suffix.lower()

    logger.info("parsing_import_file", file_name=filename, extension=extension)

    if isinstance(file, bytes):
        file = BytesIO(file)

    if extension in LEGACY_SPREADSHEET_EXTENSIONS:
        raise FileParseError(
            message="Legacy .xls workbooks are not supported, save the file as .xlsx",
            details={"file_name": filename}
        )

    if extension in SPREADSHEET_EXTENSIONS:
        file_type = "xlsx"
        matrix = _read_workbook(file)
        if len(matrix) < 2:
            raise FileParseError(
                message="File must have at least 2 rows (header + data)",
                details={"file_name": filename, "rows_found": len(matrix)}
            )
    elif extension in DELIMITED_EXTENSIONS or not extension:
        file_type = "csv"
        matrix = _read_delimited(file, sep="\t" if extension == ".tsv" else ",")
    else:
        raise FileParseError(
            message=f"Unsupported file type: {extension}",
            details={
                "file_name": filename,
                "supported": list(DELIMITED_EXTENSIONS + SPREADSHEET_EXTENSIONS),
            }
        )

    columns, rows = _rows_from_matrix(matrix)

    logger.info(
        "import_file_parsed",
        file_name=filename,
        file_type=file_type,
        column_count=len(columns),
        row_count=len(rows),
    )

    return ParsedFile(
        file_name=filename,
        file_type=file_type,
        columns=columns,
        rows=rows,
    )


# ===================
# READERS
# ===================

def _read_workbook(file: FileInput) -> list[list[Any]]:
    """Read the first sheet as a list of cell rows (header included)."""
    try:
        df = pd.read_excel(
            file,
            sheet_name=0,
            header=None,
            dtype=object,
            engine="openpyxl",
        )
    except Exception as e:
        logger.error("workbook_read_failed", error=str(e))
        raise FileParseError(
            message="Failed to read spreadsheet file",
            details={"original_error": str(e)}
        )
    return df.values.tolist()


def _read_delimited(file: FileInput, sep: str = ",") -> list[list[Any]]:
    """
    Read delimited text as a list of cell rows (header included).

    The header line fixes the width. Longer lines (e.g. a trailing comma)
    are cut to that width instead of failing the whole file.
    """
    options = dict(
        sep=sep,
        header=None,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        encoding="utf-8-sig",
    )
    try:
        content = _read_bytes(file)
        header = pd.read_csv(BytesIO(content), nrows=1, **options)
        width = header.shape[1]
        df = pd.read_csv(
            BytesIO(content),
            engine="python",
            on_bad_lines=lambda cells: cells[:width],
            **options,
        )
    except pd.errors.EmptyDataError:
        raise FileParseError(message="File is empty")
    except Exception as e:
        logger.error("delimited_read_failed", error=str(e))
        raise FileParseError(
            message="Failed to read delimited text file",
            details={"original_error": str(e)}
        )
    return df.values.tolist()


# ===================
# HELPER FUNCTIONS
# ===================

def _read_bytes(file: FileInput) -> bytes:
    if isinstance(file, (str, Path)):
        return Path(file).read_bytes()
    return file.read()


def _rows_from_matrix(matrix: list[list[Any]]) -> tuple[list[str], list[RawRow]]:
    """
    Split a cell matrix into columns and keyed rows.

    Cells under an empty header are discarded. When a header repeats, the
    column is listed once and the rightmost cell wins.
    """
    if not matrix:
        return [], []

    headers = [_cell_to_text(h) for h in matrix[0]]

    columns: list[str] = []
    seen: set[str] = set()
    for header in headers:
        if header and header not in seen:
            seen.add(header)
            columns.append(header)

    rows: list[RawRow] = []
    for cells in matrix[1:]:
        row: RawRow = {}
        for idx, header in enumerate(headers):
            if not header:
                continue
            row[header] = _cell_to_text(cells[idx]) if idx < len(cells) else ""
        if any(value != "" for value in row.values()):
            rows.append(row)

    return columns, rows


def _cell_to_text(value: Any) -> str:
    """
    Render a cell as trimmed text.

    45.0 -> "45"
    NaN -> ""
    True -> "true"
    2024-05-01 00:00 -> "2024-05-01"
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, datetime):
        if value.hour == value.minute == value.second == 0 and not value.microsecond:
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value).strip()
