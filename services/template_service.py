"""
Import templates.

Header-only files in the canonical column layout. Files built from these
templates auto-map every field.
"""

from io import BytesIO, StringIO
import csv

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill

from config.place_fields import PLACE_FIELDS, TargetFieldDefinition

TEMPLATE_SHEET_NAME = "Places"
REQUIRED_FILL = PatternFill(start_color="FFF2CC", end_color="FFF2CC", fill_type="solid")


def template_headers(catalog: tuple[TargetFieldDefinition, ...] = PLACE_FIELDS) -> list[str]:
    """Column headers, one per field, in catalog order."""
    return [f.key for f in catalog]


def generate_template_csv() -> str:
    """Header row only."""
    buffer = StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(template_headers())
    return buffer.getvalue()


def generate_template_xlsx() -> BytesIO:
    """Workbook with the header row on one sheet; required columns highlighted."""
    wb = Workbook()
    ws = wb.active
    ws.title = TEMPLATE_SHEET_NAME

    for col_idx, target in enumerate(PLACE_FIELDS, start=1):
        cell = ws.cell(row=1, column=col_idx, value=target.key)
        cell.font = Font(bold=True)
        if target.required:
            cell.fill = REQUIRED_FILL
        ws.column_dimensions[cell.column_letter].width = max(12, len(target.key) + 2)

    ws.freeze_panes = "A2"

    output = BytesIO()
    wb.save(output)
    output.seek(0)
    return output
