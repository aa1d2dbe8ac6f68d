"""
Place import API routes.

Drives the import wizard over HTTP: upload a file, map its columns, review
validation results, run the import and download the error report.
"""

from fastapi import APIRouter, UploadFile, File
from fastapi.responses import JSONResponse, Response
from io import BytesIO
import structlog

from config.place_fields import PLACE_FIELDS
from exceptions import AppError, NotFoundError
from models.place_import import (
    FieldDefinitionResponse,
    ImportSessionResponse,
    MappingPreset,
    MappingUpdateRequest,
    PresetCreateRequest,
    SkipDuplicatesRequest,
)
from services.import_session_cache import (
    delete_session,
    get_session,
    store_session,
)
from services.import_wizard_service import ImportWizardController
from services.preset_service import get_preset_service
from services.report_service import ERROR_FILE_NAME
from services.template_service import generate_template_csv, generate_template_xlsx

logger = structlog.get_logger(__name__)

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


def _attachment(filename: str) -> dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


# ===================
# CATALOG & TEMPLATES
# ===================

@router.get("/fields", response_model=list[FieldDefinitionResponse])
async def list_fields():
    """Target fields in display order, for the mapping screen."""
    return [
        FieldDefinitionResponse(
            key=f.key,
            label=f.label,
            group=f.group.value,
            required=f.required,
            type=f.type.value,
            aliases=list(f.match_aliases),
        )
        for f in PLACE_FIELDS
    ]


@router.get("/template.csv")
async def download_template_csv():
    """Header-only CSV template."""
    return Response(
        content=generate_template_csv(),
        media_type="text/csv",
        headers=_attachment("place-import-template.csv"),
    )


@router.get("/template.xlsx")
async def download_template_xlsx():
    """Header-only Excel template."""
    return Response(
        content=generate_template_xlsx().getvalue(),
        media_type=XLSX_MEDIA_TYPE,
        headers=_attachment("place-import-template.xlsx"),
    )


# ===================
# SESSIONS
# ===================

@router.post("/sessions", response_model=ImportSessionResponse, status_code=201)
async def create_session(file: UploadFile = File(...)):
    """
    Start an import by uploading a CSV or Excel file.

    Returns the new session at the mapping step with an auto-suggested
    column mapping.

    Raises:
        422: File could not be parsed
    """
    logger.info(
        "place_import_upload_started",
        filename=file.filename,
        content_type=file.content_type
    )

    try:
        content = await file.read()

        controller = ImportWizardController()
        controller.upload(BytesIO(content), file.filename)
        store_session(controller)

        return controller.to_response()

    except Exception as e:
        return handle_error(e)


@router.post("/sessions/{session_id}/file", response_model=ImportSessionResponse)
async def upload_session_file(session_id: str, file: UploadFile = File(...)):
    """
    Upload a file into an existing session, e.g. after a reset.

    Raises:
        409: Session is not at the upload step
        422: File could not be parsed
    """
    logger.info(
        "place_import_upload_started",
        session_id=session_id,
        filename=file.filename,
        content_type=file.content_type
    )

    try:
        controller = get_session(session_id)
        content = await file.read()
        controller.upload(BytesIO(content), file.filename)
        return controller.to_response()
    except Exception as e:
        return handle_error(e)


@router.get("/sessions/{session_id}", response_model=ImportSessionResponse)
async def get_import_session(session_id: str):
    """Current state of an import session."""
    try:
        return get_session(session_id).to_response()
    except Exception as e:
        return handle_error(e)


@router.put("/sessions/{session_id}/mapping", response_model=ImportSessionResponse)
async def update_session_mapping(session_id: str, data: MappingUpdateRequest):
    """Set or clear the source column of one target field."""
    try:
        controller = get_session(session_id)
        controller.update_mapping(data.field_key, data.column)
        return controller.to_response()
    except Exception as e:
        return handle_error(e)


@router.post(
    "/sessions/{session_id}/mapping/preset/{preset_id}",
    response_model=ImportSessionResponse
)
async def apply_session_preset(session_id: str, preset_id: str):
    """Replace the session's mapping with a saved preset."""
    try:
        controller = get_session(session_id)
        preset = get_preset_service().get(preset_id)
        controller.apply_preset(preset)
        return controller.to_response()
    except Exception as e:
        return handle_error(e)


@router.post("/sessions/{session_id}/validate", response_model=ImportSessionResponse)
async def validate_session(session_id: str):
    """
    Validate and duplicate-check every row.

    Raises:
        422: A required field is not mapped
    """
    try:
        controller = get_session(session_id)
        controller.proceed_to_validate()
        return controller.to_response()
    except Exception as e:
        return handle_error(e)


@router.post("/sessions/{session_id}/back", response_model=ImportSessionResponse)
async def back_to_mapping(session_id: str):
    """Return to the mapping step."""
    try:
        controller = get_session(session_id)
        controller.back_to_mapping()
        return controller.to_response()
    except Exception as e:
        return handle_error(e)


@router.put("/sessions/{session_id}/skip-duplicates", response_model=ImportSessionResponse)
async def set_skip_duplicates(session_id: str, data: SkipDuplicatesRequest):
    try:
        controller = get_session(session_id)
        controller.set_skip_duplicates(data.skip_duplicates)
        return controller.to_response()
    except Exception as e:
        return handle_error(e)


@router.post("/sessions/{session_id}/import", response_model=ImportSessionResponse)
async def run_session_import(session_id: str):
    """
    Write all eligible rows in batches.

    Rows that fail are reported in the results and in the error file;
    they never fail the request.

    Raises:
        409: Session is not at the validate step
        422: No rows are eligible for import
    """
    try:
        controller = get_session(session_id)
        controller.run_import()
        return controller.to_response()
    except Exception as e:
        return handle_error(e)


@router.get("/sessions/{session_id}/errors.csv")
async def download_error_report(session_id: str):
    """
    Error rows of the last import as CSV.

    Raises:
        404: Nothing failed, or the import has not run
    """
    try:
        content = get_session(session_id).error_report()
        if content is None:
            raise NotFoundError("Error report", session_id, code="ERROR_REPORT_NOT_FOUND")
        return Response(
            content=content,
            media_type="text/csv",
            headers=_attachment(ERROR_FILE_NAME),
        )
    except Exception as e:
        return handle_error(e)


@router.post("/sessions/{session_id}/reset", response_model=ImportSessionResponse)
async def reset_session(session_id: str):
    """Start over; the next upload reloads existing places for duplicate checks."""
    try:
        controller = get_session(session_id)
        controller.reset()
        return controller.to_response()
    except Exception as e:
        return handle_error(e)


@router.delete("/sessions/{session_id}", status_code=204)
async def close_session(session_id: str):
    try:
        get_session(session_id)
        delete_session(session_id)
        return Response(status_code=204)
    except Exception as e:
        return handle_error(e)


# ===================
# PRESETS
# ===================

@router.get("/presets", response_model=list[MappingPreset])
async def list_presets():
    """Saved mapping presets, oldest first."""
    try:
        return get_preset_service().list_presets()
    except Exception as e:
        return handle_error(e)


@router.post("/presets", response_model=MappingPreset, status_code=201)
async def create_preset(data: PresetCreateRequest):
    """Save a session's current mapping as a named preset."""
    try:
        controller = get_session(data.session_id)
        return controller.save_preset(data.name)
    except Exception as e:
        return handle_error(e)


@router.delete("/presets/{preset_id}", status_code=204)
async def delete_preset(preset_id: str):
    try:
        get_preset_service().delete(preset_id)
        return Response(status_code=204)
    except Exception as e:
        return handle_error(e)
