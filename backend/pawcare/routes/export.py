"""Admin spreadsheet download of the full database."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from pawcare.database import get_db_session
from pawcare.dependencies import get_storage, require_admin
from pawcare.schemas.common import ErrorResponse
from pawcare.services.export_service import EXPORT_FILENAME, XLSX_MEDIA_TYPE, export_service
from pawcare.sessions import Session
from pawcare.storage.base import StorageAdapter

router = APIRouter(prefix="/api/export", tags=["Export"])


@router.get(
    "/excel",
    response_class=Response,
    responses={
        200: {"content": {XLSX_MEDIA_TYPE: {}}, "description": "The workbook"},
        401: {"description": "Admin login required", "model": ErrorResponse},
    },
    summary="Download every table as an .xlsx workbook",
)
async def export_excel(
    _admin: Session = Depends(require_admin),
    storage: StorageAdapter = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    content = await export_service.export_workbook(db, storage)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"',
            "Cache-Control": "no-store",
        },
    )
