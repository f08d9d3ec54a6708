"""Public service catalog."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pawcare.database import get_db_session
from pawcare.dependencies import get_storage
from pawcare.exceptions import NotFoundError
from pawcare.schemas.booking import ServiceOut
from pawcare.schemas.common import ApiResponse, ErrorResponse
from pawcare.storage.base import StorageAdapter

router = APIRouter(prefix="/api/services", tags=["Services"])


@router.get(
    "",
    response_model=ApiResponse[List[ServiceOut]],
    summary="List all services",
)
async def list_services(
    storage: StorageAdapter = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
):
    return ApiResponse(data=await storage.get_all_services(db))


@router.get(
    "/{service_id}",
    response_model=ApiResponse[ServiceOut],
    responses={404: {"description": "Service not found", "model": ErrorResponse}},
    summary="Get one service",
)
async def get_service(
    service_id: int,
    storage: StorageAdapter = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
):
    service = await storage.get_service_by_id(db, service_id)
    if service is None:
        raise NotFoundError("service", service_id)
    return ApiResponse(data=service)
