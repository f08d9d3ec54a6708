"""Admin customer list."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pawcare.database import get_db_session
from pawcare.dependencies import get_storage, require_admin
from pawcare.schemas.common import ApiResponse, ErrorResponse
from pawcare.schemas.customer import CustomerListItem
from pawcare.sessions import Session
from pawcare.storage.base import StorageAdapter

router = APIRouter(prefix="/api/customers", tags=["Customers"])


@router.get(
    "",
    response_model=ApiResponse[List[CustomerListItem]],
    responses={401: {"description": "Admin login required", "model": ErrorResponse}},
    summary="List customers with their portal registration state",
)
async def list_customers(
    _admin: Session = Depends(require_admin),
    storage: StorageAdapter = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
):
    return ApiResponse(data=await storage.get_all_customers(db))
