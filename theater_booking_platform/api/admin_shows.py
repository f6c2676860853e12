"""
Show catalog administration endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..services.show_service import ShowService
from ..schemas.show import AdminShowListResponse, AdminShowResponse, ShowCreate, ShowUpdate
from ..utils.auth import AdminTokenData
from ..utils.dependencies import require_admin

router = APIRouter(prefix="/admin/shows", tags=["admin"])


@router.get("", response_model=AdminShowListResponse)
async def list_shows(
    admin: AdminTokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List all shows with their active booking counts."""
    show_service = ShowService(db)
    return {"shows": await show_service.list_shows()}


@router.post("", response_model=AdminShowResponse, status_code=status.HTTP_201_CREATED)
async def create_show(
    show_data: ShowCreate,
    admin: AdminTokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a new show.

    ``totalSeats`` defaults to the configured hall size when omitted.
    """
    show_service = ShowService(db)
    show = await show_service.create_show(show_data)
    return ShowService.serialize(show)


@router.get("/{show_id}", response_model=AdminShowResponse)
async def get_show(
    show_id: UUID,
    admin: AdminTokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Get one show."""
    show_service = ShowService(db)
    return ShowService.serialize(await show_service.get_show(show_id))


@router.put("/{show_id}", response_model=AdminShowResponse)
async def update_show(
    show_id: UUID,
    show_data: ShowUpdate,
    admin: AdminTokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a show.

    Rejected with SHOW_HAS_BOOKINGS while the show has active bookings.
    """
    show_service = ShowService(db)
    show = await show_service.update_show(show_id, show_data)
    return ShowService.serialize(show)


@router.delete("/{show_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_show(
    show_id: UUID,
    admin: AdminTokenData = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a show.

    Rejected with SHOW_HAS_BOOKINGS while the show has active bookings.
    """
    show_service = ShowService(db)
    await show_service.delete_show(show_id)
