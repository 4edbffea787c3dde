"""Menu management API endpoints"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.database import get_db
from app.models.menu import MenuItem
from app.models.user import User
from app.realtime.hub import ChangeHub, MENU_ITEMS, get_change_hub
from app.realtime.queries import menu_items_query
from app.schemas.menu import MenuItemCreate, MenuItemUpdate, MenuItemResponse
from app.api.auth import get_admin_user, get_verified_user

router = APIRouter()
logger = structlog.get_logger()


async def _get_item_or_404(item_id: UUID, db: AsyncSession) -> MenuItem:
    result = await db.execute(select(MenuItem).where(MenuItem.id == item_id))
    item = result.scalar_one_or_none()

    if not item:
        raise HTTPException(status_code=404, detail="Menu item not found")

    return item


@router.get("", response_model=List[MenuItemResponse])
async def list_menu_items(
    search: Optional[str] = None,
    current_user: User = Depends(get_verified_user),
    db: AsyncSession = Depends(get_db),
):
    """List the menu, optionally filtered by a name/description substring"""
    query = menu_items_query()

    if search:
        query = query.where(
            or_(
                MenuItem.name.icontains(search, autoescape=True),
                MenuItem.description.icontains(search, autoescape=True),
            )
        )

    result = await db.execute(query)
    return result.scalars().all()


@router.post("", response_model=MenuItemResponse, status_code=201)
async def create_menu_item(
    item_data: MenuItemCreate,
    current_user: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
    hub: ChangeHub = Depends(get_change_hub),
):
    """Create a new menu item"""
    item = MenuItem(**item_data.model_dump())
    db.add(item)
    await db.commit()
    await db.refresh(item)

    logger.info("Menu item created", item_id=str(item.id), name=item.name)
    await hub.publish(MENU_ITEMS)

    return item


@router.get("/{item_id}", response_model=MenuItemResponse)
async def get_menu_item(
    item_id: UUID,
    current_user: User = Depends(get_verified_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a specific menu item"""
    return await _get_item_or_404(item_id, db)


@router.put("/{item_id}", response_model=MenuItemResponse)
async def update_menu_item(
    item_id: UUID,
    item_data: MenuItemUpdate,
    current_user: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
    hub: ChangeHub = Depends(get_change_hub),
):
    """Update a menu item"""
    item = await _get_item_or_404(item_id, db)

    for field, value in item_data.model_dump(exclude_unset=True).items():
        setattr(item, field, value)

    await db.commit()
    await db.refresh(item)
    await hub.publish(MENU_ITEMS)

    return item


@router.delete("/{item_id}", status_code=204)
async def delete_menu_item(
    item_id: UUID,
    current_user: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
    hub: ChangeHub = Depends(get_change_hub),
):
    """Delete a menu item; past orders keep their own copy of it"""
    item = await _get_item_or_404(item_id, db)

    await db.delete(item)
    await db.commit()

    logger.info("Menu item deleted", item_id=str(item_id))
    await hub.publish(MENU_ITEMS)
