"""User administration and account endpoints"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.database import get_db
from app.models.user import User
from app.realtime.hub import ChangeHub, USERS, get_change_hub
from app.schemas.user import UserListItem, AccountResponse, AccountUpdate
from app.api.auth import get_admin_user, get_current_active_user

router = APIRouter()
account_router = APIRouter()
logger = structlog.get_logger()


@router.get("", response_model=List[UserListItem])
async def list_users(
    current_user: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
):
    """All user profiles"""
    result = await db.execute(select(User).order_by(User.created_at))
    return result.scalars().all()


@router.post("/{user_id}/toggle-admin", response_model=UserListItem)
async def toggle_admin(
    user_id: UUID,
    current_user: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
    hub: ChangeHub = Depends(get_change_hub),
):
    """Grant or revoke admin rights on another user's profile"""
    result = await db.execute(select(User).where(User.id == user_id))
    target = result.scalar_one_or_none()

    if not target:
        raise HTTPException(status_code=404, detail="User not found")

    if not current_user.can_toggle_admin(target):
        raise HTTPException(status_code=403, detail="You cannot change your own admin status")

    target.is_admin = not target.is_admin
    await db.commit()
    await db.refresh(target)

    logger.info(
        "Admin flag changed",
        user_id=str(target.id),
        is_admin=target.is_admin,
        changed_by=str(current_user.id),
    )
    await hub.publish(USERS)

    return target


@account_router.get("", response_model=AccountResponse)
async def get_account(
    current_user: User = Depends(get_current_active_user),
):
    """Current user's profile"""
    return AccountResponse(name=current_user.name, email=current_user.email)


@account_router.put("", response_model=AccountResponse)
async def update_account(
    account: AccountUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    hub: ChangeHub = Depends(get_change_hub),
):
    """Change the display name; the admin flag is not editable here"""
    current_user.name = account.name
    await db.commit()
    await hub.publish(USERS)

    return AccountResponse(name=current_user.name, email=current_user.email)
