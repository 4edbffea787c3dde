"""Customer notification endpoints"""

from fastapi import APIRouter, Depends, HTTPException

from app.database import get_session_factory
from app.models.user import User
from app.realtime.hub import ChangeHub, get_change_hub
from app.realtime.notifications import (
    NotificationCenter,
    NotificationDeriver,
    NotificationRegistry,
    get_notification_registry,
)
from app.schemas.analytics import NotificationsResponse, NotificationItem
from app.api.auth import get_verified_user

router = APIRouter()


def notifications_response(center: NotificationCenter) -> NotificationsResponse:
    return NotificationsResponse(
        notifications=[
            NotificationItem(id=n.order_id, message=n.message)
            for n in center.notifications
        ],
        has_unread=center.has_unread,
    )


def _customer_only(user: User) -> None:
    if user.is_admin:
        raise HTTPException(status_code=403, detail="Notifications are for customers only")


@router.get("", response_model=NotificationsResponse)
async def list_notifications(
    current_user: User = Depends(get_verified_user),
    hub: ChangeHub = Depends(get_change_hub),
    registry: NotificationRegistry = Depends(get_notification_registry),
    session_factory=Depends(get_session_factory),
):
    """Pick up newly finished orders and return the notification list"""
    _customer_only(current_user)

    center = registry.center_for(current_user.id)
    deriver = NotificationDeriver(hub, session_factory, center, current_user.id)
    await deriver.derive_once()

    return notifications_response(center)


@router.post("/read", response_model=NotificationsResponse)
async def mark_notifications_read(
    current_user: User = Depends(get_verified_user),
    registry: NotificationRegistry = Depends(get_notification_registry),
):
    """Acknowledge the notification list"""
    _customer_only(current_user)

    center = registry.center_for(current_user.id)
    center.mark_read()

    return notifications_response(center)
