"""Support ticket API endpoints"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
import structlog

from app.database import get_db
from app.models.support import SupportTicket, SupportMessage, TicketStatus
from app.models.user import User
from app.realtime.hub import ChangeHub, SUPPORT, get_change_hub
from app.realtime.queries import all_tickets_query, terminal_order_codes_query, user_tickets_query
from app.schemas.support import TicketCreate, MessageCreate, TicketResponse
from app.services.names import UserNameLookup
from app.api.auth import get_admin_user, get_current_active_user, get_verified_user

router = APIRouter()
logger = structlog.get_logger()

ADMIN_SENDER_NAME = "Admin"


def ticket_response(ticket: SupportTicket, user_name: Optional[str] = None) -> TicketResponse:
    response = TicketResponse.model_validate(ticket)
    if user_name:
        response.user_name = user_name
    return response


async def _get_ticket_or_404(
    ticket_id: UUID, db: AsyncSession, lock: bool = False
) -> SupportTicket:
    query = (
        select(SupportTicket)
        .where(SupportTicket.id == ticket_id)
        .options(selectinload(SupportTicket.messages))
        .execution_options(populate_existing=True)
    )
    if lock:
        query = query.with_for_update()
    result = await db.execute(query)
    ticket = result.scalar_one_or_none()

    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")

    return ticket


@router.post("", response_model=TicketResponse, status_code=201)
async def create_ticket(
    ticket_data: TicketCreate,
    current_user: User = Depends(get_verified_user),
    db: AsyncSession = Depends(get_db),
    hub: ChangeHub = Depends(get_change_hub),
):
    """Open a ticket; the description becomes the first message"""
    now = datetime.utcnow()
    ticket = SupportTicket(
        user_id=current_user.id,
        user_name=current_user.name,
        area=ticket_data.area.value,
        subject=ticket_data.subject,
        order_code=ticket_data.order_code or None,
        status=TicketStatus.OPEN.value,
        created_at=now,
        last_updated_at=now,
    )
    ticket.messages.append(
        SupportMessage(
            position=0,
            text=ticket_data.description,
            sender_id=current_user.id,
            sender_name=current_user.name,
            created_at=now,
        )
    )
    db.add(ticket)
    await db.commit()

    logger.info("Support ticket opened", ticket_id=str(ticket.id), area=ticket.area)
    await hub.publish(SUPPORT)

    return ticket_response(await _get_ticket_or_404(ticket.id, db))


@router.get("/mine", response_model=List[TicketResponse])
async def list_my_tickets(
    current_user: User = Depends(get_verified_user),
    db: AsyncSession = Depends(get_db),
):
    """Current user's tickets, most recently active first"""
    result = await db.execute(user_tickets_query(current_user.id))
    return [ticket_response(ticket) for ticket in result.scalars().all()]


@router.get("/order-options", response_model=List[str])
async def list_order_options(
    current_user: User = Depends(get_verified_user),
    db: AsyncSession = Depends(get_db),
):
    """Codes of the user's completed or cancelled orders, newest first"""
    result = await db.execute(terminal_order_codes_query(current_user.id))
    return list(result.scalars().all())


@router.get("", response_model=List[TicketResponse])
async def list_tickets(
    status: Optional[TicketStatus] = None,
    current_user: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
):
    """All tickets with current author names"""
    query = all_tickets_query()
    if status:
        query = query.where(SupportTicket.status == status.value)

    result = await db.execute(query)
    tickets = result.scalars().all()

    names = UserNameLookup(db)
    await names.resolve(ticket.user_id for ticket in tickets)

    return [ticket_response(ticket, names.name_for(ticket.user_id)) for ticket in tickets]


async def get_ticket_participant(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """Admins reply from the admin area; customers need a verified email"""
    if current_user.is_admin:
        return current_user
    return await get_verified_user(current_user)


@router.post("/{ticket_id}/messages", response_model=TicketResponse)
async def add_message(
    ticket_id: UUID,
    message: MessageCreate,
    current_user: User = Depends(get_ticket_participant),
    db: AsyncSession = Depends(get_db),
    hub: ChangeHub = Depends(get_change_hub),
):
    """Append a reply to the ticket's message log"""
    if not message.text.strip():
        raise HTTPException(status_code=400, detail="Message cannot be empty")

    ticket = await _get_ticket_or_404(ticket_id, db, lock=True)

    if ticket.user_id != current_user.id and not current_user.is_admin:
        raise HTTPException(status_code=404, detail="Ticket not found")

    sender_name = ADMIN_SENDER_NAME if current_user.is_admin else current_user.name
    now = datetime.utcnow()

    # Position is taken from the stored log at insert time
    next_position = (
        select(func.coalesce(func.max(SupportMessage.position) + 1, 0))
        .where(SupportMessage.ticket_id == ticket.id)
        .scalar_subquery()
    )
    await db.execute(
        insert(SupportMessage).values(
            ticket_id=ticket.id,
            position=next_position,
            text=message.text,
            sender_id=current_user.id,
            sender_name=sender_name,
            created_at=now,
        )
    )
    ticket.last_updated_at = now
    await db.commit()

    logger.info("Support reply sent", ticket_id=str(ticket.id), sender_id=str(current_user.id))
    await hub.publish(SUPPORT)

    return ticket_response(await _get_ticket_or_404(ticket.id, db))


@router.post("/{ticket_id}/toggle", response_model=TicketResponse)
async def toggle_ticket_status(
    ticket_id: UUID,
    current_user: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
    hub: ChangeHub = Depends(get_change_hub),
):
    """Resolve an open ticket or re-open a resolved one"""
    ticket = await _get_ticket_or_404(ticket_id, db)
    ticket.status = ticket.toggled_status()
    ticket.last_updated_at = datetime.utcnow()
    await db.commit()

    logger.info("Support ticket status changed", ticket_id=str(ticket.id), status=ticket.status)
    await hub.publish(SUPPORT)

    return ticket_response(await _get_ticket_or_404(ticket.id, db))
