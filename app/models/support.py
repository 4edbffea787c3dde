"""Support ticket models"""

import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Integer, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.database import Base


class TicketStatus(str, enum.Enum):
    OPEN = "Open"
    RESOLVED = "Resolved"


class TicketArea(str, enum.Enum):
    FEEDBACK = "feedback"
    ORDER_QUERY = "order-query"
    TECHNICAL = "technical"


class SupportTicket(Base):
    """Customer support tickets"""
    __tablename__ = "support_tickets"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    user_name = Column(String(255))  # Author name at creation time

    area = Column(String(20), nullable=False)
    subject = Column(String(255), nullable=False)
    order_code = Column(String(20))

    status = Column(String(20), default=TicketStatus.OPEN.value, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    last_updated_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="support_tickets")
    messages = relationship(
        "SupportMessage",
        back_populates="ticket",
        order_by="SupportMessage.position",
        cascade="all, delete-orphan",
    )

    def toggled_status(self) -> str:
        if self.status == TicketStatus.OPEN.value:
            return TicketStatus.RESOLVED.value
        return TicketStatus.OPEN.value


class SupportMessage(Base):
    """Append-only chat log entry on a ticket"""
    __tablename__ = "support_messages"
    __table_args__ = (
        UniqueConstraint("ticket_id", "position", name="uq_support_messages_ticket_position"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    ticket_id = Column(UUID(as_uuid=True), ForeignKey("support_tickets.id"), nullable=False)
    position = Column(Integer, nullable=False)

    text = Column(Text, nullable=False)

    # Sender snapshot taken at send time
    sender_id = Column(UUID(as_uuid=True), nullable=False)
    sender_name = Column(String(255), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    ticket = relationship("SupportTicket", back_populates="messages")
