"""Order model"""

import enum
import secrets
import string
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, JSON, Text, Integer
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.database import Base


class OrderStatus(str, enum.Enum):
    """Order lifecycle states"""
    PENDING = "pending"
    READY = "ready"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = (OrderStatus.READY.value, OrderStatus.CANCELLED.value)


_CODE_ALPHABET = string.digits + string.ascii_uppercase


class InvalidStatusTransition(Exception):
    """Raised when an order is moved out of a terminal status"""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move order from {current} to {requested}")


def generate_order_code() -> str:
    """Human readable order code, e.g. ORDER_K3J9Z0QXA"""
    suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(9))
    return f"ORDER_{suffix}"


class Order(Base):
    """Canteen orders"""
    __tablename__ = "orders"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_code = Column(String(20), nullable=False, default=generate_order_code)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)

    # Line items snapshot taken at checkout, no live reference to the menu
    # [{"name": "...", "quantity": 1, "price_cents": 1500}, ...]
    items_json = Column(JSON, nullable=False)
    amount_cents = Column(Integer, nullable=False, default=0)

    # Payment
    payment_method = Column(String(20), nullable=False)
    payment_settled = Column(Boolean, default=False, nullable=False)

    # Timing
    schedule_later = Column(DateTime)

    # Status
    status = Column(String(20), default=OrderStatus.PENDING.value, nullable=False)
    is_notified = Column(Boolean, default=False, nullable=False)

    notes = Column(Text)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="orders")

    @property
    def is_scheduled(self) -> bool:
        return self.schedule_later is not None

    def check_transition(self, status: OrderStatus) -> None:
        """Only pending orders move, and only to a terminal status"""
        if self.status != OrderStatus.PENDING.value or status == OrderStatus.PENDING:
            raise InvalidStatusTransition(self.status, status.value)
