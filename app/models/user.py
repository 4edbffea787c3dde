"""User profile model"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.database import Base


class User(Base):
    """Canteen customers and administrators"""
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Authentication
    email = Column(String(255), unique=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)

    # Profile
    name = Column(String(255), nullable=False)

    # Privileged flag, only ever toggled by another admin
    is_admin = Column(Boolean, default=False, nullable=False)

    # Status
    is_active = Column(Boolean, default=True)

    # Tokens
    refresh_token = Column(String(500))

    # Timestamps
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    orders = relationship("Order", back_populates="user")
    support_tickets = relationship("SupportTicket", back_populates="user")

    def can_toggle_admin(self, target: "User") -> bool:
        """Admins may change other profiles' privileged flag, never their own"""
        return bool(self.is_admin) and target.id != self.id
