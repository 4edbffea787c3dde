"""Database models"""

from app.models.user import User
from app.models.menu import MenuItem
from app.models.order import Order, OrderStatus
from app.models.support import SupportTicket, SupportMessage, TicketStatus, TicketArea

__all__ = [
    "User",
    "MenuItem",
    "Order",
    "OrderStatus",
    "SupportTicket",
    "SupportMessage",
    "TicketStatus",
    "TicketArea",
]
