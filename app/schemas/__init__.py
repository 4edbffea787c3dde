"""Pydantic schemas for request/response validation"""

from app.schemas.auth import (
    Token,
    TokenPayload,
    RefreshRequest,
    SignupRequest,
    EmailTokenRequest,
    PasswordResetRequest,
    PasswordResetConfirm,
    UserResponse,
    RouteDecision,
)
from app.schemas.menu import (
    MenuItemCreate,
    MenuItemUpdate,
    MenuItemResponse,
)
from app.schemas.order import (
    OrderCreate,
    OrderItemCreate,
    OrderResponse,
    PaymentUpdate,
    MyOrdersResponse,
    OrderDeskResponse,
)
from app.schemas.support import (
    TicketCreate,
    MessageCreate,
    TicketResponse,
)
from app.schemas.user import (
    UserListItem,
    AccountResponse,
    AccountUpdate,
)
from app.schemas.analytics import (
    DashboardSummary,
    PaymentsOverview,
    NotificationsResponse,
)

__all__ = [
    "Token",
    "TokenPayload",
    "RefreshRequest",
    "SignupRequest",
    "EmailTokenRequest",
    "PasswordResetRequest",
    "PasswordResetConfirm",
    "UserResponse",
    "RouteDecision",
    "MenuItemCreate",
    "MenuItemUpdate",
    "MenuItemResponse",
    "OrderCreate",
    "OrderItemCreate",
    "OrderResponse",
    "PaymentUpdate",
    "MyOrdersResponse",
    "OrderDeskResponse",
    "TicketCreate",
    "MessageCreate",
    "TicketResponse",
    "UserListItem",
    "AccountResponse",
    "AccountUpdate",
    "DashboardSummary",
    "PaymentsOverview",
    "NotificationsResponse",
]
