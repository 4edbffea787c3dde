"""Change hub, live queries and customer notifications"""

from app.realtime.hub import ChangeHub
from app.realtime.subscriptions import LiveQuery
from app.realtime.notifications import (
    Notification,
    NotificationCenter,
    NotificationDeriver,
    NotificationRegistry,
)

__all__ = [
    "ChangeHub",
    "LiveQuery",
    "Notification",
    "NotificationCenter",
    "NotificationDeriver",
    "NotificationRegistry",
]
