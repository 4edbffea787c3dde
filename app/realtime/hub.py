"""In-process change notification hub"""

from collections import defaultdict
from typing import Awaitable, Callable, Dict, List
from starlette.requests import HTTPConnection
import structlog

logger = structlog.get_logger()

ChangeListener = Callable[[str], Awaitable[None]]

# Collection names
USERS = "Users"
MENU_ITEMS = "MenuItems"
ORDERS = "Orders"
SUPPORT = "Support"


class ChangeHub:
    """
    Fan-out of "collection changed" events to live queries.

    Writers call publish() after a successful commit. Listeners are awaited
    one after another in registration order, so a single listener sees
    changes in the order they were published.
    """

    def __init__(self):
        self._listeners: Dict[str, List[ChangeListener]] = defaultdict(list)

    def listen(self, collection: str, listener: ChangeListener) -> Callable[[], None]:
        """Register a listener and return a function that removes it"""
        self._listeners[collection].append(listener)

        def remove():
            listeners = self._listeners.get(collection, [])
            if listener in listeners:
                listeners.remove(listener)

        return remove

    def listener_count(self, collection: str) -> int:
        return len(self._listeners.get(collection, []))

    async def publish(self, collection: str) -> None:
        """Notify every listener of a committed change"""
        # Copy so listeners may unregister while being notified
        for listener in list(self._listeners.get(collection, [])):
            if listener not in self._listeners.get(collection, []):
                continue
            try:
                await listener(collection)
            except Exception as e:
                logger.error(
                    "Change listener failed",
                    collection=collection,
                    error=str(e),
                )

    def clear(self) -> None:
        self._listeners.clear()


def get_change_hub(conn: HTTPConnection) -> ChangeHub:
    """Dependency: the hub created with the application"""
    return conn.app.state.change_hub
