"""Live queries: whole-snapshot subscriptions over the change hub"""

from typing import Any, Awaitable, Callable, Generic, Iterable, List, Optional, TypeVar
import structlog

from app.realtime.hub import ChangeHub

logger = structlog.get_logger()

T = TypeVar("T")

Fetch = Callable[[], Awaitable[List[T]]]
SnapshotHandler = Callable[[List[T]], Awaitable[None]]
ErrorHandler = Callable[[Exception], Awaitable[None]]


class LiveQuery(Generic[T]):
    """
    Materialized result of a query that is re-run whenever one of the
    watched collections changes.

    Each delivery replaces ``snapshot`` wholesale. ``has_snapshot`` tells a
    loading query apart from one whose result is legitimately empty. A
    failing fetch is terminal: the query records the error, releases its
    hub registrations and reports once through ``on_error``.
    """

    def __init__(
        self,
        hub: ChangeHub,
        collections: Iterable[str],
        fetch: Fetch,
        on_snapshot: Optional[SnapshotHandler] = None,
        on_error: Optional[ErrorHandler] = None,
        name: str = "live_query",
    ):
        self.hub = hub
        self.collections = list(collections)
        self.name = name
        self._fetch = fetch
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self._removers: List[Callable[[], None]] = []

        self.snapshot: List[T] = []
        self.has_snapshot = False
        self.error: Optional[Exception] = None
        self.closed = False

        self._delivering = False
        self._stale = False

    @property
    def loading(self) -> bool:
        return not self.has_snapshot and self.error is None

    async def start(self) -> "LiveQuery[T]":
        """Register with the hub and deliver the first snapshot"""
        if self.closed:
            raise RuntimeError(f"{self.name} is closed")
        for collection in self.collections:
            self._removers.append(self.hub.listen(collection, self._on_change))
        await self._on_change(None)
        return self

    def close(self) -> None:
        """Withdraw the subscription; nothing is delivered afterwards"""
        if self.closed:
            return
        self.closed = True
        for remove in self._removers:
            remove()
        self._removers = []

    async def __aenter__(self) -> "LiveQuery[T]":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    async def _on_change(self, collection: Any) -> None:
        if self.closed:
            return
        if self._delivering:
            # Picked up by the loop below once the current delivery ends
            self._stale = True
            return

        self._delivering = True
        try:
            while not self.closed:
                self._stale = False
                await self._deliver()
                if not self._stale:
                    break
        finally:
            self._delivering = False

    async def _deliver(self) -> None:
        try:
            docs = await self._fetch()
        except Exception as e:
            logger.error("Live query failed", query=self.name, error=str(e))
            self.error = e
            self.close()
            if self._on_error is not None:
                await self._on_error(e)
            return

        if self.closed:
            return

        self.snapshot = list(docs)
        self.has_snapshot = True
        if self._on_snapshot is not None:
            await self._on_snapshot(self.snapshot)
