"""
Navigation channel for telling the UI which screen matches the provisioning state.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncGenerator, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)

RESTART_WIDGET_ROUTE = "/LoginPage/RestartWidget"
CONFIG_LOADING_ROUTE = "/LoginPage/ConfigLoadingWidget"
MAIN_PAGE_ROUTE = "/MainPage"


class NavigationChannelProtocol(Protocol):
    """Anything that can move the UI to a route."""

    def navigate(self, route: str) -> None: ...


@dataclass
class NavigationEvent:
    """A request to move the UI to a route"""

    route: str
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "navigate",
            "route": self.route,
            "timestamp": self.timestamp.isoformat(),
        }


class NavigationEventBroadcaster:
    """In-process pub/sub of navigation events, one queue per connected client."""

    def __init__(self, max_queue_size: int = 100) -> None:
        self.max_queue_size = max_queue_size
        self._queues: List[asyncio.Queue[NavigationEvent]] = []
        self._last_event: Optional[NavigationEvent] = None

    @property
    def last_route(self) -> Optional[str]:
        return self._last_event.route if self._last_event else None

    @property
    def client_count(self) -> int:
        return len(self._queues)

    def navigate(self, route: str) -> None:
        """Broadcast a navigation event to every subscriber"""
        event = NavigationEvent(route=route)
        self._last_event = event
        logger.info(f"Navigating to {route}")

        for queue in list(self._queues):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning("Navigation subscriber queue full, dropping event")

    def subscribe(self, send_last_event: bool = True) -> "asyncio.Queue[NavigationEvent]":
        """Subscribe a new client; it first receives the last route, if any."""
        queue: asyncio.Queue[NavigationEvent] = asyncio.Queue(
            maxsize=self.max_queue_size
        )
        if send_last_event and self._last_event is not None:
            queue.put_nowait(self._last_event)
        self._queues.append(queue)
        logger.debug(f"Navigation client subscribed ({len(self._queues)} connected)")
        return queue

    def unsubscribe(self, queue: "asyncio.Queue[NavigationEvent]") -> bool:
        if queue in self._queues:
            self._queues.remove(queue)
            logger.debug(
                f"Navigation client unsubscribed ({len(self._queues)} connected)"
            )
            return True
        return False

    async def stream_events(self) -> AsyncGenerator[str, None]:
        """Generate Server-Sent Events for navigation requests"""
        queue = self.subscribe()
        try:
            while True:
                event = await queue.get()
                yield f"event: navigate\ndata: {json.dumps(event.to_dict())}\n\n"
        except asyncio.CancelledError:
            logger.debug("Navigation stream cancelled")
            raise
        finally:
            self.unsubscribe(queue)
