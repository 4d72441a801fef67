"""
In-process publish/subscribe for stock notifications.

Two channels are published by the stock monitor:
- stock_level_changed: one StockLevelChanged per reported transition
- stock_updated: payload-less StockUpdated, for listeners that only need to refresh

Handlers are called synchronously, in registration order.
"""

import itertools
import logging
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

from stockwatch.models import StockLevelChanged

logger = logging.getLogger(__name__)

STOCK_LEVEL_CHANGED = "stock_level_changed"
STOCK_UPDATED = "stock_updated"
CHANNELS = (STOCK_LEVEL_CHANGED, STOCK_UPDATED)

Handler = Callable[[Any], None]


class Subscription:
    """
    Token returned by EventBus.subscribe.
    Calling unsubscribe() more than once is harmless.
    """

    def __init__(self, bus: "EventBus", channel: str, token: int):
        self._bus = bus
        self.channel = channel
        self.token = token

    @property
    def active(self) -> bool:
        return self._bus.is_subscribed(self)

    def unsubscribe(self) -> bool:
        return self._bus.unsubscribe(self)

    def __repr__(self) -> str:
        return f"Subscription(channel={self.channel!r}, token={self.token})"


class EventBus:
    """
    Fire-and-forget broadcaster.

    Delivery to zero listeners is valid. A handler that raises is logged and
    skipped; the remaining handlers still receive the event.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Tuple[int, Handler]]] = {channel: [] for channel in CHANNELS}
        self._tokens = itertools.count(1)

    def subscribe(self, channel: str, handler: Handler) -> Subscription:
        """
        Register a handler on a channel.

        Raises:
            ValueError: If the channel is unknown
        """
        if channel not in self._handlers:
            raise ValueError(f"Unknown channel: {channel!r}")

        token = next(self._tokens)
        self._handlers[channel].append((token, handler))
        logger.debug(f"Subscribed handler #{token} to {channel}")
        return Subscription(self, channel, token)

    def unsubscribe(self, subscription: Subscription) -> bool:
        handlers = self._handlers.get(subscription.channel, [])
        for index, (token, _) in enumerate(handlers):
            if token == subscription.token:
                del handlers[index]
                logger.debug(f"Unsubscribed handler #{token} from {subscription.channel}")
                return True
        return False

    def is_subscribed(self, subscription: Subscription) -> bool:
        return any(token == subscription.token for token, _ in self._handlers.get(subscription.channel, []))

    def handler_count(self, channel: str) -> int:
        return len(self._handlers.get(channel, []))

    def publish(self, channel: str, event: Any) -> int:
        """
        Deliver an event to every handler of a channel.

        Args:
            channel: Channel name
            event: Notification object passed to each handler

        Returns:
            Number of handlers that were invoked
        """
        # Copy so handlers can unsubscribe while being dispatched
        handlers = list(self._handlers.get(channel, []))
        for token, handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Handler #{token} on {channel} failed: {str(e)}", exc_info=True)
        return len(handlers)

    def clear(self) -> None:
        for handlers in self._handlers.values():
            handlers.clear()


class NotificationLog:
    """
    Keeps the most recent stock_level_changed notifications in memory.
    Used by the API so a UI can poll for banners instead of holding a live connection.
    """

    def __init__(self, max_size: int = 50):
        self.max_size = max(1, max_size)
        self._events: Deque[StockLevelChanged] = deque(maxlen=self.max_size)
        self._subscription: Optional[Subscription] = None

    def __call__(self, event: StockLevelChanged) -> None:
        self._events.append(event)

    def attach(self, monitor) -> Subscription:
        """Subscribe to a monitor's stock_level_changed channel (re-attaching moves the subscription)."""
        self.detach()
        self._subscription = monitor.subscribe(self, STOCK_LEVEL_CHANGED)
        return self._subscription

    def detach(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def recent(self, limit: Optional[int] = None) -> List[StockLevelChanged]:
        """Return stored notifications, oldest first, optionally only the last `limit`."""
        events = list(self._events)
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return events

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)
