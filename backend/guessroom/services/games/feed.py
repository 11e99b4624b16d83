"""In-process change notifications for rooms, players, rounds and guesses.

The store publishes one event per committed write. Subscribers register for a
``(table, column, value)`` channel, e.g. ``('players', 'room_id', 3)``, and
receive every event whose record matches. Delivery is synchronous and in
publish order per channel; there is no ordering guarantee across channels.
"""

import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)

INSERT = 'INSERT'
UPDATE = 'UPDATE'

Channel = Tuple[str, str, Any]
Callback = Callable[[str, Dict[str, Any]], None]

# Columns each table is filtered on
CHANNEL_COLUMNS = {
    'rooms': ('id',),
    'players': ('room_id',),
    'game_rounds': ('id', 'room_id'),
    'guesses': ('round_id',),
}


class Subscription:
    """Handle returned by ``ChangeFeed.subscribe``; call ``unsubscribe`` when done."""

    def __init__(self, feed: 'ChangeFeed', channel: Channel, callback: Callback):
        self._feed = feed
        self.channel = channel
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._feed._remove(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.unsubscribe()


class ChangeFeed:
    def __init__(self):
        self._lock = threading.RLock()
        self._subscriptions: Dict[Channel, List[Subscription]] = defaultdict(list)
        self._listeners: List[Callable[[str, str, Dict[str, Any]], None]] = []

    def subscribe(self, table: str, column: str, value: Any, callback: Callback) -> Subscription:
        if column not in CHANNEL_COLUMNS.get(table, ()):
            raise ValueError(f'cannot subscribe to {table} by {column}')
        sub = Subscription(self, (table, column, value), callback)
        with self._lock:
            self._subscriptions[sub.channel].append(sub)
        return sub

    def add_listener(self, listener: Callable[[str, str, Dict[str, Any]], None]) -> None:
        """Register a listener that sees every event (table, event, record)."""
        with self._lock:
            self._listeners.append(listener)

    def subscriber_count(self, table: str, column: str, value: Any) -> int:
        with self._lock:
            return len(self._subscriptions.get((table, column, value), ()))

    def publish(self, table: str, event: str, record: Dict[str, Any]) -> None:
        with self._lock:
            targets = []
            for column in CHANNEL_COLUMNS.get(table, ()):
                targets.extend(self._subscriptions.get((table, column, record.get(column)), ()))
            listeners = list(self._listeners)
        for sub in targets:
            if not sub.active:
                continue
            try:
                sub.callback(event, record)
            except Exception:
                logger.exception(f"[feed-error] channel={sub.channel} event={event}")
        for listener in listeners:
            try:
                listener(table, event, record)
            except Exception:
                logger.exception(f"[feed-error] listener table={table} event={event}")

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            subs = self._subscriptions.get(sub.channel)
            if subs and sub in subs:
                subs.remove(sub)
                if not subs:
                    del self._subscriptions[sub.channel]
