from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

BUSINESS_HOURS_CHANGED = "businessHoursChanged"

Listener = Callable[[Any], None]


class EventBus:
    """Named publish/subscribe channels with synchronous delivery.

    Listeners run in subscription order on the publishing thread. A listener
    that raises is logged and skipped so the rest still receive the payload.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def subscribe(self, event: str, listener: Listener) -> Callable[[], None]:
        self._listeners.setdefault(event, []).append(listener)

        def unsubscribe() -> None:
            self.unsubscribe(event, listener)

        return unsubscribe

    def unsubscribe(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event)
        if not listeners:
            return
        try:
            listeners.remove(listener)
        except ValueError:
            return
        if not listeners:
            del self._listeners[event]

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def publish(self, event: str, payload: Any) -> int:
        # snapshot so listeners may unsubscribe while being notified
        listeners = list(self._listeners.get(event, []))
        delivered = 0
        for listener in listeners:
            try:
                listener(payload)
            except Exception:
                logger.exception("Listener %r failed while handling %s", listener, event)
                continue
            delivered += 1
        return delivered
