"""
In-memory notification feed for the signed-in session.

Newest first, bounded. ``on_notify`` is where a front end hooks its toast or
chime.
"""

import logging
from collections import deque
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class NotificationFeed:
    def __init__(self, capacity: int = 5, on_notify: Optional[Callable[[str], None]] = None):
        self._messages: deque[str] = deque(maxlen=capacity)
        self.on_notify = on_notify

    def notify(self, message: str) -> None:
        self._messages.appendleft(message)
        logger.info(f"Notification: {message}")
        if self.on_notify is not None:
            self.on_notify(message)

    @property
    def messages(self) -> list[str]:
        return list(self._messages)

    def clear(self) -> None:
        self._messages.clear()

    def __len__(self) -> int:
        return len(self._messages)
