"""Transient user-facing notifications (toasts)."""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Literal

logger = logging.getLogger(__name__)

Variant = Literal["default", "destructive"]


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: Variant = "default"


class Notifier:
    """
    Bounded queue of notifications waiting to be shown once.

    The presentation layer drains the queue on each render; anything beyond
    ``max_pending`` drops the oldest entry.
    """

    def __init__(self, max_pending: int = 20) -> None:
        self._pending: deque[Notification] = deque(maxlen=max_pending)

    def notify(self, title: str, description: str, variant: Variant = "default") -> None:
        log = logger.warning if variant == "destructive" else logger.info
        log(f"{title}: {description}")
        self._pending.append(Notification(title, description, variant))

    def drain(self) -> list[Notification]:
        notifications = list(self._pending)
        self._pending.clear()
        return notifications

    def __len__(self) -> int:
        return len(self._pending)
