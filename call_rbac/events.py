"""State-change notifications.

The engine publishes one event per successful mutation, after the
transaction commits. Forwarding to an external bus is done by
subscribing to an EventLog or by passing any object with ``publish``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Literal, Protocol

from pydantic import BaseModel, Field

from call_rbac.permissions.roles import Role

logger = logging.getLogger(__name__)


class _Event(BaseModel):
    emitted_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="When the event was emitted"
    )

    def matches(self, other: Event) -> bool:
        """Compare payloads, ignoring the timestamp."""
        return self.model_dump(exclude={"emitted_at"}) == other.model_dump(
            exclude={"emitted_at"}
        )


class AccessGranted(_Event):
    """An account was granted a role in a group."""

    kind: Literal["access_granted"] = "access_granted"
    group: int
    account: str
    role: Role


class AccessRevoked(_Event):
    """An account's role in a group was revoked."""

    kind: Literal["access_revoked"] = "access_revoked"
    group: int
    account: str
    role: Role


class CallsUpdated(_Event):
    """A group's whitelisted actions were replaced."""

    kind: Literal["calls_updated"] = "calls_updated"
    group: int


Event = AccessGranted | AccessRevoked | CallsUpdated


class EventSink(Protocol):
    """Anything that accepts published events."""

    def publish(self, event: Event) -> None: ...


class EventLog:
    """In-memory event sink with optional subscribers.

    A subscriber that raises is logged; the others still receive the event.

    Example:
        log = EventLog()
        log.subscribe(bus.forward)
        engine = CallRBAC(events=log)
    """

    def __init__(self) -> None:
        self.events: list[Event] = []
        self._subscribers: list[Callable[[Event], None]] = []

    def subscribe(self, callback: Callable[[Event], None]) -> None:
        self._subscribers.append(callback)

    def publish(self, event: Event) -> None:
        self.events.append(event)
        logger.info(f"Event {event.kind}: {event.model_dump(exclude={'kind', 'emitted_at'})}")
        for callback in self._subscribers:
            try:
                callback(event)
            except Exception:
                logger.exception(f"Event subscriber {callback!r} failed on {event.kind}")

    def last(self) -> Event | None:
        return self.events[-1] if self.events else None

    def clear(self) -> None:
        self.events.clear()

    def __len__(self) -> int:
        return len(self.events)
