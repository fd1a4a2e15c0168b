"""Event sink — ordered, typed events emitted by keepers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

log = structlog.get_logger("events")


@dataclass(frozen=True)
class Event:
    type: str
    attributes: dict[str, Any] = field(default_factory=dict)


class EventManager:
    """Collects events in emission order.

    A branched manager (see ``Context.atomic``) keeps its events until the
    branch commits, at which point they are appended to the parent.
    """

    def __init__(self) -> None:
        self._events: list[Event] = []

    @property
    def events(self) -> list[Event]:
        return list(self._events)

    def emit(self, event_type: str, **attributes: Any) -> Event:
        event = Event(type=event_type, attributes=attributes)
        self._events.append(event)
        return event

    def extend(self, events: list[Event]) -> None:
        self._events.extend(events)
        for event in events:
            log.debug("event_emitted", event_type=event.type, **event.attributes)

    def of_type(self, event_type: str) -> list[Event]:
        return [e for e in self._events if e.type == event_type]

    def clear(self) -> None:
        self._events.clear()
