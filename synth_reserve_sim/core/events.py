#!/usr/bin/env python3
"""
Observable events emitted by state-changing calls
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .transaction import StatefulComponent

logger = logging.getLogger(__name__)


@dataclass
class Event:
    """A single emitted event"""
    name: str
    emitter: str
    args: Dict[str, Any] = field(default_factory=dict)
    timestamp: int = 0


class EventLog(StatefulComponent):
    """Append-only event log shared by the components of one deployment"""

    def __init__(self):
        super().__init__()
        self.events: List[Event] = []

    def _snapshot_state(self) -> int:
        return len(self.events)

    def _restore_state(self, state: int):
        del self.events[state:]

    def emit(self, name: str, emitter: str, timestamp: int = 0, **args) -> Event:
        event = Event(name=name, emitter=emitter, args=args, timestamp=timestamp)
        self.events.append(event)
        logger.debug("%s emitted %s %s", emitter, name, args)
        return event

    def filter(self, name: Optional[str] = None, emitter: Optional[str] = None) -> List[Event]:
        return [
            e for e in self.events
            if (name is None or e.name == name) and (emitter is None or e.emitter == emitter)
        ]

    def last(self, name: str) -> Optional[Event]:
        matches = self.filter(name=name)
        return matches[-1] if matches else None

    def clear(self):
        self.events.clear()

    def __len__(self) -> int:
        return len(self.events)
