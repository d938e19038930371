"""
scheduled_events.py - One-shot timers on the network's logical clock

Deferred actions (the auto-reload settling delay) are scheduled as events
rather than blocking sleeps:
- Events are just data, handlers are just functions
- A heap orders events by trigger time, then priority
- The network fires due events when its clock advances

Core concepts:
1. Event: Immutable specification of what should happen and when
2. EventScheduler: Priority queue plus action -> handler registry
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional
import heapq


AUTO_RELOAD_ACTION = "auto_reload"


# ============================================================================
# EVENT DATA STRUCTURE
# ============================================================================

@dataclass(frozen=True, slots=True)
class Event:
    """
    Immutable scheduled event.

    Sorting: by trigger_time, then priority (lower=first), then sequence.

    Attributes:
        trigger_time: When this event should fire
        action: Event type string ("auto_reload")
        priority: Execution order within same timestamp (0=first)
        sequence: Scheduling order, set by the scheduler, breaks remaining ties
        params: Event-specific parameters as frozen tuple of (key, value) pairs
    """
    trigger_time: datetime
    action: str
    priority: int = 0
    sequence: int = 0
    params: tuple = ()

    def __lt__(self, other: 'Event') -> bool:
        """Enable heap ordering: time, then priority, then scheduling order."""
        if self.trigger_time != other.trigger_time:
            return self.trigger_time < other.trigger_time
        if self.priority != other.priority:
            return self.priority < other.priority
        return self.sequence < other.sequence

    @property
    def params_dict(self) -> Dict[str, Any]:
        """Get params as a dictionary for convenience."""
        return dict(self.params)

    @property
    def event_id(self) -> str:
        params_str = "|".join(f"{k}={v}" for k, v in sorted(self.params))
        return f"{self.action}:{self.sequence}:{self.trigger_time.isoformat()}:{params_str}"


# Handler type: event -> result (None when the event produced nothing)
EventHandler = Callable[[Event], Any]


# ============================================================================
# EVENT SCHEDULER
# ============================================================================

class EventScheduler:
    """
    Minimal event scheduler using a priority queue.

    Handlers run synchronously inside step(); exceptions raised by a handler
    propagate unchanged.
    """

    def __init__(self):
        self._heap: List[Event] = []
        self._handlers: Dict[str, EventHandler] = {}
        self._next_sequence = 0

    def register(self, action: str, handler: EventHandler) -> None:
        """Register a handler function for an action type."""
        self._handlers[action] = handler

    def schedule(self, event: Event) -> Event:
        """
        Add an event to the pending queue.

        Returns the event as queued (with its scheduling sequence assigned).
        """
        queued = Event(
            trigger_time=event.trigger_time,
            action=event.action,
            priority=event.priority,
            sequence=self._next_sequence,
            params=event.params,
        )
        self._next_sequence += 1
        heapq.heappush(self._heap, queued)
        return queued

    def get_due(self, as_of: datetime) -> List[Event]:
        """
        Get and remove events due for execution.

        Returns events with trigger_time <= as_of, in execution order.
        """
        due = []
        while self._heap and self._heap[0].trigger_time <= as_of:
            due.append(heapq.heappop(self._heap))
        return due

    def execute(self, event: Event) -> Any:
        """
        Run a single event through its registered handler.

        Returns the handler's result, or None if no handler is registered.
        """
        handler = self._handlers.get(event.action)
        if not handler:
            return None
        return handler(event)

    def step(self, as_of: datetime) -> List[Any]:
        """
        Fire all due events in order and collect their non-None results.

        Events scheduled by a handler during this step are fired too when
        they are already due.
        """
        results = []
        due = self.get_due(as_of)
        while due:
            for event in due:
                result = self.execute(event)
                if result is not None:
                    results.append(result)
            due = self.get_due(as_of)
        return results

    def pending_count(self) -> int:
        """Number of pending events."""
        return len(self._heap)

    def peek_next(self) -> Optional[Event]:
        """Peek at next scheduled event without removing it."""
        return self._heap[0] if self._heap else None


# ============================================================================
# EVENT FACTORY FUNCTIONS
# ============================================================================

def auto_reload_event(trigger_time: datetime, armed_amount: Decimal) -> Event:
    """Create the deferred credit of an armed auto-reload."""
    return Event(
        trigger_time=trigger_time,
        action=AUTO_RELOAD_ACTION,
        priority=0,
        params=(("armed_amount", str(armed_amount)),),
    )
