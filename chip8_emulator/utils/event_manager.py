"""
Event management system for virtual machine events.

This module provides an event bus through which the emulated system reports
things a host may want to react to: the tone ending, the CPU parking on a
key wait, unknown opcodes, screen updates. Handlers are registered per event
type with a priority.
"""

import logging
import time
from typing import Dict, List, Callable, Any, Optional, Set
from enum import Enum, auto
from collections import defaultdict

logger = logging.getLogger("Chip8Emulator.EventManager")

class EventPriority(Enum):
    """Event handler priority levels."""
    LOW = auto()
    NORMAL = auto()
    HIGH = auto()
    CRITICAL = auto()

class EventType(Enum):
    """Types of machine events."""
    # System events
    SYSTEM_RESET = auto()
    PROGRAM_LOADED = auto()

    # CPU events
    CPU_INSTRUCTION = auto()
    UNKNOWN_INSTRUCTION = auto()
    KEY_WAIT = auto()

    # Input events
    KEY_PRESS = auto()
    KEY_RELEASE = auto()

    # Video events
    DISPLAY_CLEAR = auto()
    DISPLAY_DRAW = auto()

    # Audio events
    TONE_START = auto()
    TONE_END = auto()

    # Custom event (host-specific)
    CUSTOM = auto()

class Event:
    """
    Event object for machine events.

    Carries the event type, payload, timestamp and source component.
    """

    def __init__(self, event_type: EventType,
                source: str,
                payload: Optional[Dict[str, Any]] = None,
                timestamp: Optional[float] = None):
        """
        Initialize event.

        Args:
            event_type: Type of event
            source: Source component of event
            payload: Additional event data
            timestamp: Event timestamp (None for auto)
        """
        self.type = event_type
        self.source = source
        self.payload = payload or {}
        self.timestamp = timestamp or time.time()
        self.handled = False

    def __str__(self) -> str:
        return f"Event({self.type.name}, source={self.source}, payload={self.payload})"

# Type alias for event handler functions
EventHandler = Callable[[Event], None]

_PRIORITY_ORDER = [
    EventPriority.CRITICAL,
    EventPriority.HIGH,
    EventPriority.NORMAL,
    EventPriority.LOW
]

class EventManager:
    """
    Event bus for registering handlers and dispatching machine events.
    """

    def __init__(self, max_history: int = 100):
        """
        Initialize event manager.

        Args:
            max_history: Maximum number of events to keep in history
        """
        # Event handlers by type and priority
        self.handlers: Dict[EventType, Dict[EventPriority, List[EventHandler]]] = defaultdict(
            lambda: defaultdict(list)
        )

        # Event history
        self.event_history: List[Event] = []
        self.max_history = max_history

        # Statistics
        self.stats = {
            "events_triggered": 0,
            "events_handled": 0,
            "handlers_called": 0
        }

        # Filters for history tracking
        self.history_filters: Set[EventType] = set()

        logger.debug("EventManager initialized")

    def register_handler(self, event_type: EventType,
                        handler: EventHandler,
                        priority: EventPriority = EventPriority.NORMAL) -> None:
        """
        Register an event handler.

        Args:
            event_type: Type of event to handle
            handler: Handler function
            priority: Handler priority
        """
        self.handlers[event_type][priority].append(handler)
        logger.debug(f"Registered handler for {event_type.name} with {priority.name} priority")

    def unregister_handler(self, event_type: EventType,
                          handler: EventHandler) -> bool:
        """
        Unregister an event handler.

        Returns:
            True if handler was removed, False if not found
        """
        for priority in self.handlers[event_type].values():
            if handler in priority:
                priority.remove(handler)
                logger.debug(f"Unregistered handler for {event_type.name}")
                return True

        return False

    def has_handlers(self, event_type: EventType) -> bool:
        return any(self.handlers[event_type].values()) if event_type in self.handlers else False

    def trigger_event(self, event: Event) -> bool:
        """
        Trigger an event and call handlers.

        Args:
            event: Event to trigger

        Returns:
            True if event was handled by at least one handler
        """
        self.stats["events_triggered"] += 1

        # Add to history if not filtered
        if not self.history_filters or event.type in self.history_filters:
            self.event_history.append(event)

            if len(self.event_history) > self.max_history:
                self.event_history = self.event_history[-self.max_history:]

        event_handlers = self.handlers.get(event.type)
        if not event_handlers:
            return False

        handled = False

        # Process in order: CRITICAL, HIGH, NORMAL, LOW
        for priority in _PRIORITY_ORDER:
            for handler in event_handlers[priority]:
                try:
                    handler(event)
                    self.stats["handlers_called"] += 1
                    handled = True
                except Exception as e:
                    logger.error(f"Error in event handler for {event.type.name}: {e}")

                # Stop if a handler consumed the event
                if event.handled:
                    break

            if event.handled:
                break

        if handled:
            self.stats["events_handled"] += 1

        return handled

    def create_event(self, event_type: EventType,
                    source: str,
                    payload: Optional[Dict[str, Any]] = None) -> Event:
        """
        Create and trigger an event.

        Returns:
            The created and triggered event
        """
        event = Event(event_type, source, payload)
        self.trigger_event(event)
        return event

    def get_stats(self) -> Dict[str, int]:
        return self.stats.copy()

    def get_event_history(self, event_type: Optional[EventType] = None) -> List[Event]:
        """
        Get event history.

        Args:
            event_type: Type of event to filter (None for all)

        Returns:
            List of events in history
        """
        if event_type is None:
            return self.event_history.copy()
        return [e for e in self.event_history if e.type == event_type]

    def set_history_filter(self, event_types: List[EventType]) -> None:
        """
        Set filter for which events are stored in history.

        Args:
            event_types: List of event types to track (empty for all)
        """
        self.history_filters = set(event_types)
        logger.debug(f"Set history filter to {[et.name for et in event_types]}")

    def clear_history(self) -> None:
        self.event_history.clear()
        logger.debug("Cleared event history")

    def register_logger(self,
                      event_types: List[EventType],
                      log_level: int = logging.INFO) -> None:
        """
        Register a handler to log specific event types.

        Args:
            event_types: List of event types to log
            log_level: Logging level for events
        """
        def event_logger(event: Event) -> None:
            logger.log(log_level, f"Event: {event}")

        for event_type in event_types:
            self.register_handler(event_type, event_logger, EventPriority.LOW)
