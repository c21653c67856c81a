"""Event bus system for real-time SSE event streaming."""

import asyncio
import uuid
from typing import Dict, Any, AsyncGenerator, Optional, Tuple
from datetime import datetime


class EventBus:
    """
    In-memory event bus using asyncio.Queue for pub/sub pattern.

    Events are published to a topic (the parent id). Subscribers either follow
    one topic or all of them. Delivery is at-least-once from the consumer's
    point of view, so every event carries an ``event_id`` for deduplication.
    """

    def __init__(self):
        """Initialize the event bus with an empty subscriber list."""
        self._subscribers: list[Tuple[Optional[str], asyncio.Queue]] = []

    async def publish(self, event_type: str, data: Dict[str, Any], topic: Optional[str] = None) -> Dict[str, Any]:
        """
        Publish an event to all subscribers of its topic.

        Args:
            event_type: Type of event (e.g., "delivery_submitted", "feedback_received")
            data: Event payload data
            topic: Topic key, usually the parent id

        Returns:
            The published event
        """
        event = {
            "event_id": str(uuid.uuid4()),
            "type": event_type,
            "topic": topic,
            "data": data,
            "timestamp": datetime.utcnow().isoformat()
        }

        # Send to all matching subscribers
        dead_subscribers = []
        for subscriber in self._subscribers:
            wanted_topic, queue = subscriber
            if wanted_topic is not None and wanted_topic != topic:
                continue
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                # Mark queue as dead if it can't receive events
                dead_subscribers.append(subscriber)

        # Clean up dead queues
        for subscriber in dead_subscribers:
            self._subscribers.remove(subscriber)

        return event

    async def subscribe(self, topic: Optional[str] = None) -> AsyncGenerator[Dict[str, Any], None]:
        """
        Subscribe to events and receive them as an async generator.

        Args:
            topic: Only receive events for this topic (None for every topic)

        Yields:
            Event dictionaries containing event_id, type, topic, data and timestamp

        Usage:
            async for event in event_bus.subscribe(parent_id):
                print(event)
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=1000)
        subscriber = (topic, queue)
        self._subscribers.append(subscriber)

        try:
            while True:
                event = await queue.get()
                yield event
        finally:
            # Clean up subscription
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


# Global event bus instance
event_bus = EventBus()
