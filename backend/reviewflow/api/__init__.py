"""API routers package."""

from reviewflow.api import parents, deliveries, review, earnings, events

__all__ = [
    "parents",
    "deliveries",
    "review",
    "earnings",
    "events",
]
