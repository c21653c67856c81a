"""Audit trail and real-time notifications for workflow events."""

from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.core.events import event_bus
from reviewflow.models.activity_log import ActivityLog


def record_activity(
    db: AsyncSession,
    event_type: str,
    parent_id: str,
    data: Dict[str, Any],
    delivery_id: Optional[str] = None,
    actor: Optional[str] = None,
) -> ActivityLog:
    """
    Stage an audit row in the current unit of work.

    The row is committed together with the change it describes.
    """
    activity = ActivityLog(
        event_type=event_type,
        parent_id=parent_id,
        delivery_id=delivery_id,
        actor=actor,
        data=data,
    )
    db.add(activity)
    return activity


async def notify(event_type: str, parent_id: str, data: Dict[str, Any]) -> None:
    """Broadcast to the parent's topic. Call only after the change is committed."""
    await event_bus.publish(event_type, {"parent_id": parent_id, **data}, topic=parent_id)
