"""Events API router for per-parent SSE streams."""

import json

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sse_starlette.sse import EventSourceResponse

from reviewflow.database import get_db
from reviewflow.core.events import event_bus
from reviewflow.services.parent_service import get_parent_or_404

router = APIRouter()


@router.get("/{parent_id}/events")
async def parent_event_stream(
    parent_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Server-Sent Events (SSE) stream of one parent's workflow changes.

    Every event has an ``id`` (the event_id); a client that sees the same id
    twice should drop the duplicate.

    Usage:
        const eventSource = new EventSource('/api/parents/<id>/events');
        eventSource.addEventListener('feedback_received', (e) => {
            console.log(JSON.parse(e.data));
        });
    """
    await get_parent_or_404(db, parent_id)

    async def generate():
        async for event in event_bus.subscribe(parent_id):
            # Check if client disconnected
            if await request.is_disconnected():
                break

            yield {
                "id": event["event_id"],
                "event": event["type"],
                "data": json.dumps(event["data"])
            }

    return EventSourceResponse(generate())
