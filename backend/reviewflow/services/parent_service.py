"""Parent service for deliverable lifecycle business logic."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from reviewflow.config import settings
from reviewflow.core.deadlines import is_late, is_past_deadline, seconds_remaining
from reviewflow.core.errors import NotFoundError, ValidationError
from reviewflow.database import commit_or_conflict
from reviewflow.models.delivery import Delivery
from reviewflow.models.feedback import Feedback
from reviewflow.models.line_item import LineItem
from reviewflow.models.parent import Parent, ParentKind, ParentStatus
from reviewflow.models.review_link import ReviewLink
from reviewflow.services.activity_service import notify, record_activity
from reviewflow.services.descriptor_parser import parse_descriptor
from reviewflow.services.progress import ItemProgress, LabelDecision, compute_item_progress
from reviewflow.services.workflow import WorkflowEvent, next_status

logger = logging.getLogger(__name__)

LATE_STATUS = "late"


@dataclass(frozen=True)
class ParentStatusView:
    """Read model returned by get_status."""
    parent_id: str
    kind: ParentKind
    status: ParentStatus
    display_status: str
    revision_count: int
    is_late: bool
    seconds_remaining: Optional[float]
    item_progress: Optional[ItemProgress]


async def create_parent(
    db: AsyncSession,
    descriptor: str,
    kind: ParentKind,
    owner_id: Optional[str] = None,
    title: Optional[str] = None,
    allowed_duration_minutes: Optional[int] = None,
    deadline: Optional[datetime] = None,
) -> Parent:
    """
    Create a parent and freeze its line items.

    Args:
        db: Database session
        descriptor: Structured descriptor text
        kind: Single-artifact or bundled
        owner_id: Assignee credited with earnings
        title: Display title
        allowed_duration_minutes: Working-time allowance once started
        deadline: Optional calendar deadline

    Returns:
        Created parent with line items loaded

    Raises:
        ValidationError: If a bundled descriptor yields no items or exceeds the item limits
    """
    items = parse_descriptor(descriptor)

    if kind == ParentKind.BUNDLED and not items:
        raise ValidationError("Bundled parent descriptor must contain at least one recognized item")

    if allowed_duration_minutes is not None and allowed_duration_minutes <= 0:
        raise ValidationError("allowed_duration_minutes must be positive")

    parent = Parent(
        owner_id=owner_id,
        title=(title or descriptor or "")[:200],
        kind=kind,
        descriptor=descriptor or "",
        status=ParentStatus.NEW,
        revision_count=0,
        last_version=0,
        allowed_duration_minutes=allowed_duration_minutes or settings.DEFAULT_ALLOWED_DURATION_MINUTES,
        deadline=deadline,
        line_items=[
            LineItem(
                position=item.position,
                item_type=item.item_type.value,
                label=item.label,
                pages=item.pages,
            )
            for item in items
        ],
    )
    db.add(parent)
    await db.flush()

    record_activity(db, "parent_created", parent.id, {
        "kind": kind.value,
        "descriptor": parent.descriptor,
        "expected_items": len(items),
    }, actor=owner_id)
    await commit_or_conflict(db)

    logger.info(f"Created {kind.value} parent {parent.id} with {len(items)} line item(s)")
    await notify("parent_created", parent.id, {"kind": kind.value, "status": parent.status.value})

    return parent


async def get_parent_by_id(db: AsyncSession, parent_id: str) -> Optional[Parent]:
    """
    Get a parent by ID with line items loaded.

    Args:
        db: Database session
        parent_id: Parent UUID

    Returns:
        Parent or None if not found
    """
    result = await db.execute(
        select(Parent)
        .where(Parent.id == parent_id)
        .options(selectinload(Parent.line_items))
    )
    return result.scalar_one_or_none()


async def get_parent_or_404(db: AsyncSession, parent_id: str) -> Parent:
    parent = await get_parent_by_id(db, parent_id)
    if not parent:
        raise NotFoundError("Parent", parent_id)
    return parent


def apply_event(parent: Parent, event: WorkflowEvent, now: Optional[datetime] = None) -> ParentStatus:
    """
    Move a loaded parent through the transition table and stamp lifecycle timestamps.

    Raises:
        StateTransitionError: If the event is not legal in the current status
    """
    now = now or datetime.utcnow()
    previous = parent.status
    parent.status = next_status(parent.kind, parent.status, event)
    parent.updated_at = now

    if parent.started_at is None and event in (WorkflowEvent.START, WorkflowEvent.SUBMIT):
        parent.started_at = now
    if parent.status == ParentStatus.COMPLETED:
        parent.completed_at = now
    if parent.status == ParentStatus.CANCELLED:
        parent.cancelled_at = now

    logger.info(f"Parent {parent.id}: {previous.value} -> {parent.status.value} ({event.value})")
    return parent.status


async def start_parent(db: AsyncSession, parent_id: str, actor: Optional[str] = None) -> Parent:
    """
    Start work on a parent (new, or back to active after a revision request).

    Raises:
        NotFoundError: If parent not found
        StateTransitionError: If the parent cannot be started
        ConcurrencyConflict: If the parent changed concurrently
    """
    parent = await get_parent_or_404(db, parent_id)
    apply_event(parent, WorkflowEvent.START)

    record_activity(db, "parent_started", parent.id, {"status": parent.status.value}, actor=actor)
    await commit_or_conflict(db)

    await notify("parent_started", parent.id, {"status": parent.status.value})
    return parent


async def cancel_parent(
    db: AsyncSession,
    parent_id: str,
    actor: Optional[str] = None,
    reason: Optional[str] = None,
) -> Parent:
    """
    Cancel a parent and revoke every review link still active for it.

    Raises:
        NotFoundError: If parent not found
        StateTransitionError: If the parent is already completed or cancelled
        ConcurrencyConflict: If the parent or one of its links changed concurrently
    """
    parent = await get_parent_or_404(db, parent_id)
    now = datetime.utcnow()
    apply_event(parent, WorkflowEvent.CANCEL, now)

    result = await db.execute(
        select(ReviewLink).where(
            ReviewLink.parent_id == parent.id,
            ReviewLink.is_active.is_(True)
        )
    )
    revoked = 0
    for link in result.scalars().all():
        link.is_active = False
        link.deactivated_at = now
        revoked += 1

    record_activity(db, "parent_cancelled", parent.id, {
        "reason": reason,
        "links_revoked": revoked,
    }, actor=actor)
    await commit_or_conflict(db)

    await notify("parent_cancelled", parent.id, {"status": parent.status.value})
    return parent


async def request_admin_revision(
    db: AsyncSession,
    parent_id: str,
    notes: str,
    actor: Optional[str] = None,
) -> Parent:
    """
    Internal reviewer sends a submission back before the client sees it.

    Raises:
        NotFoundError: If parent not found
        ValidationError: If notes are blank
        StateTransitionError: If the parent is not awaiting internal review
        ConcurrencyConflict: If the parent changed concurrently
    """
    if not notes or not notes.strip():
        raise ValidationError("Revision notes are required")

    parent = await get_parent_or_404(db, parent_id)
    apply_event(parent, WorkflowEvent.ADMIN_REVISION)
    parent.revision_count += 1

    record_activity(db, "admin_revision_requested", parent.id, {
        "notes": notes,
        "revision_count": parent.revision_count,
    }, actor=actor)
    await commit_or_conflict(db)

    await notify("revision_requested", parent.id, {
        "status": parent.status.value,
        "revision_count": parent.revision_count,
        "source": "admin",
    })
    return parent


async def load_label_decisions(db: AsyncSession, parent_id: str) -> List[LabelDecision]:
    """Read every feedback row for a parent joined with its delivery's label."""
    result = await db.execute(
        select(
            Delivery.item_label,
            Delivery.version_number,
            Feedback.decision,
            Feedback.created_at,
        )
        .join(Delivery, Feedback.delivery_id == Delivery.id)
        .where(Feedback.parent_id == parent_id)
    )
    return [
        LabelDecision(
            item_label=row.item_label,
            decision=row.decision,
            decided_at=row.created_at,
            version_number=row.version_number,
        )
        for row in result.all()
    ]


async def get_item_progress(db: AsyncSession, parent: Parent) -> Optional[ItemProgress]:
    """Progress across expected labels. None for single-artifact parents."""
    if parent.kind != ParentKind.BUNDLED:
        return None
    decisions = await load_label_decisions(db, parent.id)
    return compute_item_progress(parent.expected_labels, decisions)


def display_status(parent: Parent, now: Optional[datetime] = None) -> str:
    """Stored status, with an active parent past its allowance or deadline shown as late."""
    now = now or datetime.utcnow()
    if parent.status == ParentStatus.ACTIVE:
        allowance = timedelta(minutes=parent.allowed_duration_minutes)
        if is_late(parent.started_at, allowance, now) or is_past_deadline(parent.deadline, now):
            return LATE_STATUS
    return parent.status.value


async def get_status(db: AsyncSession, parent_id: str, now: Optional[datetime] = None) -> ParentStatusView:
    """
    Get status, revision count, lateness and (bundled) item progress.

    Raises:
        NotFoundError: If parent not found
    """
    now = now or datetime.utcnow()
    parent = await get_parent_or_404(db, parent_id)

    remaining = None
    if parent.started_at is not None:
        remaining = seconds_remaining(
            parent.started_at,
            timedelta(minutes=parent.allowed_duration_minutes),
            now,
        )

    shown = display_status(parent, now)
    return ParentStatusView(
        parent_id=parent.id,
        kind=parent.kind,
        status=parent.status,
        display_status=shown,
        revision_count=parent.revision_count,
        is_late=shown == LATE_STATUS,
        seconds_remaining=remaining,
        item_progress=await get_item_progress(db, parent),
    )
