"""Feedback service: recording client decisions and driving parent status."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from reviewflow.core.errors import (
    ExpiredLinkError,
    InactiveLinkError,
    NotFoundError,
    StateTransitionError,
    ValidationError,
)
from reviewflow.core.storage import payload_store
from reviewflow.database import commit_or_conflict
from reviewflow.models.feedback import Feedback, FeedbackDecision
from reviewflow.models.parent import ParentKind, ParentStatus
from reviewflow.services.activity_service import notify, record_activity
from reviewflow.services.delivery_service import get_delivery_or_404
from reviewflow.services.parent_service import apply_event, get_parent_or_404, load_label_decisions
from reviewflow.services.progress import ItemProgress, LabelDecision, compute_item_progress
from reviewflow.services.review_link_service import (
    REASON_EXPIRED,
    REASON_INACTIVE,
    get_link_by_token,
    link_invalid_reason,
)
from reviewflow.services.workflow import WorkflowEvent

logger = logging.getLogger(__name__)


@dataclass
class FeedbackFields:
    """Reviewer-provided fields accompanying a decision."""
    rating: Optional[int] = None
    feedback_text: Optional[str] = None
    revision_notes: Optional[str] = None
    attachments: List[str] = field(default_factory=list)
    reviewed_by: Optional[str] = None


@dataclass(frozen=True)
class FeedbackOutcome:
    feedback: Feedback
    new_status: ParentStatus
    revision_count: int
    item_progress: Optional[ItemProgress] = None


def _coerce_decision(decision) -> FeedbackDecision:
    try:
        return FeedbackDecision(decision)
    except ValueError:
        allowed = ", ".join(d.value for d in FeedbackDecision)
        raise ValidationError(f"Invalid decision '{decision}'. Must be one of: {allowed}") from None


def _validate_fields(decision: FeedbackDecision, fields: FeedbackFields) -> None:
    if fields.rating is not None and not 1 <= fields.rating <= 5:
        raise ValidationError("Rating must be between 1 and 5")

    if decision == FeedbackDecision.REVISION_REQUESTED:
        has_notes = bool(fields.revision_notes and fields.revision_notes.strip())
        if not has_notes and not fields.attachments:
            raise ValidationError("Revision requests need revision notes or at least one attachment")


async def submit_feedback(
    db: AsyncSession,
    token: str,
    decision,
    fields: Optional[FeedbackFields] = None,
    now: Optional[datetime] = None,
) -> FeedbackOutcome:
    """
    Record a client decision through a review link.

    The link is deactivated in the same transaction as the feedback row. Two
    decisions racing on one link cannot both commit: the loser fails on the
    link's row_version or on the unique review_link_id.

    Args:
        db: Database session
        token: Plaintext review token
        decision: "approved" or "revision_requested"
        fields: Rating, texts, attachments and reviewer
        now: Decision time (defaults to current UTC time)

    Returns:
        The feedback, the parent's new status and (bundled) item progress

    Raises:
        NotFoundError: If the token is unknown
        StateTransitionError: If the link already has feedback or the parent cannot take it
        InactiveLinkError: If the link was superseded or revoked
        ExpiredLinkError: If the link is past its expiry
        ValidationError: If the decision or fields are invalid
        PayloadUnavailableError: If an attachment cannot be confirmed
        ConcurrencyConflict: If another request changed the link or parent first
    """
    now = now or datetime.utcnow()
    fields = fields or FeedbackFields()
    decision = _coerce_decision(decision)
    _validate_fields(decision, fields)

    link = await get_link_by_token(db, token) if token else None
    if link is None:
        raise NotFoundError("Review link", "token")

    existing = await db.execute(select(Feedback.id).where(Feedback.review_link_id == link.id))
    if existing.scalar_one_or_none() is not None:
        raise StateTransitionError("Feedback was already submitted for this review link")

    reason = link_invalid_reason(link, now)
    if reason == REASON_INACTIVE:
        raise InactiveLinkError()
    if reason == REASON_EXPIRED:
        raise ExpiredLinkError()

    delivery = await get_delivery_or_404(db, link.delivery_id)
    parent = await get_parent_or_404(db, link.parent_id)
    if parent.status.is_terminal:
        raise StateTransitionError(
            f"Parent is already {parent.status.value}",
            current_state=parent.status.value,
        )

    # Attachments must be confirmed before anything is written
    await payload_store.ensure_available(fields.attachments)

    progress = None
    if decision == FeedbackDecision.REVISION_REQUESTED:
        event = WorkflowEvent.CLIENT_REVISION
    elif parent.kind == ParentKind.BUNDLED:
        decisions = await load_label_decisions(db, parent.id)
        decisions.append(LabelDecision(
            item_label=delivery.item_label,
            decision=decision,
            decided_at=now,
            version_number=delivery.version_number,
        ))
        progress = compute_item_progress(parent.expected_labels, decisions)
        event = WorkflowEvent.CLIENT_APPROVE if progress.is_complete else WorkflowEvent.CLIENT_APPROVE_PARTIAL
    else:
        event = WorkflowEvent.CLIENT_APPROVE

    new_status = apply_event(parent, event, now)
    if decision == FeedbackDecision.REVISION_REQUESTED:
        parent.revision_count += 1

    link.is_active = False
    link.deactivated_at = now

    feedback = Feedback(
        review_link_id=link.id,
        delivery_id=delivery.id,
        parent_id=parent.id,
        decision=decision,
        rating=fields.rating,
        feedback_text=fields.feedback_text,
        revision_notes=fields.revision_notes,
        attachments=list(fields.attachments),
        reviewed_by=fields.reviewed_by,
        created_at=now,
    )
    db.add(feedback)

    record_activity(db, "feedback_received", parent.id, {
        "decision": decision.value,
        "item_label": delivery.item_label,
        "version": delivery.version_number,
        "status": new_status.value,
    }, delivery_id=delivery.id, actor=fields.reviewed_by)
    await commit_or_conflict(db)

    if parent.kind == ParentKind.BUNDLED and progress is None:
        progress = compute_item_progress(parent.expected_labels, await load_label_decisions(db, parent.id))

    logger.info(f"Feedback '{decision.value}' on delivery {delivery.id}; parent {parent.id} now {new_status.value}")
    await notify("feedback_received", parent.id, {
        "delivery_id": delivery.id,
        "decision": decision.value,
        "item_label": delivery.item_label,
        "status": new_status.value,
        "revision_count": parent.revision_count,
    })

    return FeedbackOutcome(
        feedback=feedback,
        new_status=new_status,
        revision_count=parent.revision_count,
        item_progress=progress,
    )
