"""Delivery service: versioned submissions and reviewer batches."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from reviewflow.config import settings
from reviewflow.core.errors import NotFoundError, ValidationError
from reviewflow.core.storage import payload_store
from reviewflow.database import commit_or_conflict, flush_or_conflict
from reviewflow.models.delivery import Delivery
from reviewflow.models.parent import ParentKind
from reviewflow.services.activity_service import notify, record_activity
from reviewflow.services.parent_service import apply_event, get_parent_or_404
from reviewflow.services.workflow import WorkflowEvent

logger = logging.getLogger(__name__)

PAYLOAD_TYPES = ("file", "link")
LINK_TYPES = ("drive", "frame", "dropbox", "other")


@dataclass(frozen=True)
class DeliveryPayload:
    """Opaque reference to submitted work."""
    payload_ref: str
    payload_type: str = "file"
    link_type: Optional[str] = None
    notes: Optional[str] = None


def _validate_payload(payload: DeliveryPayload) -> None:
    if payload.payload_type not in PAYLOAD_TYPES:
        raise ValidationError(f"payload_type must be one of {', '.join(PAYLOAD_TYPES)}")
    if payload.link_type is not None:
        if payload.payload_type != "link":
            raise ValidationError("link_type only applies to link payloads")
        if payload.link_type not in LINK_TYPES:
            raise ValidationError(f"link_type must be one of {', '.join(LINK_TYPES)}")


async def submit_delivery(
    db: AsyncSession,
    parent_id: str,
    payload: DeliveryPayload,
    item_label: Optional[str] = None,
    submitted_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Delivery:
    """
    Record a new version of work for a parent.

    The version number comes from the parent's counter, which is written
    under the parent's row_version check; a concurrent submission for the
    same parent makes one of the two commits fail.

    Args:
        db: Database session
        parent_id: Parent UUID
        payload: Payload reference and metadata
        item_label: Expected label being delivered (bundled parents only)
        submitted_by: Submitting user id
        now: Submission time (defaults to current UTC time)

    Returns:
        Created delivery

    Raises:
        NotFoundError: If parent not found
        ValidationError: If the label or payload is invalid
        PayloadUnavailableError: If the payload reference cannot be confirmed
        StateTransitionError: If the parent does not accept deliveries
        ConcurrencyConflict: If another submission won the version number
    """
    now = now or datetime.utcnow()
    _validate_payload(payload)

    parent = await get_parent_or_404(db, parent_id)

    if parent.kind == ParentKind.BUNDLED:
        if not item_label:
            raise ValidationError("item_label is required for bundled parents")
        if item_label not in parent.expected_labels:
            raise ValidationError(
                f"Unknown item label '{item_label}'. Expected one of: {', '.join(parent.expected_labels)}"
            )
    elif item_label:
        raise ValidationError("item_label is only accepted for bundled parents")

    # Payload must be confirmed before the row pointing at it is written
    await payload_store.ensure_available([payload.payload_ref])

    apply_event(parent, WorkflowEvent.SUBMIT, now)
    parent.last_version += 1
    delivery = Delivery(
        parent_id=parent.id,
        version_number=parent.last_version,
        payload_type=payload.payload_type,
        payload_ref=payload.payload_ref,
        link_type=payload.link_type,
        item_label=item_label,
        notes=payload.notes,
        submitted_by=submitted_by,
        submitted_at=now,
    )
    db.add(delivery)
    await flush_or_conflict(db)

    record_activity(db, "delivery_submitted", parent.id, {
        "version": delivery.version_number,
        "item_label": item_label,
        "payload_type": payload.payload_type,
    }, delivery_id=delivery.id, actor=submitted_by)
    await commit_or_conflict(db)

    logger.info(f"Parent {parent.id} received delivery v{delivery.version_number}"
                + (f" for '{item_label}'" if item_label else ""))
    await notify("delivery_submitted", parent.id, {
        "delivery_id": delivery.id,
        "version": delivery.version_number,
        "item_label": item_label,
        "status": parent.status.value,
    })

    return delivery


async def get_delivery_by_id(db: AsyncSession, delivery_id: str) -> Optional[Delivery]:
    result = await db.execute(select(Delivery).where(Delivery.id == delivery_id))
    return result.scalar_one_or_none()


async def get_delivery_or_404(db: AsyncSession, delivery_id: str) -> Delivery:
    delivery = await get_delivery_by_id(db, delivery_id)
    if not delivery:
        raise NotFoundError("Delivery", delivery_id)
    return delivery


async def list_deliveries(db: AsyncSession, parent_id: str) -> List[Delivery]:
    """
    List a parent's deliveries ordered by version.

    Raises:
        NotFoundError: If parent not found
    """
    await get_parent_or_404(db, parent_id)
    result = await db.execute(
        select(Delivery)
        .where(Delivery.parent_id == parent_id)
        .order_by(Delivery.version_number)
    )
    return list(result.scalars().all())


def latest_batch(
    deliveries: Sequence[Delivery],
    item_label: Optional[str] = None,
    window: Optional[timedelta] = None,
) -> List[Delivery]:
    """
    Deliveries for one label submitted within the batch window of that label's latest delivery.

    Multi-file submissions (a carousel's pages) arrive as several deliveries
    seconds apart and are shown to the reviewer together.

    Returns:
        The batch in version order (empty if the label has no deliveries)
    """
    window = window if window is not None else timedelta(seconds=settings.DELIVERY_BATCH_WINDOW_SECONDS)
    same_label = [d for d in deliveries if d.item_label == item_label]
    if not same_label:
        return []

    newest = max(same_label, key=lambda d: (d.submitted_at, d.version_number))
    batch = [d for d in same_label if newest.submitted_at - d.submitted_at <= window]
    return sorted(batch, key=lambda d: d.version_number)


async def get_review_batch(db: AsyncSession, delivery: Delivery) -> List[Delivery]:
    """Batch the given delivery belongs to, for presentation on the review page."""
    result = await db.execute(
        select(Delivery).where(
            Delivery.parent_id == delivery.parent_id,
            Delivery.item_label.is_(None) if delivery.item_label is None
            else Delivery.item_label == delivery.item_label,
            Delivery.submitted_at <= delivery.submitted_at,
        )
    )
    return latest_batch(list(result.scalars().all()), delivery.item_label)
