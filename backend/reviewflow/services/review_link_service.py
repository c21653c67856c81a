"""Review link service: issuing and resolving tokenized review links."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from reviewflow.config import settings
from reviewflow.core.errors import ValidationError
from reviewflow.core.security import generate_review_token, hash_review_token
from reviewflow.database import commit_or_conflict, flush_or_conflict
from reviewflow.models.delivery import Delivery
from reviewflow.models.parent import Parent
from reviewflow.models.review_link import ReviewLink
from reviewflow.services.activity_service import notify, record_activity
from reviewflow.services.delivery_service import get_delivery_or_404, get_review_batch
from reviewflow.services.parent_service import apply_event, get_parent_by_id, get_parent_or_404
from reviewflow.services.workflow import WorkflowEvent

logger = logging.getLogger(__name__)

REASON_NOT_FOUND = "not_found"
REASON_INACTIVE = "inactive"
REASON_EXPIRED = "expired"


@dataclass(frozen=True)
class IssuedLink:
    """Result of issuing a link. The plaintext token is only available here."""
    link: ReviewLink
    token: str

    @property
    def expires_at(self) -> datetime:
        return self.link.expires_at


@dataclass
class LinkResolution:
    """What a reviewer sees when opening a token."""
    valid: bool
    reason: Optional[str] = None
    link: Optional[ReviewLink] = None
    delivery: Optional[Delivery] = None
    parent: Optional[Parent] = None
    batch: List[Delivery] = field(default_factory=list)


async def issue_review_link(
    db: AsyncSession,
    delivery_id: str,
    ttl: Optional[timedelta] = None,
    issued_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> IssuedLink:
    """
    Issue a review link for a delivery and send the parent to client review.

    Any link still active for the same delivery is deactivated first. The
    deactivation goes through the old link's row_version, so feedback racing
    against it on the old link loses with ConcurrencyConflict.

    Args:
        db: Database session
        delivery_id: Delivery UUID
        ttl: Link lifetime (defaults to REVIEW_LINK_TTL_SECONDS)
        issued_by: Issuing user id
        now: Issue time (defaults to current UTC time)

    Returns:
        The new link and its plaintext token

    Raises:
        NotFoundError: If delivery not found
        ValidationError: If ttl is not positive
        StateTransitionError: If the parent cannot be sent to the client
        ConcurrencyConflict: If the parent or previous link changed concurrently
    """
    now = now or datetime.utcnow()
    ttl = ttl if ttl is not None else timedelta(seconds=settings.REVIEW_LINK_TTL_SECONDS)
    if ttl <= timedelta(0):
        raise ValidationError("ttl must be positive")

    delivery = await get_delivery_or_404(db, delivery_id)
    parent = await get_parent_or_404(db, delivery.parent_id)

    apply_event(parent, WorkflowEvent.SEND_TO_CLIENT, now)

    result = await db.execute(
        select(ReviewLink).where(
            ReviewLink.delivery_id == delivery.id,
            ReviewLink.is_active.is_(True)
        )
    )
    superseded = 0
    for previous in result.scalars().all():
        previous.is_active = False
        previous.deactivated_at = now
        superseded += 1
    if superseded:
        # Old links must be inactive before the new one takes the active slot
        await flush_or_conflict(db)

    token = generate_review_token()
    link = ReviewLink(
        delivery_id=delivery.id,
        parent_id=parent.id,
        token_hash=hash_review_token(token),
        created_at=now,
        expires_at=now + ttl,
        is_active=True,
        views_count=0,
    )
    db.add(link)
    await flush_or_conflict(db)

    record_activity(db, "review_link_issued", parent.id, {
        "link_id": link.id,
        "expires_at": link.expires_at.isoformat(),
        "superseded": superseded,
    }, delivery_id=delivery.id, actor=issued_by)
    await commit_or_conflict(db)

    logger.info(f"Issued review link {link.id} for delivery {delivery.id} (superseded {superseded})")
    await notify("review_link_issued", parent.id, {
        "delivery_id": delivery.id,
        "link_id": link.id,
        "status": parent.status.value,
    })

    return IssuedLink(link=link, token=token)


async def get_link_by_token(db: AsyncSession, token: str) -> Optional[ReviewLink]:
    result = await db.execute(
        select(ReviewLink)
        .where(ReviewLink.token_hash == hash_review_token(token))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def link_invalid_reason(link: Optional[ReviewLink], now: datetime) -> Optional[str]:
    """None when the link can be used, else why not."""
    if link is None:
        return REASON_NOT_FOUND
    if not link.is_active:
        return REASON_INACTIVE
    if link.is_expired(now):
        return REASON_EXPIRED
    return None


async def _record_view(db: AsyncSession, link: ReviewLink, now: datetime) -> None:
    """Best-effort view counter. Bypasses row_version so views never conflict with decisions."""
    try:
        await db.execute(
            update(ReviewLink)
            .where(ReviewLink.id == link.id)
            .values(views_count=ReviewLink.views_count + 1, last_viewed_at=now)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.warning(f"Lost view count for review link {link.id}: {exc}")


async def resolve_review_link(
    db: AsyncSession,
    token: str,
    now: Optional[datetime] = None,
) -> LinkResolution:
    """
    Resolve a token to its delivery context. Never raises for bad tokens.

    Every resolve of an existing link counts a view, including expired or
    inactive ones; validity is reported separately through ``reason``.

    Args:
        db: Database session
        token: Plaintext token from the link
        now: Resolution time (defaults to current UTC time)

    Returns:
        Resolution with validity, reason and delivery context
    """
    now = now or datetime.utcnow()
    link = await get_link_by_token(db, token) if token else None
    reason = link_invalid_reason(link, now)

    if link is None:
        return LinkResolution(valid=False, reason=reason)

    await _record_view(db, link, now)
    link = await get_link_by_token(db, token)
    if link is None:
        return LinkResolution(valid=False, reason=REASON_NOT_FOUND)

    delivery = await get_delivery_or_404(db, link.delivery_id)
    parent = await get_parent_by_id(db, link.parent_id)
    batch = await get_review_batch(db, delivery)

    return LinkResolution(
        valid=reason is None,
        reason=reason,
        link=link,
        delivery=delivery,
        parent=parent,
        batch=batch,
    )
